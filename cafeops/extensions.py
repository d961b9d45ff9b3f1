from authlib.integrations.flask_client import OAuth
from flask_login import LoginManager

from .sheetdb import RecordStore

record_store = RecordStore()
login_manager = LoginManager()
oauth = OAuth()
