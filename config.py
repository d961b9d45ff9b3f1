import os


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "change-me-cafe-console")
    BASE_DIR = os.path.dirname(os.path.abspath(__file__))

    SHEETDB_BASE_URL = os.getenv("SHEETDB_BASE_URL", "https://sheetdb.io/api/v1")
    SHEETDB_API_ID = os.getenv("SHEETDB_API_ID", "")
    SHEETDB_API_KEY = os.getenv("SHEETDB_API_KEY", "")
    SHEETDB_TIMEOUT = float(os.getenv("SHEETDB_TIMEOUT", 15))

    GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID", "")
    GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET", "")
    # Comma separated list of staff emails allowed to sign in.
    ALLOWED_EMAILS = os.getenv("ALLOWED_EMAILS", "")

    SMTP_HOST = os.getenv("SMTP_HOST", "")
    SMTP_PORT = int(os.getenv("SMTP_PORT", 587))
    SMTP_USERNAME = os.getenv("SMTP_USERNAME", "")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", "")
    SMTP_USE_TLS = os.getenv("SMTP_USE_TLS", "true")
    SMTP_USE_SSL = os.getenv("SMTP_USE_SSL", "false")
    SUMMARY_EMAIL_SENDER = os.getenv("SUMMARY_EMAIL_SENDER", "")
    SUMMARY_EMAIL_HOUR = int(os.getenv("SUMMARY_EMAIL_HOUR", 7))

    INVENTORY_REFRESH_SECONDS = int(os.getenv("INVENTORY_REFRESH_SECONDS", 30))

    LOG_DIR = os.getenv("LOG_DIR", os.path.join(BASE_DIR, "logs"))
