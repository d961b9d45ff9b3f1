"""Gunicorn configuration for the Cafe Operations Console."""
import os

bind = os.getenv("GUNICORN_BIND", "0.0.0.0:5000")

# A single worker keeps the summary email scheduler from running twice.
workers = int(os.getenv("GUNICORN_WORKERS", "1"))

accesslog = os.getenv("GUNICORN_ACCESS_LOGFILE", "-")
errorlog = os.getenv("GUNICORN_ERROR_LOGFILE", "-")

forwarded_allow_ips = os.getenv("GUNICORN_FORWARDED_ALLOW_IPS", "*")
