"""
Gunicorn config: bind to 0.0.0.0 and PORT for Railway/Render.
Run: gunicorn -c gunicorn_config.py app:app
"""
import os

bind = "0.0.0.0:{}".format(os.environ.get("PORT", "8080"))
# OTP_STORE=memory keeps codes per process, so it needs a single worker
workers = int(os.environ.get("WEB_CONCURRENCY", "1"))
threads = int(os.environ.get("GUNICORN_THREADS", "2"))
timeout = 120
loglevel = os.environ.get("LOG_LEVEL", "info").lower()
accesslog = "-"
errorlog = "-"
