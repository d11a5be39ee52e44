# gunicorn.conf.py
import os

wsgi_app = "eastlondon.wsgi:application"

# Koyeb injects PORT
bind = f"0.0.0.0:{os.getenv('PORT', '8000')}"

# Requests spend most of their time waiting on the hosted backend
worker_class = "gthread"
workers = int(os.getenv("WEB_CONCURRENCY", 2))
threads = int(os.getenv("GUNICORN_THREADS", 4))
timeout = int(os.getenv("GUNICORN_TIMEOUT", 60))
graceful_timeout = 30
keepalive = 5

# Recycle workers to bound memory held by SDK clients
max_requests = 500
max_requests_jitter = 50

accesslog = "-"
errorlog = "-"
loglevel = os.getenv("GUNICORN_LOG_LEVEL", "info")

proc_name = "eastlondon-community"

forwarded_allow_ips = "*"
