# Gunicorn configuration for the VisitFlow API
import os

bind = f"0.0.0.0:{os.environ.get('PORT', 8000)}"
backlog = 2048

workers = int(os.environ.get("WEB_CONCURRENCY", 2))
worker_class = "uvicorn.workers.UvicornWorker"
worker_connections = 1000
timeout = 60
keepalive = 5

# Recycle workers periodically
max_requests = 1000
max_requests_jitter = 50

accesslog = "-"
errorlog = "-"
loglevel = os.environ.get("LOG_LEVEL", "info").lower()

proc_name = "visitflow-api"

preload_app = False
daemon = False

wsgi_app = "visitflow.app:app"
