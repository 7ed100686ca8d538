"""
Gunicorn configuration for production deployment.

Each worker runs the FastAPI lifespan on its own, so it builds its own container:
its own SQLAlchemy pool, Redis client and (with STORAGE_BACKEND=memory) its own user store.
"""
from pathlib import Path

from framework.config import settings

LOG_DIR = Path(settings.LOG_DIR)
LOG_DIR.mkdir(parents=True, exist_ok=True)

# Server
bind = settings.GUNICORN_BIND
backlog = 2048

# Worker processes
workers = settings.GUNICORN_WORKERS
worker_class = "uvicorn.workers.UvicornWorker"
worker_connections = 1000
max_requests = 1000
max_requests_jitter = 50
timeout = 60  # OAuth and SMTP calls are the slowest requests
keepalive = 5

# Process name (from config; fallback to APP_NAME)
proc_name = (settings.GUNICORN_PROC_NAME or settings.APP_NAME.lower().replace(" ", "-"))[:32]

# Logging
accesslog = str(LOG_DIR / "gunicorn_access.log")
errorlog = str(LOG_DIR / "gunicorn_error.log")
loglevel = settings.LOG_LEVEL.lower()
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(D)s'

# Process management
daemon = False  # Managed by systemd
pidfile = str(LOG_DIR / "gunicorn.pid")
umask = 0o007

# Engines and Redis clients are created in the lifespan, after fork
preload_app = True
worker_tmp_dir = "/dev/shm"
graceful_timeout = 30

# Security
limit_request_line = 4094
limit_request_fields = 100
limit_request_field_size = 8190

def when_ready(server):
    server.log.info("%s is ready. Listening on %s", settings.APP_NAME, server.address)

def post_fork(server, worker):
    server.log.info("Worker spawned (pid: %s)", worker.pid)

def on_exit(server):
    server.log.info("%s is shutting down.", settings.APP_NAME)
