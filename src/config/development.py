import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "worktimer"),
}

REMOTE_CONFIG = {
    "base_url": os.getenv("REMOTE_BASE_URL", "http://localhost:8080/api/v1"),
    "token": os.getenv("REMOTE_TOKEN"),
    "zone": os.getenv("REMOTE_ZONE", "WorkTimerZone"),
    "timeout": float(os.getenv("REMOTE_TIMEOUT_SECONDS", "30")),
}

# At most one remote account-status check per interval
STATUS_CHECK_INTERVAL_SECONDS = int(os.getenv("STATUS_CHECK_INTERVAL_SECONDS", "60"))
REMOTE_TIMEOUT_SECONDS = float(os.getenv("REMOTE_TIMEOUT_SECONDS", "30"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
LOG_FILE = os.getenv("LOG_FILE", "./logs/worktimer.log")

DEBUG = True

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
