import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "worktimer_test"),
}

REMOTE_CONFIG = {
    "base_url": os.getenv("REMOTE_BASE_URL", ""),
    "token": None,
    "zone": "WorkTimerZone",
    "timeout": 5.0,
}

STATUS_CHECK_INTERVAL_SECONDS = 60
REMOTE_TIMEOUT_SECONDS = 5.0

LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")
LOG_FILE = None

DEBUG = False
TESTING = True

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
