import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "seva_sarthi_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

UPLOAD_FOLDER = os.getenv("UPLOAD_FOLDER", "uploads-test")
MAX_PHOTO_BYTES = 5 * 1024 * 1024

TOKEN_MAX_AGE_SECONDS = 3600
PASSWORD_RESET_HOURS = 24
LOGIN_MAX_ATTEMPTS = 5
LOGIN_WINDOW_SECONDS = 15 * 60

PUBLIC_BASE_URL = "http://localhost"
