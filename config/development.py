import os

from config import env_weekend_days

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "hrms_attendance"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed demo employees on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

TIMEZONE = os.getenv("TIMEZONE", "Asia/Kolkata")
WEEKEND_DAYS = env_weekend_days()
LEAVE_QUOTA_DAYS = float(os.getenv("LEAVE_QUOTA_DAYS", "12"))

START_SCHEDULER = bool(int(os.getenv("START_SCHEDULER", "1")))
ABSENCE_RUN_DEADLINE_SECONDS = float(os.getenv("ABSENCE_RUN_DEADLINE_SECONDS", "300"))
