import os

from config import env_weekend_days

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "hrms_attendance_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

TIMEZONE = os.getenv("TIMEZONE", "Asia/Kolkata")
WEEKEND_DAYS = env_weekend_days()
LEAVE_QUOTA_DAYS = 12

START_SCHEDULER = False
ABSENCE_RUN_DEADLINE_SECONDS = 30
