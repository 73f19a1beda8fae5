import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "academy_attendance"),
}

DEBUG = False

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LOG_FORMAT", "json")

CHECK_LINK_BASE_URL = os.getenv("CHECK_LINK_BASE_URL", "https://attendance.example.com")

PIN_LENGTH = int(os.getenv("PIN_LENGTH", "6"))
PIN_MAX_FAILED_ATTEMPTS = int(os.getenv("PIN_MAX_FAILED_ATTEMPTS", "3"))

LATE_GRACE_MINUTES = int(os.getenv("LATE_GRACE_MINUTES", "0"))
DEFAULT_ARRIVAL_TIME = os.getenv("DEFAULT_ARRIVAL_TIME", "09:00")
DEFAULT_DEPARTURE_TIME = os.getenv("DEFAULT_DEPARTURE_TIME", "18:00")
REENTRY_POLICY = os.getenv("REENTRY_POLICY", "preserve")
