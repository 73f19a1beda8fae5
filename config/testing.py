import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "academy_attendance_test"),
}

DEBUG = False
TESTING = True

AUTO_INIT_DB = False

LOG_LEVEL = "WARNING"
LOG_FORMAT = "text"

CHECK_LINK_BASE_URL = "http://testserver"

PIN_LENGTH = 6
PIN_MAX_FAILED_ATTEMPTS = 3

LATE_GRACE_MINUTES = 0
DEFAULT_ARRIVAL_TIME = "09:00"
DEFAULT_DEPARTURE_TIME = "18:00"
REENTRY_POLICY = "preserve"
