import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "academy_attendance"),
}

DEBUG = True

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))

LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
LOG_FORMAT = os.getenv("LOG_FORMAT", "text")

# Public check links and their QR codes point here.
CHECK_LINK_BASE_URL = os.getenv("CHECK_LINK_BASE_URL", "http://localhost:5000")

PIN_LENGTH = int(os.getenv("PIN_LENGTH", "6"))
PIN_MAX_FAILED_ATTEMPTS = int(os.getenv("PIN_MAX_FAILED_ATTEMPTS", "3"))

LATE_GRACE_MINUTES = int(os.getenv("LATE_GRACE_MINUTES", "0"))
DEFAULT_ARRIVAL_TIME = os.getenv("DEFAULT_ARRIVAL_TIME", "09:00")
DEFAULT_DEPARTURE_TIME = os.getenv("DEFAULT_DEPARTURE_TIME", "18:00")
# "preserve" keeps the first cycle's late/early figures on re-entry; "recalculate" measures again.
REENTRY_POLICY = os.getenv("REENTRY_POLICY", "preserve")
