"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_ARRIVAL_TIME = "09:00"
DEFAULT_DEPARTURE_TIME = "18:00"
DEFAULT_LATE_GRACE_MINUTES = 0

# Unexcused absences are confirmed this long after the expected departure.
ABSENCE_CONFIRM_AFTER_MINUTES = 30
ABSENCE_GRACE_MINUTES = 5

PIN_MIN_LENGTH = 4
PIN_MAX_LENGTH = 6
DEFAULT_PIN_LENGTH = 6
PIN_MAX_FAILED_ATTEMPTS = 3
PIN_HISTORY_LIMIT = 3
PIN_PATTERN = r"^\d{4,6}$"

CHECK_LINK_TOKEN_BYTES = 32
DEFAULT_HISTORY_LIMIT = 30
