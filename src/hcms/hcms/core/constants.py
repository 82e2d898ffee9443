"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SESSION_DAYS = 7
DEFAULT_PENDING_FOLLOWUP_SCHOOLS = 5
DEFAULT_FOLLOWUP_LOOKUP_LIMIT = 100

USERNAME_SUFFIX_RANGE = 1000
STAFF_PASSWORD_LENGTH = 12
TEACHER_PASSWORD_LENGTH = 10

# Password alphabets follow the ones the admin screens always used.
STAFF_PASSWORD_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz23456789"
PASSWORD_SPECIALS = "!@#$%^&*"

DEVICE_ID_LENGTH = 64
MONGO_SERVER_SELECTION_TIMEOUT_MS = 5000
