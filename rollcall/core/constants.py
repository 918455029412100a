"""Application constants.

This module contains magic strings and numbers used throughout the application.
Centralizing these values makes them easier to maintain and modify.
"""

# Identity Keys
# Derived participant keys and personal codes share one 36-symbol alphabet
KEY_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
KEY_LENGTH = 8
KEY_PATTERN = r"[A-Z0-9]{8}"
KEY_FIELD_SEPARATOR = "|"

# Scannable Payload Formats
# {"type": "checkin", "id": "<participant id>", "v": 1}
QR_PAYLOAD_TYPE = "checkin"
QR_PAYLOAD_VERSION = 1
PARTICIPANT_ID_PREFIX = "CHECKIN:"
KEY_PREFIX = "KEY:"

# Audit Log
AUDIT_DEFAULT_PAGE_SIZE = 50
AUDIT_MAX_PAGE_SIZE = 200
# Upper bound on ids deleted per statement when clearing the log
AUDIT_DELETE_BATCH_SIZE = 500
DEFAULT_ACTOR_NAME = "Unknown"
# Actor recorded for changes made through public registration
REGISTRATION_ACTOR_NAME = "Registration"

# Admin session cookie
ADMIN_COOKIE_NAME = "admin_token"

# Admission Control
# Operation prefixes used in rate-limit counter keys ("<operation>:<client ip>")
OPERATION_EMAIL_CODE = "email_code"
OPERATION_CODE_LOOKUP = "code_lookup"
OPERATION_REGISTRATION = "registration"
# Lost compare-and-swap races tolerated before a request is turned away
ADMISSION_MAX_ATTEMPTS = 3

# Registration
PERSONAL_CODE_MAX_ATTEMPTS = 5

# Key index cache
KEY_INDEX_CACHE_SIZE = 2048
KEY_INDEX_TTL_SECONDS = 300.0

# JWT Token Configuration
# Token expiration time in minutes (8 hours)
ACCESS_TOKEN_EXPIRE_MINUTES = 480
