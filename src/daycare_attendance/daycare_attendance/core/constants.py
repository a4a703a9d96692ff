"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_EXPIRING_SOON_DAYS = 30
DEFAULT_VPK_MAX_DAILY_HOURS = 6
SCHOOL_YEAR_START_MONTH = 8

VPK_SCHOOL_YEAR_REQUIRED_HOURS = 540
VPK_SUMMER_REQUIRED_HOURS = 300

WEEKDAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

EMERGENCY_CONTACT_ADVISORY = "Contacto de emergencia: confirmar identidad en persona antes de entregar al niño"

DEFAULT_KIOSK_BADGE_PREFIX = "CHILD:"
