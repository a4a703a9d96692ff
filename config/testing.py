import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "daycare_test"),
}

DEBUG = False
TESTING = True

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

PICKUP_PROCEDURES = "off"

VPK_MAX_DAILY_HOURS = 6
EXPIRING_SOON_DAYS = 30
KIOSK_BADGE_PREFIX = "CHILD:"

LOG_LEVEL = "WARNING"
LOG_JSON = False
