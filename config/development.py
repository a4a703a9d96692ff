import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "daycare_db"),
}

DEBUG = True

# Applies database/schema.sql and database/procedures.sql on startup (idempotent).
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

# auto: probe information_schema; on: always call the procedures; off: local lookups only
PICKUP_PROCEDURES = os.getenv("PICKUP_PROCEDURES", "auto")

VPK_MAX_DAILY_HOURS = float(os.getenv("VPK_MAX_DAILY_HOURS", "6"))
EXPIRING_SOON_DAYS = int(os.getenv("EXPIRING_SOON_DAYS", "30"))
KIOSK_BADGE_PREFIX = os.getenv("KIOSK_BADGE_PREFIX", "CHILD:")

LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
LOG_JSON = bool(int(os.getenv("LOG_JSON", "0")))
