import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "classbook_test"),
}

DEBUG = False
TESTING = True

POINTS_PRESENT = 100
POINTS_EXCUSED = 50
POINTS_ABSENT = 0

MAKEUP_LEAD_DAYS = 1
ADJACENCY_DAYS = 1
ABSENCE_LEAD_HOURS = 6

LOG_LEVEL = "WARNING"
LOG_JSON = False

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
# Optional: also load database/seed.sql demo data on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
