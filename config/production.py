import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "classbook"),
}

DEBUG = False

POINTS_PRESENT = int(os.getenv("POINTS_PRESENT", "100"))
POINTS_EXCUSED = int(os.getenv("POINTS_EXCUSED", "50"))
POINTS_ABSENT = int(os.getenv("POINTS_ABSENT", "0"))

MAKEUP_LEAD_DAYS = int(os.getenv("MAKEUP_LEAD_DAYS", "1"))
ADJACENCY_DAYS = int(os.getenv("ADJACENCY_DAYS", "1"))
ABSENCE_LEAD_HOURS = int(os.getenv("ABSENCE_LEAD_HOURS", "6"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_JSON = bool(int(os.getenv("LOG_JSON", "1")))

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
# Optional: also load database/seed.sql demo data on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
