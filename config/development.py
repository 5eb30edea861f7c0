import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "classbook"),
}

DEBUG = True

# Points awarded per attendance status when a session is finalized
POINTS_PRESENT = int(os.getenv("POINTS_PRESENT", "100"))
POINTS_EXCUSED = int(os.getenv("POINTS_EXCUSED", "50"))
POINTS_ABSENT = int(os.getenv("POINTS_ABSENT", "0"))

MAKEUP_LEAD_DAYS = int(os.getenv("MAKEUP_LEAD_DAYS", "1"))
ADJACENCY_DAYS = int(os.getenv("ADJACENCY_DAYS", "1"))
ABSENCE_LEAD_HOURS = int(os.getenv("ABSENCE_LEAD_HOURS", "6"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
LOG_JSON = bool(int(os.getenv("LOG_JSON", "0")))

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also load database/seed.sql demo data on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
