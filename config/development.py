import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

MONGO_CONFIG = {
    "uri": os.getenv("MONGODB_URI", "mongodb://localhost:27017"),
    "database": os.getenv("MONGODB_DB_NAME", "hcms"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# The single-page front end runs on its own dev server.
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000").split(",")

# Bulk requests can be large.
MAX_CONTENT_LENGTH = 50 * 1024 * 1024

SESSION_DAYS = int(os.getenv("SESSION_DAYS", "7"))

# If enabled, indexes are created on startup (idempotent)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also make sure an admin account exists
AUTO_SEED_ADMIN = bool(int(os.getenv("AUTO_SEED_ADMIN", "0")))
ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin123")
