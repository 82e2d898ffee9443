import os

SECRET_KEY = "test-secret"

MONGO_CONFIG = {
    "uri": os.getenv("MONGODB_URI", "mongodb://localhost:27017"),
    "database": os.getenv("MONGODB_DB_NAME", "hcms_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

CORS_ORIGINS = ["http://localhost"]

MAX_CONTENT_LENGTH = 50 * 1024 * 1024

SESSION_DAYS = 1

AUTO_INIT_DB = False
AUTO_SEED_ADMIN = False
ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "admin123"
