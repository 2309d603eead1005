import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "hrims_test"),
}

JWT_SECRET = "test-jwt-secret"
JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRES_SECONDS = 900
REFRESH_TOKEN_EXPIRES_DAYS = 1

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

AVATAR_DIR = os.getenv("AVATAR_DIR", "/tmp/hrims-test-avatars")
