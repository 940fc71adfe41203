import os

from config import db_config_from_env, env_flag

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
DB_CONFIG = db_config_from_env("hotel_academy")

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# Applies database/schema.sql on startup; every table is CREATE IF NOT EXISTS
AUTO_INIT_DB = env_flag("AUTO_INIT_DB", True)

SEARCH_LIMIT_PER_CATEGORY = 10
SMART_FEED_VERIFIED_LIMIT = 30
SMART_FEED_ALL_LIMIT = 50
RECOMMENDATION_LIMIT = 10
