import os

from config import db_config_from_env, env_flag, env_int

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")
DB_CONFIG = db_config_from_env("hotel_academy")

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = env_flag("AUTO_INIT_DB", False)

SEARCH_LIMIT_PER_CATEGORY = env_int("SEARCH_LIMIT_PER_CATEGORY", 10)
SMART_FEED_VERIFIED_LIMIT = env_int("SMART_FEED_VERIFIED_LIMIT", 30)
SMART_FEED_ALL_LIMIT = env_int("SMART_FEED_ALL_LIMIT", 50)
RECOMMENDATION_LIMIT = env_int("RECOMMENDATION_LIMIT", 10)
