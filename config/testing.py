from config import db_config_from_env, env_flag

SECRET_KEY = "test-secret"
DB_CONFIG = db_config_from_env("hotel_academy_test")

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = env_flag("AUTO_INIT_DB", False)

SEARCH_LIMIT_PER_CATEGORY = 10
SMART_FEED_VERIFIED_LIMIT = 30
SMART_FEED_ALL_LIMIT = 50
RECOMMENDATION_LIMIT = 10
