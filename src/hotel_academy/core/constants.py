"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SESSION_DAYS = 7

PUBLISH_XP_REWARD = 50
COMMUNITY_MAX_DURATION_MINUTES = 5

REVIEW_HIGH_RATING = 4
REVIEW_LOW_RATING = 2
REVIEW_HIGH_REPUTATION = 10
REVIEW_HIGH_XP = 50
REVIEW_LOW_REPUTATION = -5
REVIEW_QUALITY_TAG_BONUS = 5
REVIEW_FLAG_THRESHOLD = 3

SMART_FEED_VERIFIED_LIMIT = 30
SMART_FEED_ALL_LIMIT = 50

SEARCH_MIN_TERM_LENGTH = 2
SEARCH_TRACK_MIN_LENGTH = 3
SEARCH_LIMIT_PER_CATEGORY = 10
SEARCH_SCAN_LIMIT = 50
SEARCH_MAX_QUERY_TERMS = 10
TRENDING_LIMIT = 5

SCORE_COURSE_TAG = 50
SCORE_COURSE_TOPIC = 60
SCORE_COURSE_TITLE_BOOST = 20
SCORE_ORG_NAME = 80
SCORE_ORG_SECTOR = 40
SCORE_USER_NAME = 70
SCORE_USER_ROLE = 30

RECOMMENDATION_LIMIT = 10
RECOMMENDATION_MAX_TOPICS = 5
WEAK_SKILL_LEVEL = 40
WEAK_SKILL_FAILURES = 2
STALE_SKILL_LEVEL = 80
STALE_SKILL_AGE_MS = 7 * 24 * 60 * 60 * 1000

SKILL_SUCCESS_STEP = 10
SKILL_FAILURE_STEP = 15

TRENDING_POPULARITY = 70
ONBOARDING_CATEGORY_ID = "cat_onboarding"

DEFAULT_PAGE_SIZE = 20

# live session stores kept per process; older ones are rebuilt from the cookie
CONTEXT_SESSION_LIMIT = 10_000
