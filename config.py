# ============================
# RAPIDAPI ROTATOR GLOBAL CONFIG
# ============================

import os

# ========= RAPIDAPI KEYS =========
# One env var per named slot: RAPIDAPI_KEY_ONE ... RAPIDAPI_KEY_FIVE
# A missing slot only shrinks the pool.

RAPIDAPI_KEY_SLOTS = ["ONE", "TWO", "THREE", "FOUR", "FIVE"]
RAPIDAPI_KEY_ENV_PREFIX = "RAPIDAPI_KEY_"

# Advisory monthly quota per key (RapidAPI basic plan)
RAPIDAPI_MONTHLY_LIMIT = int(os.getenv("RAPIDAPI_MONTHLY_LIMIT", "300"))

# ========= SEARCH ENDPOINT =========

RAPIDAPI_HOST = os.getenv("RAPIDAPI_HOST", "tiktok-scraper7.p.rapidapi.com")
RAPIDAPI_SEARCH_URL = f"https://{RAPIDAPI_HOST}/feed/search"

SEARCH_REGION = os.getenv("SEARCH_REGION", "id")
SEARCH_PUBLISH_TIME = 1    # last 24h
SEARCH_SORT_TYPE = 0       # relevance

# Videos per call (max accepted by the endpoint)
PAGE_SIZE = 30

# ============================
# ROTATION POLICY
# ============================

PEAK_POOL_SIZE = 3         # parallel calls in peak window
CONSERVE_POOL_SIZE = 2     # sequential calls in conserve window

PEAK_VIDEO_COUNT = 90
CONSERVE_VIDEO_COUNT = 60

# Delay between sequential calls (seconds)
SEQUENTIAL_CALL_DELAY = 0.5

# Peak window: [PEAK_START_HOUR, 24) + [0, PEAK_END_HOUR)
PEAK_START_HOUR = 12
PEAK_END_HOUR = 2

# pytz zone name for the peak window, empty = server local time
SCHEDULER_TIMEZONE = os.getenv("SCHEDULER_TIMEZONE", "")

# ============================
# MONITORING
# ============================

# Keys at or above this usage % are flagged in status
USAGE_WARNING_PCT = 80

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_DIR = os.getenv("LOG_DIR", "data/logs")
LOG_TO_FILE = os.getenv("LOG_TO_FILE", "False").lower() in ("true", "1", "yes")
