"""Runtime configuration for MarketRec.

Values are read once from the environment at import time. Every setting has
a default that works for local development.
"""

import os
from pathlib import Path

# artifacts
MODEL_DIR = Path(os.getenv("MODEL_DIR", "models/recommendation"))

# external stores
INTERACTIONS_CSV = Path(os.getenv("INTERACTIONS_CSV", "data/interactions.csv"))
PRODUCT_STATS_CSV = Path(os.getenv("PRODUCT_STATS_CSV", "data/product_stats.csv"))

# redis
REDIS_URL = os.getenv("REDIS_URL")  # caching is disabled when unset
CACHE_KEY_PREFIX = os.getenv("CACHE_KEY_PREFIX", "recommendations:")
CACHE_TTL_SECONDS = int(os.getenv("CACHE_TTL_SECONDS", 3600))

# training
TRAINING_TIMEOUT_SECONDS = float(os.getenv("TRAINING_TIMEOUT_SECONDS", 1800))
TRAINING_SCHEDULE_HOUR = int(os.getenv("TRAINING_SCHEDULE_HOUR", 2))
TRAINING_SCHEDULE_MINUTE = int(os.getenv("TRAINING_SCHEDULE_MINUTE", 0))
ENABLE_SCHEDULER = os.getenv("ENABLE_SCHEDULER", "false").lower() in ("1", "true", "yes")

# api
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
DEFAULT_LIMIT = 10
MAX_LIMIT = 100
