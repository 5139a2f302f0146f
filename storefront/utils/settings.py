# storefront/utils/settings.py
import os
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./storefront.db")
REDIS_URL = os.getenv("REDIS_URL", "redis://redis:6379/0")

# memory | redis
LOCK_BACKEND = os.getenv("LOCK_BACKEND", "memory")
LOCK_TIMEOUT_SECONDS = float(os.getenv("LOCK_TIMEOUT_SECONDS", 10))
LOCK_TTL_SECONDS = int(os.getenv("LOCK_TTL_SECONDS", 30))

ORDER_NUMBER_MAX_ATTEMPTS = int(os.getenv("ORDER_NUMBER_MAX_ATTEMPTS", 5))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
SEED_DATA = os.getenv("SEED_DATA", "true").lower() in ("1", "true", "yes")
# console | json
LOG_FORMAT = os.getenv("LOG_FORMAT", "console")
