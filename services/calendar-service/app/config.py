import os

DATABASE_URL = os.getenv("CALENDAR_DB") or "sqlite+aiosqlite:///./calendar.db"
DATABASE_ECHO = (os.getenv("CALENDAR_DB_ECHO") or "").lower() in ("1", "true", "yes")
# create tables on startup instead of running alembic (local dev only)
CREATE_SCHEMA = (os.getenv("CALENDAR_CREATE_SCHEMA") or "").lower() in ("1", "true", "yes")

RABBIT_URL = os.getenv("RABBIT_URL")  # optional; events are skipped when unset
EXCHANGE_NAME = "domain_events"

# directory collaborators, used only to decorate responses
USER_SERVICE_URL = os.getenv("USER_SERVICE_URL")
PET_SERVICE_URL = os.getenv("PET_SERVICE_URL")
DIRECTORY_TIMEOUT = float(os.getenv("DIRECTORY_TIMEOUT") or "2.0")

LOG_LEVEL = os.getenv("LOG_LEVEL") or "INFO"

SERVICE_NAME = "calendar-service"

DEFAULT_PAGE_LIMIT = 100
MAX_PAGE_LIMIT = 500
