"""Block until the configured database accepts connections. Imported by start_api."""
import logging
import os
import time

from sqlalchemy import create_engine, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import OperationalError

from app.core.config import settings

logger = logging.getLogger("app.wait_for_db")

timeout_s = int(os.getenv("DB_WAIT_TIMEOUT", "60"))
url = make_url(settings.DATABASE_URL)
engine = create_engine(url, pool_pre_ping=True)

logger.warning("waiting for %s at %s:%s db=%s (timeout=%ss)",
               url.get_backend_name(), url.host, url.port, url.database, timeout_s)
deadline = time.monotonic() + timeout_s
while True:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        break
    except OperationalError as e:
        if time.monotonic() > deadline:
            logger.error("timed out waiting for the database: %s", e)
            raise
        time.sleep(1)
engine.dispose()
logger.warning("database is ready")
