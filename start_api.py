#!/usr/bin/env python3
"""Container entrypoint: wait for Postgres, migrate, seed, then exec uvicorn."""
import logging
import os
import sys

import wait_for_db  # noqa: F401  blocks until the database accepts connections

from alembic import command
from alembic.config import Config

from app.core.config import settings
from app.core.logging import setup_logging

setup_logging()
logger = logging.getLogger("app.start")

cfg = Config(os.path.join(os.path.dirname(os.path.abspath(__file__)), "alembic.ini"))
cfg.set_main_option("sqlalchemy.url", settings.DATABASE_URL)
logger.info("applying migrations")
command.upgrade(cfg, "head")

# import after migrating so the app engine never sees a half-built schema
from app.seed import run as run_seed  # noqa: E402

run_seed()

port = os.getenv("PORT", "8000")
logger.info("starting %s on :%s", settings.APP_NAME, port)
os.execv(
    sys.executable,
    [sys.executable, "-m", "uvicorn", "app.main:app", "--host", "0.0.0.0", "--port", port],
)
