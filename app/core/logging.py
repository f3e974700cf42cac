import logging.config

from app.core.config import settings


def setup_logging(level: str | None = None) -> None:
    level = (level or settings.LOG_LEVEL or "INFO").upper()
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "plain": {"format": "%(asctime)s %(levelname)s [%(name)s] %(message)s"},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "plain",
                "level": level,
            }
        },
        "root": {"handlers": ["console"], "level": "WARNING"},
        "loggers": {
            "app": {"level": level},
            "uvicorn.error": {"level": "INFO"},
        },
    })
