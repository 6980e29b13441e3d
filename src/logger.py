import logging
import os
from logging import config
from typing import Any

LOGGER_NAME = "geoip"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def build_log_config(level: str) -> dict[str, Any]:
    """Return a dictConfig routing service and uvicorn logs through uvicorn's formatters.

    Service messages go to stderr with the child logger name (`geoip.cache`,
    `geoip.resolver`, ...) so sweeper and lookup lines are easy to tell apart.
    Access lines go to stdout.
    """
    level = level.upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "service": {
                "()": "uvicorn.logging.DefaultFormatter",
                "fmt": "%(levelprefix)s %(asctime)s [%(name)s] %(message)s",
                "datefmt": DATE_FORMAT,
            },
            "access": {
                "()": "uvicorn.logging.AccessFormatter",
                "fmt": '%(levelprefix)s %(asctime)s %(client_addr)s "%(request_line)s" %(status_code)s',
                "datefmt": DATE_FORMAT,
            },
        },
        "handlers": {
            "stderr": {"class": "logging.StreamHandler", "formatter": "service", "stream": "ext://sys.stderr"},
            "stdout": {"class": "logging.StreamHandler", "formatter": "access", "stream": "ext://sys.stdout"},
        },
        "loggers": {
            LOGGER_NAME: {"handlers": ["stderr"], "level": level, "propagate": False},
            "uvicorn": {"handlers": ["stderr"], "level": level, "propagate": False},
            "uvicorn.error": {"level": level},
            "uvicorn.access": {"handlers": ["stdout"], "level": level, "propagate": False},
        },
    }


# DEBUG shows per-request cache hits and sweeps.
log_config = build_log_config(os.getenv("LOG_LEVEL", "INFO"))
config.dictConfig(log_config)

logger = logging.getLogger(LOGGER_NAME)


def get_logger(name: str) -> logging.Logger:
    """Return a child of the service logger, e.g. `geoip.cache`."""
    return logger.getChild(name)
