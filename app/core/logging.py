import logging
import logging.config
from pathlib import Path
from typing import Optional

from app.core.config import settings

FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

def build_logging_config(level: str = "INFO", log_dir: Optional[str] = None) -> dict:
    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "level": level,
            "formatter": "default",
            "stream": "ext://sys.stdout"
        }
    }
    app_handlers = ["console"]

    if log_dir:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": level,
            "formatter": "default",
            "filename": str(Path(log_dir) / "app.log"),
            "maxBytes": 10485760,
            "backupCount": 5
        }
        handlers["error_file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": "ERROR",
            "formatter": "default",
            "filename": str(Path(log_dir) / "error.log"),
            "maxBytes": 10485760,
            "backupCount": 5
        }
        app_handlers = ["console", "file", "error_file"]

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": FORMAT
            }
        },
        "handlers": handlers,
        "root": {
            "level": level,
            "handlers": app_handlers
        },
        "loggers": {
            "app": {
                "level": level,
                "handlers": app_handlers,
                "propagate": False
            },
            "app.core.cache": {
                "level": level,
                "handlers": app_handlers,
                "propagate": False
            },
            "uvicorn.access": {
                "level": "WARNING",
                "handlers": ["console"],
                "propagate": False
            }
        }
    }

def configure_logging(level: Optional[str] = None, log_dir: Optional[str] = None):
    try:
        config = build_logging_config(level or settings.LOG_LEVEL, log_dir if log_dir is not None else settings.LOG_DIR)
    except OSError as e:
        logging.getLogger(__name__).warning(f"Log directory unavailable, logging to console only: {e}")
        config = build_logging_config(level or settings.LOG_LEVEL, None)
    logging.config.dictConfig(config)
