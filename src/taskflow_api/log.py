import logging
import logging.config
from typing import Any

from .settings import Settings


class LogConfig:
    """
    Logging configuration for the server.
    We convert this class to a dict to be used by Python logging module.

    Call `LogConfig().initialize_loggers(settings)` to configure the logging ecosystem.

    Loggers:
    - taskflow.error: unexpected failures and categorization fallbacks
    - taskflow.access: request level information (stats summaries, ...)
    - taskflow.security: session verification failures
    """

    LOG_FORMAT: str = "%(levelprefix)s %(asctime)s - %(name)s - %(message)s"

    def get_config_dict(self, settings: Settings) -> dict[str, Any]:
        return {
            "version": 1,
            # Keep uvicorn and library loggers working
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "()": "uvicorn.logging.DefaultFormatter",
                    "fmt": self.LOG_FORMAT,
                    "datefmt": "%d-%b-%y %H:%M:%S",
                },
            },
            "handlers": {
                "console": {
                    "formatter": "default",
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "level": settings.log_level,
                },
            },
            "loggers": {
                "taskflow.error": {
                    "handlers": ["console"],
                    "level": settings.log_level,
                    "propagate": False,
                },
                "taskflow.access": {
                    "handlers": ["console"],
                    "level": settings.log_level,
                    "propagate": False,
                },
                "taskflow.security": {
                    "handlers": ["console"],
                    "level": settings.log_level,
                    "propagate": False,
                },
            },
        }

    def initialize_loggers(self, settings: Settings) -> None:
        """
        Initialize the loggers with the configuration dict.
        """
        logging.config.dictConfig(self.get_config_dict(settings=settings))
