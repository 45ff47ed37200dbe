"""
Custom logging configuration that keeps credentials out of the logs
"""

import logging
import logging.config
import re
from typing import Any, Dict

_TOKEN_PATTERN = re.compile(r"(--token=)\S+")


class CredentialRedactionFilter(logging.Filter):
    """Filter that masks bearer tokens passed to kubectl."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Rewrite the record's message with --token values masked."""
        message = record.getMessage()
        if "--token=" in message:
            record.msg = _TOKEN_PATTERN.sub(r"\1***", message)
            record.args = None
        return True  # Never drop records, only redact them


def get_logging_config(level: str = "INFO") -> Dict[str, Any]:
    """
    Get logging configuration.

    Logs go to stderr: stdout is reserved for the dispatched command's own
    output so callers can capture it unchanged.
    """
    level = level.upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "credential_filter": {
                "()": CredentialRedactionFilter
            }
        },
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            }
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stderr",
                "filters": ["credential_filter"]
            }
        },
        "loggers": {
            "slkube": {
                "handlers": ["default"],
                "level": level,
                "propagate": False
            },
            "urllib3": {
                "handlers": ["default"],
                "level": "WARNING",
                "propagate": False
            }
        },
        "root": {
            "level": level,
            "handlers": ["default"]
        }
    }


def configure_logging(level: str = "INFO") -> None:
    """Apply the logging configuration."""
    logging.config.dictConfig(get_logging_config(level))
