"""
Logging configuration.

Everything goes to stdout as JSON for Loki. Buyer email addresses are
masked before a record is formatted.
"""

import logging
import re
import sys

from opentelemetry import trace
from pythonjsonlogger import jsonlogger

APP_LOGGERS = ("core", "api", "products", "purchases", "licenses", "activations")

EMAIL_PATTERN = re.compile(r"([A-Za-z0-9._%+-])[A-Za-z0-9._%+-]*@([A-Za-z0-9.-]+\.[A-Za-z]{2,})")

# Attributes passed through ``extra=`` that may hold an email
EMAIL_ATTRIBUTES = ("email", "payer_email", "recipient")


def mask_email(value: str) -> str:
    """``buyer@example.com`` -> ``b***@example.com``, anywhere in the string."""
    return EMAIL_PATTERN.sub(r"\1***@\2", value)


class MaskEmailFilter(logging.Filter):
    """Mask email addresses in the message, its arguments and known extras."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = mask_email(record.msg)
        if isinstance(record.args, tuple):
            record.args = tuple(
                mask_email(arg) if isinstance(arg, str) else arg for arg in record.args
            )
        for name in EMAIL_ATTRIBUTES:
            value = getattr(record, name, None)
            if isinstance(value, str):
                setattr(record, name, mask_email(value))
        return True


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter that adds the active trace context."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        span_context = trace.get_current_span().get_span_context()
        if span_context.is_valid:
            log_record["trace_id"] = format(span_context.trace_id, "032x")
            log_record["span_id"] = format(span_context.span_id, "016x")


def get_logging_config(environment: str = "development") -> dict:
    """
    Build the Django LOGGING dict for an environment.

    Args:
        environment: development, test or production

    Returns:
        Django logging configuration dictionary
    """
    app_level = {"development": "DEBUG", "test": "WARNING"}.get(environment, "INFO")
    handlers = ["console"]

    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": CustomJsonFormatter,
                "format": "%(asctime)s %(name)s %(levelname)s %(message)s",
            },
        },
        "filters": {
            "mask_email": {"()": MaskEmailFilter},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "json",
                "filters": ["mask_email"],
                "stream": sys.stdout,
            },
        },
        "root": {"handlers": handlers, "level": "WARNING"},
        "loggers": {
            "django": {"handlers": handlers, "level": "INFO", "propagate": False},
            "django.request": {"handlers": handlers, "level": "WARNING", "propagate": False},
            "django.db.backends": {"handlers": handlers, "level": "WARNING", "propagate": False},
            # Task received/succeeded lines for invoices and confirmation emails
            "celery": {"handlers": handlers, "level": "INFO", "propagate": False},
            "celery.task": {"handlers": handlers, "level": app_level, "propagate": False},
        },
    }

    if environment == "production":
        config["handlers"]["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "json",
            "filters": ["mask_email"],
            "filename": "/var/log/entitlement-service/application.log",
            "maxBytes": 10485760,  # 10MB
            "backupCount": 5,
        }
        handlers.append("file")

    for name in APP_LOGGERS:
        config["loggers"][name] = {"handlers": handlers, "level": app_level, "propagate": False}

    return config
