"""
App configuration for Entitlement Service.
"""

import logging
import os
import sys

from django.apps import AppConfig
from django.conf import settings

logger = logging.getLogger(__name__)

# Management commands that never serve requests
SKIP_COMMANDS = (
    "migrate",
    "makemigrations",
    "collectstatic",
    "shell",
    "check",
    "createsuperuser",
)


class EntitlementServiceConfig(AppConfig):
    """App configuration for EntitlementService."""

    name = "EntitlementService"
    verbose_name = "Entitlement Service"

    def ready(self):
        """Called when Django starts."""
        # The event bus is needed by every process that publishes
        self.register_event_handlers()

        if len(sys.argv) > 1 and sys.argv[1] in SKIP_COMMANDS:
            return

        # Django's reloader runs code twice; RUN_MAIN is "false" in the watcher
        if os.environ.get("RUN_MAIN") == "false":
            return

        if getattr(settings, "OBSERVABILITY_ENABLED", False):
            self.setup_observability()

    def setup_observability(self):
        """Setup observability after apps are ready."""
        from core.instrumentation import setup_opentelemetry

        logger.info("Setting up observability...")
        setup_opentelemetry()
        logger.info("Observability setup complete")

    def register_event_handlers(self):
        """Register event handlers after apps are ready."""
        from core.infrastructure.event_handlers import register_event_handlers

        register_event_handlers()
