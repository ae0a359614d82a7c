"""
Django management command to list the event bus subscriptions.

Handlers are registered by the project AppConfig at startup; this
command shows what that registration produced.
"""
import logging

from django.core.management.base import BaseCommand

from core.infrastructure.events import event_bus

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """Command to show registered event handlers."""

    help = "List event handlers subscribed to the event bus"

    def handle(self, *args, **options):
        """Execute the command."""
        for event_type, handlers in sorted(event_bus.subscriptions().items()):
            names = ", ".join(type(handler).__name__ for handler in handlers)
            self.stdout.write(f"{event_type}: {names}")
        # pylint: disable=no-member
        self.stdout.write(self.style.SUCCESS("Event handlers listed"))
