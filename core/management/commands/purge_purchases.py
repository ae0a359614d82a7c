"""
Django management command to delete purchases by id prefix.

Licenses materialized for the purchases go with them; the activation
log keeps its rows.
"""

import logging

from asgiref.sync import async_to_sync
from django.core.management.base import BaseCommand, CommandError

from purchases.infrastructure.repositories.django_purchase_repository import (
    DjangoPurchaseRepository,
)

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """Command to purge purchases whose id starts with a prefix."""

    help = "Delete purchases (and their licenses) whose id starts with --prefix"

    def add_arguments(self, parser):
        """Add command arguments."""
        parser.add_argument(
            "--prefix",
            type=str,
            required=True,
            help="Purchase id prefix, e.g. FREE-",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Only count the purchases that would be deleted",
        )

    def handle(self, *args, **options):
        """Execute the command."""
        prefix = options["prefix"].strip()
        if not prefix:
            raise CommandError("--prefix cannot be empty")

        if options["dry_run"]:
            from purchases.infrastructure.models import Purchase as PurchaseModel

            # pylint: disable=no-member
            count = PurchaseModel.objects.filter(id__startswith=prefix).count()
            self.stdout.write(self.style.WARNING(f"{count} purchase(s) match prefix {prefix!r}"))
            return

        deleted = async_to_sync(DjangoPurchaseRepository().purge_by_prefix)(prefix)
        logger.info("Purged %s purchase(s) with prefix %s", deleted, prefix)
        # pylint: disable=no-member
        self.stdout.write(self.style.SUCCESS(f"Deleted {deleted} purchase(s) with prefix {prefix!r}"))
