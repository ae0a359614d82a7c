"""
Django management command to create test data for development and testing.

Creates:
- A superuser (admin/admin)
- A free product and a paid product
- Optionally, an approved free purchase with its license seats
"""

import asyncio
import logging
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from products.domain.product import Product
from products.infrastructure.repositories.django_product_repository import DjangoProductRepository
from purchases.application.services.provisioning_coordinator import ProvisioningCoordinator
from purchases.domain.purchase import Purchase, PurchaseOrigin
from purchases.infrastructure.repositories.django_purchase_repository import (
    DjangoPurchaseRepository,
)
from licenses.infrastructure.repositories.django_license_repository import DjangoLicenseRepository

logger = logging.getLogger(__name__)
User = get_user_model()


class Command(BaseCommand):
    """Command to create test data."""

    help = "Create test data (superuser, products, free purchase with licenses)"

    def add_arguments(self, parser):
        """Add command arguments."""
        parser.add_argument(
            "--skip-superuser",
            action="store_true",
            help="Skip creating superuser",
        )
        parser.add_argument(
            "--skip-purchase",
            action="store_true",
            help="Skip creating the free purchase",
        )
        parser.add_argument(
            "--customer-email",
            type=str,
            default="test@example.com",
            help="Buyer email for the free purchase (default: test@example.com)",
        )
        parser.add_argument(
            "--seats",
            type=int,
            default=1,
            help="Quantity of the free purchase (default: 1)",
        )

    def handle(self, *args, **options):
        """Execute the command."""
        if not options["skip_superuser"]:
            self.create_superuser()

        free_product, paid_product, license_keys = asyncio.run(self.create_async_data(options))
        self.print_summary(free_product, paid_product, license_keys)

    async def create_async_data(self, options):
        """Create async data (products, purchase, licenses)."""
        product_repo = DjangoProductRepository()

        free_product = await self.create_product(
            product_repo, name="Test Product", slug="test-product", price=Decimal("0")
        )
        paid_product = await self.create_product(
            product_repo, name="Test Product Pro", slug="test-product-pro", price=Decimal("49.90")
        )

        license_keys = []
        if not options["skip_purchase"]:
            license_keys = await self.create_free_purchase(
                product_repo, free_product, options["customer_email"], options["seats"]
            )
        return free_product, paid_product, license_keys

    def create_superuser(self):
        """Create a superuser if it doesn't exist."""
        username = "admin"
        password = "admin"

        if User.objects.filter(username=username).exists():
            # pylint: disable=no-member
            self.stdout.write(self.style.WARNING(f"Superuser '{username}' already exists"))
            return

        User.objects.create_superuser(username=username, email="admin@example.com", password=password)
        # pylint: disable=no-member
        self.stdout.write(self.style.SUCCESS(f"Created superuser: {username} / {password}"))

    async def create_product(self, product_repo, name: str, slug: str, price: Decimal) -> Product:
        """Create a published product unless the slug is taken."""
        existing = await product_repo.find_by_slug(slug)
        if existing:
            # pylint: disable=no-member
            self.stdout.write(self.style.WARNING(f"Product '{name}' already exists (slug: {slug})"))
            return existing

        product = await product_repo.save(
            Product.create(
                name=name,
                slug=slug,
                price=price,
                version="1.0.0",
                artifact_url=f"{slug}/{slug}-1.0.0.zip",
            )
        )
        # pylint: disable=no-member
        self.stdout.write(self.style.SUCCESS(f"Created product: {product.name} (slug: {slug})"))
        return product

    async def create_free_purchase(self, product_repo, product: Product, email: str, seats: int):
        """Record an approved free purchase and materialize its seats."""
        purchase_repo = DjangoPurchaseRepository()
        coordinator = ProvisioningCoordinator(
            purchase_repository=purchase_repo,
            license_repository=DjangoLicenseRepository(),
            product_repository=product_repo,
        )
        purchase = await purchase_repo.save(
            Purchase.create(
                product_id=product.id,
                quantity=seats,
                unit_price=product.price,
                payer_email=email,
                origin=PurchaseOrigin.FREE,
                currency=product.currency,
            )
        )
        licenses = await coordinator.provision_approved(purchase)

        # pylint: disable=no-member
        self.stdout.write(
            self.style.SUCCESS(f"Created purchase {purchase.id} with {len(licenses)} seat(s)")
        )
        return [license.license_key for license in licenses]

    def print_summary(self, free_product: Product, paid_product: Product, license_keys):
        """Print summary of created test data."""
        # pylint: disable=no-member
        self.stdout.write(self.style.SUCCESS("\n" + "=" * 60))
        self.stdout.write(self.style.SUCCESS("Test Data Summary"))
        self.stdout.write(self.style.SUCCESS("=" * 60))

        self.stdout.write("\nSuperuser:")
        self.stdout.write("   Username: admin")
        self.stdout.write("   Password: admin")
        self.stdout.write("   URL: http://localhost:8000/admin/")

        for label, product in (("Free product", free_product), ("Paid product", paid_product)):
            self.stdout.write(f"\n{label}:")
            self.stdout.write(f"   Name: {product.name}")
            self.stdout.write(f"   Price: {product.price} {product.currency}")
            self.stdout.write(f"   ID: {product.id}")

        if license_keys:
            self.stdout.write("\nLicense keys:")
            for key in license_keys:
                self.stdout.write(f"   {key}")

        self.stdout.write("\nExample API Request:")
        self.stdout.write(
            "   curl -X POST http://localhost:8000/api/v1/licenses/activate-device \\"
        )
        self.stdout.write('     -H "Content-Type: application/json" \\')
        self.stdout.write(
            f'     -d \'{{"product_id": "{free_product.id}", '
            f'"email": "test@example.com", "hardware_id": "HW-0001-TEST"}}\''
        )

        self.stdout.write(self.style.SUCCESS("\n" + "=" * 60 + "\n"))
