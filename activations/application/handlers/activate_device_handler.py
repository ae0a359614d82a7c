"""
ActivateDeviceHandler.

Handler for binding a device to a license seat.
"""

from activations.application.commands.activate_device import ActivateDeviceCommand
from activations.application.dto.activation_dto import ActivationResultDTO
from activations.application.services.activation_audit import ActivationAuditor
from activations.domain.activation_log import ActivationAction, ActivationOutcome
from activations.domain.events import DeviceActivated
from activations.domain.services import SlotAllocator
from core.domain.exceptions import (
    DomainException,
    InvalidDeviceRequestError,
    ProductNotFoundError,
)
from core.domain.value_objects import Email, HardwareId
from core.infrastructure.events import event_bus
from licenses.ports.license_repository import LicenseRepository
from products.ports.product_repository import ProductRepository
from purchases.ports.purchase_repository import PurchaseRepository

MESSAGE_ACTIVATED = "activated"
MESSAGE_ALREADY_ACTIVATED = "already activated"


class ActivateDeviceHandler:
    """Handler for ActivateDeviceCommand."""

    def __init__(
        self,
        product_repository: ProductRepository,
        purchase_repository: PurchaseRepository,
        license_repository: LicenseRepository,
        auditor: ActivationAuditor,
    ):
        """Initialize handler with repositories."""
        self.product_repository = product_repository
        self.purchase_repository = purchase_repository
        self.license_repository = license_repository
        self.auditor = auditor

    async def handle(self, command: ActivateDeviceCommand) -> ActivationResultDTO:
        """
        Handle activate device command.

        Every outcome, including failures, is written to the activation
        log before this method returns or raises.

        Args:
            command: ActivateDeviceCommand

        Returns:
            ActivationResultDTO with the license key

        Raises:
            ProductNotFoundError: If product not found
            NoEntitlementError: If the email has no approved purchase
            DeviceQuotaExceededError: If every allowed device is bound
            InvalidDeviceRequestError: If the email or hardware id is unusable
        """
        email = (command.email or "").strip().lower()
        hardware_id = (command.hardware_id or "").strip()

        async def audit(status, message, product_id=None, license_id=None):
            await self.auditor.record(
                ActivationAction.ACTIVATE,
                status,
                message,
                product_id=product_id,
                email=email,
                hardware_id=hardware_id,
                license_id=license_id,
                ip=command.ip,
                user_agent=command.user_agent,
            )

        try:
            email = Email(command.email).value
            hardware_id = HardwareId(command.hardware_id).value
        except ValueError as e:
            error = InvalidDeviceRequestError(str(e))
            await audit(ActivationOutcome.ERROR, error.message)
            raise error

        product = await self.product_repository.find_by_id(command.product_id)
        if not product:
            error = ProductNotFoundError(f"Product {command.product_id} not found")
            await audit(ActivationOutcome.ERROR, error.message)
            raise error

        try:
            license, replay = await SlotAllocator.allocate(
                product_id=product.id,
                email=email,
                hardware_id=hardware_id,
                license_repository=self.license_repository,
                purchase_repository=self.purchase_repository,
                owner_id=command.owner_id,
            )
        except DomainException as e:
            await audit(ActivationOutcome.ERROR, e.message, product_id=product.id)
            raise

        message = MESSAGE_ALREADY_ACTIVATED if replay else MESSAGE_ACTIVATED
        await audit(ActivationOutcome.SUCCESS, message, product_id=product.id, license_id=license.id)

        if not replay:
            await event_bus.publish(
                DeviceActivated(
                    license_id=license.id,
                    product_id=product.id,
                    email=email,
                    hardware_id=hardware_id,
                )
            )

        return ActivationResultDTO(
            license_id=license.id,
            license_key=license.license_key,
            product_name=product.name,
            activated_at=license.activated_at,
            message=message,
        )
