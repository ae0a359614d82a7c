"""
ReleaseDeviceHandler.

Handler for freeing a license's slot. The seat goes back to the pool and
the next activation of any device for the same product and email can
take it without creating a new row.
"""

from activations.application.services.activation_audit import ActivationAuditor
from activations.domain.activation_log import ActivationAction, ActivationOutcome
from core.domain.exceptions import LicenseNotFoundError
from core.infrastructure.events import event_bus
from licenses.application.commands.release_device import ReleaseDeviceCommand
from licenses.application.dto.license_dto import ReleaseResultDTO
from licenses.domain.events import LicenseReleased
from licenses.ports.license_repository import LicenseRepository


class ReleaseDeviceHandler:
    """Handler for ReleaseDeviceCommand."""

    def __init__(self, license_repository: LicenseRepository, auditor: ActivationAuditor):
        """Initialize handler with repositories."""
        self.license_repository = license_repository
        self.auditor = auditor

    async def handle(self, command: ReleaseDeviceCommand) -> ReleaseResultDTO:
        """
        Handle release device command.

        Args:
            command: ReleaseDeviceCommand

        Returns:
            ReleaseResultDTO

        Raises:
            LicenseNotFoundError: If license not found
        """
        license = await self.license_repository.find_by_id(command.license_id)
        if not license:
            raise LicenseNotFoundError(f"License {command.license_id} not found")

        if not license.is_bound:
            return ReleaseResultDTO(
                license_id=license.id,
                released_hardware_id=None,
                message="not bound",
            )

        released = await self.license_repository.unbind(license.id)

        message = f"released by {command.actor}" if command.actor else "released"
        await self.auditor.record(
            ActivationAction.RELEASE,
            ActivationOutcome.SUCCESS,
            message,
            product_id=license.product_id,
            email=license.email,
            hardware_id=license.hardware_id,
            license_id=license.id,
            ip=command.ip,
            user_agent=command.user_agent,
        )
        await event_bus.publish(
            LicenseReleased(
                license_id=released.id,
                product_id=released.product_id,
                email=released.email,
                hardware_id=license.hardware_id,
            )
        )
        return ReleaseResultDTO(
            license_id=released.id,
            released_hardware_id=license.hardware_id,
            message=message,
        )
