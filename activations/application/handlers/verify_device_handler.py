"""
VerifyDeviceHandler.

Handler for checking whether a device holds a license. Read-only apart
from the activation log entry.
"""

from activations.application.dto.activation_dto import VerificationResultDTO
from activations.application.queries.verify_device import VerifyDeviceQuery
from activations.application.services.activation_audit import ActivationAuditor
from activations.domain.activation_log import ActivationAction, ActivationOutcome
from core.domain.exceptions import InvalidDeviceRequestError
from core.domain.value_objects import Email, HardwareId
from licenses.ports.license_repository import LicenseRepository
from products.ports.product_repository import ProductRepository


class VerifyDeviceHandler:
    """Handler for VerifyDeviceQuery."""

    def __init__(
        self,
        product_repository: ProductRepository,
        license_repository: LicenseRepository,
        auditor: ActivationAuditor,
    ):
        """Initialize handler with repositories."""
        self.product_repository = product_repository
        self.license_repository = license_repository
        self.auditor = auditor

    async def handle(self, query: VerifyDeviceQuery) -> VerificationResultDTO:
        """
        Handle verify device query.

        Args:
            query: VerifyDeviceQuery

        Returns:
            VerificationResultDTO; ``valid`` is False when the device is not
            bound, in which case no key is returned

        Raises:
            InvalidDeviceRequestError: If the email or hardware id is unusable
        """
        try:
            email = Email(query.email).value
            hardware_id = HardwareId(query.hardware_id).value
        except ValueError as e:
            error = InvalidDeviceRequestError(str(e))
            await self.auditor.record(
                ActivationAction.VERIFY,
                ActivationOutcome.ERROR,
                error.message,
                product_id=None,
                email=(query.email or "").strip().lower(),
                hardware_id=(query.hardware_id or "").strip(),
                ip=query.ip,
                user_agent=query.user_agent,
            )
            raise error

        product = await self.product_repository.find_by_id(query.product_id)
        license = None
        if product:
            license = await self.license_repository.find_bound_exact(
                product.id, email, hardware_id
            )

        if license is None:
            await self.auditor.record(
                ActivationAction.VERIFY,
                ActivationOutcome.ERROR,
                "device not activated" if product else "product not found",
                product_id=product.id if product else None,
                email=email,
                hardware_id=hardware_id,
                ip=query.ip,
                user_agent=query.user_agent,
            )
            return VerificationResultDTO(valid=False)

        await self.auditor.record(
            ActivationAction.VERIFY,
            ActivationOutcome.SUCCESS,
            "valid",
            product_id=product.id,
            email=email,
            hardware_id=hardware_id,
            license_id=license.id,
            ip=query.ip,
            user_agent=query.user_agent,
        )
        return VerificationResultDTO(
            valid=True,
            license_key=license.license_key,
            activated_at=license.activated_at,
            product_name=product.name,
        )
