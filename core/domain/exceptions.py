"""
Domain exceptions.

Domain exceptions represent business rule violations
and domain-specific error conditions.
"""


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    def __init__(self, message: str, code: str = None):
        """
        Initialize domain exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code
        """
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class NotFoundError(DomainException):
    """Base exception for referenced resources that do not exist."""

    pass


class ProductNotFoundError(NotFoundError):
    """Raised when a product is not found."""

    def __init__(self, message: str = "Product not found"):
        super().__init__(message, code="PRODUCT_NOT_FOUND")


class PurchaseNotFoundError(NotFoundError):
    """Raised when a purchase is not found."""

    def __init__(self, message: str = "Purchase not found"):
        super().__init__(message, code="PURCHASE_NOT_FOUND")


class LicenseNotFoundError(NotFoundError):
    """Raised when a license is not found."""

    def __init__(self, message: str = "License not found"):
        super().__init__(message, code="LICENSE_NOT_FOUND")


class AccountNotFoundError(NotFoundError):
    """Raised when an account is not found."""

    def __init__(self, message: str = "Account not found"):
        super().__init__(message, code="ACCOUNT_NOT_FOUND")


class ForbiddenError(DomainException):
    """Base exception for callers without standing for an operation."""

    pass


class NoEntitlementError(ForbiddenError):
    """Raised when the buyer has no approved purchase for the product."""

    def __init__(self, message: str = "No approved purchase found for this product and email"):
        super().__init__(message, code="NO_LICENSE")


class DeviceQuotaExceededError(ForbiddenError):
    """Raised when the device ceiling for a product and email is reached."""

    def __init__(self, message: str = "Maximum number of activated devices reached"):
        super().__init__(message, code="DEVICE_QUOTA_EXCEEDED")


class UnauthenticatedError(DomainException):
    """Base exception for requests that could not be authenticated."""

    pass


class WebhookSignatureError(UnauthenticatedError):
    """Raised when a webhook signature is missing or does not match."""

    def __init__(self, message: str = "Invalid webhook signature"):
        super().__init__(message, code="INVALID_WEBHOOK_SIGNATURE")


class ConflictError(DomainException):
    """Base exception for writes rejected by a uniqueness guarantee."""

    pass


class ProvisioningConflictError(ConflictError):
    """Raised when licenses for a purchase were already materialized."""

    def __init__(self, message: str = "Licenses already provisioned for this purchase"):
        super().__init__(message, code="PROVISIONING_CONFLICT")


class DeviceConflictError(ConflictError):
    """Raised when a device is already bound for the product and email."""

    def __init__(self, message: str = "Device already bound for this product and email"):
        super().__init__(message, code="DEVICE_CONFLICT")


class UpstreamUnavailableError(DomainException):
    """Raised when the payment processor cannot be reached."""

    def __init__(self, message: str = "Payment processor unavailable"):
        super().__init__(message, code="UPSTREAM_UNAVAILABLE")


class PaymentProcessorError(DomainException):
    """Raised when the payment processor rejects a request."""

    def __init__(self, message: str = "Payment processor rejected the request"):
        super().__init__(message, code="PAYMENT_PROCESSOR_ERROR")


class ProductNotAvailableError(DomainException):
    """Raised when a product exists but cannot be purchased."""

    def __init__(self, message: str = "Product is not available for purchase"):
        super().__init__(message, code="PRODUCT_NOT_AVAILABLE")


class InvalidPurchaseError(DomainException):
    """Raised when purchase attributes violate ledger invariants."""

    def __init__(self, message: str = "Invalid purchase"):
        super().__init__(message, code="INVALID_PURCHASE")


class ArtifactNotFoundError(NotFoundError):
    """Raised when a product has no downloadable artifact."""

    def __init__(self, message: str = "Product has no downloadable artifact"):
        super().__init__(message, code="ARTIFACT_NOT_FOUND")


class InvalidAccountMergeError(DomainException):
    """Raised when a guest cannot be merged into the given account."""

    def __init__(self, message: str = "Guest and account must be different users"):
        super().__init__(message, code="INVALID_ACCOUNT_MERGE")


class InvalidDeviceRequestError(DomainException):
    """Raised when an activation or verification names no usable email or device."""

    def __init__(self, message: str = "Invalid email or hardware identifier"):
        super().__init__(message, code="INVALID_DEVICE_REQUEST")
