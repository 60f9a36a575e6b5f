"""
Domain exceptions.

Domain exceptions represent business rule violations
and domain-specific error conditions. Every exception carries a
machine-readable code that is returned to API callers verbatim.
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


class InvalidInputError(DomainException):
    """Raised when caller input is missing or malformed."""

    def __init__(self, message: str = "Invalid input", code: str = "VALIDATION_ERROR"):
        super().__init__(message, code=code)


class InvalidLicenseCodeError(InvalidInputError):
    """Raised when a license code does not match the expected format."""

    def __init__(self, message: str = "Invalid license code format"):
        super().__init__(message, code="INVALID_CODE_FORMAT")


class MissingDeviceError(InvalidInputError):
    """Raised when a device id is required but absent."""

    def __init__(self, message: str = "Device id is required"):
        super().__init__(message, code="MISSING_DEVICE")


class InvalidEmailError(InvalidInputError):
    """Raised when an email address is not usable."""

    def __init__(self, message: str = "Invalid email address"):
        super().__init__(message, code="INVALID_EMAIL")


class LicenseException(DomainException):
    """Base exception for license-related errors."""

    pass


class LicenseNotFoundError(LicenseException):
    """Raised when a license is not found."""

    def __init__(self, message: str = "License not found"):
        super().__init__(message, code="NOT_FOUND")


class LicenseBlockedError(LicenseException):
    """Raised when a license has been revoked or refunded."""

    def __init__(self, message: str = "License is blocked"):
        super().__init__(message, code="BLOCKED")


class LicenseExpiredError(LicenseException):
    """Raised when a license has expired."""

    def __init__(self, message: str = "License has expired"):
        super().__init__(message, code="EXPIRED")


class DeviceMismatchError(LicenseException):
    """Raised when a license is bound to a different device."""

    def __init__(self, message: str = "License is already bound to another device"):
        super().__init__(message, code="DEVICE_MISMATCH")


class LicenseNotActiveError(LicenseException):
    """Raised when an operation requires an entitled license."""

    def __init__(self, message: str = "License is not active"):
        super().__init__(message, code="NOT_ACTIVE")


class DeviceChangeAlreadyUsedError(LicenseException):
    """Raised when the yearly device change has already been consumed."""

    def __init__(self, message: str = "Device change already used in the last 365 days"):
        super().__init__(message, code="DEVICE_CHANGE_ALREADY_USED")


class RecoveryAlreadyUsedError(LicenseException):
    """Raised when the one-time recovery email has already been sent."""

    def __init__(self, message: str = "License recovery has already been used"):
        super().__init__(message, code="RECOVERY_ALREADY_USED")


class LicenseCodeExhaustedError(LicenseException):
    """Raised when no free license code could be found within the attempt cap."""

    def __init__(self, message: str = "Could not allocate a unique license code"):
        super().__init__(message, code="EXHAUSTED")


class LicenseCodeCollisionError(LicenseException):
    """Raised when a candidate code was taken between probing and commit."""

    def __init__(self, message: str = "License code collision"):
        super().__init__(message, code="COLLISION")


class LicenseAlreadyIssuedError(LicenseException):
    """Raised when a license already exists for a payment reference."""

    def __init__(self, existing_code: str, message: str = "License already issued for payment"):
        super().__init__(message, code="LICENSE_ALREADY_ISSUED")
        self.existing_code = existing_code


class OrderException(DomainException):
    """Base exception for order-related errors."""

    pass


class OrderNotFoundError(OrderException):
    """Raised when a manual order is not found."""

    def __init__(self, message: str = "Order not found"):
        super().__init__(message, code="ORDER_NOT_FOUND")


class OrderNotPendingError(OrderException):
    """Raised when a manual order is no longer pending."""

    def __init__(self, message: str = "Order is not pending"):
        super().__init__(message, code="ORDER_NOT_PENDING")


class OrderNotResendableError(OrderException):
    """Raised when a purchase email resend is requested for an order without a license."""

    def __init__(self, message: str = "Order has no issued license to resend"):
        super().__init__(message, code="ORDER_NOT_RESENDABLE")


class InvalidPaymentEventError(DomainException):
    """Raised when a trusted payment event payload is unusable."""

    def __init__(self, message: str = "Invalid payment event"):
        super().__init__(message, code="INVALID_EVENT")


class InvalidWebhookSignatureError(DomainException):
    """Raised when a webhook signature does not verify."""

    def __init__(self, message: str = "Invalid webhook signature"):
        super().__init__(message, code="INVALID_SIGNATURE")


class AuthenticationError(DomainException):
    """Raised when an admin credential is missing or wrong."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, code="UNAUTHORIZED")


class ConfigurationError(DomainException):
    """Raised when required server configuration is missing."""

    def __init__(self, message: str = "Server misconfiguration", code: str = "CONFIGURATION_ERROR"):
        super().__init__(message, code=code)


class NotificationError(DomainException):
    """Raised when an email could not be delivered."""

    def __init__(self, message: str = "Notification could not be sent"):
        super().__init__(message, code="NOTIFICATION_FAILED")


class DocumentRenderError(DomainException):
    """Raised when an invoice document could not be rendered."""

    def __init__(self, message: str = "Document could not be rendered"):
        super().__init__(message, code="DOCUMENT_RENDER_FAILED")


class StorageUnavailableError(DomainException):
    """Raised when a storage transaction keeps failing after retries."""

    def __init__(self, message: str = "Storage is temporarily unavailable"):
        super().__init__(message, code="STORAGE_UNAVAILABLE")
