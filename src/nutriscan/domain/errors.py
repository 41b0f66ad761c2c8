"""Application error hierarchy."""


class NutriScanError(Exception):
    """Base class for errors raised by the application services."""


class ValidationError(NutriScanError):
    """Raised when input data is missing or malformed."""


class GoalValidationError(ValidationError):
    """Raised when biometric inputs for goal calculation are invalid."""


class NotFoundError(NutriScanError):
    """Raised when a requested record does not exist."""


class ConflictError(NutriScanError):
    """Raised when a record already exists and must be updated instead."""


class AuthenticationError(NutriScanError):
    """Raised when a bearer token is missing, invalid or expired."""


class ExternalServiceError(NutriScanError):
    """Raised when a third-party service cannot be reached."""
