"""
Custom exception hierarchy for the Knowledge IDE.

All exceptions inherit from KnowledgeIDEError so callers at the API boundary
can catch a single type.
"""


class KnowledgeIDEError(Exception):
    """
    Base exception for all Knowledge IDE errors.
    All custom exceptions should inherit from this class.
    """

    def __init__(self, message: str, context: dict | None = None):
        """
        Initialize Knowledge IDE error.
        Args:
            message: Error message
            context: Optional context dictionary with additional error details
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}


class NotFoundError(KnowledgeIDEError):
    """
    Resource not found errors.
    Raised when a referenced project, block, relationship or version doesn't exist.
    """

    pass


class ValidationError(KnowledgeIDEError):
    """
    Validation errors.
    Raised when a required text field is blank or a relationship is malformed.
    """

    pass


class VersionConflictError(KnowledgeIDEError):
    """
    Raised when an update names an expected version that is no longer current.
    """

    pass


class GatewayError(KnowledgeIDEError):
    """
    Persistence gateway errors.
    Raised when the backing table store fails or rejects a call.
    """

    pass


class UnsupportedFormatError(KnowledgeIDEError):
    """Raised when an export format tag is not recognized."""

    pass


class PersonaError(KnowledgeIDEError):
    """
    Persona responder errors.
    Raised when a model-backed responder fails (API errors, timeouts, empty output).
    """

    pass


class ConfigurationError(KnowledgeIDEError):
    """
    Configuration errors.
    Raised when configuration is invalid or missing required values.
    """

    pass
