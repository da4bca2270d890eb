"""
Exception Definitions - Custom exceptions for Reihtuag
======================================================

This module defines all custom exceptions used throughout the application,
providing clear error handling and meaningful error messages.
"""


class ReihtuagError(Exception):
    """
    Base exception for all Reihtuag errors.

    All custom exceptions in this application inherit from this base class,
    allowing for easy catching of all application-specific errors.

    Attributes:
        message (str): Human-readable error description
        details (dict): Additional error details for debugging
    """

    def __init__(self, message: str, details: dict = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error description
            details: Optional dictionary with additional error context
        """
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        """Return formatted error message with details if present."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigError(ReihtuagError):
    """
    Configuration-related errors.

    Raised when there are issues with:
    - Unreadable or unparsable configuration files
    - Invalid configuration values
    - Environment variable issues
    """
    pass


class InvalidInput(ReihtuagError):
    """Invalid argument passed to a core operation."""
    pass


class EmptyAlternativeSet(InvalidInput):
    """
    Random selection requested over zero alternatives.

    Fragment sets and stock reply lists refuse to be built empty,
    so this only surfaces when code bypasses them.
    """
    pass


class TemplateError(ReihtuagError):
    """
    Template and catalog definition errors.

    Raised when there are issues with:
    - Placeholders naming an undeclared fragment set
    - Categories without trigger phrases
    - Malformed catalog files
    """
    pass


class ChannelError(ReihtuagError):
    """
    Message channel errors.

    Raised when there are issues with:
    - Registering a duplicate connection
    - Invalid channel settings (error policy, send timeout)

    Failed sends are not raised: the client is logged and dropped.
    """
    pass
