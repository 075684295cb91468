"""
Defines custom exceptions for the application to allow for more specific error handling.
"""


class HarvesterError(Exception):
    """Base exception for all application-specific errors."""


class NamingError(HarvesterError):
    """
    Raised when no safe output filename can be derived from a URL, either because
    the URL has no path segment or because the segment is unsafe.
    """


class TransferError(HarvesterError):
    """Raised when a URL cannot be fetched (network or protocol failure)."""


class ValidationRejection(HarvesterError):
    """Raised when a file does not start with a valid KBART header."""


class WriteError(HarvesterError):
    """Raised when a downloaded file cannot be written to the output directory."""


class ConfigurationError(HarvesterError):
    """Raised for issues related to configuration loading or validation."""
