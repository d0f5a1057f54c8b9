"""
daogov Exceptions

Custom exception classes for the governance client core.
"""


class DaoGovException(Exception):
    """Base exception for daogov."""
    pass


class ValidationError(DaoGovException, ValueError):
    """Caller-supplied input failed local validation before encoding."""
    pass


class InvalidAddressError(DaoGovException, ValueError):
    """Invalid public key or address format."""
    pass


class InvalidSeedsError(DaoGovException):
    """Seeds cannot produce a program-derived address."""
    pass


class EncodingError(DaoGovException):
    """A value does not fit the fixed-width field it is written to."""
    pass


class ConfigurationError(DaoGovException):
    """Configuration error."""
    pass
