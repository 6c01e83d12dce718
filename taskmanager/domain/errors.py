"""Domain-level errors and exceptions."""

from typing import Optional


class DomainError(Exception):
    """Base domain error."""
    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code


class ValidationError(DomainError):
    """Validation error."""
    pass


class RepositoryError(DomainError):
    """Any failure of a remote data operation (network, authorization, validation)."""
    pass


class AuthenticationError(DomainError):
    """Authentication error."""
    pass


class ConfigurationError(DomainError):
    """Configuration error."""
    pass
