"""Tests for domain errors module."""

from taskmanager.domain.errors import (
    AuthenticationError,
    ConfigurationError,
    DomainError,
    RepositoryError,
    ValidationError,
)


class TestDomainError:
    """Test suite for DomainError base class."""

    def test_domain_error_with_message_only(self):
        error = DomainError("Something went wrong")

        assert str(error) == "Something went wrong"
        assert error.message == "Something went wrong"
        assert error.code is None

    def test_domain_error_with_message_and_code(self):
        error = DomainError("Something went wrong", code="ERR_001")

        assert error.message == "Something went wrong"
        assert error.code == "ERR_001"


class TestErrorHierarchy:
    def test_all_errors_are_domain_errors(self):
        for cls in (ValidationError, RepositoryError, AuthenticationError, ConfigurationError):
            error = cls("boom", code="X")
            assert isinstance(error, DomainError)
            assert error.code == "X"

    def test_repository_error_is_not_authentication_error(self):
        assert not isinstance(RepositoryError("x"), AuthenticationError)
