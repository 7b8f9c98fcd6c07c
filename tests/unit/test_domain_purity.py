"""
Unit tests for domain layer isolation and the exception hierarchy.

The domain package must stay free of web, validation and HTTP client
frameworks; only the adapters and the API layer may import them.
"""

import subprocess

import pytest

from authflow.domain.exceptions import (
    AuthError,
    AuthFlowError,
    BehaviorNotFound,
    ErrorKind,
    InvalidTransition,
    ValidationFailed,
)


class TestExceptionHierarchy:
    """Tests for domain exceptions."""

    @pytest.mark.parametrize(
        "error",
        [
            AuthError(ErrorKind.UNKNOWN_ACCOUNT),
            BehaviorNotFound("afterFoo"),
            ValidationFailed("unblock_code", "Invalid authorization code"),
            InvalidTransition("Resolved -> Authenticating"),
        ],
    )
    def test_all_inherit_from_base(self, error) -> None:
        assert isinstance(error, AuthFlowError)

    def test_auth_error_default_message(self) -> None:
        error = AuthError(ErrorKind.DELETED_ACCOUNT)
        assert str(error) == "Account no longer exists"
        assert error.is_kind(ErrorKind.DELETED_ACCOUNT)

    def test_auth_error_keeps_details(self) -> None:
        error = AuthError(ErrorKind.INVALID_PARAMETER, "Bad email", param="email")
        assert error.message == "Bad email"
        assert error.param == "email"
        assert error.context == {}

    def test_error_kinds_are_strings(self) -> None:
        assert ErrorKind.REQUEST_BLOCKED == "REQUEST_BLOCKED"


class TestDomainPurity:
    """Domain layer has no framework imports."""

    @pytest.mark.parametrize(
        "pattern",
        ["from fastapi", "import fastapi", "from pydantic", "import pydantic", "import httpx"],
    )
    def test_no_framework_imports_in_domain(self, pattern: str) -> None:
        result = subprocess.run(
            ["grep", "-r", pattern, "authflow/domain/"],
            capture_output=True,
            text=True,
        )
        assert result.returncode != 0, f"Framework import found: {result.stdout}"
