"""
Unit tests for domain ports and exceptions.

Tests verify:
- VerifyResult and model enums carry the stored values
- Exceptions sort into the categories the API maps to HTTP codes
- Adapters satisfy the ports structurally
- Domain purity (zero framework imports)
"""

import subprocess
from enum import Enum

import pytest

from src.adapters.repository.memory import InMemoryUnitOfWork
from src.adapters.security.passwords import BcryptPasswordHasher
from src.adapters.security.tokens import JwtTokenIssuer
from src.adapters.storage.s3 import S3FileStorage
from src.domain.exceptions import (
    AccountAlreadyActive,
    AccountError,
    CompetitionNotFound,
    ConflictError,
    DependencyFailure,
    EmailAlreadyRegistered,
    InvalidCredentials,
    MailDeliveryFailed,
    NotFoundError,
    PasswordMismatch,
    PasswordReused,
    PasswordTooLong,
    StorageFailed,
    TeamNotFound,
    TokenError,
    TokenIssueFailed,
    UserNotFound,
    ValidationError,
)
from src.domain.models import AccountStatus, OtpPurpose, Role, TeamStatus
from src.domain.ports import (
    FileStorage,
    PasswordHasher,
    TokenIssuer,
    UnitOfWork,
    VerifyResult,
)


class TestVerifyResultEnum:
    def test_verify_result_is_enum(self) -> None:
        assert issubclass(VerifyResult, Enum)

    def test_values(self) -> None:
        assert {r.value for r in VerifyResult} == {
            "success",
            "invalid_code",
            "expired",
            "not_found",
        }


class TestModelEnums:
    def test_account_status_values(self) -> None:
        assert AccountStatus.INACTIVE.value == "inactive"
        assert AccountStatus.ACTIVE.value == "active"

    def test_role_ids(self) -> None:
        """Roles are stored by numeric id: 1 admin, 2 participant."""
        assert int(Role.ADMIN) == 1
        assert int(Role.PARTICIPANT) == 2

    def test_otp_purposes(self) -> None:
        assert {p.value for p in OtpPurpose} == {"activation", "password_reset"}

    def test_team_status_default_value(self) -> None:
        assert TeamStatus.UNVERIFIED.value == "unverified"


class TestExceptionHierarchy:
    """Each concrete error belongs to exactly one HTTP-mapped category."""

    @pytest.mark.parametrize(
        ("exc", "category"),
        [
            (EmailAlreadyRegistered("a@x.com"), ConflictError),
            (PasswordMismatch("password and confirm password do not match"), ValidationError),
            (PasswordReused(), ValidationError),
            (PasswordTooLong(), ValidationError),
            (AccountAlreadyActive(), ValidationError),
            (UserNotFound(), NotFoundError),
            (TeamNotFound(), NotFoundError),
            (CompetitionNotFound(7), NotFoundError),
            (TokenIssueFailed(), DependencyFailure),
            (MailDeliveryFailed("smtp down"), DependencyFailure),
            (StorageFailed("s3 down"), DependencyFailure),
        ],
    )
    def test_category(self, exc: AccountError, category: type) -> None:
        assert isinstance(exc, category)
        assert isinstance(exc, AccountError)

    def test_invalid_credentials_is_its_own_category(self) -> None:
        exc = InvalidCredentials()
        assert isinstance(exc, AccountError)
        assert not isinstance(exc, (ConflictError, ValidationError, NotFoundError))

    def test_token_error_is_not_an_account_error(self) -> None:
        """Adapters raise TokenError; the service wraps it before it reaches the API."""
        assert not issubclass(TokenError, AccountError)

    def test_messages(self) -> None:
        assert str(EmailAlreadyRegistered("a@x.com")) == "email already registered"
        assert str(InvalidCredentials()) == "email or password is wrong"
        assert str(PasswordReused()) == "new password cannot be same as old password"
        assert str(UserNotFound()) == "user not found"
        assert str(TokenIssueFailed()) == "failed to create token"

    def test_context_attributes(self) -> None:
        assert EmailAlreadyRegistered("a@x.com").email == "a@x.com"
        assert CompetitionNotFound(7).competition_id == 7


class TestStructuralSubtyping:
    """Adapters satisfy ports without inheriting from them."""

    @pytest.mark.parametrize(
        "adapter_class",
        [InMemoryUnitOfWork, BcryptPasswordHasher, JwtTokenIssuer, S3FileStorage],
    )
    def test_no_explicit_inheritance(self, adapter_class: type) -> None:
        assert adapter_class.__bases__ == (object,)

    def test_adapters_accepted_where_ports_expected(self) -> None:
        def wire(
            uow: UnitOfWork, hasher: PasswordHasher, issuer: TokenIssuer, storage: FileStorage
        ) -> tuple:
            return uow, hasher, issuer, storage

        wired = wire(
            InMemoryUnitOfWork(),
            BcryptPasswordHasher(rounds=4),
            JwtTokenIssuer(secret_key="k"),
            S3FileStorage(client=None, bucket="b", region="r"),
        )
        assert len(wired) == 4


class TestDomainPurity:
    """The domain package imports no framework or driver."""

    @pytest.mark.parametrize(
        "pattern",
        ["from fastapi", "import fastapi", "from pydantic", "from psycopg", "import boto3"],
    )
    def test_no_framework_imports_in_domain(self, pattern: str) -> None:
        result = subprocess.run(
            ["grep", "-r", pattern, "src/domain/"],
            capture_output=True,
            text=True,
        )
        assert result.returncode != 0, f"{pattern!r} found: {result.stdout}"
