"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- In-memory unit of work (no database needed)
- Fast bcrypt hasher and a real JWT issuer
- A controllable clock for OTP expiry tests
- Registration and participant services wired from the above
"""

import re
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock
from uuid import UUID

import pytest

from src.adapters.repository.memory import InMemoryUnitOfWork
from src.adapters.security.passwords import BcryptPasswordHasher
from src.adapters.security.tokens import JwtTokenIssuer
from src.domain.participants import ParticipantService
from src.domain.registration import RegistrationService

FIXED_NOW = datetime(2026, 1, 15, 9, 0, tzinfo=timezone.utc)
TEST_SECRET = "test-secret-key"


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def unit_of_work() -> InMemoryUnitOfWork:
    return InMemoryUnitOfWork()


@pytest.fixture
def password_hasher() -> BcryptPasswordHasher:
    # bcrypt minimum cost
    return BcryptPasswordHasher(rounds=4)


@pytest.fixture
def token_issuer() -> JwtTokenIssuer:
    return JwtTokenIssuer(secret_key=TEST_SECRET)


@pytest.fixture
def email_sender() -> Mock:
    return Mock()


@pytest.fixture
def file_storage() -> Mock:
    return Mock()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(FIXED_NOW)


@pytest.fixture
def otp_expiry() -> list[int]:
    """Mutable expiry in minutes; tests may change it between calls."""
    return [10]


@pytest.fixture
def service(
    unit_of_work: InMemoryUnitOfWork,
    password_hasher: BcryptPasswordHasher,
    token_issuer: JwtTokenIssuer,
    email_sender: Mock,
    clock: FakeClock,
    otp_expiry: list[int],
) -> RegistrationService:
    return RegistrationService(
        unit_of_work=unit_of_work,
        password_hasher=password_hasher,
        token_issuer=token_issuer,
        email_sender=email_sender,
        otp_expiry_minutes=lambda: otp_expiry[0],
        clock=clock,
    )


@pytest.fixture
def participant_service(
    unit_of_work: InMemoryUnitOfWork, file_storage: Mock
) -> ParticipantService:
    return ParticipantService(unit_of_work=unit_of_work, file_storage=file_storage)


@pytest.fixture
def last_code(email_sender: Mock) -> Callable[[], str]:
    """Return the 6-digit code of the most recent mail sent."""

    def _last_code() -> str:
        body = email_sender.send_mail.call_args[0][2]
        match = re.search(r"\b(\d{6})\b", body)
        assert match is not None, f"no OTP in mail body: {body!r}"
        return match.group(1)

    return _last_code


@pytest.fixture
def register_user(
    service: RegistrationService, token_issuer: JwtTokenIssuer
) -> Callable[..., UUID]:
    """Register an account and return its user id."""

    def _register(email: str = "user@example.com", password: str = "secure123") -> UUID:
        token = service.register(email, password, password)
        return token_issuer.decode(token).user_id

    return _register
