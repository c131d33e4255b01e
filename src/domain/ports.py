"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure. Adapters implement these protocols through
structural subtyping.
"""

from contextlib import AbstractContextManager
from enum import Enum
from typing import Protocol
from uuid import UUID

from .models import Competition, OtpCode, OtpPurpose, Team, TeamMember, TokenClaims, User


class VerifyResult(Enum):
    """
    Result of an OTP verification attempt.

    Used by verify_user() and verify_password_reset(). Only SUCCESS
    consumes the OTP; every other outcome leaves it in place.
    """

    SUCCESS = "success"
    INVALID_CODE = "invalid_code"
    EXPIRED = "expired"
    NOT_FOUND = "not_found"


class UserStore(Protocol):
    """Port interface for user persistence."""

    def get(self, user_id: UUID | None = None, email: str | None = None) -> User | None:
        """
        Find a user by id or by normalized email.

        Returns:
            The user, or None when no row matches
        """
        ...

    def create(self, user: User) -> UUID:
        """
        Insert a new user.

        Raises:
            EmailAlreadyRegistered: If the email is taken
        """
        ...

    def update(self, user: User) -> None:
        """
        Overwrite every mutable column of an existing user.

        Raises:
            UserNotFound: If no row has this user_id
        """
        ...

    def list_all(self) -> list[User]:
        ...


class TeamStore(Protocol):
    """Port interface for team persistence."""

    def create(self, team: Team) -> None:
        ...

    def get_by_user(self, user_id: UUID) -> Team | None:
        ...

    def update(self, team: Team) -> None:
        ...

    def list_members(self, team_id: UUID) -> list[TeamMember]:
        ...


class OtpStore(Protocol):
    """Port interface for one-time code persistence."""

    def create(self, otp: OtpCode) -> None:
        ...

    def find(
        self,
        user_id: UUID,
        purpose: OtpPurpose,
        code: str | None = None,
        for_update: bool = False,
    ) -> OtpCode | None:
        """
        Find the most recent OTP of a purpose for a user.

        Args:
            user_id: Owning user
            purpose: Flow the code belongs to
            code: When given, only a row with this exact code matches
            for_update: Lock the row until the transaction ends

        Returns:
            The newest matching OTP, or None
        """
        ...

    def delete(self, otp: OtpCode) -> bool:
        """
        Delete one OTP row.

        Returns:
            True if the row was deleted, False if it was already gone
        """
        ...

    def delete_for_user(self, user_id: UUID, purpose: OtpPurpose) -> int:
        """Delete every OTP of a purpose for a user; returns rows removed."""
        ...


class CompetitionStore(Protocol):
    """Port interface for competition lookup."""

    def get(self, competition_id: int) -> Competition | None:
        ...


class Transaction(Protocol):
    """Store handles bound to one open transaction."""

    users: UserStore
    teams: TeamStore
    otps: OtpStore
    competitions: CompetitionStore


class UnitOfWork(Protocol):
    """Port interface for transactional scope."""

    def begin(self) -> AbstractContextManager[Transaction]:
        """
        Open a transaction.

        Leaving the context normally commits every write made through the
        yielded stores; leaving it with an exception rolls them all back.
        """
        ...


class PasswordHasher(Protocol):
    """Port interface for password hashing."""

    def hash(self, password: str) -> str:
        ...

    def verify(self, password_hash: str, password: str) -> bool:
        """Return True when password matches password_hash."""
        ...


class TokenIssuer(Protocol):
    """Port interface for access token handling."""

    def issue(self, user_id: UUID, is_admin: bool) -> str:
        """
        Create a signed access token.

        Raises:
            TokenError: If the token cannot be created
        """
        ...

    def decode(self, token: str) -> TokenClaims:
        """
        Validate a token and return its claims.

        Raises:
            TokenError: If the token is malformed, forged or expired
        """
        ...


class EmailSender(Protocol):
    """Port interface for email delivery."""

    def send_mail(self, to: str, subject: str, body: str) -> None:
        """
        Deliver a message synchronously.

        Raises:
            MailDeliveryFailed: If delivery fails
        """
        ...


class FileStorage(Protocol):
    """Port interface for uploaded file storage."""

    def upload(self, key: str, content: bytes, content_type: str) -> str:
        """
        Store a file and return its public URL.

        Raises:
            StorageFailed: If the upload fails
        """
        ...
