"""
Domain exceptions - Semantic error types for accounts and participants.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.
Raising any of them inside a unit of work rolls the transaction back.
"""


class AccountError(Exception):
    """Base class for account domain errors."""

    pass


class ConflictError(AccountError):
    """A unique resource already exists."""

    pass


class ValidationError(AccountError):
    """Input violates a business rule."""

    pass


class NotFoundError(AccountError):
    """Requested resource does not exist."""

    pass


class DependencyFailure(AccountError):
    """An external collaborator (tokens, mail, storage) failed."""

    pass


class EmailAlreadyRegistered(ConflictError):
    """Email belongs to an existing account."""

    def __init__(self, email: str) -> None:
        super().__init__("email already registered")
        self.email = email


class PasswordMismatch(ValidationError):
    """Password and its confirmation differ."""

    pass


class PasswordReused(ValidationError):
    """New password equals the current one."""

    def __init__(self) -> None:
        super().__init__("new password cannot be same as old password")


class PasswordTooLong(ValidationError):
    def __init__(self) -> None:
        super().__init__("password cannot be longer than 72 bytes")


class AccountAlreadyActive(ValidationError):
    """Account is already verified."""

    def __init__(self) -> None:
        super().__init__("account already active")


class UserNotFound(NotFoundError):
    def __init__(self) -> None:
        super().__init__("user not found")


class TeamNotFound(NotFoundError):
    def __init__(self) -> None:
        super().__init__("team not found")


class CompetitionNotFound(NotFoundError):
    def __init__(self, competition_id: int) -> None:
        super().__init__("competition not found")
        self.competition_id = competition_id


class InvalidCredentials(AccountError):
    """Login failed. Deliberately does not say which field was wrong."""

    def __init__(self) -> None:
        super().__init__("email or password is wrong")


class TokenIssueFailed(DependencyFailure):
    def __init__(self) -> None:
        super().__init__("failed to create token")


class TokenError(Exception):
    """Raised by token adapters when a token cannot be created or decoded."""

    pass


class MailDeliveryFailed(DependencyFailure):
    """Outbound email could not be delivered."""

    pass


class StorageFailed(DependencyFailure):
    """File upload to storage failed."""

    pass
