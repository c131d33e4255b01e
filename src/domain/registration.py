"""
Registration domain service - OTP-gated account lifecycle.

This module contains the core business logic for account registration,
email verification and password reset.

Account Lifecycle (forward-only)
================================

    unregistered --register--> INACTIVE --verify_user--> ACTIVE

Password reset runs entirely inside ACTIVE (or INACTIVE) and never
changes the account status:

    request_password_reset  -> reset OTP issued and mailed
    verify_password_reset   -> reset OTP consumed
    reset_password          -> hash replaced

The two reset calls after issuance are chained by the caller through the
reset-scoped token; no "verified" flag is persisted between them.

Every operation runs inside one unit of work. Any exception raised in the
block, including a mail delivery failure, rolls back every row written so
far, so "an OTP exists" and "the user was told the OTP" stay consistent.
"""

import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from uuid import UUID, uuid4

from .exceptions import (
    AccountAlreadyActive,
    EmailAlreadyRegistered,
    InvalidCredentials,
    PasswordMismatch,
    PasswordReused,
    TokenError,
    TokenIssueFailed,
    UserNotFound,
)
from .models import (
    MAX_PASSWORD_BYTES,
    AccountStatus,
    OtpCode,
    OtpPurpose,
    Role,
    Team,
    User,
)
from .ports import (
    EmailSender,
    PasswordHasher,
    TokenIssuer,
    Transaction,
    UnitOfWork,
    VerifyResult,
)

logger = logging.getLogger(__name__)

ACTIVATION_SUBJECT = "OTP Verification"
RESET_SUBJECT = "Reset Password Token"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class RegistrationService:
    """
    Domain service for the registration and verification workflow.

    Orchestrates email normalization, password hashing, OTP issuance,
    OTP validation with expiry, account activation and password reset.
    """

    unit_of_work: UnitOfWork
    password_hasher: PasswordHasher
    token_issuer: TokenIssuer
    email_sender: EmailSender
    otp_expiry_minutes: Callable[[], int]
    clock: Callable[[], datetime] = field(default=utcnow)

    def register(self, email: str, password: str, confirm_password: str) -> str:
        """
        Create an inactive account, its placeholder team and an activation OTP.

        Args:
            email: User's email address (will be normalized)
            password: User's password (will be hashed)
            confirm_password: Must equal password

        Returns:
            Access token for the new, still unverified, user

        Raises:
            EmailAlreadyRegistered: If the email is taken
            PasswordMismatch: If the passwords differ
            TokenIssueFailed: If the token cannot be created
            MailDeliveryFailed: If the OTP email cannot be sent
        """
        normalized_email = self._normalize_email(email)

        with self.unit_of_work.begin() as tx:
            if tx.users.get(email=normalized_email) is not None:
                raise EmailAlreadyRegistered(normalized_email)

            if password != confirm_password:
                raise PasswordMismatch("password doesn't match")

            user = User(
                user_id=uuid4(),
                email=normalized_email,
                password_hash=self.password_hasher.hash(password),
                status=AccountStatus.INACTIVE,
                role=Role.PARTICIPANT,
            )
            tx.users.create(user)

            token = self._issue_token(user)

            tx.teams.create(Team(team_id=uuid4(), user_id=user.user_id))

            code = self._issue_otp(tx, user.user_id, OtpPurpose.ACTIVATION)
            self.email_sender.send_mail(
                user.email, ACTIVATION_SUBJECT, f"Your OTP verification code is {code}."
            )

        logger.info("Registered user %s", user.user_id)
        return token

    def login(self, email: str, password: str) -> str:
        """
        Authenticate by email and password.

        Unknown email and wrong password raise the same error, and an
        unknown email still pays for one bcrypt round. A password longer
        than bcrypt accepts is rejected before the lookup, so it fails the
        same way whether or not the email exists.

        Raises:
            InvalidCredentials: On any authentication failure
            TokenIssueFailed: If the token cannot be created
        """
        normalized_email = self._normalize_email(email)

        if len(password.encode()) > MAX_PASSWORD_BYTES:
            raise InvalidCredentials()

        with self.unit_of_work.begin() as tx:
            user = tx.users.get(email=normalized_email)

        if user is None:
            self.password_hasher.hash(password)
            raise InvalidCredentials()

        if not self.password_hasher.verify(user.password_hash, password):
            raise InvalidCredentials()

        return self._issue_token(user)

    def verify_user(self, user_id: UUID, code: str) -> VerifyResult:
        """
        Activate an account with its activation OTP.

        The OTP row is locked for the duration of the check. It is deleted
        only on SUCCESS, together with the status change.

        Args:
            user_id: Account to activate
            code: 6-digit code presented by the user

        Returns:
            VerifyResult indicating success or specific failure reason

        Raises:
            UserNotFound: If the user does not exist
            AccountAlreadyActive: If the account is already verified
        """
        with self.unit_of_work.begin() as tx:
            otp = tx.otps.find(user_id, OtpPurpose.ACTIVATION, for_update=True)
            result = self._check_otp(otp, code)
            if result is not VerifyResult.SUCCESS:
                return result

            user = tx.users.get(user_id=user_id)
            if user is None:
                raise UserNotFound()
            if user.status == AccountStatus.ACTIVE:
                raise AccountAlreadyActive()

            # A concurrent verification already consumed the row
            if not tx.otps.delete(otp):
                return VerifyResult.NOT_FOUND

            user.status = AccountStatus.ACTIVE
            tx.users.update(user)

        logger.info("Activated user %s", user_id)
        return VerifyResult.SUCCESS

    def resend_verification(self, user_id: UUID) -> None:
        """
        Replace the activation OTP of an inactive account and mail it again.

        Raises:
            UserNotFound: If the user does not exist
            AccountAlreadyActive: If the account is already verified
            MailDeliveryFailed: If the OTP email cannot be sent
        """
        with self.unit_of_work.begin() as tx:
            user = tx.users.get(user_id=user_id)
            if user is None:
                raise UserNotFound()
            if user.status == AccountStatus.ACTIVE:
                raise AccountAlreadyActive()

            code = self._issue_otp(tx, user.user_id, OtpPurpose.ACTIVATION)
            self.email_sender.send_mail(
                user.email, ACTIVATION_SUBJECT, f"Your OTP verification code is {code}."
            )

    def request_password_reset(self, email: str) -> str:
        """
        Issue and mail a password-reset OTP.

        Returns:
            Token scoped to the user for the verify and apply steps. If the
            token cannot be created the OTP is still committed and an empty
            string is returned.

        Raises:
            UserNotFound: If no account has this email
            MailDeliveryFailed: If the OTP email cannot be sent
        """
        normalized_email = self._normalize_email(email)

        with self.unit_of_work.begin() as tx:
            user = tx.users.get(email=normalized_email)
            if user is None:
                raise UserNotFound()

            code = self._issue_otp(tx, user.user_id, OtpPurpose.PASSWORD_RESET)
            self.email_sender.send_mail(
                user.email, RESET_SUBJECT, f"Your Reset Password Code is {code}."
            )

            try:
                token = self.token_issuer.issue(user.user_id, False)
            except TokenError:
                logger.warning("Reset token creation failed for user %s", user.user_id)
                token = ""

        return token

    def verify_password_reset(self, user_id: UUID, code: str) -> VerifyResult:
        """
        Consume a password-reset OTP. The user row is not touched.

        Returns:
            VerifyResult indicating success or specific failure reason
        """
        with self.unit_of_work.begin() as tx:
            otp = tx.otps.find(user_id, OtpPurpose.PASSWORD_RESET, for_update=True)
            result = self._check_otp(otp, code)
            if result is not VerifyResult.SUCCESS:
                return result

            if not tx.otps.delete(otp):
                return VerifyResult.NOT_FOUND

        return VerifyResult.SUCCESS

    def reset_password(self, user_id: UUID, new_password: str, confirm_password: str) -> None:
        """
        Replace the password of an account.

        Raises:
            UserNotFound: If the user does not exist
            PasswordMismatch: If the passwords differ
            PasswordReused: If new_password equals the current password
        """
        with self.unit_of_work.begin() as tx:
            user = tx.users.get(user_id=user_id)
            if user is None:
                raise UserNotFound()

            if new_password != confirm_password:
                raise PasswordMismatch("password mismatch")

            # Must run against the stored hash before it is overwritten
            if self.password_hasher.verify(user.password_hash, new_password):
                raise PasswordReused()

            user.password_hash = self.password_hasher.hash(new_password)
            tx.users.update(user)

        logger.info("Password changed for user %s", user_id)

    def _check_otp(self, otp: OtpCode | None, code: str) -> VerifyResult:
        """Expiry is checked before the code, so a stale OTP reports EXPIRED."""
        if otp is None:
            return VerifyResult.NOT_FOUND

        threshold = self.clock() - timedelta(minutes=self.otp_expiry_minutes())
        if otp.updated_at < threshold:
            return VerifyResult.EXPIRED

        if not secrets.compare_digest(otp.code.encode(), code.encode()):
            return VerifyResult.INVALID_CODE

        return VerifyResult.SUCCESS

    def _issue_otp(self, tx: Transaction, user_id: UUID, purpose: OtpPurpose) -> str:
        """Persist a fresh OTP, replacing any earlier one of the same purpose."""
        tx.otps.delete_for_user(user_id, purpose)
        now = self.clock()
        otp = OtpCode(
            otp_id=uuid4(),
            user_id=user_id,
            code=self._generate_otp_code(),
            purpose=purpose,
            created_at=now,
            updated_at=now,
        )
        tx.otps.create(otp)
        return otp.code

    def _issue_token(self, user: User) -> str:
        try:
            return self.token_issuer.issue(user.user_id, user.is_admin)
        except TokenError as e:
            raise TokenIssueFailed() from e

    def _normalize_email(self, email: str) -> str:
        """
        Normalize email address for consistent storage and lookup.

        Applies: strip whitespace + lowercase
        """
        return email.strip().lower()

    def _generate_otp_code(self) -> str:
        """
        Generate a cryptographically secure 6-digit code (100000-999999).

        Uses secrets module for cryptographic randomness.
        """
        return str(secrets.randbelow(900000) + 100000)
