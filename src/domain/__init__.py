"""
Domain layer - Pure business logic with zero framework imports.

This package contains the core business logic for competition
registration: the OTP-gated account workflow and participant data.
It defines its own port interfaces for infrastructure abstraction,
ensuring true hexagonal architecture decoupling.
"""

from .exceptions import (
    AccountError,
    ConflictError,
    DependencyFailure,
    EmailAlreadyRegistered,
    InvalidCredentials,
    NotFoundError,
    ValidationError,
)
from .models import AccountStatus, OtpPurpose, Role
from .participants import ParticipantService
from .ports import EmailSender, FileStorage, PasswordHasher, TokenIssuer, UnitOfWork, VerifyResult
from .registration import RegistrationService

__all__ = [
    "AccountError",
    "AccountStatus",
    "ConflictError",
    "DependencyFailure",
    "EmailAlreadyRegistered",
    "EmailSender",
    "FileStorage",
    "InvalidCredentials",
    "NotFoundError",
    "OtpPurpose",
    "ParticipantService",
    "PasswordHasher",
    "RegistrationService",
    "Role",
    "TokenIssuer",
    "UnitOfWork",
    "ValidationError",
    "VerifyResult",
]
