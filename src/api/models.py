"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator

from src.domain.models import MAX_PASSWORD_BYTES


def _check_password_length(value: str) -> str:
    if len(value.encode()) > MAX_PASSWORD_BYTES:
        raise ValueError(f"password cannot be longer than {MAX_PASSWORD_BYTES} bytes")
    return value


class RegisterRequest(BaseModel):
    """Request model for user registration."""

    email: EmailStr
    password: str = Field(..., min_length=6, description="User password (min 6 characters)")
    confirm_password: str = Field(..., description="Must equal password")

    @field_validator("password")
    @classmethod
    def password_length(cls, value: str) -> str:
        return _check_password_length(value)


class RegisterResponse(BaseModel):
    """Response model for successful registration."""

    message: str
    token: str
    expires_in_minutes: int


class LoginRequest(BaseModel):
    email: EmailStr
    password: str

    @field_validator("password")
    @classmethod
    def password_length(cls, value: str) -> str:
        return _check_password_length(value)


class TokenResponse(BaseModel):
    """Access token for the authenticated user."""

    token: str


class VerifyOtpRequest(BaseModel):
    """Request model for account activation and reset-code checks."""

    code: str = Field(
        ...,
        min_length=6,
        max_length=6,
        pattern=r"^\d{6}$",
        description="6-digit OTP code",
    )


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    new_password: str = Field(..., min_length=6)
    confirm_password: str

    @field_validator("new_password")
    @classmethod
    def password_length(cls, value: str) -> str:
        return _check_password_length(value)


class MessageResponse(BaseModel):
    message: str


class ProfileRequest(BaseModel):
    """Profile fields; also the body of competition registration."""

    full_name: str = Field(..., min_length=1, max_length=100)
    student_number: str = Field(..., min_length=1, max_length=30)
    university: str = Field(..., min_length=1, max_length=100)
    major: str = Field(..., min_length=1, max_length=100)


class ProfileResponse(BaseModel):
    full_name: str
    student_number: str
    university: str
    major: str
    email: str | None = None


class MemberResponse(BaseModel):
    full_name: str
    student_number: str


class TeamProfileResponse(BaseModel):
    leader_name: str
    student_number: str
    competition_category: str
    members: list[MemberResponse]


class PaymentResponse(BaseModel):
    message: str
    payment_url: str


class PaymentStatusResponse(BaseModel):
    """One participant row of the admin payment report."""

    full_name: str
    student_number: str
    email: str
    payment_proof_url: str | None
    team_name: str
    team_status: str
    competition_name: str


class ParticipantTotalsResponse(BaseModel):
    totals: dict[str, int]


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
