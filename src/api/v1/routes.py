"""
API v1 routes.

Defines REST endpoints for the competition registration API. Domain
exceptions are translated to HTTP errors here; services never see HTTP.
Handlers are plain functions so FastAPI runs the blocking service calls
in its threadpool.
"""

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from src.api.dependencies import (
    get_current_admin,
    get_current_claims,
    get_participant_service,
    get_registration_service,
)
from src.api.models import (
    ErrorResponse,
    ForgotPasswordRequest,
    LoginRequest,
    MemberResponse,
    MessageResponse,
    ParticipantTotalsResponse,
    PaymentResponse,
    PaymentStatusResponse,
    ProfileRequest,
    ProfileResponse,
    RegisterRequest,
    RegisterResponse,
    ResetPasswordRequest,
    TeamProfileResponse,
    TokenResponse,
    VerifyOtpRequest,
)
from src.config.settings import current_otp_expiry_minutes
from src.domain.exceptions import (
    AccountError,
    ConflictError,
    DependencyFailure,
    InvalidCredentials,
    NotFoundError,
)
from src.domain.models import ProfileUpdate, TokenClaims
from src.domain.participants import ParticipantService
from src.domain.ports import VerifyResult
from src.domain.registration import RegistrationService

router = APIRouter(tags=["v1"])

ALLOWED_PAYMENT_TYPES = {"image/jpeg", "image/png", "application/pdf"}

_VERIFY_FAILURES = {
    VerifyResult.INVALID_CODE: (status.HTTP_400_BAD_REQUEST, "invalid otp code"),
    VerifyResult.EXPIRED: (status.HTTP_400_BAD_REQUEST, "otp expired"),
    VerifyResult.NOT_FOUND: (status.HTTP_404_NOT_FOUND, "otp not found"),
}


def _http_error(exc: AccountError) -> HTTPException:
    """Map a domain error to its HTTP status, keeping the domain message."""
    status_code = status.HTTP_400_BAD_REQUEST  # ValidationError
    if isinstance(exc, ConflictError):
        status_code = status.HTTP_409_CONFLICT
    elif isinstance(exc, NotFoundError):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, InvalidCredentials):
        status_code = status.HTTP_401_UNAUTHORIZED
    elif isinstance(exc, DependencyFailure):
        status_code = status.HTTP_502_BAD_GATEWAY
    return HTTPException(status_code=status_code, detail=str(exc))


def _raise_for_verify_result(result: VerifyResult) -> None:
    if result is VerifyResult.SUCCESS:
        return
    status_code, detail = _VERIFY_FAILURES[result]
    raise HTTPException(status_code=status_code, detail=detail)


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Passwords do not match"},
        409: {"model": ErrorResponse, "description": "Email already registered"},
        502: {"model": ErrorResponse, "description": "Token or mail backend failed"},
    },
    summary="Register a new user",
    description="Create an inactive account. A 6-digit OTP is sent to the email.",
)
def register(
    request_data: RegisterRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> RegisterResponse:
    try:
        token = service.register(
            request_data.email, request_data.password, request_data.confirm_password
        )
    except AccountError as exc:
        raise _http_error(exc) from None
    return RegisterResponse(
        message="OTP code sent",
        token=token,
        expires_in_minutes=current_otp_expiry_minutes(),
    )


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={401: {"model": ErrorResponse, "description": "Email or password is wrong"}},
    summary="Log in",
)
def login(
    request_data: LoginRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> TokenResponse:
    try:
        token = service.login(request_data.email, request_data.password)
    except AccountError as exc:
        raise _http_error(exc) from None
    return TokenResponse(token=token)


@router.post(
    "/verify",
    response_model=MessageResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid or expired OTP"},
        404: {"model": ErrorResponse, "description": "No OTP pending"},
    },
    summary="Activate account with OTP",
)
def verify_user(
    request_data: VerifyOtpRequest,
    claims: TokenClaims = Depends(get_current_claims),
    service: RegistrationService = Depends(get_registration_service),
) -> MessageResponse:
    try:
        result = service.verify_user(claims.user_id, request_data.code)
    except AccountError as exc:
        raise _http_error(exc) from None
    _raise_for_verify_result(result)
    return MessageResponse(message="Account activated")


@router.post(
    "/verify/resend",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse, "description": "Account already active"}},
    summary="Send a new activation OTP",
)
def resend_verification(
    claims: TokenClaims = Depends(get_current_claims),
    service: RegistrationService = Depends(get_registration_service),
) -> MessageResponse:
    try:
        service.resend_verification(claims.user_id)
    except AccountError as exc:
        raise _http_error(exc) from None
    return MessageResponse(message="OTP code sent")


@router.post(
    "/password/forgot",
    response_model=TokenResponse,
    responses={404: {"model": ErrorResponse, "description": "User not found"}},
    summary="Request a password-reset OTP",
    description="Mails a reset OTP and returns a token scoped to the reset flow.",
)
def forgot_password(
    request_data: ForgotPasswordRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> TokenResponse:
    try:
        token = service.request_password_reset(request_data.email)
    except AccountError as exc:
        raise _http_error(exc) from None
    return TokenResponse(token=token)


@router.post(
    "/password/verify",
    response_model=MessageResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid or expired OTP"},
        404: {"model": ErrorResponse, "description": "No OTP pending"},
    },
    summary="Check a password-reset OTP",
)
def verify_password_reset(
    request_data: VerifyOtpRequest,
    claims: TokenClaims = Depends(get_current_claims),
    service: RegistrationService = Depends(get_registration_service),
) -> MessageResponse:
    try:
        result = service.verify_password_reset(claims.user_id, request_data.code)
    except AccountError as exc:
        raise _http_error(exc) from None
    _raise_for_verify_result(result)
    return MessageResponse(message="OTP verified")


@router.post(
    "/password/reset",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse, "description": "Password rejected"}},
    summary="Set a new password",
)
def reset_password(
    request_data: ResetPasswordRequest,
    claims: TokenClaims = Depends(get_current_claims),
    service: RegistrationService = Depends(get_registration_service),
) -> MessageResponse:
    try:
        service.reset_password(
            claims.user_id, request_data.new_password, request_data.confirm_password
        )
    except AccountError as exc:
        raise _http_error(exc) from None
    return MessageResponse(message="Password changed")


@router.get("/profile", response_model=ProfileResponse, summary="Get own profile")
def get_profile(
    claims: TokenClaims = Depends(get_current_claims),
    service: ParticipantService = Depends(get_participant_service),
) -> ProfileResponse:
    try:
        profile = service.get_profile(claims.user_id)
    except AccountError as exc:
        raise _http_error(exc) from None
    return ProfileResponse(
        full_name=profile.full_name,
        student_number=profile.student_number,
        university=profile.university,
        major=profile.major,
        email=profile.email,
    )


@router.put("/profile", response_model=ProfileResponse, summary="Update own profile")
def update_profile(
    request_data: ProfileRequest,
    claims: TokenClaims = Depends(get_current_claims),
    service: ParticipantService = Depends(get_participant_service),
) -> ProfileResponse:
    try:
        stored = service.update_profile(claims.user_id, ProfileUpdate(**request_data.model_dump()))
    except AccountError as exc:
        raise _http_error(exc) from None
    return ProfileResponse(
        full_name=stored.full_name,
        student_number=stored.student_number,
        university=stored.university,
        major=stored.major,
    )


@router.get("/team", response_model=TeamProfileResponse, summary="Get own team")
def get_team(
    claims: TokenClaims = Depends(get_current_claims),
    service: ParticipantService = Depends(get_participant_service),
) -> TeamProfileResponse:
    try:
        team = service.get_team_profile(claims.user_id)
    except AccountError as exc:
        raise _http_error(exc) from None
    return TeamProfileResponse(
        leader_name=team.leader_name,
        student_number=team.student_number,
        competition_category=team.competition_category,
        members=[
            MemberResponse(full_name=m.full_name, student_number=m.student_number)
            for m in team.members
        ],
    )


@router.post(
    "/payment",
    response_model=PaymentResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Unsupported file type"},
        502: {"model": ErrorResponse, "description": "Storage failed"},
    },
    summary="Upload payment proof",
)
def upload_payment(
    file: UploadFile = File(...),
    claims: TokenClaims = Depends(get_current_claims),
    service: ParticipantService = Depends(get_participant_service),
) -> PaymentResponse:
    content_type = file.content_type or "application/octet-stream"
    if content_type not in ALLOWED_PAYMENT_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="unsupported file type",
        )
    try:
        url = service.upload_payment(
            claims.user_id, file.filename or "payment", file.file.read(), content_type
        )
    except AccountError as exc:
        raise _http_error(exc) from None
    return PaymentResponse(message="Payment proof uploaded", payment_url=url)


@router.post(
    "/competitions/{competition_id}/register",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse, "description": "Competition not found"}},
    summary="Enroll own team in a competition",
)
def register_competition(
    competition_id: int,
    request_data: ProfileRequest,
    claims: TokenClaims = Depends(get_current_claims),
    service: ParticipantService = Depends(get_participant_service),
) -> MessageResponse:
    try:
        service.register_competition(
            claims.user_id, competition_id, ProfileUpdate(**request_data.model_dump())
        )
    except AccountError as exc:
        raise _http_error(exc) from None
    return MessageResponse(message="Competition registration complete")


@router.get(
    "/admin/payments",
    response_model=list[PaymentStatusResponse],
    summary="Payment status of every participant",
)
def payment_status_report(
    _admin: TokenClaims = Depends(get_current_admin),
    service: ParticipantService = Depends(get_participant_service),
) -> list[PaymentStatusResponse]:
    return [
        PaymentStatusResponse(
            full_name=row.full_name,
            student_number=row.student_number,
            email=row.email,
            payment_proof_url=row.payment_proof_url,
            team_name=row.team_name,
            team_status=row.team_status,
            competition_name=row.competition_name,
        )
        for row in service.payment_status_report()
    ]


@router.get(
    "/admin/participants/total",
    response_model=ParticipantTotalsResponse,
    summary="Number of enrolled teams per competition",
)
def participant_totals(
    _admin: TokenClaims = Depends(get_current_admin),
    service: ParticipantService = Depends(get_participant_service),
) -> ParticipantTotalsResponse:
    return ParticipantTotalsResponse(totals=service.participant_totals())
