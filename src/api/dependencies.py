"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes,
plus bearer-token authentication.
"""

from functools import lru_cache

import boto3
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import PostgresUnitOfWork
from src.adapters.security.passwords import BcryptPasswordHasher
from src.adapters.security.tokens import JwtTokenIssuer
from src.adapters.smtp.console import ConsoleEmailSender
from src.adapters.smtp.sender import SmtpEmailSender
from src.adapters.storage.s3 import S3FileStorage
from src.config.settings import current_otp_expiry_minutes, get_settings
from src.domain.exceptions import TokenError
from src.domain.models import TokenClaims
from src.domain.participants import ParticipantService
from src.domain.ports import EmailSender, FileStorage, PasswordHasher, TokenIssuer, UnitOfWork
from src.domain.registration import RegistrationService


def get_pool(request: Request) -> ConnectionPool:
    """
    Get connection pool from app state.

    The pool is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.pool


def get_unit_of_work(request: Request) -> UnitOfWork:
    """Create unit of work with connection pool from app state."""
    return PostgresUnitOfWork(get_pool(request))


@lru_cache
def get_password_hasher() -> PasswordHasher:
    return BcryptPasswordHasher(rounds=get_settings().bcrypt_cost)


@lru_cache
def get_token_issuer() -> TokenIssuer:
    settings = get_settings()
    return JwtTokenIssuer(
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        expire_hours=settings.jwt_expire_hours,
    )


@lru_cache
def get_email_sender() -> EmailSender:
    """Console sender unless mail_backend is "smtp" (singleton)."""
    settings = get_settings()
    if settings.mail_backend.lower() == "smtp":
        return SmtpEmailSender(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            use_ssl=settings.smtp_use_ssl,
        )
    return ConsoleEmailSender()


@lru_cache
def get_file_storage() -> FileStorage:
    settings = get_settings()
    # Without explicit keys boto3 falls back to its default credential chain
    if settings.aws_access_key_id and settings.aws_secret_access_key:
        client = boto3.client(
            "s3",
            region_name=settings.s3_region,
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
        )
    else:
        client = boto3.client("s3", region_name=settings.s3_region)
    return S3FileStorage(client, bucket=settings.s3_bucket, region=settings.s3_region)


def get_registration_service(
    unit_of_work: UnitOfWork = Depends(get_unit_of_work),
    password_hasher: PasswordHasher = Depends(get_password_hasher),
    token_issuer: TokenIssuer = Depends(get_token_issuer),
    email_sender: EmailSender = Depends(get_email_sender),
) -> RegistrationService:
    """
    Create registration service with injected dependencies.

    The OTP lifetime is read from the environment on every verification.
    """
    return RegistrationService(
        unit_of_work=unit_of_work,
        password_hasher=password_hasher,
        token_issuer=token_issuer,
        email_sender=email_sender,
        otp_expiry_minutes=current_otp_expiry_minutes,
    )


def get_participant_service(
    unit_of_work: UnitOfWork = Depends(get_unit_of_work),
    file_storage: FileStorage = Depends(get_file_storage),
) -> ParticipantService:
    return ParticipantService(unit_of_work=unit_of_work, file_storage=file_storage)


# Bearer token security scheme for OpenAPI documentation
http_bearer = HTTPBearer()


def get_current_claims(
    credentials: HTTPAuthorizationCredentials = Depends(http_bearer),
    token_issuer: TokenIssuer = Depends(get_token_issuer),
) -> TokenClaims:
    """
    Decode the bearer token of the request.

    FastAPI's HTTPBearer rejects requests without an Authorization header;
    a token that fails signature or expiry checks is rejected here.
    """
    try:
        return token_issuer.decode(credentials.credentials)
    except TokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None


def get_current_admin(claims: TokenClaims = Depends(get_current_claims)) -> TokenClaims:
    if not claims.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin only")
    return claims
