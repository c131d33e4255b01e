"""
JWT token adapter - Implements TokenIssuer protocol.

Tokens are HS256-signed by default and carry the user id in "sub",
the admin flag in "admin" and an expiry in "exp".
"""

from datetime import datetime, timedelta, timezone
from uuid import UUID

from jose import JWTError, jwt
from jose.exceptions import JOSEError

from src.domain.exceptions import TokenError
from src.domain.models import TokenClaims


class JwtTokenIssuer:
    """
    Implements TokenIssuer protocol via python-jose.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_hours: int = 24) -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._expire = timedelta(hours=expire_hours)

    def issue(self, user_id: UUID, is_admin: bool) -> str:
        expire = datetime.now(timezone.utc) + self._expire
        payload = {"sub": str(user_id), "admin": is_admin, "exp": expire}
        try:
            return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)
        except JOSEError as e:
            raise TokenError("failed to sign token") from e

    def decode(self, token: str) -> TokenClaims:
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except JWTError as e:
            raise TokenError("invalid or expired token") from e

        subject = payload.get("sub")
        if subject is None:
            raise TokenError("token has no subject")
        try:
            user_id = UUID(subject)
        except ValueError as e:
            raise TokenError("token subject is not a user id") from e

        return TokenClaims(user_id=user_id, is_admin=bool(payload.get("admin", False)))
