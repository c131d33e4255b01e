"""
bcrypt password hasher adapter - Implements PasswordHasher protocol.

Hashing and verification are constant-time with respect to the
password contents; cost is fixed per instance. bcrypt refuses input
longer than 72 bytes, so such passwords are rejected here instead of
surfacing as a library error.
"""

import bcrypt

from src.domain.exceptions import PasswordTooLong
from src.domain.models import MAX_PASSWORD_BYTES


class BcryptPasswordHasher:
    """
    Implements PasswordHasher protocol via bcrypt.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, rounds: int = 10) -> None:
        """
        Args:
            rounds: bcrypt work factor (4-31)
        """
        self._rounds = rounds

    def hash(self, password: str) -> str:
        """
        Raises:
            PasswordTooLong: If the UTF-8 encoding exceeds 72 bytes
        """
        encoded = password.encode()
        if len(encoded) > MAX_PASSWORD_BYTES:
            raise PasswordTooLong()
        return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=self._rounds)).decode()

    def verify(self, password_hash: str, password: str) -> bool:
        encoded = password.encode()
        # Could never have been hashed
        if len(encoded) > MAX_PASSWORD_BYTES:
            return False
        try:
            return bcrypt.checkpw(encoded, password_hash.encode())
        except ValueError:
            # Malformed stored hash
            return False
