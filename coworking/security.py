"""Password hashing and session token helpers."""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from .config import MIN_BCRYPT_ROUNDS
from .errors import InvalidInput, InvalidToken

logger = logging.getLogger("coworking.security")

TOKEN_ALGORITHM = "HS256"


class PasswordHasher:
    """Salted bcrypt hashing with a configurable work factor."""

    def __init__(self, *, rounds: int = 12) -> None:
        if rounds < MIN_BCRYPT_ROUNDS:
            raise ValueError(f"bcrypt rounds must be at least {MIN_BCRYPT_ROUNDS}")
        self._context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    def hash(self, password: str) -> str:
        try:
            return self._context.hash(password)
        except ValueError as exc:
            raise InvalidInput(f"Password cannot be used: {exc}") from exc

    def verify(self, password: str, hashed: str) -> bool:
        try:
            return self._context.verify(password, hashed)
        except ValueError:
            logger.warning("Stored password hash could not be parsed")
            return False

    def dummy_verify(self) -> None:
        """Spend the same time as a real verification when no hash exists."""

        self._context.dummy_verify()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenSigner:
    """Mint and verify stateless HS256 tokens whose subject is a user id."""

    def __init__(
        self,
        secret: str,
        *,
        ttl: timedelta = timedelta(hours=24),
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if not secret:
            raise ValueError("A token signing secret must be provided")
        self._secret = secret
        self._ttl = ttl
        self._clock = clock

    def mint(self, user_id: str) -> str:
        issued_at = self._clock()
        claims: Dict[str, object] = {
            "sub": user_id,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self._ttl).timestamp()),
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(claims, self._secret, algorithm=TOKEN_ALGORITHM)

    def verify(self, token: str) -> str:
        """Return the user id asserted by ``token`` or raise :class:`InvalidToken`."""

        if not token or not isinstance(token, str):
            raise InvalidToken("Token is missing")
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[TOKEN_ALGORITHM],
                options={"verify_aud": False, "verify_exp": False},
            )
        except JWTError as exc:
            raise InvalidToken("Token is invalid") from exc

        subject: Optional[object] = payload.get("sub")
        expires = payload.get("exp")
        if not isinstance(subject, str) or not subject:
            raise InvalidToken("Token has no subject")
        if not isinstance(expires, int) or expires <= int(self._clock().timestamp()):
            raise InvalidToken("Token has expired")
        return subject


__all__ = ["PasswordHasher", "TOKEN_ALGORITHM", "TokenSigner"]
