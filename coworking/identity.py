"""User registration, authentication and token verification."""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional, Tuple

from email_validator import EmailNotValidError, validate_email

from .database import Database
from .errors import InvalidCredentials, InvalidInput, NotFound
from .models import User
from .security import PasswordHasher, TokenSigner

logger = logging.getLogger("coworking.identity")


def normalize_email(email: str) -> str:
    """Return the canonical form of ``email`` or raise :class:`InvalidInput`."""

    if not isinstance(email, str) or not email.strip():
        raise InvalidInput("Email must not be empty")
    try:
        validated = validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError as exc:
        raise InvalidInput(f"Invalid email address: {exc}") from exc
    return validated.normalized.lower()


def _normalize_name(name: Optional[str]) -> Optional[str]:
    if name is None:
        return None
    stripped = name.strip()
    return stripped or None


class IdentityManager:
    """Gatekeeper for who may act as a given user."""

    def __init__(self, database: Database, hasher: PasswordHasher, tokens: TokenSigner) -> None:
        self._database = database
        self._hasher = hasher
        self._tokens = tokens

    def register(self, email: str, password: str, name: Optional[str] = None) -> Tuple[User, str]:
        """Create a user and return it with a freshly minted token."""

        normalized_email = normalize_email(email)
        if not password:
            raise InvalidInput("Password must not be empty")

        user = self._database.insert_user(
            user_id=uuid.uuid4().hex,
            email=normalized_email,
            password_hash=self._hasher.hash(password),
            name=_normalize_name(name),
            created_at=datetime.now(timezone.utc),
        )
        logger.info("Registered user %s", user.id)
        return user, self._tokens.mint(user.id)

    def authenticate(self, email: str, password: str) -> Tuple[User, str]:
        """Check the credentials and return the user with a fresh token."""

        normalized_email = normalize_email(email)
        record = self._database.get_credentials(normalized_email)
        if record is None:
            self._hasher.dummy_verify()
            logger.warning("Login attempt for unknown email %s", normalized_email)
            raise NotFound("User not found")

        user, password_hash = record
        if not password or not self._hasher.verify(password, password_hash):
            logger.warning("Failed login attempt for user %s", user.id)
            raise InvalidCredentials("Invalid password")

        logger.info("User %s signed in", user.id)
        return user, self._tokens.mint(user.id)

    def verify(self, token: str) -> str:
        return self._tokens.verify(token)

    def get_user(self, user_id: str) -> User:
        user = self._database.get_user(user_id)
        if user is None:
            raise NotFound("User not found")
        return user


__all__ = ["IdentityManager", "normalize_email"]
