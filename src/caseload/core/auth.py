"""Single-user password authentication with JWT bearer tokens.

The password hash lives in ``<data_dir>/auth.json``; tokens are stateless
HS256 JWTs, so logging out is just the client dropping its token.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import structlog
from jose import JWTError, jwt
from passlib.context import CryptContext

from caseload.config import AuthConfig
from caseload.db.helpers import now_iso

logger = structlog.get_logger(__name__)

ALGORITHM = "HS256"
MIN_PASSWORD_LENGTH = 6
TOKEN_SUBJECT = "slp-user"

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class AuthError(Exception):
    """Authentication failed or cannot proceed."""

    pass


@dataclass
class AuthData:
    """Contents of the auth file."""

    password_hash: str
    created_at: str
    last_login: str | None = None


def is_auth_setup(auth_file: Path) -> bool:
    return auth_file.exists()


def load_auth_data(auth_file: Path) -> AuthData | None:
    """Read the auth file, or None when auth has not been set up."""
    if not auth_file.exists():
        return None
    try:
        raw = json.loads(auth_file.read_text(encoding="utf-8"))
        return AuthData(
            password_hash=raw["passwordHash"],
            created_at=raw.get("createdAt", ""),
            last_login=raw.get("lastLogin"),
        )
    except (OSError, ValueError, KeyError) as e:
        raise AuthError(f"Auth file is unreadable: {e}") from e


def save_auth_data(auth_file: Path, data: AuthData) -> None:
    auth_file.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "passwordHash": data.password_hash,
        "createdAt": data.created_at,
        "lastLogin": data.last_login,
    }
    auth_file.write_text(json.dumps(payload, indent=2), encoding="utf-8")


def _check_length(password: str, label: str = "Password") -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise AuthError(f"{label} must be at least {MIN_PASSWORD_LENGTH} characters")


def setup_password(auth_file: Path, password: str) -> None:
    """Create the initial password.

    Raises:
        AuthError: If auth is already set up or the password is too short
    """
    if is_auth_setup(auth_file):
        raise AuthError("Authentication is already set up")
    _check_length(password)
    save_auth_data(auth_file, AuthData(password_hash=pwd_context.hash(password), created_at=now_iso()))
    logger.info("auth.setup_complete")


def verify_password(auth_file: Path, password: str) -> bool:
    """Check a password against the stored hash, recording the login time."""
    data = load_auth_data(auth_file)
    if data is None:
        raise AuthError("Authentication is not set up")
    if not pwd_context.verify(password, data.password_hash):
        logger.warning("auth.login_failed")
        return False
    data.last_login = now_iso()
    save_auth_data(auth_file, data)
    return True


def change_password(auth_file: Path, current_password: str, new_password: str) -> bool:
    """Replace the password after verifying the current one.

    Returns:
        False when the current password is wrong

    Raises:
        AuthError: If auth is not set up or the new password is too short
    """
    _check_length(new_password, "New password")
    data = load_auth_data(auth_file)
    if data is None:
        raise AuthError("Authentication is not set up")
    if not pwd_context.verify(current_password, data.password_hash):
        logger.warning("auth.password_change_rejected")
        return False
    data.password_hash = pwd_context.hash(new_password)
    save_auth_data(auth_file, data)
    logger.info("auth.password_changed")
    return True


def create_token(config: AuthConfig, now: datetime | None = None) -> tuple[str, datetime]:
    """Issue a signed token and return it with its expiry."""
    issued = now or datetime.now(timezone.utc)
    expires = issued + timedelta(hours=config.token_ttl_hours)
    claims: dict[str, Any] = {"sub": TOKEN_SUBJECT, "iat": issued, "exp": expires}
    return jwt.encode(claims, config.jwt_secret, algorithm=ALGORITHM), expires


def verify_token(config: AuthConfig, token: str) -> dict[str, Any]:
    """Decode and validate a token.

    Raises:
        AuthError: If the token is invalid or expired
    """
    try:
        claims = jwt.decode(token, config.jwt_secret, algorithms=[ALGORITHM])
    except JWTError as e:
        raise AuthError("Invalid or expired token") from e
    if claims.get("sub") != TOKEN_SUBJECT:
        raise AuthError("Invalid or expired token")
    return claims


def auth_status(config: AuthConfig, auth_file: Path) -> dict[str, bool]:
    setup = is_auth_setup(auth_file)
    return {
        "enabled": config.enabled,
        "setup": setup,
        "requires_login": config.enabled and setup,
        "requires_setup": config.enabled and not setup,
    }

