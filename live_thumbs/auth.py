"""Credential storage and an explicit authentication result."""

import json
import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .config import CREDENTIALS_PATH
from .errors import AuthError, NetworkError

logger = logging.getLogger(__name__)


class AuthState(str, Enum):
    AWAITING_CODE = "awaiting_code"  # nothing stored, the user has to log in
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


@dataclass
class AuthResult:
    state: AuthState
    message: str = ""
    token: str | None = None

    @property
    def ok(self):
        return self.state == AuthState.AUTHENTICATED


class CredentialStore:
    """Access token cached as JSON on disk."""

    def __init__(self, path=CREDENTIALS_PATH):
        self.path = Path(path)

    def load(self):
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise AuthError(f"Could not read credentials from {self.path}: {e}") from e
        return data.get("access_token")

    def save(self, token):
        if not token:
            raise AuthError("Refusing to store an empty token")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({"access_token": token}), encoding="utf-8")
        os.chmod(self.path, 0o600)

    def clear(self):
        """Remove stored credentials. Returns False if there were none."""
        if not self.path.exists():
            return False
        self.path.unlink()
        return True


async def authenticate(store, client):
    """
    Check the stored credentials against the platform.

    Returns an AuthResult instead of raising, so callers can branch on the
    state directly.
    """
    try:
        token = store.load()
    except AuthError as e:
        return AuthResult(AuthState.FAILED, str(e))

    if not token:
        return AuthResult(AuthState.AWAITING_CODE, "Not logged in. Run 'live-thumbs login' first.")

    try:
        valid = await client.validate_token(token)
    except NetworkError as e:
        return AuthResult(AuthState.FAILED, str(e))

    if not valid:
        logger.warning("Stored access token was rejected")
        return AuthResult(AuthState.FAILED, "Stored credentials were rejected, log in again.")

    return AuthResult(AuthState.AUTHENTICATED, "Logged in", token)
