"""Human-login identity tokens — developer/user roles, orthogonal to tenancy.

Tokens are HS256 JWTs carrying ``{id, email, username, userType}`` and
expire after a configured number of hours.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import time
from dataclasses import dataclass
from enum import Enum

from waitlist_api.core.logging import get_logger

log = get_logger(__name__)


class UserType(str, Enum):
    DEVELOPER = "developer"
    USER = "user"


@dataclass(frozen=True)
class Identity:
    """Decoded identity token claims."""

    id: str
    email: str
    username: str
    user_type: str

    def to_claims(self) -> dict[str, str]:
        return {
            "id": self.id,
            "email": self.email,
            "username": self.username,
            "userType": self.user_type,
        }


class JWTManager:
    """Minimal JWT implementation (HS256) — no external dependency."""

    def __init__(self, secret: str, expiry_hours: int = 1) -> None:
        self._secret: str = secret
        self._expiry_hours: int = expiry_hours

    def create_token(self, identity: Identity) -> str:
        """Create a signed JWT token for the identity."""
        now = int(time.time())
        payload: dict[str, object] = {
            **identity.to_claims(),
            "iat": now,
            "exp": now + self._expiry_hours * 3600,
        }

        header = self._b64url_encode(json.dumps({"alg": "HS256", "typ": "JWT"}).encode())
        body = self._b64url_encode(json.dumps(payload).encode())
        signature = self._sign(f"{header}.{body}")

        return f"{header}.{body}.{signature}"

    def issue(self, user_id: str, email: str, user_type: UserType, username: str = "") -> str:
        """Issue a token for a developer or user account."""
        if not user_id or not email:
            msg = f"Invalid {user_type.value} object"
            raise ValueError(msg)
        return self.create_token(
            Identity(id=user_id, email=email, username=username, user_type=user_type.value)
        )

    def verify_token(self, token: str) -> Identity | None:
        """Verify a JWT token and return the identity, or None if invalid."""
        parts = token.split(".")
        if len(parts) != 3:
            return None

        header_b64, body_b64, sig = parts
        expected_sig = self._sign(f"{header_b64}.{body_b64}")

        if not hmac.compare_digest(sig.encode(), expected_sig.encode()):
            log.warning("jwt_invalid_signature")
            return None

        try:
            payload = json.loads(self._b64url_decode(body_b64))
        except (json.JSONDecodeError, ValueError):
            log.warning("jwt_decode_error")
            return None

        if not isinstance(payload, dict):
            return None

        exp = payload.get("exp", 0)
        if not isinstance(exp, int) or int(time.time()) > exp:
            log.debug("jwt_expired", id=payload.get("id"))
            return None

        try:
            return Identity(
                id=str(payload["id"]),
                email=str(payload["email"]),
                username=str(payload.get("username", "")),
                user_type=str(payload["userType"]),
            )
        except KeyError:
            log.warning("jwt_missing_claims")
            return None

    def _sign(self, message: str) -> str:
        sig_bytes = hmac.new(
            self._secret.encode(),
            message.encode(),
            hashlib.sha256,
        ).digest()
        return self._b64url_encode(sig_bytes)

    @staticmethod
    def _b64url_encode(data: bytes) -> str:
        return base64.urlsafe_b64encode(data).rstrip(b"=").decode()

    @staticmethod
    def _b64url_decode(s: str) -> bytes:
        padding = 4 - len(s) % 4
        if padding != 4:
            s += "=" * padding
        return base64.urlsafe_b64decode(s)
