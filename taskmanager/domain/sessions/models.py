"""Domain models for authenticated sessions."""

import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import jwt

from taskmanager.domain.errors import AuthenticationError

# Refresh a little before the provider would reject the token
EXPIRY_LEEWAY_SECONDS = 10


def _decode_claims(access_token: str) -> Dict[str, Any]:
    """Read the access token claims without verifying the signature.

    The backend verifies every request; the claims are only used locally to
    know when the token expires and whom it belongs to.
    """
    try:
        return jwt.decode(access_token, options={"verify_signature": False})
    except jwt.InvalidTokenError:
        return {}


@dataclass
class Session:
    """Tokens and identity of the signed-in user."""
    access_token: str
    refresh_token: str
    expires_at: float
    user_id: Optional[str] = None
    user_email: Optional[str] = None
    token_type: str = "bearer"

    @classmethod
    def from_auth_response(cls, data: Dict[str, Any]) -> "Session":
        """Build a session from a GoTrue token response.

        Raises:
            AuthenticationError: If the response does not carry tokens.
        """
        access_token = data.get("access_token")
        refresh_token = data.get("refresh_token")
        if not access_token or not refresh_token:
            raise AuthenticationError("Auth response did not include a session", code="NO_SESSION")

        claims = _decode_claims(access_token)
        expires_at = data.get("expires_at")
        if expires_at is None and data.get("expires_in") is not None:
            expires_at = time.time() + float(data["expires_in"])
        if expires_at is None:
            expires_at = claims.get("exp", 0)

        user = data.get("user") or {}
        return cls(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=float(expires_at),
            user_id=user.get("id") or claims.get("sub"),
            user_email=user.get("email") or claims.get("email"),
            token_type=data.get("token_type", "bearer"),
        )

    def is_expired(self, now: Optional[float] = None) -> bool:
        """True when the access token is expired or about to expire."""
        now = time.time() if now is None else now
        return now >= self.expires_at - EXPIRY_LEEWAY_SECONDS

    def same_user(self, other: Optional["Session"]) -> bool:
        return other is not None and other.user_id == self.user_id
