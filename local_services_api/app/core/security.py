"""
Security helpers for password hashing, JWT issuance and the
authorization gate.

Tokens are compact JSON Web Tokens signed with HMAC‑SHA256 and
base64url encoded.  Two token classes exist: short‑lived access tokens
and long‑lived refresh tokens.  Each class is signed with its own
secret and carries a ``type`` claim, so a token of one class never
verifies as the other.  Verification is stateless; there is no
revocation list, so a token stays valid until it expires.

Passwords are hashed with PBKDF2‑HMAC‑SHA256 and a random salt, stored
as ``salthex$hashhex``.

The gate is made of two FastAPI dependencies.  ``get_current_user``
authenticates the bearer token and re‑reads the account on every call
so that deactivated accounts are rejected even while their tokens are
unexpired.  ``require_roles`` then checks role membership.  Ownership
of individual records is not checked here; see ``core.policy``.
"""

import base64
import hashlib
import hmac
import json
import logging
import os
import sqlite3
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import Settings
from .db import get_db
from .errors import Forbidden, Unauthenticated


logger = logging.getLogger(__name__)

ACCESS = "access"
REFRESH = "refresh"

PBKDF2_ITERATIONS = 100_000


def _b64_url_encode(data: bytes) -> str:
    """Base64‑url encode bytes without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("utf-8")


def _b64_url_decode(data: str) -> bytes:
    """Decode base64‑url encoded string, adding padding if necessary."""
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def _sign(message: bytes, secret: str) -> bytes:
    """Compute HMAC‑SHA256 signature of a message using the given secret."""
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()


def encode_jwt(claims: Dict[str, Any], secret: str) -> str:
    header = {"alg": "HS256", "typ": "JWT"}
    header_b64 = _b64_url_encode(json.dumps(header, separators=(",", ":")).encode("utf-8"))
    payload_b64 = _b64_url_encode(json.dumps(claims, separators=(",", ":")).encode("utf-8"))
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    signature_b64 = _b64_url_encode(_sign(signing_input, secret))
    return f"{header_b64}.{payload_b64}.{signature_b64}"


def decode_jwt(token: str, secret: str) -> Optional[Dict[str, Any]]:
    """Verify signature and expiry; return the claims or ``None``."""
    try:
        parts = token.split(".")
        if len(parts) != 3:
            return None
        header_b64, payload_b64, signature_b64 = parts
        header = json.loads(_b64_url_decode(header_b64).decode("utf-8"))
        if not isinstance(header, dict) or header.get("alg") != "HS256":
            return None
        signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
        expected_sig = _sign(signing_input, secret)
        actual_sig = _b64_url_decode(signature_b64)
        # Constant‑time comparison to prevent timing attacks
        if not hmac.compare_digest(expected_sig, actual_sig):
            return None
        data = json.loads(_b64_url_decode(payload_b64).decode("utf-8"))
        if not isinstance(data, dict):
            return None
        if data.get("exp") is None or int(data["exp"]) <= int(time.time()):
            return None
        return data
    except (ValueError, TypeError, UnicodeDecodeError):
        return None


@dataclass(frozen=True)
class TokenIdentity:
    """Identity claims embedded in both token classes."""

    user_id: int
    email: str
    role: str


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = "bearer"

    def as_dict(self) -> Dict[str, Any]:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "token_type": self.token_type,
            "expires_in": self.expires_in,
        }


class TokenService:
    """Issue and verify access/refresh token pairs."""

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        access_ttl: int = 15 * 60,
        refresh_ttl: int = 7 * 24 * 60 * 60,
    ) -> None:
        self._secrets = {ACCESS: access_secret, REFRESH: refresh_secret}
        self._ttls = {ACCESS: access_ttl, REFRESH: refresh_ttl}

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        return cls(
            access_secret=settings.jwt_secret,
            refresh_secret=settings.jwt_refresh_secret,
            access_ttl=settings.access_token_ttl,
            refresh_ttl=settings.refresh_token_ttl,
        )

    @property
    def access_ttl(self) -> int:
        return self._ttls[ACCESS]

    @property
    def refresh_ttl(self) -> int:
        return self._ttls[REFRESH]

    def _create(self, identity: TokenIdentity, token_type: str) -> str:
        now = int(time.time())
        claims = {
            "user_id": identity.user_id,
            "email": identity.email,
            "role": identity.role,
            "type": token_type,
            "iat": now,
            "exp": now + self._ttls[token_type],
        }
        return encode_jwt(claims, self._secrets[token_type])

    def _verify(self, token: str, token_type: str) -> Optional[TokenIdentity]:
        claims = decode_jwt(token, self._secrets[token_type])
        if claims is None or claims.get("type") != token_type:
            return None
        try:
            return TokenIdentity(
                user_id=int(claims["user_id"]),
                email=str(claims["email"]),
                role=str(claims["role"]),
            )
        except (KeyError, TypeError, ValueError):
            return None

    def issue(self, identity: TokenIdentity) -> TokenPair:
        """Create a fresh access/refresh pair for ``identity``."""
        return TokenPair(
            access_token=self._create(identity, ACCESS),
            refresh_token=self._create(identity, REFRESH),
            expires_in=self._ttls[ACCESS],
        )

    def verify_access(self, token: str) -> Optional[TokenIdentity]:
        return self._verify(token, ACCESS)

    def verify_refresh(self, token: str) -> Optional[TokenIdentity]:
        return self._verify(token, REFRESH)


def hash_password(password: str) -> str:
    """Hash a password using PBKDF2‑HMAC with SHA‑256.

    A 16‑byte random salt is generated for each password.  The
    resulting string contains the salt and hash separated by a ``$``
    (salt in hex, then hash in hex).
    """
    salt = os.urandom(16)
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return f"{salt.hex()}${dk.hex()}"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a stored salt+hash string."""
    try:
        salt_hex, hash_hex = hashed_password.split("$", 1)
        salt = bytes.fromhex(salt_hex)
        stored_hash = bytes.fromhex(hash_hex)
    except (AttributeError, ValueError):
        return False
    dk = hashlib.pbkdf2_hmac("sha256", plain_password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return hmac.compare_digest(dk, stored_hash)


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    tokens: TokenService = Depends(get_token_service),
    conn: sqlite3.Connection = Depends(get_db),
) -> Dict[str, Any]:
    """Dependency that authenticates the caller.

    Raises ``Unauthenticated`` when the header is missing, the access
    token does not verify, or the account no longer exists or has been
    deactivated.  On success returns ``{"user_id", "email", "role",
    "name"}`` read from the current database row.
    """
    if credentials is None:
        raise Unauthenticated("Access token required", "No token provided")
    identity = tokens.verify_access(credentials.credentials)
    if identity is None:
        raise Unauthenticated("Invalid or expired token", "Token verification failed")
    row = conn.execute(
        "SELECT id, email, name, role, is_active FROM users WHERE id = ?",
        (identity.user_id,),
    ).fetchone()
    if not row or not row["is_active"]:
        logger.warning("Rejected token for missing or inactive user %s", identity.user_id)
        raise Unauthenticated("User account is inactive or does not exist", "Invalid user")
    return {
        "user_id": row["id"],
        "email": row["email"],
        "role": row["role"],
        "name": row["name"],
    }


def require_roles(*roles: str) -> Callable[..., Dict[str, Any]]:
    """Dependency factory to enforce that the current user has one of ``roles``.

    Use in endpoints as ``Depends(require_roles("provider"))``.
    """

    def _role_dependency(current_user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
        if current_user.get("role") not in roles:
            raise Forbidden("Insufficient permissions", "Role not authorized")
        return current_user

    return _role_dependency
