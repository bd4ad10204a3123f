"""
Security helpers for password hashing and JWT authentication.

This module implements a lightweight JSON Web Token (JWT) mechanism
using HMAC‑SHA256 signatures and base64url encoding.  Tokens embed the
account ``id`` and ``email`` together with ``iat`` and ``exp``
timestamps.  Passwords are hashed with PBKDF2‑HMAC‑SHA256 and a random
salt.

Request authentication never fails on its own: the bearer token of a
request is resolved once into either an :class:`Identity` or
:data:`ANONYMOUS`, and that value is passed explicitly to every
service call.  Guarded operations call :func:`require_identity`, which
raises :class:`Unauthenticated` for anonymous callers.
"""

import base64
import hashlib
import hmac
import json
import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import settings
from .errors import Unauthenticated

logger = logging.getLogger(__name__)

PBKDF2_ITERATIONS = 100_000


def _b64_url_encode(data: bytes) -> str:
    """Base64‑url encode bytes without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("utf-8")


def _b64_url_decode(data: str) -> bytes:
    """Decode base64‑url encoded string, adding padding if necessary."""
    padding = '=' * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def _sign(message: bytes, secret: str) -> bytes:
    """Compute HMAC‑SHA256 signature of a message using the given secret."""
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()


def create_access_token(data: Dict[str, Any], expires_delta: int) -> str:
    """Create a signed JWT token with the given payload.

    The payload is extended with ``iat`` and ``exp`` fields (UNIX
    timestamps).  The token is a string of the form
    ``header.payload.signature``, where each part is base64url
    encoded.  Clients send it back as ``Authorization: Bearer <token>``.

    Parameters
    ----------
    data : dict
        Claims to embed in the token (e.g. ``{"id": ..., "email": ...}``).
    expires_delta : int
        Lifetime of the token in seconds.

    Returns
    -------
    str
        A signed JWT token.
    """
    to_encode = data.copy()
    now = int(time.time())
    to_encode["iat"] = now
    to_encode["exp"] = now + expires_delta
    header = {"alg": settings.algorithm, "typ": "JWT"}
    header_b64 = _b64_url_encode(json.dumps(header, separators=(',', ':')).encode("utf-8"))
    payload_b64 = _b64_url_encode(json.dumps(to_encode, separators=(',', ':')).encode("utf-8"))
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    signature = _sign(signing_input, settings.secret_key)
    signature_b64 = _b64_url_encode(signature)
    return f"{header_b64}.{payload_b64}.{signature_b64}"


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Verify and decode a JWT token.

    Splits the token into header, payload and signature, verifies the
    HMAC signature and checks the ``exp`` field.  If validation
    succeeds, returns the payload dictionary; otherwise returns
    ``None``.
    """
    try:
        parts = token.split('.')
        if len(parts) != 3:
            return None
        header_b64, payload_b64, signature_b64 = parts
        signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
        expected_sig = _sign(signing_input, settings.secret_key)
        actual_sig = _b64_url_decode(signature_b64)
        # Constant‑time comparison to prevent timing attacks
        if not hmac.compare_digest(expected_sig, actual_sig):
            return None
        header = json.loads(_b64_url_decode(header_b64).decode("utf-8"))
        if header.get("alg") != settings.algorithm:
            return None
        data = json.loads(_b64_url_decode(payload_b64).decode("utf-8"))
        if not isinstance(data, dict):
            return None
        if data.get("exp") is None or int(data["exp"]) < int(time.time()):
            return None
        return data
    except (ValueError, TypeError, UnicodeDecodeError, AttributeError):
        # binascii.Error and json.JSONDecodeError are ValueError subclasses.
        return None


# ---------------------------------------------------------------------------
# Resolved request identity
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Identity:
    """An authenticated caller."""

    id: str
    email: str


class Anonymous:
    """The caller presented no valid credential."""

    _instance = None

    def __new__(cls) -> "Anonymous":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ANONYMOUS"


ANONYMOUS = Anonymous()

ResolvedIdentity = Union[Identity, Anonymous]


def identity_from_token(token: Optional[str]) -> ResolvedIdentity:
    """Resolve a bearer token to an identity; any failure yields ``ANONYMOUS``."""
    if not token:
        return ANONYMOUS
    payload = decode_access_token(token)
    if not payload:
        logger.warning("Rejected invalid or expired token")
        return ANONYMOUS
    user_id = payload.get("id")
    email = payload.get("email")
    if not user_id or not email:
        logger.warning("Rejected token without identity claims")
        return ANONYMOUS
    return Identity(id=str(user_id), email=str(email))


security = HTTPBearer(auto_error=False)


def resolve_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> ResolvedIdentity:
    """Dependency that resolves the request's bearer token once.

    Requests without an ``Authorization`` header, with another scheme or
    with an invalid token are anonymous.  No HTTP error is raised here;
    guarded operations reject anonymous callers themselves.
    """
    if credentials is None:
        return ANONYMOUS
    return identity_from_token(credentials.credentials)


def require_identity(identity: ResolvedIdentity) -> Identity:
    """Return ``identity`` if authenticated, else raise ``Unauthenticated``."""
    if isinstance(identity, Identity):
        return identity
    raise Unauthenticated()


def token_for(identity: Identity, expires_minutes: int) -> str:
    """Issue a token carrying ``identity`` valid for ``expires_minutes``."""
    return create_access_token(
        {"id": identity.id, "email": identity.email},
        expires_delta=expires_minutes * 60,
    )


def hash_password(password: str) -> str:
    """Hash a password using PBKDF2‑HMAC with SHA‑256.

    A 16‑byte random salt is generated for each password.  The
    resulting string contains the salt and hash separated by a
    ``$`` (salt in hex, then hash in hex).
    """
    salt = os.urandom(16)
    dk = hashlib.pbkdf2_hmac('sha256', password.encode('utf-8'), salt, PBKDF2_ITERATIONS)
    return f"{salt.hex()}${dk.hex()}"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a stored salt+hash string."""
    try:
        salt_hex, hash_hex = hashed_password.split('$', 1)
        salt = bytes.fromhex(salt_hex)
        stored_hash = bytes.fromhex(hash_hex)
    except (ValueError, AttributeError):
        return False
    dk = hashlib.pbkdf2_hmac('sha256', plain_password.encode('utf-8'), salt, PBKDF2_ITERATIONS)
    return hmac.compare_digest(dk, stored_hash)
