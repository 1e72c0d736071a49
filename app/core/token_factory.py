"""Signed bearer tokens for the FileVault API.

Plain functions over HMAC-SHA256 JWTs: ``create_token`` for management
scripts and tests, ``decode_token`` for the auth dependency.
"""

import base64
import hashlib
import hmac
import json
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

ISSUER = "filevault"
_HEADER = {"alg": "HS256", "typ": "JWT"}


@dataclass(frozen=True)
class TokenPayload:
    """Decoded claims of a valid token."""
    sub: str
    role: str
    exp: datetime


def create_token(
    subject: str,
    role: str,
    secret: str,
    algorithm: str = "HS256",
    expires_hours: int = 24,
) -> str:
    """Return a signed token for *subject* carrying a *role* claim."""
    if algorithm != "HS256":
        raise ValueError(f"Unsupported algorithm: {algorithm}")

    issued = int(time.time())
    claims = {
        "sub": subject,
        "role": role,
        "iss": ISSUER,
        "iat": issued,
        "exp": issued + expires_hours * 3600,
    }
    signing_input = _encode_json(_HEADER) + b"." + _encode_json(claims)
    return (signing_input + b"." + _b64encode(_sign(signing_input, secret))).decode()


def decode_token(token: str, secret: str, algorithm: str = "HS256") -> Optional[TokenPayload]:
    """Verify *token* and return its claims, or None if it is not acceptable.

    Rejected: malformed input, wrong signature, foreign issuer, expired.
    """
    if algorithm != "HS256":
        return None
    try:
        header_b64, claims_b64, signature_b64 = token.encode().split(b".")
    except ValueError:
        return None

    try:
        signature = _b64decode(signature_b64)
        if not hmac.compare_digest(_sign(header_b64 + b"." + claims_b64, secret), signature):
            return None
        claims = json.loads(_b64decode(claims_b64))
    except (ValueError, TypeError):
        return None

    if not isinstance(claims, dict) or claims.get("iss") != ISSUER:
        return None
    exp = claims.get("exp")
    if not isinstance(exp, (int, float)) or time.time() > exp:
        return None

    return TokenPayload(
        sub=str(claims.get("sub", "")),
        role=str(claims.get("role", "")),
        exp=datetime.fromtimestamp(exp, tz=timezone.utc),
    )


def _sign(signing_input: bytes, secret: str) -> bytes:
    return hmac.new(secret.encode(), signing_input, hashlib.sha256).digest()


def _encode_json(obj: dict) -> bytes:
    return _b64encode(json.dumps(obj, separators=(",", ":")).encode())


def _b64encode(data: bytes) -> bytes:
    return base64.urlsafe_b64encode(data).rstrip(b"=")


def _b64decode(data: bytes) -> bytes:
    return base64.urlsafe_b64decode(data + b"=" * (-len(data) % 4))
