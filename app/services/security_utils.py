from __future__ import annotations

import base64
import hashlib
import hmac
import os
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

PBKDF2_ALGORITHM = "sha256"
PBKDF2_ITERATIONS = 390_000
PBKDF2_SALT_BYTES = 16
PASSWORD_HASH_SCHEME = "pbkdf2_sha256"


class TokenExpiredError(Exception):
    pass


class InvalidTokenError(Exception):
    pass


def hash_password(password: str) -> str:
    salt = os.urandom(PBKDF2_SALT_BYTES)
    digest = _derive(password, salt, PBKDF2_ITERATIONS)
    return "$".join(
        [
            PASSWORD_HASH_SCHEME,
            str(PBKDF2_ITERATIONS),
            _b64url_encode(salt),
            _b64url_encode(digest),
        ],
    )


def verify_password(password: str, stored_hash: str) -> bool:
    parts = stored_hash.split("$", maxsplit=3)
    if len(parts) != 4 or parts[0] != PASSWORD_HASH_SCHEME:
        return False

    try:
        iterations = int(parts[1])
        salt = _b64url_decode(parts[2])
        expected_digest = _b64url_decode(parts[3])
    except (ValueError, TypeError):
        return False

    return hmac.compare_digest(_derive(password, salt, iterations), expected_digest)


def create_access_token(
    *,
    claims: dict[str, Any],
    secret_key: str,
    algorithm: str,
    ttl_minutes: int,
) -> tuple[str, int]:
    issued_at = datetime.now(UTC)
    expires_at = issued_at + timedelta(minutes=ttl_minutes)
    payload = {**claims, "iat": issued_at, "exp": expires_at}
    token = jwt.encode(payload, secret_key, algorithm=algorithm)
    return token, ttl_minutes * 60


def decode_access_token(token: str, *, secret_key: str, algorithm: str) -> dict[str, Any]:
    try:
        return jwt.decode(token, secret_key, algorithms=[algorithm])
    except jwt.ExpiredSignatureError as exc:
        raise TokenExpiredError("Token has expired.") from exc
    except jwt.InvalidTokenError as exc:
        raise InvalidTokenError("Invalid token.") from exc


def _derive(password: str, salt: bytes, iterations: int) -> bytes:
    return hashlib.pbkdf2_hmac(PBKDF2_ALGORITHM, password.encode("utf-8"), salt, iterations)


def _b64url_encode(value: bytes) -> str:
    return base64.urlsafe_b64encode(value).decode("ascii").rstrip("=")


def _b64url_decode(value: str) -> bytes:
    padding_size = (-len(value)) % 4
    return base64.urlsafe_b64decode(f"{value}{'=' * padding_size}".encode("ascii"))
