"""Salted SHA-256 password hashing."""

from __future__ import annotations

import hashlib
import hmac
import secrets


def generate_salt(length: int) -> str:
    """Return ``length`` random bytes encoded as lower-case hex."""
    if length < 0:
        raise ValueError("salt length must not be negative")
    return secrets.token_hex(length)


def hash_password_with_salt(password: str, salt: str) -> str:
    """Return the hex SHA-256 digest of the password followed by the salt."""
    return hashlib.sha256((password + salt).encode("utf-8")).hexdigest()


def verify_password_with_salt(password: str, salt: str, hashed_password: str) -> bool:
    """Tell whether the password and salt hash to ``hashed_password``."""
    return hmac.compare_digest(hash_password_with_salt(password, salt), hashed_password)