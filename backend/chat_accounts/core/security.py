"""Security helpers for credential hashing and single-use token generation."""
from __future__ import annotations

import base64
import secrets

from passlib.context import CryptContext

from .config import check_token_length, get_settings


_password_context = CryptContext(schemes=["argon2"], deprecated="auto")

_TOKEN_ENTROPY_BYTES = 64


class PasswordHasher:
    """Hash and verify user passwords using Argon2id."""

    @staticmethod
    def hash(password: str) -> str:
        return _password_context.hash(password)

    @staticmethod
    def verify(password: str, hashed: str) -> bool:
        return _password_context.verify(password, hashed)


class TokenIssuer:
    """Mint opaque tokens for password-reset and email-confirmation links.

    Tokens are drawn from the operating system CSPRNG, base32 encoded and cut
    to a fixed length, which leaves 5 bits of entropy per character (320 bits
    at the default length of 64). Uniqueness is enforced by the unique index
    on the column the caller stores the token in.
    """

    def __init__(self, length: int | None = None) -> None:
        self.length = check_token_length(length if length is not None else get_settings().token_length)

    def issue(self) -> str:
        raw = secrets.token_bytes(_TOKEN_ENTROPY_BYTES)
        return base64.b32encode(raw).decode("ascii")[: self.length]


def issue_token() -> str:
    """Return a fresh token using the configured length."""

    return TokenIssuer().issue()
