"""Passphrase key derivation for padsync sessions."""

import os

from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.hazmat.primitives.hashes import SHA256

from .types import (
    KEY_SIZE,
    MIN_PASSPHRASE_LENGTH,
    PBKDF2_ITERATIONS,
    SALT_SIZE,
    InvalidInputError,
)


def generate_salt() -> bytes:
    """
    Generate a fresh random salt for a new session.

    Returns:
        16 random bytes
    """
    return os.urandom(SALT_SIZE)


def validate_passphrase(passphrase: str) -> str:
    """
    Check a user-supplied passphrase before it is used.

    Args:
        passphrase: Raw passphrase as typed by the user

    Returns:
        The passphrase with surrounding whitespace removed

    Raises:
        InvalidInputError: If the passphrase is empty or too short
    """
    if passphrase is None:
        raise InvalidInputError("Please enter a passphrase")

    cleaned = passphrase.strip()
    if not cleaned:
        raise InvalidInputError("Please enter a passphrase")

    if len(cleaned) < MIN_PASSPHRASE_LENGTH:
        raise InvalidInputError(
            f"Passphrase must be at least {MIN_PASSPHRASE_LENGTH} characters"
        )

    return cleaned


def derive_key(passphrase: str, salt: bytes) -> bytes:
    """
    Derive a 256-bit session key from a passphrase and salt using PBKDF2-SHA256.

    Both peers call this independently; identical inputs always give the
    identical key.

    Args:
        passphrase: Shared passphrase
        salt: 16-byte salt from the offer

    Returns:
        32-byte AES-256-GCM key

    Raises:
        InvalidInputError: If the salt is not 16 bytes
    """
    if not isinstance(salt, (bytes, bytearray)) or len(salt) != SALT_SIZE:
        size = len(salt) if isinstance(salt, (bytes, bytearray)) else type(salt).__name__
        raise InvalidInputError(f"Salt must be {SALT_SIZE} bytes, got {size}")

    kdf = PBKDF2HMAC(
        algorithm=SHA256(),
        length=KEY_SIZE,
        salt=bytes(salt),
        iterations=PBKDF2_ITERATIONS,
    )
    return kdf.derive(passphrase.encode("utf-8"))
