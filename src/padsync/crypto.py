"""Authenticated encryption of session payloads."""

import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .types import (
    PROTOCOL_VERSION,
    KEY_SIZE,
    NONCE_SIZE,
    AuthenticationFailureError,
    InvalidInputError,
)
from .envelope import Envelope


def encrypt_payload(key: bytes, plaintext: bytes) -> Envelope:
    """
    Encrypt a payload under the session key.

    A fresh random 96-bit IV is generated for every call.

    Args:
        key: 32-byte session key
        plaintext: Payload bytes

    Returns:
        Envelope containing the IV and ciphertext (with tag)
    """
    if len(key) != KEY_SIZE:
        raise InvalidInputError(f"Key must be {KEY_SIZE} bytes, got {len(key)}")

    iv = os.urandom(NONCE_SIZE)
    cipher = AESGCM(key)
    ciphertext = cipher.encrypt(iv, plaintext, None)

    return Envelope(version=PROTOCOL_VERSION, iv=iv, ciphertext=ciphertext)


def decrypt_payload(key: bytes, envelope: Envelope) -> bytes:
    """
    Decrypt an envelope under the session key.

    Args:
        key: 32-byte session key
        envelope: Envelope received from the peer

    Returns:
        Decrypted payload bytes

    Raises:
        AuthenticationFailureError: If the key is wrong or the envelope was altered
    """
    try:
        cipher = AESGCM(key)
        return cipher.decrypt(envelope.iv, envelope.ciphertext, None)
    except (InvalidTag, ValueError, TypeError) as e:
        raise AuthenticationFailureError() from e
