"""Envelope encoding and decoding for the padsync wire protocol."""

import base64
import binascii
import json
from dataclasses import dataclass

from .types import PROTOCOL_VERSION, NONCE_SIZE, InvalidEnvelopeError


@dataclass
class Envelope:
    """Encrypted wire unit sent over an open channel."""
    version: int
    iv: bytes  # 12 bytes
    ciphertext: bytes  # variable (payload + 16-byte tag)


def encode_envelope(envelope: Envelope) -> bytes:
    """
    Encode an envelope to bytes.

    Format (compact UTF-8 JSON):
        {"v": 1, "ivB64": "<base64 iv>", "ctB64": "<base64 ciphertext>"}

    Args:
        envelope: Envelope to encode

    Returns:
        Encoded bytes
    """
    obj = {
        "v": envelope.version,
        "ivB64": base64.b64encode(envelope.iv).decode("ascii"),
        "ctB64": base64.b64encode(envelope.ciphertext).decode("ascii"),
    }
    return json.dumps(obj, separators=(",", ":")).encode("utf-8")


def decode_envelope(data: bytes) -> Envelope:
    """
    Decode bytes into an envelope.

    Args:
        data: Encoded envelope bytes (or str)

    Returns:
        Decoded Envelope

    Raises:
        InvalidEnvelopeError: If data is invalid
    """
    try:
        if isinstance(data, (bytes, bytearray)):
            data = bytes(data).decode("utf-8")
        obj = json.loads(data)
    except (UnicodeDecodeError, json.JSONDecodeError, TypeError) as e:
        raise InvalidEnvelopeError("Envelope is not valid JSON") from e

    if not isinstance(obj, dict):
        raise InvalidEnvelopeError("Envelope must be a JSON object")

    version = obj.get("v")
    if version != PROTOCOL_VERSION or isinstance(version, bool):
        raise InvalidEnvelopeError(f"Unknown version: {version}")

    iv_b64 = obj.get("ivB64")
    ct_b64 = obj.get("ctB64")
    if not isinstance(iv_b64, str) or not isinstance(ct_b64, str):
        raise InvalidEnvelopeError("Envelope is missing ivB64 or ctB64")

    try:
        iv = base64.b64decode(iv_b64, validate=True)
        ciphertext = base64.b64decode(ct_b64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidEnvelopeError("Envelope fields are not valid base64") from e

    if len(iv) != NONCE_SIZE:
        raise InvalidEnvelopeError(f"IV must be {NONCE_SIZE} bytes, got {len(iv)}")

    return Envelope(version=version, iv=iv, ciphertext=ciphertext)


def is_envelope(data: bytes) -> bool:
    """
    Check if data looks like a padsync envelope.

    Args:
        data: Bytes to check

    Returns:
        True if data appears to be a valid envelope
    """
    try:
        decode_envelope(data)
    except InvalidEnvelopeError:
        return False
    return True
