"""Offer/answer blobs exchanged out-of-band (copy-paste) instead of a signaling server."""

import base64
import binascii
import json
from dataclasses import dataclass
from typing import Any

from .types import APP_TAG, PROTOCOL_VERSION, SALT_SIZE, InvalidBlobError

OFFER = "offer"
ANSWER = "answer"


@dataclass
class SignalingBlob:
    """An offer or answer blob.

    Wire format (JSON):
        {"app": "lifePAD", "v": 1, "type": "offer"|"answer",
         "sdp": "<transport description>", "saltB64": "<base64 salt>"}
    """

    type: str
    sdp: str
    salt: bytes  # 16 bytes
    app: str = APP_TAG
    version: int = PROTOCOL_VERSION

    def to_dict(self) -> dict:
        """Return the wire representation."""
        return {
            "app": self.app,
            "v": self.version,
            "type": self.type,
            "sdp": self.sdp,
            "saltB64": base64.b64encode(self.salt).decode("ascii"),
        }


def build_offer(sdp: str, salt: bytes, app: str = APP_TAG) -> SignalingBlob:
    """Build the host's offer blob."""
    return SignalingBlob(type=OFFER, sdp=sdp, salt=bytes(salt), app=app)


def build_answer(sdp: str, echoed_salt: bytes, app: str = APP_TAG) -> SignalingBlob:
    """Build the joiner's answer blob, echoing the offer's salt."""
    return SignalingBlob(type=ANSWER, sdp=sdp, salt=bytes(echoed_salt), app=app)


def encode_blob(blob: SignalingBlob) -> str:
    """Encode a blob as indented JSON text for the user to copy."""
    return json.dumps(blob.to_dict(), indent=2)


def validate(raw: Any, expected_type: str, app: str = APP_TAG) -> SignalingBlob:
    """
    Validate a decoded blob against the expected direction.

    Args:
        raw: Decoded JSON value
        expected_type: "offer" or "answer"
        app: Expected product tag

    Returns:
        The validated SignalingBlob

    Raises:
        InvalidBlobError: If any field is missing or does not match
    """
    if not isinstance(raw, dict):
        raise InvalidBlobError("Connection data must be a JSON object")

    if raw.get("app") != app:
        raise InvalidBlobError(f"Unexpected app tag: {raw.get('app')!r}")

    version = raw.get("v")
    if isinstance(version, bool) or version != PROTOCOL_VERSION:
        raise InvalidBlobError(f"Unsupported version: {version!r}")

    if raw.get("type") != expected_type:
        raise InvalidBlobError(
            f"Expected {expected_type} data, got {raw.get('type')!r}"
        )

    sdp = raw.get("sdp")
    if not isinstance(sdp, str) or not sdp:
        raise InvalidBlobError("Missing transport description")

    salt_b64 = raw.get("saltB64")
    if not isinstance(salt_b64, str):
        raise InvalidBlobError("Missing salt")

    try:
        salt = base64.b64decode(salt_b64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidBlobError("Salt is not valid base64") from e

    if len(salt) != SALT_SIZE:
        raise InvalidBlobError(f"Salt must be {SALT_SIZE} bytes, got {len(salt)}")

    return SignalingBlob(type=expected_type, sdp=sdp, salt=salt, app=app, version=version)


def parse_blob(text: str, expected_type: str, app: str = APP_TAG) -> SignalingBlob:
    """
    Parse blob text pasted by the user.

    Args:
        text: JSON text
        expected_type: "offer" or "answer"
        app: Expected product tag

    Returns:
        The validated SignalingBlob

    Raises:
        InvalidBlobError: If the text is not valid JSON or fails validation
    """
    if not text or not text.strip():
        raise InvalidBlobError("Please paste the connection data")

    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidBlobError("Invalid connection data format") from e

    return validate(raw, expected_type, app=app)
