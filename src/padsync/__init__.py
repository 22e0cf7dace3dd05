"""
padsync - Passphrase-secured peer-to-peer sync for collaborative drawing

Python implementation of the padsync protocol using PBKDF2-SHA256 + AES-256-GCM.
"""

from .keys import derive_key, generate_salt, validate_passphrase
from .crypto import encrypt_payload, decrypt_payload
from .envelope import encode_envelope, decode_envelope, is_envelope, Envelope
from .signaling import (
    SignalingBlob,
    build_offer,
    build_answer,
    encode_blob,
    parse_blob,
    validate,
)
from .messages import (
    Point,
    Brush,
    CanvasInfo,
    StrokeBegin,
    StrokePoint,
    StrokeEnd,
    Clear,
    UnknownEvent,
    Hello,
    HelloAck,
    Snapshot,
    DrawEventMessage,
    Cursor,
    UnknownMessage,
    encode_message,
    decode_message,
)
from .types import (
    APP_TAG,
    PROTOCOL_VERSION,
    PBKDF2_ITERATIONS,
    SyncConfig,
    PadSyncError,
    InvalidInputError,
    InvalidBlobError,
    GatheringTimeoutError,
    AuthenticationFailureError,
    InvalidEnvelopeError,
    ChannelNotOpenError,
    TransportFailureError,
    SessionStateError,
    MessageFormatError,
)
from .storage import (
    EventLog,
    ProcessedKeySet,
    StrokeBeginCache,
)
from .render import Renderer, InMemoryRenderer
from .transport import (
    Transport,
    TransportState,
    TransportEvent,
    TransportEventKind,
    LoopbackNetwork,
    LoopbackTransport,
)
from .handshake import Role, Handshake, HandshakeState
from .replication import Replicator, StrokeBuilder
from .session import Session, SessionState
from .client import SyncClient
from .names import generate_name

__version__ = "0.1.0"

__all__ = [
    # Keys
    "derive_key",
    "generate_salt",
    "validate_passphrase",
    # Crypto
    "encrypt_payload",
    "decrypt_payload",
    # Envelope
    "encode_envelope",
    "decode_envelope",
    "is_envelope",
    "Envelope",
    # Signaling
    "SignalingBlob",
    "build_offer",
    "build_answer",
    "encode_blob",
    "parse_blob",
    "validate",
    # Messages
    "Point",
    "Brush",
    "CanvasInfo",
    "StrokeBegin",
    "StrokePoint",
    "StrokeEnd",
    "Clear",
    "UnknownEvent",
    "Hello",
    "HelloAck",
    "Snapshot",
    "DrawEventMessage",
    "Cursor",
    "UnknownMessage",
    "encode_message",
    "decode_message",
    # Constants
    "APP_TAG",
    "PROTOCOL_VERSION",
    "PBKDF2_ITERATIONS",
    # Config
    "SyncConfig",
    # Errors
    "PadSyncError",
    "InvalidInputError",
    "InvalidBlobError",
    "GatheringTimeoutError",
    "AuthenticationFailureError",
    "InvalidEnvelopeError",
    "ChannelNotOpenError",
    "TransportFailureError",
    "SessionStateError",
    "MessageFormatError",
    # Storage
    "EventLog",
    "ProcessedKeySet",
    "StrokeBeginCache",
    # Rendering
    "Renderer",
    "InMemoryRenderer",
    # Transport
    "Transport",
    "TransportState",
    "TransportEvent",
    "TransportEventKind",
    "LoopbackNetwork",
    "LoopbackTransport",
    # Handshake
    "Role",
    "Handshake",
    "HandshakeState",
    # Replication
    "Replicator",
    "StrokeBuilder",
    # Session
    "Session",
    "SessionState",
    # Client
    "SyncClient",
    # Names
    "generate_name",
]
