"""Type definitions for padsync."""

from dataclasses import dataclass, field
from datetime import timedelta


# Protocol constants
APP_TAG = "lifePAD"
PROTOCOL_VERSION = 1
SALT_SIZE = 16
KEY_SIZE = 32
NONCE_SIZE = 12
TAG_SIZE = 16

# Key derivation constants
PBKDF2_ITERATIONS = 150_000
MIN_PASSPHRASE_LENGTH = 8

# Replication constants
MAX_EVENTS = 1000
MAX_PROCESSED_KEYS = 1000

# Negotiation constants (seconds)
GATHERING_TIMEOUT = 30.0
DISCONNECT_GRACE = 5.0
CURSOR_INTERVAL = 0.05

# Reason reported when the peer's envelope fails authentication
WRONG_PASSPHRASE_REASON = "Key mismatch - wrong passphrase"


@dataclass
class SyncConfig:
    """Configuration for a synchronization client."""

    app_tag: str = APP_TAG
    """Product tag carried in signaling blobs."""

    gathering_timeout: float = GATHERING_TIMEOUT
    """Seconds to wait for local candidate gathering."""

    disconnect_grace: float = DISCONNECT_GRACE
    """Seconds a transport may stay DISCONNECTED before the session ends."""

    cursor_interval: float = CURSOR_INTERVAL
    """Minimum seconds between outbound cursor updates."""

    max_events: int = MAX_EVENTS
    """Event log capacity."""

    max_processed_keys: int = MAX_PROCESSED_KEYS
    """Capacity of the inbound dedup set."""

    stroke_cache_ttl: timedelta = field(default_factory=lambda: timedelta(minutes=5))
    """How long a StrokeBegin is kept when its StrokeEnd never arrives."""

    stroke_cache_capacity: int = 256
    """Maximum number of open remote strokes."""

    max_buffered_amount: int = 1024 * 1024
    """Outbound bytes queued in the transport before backpressure applies."""

    @classmethod
    def default(cls) -> "SyncConfig":
        """Creates the default configuration."""
        return cls()

    @classmethod
    def for_testing(cls) -> "SyncConfig":
        """Creates a configuration with short timeouts for tests."""
        return cls(
            gathering_timeout=1.0,
            disconnect_grace=0.05,
            cursor_interval=0.0,
        )


# Exception types
class PadSyncError(Exception):
    """Base exception for padsync errors."""
    pass


class InvalidInputError(PadSyncError):
    """Invalid passphrase or salt."""
    pass


class InvalidBlobError(PadSyncError):
    """Malformed or mismatched signaling blob."""
    pass


class GatheringTimeoutError(PadSyncError):
    """Local candidate gathering did not complete in time."""

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"Candidate gathering timed out after {timeout:g}s")


class AuthenticationFailureError(PadSyncError):
    """Envelope failed authentication (treated as a wrong passphrase)."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message)


class InvalidEnvelopeError(AuthenticationFailureError):
    """Envelope could not be parsed."""
    pass


class ChannelNotOpenError(PadSyncError):
    """Attempted to send while the channel is not usable."""

    def __init__(self) -> None:
        super().__init__("Data channel not open")


class TransportFailureError(PadSyncError):
    """The underlying transport failed or closed."""
    pass


class SessionStateError(PadSyncError):
    """Operation is not valid in the current session state."""
    pass


class MessageFormatError(PadSyncError):
    """Decrypted payload is not a well-formed message."""
    pass
