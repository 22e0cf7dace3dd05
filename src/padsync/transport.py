"""
Transport interfaces for the peer-to-peer channel.

This module provides the abstract Transport the session drives (candidate
gathering, description exchange, an ordered reliable message channel) and an
in-process loopback implementation. Implementations can wrap any WebRTC stack.
"""

import asyncio
import json
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from .types import ChannelNotOpenError, TransportFailureError

logger = logging.getLogger(__name__)


class TransportState(Enum):
    """Connection state reported by a transport."""
    NEW = "new"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    FAILED = "failed"
    CLOSED = "closed"


class TransportEventKind(Enum):
    """Kinds of event a transport delivers to its listener."""
    OPEN = "open"
    MESSAGE = "message"
    STATE = "state"


@dataclass
class TransportEvent:
    """One event delivered by a transport."""
    kind: TransportEventKind
    data: Optional[bytes] = None
    state: Optional[TransportState] = None


Listener = Callable[[TransportEvent], None]


class Transport(ABC):
    """Abstract base class for an ordered, reliable, bidirectional channel."""

    @abstractmethod
    def bind(self, listener: Listener) -> None:
        """Register the single listener that receives all transport events."""
        pass

    @abstractmethod
    async def create_local(self) -> str:
        """Create the local description once candidate gathering completes."""
        pass

    @abstractmethod
    async def apply_remote(self, description: str) -> None:
        """Apply the peer's description."""
        pass

    @abstractmethod
    def send(self, data: bytes) -> None:
        """
        Send one message.

        Raises:
            ChannelNotOpenError: If the channel is not open
        """
        pass

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """Whether the message channel is currently usable."""
        pass

    @property
    def buffered_amount(self) -> int:
        """Bytes queued for sending but not yet flushed."""
        return 0

    @abstractmethod
    def close(self) -> None:
        """Close the channel. Closing twice is a no-op."""
        pass


# ============================================================================
# Loopback
# ============================================================================


class LoopbackNetwork:
    """Registry that lets loopback transports find each other by description."""

    def __init__(self, gathering_delay: float = 0.0) -> None:
        self.gathering_delay = gathering_delay
        self._endpoints: dict[str, "LoopbackTransport"] = {}

    def create_transport(self) -> "LoopbackTransport":
        """Creates a transport attached to this network."""
        return LoopbackTransport(self, gathering_delay=self.gathering_delay)

    def register(self, transport: "LoopbackTransport") -> None:
        self._endpoints[transport.endpoint_id] = transport

    def unregister(self, transport: "LoopbackTransport") -> None:
        self._endpoints.pop(transport.endpoint_id, None)

    def lookup(self, endpoint_id: str) -> Optional["LoopbackTransport"]:
        return self._endpoints.get(endpoint_id)


class LoopbackTransport(Transport):
    """In-process transport with in-order delivery through the event loop."""

    def __init__(self, network: LoopbackNetwork, gathering_delay: float = 0.0) -> None:
        self.network = network
        self.gathering_delay = gathering_delay
        self.endpoint_id = uuid.uuid4().hex
        self.state = TransportState.NEW
        self.buffered = 0
        self.sent: list[bytes] = []
        self._listener: Optional[Listener] = None
        self._peer: Optional["LoopbackTransport"] = None
        self._local_ready = False
        self._open = False

    def bind(self, listener: Listener) -> None:
        self._listener = listener

    async def create_local(self) -> str:
        if self.state == TransportState.CLOSED:
            raise TransportFailureError("Transport is closed")

        self.state = TransportState.CONNECTING
        if self.gathering_delay:
            await asyncio.sleep(self.gathering_delay)

        self._local_ready = True
        self.network.register(self)
        self._maybe_open()
        return json.dumps({"loopback": self.endpoint_id})

    async def apply_remote(self, description: str) -> None:
        if self.state == TransportState.CLOSED:
            raise TransportFailureError("Transport is closed")

        try:
            endpoint_id = json.loads(description)["loopback"]
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            raise TransportFailureError("Unrecognized transport description") from e

        peer = self.network.lookup(endpoint_id)
        if peer is None or peer is self:
            raise TransportFailureError(f"Unknown endpoint: {endpoint_id}")

        self._peer = peer
        self._maybe_open()

    def send(self, data: bytes) -> None:
        if not self.is_open:
            raise ChannelNotOpenError()
        self.sent.append(data)
        self._peer._emit(TransportEvent(TransportEventKind.MESSAGE, data=data))

    @property
    def is_open(self) -> bool:
        return self._open

    @property
    def buffered_amount(self) -> int:
        return self.buffered

    def close(self) -> None:
        if self.state == TransportState.CLOSED:
            return

        was_open = self._open
        self._open = False
        self.state = TransportState.CLOSED
        self.network.unregister(self)

        peer = self._peer
        self._peer = None
        if was_open and peer is not None and peer._open:
            peer._open = False
            peer.state = TransportState.CLOSED
            peer._emit(TransportEvent(TransportEventKind.STATE, state=TransportState.CLOSED))

    def simulate_state(self, state: TransportState) -> None:
        """Report a connection state change as the underlying stack would."""
        self.state = state
        if state in (TransportState.FAILED, TransportState.CLOSED):
            self._open = False
        self._emit(TransportEvent(TransportEventKind.STATE, state=state))

    def _maybe_open(self) -> None:
        peer = self._peer
        if peer is None or peer._peer is not self:
            return
        if not (self._local_ready and peer._local_ready):
            return

        for end in (self, peer):
            end._open = True
            end.state = TransportState.CONNECTED
            end._emit(TransportEvent(TransportEventKind.STATE, state=TransportState.CONNECTED))
            end._emit(TransportEvent(TransportEventKind.OPEN))
        logger.debug("Loopback channel open between %s and %s", self.endpoint_id, peer.endpoint_id)

    def _emit(self, event: TransportEvent) -> None:
        if self._listener is None:
            return
        asyncio.get_running_loop().call_soon(self._listener, event)
