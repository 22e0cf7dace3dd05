"""
padsync client for passphrase-secured collaborative drawing.

The SyncClient provides a high-level API for hosting or joining a session
and for recording local drawing input so that it reaches the peer.
"""

import logging
from typing import Callable, Optional

from .handshake import Role
from .messages import Brush, Clear, DrawEvent, StrokeBegin, StrokeEnd, StrokePoint
from .names import generate_name
from .render import Renderer
from .replication import Replicator, StrokeBuilder
from .session import Session
from .signaling import ANSWER, OFFER, encode_blob, parse_blob
from .transport import Transport
from .types import SessionStateError, SyncConfig
from .keys import validate_passphrase

logger = logging.getLogger(__name__)

TransportFactory = Callable[[], Transport]


class SyncClient:
    """
    High-level client for one drawing surface.

    The SyncClient provides methods for:
    - Creating an offer (host) or an answer (joiner)
    - Applying the joiner's answer (host)
    - Recording local strokes, with live replication once connected
    - Sending the local cursor position
    - Disconnecting

    Example usage:
        ```python
        host = SyncClient(renderer, transport_factory)
        offer_text = await host.create_offer("correcthorsebattery")

        # On the other device:
        answer_text = await joiner.create_answer("correcthorsebattery", offer_text)

        # Back on the host:
        await host.apply_answer(answer_text)

        event = await host.begin_stroke(120, 80, brush=Brush(color="#222222", size=4))
        ```
    """

    def __init__(
        self,
        renderer: Renderer,
        transport_factory: TransportFactory,
        config: Optional[SyncConfig] = None,
        name: Optional[str] = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            renderer: The local drawing surface.
            transport_factory: Creates a fresh Transport for each session.
            config: Optional configuration (default: SyncConfig.default()).
            name: Display name shown to the peer (default: generated).
        """
        self.config = config or SyncConfig.default()
        self.renderer = renderer
        self.transport_factory = transport_factory
        self.name = name or generate_name()
        self.replicator = Replicator(
            renderer,
            max_events=self.config.max_events,
            max_processed=self.config.max_processed_keys,
            stroke_ttl=self.config.stroke_cache_ttl,
            stroke_capacity=self.config.stroke_cache_capacity,
        )
        self.strokes = StrokeBuilder(renderer)
        self.last_disconnect_reason: Optional[str] = None
        self._session: Optional[Session] = None

    @property
    def session(self) -> Optional[Session]:
        """The current session, if any."""
        return self._session

    @property
    def is_connected(self) -> bool:
        """Whether a session is active (handshake complete)."""
        return self._session is not None and self._session.is_active

    @property
    def remote_name(self) -> Optional[str]:
        """The peer's display name, once the handshake has completed."""
        return self._session.remote_name if self._session is not None else None

    # MARK: - Connecting

    async def create_offer(self, passphrase: str) -> str:
        """
        Start hosting a session.

        Any existing session is closed first.

        Args:
            passphrase: Shared passphrase (at least 8 characters).

        Returns:
            Offer text to send to the joiner out-of-band.

        Raises:
            InvalidInputError: If the passphrase is rejected.
            GatheringTimeoutError: If the transport could not gather candidates in time.
        """
        passphrase = validate_passphrase(passphrase)
        await self.disconnect("Starting a new session")

        session = self._new_session(Role.HOST)
        blob = await session.start_as_host(passphrase)
        return encode_blob(blob)

    async def apply_answer(self, answer_text: str) -> None:
        """
        Apply the joiner's answer to the pending offer.

        Raises:
            InvalidBlobError: If the answer text is malformed or mismatched.
            SessionStateError: If no offer is pending.
        """
        answer = parse_blob(answer_text, ANSWER, app=self.config.app_tag)

        session = self._session
        if session is None or session.role != Role.HOST:
            raise SessionStateError("No active session - please create a fresh offer first")

        await session.accept_answer(answer)

    async def create_answer(self, passphrase: str, offer_text: str) -> str:
        """
        Join a session from the host's offer.

        Args:
            passphrase: Shared passphrase (at least 8 characters).
            offer_text: Offer text received from the host.

        Returns:
            Answer text to send back to the host.

        Raises:
            InvalidInputError: If the passphrase is rejected.
            InvalidBlobError: If the offer text is malformed or mismatched.
        """
        passphrase = validate_passphrase(passphrase)
        offer = parse_blob(offer_text, OFFER, app=self.config.app_tag)
        await self.disconnect("Starting a new session")

        session = self._new_session(Role.JOINER)
        blob = await session.start_as_joiner(passphrase, offer)
        return encode_blob(blob)

    async def wait_connected(self, timeout: Optional[float] = None) -> None:
        """Wait for the current session's handshake to complete."""
        if self._session is None:
            raise SessionStateError("No active session")
        await self._session.wait_active(timeout)

    async def disconnect(self, reason: str = "Disconnected") -> None:
        """End the current session. Does nothing when already disconnected."""
        if self._session is not None:
            self._session.close(reason)

    # MARK: - Drawing

    async def record(self, event: DrawEvent) -> DrawEvent:
        """
        Record a local event and send it if the session is active.

        The event is always appended to the log so a later snapshot is accurate.
        """
        self.replicator.record(event)

        session = self._session
        if session is not None and session.is_active:
            await session.send_event(event)

        return event

    async def begin_stroke(
        self,
        x: float,
        y: float,
        pressure: float = 1.0,
        brush: Optional[Brush] = None,
    ) -> StrokeBegin:
        """Start a stroke at pixel (x, y)."""
        brush = brush or Brush(color="#000000", size=4)
        return await self.record(self.strokes.begin(x, y, pressure, brush))

    async def add_point(self, x: float, y: float, pressure: float = 1.0) -> Optional[StrokePoint]:
        """Extend the current stroke. Returns None when no stroke is open."""
        event = self.strokes.point(x, y, pressure)
        if event is None:
            return None
        return await self.record(event)

    async def end_stroke(self) -> Optional[StrokeEnd]:
        """Finish the current stroke. Returns None when no stroke is open."""
        event = self.strokes.end()
        if event is None:
            return None
        return await self.record(event)

    async def clear_canvas(self) -> Clear:
        """Record a clear of the whole surface."""
        return await self.record(self.strokes.clear())

    async def send_cursor(self, x: float, y: float) -> bool:
        """
        Share the local pointer position (pixel coordinates).

        Returns:
            True if an update was sent.
        """
        session = self._session
        if session is None or not session.is_active:
            return False

        width, height = self.renderer.size()
        if not width or not height:
            return False

        return await session.send_cursor(x / width, y / height)

    # MARK: - Private Helpers

    def _new_session(self, role: Role) -> Session:
        session = Session(
            role,
            self.transport_factory(),
            self.replicator,
            config=self.config,
            local_name=self.name,
            on_closed=self._on_session_closed,
        )
        self._session = session
        return session

    def _on_session_closed(self, session: Session, reason: str) -> None:
        if self._session is session:
            self._session = None
            self.last_disconnect_reason = reason
            logger.info("Disconnected: %s", reason)
