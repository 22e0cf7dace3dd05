"""
Session aggregate for one peer-to-peer collaboration.

A Session owns the derived key, the transport, and the handshake for a single
offer/answer exchange. It is created when an offer or answer is built and is
closed on disconnect or on any session-fatal failure; a closed Session is
never reused.
"""

import asyncio
import logging
import time
from enum import Enum
from typing import Callable, Optional

from .crypto import encrypt_payload, decrypt_payload
from .envelope import encode_envelope, decode_envelope
from .handshake import Handshake, Role
from .keys import derive_key, generate_salt, validate_passphrase
from .messages import (
    Cursor,
    DrawEvent,
    DrawEventMessage,
    Hello,
    HelloAck,
    Message,
    Snapshot,
    UnknownMessage,
    decode_message,
    encode_message,
)
from .replication import Replicator, now_ms
from .signaling import OFFER, SignalingBlob, build_answer, build_offer
from .transport import Transport, TransportEvent, TransportEventKind, TransportState
from .types import (
    WRONG_PASSPHRASE_REASON,
    AuthenticationFailureError,
    ChannelNotOpenError,
    GatheringTimeoutError,
    InvalidBlobError,
    MessageFormatError,
    PadSyncError,
    SessionStateError,
    SyncConfig,
    TransportFailureError,
)

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """Lifecycle of a session."""
    NEW = "new"
    NEGOTIATING = "negotiating"
    CONNECTING = "connecting"
    HANDSHAKING = "handshaking"
    ACTIVE = "active"
    CLOSED = "closed"


ClosedCallback = Callable[["Session", str], None]


class Session:
    """
    One collaboration session between a host and a joiner.

    Transport events are queued and handled one at a time by a single pump
    task, which is the only writer of handshake and replication state.

    Example usage:
        ```python
        host = Session(Role.HOST, transport, replicator)
        offer = await host.start_as_host("correcthorsebattery")
        # ... send encode_blob(offer) to the joiner, receive their answer ...
        await host.accept_answer(answer)
        await host.wait_active(timeout=10)
        ```
    """

    def __init__(
        self,
        role: Role,
        transport: Transport,
        replicator: Replicator,
        config: Optional[SyncConfig] = None,
        local_name: Optional[str] = None,
        on_closed: Optional[ClosedCallback] = None,
    ) -> None:
        self.role = role
        self.transport = transport
        self.replicator = replicator
        self.config = config or SyncConfig()
        self.handshake = Handshake(role, local_name)
        self.state = SessionState.NEW
        self.salt: Optional[bytes] = None
        self.close_reason: Optional[str] = None
        self._key: Optional[bytes] = None
        self._on_closed = on_closed
        self._inbox: Optional[asyncio.Queue] = None
        self._pump_task: Optional[asyncio.Task] = None
        self._grace_task: Optional[asyncio.Task] = None
        self._transport_state = TransportState.NEW
        self._snapshot_sent = False
        self._last_cursor_sent: Optional[float] = None
        self._active = asyncio.Event()
        self._closed = asyncio.Event()

    # MARK: - Properties

    @property
    def is_active(self) -> bool:
        """Whether the handshake completed and the session is still open."""
        return self.state == SessionState.ACTIVE

    @property
    def is_closed(self) -> bool:
        return self.state == SessionState.CLOSED

    @property
    def remote_name(self) -> Optional[str]:
        """Display name the peer sent during the handshake."""
        return self.handshake.remote_name

    # MARK: - Negotiation

    async def start_as_host(self, passphrase: str) -> SignalingBlob:
        """
        Derive the key and produce the offer blob.

        Args:
            passphrase: Shared passphrase (at least 8 characters)

        Returns:
            The offer blob to hand to the joiner

        Raises:
            InvalidInputError: If the passphrase is rejected
            GatheringTimeoutError: If candidate gathering does not finish in time
        """
        self._require(Role.HOST, SessionState.NEW)
        passphrase = validate_passphrase(passphrase)
        self.state = SessionState.NEGOTIATING

        try:
            self.salt = generate_salt()
            self._key = await asyncio.to_thread(derive_key, passphrase, self.salt)
            self._bind()
            sdp = await self._gather()
        except (Exception, asyncio.CancelledError) as e:
            self.close(f"Failed to create offer: {e}")
            raise

        logger.info("Offer ready")
        return build_offer(sdp, self.salt, app=self.config.app_tag)

    async def accept_answer(self, answer: SignalingBlob) -> None:
        """
        Apply the joiner's answer to a pending offer.

        Raises:
            SessionStateError: If there is no pending offer
            InvalidBlobError: If the answer does not echo this offer's salt
        """
        if self.role != Role.HOST or self.state != SessionState.NEGOTIATING:
            raise SessionStateError(
                f"Session is in wrong state ({self.state.value}). Create a fresh offer and try again."
            )

        if answer.salt != self.salt:
            raise InvalidBlobError("Answer does not belong to this offer")

        self.state = SessionState.CONNECTING
        try:
            await self.transport.apply_remote(answer.sdp)
        except (Exception, asyncio.CancelledError) as e:
            self.close(f"Failed to apply answer: {e}")
            raise

        logger.info("Answer applied; waiting for channel")

    async def start_as_joiner(self, passphrase: str, offer: SignalingBlob) -> SignalingBlob:
        """
        Derive the key from the offer's salt and produce the answer blob.

        Args:
            passphrase: Shared passphrase (at least 8 characters)
            offer: Validated offer blob from the host

        Returns:
            The answer blob to hand back to the host
        """
        self._require(Role.JOINER, SessionState.NEW)
        passphrase = validate_passphrase(passphrase)
        if offer.type != OFFER:
            raise InvalidBlobError(f"Expected offer data, got {offer.type!r}")

        self.state = SessionState.NEGOTIATING
        try:
            self.salt = offer.salt
            self._key = await asyncio.to_thread(derive_key, passphrase, self.salt)
            self._bind()
            await self.transport.apply_remote(offer.sdp)
            sdp = await self._gather()
        except (Exception, asyncio.CancelledError) as e:
            self.close(f"Failed to create answer: {e}")
            raise

        self.state = SessionState.CONNECTING
        logger.info("Answer ready")
        return build_answer(sdp, self.salt, app=self.config.app_tag)

    async def _gather(self) -> str:
        try:
            return await asyncio.wait_for(
                self.transport.create_local(), self.config.gathering_timeout
            )
        except asyncio.TimeoutError as e:
            raise GatheringTimeoutError(self.config.gathering_timeout) from e

    # MARK: - Sending

    async def send_message(self, message: Message) -> None:
        """
        Encrypt and send one message.

        Raises:
            ChannelNotOpenError: If the session or channel is not usable
        """
        if self.state == SessionState.CLOSED or self._key is None or not self.transport.is_open:
            raise ChannelNotOpenError()

        envelope = encrypt_payload(self._key, encode_message(message))
        self.transport.send(encode_envelope(envelope))

    async def send_event(self, event: DrawEvent) -> bool:
        """
        Send a drawing event once the handshake is complete.

        Returns:
            True if the event was sent, False if the session is not active yet
        """
        if not self.is_active:
            return False

        if self.transport.buffered_amount > self.config.max_buffered_amount:
            logger.warning(
                "Transport backlog at %d bytes; sending event anyway",
                self.transport.buffered_amount,
            )

        await self.send_message(DrawEventMessage(event=event))
        return True

    async def send_cursor(self, x: float, y: float) -> bool:
        """
        Send a normalized cursor position, throttled and dropped under backpressure.

        Returns:
            True if an update was sent
        """
        if not self.is_active:
            return False

        now = time.monotonic()
        if (
            self._last_cursor_sent is not None
            and now - self._last_cursor_sent < self.config.cursor_interval
        ):
            return False

        if self.transport.buffered_amount > self.config.max_buffered_amount:
            return False

        self._last_cursor_sent = now
        await self.send_message(Cursor(x=x, y=y, t=now_ms()))
        return True

    # MARK: - Waiting

    async def wait_active(self, timeout: Optional[float] = None) -> None:
        """Wait until the handshake completes."""
        await asyncio.wait_for(self._active.wait(), timeout)

    async def wait_closed(self, timeout: Optional[float] = None) -> None:
        """Wait until the session is closed."""
        await asyncio.wait_for(self._closed.wait(), timeout)

    # MARK: - Teardown

    def close(self, reason: str = "Disconnected") -> None:
        """
        Tear down the session. Closing an already closed session is a no-op.

        Args:
            reason: Human-readable reason reported to the closed callback
        """
        if self.state == SessionState.CLOSED:
            return

        self.state = SessionState.CLOSED
        self.close_reason = reason
        self._key = None

        current = asyncio.current_task() if _loop_running() else None
        for task in (self._grace_task, self._pump_task):
            if task is not None and task is not current and not task.done():
                task.cancel()

        self.transport.close()
        self.replicator.renderer.hide_remote_cursor()
        self.replicator.reset_remote_state()

        self._closed.set()
        logger.info("Session closed: %s", reason)

        if self._on_closed is not None:
            self._on_closed(self, reason)

    # MARK: - Event pump

    def _bind(self) -> None:
        self._inbox = asyncio.Queue()
        self.transport.bind(self._on_transport_event)
        self._pump_task = asyncio.ensure_future(self._pump())

    def _on_transport_event(self, event: TransportEvent) -> None:
        if self.state != SessionState.CLOSED and self._inbox is not None:
            self._inbox.put_nowait(event)

    async def _pump(self) -> None:
        while self.state != SessionState.CLOSED:
            event = await self._inbox.get()
            if self.state == SessionState.CLOSED:
                break
            try:
                await self._dispatch(event)
            except AuthenticationFailureError as e:
                logger.error("Decryption failed: %s", e)
                self.handshake.fail()
                self.close(WRONG_PASSPHRASE_REASON)
            except PadSyncError as e:
                logger.error("Session failure: %s", e)
                self.close(str(e))
            except Exception as e:
                logger.exception("Unexpected error handling %s event", event.kind.value)
                self.close(f"Unexpected error: {e}")

    async def _dispatch(self, event: TransportEvent) -> None:
        if event.kind == TransportEventKind.OPEN:
            await self._handle_open()
        elif event.kind == TransportEventKind.MESSAGE:
            await self._handle_data(event.data)
        elif event.kind == TransportEventKind.STATE:
            self._handle_state(event.state)

    async def _handle_open(self) -> None:
        logger.info("Channel open (%s)", self.role.value)
        self.state = SessionState.HANDSHAKING
        hello = self.handshake.on_channel_open()
        if hello is not None:
            await self.send_message(hello)

    def _handle_state(self, state: TransportState) -> None:
        self._transport_state = state
        logger.debug("Transport state: %s", state.value)

        if state == TransportState.CONNECTED:
            if self._grace_task is not None and not self._grace_task.done():
                self._grace_task.cancel()
            self._grace_task = None
        elif state == TransportState.DISCONNECTED:
            if self._grace_task is None or self._grace_task.done():
                self._grace_task = asyncio.ensure_future(self._disconnect_after_grace())
        elif state in (TransportState.FAILED, TransportState.CLOSED):
            raise TransportFailureError(f"Connection {state.value}")

    async def _disconnect_after_grace(self) -> None:
        await asyncio.sleep(self.config.disconnect_grace)
        if self._transport_state == TransportState.DISCONNECTED:
            logger.warning("Still disconnected after %ss", self.config.disconnect_grace)
            self.close("Connection lost")

    async def _handle_data(self, data: bytes) -> None:
        if self._key is None:
            return

        envelope = decode_envelope(data)
        plaintext = decrypt_payload(self._key, envelope)

        try:
            message = decode_message(plaintext)
        except MessageFormatError as e:
            logger.warning("Dropping malformed message: %s", e)
            return

        if not self.handshake.accepts(message):
            logger.debug("Ignoring %s before handshake completes", type(message).__name__)
            return

        if isinstance(message, Hello):
            ack = self.handshake.on_hello(message)
            if ack is not None:
                await self.send_message(ack)
                await self._on_handshake_complete()

        elif isinstance(message, HelloAck):
            if self.handshake.on_hello_ack(message):
                await self._on_handshake_complete()

        elif isinstance(message, Snapshot):
            if self.role == Role.JOINER:
                self.replicator.apply_snapshot(message)
            else:
                logger.warning("Host ignoring snapshot from joiner")

        elif isinstance(message, DrawEventMessage):
            self.replicator.receive_remote(message.event)

        elif isinstance(message, Cursor):
            width, height = self.replicator.renderer.size()
            self.replicator.renderer.show_remote_cursor(
                message.x * width, message.y * height, self.remote_name
            )

        elif isinstance(message, UnknownMessage):
            logger.warning("Unknown message kind: %r", message.kind)

    async def _on_handshake_complete(self) -> None:
        self.state = SessionState.ACTIVE
        self._active.set()
        logger.info("Connected to %s", self.remote_name or "peer")

        if self.role == Role.HOST and not self._snapshot_sent:
            self._snapshot_sent = True
            await self.send_message(self.replicator.build_snapshot())
            logger.info("Snapshot sent")

    def _require(self, role: Role, state: SessionState) -> None:
        if self.role != role:
            raise SessionStateError(f"Operation requires the {role.value} role")
        if self.state != state:
            raise SessionStateError(f"Session is in wrong state ({self.state.value})")


def _loop_running() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True
