"""Hello/hello_ack handshake proving both peers derived the same key."""

import base64
import logging
import os
import time
from enum import Enum
from typing import Optional

from .messages import Hello, HelloAck, Message

logger = logging.getLogger(__name__)

HELLO_NONCE_SIZE = 16


class Role(Enum):
    """Which side of the offer/answer exchange this peer is on."""
    HOST = "host"
    JOINER = "joiner"


class HandshakeState(Enum):
    """Handshake progress for one session."""
    IDLE = "idle"
    HELLO_SENT = "hello_sent"
    AWAITING_HELLO = "awaiting_hello"
    COMPLETE = "complete"
    FAILED = "failed"


class Handshake:
    """
    Handshake state machine.

    IDLE -> HELLO_SENT (host) or AWAITING_HELLO (joiner) when the channel
    opens; the joiner completes on Hello, the host on a HelloAck echoing its
    nonce. Until COMPLETE only Hello and HelloAck are accepted.
    """

    def __init__(self, role: Role, local_name: Optional[str] = None) -> None:
        self.role = role
        self.local_name = local_name
        self.remote_name: Optional[str] = None
        self.state = HandshakeState.IDLE
        self._nonce: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return self.state == HandshakeState.COMPLETE

    def on_channel_open(self) -> Optional[Hello]:
        """Advance on channel open. Returns the Hello the host must send."""
        if self.state != HandshakeState.IDLE:
            return None

        if self.role == Role.JOINER:
            self.state = HandshakeState.AWAITING_HELLO
            return None

        self._nonce = base64.b64encode(os.urandom(HELLO_NONCE_SIZE)).decode("ascii")
        self.state = HandshakeState.HELLO_SENT
        return Hello(nonce=self._nonce, time=int(time.time() * 1000), name=self.local_name)

    def on_hello(self, hello: Hello) -> Optional[HelloAck]:
        """Handle a Hello. Returns the HelloAck to send, or None if ignored."""
        if self.role != Role.JOINER or self.state not in (
            HandshakeState.IDLE,
            HandshakeState.AWAITING_HELLO,
        ):
            logger.debug("Ignoring hello in state %s", self.state.value)
            return None

        self.remote_name = hello.name
        self.state = HandshakeState.COMPLETE
        return HelloAck(nonce=hello.nonce, name=self.local_name)

    def on_hello_ack(self, ack: HelloAck) -> bool:
        """Handle a HelloAck. Returns True if the handshake completed."""
        if self.state != HandshakeState.HELLO_SENT:
            logger.debug("Ignoring hello_ack in state %s", self.state.value)
            return False

        if ack.nonce != self._nonce:
            logger.warning("hello_ack nonce does not match; ignoring")
            return False

        self.remote_name = ack.name
        self.state = HandshakeState.COMPLETE
        return True

    def fail(self) -> None:
        """Mark the handshake failed."""
        self.state = HandshakeState.FAILED

    def accepts(self, message: Message) -> bool:
        """Whether a message may be processed in the current state."""
        if self.state == HandshakeState.FAILED:
            return False
        if isinstance(message, (Hello, HelloAck)):
            return True
        return self.is_complete
