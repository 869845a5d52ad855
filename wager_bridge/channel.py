"""
channel.py — typed envelope channel between the catalog and player surfaces.

The underlying delivery primitive is asynchronous and gives no ordering,
no deduplication and no acknowledgement. The channel adds two things on
top of it: every outbound message is stamped with the sender's origin, and
every inbound message is dropped unless its origin is the configured peer.
"""

from __future__ import annotations

import asyncio
import inspect
import random
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

import httpx
from pydantic import ValidationError

from wager_bridge.config import EnvelopeKind, settings
from wager_bridge.contracts.envelopes import BalanceDeltaEnvelope, SelectItemEnvelope, decode_envelope
from wager_bridge.errors import PeerUnauthenticated, TransportError
from wager_bridge.logging_config import get_logger
from wager_bridge.security import validate_origin

logger = get_logger(__name__)

ORIGIN_HEADER = "X-Origin"

AnyEnvelope = Union[SelectItemEnvelope, BalanceDeltaEnvelope]
Handler = Callable[[AnyEnvelope], Optional[Awaitable[None]]]


class Transport(ABC):
    """Bidirectional postable-message primitive between two contexts."""

    @abstractmethod
    async def post(self, message: Dict[str, Any], origin: str) -> None:
        """Hand one wire message to the peer, tagged with the sender origin."""
        raise NotImplementedError


class LoopbackTransport(Transport):
    """
    In-process transport delivering to a peer ``EnvelopeChannel``.

    Messages queue until ``flush()`` unless ``auto_deliver`` is set, in which
    case each one is delivered from its own task. A seeded ``rng`` with
    ``shuffle=True`` delivers queued messages in a random order.
    """

    def __init__(self, peer: Optional["EnvelopeChannel"] = None, auto_deliver: bool = False,
                 shuffle: bool = False, rng: Optional[random.Random] = None):
        self.peer = peer
        self.auto_deliver = auto_deliver
        self.shuffle = shuffle
        self.rng = rng or random.Random()
        self.pending: List[Tuple[Dict[str, Any], str]] = []
        self._tasks: set = set()

    def connect(self, peer: "EnvelopeChannel") -> None:
        self.peer = peer

    async def post(self, message: Dict[str, Any], origin: str) -> None:
        if self.peer is None:
            raise TransportError("loopback transport has no peer")
        if self.auto_deliver:
            task = asyncio.get_running_loop().create_task(self.peer.receive(message, origin))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            return
        self.pending.append((message, origin))

    async def flush(self) -> int:
        """Deliver everything queued so far; returns how many were delivered."""
        batch, self.pending = self.pending, []
        if self.shuffle:
            self.rng.shuffle(batch)
        for message, origin in batch:
            await self.peer.receive(message, origin)
        return len(batch)

    def drop_pending(self) -> int:
        dropped = len(self.pending)
        self.pending = []
        return dropped

    async def drain(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks))


class HttpTransport(Transport):
    """Posts wire messages to the peer surface's ``/messages`` route."""

    def __init__(self, target_url: Optional[str], timeout: Optional[float] = None):
        self.target_url = str(target_url) if target_url else None
        self.client = httpx.AsyncClient(
            timeout=timeout if timeout is not None else settings.request_timeout_seconds
        )

    async def post(self, message: Dict[str, Any], origin: str) -> None:
        if not self.target_url:
            raise TransportError("no peer message url configured")
        try:
            # at-most-once: no retry
            resp = await self.client.post(self.target_url, json=message, headers={ORIGIN_HEADER: origin})
        except httpx.HTTPError as exc:
            raise TransportError(f"peer request error: {exc}") from exc
        if resp.status_code >= 300:
            raise TransportError(f"peer answered {resp.status_code}")


class EnvelopeChannel:
    def __init__(self, transport: Transport, own_origin: str, expected_peer_origin: str):
        self.transport = transport
        self.own_origin = own_origin
        self.expected_peer_origin = expected_peer_origin
        self._handlers: Dict[Optional[EnvelopeKind], List[Handler]] = defaultdict(list)

    def on_receive(self, handler: Handler, kind: Optional[EnvelopeKind] = None) -> None:
        self._handlers[kind].append(handler)

    async def send(self, envelope: AnyEnvelope) -> None:
        message = envelope.to_wire()
        try:
            await self.transport.post(message, self.own_origin)
        except TransportError as exc:
            logger.warning(
                "Envelope delivery failed: kind=%s correlationId=%s error=%s",
                envelope.type,
                envelope.correlation_id,
                exc,
            )
            return
        logger.info("Sent envelope kind=%s correlationId=%s", envelope.type, envelope.correlation_id)

    async def receive(self, message: Any, source_origin: Optional[str]) -> bool:
        try:
            validate_origin(source_origin, self.expected_peer_origin)
        except PeerUnauthenticated as exc:
            logger.debug("Discarded envelope: %s expected=%s", exc, exc.expected)
            return False
        try:
            envelope = decode_envelope(message)
        except ValidationError as exc:
            logger.warning("Discarded malformed envelope from origin=%s errors=%s", source_origin, exc.errors())
            return False

        handlers = self._handlers.get(envelope.kind, []) + self._handlers.get(None, [])
        if not handlers:
            logger.debug("No handler for envelope kind=%s, dropping", envelope.type)
            return False
        for handler in handlers:
            result = handler(envelope)
            if inspect.isawaitable(result):
                await result
        return True
