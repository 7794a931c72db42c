from __future__ import annotations

import threading
import time
from collections import deque
from typing import Any, Callable, Deque, Dict, List, Mapping, Optional, Tuple, Union

from .auth import HmacAuthentication, Signer
from .config import TrackerConfig
from .context import ContextProvider, resolve_client_context
from .envelope import EnvelopeBuilder
from .errors import ConfigurationError, MissingArgumentError
from .identity import generate_uuid, validate_name
from .logger import FlushLogger
from .models import EventEnvelope
from .scheduler import Scheduler, ThreadingScheduler, TimerHandle
from .wire import (
    ArrayWireFormat,
    BatchPoster,
    Done,
    RequestPoster,
    SerializedWireFormat,
)

ConfigLike = Union[TrackerConfig, Mapping[str, Any], None]


def _require(value: Any, label: str, hint: str) -> None:
    if not value:
        raise MissingArgumentError(f"Missing {label}; {hint}.")


def _require_callable(value: Any, label: str, hint: str) -> None:
    _require(value, label, hint)
    if not callable(value):
        raise ConfigurationError(f"{label} must be callable; {hint}.")


class BufferedEventTracker:
    """Buffers envelopes and flushes them by size or elapsed time.

    At most one timer is live at once. It is armed when an entry lands in an
    idle buffer and torn down by every flush; later appends never push it
    back, so an entry waits at most ``buffer_timeout`` ms. With
    ``rearm_after_flush`` a fresh timer is armed after each flush instead of
    waiting for the next ``track``.
    """

    def __init__(
        self,
        wire: Union[ArrayWireFormat, SerializedWireFormat],
        config: ConfigLike = None,
        *,
        context_provider: Optional[ContextProvider] = None,
        scheduler: Optional[Scheduler] = None,
        logger: Optional[FlushLogger] = None,
        clock: Callable[[], float] = time.time,
        uuid_factory: Callable[[], str] = generate_uuid,
    ) -> None:
        self.config = TrackerConfig.coerce(config)
        self.wire = wire
        self.client_context = resolve_client_context(
            context_provider, self.config.append_client_context
        )
        self.builder = EnvelopeBuilder(
            wire,
            client_context=self.client_context,
            clock=clock,
            uuid_factory=uuid_factory,
        )
        self.scheduler = scheduler or ThreadingScheduler()
        self.logger = logger or FlushLogger()
        self._buffer: List[EventEnvelope] = []
        self._timer: Optional[TimerHandle] = None
        self._timer_token: Optional[object] = None
        # Flushed batches wait here until a single delivering thread hands
        # them to the transport, outside ``_lock`` and in flush order.
        self._outbox: Deque[Tuple[List[EventEnvelope], Done]] = deque()
        self._lock = threading.RLock()
        self._deliver_lock = threading.Lock()

    @property
    def buffer_length(self) -> int:
        return self.config.buffer_length

    @property
    def buffer_timeout(self) -> int:
        return self.config.buffer_timeout

    @property
    def pending(self) -> List[EventEnvelope]:
        with self._lock:
            return list(self._buffer)

    @property
    def timer_pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    def track(
        self, topic: str, type_: str, payload: Optional[Dict[str, Any]] = None
    ) -> EventEnvelope:
        envelope = self.builder.build(topic, type_, payload)
        with self._lock:
            self._buffer.append(envelope)
            self.logger.log(
                "buffer",
                f"queued {envelope.event_type} "
                f"({len(self._buffer)}/{self.config.buffer_length})",
            )
            if len(self._buffer) >= self.config.buffer_length:
                self._flush(None)
            elif not self.config.buffer_timeout:
                self._flush(None)
            elif self._timer is None:
                self._arm_timer()
        self._drain()
        return envelope

    def send(self, done: Done = None) -> bool:
        """Flush the buffer now. Returns ``False`` when there was nothing to send."""

        with self._lock:
            if not self._buffer:
                return False
            self._flush(done)
        self._drain()
        return True

    def close(self) -> None:
        with self._lock:
            self._cancel_timer()
            if self._buffer:
                self._flush(None)
                self._cancel_timer()
        self._drain()

    def _flush(self, done: Done) -> None:
        batch = self._buffer
        self._buffer = []
        self._cancel_timer()
        if self.config.rearm_after_flush and self.config.buffer_timeout:
            self._arm_timer()
        self.logger.log("flush", f"sending {len(batch)} event(s)")
        self._outbox.append((batch, done))

    def _drain(self) -> None:
        # Never blocks: if another thread is delivering, it picks up our batch.
        while self._deliver_lock.acquire(blocking=False):
            try:
                while True:
                    with self._lock:
                        if not self._outbox:
                            break
                        batch, done = self._outbox.popleft()
                    self.wire.deliver(batch, done)
            finally:
                self._deliver_lock.release()
            with self._lock:
                if not self._outbox:
                    return

    def _arm_timer(self) -> None:
        token = object()
        self._timer_token = token
        self._timer = self.scheduler.schedule(
            self.config.buffer_timeout_seconds, lambda: self._on_timer(token)
        )
        self.logger.log("timer", f"armed for {self.config.buffer_timeout}ms")

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self.logger.log("timer", "cancelled")
        self._timer = None
        self._timer_token = None

    def _on_timer(self, token: object) -> None:
        with self._lock:
            # A cancelled threading.Timer may already be waiting on the lock.
            if token is not self._timer_token:
                return
            self._timer = None
            self._timer_token = None
            self.logger.log("timer", "fired")
            if self._buffer:
                self._flush(None)
        self._drain()


class EventTracker(BufferedEventTracker):
    """Unsigned tracker: ``post`` receives each batch as a list of mappings.

    ``event_type`` is namespaced as ``"<client_name>.<type>"`` and
    ``event_ts`` is in fractional seconds.
    """

    def __init__(
        self,
        key: str,
        post: BatchPoster,
        url: str,
        client_name: str,
        config: ConfigLike = None,
        *,
        context_provider: Optional[ContextProvider] = None,
        scheduler: Optional[Scheduler] = None,
        logger: Optional[FlushLogger] = None,
        clock: Callable[[], float] = time.time,
        uuid_factory: Callable[[], str] = generate_uuid,
    ) -> None:
        _require(key, "key", "pass in event client key as the first argument")
        _require_callable(
            post, "post function", "pass in a post function as the second argument"
        )
        _require(url, "url", "pass in the url to post to as the third argument")
        _require(
            client_name, "client_name", "pass in client_name as the fourth argument"
        )
        config = TrackerConfig.coerce(config)
        self.key = key
        self.url = url
        self.client_name = client_name
        self.user_id = config.user_id
        super().__init__(
            ArrayWireFormat(post=post, client_name=client_name, user_id=config.user_id),
            config,
            context_provider=context_provider,
            scheduler=scheduler,
            logger=logger,
            clock=clock,
            uuid_factory=uuid_factory,
        )


class SignedEventTracker(BufferedEventTracker):
    """HMAC-authenticated tracker.

    Each batch is serialized to compact JSON, signed with ``sign(secret,
    data)`` and handed to ``post_data`` as a
    :class:`~event_tracker.models.TransportRequest` carrying ``key`` and
    ``mac`` query parameters. ``event_ts`` is in integer milliseconds and
    every payload is stamped with ``app_name`` and ``utc_offset``.
    """

    def __init__(
        self,
        client_key: str,
        client_secret: str,
        post_data: RequestPoster,
        events_url: str,
        app_name: str,
        sign: Signer,
        config: ConfigLike = None,
        *,
        context_provider: Optional[ContextProvider] = None,
        scheduler: Optional[Scheduler] = None,
        logger: Optional[FlushLogger] = None,
        clock: Callable[[], float] = time.time,
        uuid_factory: Callable[[], str] = generate_uuid,
    ) -> None:
        _require(client_key, "client_key", "pass in the client key as the first argument")
        _require(
            client_secret,
            "client_secret",
            "pass in the client secret as the second argument",
        )
        _require_callable(
            post_data,
            "post_data function",
            "pass in a post_data function as the third argument",
        )
        _require(
            events_url, "events_url", "pass in the events url as the fourth argument"
        )
        _require(app_name, "app_name", "pass in app_name as the fifth argument")
        _require_callable(
            sign, "sign function", "pass in a sign function as the sixth argument"
        )
        validate_name(app_name)
        self.client_key = client_key
        self.events_url = events_url
        self.app_name = app_name
        authenticator = HmacAuthentication(
            client_key=client_key, secret=client_secret, sign=sign
        )
        super().__init__(
            SerializedWireFormat(
                post_data=post_data,
                url=events_url,
                app_name=app_name,
                authenticator=authenticator,
            ),
            config,
            context_provider=context_provider,
            scheduler=scheduler,
            logger=logger,
            clock=clock,
            uuid_factory=uuid_factory,
        )
