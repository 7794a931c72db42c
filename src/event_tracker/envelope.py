from __future__ import annotations

import time
from typing import Any, Callable, Dict, Mapping, Optional, Union

from .identity import generate_uuid
from .models import EventEnvelope
from .wire import ArrayWireFormat, SerializedWireFormat


class EnvelopeBuilder:
    """Turns ``(topic, type, payload)`` into a stamped, enriched envelope."""

    def __init__(
        self,
        wire: Union[ArrayWireFormat, SerializedWireFormat],
        *,
        client_context: Optional[Mapping[str, Any]] = None,
        clock: Callable[[], float] = time.time,
        uuid_factory: Callable[[], str] = generate_uuid,
    ) -> None:
        self.wire = wire
        self.client_context: Dict[str, Any] = dict(client_context or {})
        self._clock = clock
        self._uuid_factory = uuid_factory

    def build(
        self, topic: str, type_: str, payload: Optional[Dict[str, Any]] = None
    ) -> EventEnvelope:
        if payload is None:
            payload = {}
        now = self._clock()
        event_uuid = payload.get("uuid") or self._uuid_factory()
        context = self.wire.enrich(payload, self.client_context)
        return EventEnvelope(
            event_topic=topic,
            event_type=self.wire.event_type(type_),
            event_ts=self.wire.timestamp(now),
            uuid=event_uuid,
            payload=payload,
            context=context,
        )
