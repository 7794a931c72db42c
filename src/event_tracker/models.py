from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional


@dataclass(frozen=True)
class EventEnvelope:
    """One built event, ready to be buffered and shipped."""

    event_topic: str
    event_type: str
    event_ts: float
    uuid: str
    payload: Dict[str, Any]
    # merged at the top level of the wire record, never over the fields above
    context: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "event_topic": self.event_topic,
            "event_type": self.event_type,
            "event_ts": self.event_ts,
            "uuid": self.uuid,
            "payload": self.payload,
        }
        for key, value in self.context.items():
            data.setdefault(key, value)
        return data


@dataclass(frozen=True)
class TransportRequest:
    """Arguments handed to a ``post_data`` transport by the signed tracker."""

    url: str
    data: bytes
    headers: Dict[str, str]
    query: Dict[str, str]
    done: Optional[Callable[[], None]] = None
