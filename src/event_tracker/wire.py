"""Wire shapes: how built envelopes are stamped, enriched and delivered.

Two shapes exist side by side:

* :class:`ArrayWireFormat` hands the transport the batch as a list of
  mappings. Types are namespaced with the client name, timestamps are
  fractional seconds and client context sits at the top level of each record.
* :class:`SerializedWireFormat` serializes the batch to compact JSON bytes,
  authenticates them and hands the transport a :class:`TransportRequest`.
  Timestamps are integer milliseconds and all enrichment lands in the payload.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from .auth import HmacAuthentication, NoAuthentication
from .models import EventEnvelope, TransportRequest

Done = Optional[Callable[[], None]]
BatchPoster = Callable[[List[Dict[str, Any]]], Any]
RequestPoster = Callable[[TransportRequest], Any]

CONTENT_TYPE_HEADERS = {"Content-Type": "text/plain"}


def local_utc_offset() -> Union[int, float]:
    """Hours east of UTC for the local timezone, e.g. ``-5`` or ``5.5``."""

    offset = datetime.now().astimezone().utcoffset()
    hours = offset.total_seconds() / 3600 if offset is not None else 0.0
    return int(hours) if float(hours).is_integer() else hours


class ArrayWireFormat:
    def __init__(
        self,
        *,
        post: BatchPoster,
        client_name: str,
        user_id: Optional[str] = None,
    ) -> None:
        self.post = post
        self.client_name = client_name
        self.user_id = user_id

    def event_type(self, type_: str) -> str:
        return f"{self.client_name}.{type_}"

    def timestamp(self, now: float) -> float:
        return now

    def enrich(
        self, payload: Dict[str, Any], client_context: Mapping[str, Any]
    ) -> Dict[str, Any]:
        context = dict(client_context)
        if self.user_id is not None:
            context.setdefault("user_id", self.user_id)
        return context

    def deliver(self, batch: Sequence[EventEnvelope], done: Done = None) -> None:
        self.post([envelope.to_dict() for envelope in batch])
        if done is not None:
            done()


class SerializedWireFormat:
    def __init__(
        self,
        *,
        post_data: RequestPoster,
        url: str,
        app_name: str,
        authenticator: Optional[Union[HmacAuthentication, NoAuthentication]] = None,
        utc_offset: Callable[[], Union[int, float]] = local_utc_offset,
    ) -> None:
        self.post_data = post_data
        self.url = url
        self.app_name = app_name
        self.authenticator = authenticator or NoAuthentication()
        self._utc_offset = utc_offset

    def event_type(self, type_: str) -> str:
        return type_

    def timestamp(self, now: float) -> int:
        return int(now * 1000)

    def enrich(
        self, payload: Dict[str, Any], client_context: Mapping[str, Any]
    ) -> Dict[str, Any]:
        # Caller keys win over enrichment of the same name.
        payload.setdefault("app_name", self.app_name)
        payload.setdefault("utc_offset", self._utc_offset())
        for key, value in client_context.items():
            payload.setdefault(key, value)
        return {}

    def serialize(self, batch: Sequence[EventEnvelope]) -> bytes:
        records = [envelope.to_dict() for envelope in batch]
        return json.dumps(
            records, separators=(",", ":"), ensure_ascii=False, default=str
        ).encode("utf-8")

    def deliver(self, batch: Sequence[EventEnvelope], done: Done = None) -> None:
        data = self.serialize(batch)
        self.post_data(
            TransportRequest(
                url=self.url,
                data=data,
                headers=dict(CONTENT_TYPE_HEADERS),
                query=self.authenticator.query(data),
                done=done,
            )
        )
