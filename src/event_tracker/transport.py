"""Optional ``requests``-based transports for hosts without their own."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

import requests

from .models import TransportRequest

logger = logging.getLogger(__name__)


class RequestsTransport:
    """HTTP delivery for both tracker variants.

    Failures are logged and dropped: batches are never retried or re-queued.
    """

    def __init__(
        self,
        *,
        timeout: int = 10,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.timeout = timeout
        self.session = session or requests.Session()

    def post_data(self, request: TransportRequest) -> Optional[requests.Response]:
        try:
            return self._post(
                request.url,
                data=request.data,
                headers=request.headers,
                params=request.query,
            )
        finally:
            if request.done is not None:
                request.done()

    def json_poster(self, url: str) -> Callable[[List[Dict[str, Any]]], Optional[requests.Response]]:
        def post(batch: List[Dict[str, Any]]) -> Optional[requests.Response]:
            return self._post(url, json=batch)

        return post

    def _post(self, url: str, **kwargs: Any) -> Optional[requests.Response]:
        try:
            response = self.session.post(url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("Event batch delivery to %s failed: %s", url, exc)
            return None
        return response
