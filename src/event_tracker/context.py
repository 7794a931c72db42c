from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping, Optional

ContextProvider = Callable[[], Mapping[str, Any]]

logger = logging.getLogger(__name__)


def static_context(
    user_agent: str,
    domain: str,
    base_url: Optional[str] = None,
) -> ContextProvider:
    """Provider for hosts that know their environment up front."""

    context: Dict[str, Any] = {"user_agent": user_agent, "domain": domain}
    if base_url is not None:
        context["base_url"] = base_url

    def provide() -> Mapping[str, Any]:
        return dict(context)

    return provide


def resolve_client_context(
    provider: Optional[ContextProvider], enabled: bool
) -> Dict[str, Any]:
    if not enabled:
        return {}
    if provider is None:
        logger.debug("Client context enabled but no provider injected")
        return {}
    return dict(provider() or {})
