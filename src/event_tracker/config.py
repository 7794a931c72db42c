"""Tracker configuration, validated with pydantic."""

from __future__ import annotations

import os
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from .errors import ConfigurationError

DEFAULT_BUFFER_TIMEOUT_MS = 100
DEFAULT_BUFFER_LENGTH = 40


class TrackerConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="forbid")

    user_id: Optional[str] = Field(default=None, alias="userId")
    append_client_context: bool = Field(default=True, alias="appendClientContext")
    buffer_timeout: int = Field(
        default=DEFAULT_BUFFER_TIMEOUT_MS, ge=0, alias="bufferTimeout"
    )
    buffer_length: int = Field(default=DEFAULT_BUFFER_LENGTH, ge=1, alias="bufferLength")
    rearm_after_flush: bool = Field(default=False, alias="rearmAfterFlush")

    @property
    def buffer_timeout_seconds(self) -> float:
        return self.buffer_timeout / 1000.0

    @classmethod
    def coerce(cls, value: "TrackerConfig | Mapping[str, Any] | None") -> "TrackerConfig":
        if isinstance(value, cls):
            return value
        try:
            return cls.model_validate(dict(value or {}))
        except PydanticValidationError as exc:
            raise ConfigurationError(f"Invalid tracker config: {exc}") from exc

    @staticmethod
    def _parse_bool(value: str | None, default: bool) -> bool:
        if value is None:
            return default
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off"}:
            return False
        return default

    @classmethod
    def from_env(cls, prefix: str = "EVENT_TRACKER_") -> "TrackerConfig":
        """Build a config from ``<prefix>*`` environment variables.

        Unset variables fall back to the model defaults.
        """

        values: dict[str, Any] = {
            "append_client_context": cls._parse_bool(
                os.getenv(f"{prefix}APPEND_CLIENT_CONTEXT"), True
            ),
            "rearm_after_flush": cls._parse_bool(
                os.getenv(f"{prefix}REARM_AFTER_FLUSH"), False
            ),
        }
        user_id = os.getenv(f"{prefix}USER_ID")
        if user_id:
            values["user_id"] = user_id
        for field_name, env_var in (
            ("buffer_timeout", f"{prefix}BUFFER_TIMEOUT"),
            ("buffer_length", f"{prefix}BUFFER_LENGTH"),
        ):
            raw = os.getenv(env_var)
            if raw is not None and raw.strip():
                values[field_name] = raw.strip()
        return cls.coerce(values)
