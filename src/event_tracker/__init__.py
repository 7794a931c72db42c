"""Client-side event buffering with batched, optionally signed delivery."""

from .auth import HmacAuthentication, NoAuthentication, hmac_sha256
from .config import TrackerConfig
from .context import static_context
from .errors import ConfigurationError, InvalidIdentifierError, MissingArgumentError
from .identity import generate_uuid, validate_name
from .logger import FlushLogger
from .models import EventEnvelope, TransportRequest
from .scheduler import AsyncioScheduler, ThreadingScheduler
from .tracker import BufferedEventTracker, EventTracker, SignedEventTracker
from .transport import RequestsTransport
from .wire import ArrayWireFormat, SerializedWireFormat

__all__ = [
    "ArrayWireFormat",
    "AsyncioScheduler",
    "BufferedEventTracker",
    "ConfigurationError",
    "EventEnvelope",
    "EventTracker",
    "FlushLogger",
    "HmacAuthentication",
    "InvalidIdentifierError",
    "MissingArgumentError",
    "NoAuthentication",
    "RequestsTransport",
    "SerializedWireFormat",
    "SignedEventTracker",
    "ThreadingScheduler",
    "TrackerConfig",
    "TransportRequest",
    "generate_uuid",
    "hmac_sha256",
    "static_context",
    "validate_name",
]
