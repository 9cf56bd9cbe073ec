"""hookrelay: relays webhook POSTs into Keybase team chat."""

from hookrelay.config import AppConfig, load_config, __version__
from hookrelay.delivery import DeliveryQueue, DeliveryWorker, WorkerState
from hookrelay.domain import (
    DEFAULT_CHANNEL,
    DeliveryPayload,
    InboundMessage,
    WebhookRegistration,
    normalize,
    route,
)
from hookrelay.errors import (
    ChatSessionError,
    ConfigError,
    DeliverySendError,
    MalformedPayload,
    ParseError,
    RelayError,
    RoutingError,
    UnknownToken,
    UnsupportedContentType,
)

__all__ = [
    "__version__",
    "AppConfig",
    "load_config",
    "DeliveryQueue",
    "DeliveryWorker",
    "WorkerState",
    "DEFAULT_CHANNEL",
    "DeliveryPayload",
    "InboundMessage",
    "WebhookRegistration",
    "normalize",
    "route",
    "RelayError",
    "ConfigError",
    "ChatSessionError",
    "ParseError",
    "UnsupportedContentType",
    "MalformedPayload",
    "RoutingError",
    "UnknownToken",
    "DeliverySendError",
]
