"""Domain layer: request normalization and token routing, no web framework."""

from hookrelay.domain.models import (
    DEFAULT_CHANNEL,
    DeliveryPayload,
    InboundMessage,
    WebhookRegistration,
)
from hookrelay.domain.normalizer import normalize
from hookrelay.domain.router import build_payload, find_registration, route

__all__ = [
    "DEFAULT_CHANNEL",
    "DeliveryPayload",
    "InboundMessage",
    "WebhookRegistration",
    "normalize",
    "build_payload",
    "find_registration",
    "route",
]
