"""Domain data models."""

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel

DEFAULT_CHANNEL = "general"


@dataclass(frozen=True)
class WebhookRegistration:
    """A configured pairing of a secret token and a destination team."""

    token: str
    team: str


class InboundMessage(BaseModel):
    """Body of an inbound webhook request"""

    text: str
    channel: Optional[str] = None


@dataclass(frozen=True)
class DeliveryPayload:
    """A routed message ready for handoff to the chat backend."""

    text: str
    channel: str  # never empty
    team: str
