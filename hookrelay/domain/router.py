"""Token router: matches path tokens against webhook registrations."""

import sys
from dataclasses import asdict
from datetime import datetime
from typing import Optional, Sequence

from hookrelay.domain.models import (
    DEFAULT_CHANNEL,
    DeliveryPayload,
    InboundMessage,
    WebhookRegistration,
)
from hookrelay.errors import UnknownToken


def _log(msg: str):
    print(f"[{datetime.now().isoformat()}] {msg}", file=sys.stderr)


def find_registration(
    token: str, registrations: Sequence[WebhookRegistration]
) -> Optional[WebhookRegistration]:
    """Return the first registration carrying ``token``, or None.

    Duplicate tokens are allowed; the one registered first wins.
    """
    for registration in registrations:
        if registration.token == token:
            return registration
    return None


def build_payload(
    registration: WebhookRegistration, msg: InboundMessage
) -> DeliveryPayload:
    payload = DeliveryPayload(
        text=msg.text,
        channel=msg.channel or DEFAULT_CHANNEL,
        team=registration.team,
    )
    _log(f"Webhook payload: {asdict(payload)}")
    return payload


def route(
    token: str,
    registrations: Sequence[WebhookRegistration],
    msg: InboundMessage,
) -> DeliveryPayload:
    """Attach team identity to ``msg`` and default its channel.

    Raises UnknownToken if no registration matches.
    """
    registration = find_registration(token, registrations)
    if registration is None:
        raise UnknownToken()
    return build_payload(registration, msg)
