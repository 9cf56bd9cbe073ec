"""Request normalizer: turns an inbound HTTP body into an InboundMessage."""

from typing import Mapping, Union
from urllib.parse import parse_qs

from pydantic import ValidationError

from hookrelay.domain.models import InboundMessage
from hookrelay.errors import MalformedPayload, UnsupportedContentType

JSON_CONTENT_TYPE = "application/json"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
FORM_PAYLOAD_FIELD = "payload"


def media_type(content_type: str) -> str:
    """Strip parameters (``; charset=...``) and normalize case."""
    return content_type.split(";", 1)[0].strip().lower()


def _header(headers: Mapping[str, str], name: str) -> str:
    # Starlette headers are case-insensitive already; plain dicts are not.
    value = headers.get(name)
    if value is None:
        for key, val in headers.items():
            if key.lower() == name.lower():
                return val
        return ""
    return value


def _decode(raw: Union[str, bytes]) -> InboundMessage:
    try:
        return InboundMessage.model_validate_json(raw)
    except ValidationError as e:
        errors = e.errors(include_url=False)
        detail = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'body'}: {err['msg']}"
            for err in errors
        )
        raise MalformedPayload(detail) from e


def _form_payload(body: bytes) -> str:
    try:
        form = parse_qs(body.decode("utf-8"), keep_blank_values=True)
    except UnicodeDecodeError as e:
        raise MalformedPayload(f"form body is not valid UTF-8: {e}") from e
    values = form.get(FORM_PAYLOAD_FIELD)
    return values[0] if values else ""


def normalize(headers: Mapping[str, str], body: bytes) -> InboundMessage:
    """Parse one request into an InboundMessage.

    JSON bodies are decoded directly. Form-encoded bodies carry the JSON
    as a string in the ``payload`` field. Anything else is rejected with
    UnsupportedContentType; undecodable JSON raises MalformedPayload.
    """
    content_type = _header(headers, "content-type")
    kind = media_type(content_type)

    if kind == JSON_CONTENT_TYPE:
        return _decode(body)
    if kind == FORM_CONTENT_TYPE:
        return _decode(_form_payload(body))

    raise UnsupportedContentType(content_type)
