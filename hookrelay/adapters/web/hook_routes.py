"""Webhook intake route."""

import sys
from datetime import datetime

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse, Response

from hookrelay.domain.normalizer import normalize
from hookrelay.domain.router import build_payload, find_registration
from hookrelay.errors import ParseError, UnknownToken

hooks_router = APIRouter(prefix="/hooks", tags=["Hooks"])


def _log(msg: str):
    print(f"[{datetime.now().isoformat()}] {msg}", file=sys.stderr)


@hooks_router.post("/{token}")
async def receive_hook(token: str, request: Request):
    """Validate the token, normalize the body and enqueue it for delivery"""
    state = request.app.state

    # Reject unknown tokens before touching the body
    registration = find_registration(token, state.config.webhooks)
    if registration is None:
        error = UnknownToken()
        _log(f"Rejected webhook from {request.client.host if request.client else '?'}: {error}")
        return PlainTextResponse(str(error), status_code=403)

    body = await request.body()
    try:
        msg = normalize(request.headers, body)
    except ParseError as e:
        _log(f"Invalid request: {e}")
        return PlainTextResponse(str(e), status_code=400)

    state.delivery_queue.put(build_payload(registration, msg))
    return Response(status_code=200)
