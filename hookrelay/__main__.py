"""Entry point: ``python -m hookrelay``."""

import asyncio
import sys
from datetime import datetime

import uvicorn

from hookrelay.adapters.keybase.chat import KeybaseChat
from hookrelay.adapters.web.server import create_app
from hookrelay.config import load_config
from hookrelay.errors import ChatSessionError, ConfigError


def _log(msg: str):
    print(f"[{datetime.now().isoformat()}] {msg}", file=sys.stderr)


def main() -> int:
    try:
        config = load_config()
    except ConfigError as e:
        _log(str(e))
        return 1
    _log(f"Loaded config from {config.source} ({len(config.webhooks)} webhook(s))")

    chat = KeybaseChat(config.keybase_bin)
    try:
        username = asyncio.run(chat.start())
    except ChatSessionError as e:
        _log(f"Error creating API: {e}")
        return 1
    _log(f"Keybase API user: {username}")

    try:
        host, port = config.listen_host_port()
    except ConfigError as e:
        _log(str(e))
        return 1

    app = create_app(config, chat)
    _log(f"Listening on {config.listen_address}")
    uvicorn.run(app, host=host, port=port, log_level="info")
    return 0


if __name__ == "__main__":
    sys.exit(main())
