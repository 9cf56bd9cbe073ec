"""Keybase chat adapter, implements ChatSenderPort over the keybase CLI."""

import asyncio
import json
import sys
from datetime import datetime
from typing import Any, Dict, List, Optional

from hookrelay.errors import ChatSessionError, DeliverySendError


def _log(msg: str):
    print(f"[{datetime.now().isoformat()}] {msg}", file=sys.stderr)


async def _run_subprocess(cmd_args: List[str]):
    """Run a subprocess command and return process/stdout/stderr."""
    proc = await asyncio.create_subprocess_exec(
        *cmd_args,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    stdout, stderr = await proc.communicate()
    return proc, stdout, stderr


def send_request(team: str, text: str, channel: str) -> Dict[str, Any]:
    """Build a ``chat api`` send request addressed to a team channel."""
    return {
        "method": "send",
        "params": {
            "options": {
                "channel": {
                    "name": team,
                    "members_type": "team",
                    "topic_name": channel,
                },
                "message": {"body": text},
            }
        },
    }


class KeybaseChat:
    """Posts messages through ``keybase chat api``. Implements ChatSenderPort."""

    def __init__(self, binary: str = "keybase"):
        self.binary = binary
        self._username: Optional[str] = None

    @property
    def username(self) -> Optional[str]:
        return self._username

    async def start(self) -> str:
        """Check the CLI works and a user is logged in.

        Raises ChatSessionError otherwise.
        """
        try:
            proc, stdout, stderr = await _run_subprocess(
                [self.binary, "status", "--json"]
            )
        except OSError as e:
            raise ChatSessionError(f"Unable to run {self.binary}: {e}") from e

        if proc.returncode != 0:
            raise ChatSessionError(
                f"Exit code {proc.returncode}: {stderr.decode('utf-8').strip()}"
            )

        try:
            status = json.loads(stdout.decode("utf-8"))
        except ValueError as e:
            raise ChatSessionError(f"Unable to parse keybase status: {e}") from e

        username = status.get("Username") if isinstance(status, dict) else None
        if not username or not status.get("LoggedIn", False):
            raise ChatSessionError("Unable to find Keybase username (not logged in?)")

        self._username = username
        return username

    async def send_message_by_team_name(self, team: str, text: str, channel: str) -> Dict[str, Any]:
        request = json.dumps(send_request(team, text, channel), ensure_ascii=False)
        try:
            proc, stdout, stderr = await _run_subprocess(
                [self.binary, "chat", "api", "-m", request]
            )
        except OSError as e:
            raise DeliverySendError(f"Unable to run {self.binary}: {e}") from e

        if proc.returncode != 0:
            err_text = stderr.decode("utf-8").strip() or stdout.decode("utf-8").strip()
            raise DeliverySendError(f"Exit code {proc.returncode}: {err_text}")

        try:
            response = json.loads(stdout.decode("utf-8"))
        except ValueError as e:
            raise DeliverySendError(f"Unable to parse chat api response: {e}") from e

        if not isinstance(response, dict):
            raise DeliverySendError(f"Unexpected chat api response: {response!r}")
        error = response.get("error")
        if error:
            message = error.get("message") if isinstance(error, dict) else error
            raise DeliverySendError(str(message))
        return response.get("result") or {}

    async def send(self, team: str, text: str, channel: str) -> None:
        await self.send_message_by_team_name(team, text, channel)
