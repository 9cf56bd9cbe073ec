"""Outbound ports: interfaces for external system adapters."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class ChatSenderPort(Protocol):
    """Interface for posting a message to a team channel.

    Implementations raise DeliverySendError when the backend rejects or
    fails the send.
    """

    async def send(self, team: str, text: str, channel: str) -> None: ...
