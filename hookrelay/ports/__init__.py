"""Port interfaces (Hexagonal Architecture)."""

from hookrelay.ports.outbound import ChatSenderPort

__all__ = ["ChatSenderPort"]
