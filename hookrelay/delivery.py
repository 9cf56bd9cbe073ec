"""Delivery queue and the single worker that drains it."""

import asyncio
import enum
import os
import sys
from datetime import datetime
from typing import Callable, List, Optional

from hookrelay.domain.models import DeliveryPayload
from hookrelay.ports.outbound import ChatSenderPort


def _log(msg: str):
    print(f"[{datetime.now().isoformat()}] {msg}", file=sys.stderr)


def exit_process(exc: BaseException):
    """Default fatal handler: terminate the whole process with status 1."""
    sys.stderr.flush()
    os._exit(1)


class DeliveryQueue:
    """Unbounded FIFO of payloads, many producers and one consumer."""

    def __init__(self):
        self._queue: asyncio.Queue = asyncio.Queue()

    def put(self, payload: DeliveryPayload) -> None:
        """Enqueue without blocking."""
        self._queue.put_nowait(payload)

    async def get(self) -> DeliveryPayload:
        return await self._queue.get()

    def pending(self) -> int:
        return self._queue.qsize()

    def drain(self) -> List[DeliveryPayload]:
        """Remove and return everything still queued."""
        items = []
        while not self._queue.empty():
            items.append(self._queue.get_nowait())
        return items


class WorkerState(enum.Enum):
    WAITING = "waiting"
    SENDING = "sending"
    STOPPED = "stopped"


class DeliveryWorker:
    """Sends queued payloads to the chat backend one at a time.

    A send failure (DeliverySendError or anything else the sender raises)
    is fatal: the worker hands the error to ``on_fatal`` and never dequeues
    another payload.
    """

    def __init__(
        self,
        queue: DeliveryQueue,
        sender: ChatSenderPort,
        on_fatal: Callable[[BaseException], None] = exit_process,
    ):
        self.queue = queue
        self.sender = sender
        self.on_fatal = on_fatal
        self.state = WorkerState.WAITING
        self.delivered = 0
        self._task: Optional[asyncio.Task] = None

    async def run(self):
        """Queue consumer loop; blocks until payloads arrive."""
        while True:
            self.state = WorkerState.WAITING
            payload = await self.queue.get()

            self.state = WorkerState.SENDING
            try:
                await self.sender.send(payload.team, payload.text, payload.channel)
            except Exception as e:
                self.state = WorkerState.STOPPED
                _log(f"Error sending message: {e}")
                self.on_fatal(e)
                return
            self.delivered += 1
            _log(f"Delivered to {payload.team}#{payload.channel}")

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> List[DeliveryPayload]:
        """Cancel the loop and discard whatever is still queued."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self.state = WorkerState.STOPPED
        discarded = self.queue.drain()
        if discarded:
            _log(f"Discarding {len(discarded)} undelivered payload(s)")
        return discarded
