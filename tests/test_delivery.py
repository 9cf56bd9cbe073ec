"""Tests for the delivery queue and its single worker."""

import asyncio

import pytest

from hookrelay import delivery
from hookrelay.delivery import DeliveryQueue, DeliveryWorker, WorkerState
from hookrelay.domain.models import DeliveryPayload
from hookrelay.errors import DeliverySendError


def run(coro):
    """Helper to run async functions in sync tests."""
    return asyncio.run(coro)


def payload(text, channel="general", team="team-a"):
    return DeliveryPayload(text=text, channel=channel, team=team)


class RecordingSender:
    """Records sends and tracks how many overlap."""

    def __init__(self, delay=0.0, fail_on=None):
        self.calls = []
        self.delay = delay
        self.fail_on = fail_on
        self.in_flight = 0
        self.max_in_flight = 0

    async def send(self, team, text, channel):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if text == self.fail_on:
                raise DeliverySendError(f"rejected {text}")
            self.calls.append((team, text, channel))
        finally:
            self.in_flight -= 1


async def wait_for_calls(sender, count, timeout=2.0):
    async def _poll():
        while len(sender.calls) < count:
            await asyncio.sleep(0.01)
    await asyncio.wait_for(_poll(), timeout)


class TestDeliveryQueue:
    def test_fifo(self):
        async def scenario():
            queue = DeliveryQueue()
            queue.put(payload("1"))
            queue.put(payload("2"))
            return [(await queue.get()).text, (await queue.get()).text]

        assert run(scenario()) == ["1", "2"]

    def test_put_never_blocks(self):
        async def scenario():
            queue = DeliveryQueue()
            for i in range(1000):
                queue.put(payload(str(i)))
            return queue.pending()

        assert run(scenario()) == 1000

    def test_drain(self):
        async def scenario():
            queue = DeliveryQueue()
            queue.put(payload("a"))
            queue.put(payload("b"))
            drained = queue.drain()
            return [p.text for p in drained], queue.pending()

        assert run(scenario()) == (["a", "b"], 0)


class TestDeliveryWorker:
    @pytest.mark.asyncio
    async def test_starts_waiting(self):
        worker = DeliveryWorker(DeliveryQueue(), RecordingSender(), on_fatal=lambda e: None)
        assert worker.state == WorkerState.WAITING

    @pytest.mark.asyncio
    async def test_sends_with_exact_arguments(self):
        queue = DeliveryQueue()
        sender = RecordingSender()
        worker = DeliveryWorker(queue, sender, on_fatal=lambda e: None)
        worker.start()

        queue.put(payload("hi", channel="eng", team="team-b"))
        await wait_for_calls(sender, 1)
        await worker.stop()

        assert sender.calls == [("team-b", "hi", "eng")]
        assert worker.delivered == 1

    @pytest.mark.asyncio
    async def test_order_preserved_and_never_concurrent(self):
        queue = DeliveryQueue()
        sender = RecordingSender(delay=0.01)
        worker = DeliveryWorker(queue, sender, on_fatal=lambda e: None)
        worker.start()

        async def produce(text, pause):
            await asyncio.sleep(pause)
            queue.put(payload(text))

        # P1 enqueued first even though its producer was scheduled second
        await asyncio.gather(produce("P2", 0.02), produce("P1", 0.0))
        queue.put(payload("P3"))
        await wait_for_calls(sender, 3)
        await worker.stop()

        assert [c[1] for c in sender.calls] == ["P1", "P2", "P3"]
        assert sender.max_in_flight == 1

    @pytest.mark.asyncio
    async def test_returns_to_waiting_between_sends(self):
        queue = DeliveryQueue()
        sender = RecordingSender()
        worker = DeliveryWorker(queue, sender, on_fatal=lambda e: None)
        worker.start()

        queue.put(payload("hi"))
        await wait_for_calls(sender, 1)
        await asyncio.sleep(0.01)
        assert worker.state == WorkerState.WAITING
        await worker.stop()

    @pytest.mark.asyncio
    async def test_send_failure_is_fatal(self):
        queue = DeliveryQueue()
        sender = RecordingSender(fail_on="bad")
        fatal = []
        worker = DeliveryWorker(queue, sender, on_fatal=fatal.append)

        queue.put(payload("ok"))
        queue.put(payload("bad"))
        queue.put(payload("after"))
        await asyncio.wait_for(worker.start(), 2.0)

        assert [c[1] for c in sender.calls] == ["ok"]
        assert len(fatal) == 1
        assert isinstance(fatal[0], DeliverySendError)
        assert worker.state == WorkerState.STOPPED
        # Nothing after the failing payload was dequeued
        assert queue.pending() == 1

    @pytest.mark.asyncio
    async def test_default_fatal_handler_exits_process(self, monkeypatch):
        codes = []
        monkeypatch.setattr(delivery.os, "_exit", codes.append)

        queue = DeliveryQueue()
        worker = DeliveryWorker(queue, RecordingSender(fail_on="bad"))
        queue.put(payload("bad"))
        queue.put(payload("next"))
        await asyncio.wait_for(worker.start(), 2.0)

        assert codes == [1]
        assert queue.pending() == 1
        assert worker.state == WorkerState.STOPPED

    @pytest.mark.asyncio
    async def test_unexpected_sender_exception_is_fatal(self):
        class BrokenSender:
            async def send(self, team, text, channel):
                raise RuntimeError("boom")

        queue = DeliveryQueue()
        fatal = []
        worker = DeliveryWorker(queue, BrokenSender(), on_fatal=fatal.append)
        queue.put(payload("x"))
        queue.put(payload("y"))
        await asyncio.wait_for(worker.start(), 2.0)

        assert isinstance(fatal[0], RuntimeError)
        assert queue.pending() == 1

    @pytest.mark.asyncio
    async def test_stop_discards_queued_payloads(self):
        queue = DeliveryQueue()
        gate = asyncio.Event()

        class BlockedSender:
            async def send(self, team, text, channel):
                await gate.wait()

        worker = DeliveryWorker(queue, BlockedSender(), on_fatal=lambda e: None)
        worker.start()
        queue.put(payload("in-flight"))
        queue.put(payload("queued-1"))
        queue.put(payload("queued-2"))
        await asyncio.sleep(0.01)
        assert worker.state == WorkerState.SENDING

        discarded = await worker.stop()

        assert [p.text for p in discarded] == ["queued-1", "queued-2"]
        assert worker.state == WorkerState.STOPPED
        assert queue.pending() == 0

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self):
        worker = DeliveryWorker(DeliveryQueue(), RecordingSender(), on_fatal=lambda e: None)
        first = worker.start()
        assert worker.start() is first
        await worker.stop()
