"""Tests for the generation worker's event stream."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
import unittest

import httpx

from fakes import FakeClient
from ollama_gui.exceptions import WorkerDisconnectedError
from ollama_gui.history import ChatMessage, MessageRole
from ollama_gui.protocol import (
    Generate,
    GenerationEnded,
    GenerationProgress,
    GenerationStarted,
    Ready,
    WorkerEvent,
)
from ollama_gui.state import WorkerState
from ollama_gui.worker import GenerationWorker


async def _take(events: AsyncIterator[WorkerEvent], count: int) -> list[WorkerEvent]:
    return [await anext(events) for _ in range(count)]


class GenerationWorkerTests(unittest.IsolatedAsyncioTestCase):
    """Validate ordering, failure containment and cancellation."""

    def _worker(self, client: FakeClient, **kwargs) -> GenerationWorker:  # type: ignore[no-untyped-def]
        return GenerationWorker(lambda: client, host="http://localhost:11434", **kwargs)

    async def test_ready_is_emitted_before_any_command(self) -> None:
        client = FakeClient()
        worker = self._worker(client)
        self.assertEqual(worker.state, WorkerState.NOT_READY)

        events = worker.run()
        first = await anext(events)

        self.assertIsInstance(first, Ready)
        self.assertEqual(worker.state, WorkerState.READY)
        self.assertEqual(client.list_calls, 1)
        await events.aclose()

    async def test_generate_streams_chunks_in_backend_order(self) -> None:
        client = FakeClient(replies=[["Hi", "", " there", "!"]])
        worker = self._worker(client)
        events = worker.run()
        ready = await anext(events)
        assert isinstance(ready, Ready)

        history = (ChatMessage(MessageRole.USER, "earlier"), ChatMessage(MessageRole.ASSISTANT, "reply"))
        ready.sender.try_send(Generate(prompt="hello", history=history, model="llama3"))

        self.assertEqual(
            await _take(events, 5),
            [
                GenerationStarted(),
                GenerationProgress("Hi"),
                GenerationProgress(" there"),
                GenerationProgress("!"),
                GenerationEnded(),
            ],
        )
        self.assertEqual(
            client.chat_calls,
            [
                {
                    "model": "llama3",
                    "messages": [
                        {"role": "user", "content": "earlier"},
                        {"role": "assistant", "content": "reply"},
                        {"role": "user", "content": "hello"},
                    ],
                    "stream": True,
                }
            ],
        )
        await events.aclose()

    async def test_connection_failure_ends_without_ready(self) -> None:
        client = FakeClient(list_error=httpx.ConnectError("refused"))
        worker = self._worker(client)

        events = [event async for event in worker.run()]

        self.assertEqual(len(events), 1)
        self.assertIsInstance(events[0], GenerationEnded)
        self.assertIn("Unable to connect", events[0].error or "")
        self.assertEqual(worker.state, WorkerState.NOT_READY)
        self.assertTrue(client.closed)

    async def test_client_construction_failure_is_contained(self) -> None:
        def broken_factory() -> FakeClient:
            raise ValueError("bad host")

        worker = GenerationWorker(broken_factory, verify_connection=False)
        events = [event async for event in worker.run()]

        self.assertEqual(len(events), 1)
        self.assertIsInstance(events[0], GenerationEnded)
        self.assertIsNotNone(events[0].error)

    async def test_mid_stream_failure_still_ends_and_worker_keeps_serving(self) -> None:
        client = FakeClient(replies=[["Hi"]], stream_error=httpx.ReadError("reset"))
        worker = self._worker(client)
        events = worker.run()
        ready = await anext(events)
        assert isinstance(ready, Ready)

        ready.sender.try_send(Generate(prompt="a", history=(), model="llama3"))
        started, progress, ended = await _take(events, 3)
        self.assertEqual(started, GenerationStarted())
        self.assertEqual(progress, GenerationProgress("Hi"))
        assert isinstance(ended, GenerationEnded)
        self.assertIsNotNone(ended.error)
        self.assertTrue(client.streams[0].closed)

        client.stream_error = None
        client.replies.append(["ok"])
        ready.sender.try_send(Generate(prompt="b", history=(), model="llama3"))
        self.assertEqual(
            await _take(events, 3),
            [GenerationStarted(), GenerationProgress("ok"), GenerationEnded()],
        )
        await events.aclose()

    async def test_chat_request_failure_reports_error(self) -> None:
        client = FakeClient(chat_error=RuntimeError("boom"))
        worker = self._worker(client)
        events = worker.run()
        ready = await anext(events)
        assert isinstance(ready, Ready)

        ready.sender.try_send(Generate(prompt="a", history=(), model="llama3"))
        started, ended = await _take(events, 2)

        self.assertEqual(started, GenerationStarted())
        assert isinstance(ended, GenerationEnded)
        self.assertIn("boom", ended.error or "")
        await events.aclose()

    async def test_commands_sent_mid_stream_are_queued_not_interleaved(self) -> None:
        client = FakeClient(replies=[["a1", "a2"], ["b1", "b2"]])
        worker = self._worker(client)
        events = worker.run()
        ready = await anext(events)
        assert isinstance(ready, Ready)

        ready.sender.try_send(Generate(prompt="a", history=(), model="m"))
        self.assertEqual(await anext(events), GenerationStarted())
        ready.sender.try_send(Generate(prompt="b", history=(), model="m"))

        self.assertEqual(
            await _take(events, 7),
            [
                GenerationProgress("a1"),
                GenerationProgress("a2"),
                GenerationEnded(),
                GenerationStarted(),
                GenerationProgress("b1"),
                GenerationProgress("b2"),
                GenerationEnded(),
            ],
        )
        await events.aclose()

    async def test_idle_timeout_ends_stalled_generation(self) -> None:
        client = FakeClient(replies=[["partial"]], hang=True)
        worker = self._worker(client, generation_timeout=0.05)
        events = worker.run()
        ready = await anext(events)
        assert isinstance(ready, Ready)

        ready.sender.try_send(Generate(prompt="a", history=(), model="m"))
        started, progress, ended = await _take(events, 3)

        self.assertEqual(progress, GenerationProgress("partial"))
        assert isinstance(ended, GenerationEnded)
        self.assertIn("stopped responding", ended.error or "")
        self.assertTrue(client.streams[0].closed)
        await events.aclose()

    async def test_cancellation_closes_stream_and_sender(self) -> None:
        client = FakeClient(replies=[["first"]], hang=True)
        worker = self._worker(client)
        events = worker.run()
        ready = await anext(events)
        assert isinstance(ready, Ready)
        ready.sender.try_send(Generate(prompt="a", history=(), model="m"))
        await _take(events, 2)

        async def next_event() -> WorkerEvent:
            return await anext(events)

        pending = asyncio.create_task(next_event())
        await asyncio.sleep(0)
        pending.cancel()
        with self.assertRaises(asyncio.CancelledError):
            await pending

        self.assertTrue(client.streams[0].closed)
        self.assertTrue(ready.sender.closed)
        self.assertTrue(client.closed)
        with self.assertRaises(WorkerDisconnectedError):
            ready.sender.try_send(Generate(prompt="b", history=(), model="m"))

    async def test_closing_the_event_stream_closes_the_client(self) -> None:
        client = FakeClient()
        events = self._worker(client).run()
        await anext(events)
        self.assertFalse(client.closed)

        await events.aclose()

        self.assertTrue(client.closed)

    async def test_full_inbox_rejects_commands(self) -> None:
        worker = self._worker(FakeClient(), inbox_size=1)
        events = worker.run()
        ready = await anext(events)
        assert isinstance(ready, Ready)

        ready.sender.try_send(Generate(prompt="a", history=(), model="m"))
        with self.assertRaises(WorkerDisconnectedError):
            ready.sender.try_send(Generate(prompt="b", history=(), model="m"))
        await events.aclose()


if __name__ == "__main__":
    unittest.main()
