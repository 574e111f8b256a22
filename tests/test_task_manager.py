"""Tests for named background task ownership."""

from __future__ import annotations

import asyncio
import unittest

from ollama_gui.task_manager import TaskManager


class TaskManagerTests(unittest.IsolatedAsyncioTestCase):
    """Validate spawn, replacement, and cancellation."""

    async def asyncSetUp(self) -> None:
        self.manager = TaskManager()

    async def asyncTearDown(self) -> None:
        await self.manager.cancel_all()

    async def test_spawn_registers_named_task(self) -> None:
        task = self.manager.spawn("catalog", asyncio.sleep(10))
        self.assertTrue(self.manager.is_running("catalog"))
        self.assertEqual(task.get_name(), "catalog")

    async def test_spawn_replaces_and_cancels_previous_task(self) -> None:
        first = self.manager.spawn("generation_worker", asyncio.sleep(10))
        second = self.manager.spawn("generation_worker", asyncio.sleep(10))
        await asyncio.sleep(0)
        self.assertTrue(first.cancelled())
        self.assertFalse(second.done())
        self.assertTrue(self.manager.is_running("generation_worker"))

    async def test_finished_tasks_are_forgotten(self) -> None:
        task = self.manager.spawn("catalog", asyncio.sleep(0))
        await task
        await asyncio.sleep(0)
        self.assertFalse(self.manager.is_running("catalog"))

    async def test_cancel_nowait_reports_live_tasks_only(self) -> None:
        self.manager.spawn("catalog", asyncio.sleep(10))
        self.assertTrue(self.manager.cancel_nowait("catalog"))
        self.assertFalse(self.manager.is_running("catalog"))
        self.assertFalse(self.manager.cancel_nowait("catalog"))
        self.assertFalse(self.manager.cancel_nowait("missing"))

    async def test_cancel_all_stops_everything(self) -> None:
        first = self.manager.spawn("catalog", asyncio.sleep(10))
        second = self.manager.spawn("generation_worker", asyncio.sleep(10))
        await self.manager.cancel_all()
        self.assertTrue(first.cancelled())
        self.assertTrue(second.cancelled())

    async def test_cancel_all_waits_for_tasks_still_unwinding(self) -> None:
        released = asyncio.Event()
        cleaned_up: list[str] = []

        async def slow_cleanup() -> None:
            try:
                await asyncio.sleep(10)
            finally:
                await released.wait()
                cleaned_up.append("worker")

        self.manager.spawn("generation_worker", slow_cleanup())
        await asyncio.sleep(0)
        self.manager.cancel_nowait("generation_worker")

        shutdown = asyncio.create_task(self.manager.cancel_all())
        await asyncio.sleep(0)
        self.assertFalse(shutdown.done())

        released.set()
        await shutdown
        self.assertEqual(cleaned_up, ["worker"])

    async def test_failed_task_is_logged(self) -> None:
        async def explode() -> None:
            raise ValueError("boom")

        with self.assertLogs("ollama_gui.task_manager", level="ERROR") as logs:
            task = self.manager.spawn("catalog", explode())
            with self.assertRaises(ValueError):
                await task
            await asyncio.sleep(0)
        self.assertTrue(any("task.failed" in line for line in logs.output))


if __name__ == "__main__":
    unittest.main()
