import asyncio
import unittest

from asset_runner.watch.debounce import Debouncer


class DebouncerTests(unittest.IsolatedAsyncioTestCase):
    async def test_burst_runs_once_after_last_call(self) -> None:
        loop = asyncio.get_running_loop()
        debouncer = Debouncer(delay_seconds=0.3)
        fired_at: list[float] = []

        async def action() -> None:
            fired_at.append(loop.time())

        last_call = 0.0
        for _ in range(10):
            debouncer.schedule("css", action)
            last_call = loop.time()
            await asyncio.sleep(0.01)

        self.assertTrue(debouncer.is_pending("css"))
        await asyncio.sleep(0.5)
        await debouncer.drain()

        self.assertEqual(len(fired_at), 1)
        self.assertGreaterEqual(fired_at[0] - last_call, 0.29)
        self.assertFalse(debouncer.is_pending("css"))

    async def test_keys_are_independent(self) -> None:
        debouncer = Debouncer(delay_seconds=0.05)
        calls: list[str] = []

        async def record(key: str) -> None:
            calls.append(key)

        debouncer.schedule("css", lambda: record("css"))
        debouncer.schedule("js", lambda: record("js"))
        debouncer.schedule("css", lambda: record("css"))
        await asyncio.sleep(0.2)
        await debouncer.drain()

        self.assertEqual(sorted(calls), ["css", "js"])

    async def test_action_reads_state_at_fire_time(self) -> None:
        debouncer = Debouncer(delay_seconds=0.05)
        state = {"entries": 1}
        seen: list[int] = []

        async def action() -> None:
            seen.append(state["entries"])

        debouncer.schedule("css", action)
        state["entries"] = 3
        await asyncio.sleep(0.2)
        await debouncer.drain()

        self.assertEqual(seen, [3])

    async def test_failing_action_is_logged_and_next_schedule_still_runs(self) -> None:
        debouncer = Debouncer(delay_seconds=0.02)
        calls: list[str] = []

        async def failing() -> None:
            calls.append("fail")
            raise RuntimeError("boom")

        async def ok() -> None:
            calls.append("ok")

        with self.assertLogs("asset_runner.watch.debounce", level="ERROR"):
            debouncer.schedule("css", failing)
            await asyncio.sleep(0.1)
            await debouncer.drain()

        debouncer.schedule("css", ok)
        await asyncio.sleep(0.1)
        await debouncer.drain()

        self.assertEqual(calls, ["fail", "ok"])

    async def test_cancel_all_drops_pending_actions(self) -> None:
        debouncer = Debouncer(delay_seconds=0.05)
        calls: list[str] = []

        async def action() -> None:
            calls.append("ran")

        debouncer.schedule("css", action)
        debouncer.schedule("js", action)
        debouncer.cancel_all()
        await asyncio.sleep(0.15)

        self.assertEqual(calls, [])
        self.assertFalse(debouncer.is_pending("css"))


if __name__ == "__main__":
    unittest.main()
