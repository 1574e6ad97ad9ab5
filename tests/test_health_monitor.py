import asyncio

from easytrade.client.application.health_monitor import HealthMonitor


def test_monitor_runs_check_every_interval() -> None:
    delays: list[float] = []
    checks: list[int] = []

    async def scenario() -> None:
        monitor: HealthMonitor

        async def sleep(delay: float) -> None:
            delays.append(delay)
            await asyncio.sleep(0)

        async def check() -> None:
            checks.append(len(checks))
            if len(checks) == 3:  # noqa: PLR2004
                monitor.stop()

        monitor = HealthMonitor(check, 120, sleep=sleep)
        monitor.start()
        task = monitor._task
        assert task is not None
        await task

    asyncio.run(scenario())

    assert len(checks) == 3  # noqa: PLR2004
    assert delays == [120, 120, 120]


def test_monitor_survives_failing_check() -> None:
    calls: list[int] = []

    async def scenario() -> None:
        monitor: HealthMonitor

        async def sleep(delay: float) -> None:
            await asyncio.sleep(0)

        async def check() -> None:
            calls.append(1)
            if len(calls) == 2:  # noqa: PLR2004
                monitor.stop()
            msg = "probe exploded"
            raise RuntimeError(msg)

        monitor = HealthMonitor(check, 1, sleep=sleep)
        monitor.start()
        assert monitor.running
        task = monitor._task
        assert task is not None
        await task

    asyncio.run(scenario())

    assert len(calls) == 2  # noqa: PLR2004


def test_stop_cancels_background_task() -> None:
    async def scenario() -> bool:
        async def check() -> None:
            pass

        monitor = HealthMonitor(check, 120)
        monitor.start()
        monitor.start()
        task = monitor._task
        monitor.stop()
        await asyncio.sleep(0)
        return task is not None and task.cancelled() and not monitor.running

    assert asyncio.run(scenario())
