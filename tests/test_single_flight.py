import asyncio

import pytest

from weather_relay.services.single_flight import SingleFlight

pytestmark = pytest.mark.anyio


class CountingOperation:
    def __init__(self, *, fail: bool = False) -> None:
        self.calls = 0
        self.fail = fail
        self.release = asyncio.Event()

    async def __call__(self) -> int:
        self.calls += 1
        await self.release.wait()
        if self.fail:
            raise RuntimeError("exchange failed")
        return self.calls


async def test_concurrent_callers_share_a_single_execution() -> None:
    flight: SingleFlight[int] = SingleFlight("test")
    operation = CountingOperation()

    first = asyncio.create_task(flight.run(operation))
    second = asyncio.create_task(flight.run(operation))
    await asyncio.sleep(0)
    assert flight.in_flight

    operation.release.set()
    assert await first == await second == 1
    assert operation.calls == 1
    assert not flight.in_flight


async def test_sequential_calls_run_the_operation_again() -> None:
    flight: SingleFlight[int] = SingleFlight("test")
    operation = CountingOperation()
    operation.release.set()

    assert await flight.run(operation) == 1
    assert await flight.run(operation) == 2


async def test_failure_is_delivered_to_every_waiter() -> None:
    flight: SingleFlight[int] = SingleFlight("test")
    operation = CountingOperation(fail=True)

    first = asyncio.create_task(flight.run(operation))
    second = asyncio.create_task(flight.run(operation))
    await asyncio.sleep(0)
    operation.release.set()

    results = await asyncio.gather(first, second, return_exceptions=True)
    assert all(isinstance(result, RuntimeError) for result in results)
    assert operation.calls == 1


async def test_cancelled_caller_does_not_abort_the_operation() -> None:
    flight: SingleFlight[int] = SingleFlight("test")
    operation = CountingOperation()

    doomed = asyncio.create_task(flight.run(operation))
    survivor = asyncio.create_task(flight.run(operation))
    await asyncio.sleep(0)

    doomed.cancel()
    with pytest.raises(asyncio.CancelledError):
        await doomed

    operation.release.set()
    assert await survivor == 1
    assert operation.calls == 1
