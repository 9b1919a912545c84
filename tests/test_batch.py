import asyncio

import pytest

from marquee.services.batch import gather_outcomes, map_in_batches, successes


async def _value(v):
    return v


async def _fail(message):
    raise RuntimeError(message)


@pytest.mark.asyncio
async def test_gather_outcomes_keeps_order_and_errors():
    outcomes = await gather_outcomes(
        [_value(1), _fail("boom"), _value(3)], labels=["a", "b", "c"]
    )
    assert [o.ok for o in outcomes] == [True, False, True]
    assert outcomes[1].label == "b"
    assert str(outcomes[1].error) == "boom"
    assert successes(outcomes) == [1, 3]


@pytest.mark.asyncio
async def test_map_in_batches_limits_concurrency():
    running = 0
    peak = 0

    async def work(item):
        nonlocal running, peak
        running += 1
        peak = max(peak, running)
        await asyncio.sleep(0)
        running -= 1
        if item == 4:
            raise ValueError("bad item")
        return item * 10

    outcomes = await map_in_batches(work, list(range(7)), batch_size=3)

    assert peak == 3
    assert len(outcomes) == 7
    assert successes(outcomes) == [0, 10, 20, 30, 50, 60]
    assert outcomes[4].label == "4"


def test_successes_logs_failures(caplog):
    from marquee.services.batch import Outcome

    with caplog.at_level("WARNING"):
        values = successes(
            [Outcome(value=1), Outcome(error=RuntimeError("down"), label="page 2")],
            "trending",
        )
    assert values == [1]
    assert "page 2" in caplog.text
