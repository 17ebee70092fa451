import asyncio
from pathlib import Path
from unittest.mock import Mock

import pytest

from parafetch.core.progress import ProgressAggregator


def test_requires_at_least_one_chunk():
    with pytest.raises(ValueError):
        ProgressAggregator(0)


@pytest.mark.asyncio
async def test_publishes_unweighted_mean():
    values = []
    aggregator = ProgressAggregator(4, values.append)

    await aggregator.update(0, 50)
    await aggregator.update(1, 100)
    await aggregator.update(3, 1)

    # (50 + 100 + 0 + 1) // 4
    assert values == [12, 37, 37]
    assert aggregator.percentage == 37


@pytest.mark.asyncio
async def test_update_clamps_to_percentage_range():
    values = []
    aggregator = ProgressAggregator(1, values.append)

    await aggregator.update(0, 140)
    await aggregator.update(0, -5)

    assert values == [100, 0]


@pytest.mark.asyncio
async def test_callback_runs_while_lock_is_held():
    aggregator = ProgressAggregator(2)
    seen = []
    aggregator.callback = lambda percent: seen.append(aggregator.lock.locked())

    await aggregator.update(0, 10)
    await aggregator.mark_finished(1)

    assert seen == [True, True]


@pytest.mark.asyncio
async def test_mark_finished_sets_full_progress():
    callback = Mock()
    aggregator = ProgressAggregator(2, callback)

    await aggregator.mark_finished(0)

    assert await aggregator.is_finished(0)
    assert not await aggregator.is_finished(1)
    assert aggregator.unfinished_indexes() == [1]
    callback.assert_called_once_with(50)


@pytest.mark.asyncio
async def test_reset_does_not_publish():
    callback = Mock()
    aggregator = ProgressAggregator(1, callback)
    aggregator.chunks[0].progress = 70

    await aggregator.reset(0)

    assert aggregator.chunks[0].progress == 0
    callback.assert_not_called()


@pytest.mark.asyncio
async def test_holding_path_assigned_once():
    aggregator = ProgressAggregator(2)
    factory = Mock(side_effect=[Path("/tmp/a.part"), Path("/tmp/b.part")])

    first = await aggregator.holding_path(0, factory)
    again = await aggregator.holding_path(0, factory)
    other = await aggregator.holding_path(1, factory)

    assert first == again == Path("/tmp/a.part")
    assert other == Path("/tmp/b.part")
    assert factory.call_count == 2


@pytest.mark.asyncio
async def test_all_finished():
    aggregator = ProgressAggregator(3)

    for index in range(3):
        async with aggregator.lock:
            assert not aggregator.all_finished()
        await aggregator.mark_finished(index)

    async with aggregator.lock:
        assert aggregator.all_finished()


@pytest.mark.asyncio
async def test_concurrent_updates_are_serialized():
    values = []
    aggregator = ProgressAggregator(10, values.append)

    async def worker(index):
        for percent in range(0, 101, 10):
            await aggregator.update(index, percent)
            await asyncio.sleep(0)

    await asyncio.gather(*(worker(index) for index in range(10)))

    assert values[-1] == 100
    assert all(0 <= value <= 100 for value in values)
