"""
Tests for the `async_utils` module.
"""


import pytest
from pytest_mock import MockFixture

from mediashelf import async_utils


@pytest.mark.asyncio
async def test_paced(mocker: MockFixture) -> None:
    """
    Tests that `paced` waits between items, but not before the first one or
    after the last one.

    Args:
        mocker: The fixture to use for mocking.

    """
    # Arrange.
    mock_sleep = mocker.patch("asyncio.sleep", new_callable=mocker.AsyncMock)
    sleeps_seen = []

    # Act.
    got_items = []
    async for item in async_utils.paced(range(4), delay_seconds=0.5):
        sleeps_seen.append(mock_sleep.await_count)
        got_items.append(item)

    # Assert.
    assert got_items == [0, 1, 2, 3]
    # No delay before the first item.
    assert sleeps_seen == [0, 1, 2, 3]
    assert mock_sleep.await_count == 3
    mock_sleep.assert_awaited_with(0.5)


@pytest.mark.asyncio
@pytest.mark.parametrize("items", [[], [1]], ids=("empty", "single"))
async def test_paced_no_delay_needed(
    mocker: MockFixture, items: list
) -> None:
    """
    Tests that `paced` never waits when there are fewer than two items.

    Args:
        mocker: The fixture to use for mocking.
        items: The items to iterate over.

    """
    # Arrange.
    mock_sleep = mocker.patch("asyncio.sleep", new_callable=mocker.AsyncMock)

    # Act.
    got_items = [i async for i in async_utils.paced(items, delay_seconds=1)]

    # Assert.
    assert got_items == items
    mock_sleep.assert_not_called()


@pytest.mark.asyncio
async def test_paced_zero_delay(mocker: MockFixture) -> None:
    """
    Tests that `paced` doesn't sleep at all when the delay is zero.

    Args:
        mocker: The fixture to use for mocking.

    """
    # Arrange.
    mock_sleep = mocker.patch("asyncio.sleep", new_callable=mocker.AsyncMock)

    # Act.
    got_items = [i async for i in async_utils.paced("abc", delay_seconds=0)]

    # Assert.
    assert got_items == ["a", "b", "c"]
    mock_sleep.assert_not_called()


def test_get_process_pool() -> None:
    """
    Tests that `get_process_pool` always returns the same pool.
    """
    # Act and assert.
    assert async_utils.get_process_pool() is async_utils.get_process_pool()
