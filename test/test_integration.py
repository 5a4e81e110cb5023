# Author: PB and Claude
# Date: 2026-10-18
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ---
# test/test_integration.py

"""Integration tests requiring a running peripheral bridge."""

import pytest

from item_mover.config import load_config
from item_mover.operations import get_directory, move, query_count, summary


@pytest.mark.integration
def test_round_trip_through_local_actor():
    """End-to-end: pull one item into the turtle and send it back."""
    directory = get_directory(load_config())
    directory.refresh()

    inventories = directory.inventories()
    if not inventories:
        pytest.skip("no inventories attached to the bridge")
    if directory.local_name() is None:
        pytest.skip("local actor is not connected to the network")

    source = inventories[0]
    totals = summary(source, directory)
    if not totals:
        pytest.skip(f"{source} is empty")
    item = next(iter(totals))

    before = query_count(f"={item}", directory)

    result = move(f"{source}/={item}:1", "./", directory)
    assert result.transferred == 1, result.error

    result = move(f"./={item}:1", source, directory)
    assert result.transferred == 1, result.error

    assert query_count(f"={item}", directory) == before
