# Author: PB and Claude
# Date: 2026-10-18
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ---
# src/item_mover/transfer.py

"""
Slot-level reads and transfers.

Who issues the network call depends on which side is the local actor:

    source is local       destination pulls from the local network name
    destination is local  source pushes to the local network name
    neither               source pushes to destination

Every failure here is soft: the attempt reports 0 moved and the caller
goes on with the next candidate. In strict mode the failure is raised.
"""

import logging

import requests

from item_mover.bridge_api import BridgeAPIError
from item_mover.directory import Directory
from item_mover.errors import CapabilityMissing, DirectoryUnavailable, TransferFailed
from item_mover.patterns import item_matches
from item_mover.types import (
    ItemPattern,
    ItemStack,
    OutcomeStatus,
    TransferDirection,
    TransferOutcome,
)


logger = logging.getLogger(__name__)

PUSH_METHOD = "pushItems"
PULL_METHOD = "pullItems"

NETWORK_ERRORS = (BridgeAPIError, requests.RequestException)


def find_items(directory: Directory, name: str, item: ItemPattern) -> list[ItemStack]:
    """Matching stacks in a node, in slot order.

    An unreachable node has no items.
    """
    client = directory.client

    if directory.is_local(name):
        stacks = []
        for slot in range(1, directory.local_slots + 1):
            try:
                detail = client.local_item_detail(slot)
            except NETWORK_ERRORS as e:
                logger.warning(f"could not read local slot {slot}: {e}")
                continue
            if detail and item_matches(detail["name"], item):
                stacks.append(ItemStack.from_bridge(slot, detail, detail))
        logger.debug(f"find_items(local, {item}): {len(stacks)} stacks")
        return stacks

    try:
        listing = client.list_items(name)
    except NETWORK_ERRORS as e:
        logger.debug(f"find_items({name}): list failed: {e}")
        return []

    stacks = []
    for slot in sorted(listing):
        entry = listing[slot]
        if not item_matches(entry["name"], item):
            continue
        try:
            detail = client.item_detail(name, slot)
        except NETWORK_ERRORS:
            detail = None
        stacks.append(ItemStack.from_bridge(slot, entry, detail))
    logger.debug(f"find_items({name}, {item}): {len(stacks)} stacks")
    return stacks


def transfer_direction(directory: Directory, source: str, destination: str) -> TransferDirection:
    if directory.is_local(source):
        return TransferDirection.PULL_FROM_LOCAL
    if directory.is_local(destination):
        return TransferDirection.PUSH_TO_LOCAL
    return TransferDirection.PUSH_REMOTE


def _fail(directory: Directory, error: Exception) -> TransferOutcome:
    status = OutcomeStatus.HARD_FAIL if directory.strict else OutcomeStatus.SOFT_FAIL
    logger.warning(f"transfer skipped: {error}")
    return TransferOutcome(status, 0, str(error), error)


def _require(directory: Directory, name: str, method: str) -> None:
    try:
        methods = directory.methods(name)
    except NETWORK_ERRORS as e:
        raise TransferFailed(f"Could not reach peripheral {name}: {e}")
    if methods is None:
        raise CapabilityMissing(f"Could not find peripheral: {name}")
    if method not in methods:
        raise CapabilityMissing(f"{name} has no {method} method")


def attempt_transfer(
    directory: Directory,
    source: str,
    slot: int,
    destination: str,
    count: int,
) -> TransferOutcome:
    """Move up to `count` items from one slot of source into destination.

    Never raises; the outcome says what happened.
    """
    direction = transfer_direction(directory, source, destination)
    logger.debug(
        f"transfer(src={source}, slot={slot}, dst={destination}, "
        f"count={count}) {direction.value}"
    )
    client = directory.client

    try:
        if direction is TransferDirection.PULL_FROM_LOCAL:
            if directory.is_local(destination):
                raise CapabilityMissing("Source and destination are both the local actor")
            _require(directory, destination, PULL_METHOD)
            local = directory.local_name()
            if not local:
                raise DirectoryUnavailable(
                    "Not connected to network, can't transfer from local actor"
                )
            moved = client.pull_items(destination, local, slot, count)

        elif direction is TransferDirection.PUSH_TO_LOCAL:
            _require(directory, source, PUSH_METHOD)
            local = directory.local_name()
            if not local:
                raise DirectoryUnavailable(
                    "Not connected to network, can't transfer to local actor"
                )
            moved = client.push_items(source, local, slot, count)

        else:
            _require(directory, source, PUSH_METHOD)
            moved = client.push_items(source, destination, slot, count)

    except (CapabilityMissing, DirectoryUnavailable, TransferFailed) as e:
        return _fail(directory, e)
    except NETWORK_ERRORS as e:
        return _fail(directory, TransferFailed(f"{direction.value} failed: {e}"))

    logger.debug(f"  transferred: {moved}")
    return TransferOutcome.success(moved)


def transfer(directory: Directory, source: str, slot: int, destination: str, count: int) -> int:
    """Move up to `count` items; returns how many moved.

    Raises the classified error only in strict mode.
    """
    outcome = attempt_transfer(directory, source, slot, destination, count)
    if outcome.status is OutcomeStatus.HARD_FAIL:
        raise outcome.error
    return outcome.transferred
