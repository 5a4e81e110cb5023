# Author: PB and Claude
# Date: 2026-10-18
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ---
# src/item_mover/operations.py

"""
IMV Operations

High-level operations: moving items between patterns, querying counts
across the network, and balancing an item evenly over every inventory.
These functions never raise for expected failures; check the returned
error. With a strict Directory, the first soft failure is raised instead.
"""

import logging
from typing import Optional

from item_mover.bridge_api import PeripheralClient
from item_mover.config import IMVConfig
from item_mover.directory import Directory, RetryPolicy
from item_mover.errors import (
    AmbiguousDestination,
    DirectoryUnavailable,
    IMVError,
    LocationNotFound,
    NoMatchOrFull,
)
from item_mover.patterns import parse_item, parse_pattern
from item_mover.transfer import attempt_transfer, find_items
from item_mover.types import (
    BalancePlan,
    BalanceMove,
    BalanceResult,
    CountKind,
    CountSpec,
    ItemPattern,
    MoveResult,
    OutcomeStatus,
    TransferRecord,
    TransferRequest,
    RC_SUCCESS,
    RC_PARTIAL,
    RC_FAILED,
    RC_LOCATION_ERROR,
)


logger = logging.getLogger(__name__)


def get_client(config: IMVConfig, host: str = None) -> PeripheralClient:
    """Create a PeripheralClient from config."""
    auth = config.auth.to_tuple() if config.auth else None
    return PeripheralClient(
        host=host or config.bridge.host,
        port=config.bridge.port,
        basic_auth=auth,
        timeout=config.bridge.timeout,
    )


def get_directory(config: IMVConfig, host: str = None, strict: bool = False) -> Directory:
    """Create the Directory every operation runs against."""
    retry = RetryPolicy(
        attempts=config.discovery.attempts,
        delay=config.discovery.delay,
    )
    return Directory(
        get_client(config, host),
        retry=retry,
        strict=strict,
        aliases=config.aliases,
        local_slots=config.discovery.local_slots,
    )


def _location_error(directory: Directory, error: IMVError) -> MoveResult:
    logger.warning(str(error))
    if directory.strict:
        raise error
    return MoveResult(
        transferred=0,
        returncode=RC_LOCATION_ERROR,
        error=str(error),
        error_kind=type(error).__name__,
    )


def move(
    source: str,
    destination: str,
    directory: Directory,
    verbose: bool = False,
) -> MoveResult:
    """
    Move items from a source pattern to a destination pattern.

    Args:
        source: "location/item:count", e.g. "chest23/coal:10" or "./*:++"
        destination: location pattern; item and count parts are ignored
        directory: Directory to resolve against
        verbose: Log every transfer at INFO level

    Returns:
        MoveResult; unpacks as (transferred, error). Partial moves are
        not errors. Location problems come back with RC_LOCATION_ERROR
        and nothing moved.
    """
    directory.refresh()
    src = parse_pattern(source)
    dst = parse_pattern(destination)
    logger.debug(f"move('{source}', '{destination}') src={src} dst={dst}")

    sources = directory.resolve(src.location)
    destinations = directory.resolve(dst.location)

    if not sources.names:
        return _location_error(
            directory, LocationNotFound(f"Could not find source location: {src.location.raw}")
        )
    if not destinations.names:
        return _location_error(
            directory, LocationNotFound(f"Could not find destination location: {dst.location.raw}")
        )
    if not destinations.any_mode and len(destinations) > 1:
        return _location_error(
            directory,
            AmbiguousDestination(
                f"Destination must be a single location, matched: {len(destinations)}"
            ),
        )

    request = TransferRequest(
        sources=sources.names,
        item=src.item,
        count=src.count,
        destinations=destinations.names,
        source_any=sources.any_mode,
        destination_any=destinations.any_mode,
    )
    return execute(request, directory, verbose=verbose)


def execute(request: TransferRequest, directory: Directory, verbose: bool = False) -> MoveResult:
    """Run a move whose locations are already resolved."""
    if not request.destination_any and len(request.destinations) != 1:
        return _location_error(
            directory,
            AmbiguousDestination(
                f"Destination must be a single location, matched: {len(request.destinations)}"
            ),
        )

    drain = request.count.kind is CountKind.ALL_MATCHING
    # None until the first stack is seen for ONE_STACK
    remaining = request.count.n if request.count.kind is CountKind.FIXED else None
    requested = remaining

    total = 0
    transfers = []
    failures = []

    def attempt(source: str, stack, destination: str, quantity: int) -> int:
        outcome = attempt_transfer(directory, source, stack.slot, destination, quantity)
        if outcome.status is OutcomeStatus.HARD_FAIL:
            raise outcome.error
        if outcome.status is OutcomeStatus.SOFT_FAIL:
            failures.append(outcome.message)
            return 0
        if outcome.transferred > 0:
            record = TransferRecord(source, stack.slot, stack.name, destination, outcome.transferred)
            transfers.append(record)
            log = logger.info if verbose else logger.debug
            log(str(record))
        return outcome.transferred

    def exhausted() -> bool:
        return not drain and remaining is not None and remaining <= 0

    for source in request.sources:
        if exhausted():
            break

        for stack in find_items(directory, source, request.item):
            if exhausted():
                break

            if drain:
                quantity = stack.count
            elif remaining is None:
                quantity = min(stack.max_count, stack.count)
                remaining = requested = quantity
            else:
                quantity = min(remaining, stack.count)

            moved = 0
            if request.destination_any:
                for destination in request.destinations:
                    if quantity - moved <= 0:
                        break
                    if directory.same_node(destination, source):
                        continue
                    moved += attempt(source, stack, destination, quantity - moved)
            elif quantity > 0:
                moved = attempt(source, stack, request.destinations[0], quantity)

            total += moved
            if not drain:
                remaining -= moved

    if total == 0:
        error = NoMatchOrFull(f"No items matching '{request.item}' found or destination full")
        logger.info(str(error))
        return MoveResult(
            transferred=0,
            returncode=RC_FAILED,
            error=str(error),
            error_kind=type(error).__name__,
            requested=requested,
            failures=failures,
        )

    if verbose:
        logger.info(f"Total: {total} items transferred")

    touched = request.sources + request.destinations
    if any(directory.is_local(name) for name in touched):
        directory.notify_local_change()

    partial = requested is not None and total < requested
    return MoveResult(
        transferred=total,
        returncode=RC_PARTIAL if partial else RC_SUCCESS,
        error=None,
        requested=requested,
        transfers=transfers,
        failures=failures,
    )


def _item(item) -> ItemPattern:
    return item if isinstance(item, ItemPattern) else parse_item(item)


def node_counts(item, directory: Directory) -> dict[str, int]:
    """Per-node totals of matching items, in discovery order."""
    pattern = _item(item)
    counts = {}
    for name in directory.inventories():
        counts[name] = sum(stack.count for stack in find_items(directory, name, pattern))
    return counts


def query_count(item, directory: Directory) -> int:
    """Total matching items across every inventory on the network."""
    directory.refresh()
    return sum(node_counts(item, directory).values())


def query_high_low(
    item,
    directory: Directory,
    find_high: bool,
    include_empty: bool = False,
) -> tuple[Optional[str], int]:
    """
    Find the inventory holding the most (or least) matching items.

    Ties go to the node discovered first. Only nodes holding some of the
    item count, unless include_empty is set for a low search.

    Returns:
        (node name, count), or (None, 0) if no node qualifies
    """
    directory.refresh()
    best_name = None
    best_count = 0

    for name, count in node_counts(item, directory).items():
        if count <= 0 and (find_high or not include_empty):
            continue
        if best_name is None:
            best_name, best_count = name, count
        elif find_high and count > best_count:
            best_name, best_count = name, count
        elif not find_high and count < best_count:
            best_name, best_count = name, count

    return best_name, best_count


def query_high(item, directory: Directory) -> tuple[Optional[str], int]:
    """Inventory with the most of an item."""
    return query_high_low(item, directory, find_high=True)


def query_low(item, directory: Directory, include_empty: bool = False) -> tuple[Optional[str], int]:
    """Inventory with the least of an item (more than zero unless include_empty)."""
    return query_high_low(item, directory, find_high=False, include_empty=include_empty)


def plan_balance(counts: dict[str, int]) -> BalancePlan:
    """
    Target distribution for the given per-node counts.

    Every node gets floor(total / n); the `total mod n` nodes that hold
    the most right now get one more, so they keep the rounding surplus
    and fewer items move. Ties keep the given order.
    """
    total = sum(counts.values())
    n = len(counts)
    target, extra = divmod(total, n) if n else (0, 0)

    ordered = sorted(counts, key=lambda name: counts[name], reverse=True)
    targets = {}
    for i, name in enumerate(ordered):
        targets[name] = target + 1 if i < extra else target

    return BalancePlan(
        total=total,
        target=target,
        extra=extra,
        targets=targets,
        baseline=dict(counts),
    )


def query_balance(
    item,
    directory: Directory,
    verbose: bool = False,
    limit: Optional[int] = None,
) -> BalanceResult:
    """
    Distribute an item evenly across every inventory on the network.

    Each pass recounts, splits nodes into donors (above target) and
    receivers (below target) and moves min(excess, need) for every
    donor/receiver pair in plan order. The pairing is greedy, not
    globally optimal. Passes repeat until nothing is left to balance,
    a pass moves nothing, or a pass moves fewer than `limit` items.

    Returns:
        BalanceResult; unpacks as (moved, error)
    """
    pattern = _item(item)
    directory.refresh()
    inventories = directory.inventories()

    if not inventories:
        error = DirectoryUnavailable("No inventories on network")
        if directory.strict:
            raise error
        return BalanceResult(moved=0, error=str(error))

    plan = plan_balance(node_counts(pattern, directory))
    if plan.total == 0:
        return BalanceResult(moved=0, error=f"No items matching '{pattern}' found", plan=plan)

    log = logger.info if verbose else logger.debug
    log(f"Balancing {plan.total} {pattern} across {len(plan.targets)} inventories")
    log(f"Target: {plan.target} per inventory")
    if plan.extra:
        log(f"  ({plan.extra} inventories get {plan.target + 1})")

    total_moved = 0
    passes = 0
    steps = []

    while True:
        counts = node_counts(pattern, directory)
        donors = []
        receivers = []
        for name, target in plan.targets.items():
            diff = counts.get(name, 0) - target
            if diff > 0:
                donors.append({"name": name, "excess": diff, "current": counts[name]})
            elif diff < 0:
                receivers.append({"name": name, "need": -diff, "current": counts.get(name, 0)})

        if not donors or not receivers:
            break

        passes += 1
        log(f"--- Pass {passes} ---")
        moved_this_pass = 0

        for donor in donors:
            for receiver in receivers:
                if donor["excess"] <= 0 or receiver["need"] <= 0:
                    continue
                to_move = min(donor["excess"], receiver["need"])
                log(
                    f"  {donor['name']} ({donor['current']}) -> "
                    f"{receiver['name']} ({receiver['current']}): {to_move}"
                )

                request = TransferRequest(
                    sources=[donor["name"]],
                    item=pattern,
                    count=CountSpec.fixed(to_move),
                    destinations=[receiver["name"]],
                )
                moved = execute(request, directory).transferred
                steps.append(BalanceMove(
                    passes, donor["name"], donor["current"],
                    receiver["name"], receiver["current"], moved,
                ))
                if moved > 0:
                    donor["excess"] -= moved
                    donor["current"] -= moved
                    receiver["need"] -= moved
                    receiver["current"] += moved
                    moved_this_pass += moved
                    total_moved += moved

        if moved_this_pass == 0:
            break
        if limit is not None and moved_this_pass < limit:
            break

    log(f"Total moved: {total_moved}")
    return BalanceResult(
        moved=total_moved, error=None, passes=passes, plan=plan, moves=steps
    )


def summary(location: str, directory: Directory) -> dict[str, int]:
    """
    Item totals in the nodes a location pattern resolves to.

    Returns:
        {item name: count}, largest first

    Raises:
        LocationNotFound: if the location matches nothing
    """
    directory.refresh()
    pattern = parse_pattern(location)
    resolution = directory.resolve(pattern.location)
    if not resolution.names:
        raise LocationNotFound(f"Could not find location: {pattern.location.raw}")

    totals = {}
    for name in resolution.names:
        for stack in find_items(directory, name, pattern.item):
            totals[stack.name] = totals.get(stack.name, 0) + stack.count

    return dict(sorted(totals.items(), key=lambda kv: kv[1], reverse=True))
