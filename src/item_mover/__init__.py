# Author: PB and Claude
# Date: 2026-10-18
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ---
# src/item_mover/__init__.py

"""
Item Mover (IMV) Library

A Python library for moving items between inventories on a wired modem
network, reached through a peripheral bridge. Locations and items are
named with a small pattern language with fuzzy matching.

Basic usage:
    from item_mover import get_directory, load_config, move

    directory = get_directory(load_config())
    moved, err = move("chest23/coal:10", "./", directory)

For more control:
    from item_mover.directory import Directory, RetryPolicy
    from item_mover.operations import query_count, query_high, query_balance
    from item_mover.patterns import parse_pattern
"""

# Config
from item_mover.config import (
    BridgeAuth,
    BridgeConfig,
    DiscoveryConfig,
    IMVConfig,
    load_config,
)

# Types
from item_mover.types import (
    BalanceMove,
    BalancePlan,
    BalanceResult,
    CountSpec,
    ItemPattern,
    ItemStack,
    LocationPattern,
    MoveResult,
    Pattern,
    TransferDirection,
    RC_SUCCESS,
    RC_PARTIAL,
    RC_FAILED,
    RC_LOCATION_ERROR,
)

# Errors
from item_mover.errors import (
    AmbiguousDestination,
    CapabilityMissing,
    DirectoryUnavailable,
    IMVError,
    LocationNotFound,
    NoMatchOrFull,
    TransferFailed,
)

# Directory and patterns
from item_mover.directory import LOCAL_ACTOR, Directory, RetryPolicy
from item_mover.patterns import item_matches, parse_pattern, parse_query
from item_mover.transfer import find_items, transfer

# Operations
from item_mover.operations import (
    execute,
    get_directory,
    move,
    plan_balance,
    query_balance,
    query_count,
    query_high,
    query_high_low,
    query_low,
    summary,
)

from item_mover.cli import cli

__all__ = [
    # Config
    "BridgeAuth",
    "BridgeConfig",
    "DiscoveryConfig",
    "IMVConfig",
    "load_config",
    # Types
    "BalanceMove",
    "BalancePlan",
    "BalanceResult",
    "CountSpec",
    "ItemPattern",
    "ItemStack",
    "LocationPattern",
    "MoveResult",
    "Pattern",
    "TransferDirection",
    # Return codes
    "RC_SUCCESS",
    "RC_PARTIAL",
    "RC_FAILED",
    "RC_LOCATION_ERROR",
    # Errors
    "AmbiguousDestination",
    "CapabilityMissing",
    "DirectoryUnavailable",
    "IMVError",
    "LocationNotFound",
    "NoMatchOrFull",
    "TransferFailed",
    # Directory and patterns
    "LOCAL_ACTOR",
    "Directory",
    "RetryPolicy",
    "item_matches",
    "parse_pattern",
    "parse_query",
    "find_items",
    "transfer",
    # Operations
    "execute",
    "get_directory",
    "move",
    "plan_balance",
    "query_balance",
    "query_count",
    "query_high",
    "query_high_low",
    "query_low",
    "summary",
    # CLI
    "cli",
]
