# Author: PB and Claude
# Date: 2026-10-18
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ---
# src/item_mover/directory.py

"""
Node directory and location resolution.

A Directory is the context object every operation runs against: it holds
the bridge client, the discovery retry policy, the strict flag and the
configured aliases, and caches the node listing and the local network
name for the duration of one operation.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

import requests

from item_mover.bridge_api import BridgeAPIError
from item_mover.types import LocationKind, LocationPattern, Resolution


logger = logging.getLogger(__name__)

# Stands for the local actor when addressed as "./"; usable while disconnected
LOCAL_ACTOR = "__local_actor__"

INVENTORY_METHOD = "list"
INVENTORY_EVENT = "turtle_inventory"
LOCAL_SLOTS = 16

# Separators dropped by the relaxed fuzzy pass ("chest23" ~ "minecraft:chest_23")
_SEPARATORS = str.maketrans("", "", "_:")

# Network faults that count as a failed discovery attempt
DISCOVERY_ERRORS = (BridgeAPIError, requests.RequestException)

_UNSET = object()


def _is_inventory(peripheral: dict) -> bool:
    return INVENTORY_METHOD in (peripheral.get("methods") or [])


@dataclass
class RetryPolicy:
    """Bounded retry for discovery calls."""
    attempts: int = 3
    delay: float = 0.2
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def run(self, fetch: Callable, accept: Callable, what: str, empty=None):
        """Call fetch() until accept(result) or attempts run out.

        Faults from the bridge count as failed attempts. Returns `empty`
        when nothing acceptable was found.
        """
        for attempt in range(1, self.attempts + 1):
            try:
                result = fetch()
            except DISCOVERY_ERRORS as e:
                logger.debug(f"{what}: attempt {attempt} raised {e}")
                result = None
            if result is not None and accept(result):
                logger.debug(f"{what}: found on attempt {attempt}")
                return result
            if attempt < self.attempts:
                logger.debug(f"{what}: attempt {attempt} failed, retrying...")
                self.sleep(self.delay)
        logger.debug(f"{what}: nothing found after {self.attempts} attempts")
        return empty


class Directory:
    """Discovers nodes and resolves location patterns against them."""

    def __init__(
        self,
        client,
        retry: RetryPolicy = None,
        strict: bool = False,
        aliases: dict[str, str] = None,
        local_slots: int = LOCAL_SLOTS,
    ):
        """
        Args:
            client: PeripheralClient (or anything with the same methods)
            retry: Discovery retry policy (default 3 attempts, 0.2s apart)
            strict: Escalate the first soft failure to an exception
            aliases: Short names mapped to node identifiers
            local_slots: Number of slots in the local actor's inventory
        """
        self.client = client
        self.retry = retry or RetryPolicy()
        self.strict = strict
        self.aliases = dict(aliases or {})
        self.local_slots = local_slots
        self._local_name = _UNSET
        self._peripherals = None

    def refresh(self) -> None:
        """Forget cached discovery results; called at the start of each operation."""
        self._local_name = _UNSET
        self._peripherals = None

    def local_name(self) -> Optional[str]:
        """The local actor's network name, or None if not connected."""
        if self._local_name is _UNSET:
            self._local_name = self.retry.run(
                self.client.local_name,
                accept=bool,
                what="local_name",
            )
        return self._local_name

    def peripherals(self) -> list[dict]:
        """Peripheral listing, retried until it shows at least one inventory.

        Modems are attached before inventories finish registering, so a
        listing with no inventory in it counts as a failed attempt.
        """
        if self._peripherals is None:
            self._peripherals = self.retry.run(
                lambda: [p for p in self.client.peripherals() if p.get("name")],
                accept=lambda found: any(_is_inventory(p) for p in found),
                what="peripherals",
                empty=[],
            )
        return self._peripherals

    def inventories(self) -> list[str]:
        """Names of all nodes that can list their contents, in discovery order."""
        return [p["name"] for p in self.peripherals() if _is_inventory(p)]

    def methods(self, name: str) -> Optional[list[str]]:
        """Methods a peripheral exposes, or None if it cannot be reached."""
        for p in self.peripherals():
            if p["name"] == name:
                return list(p.get("methods") or [])
        info = self.client.peripheral(name)
        if info is None:
            return None
        return list(info.get("methods") or [])

    def is_local(self, name: str) -> bool:
        if name == LOCAL_ACTOR:
            return True
        local = self.local_name()
        return local is not None and name == local

    def same_node(self, a: str, b: str) -> bool:
        """True if two names address the same node."""
        if a == b:
            return True
        return self.is_local(a) and self.is_local(b)

    def resolve(self, location: LocationPattern) -> Resolution:
        """Resolve a location pattern to concrete node names.

        An empty resolution is not an error here; the caller decides.
        """
        if location.kind is LocationKind.SELF:
            logger.debug("resolve: self -> local actor")
            return Resolution([LOCAL_ACTOR])

        if location.kind is LocationKind.ANY:
            names = self.inventories()
            logger.debug(f"resolve: any mode, {len(names)} inventories")
            return Resolution(names, any_mode=True)

        return Resolution(self.match_name(location.raw))

    def match_name(self, pattern: str) -> list[str]:
        """Exact, then fuzzy match of a name pattern; at most one result.

        Fuzzy candidates are case-insensitive substring matches, first
        as written and then with separators removed from both sides.
        The shortest matching identifier wins; ties keep discovery order.
        """
        pattern = self.aliases.get(pattern, pattern)
        if not pattern:
            return []
        names = self.inventories()

        if pattern in names:
            return [pattern]
        local = self.local_name()
        if local and pattern == local:
            return [local]

        wanted = pattern.lower()
        relaxed = wanted.translate(_SEPARATORS)
        matches = []
        for name in names:
            lowered = name.lower()
            if wanted in lowered or relaxed in lowered.translate(_SEPARATORS):
                matches.append(name)

        if not matches:
            logger.debug(f"resolve: '{pattern}' matched nothing")
            return []

        best = sorted(matches, key=len)[0]
        logger.debug(f"resolve: '{pattern}' -> {best} ({len(matches)} candidates)")
        return [best]

    def notify_local_change(self) -> None:
        """Signal that the local actor's inventory changed."""
        try:
            self.client.queue_event(INVENTORY_EVENT)
        except DISCOVERY_ERRORS as e:
            logger.warning(f"could not queue {INVENTORY_EVENT} event: {e}")
