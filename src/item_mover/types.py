# Author: PB and Claude
# Date: 2026-10-18
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ---
# src/item_mover/types.py

"""
IMV Type Definitions

Dataclasses for parsed patterns, resolved requests and operation results,
with serialization support for the CLI and the HTTP service.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
import json


DEFAULT_MAX_COUNT = 64


@dataclass
class ItemStack:
    """A quantity of one item type sitting in one slot of one node."""
    slot: int
    name: str                               # Namespaced item name, e.g. "minecraft:coal"
    count: int
    max_count: int = DEFAULT_MAX_COUNT      # Stack limit for this item

    def to_dict(self) -> dict:
        return {
            "slot": self.slot,
            "name": self.name,
            "count": self.count,
            "max_count": self.max_count,
        }

    @classmethod
    def from_bridge(cls, slot: int, item: dict, detail: Optional[dict] = None) -> "ItemStack":
        """Create from a bridge list entry plus optional item detail."""
        # Bridge returns: {"name": "minecraft:coal", "count": 12} and detail adds "maxCount"
        max_count = (detail or {}).get("maxCount") or item.get("maxCount") or DEFAULT_MAX_COUNT
        return cls(
            slot=int(slot),
            name=item["name"],
            count=item.get("count", 0),
            max_count=max_count,
        )


class LocationKind(Enum):
    SELF = "self"
    ANY = "any"
    NAMED = "named"


@dataclass(frozen=True)
class LocationPattern:
    """Where items come from or go to."""
    kind: LocationKind
    raw: str = ""


@dataclass(frozen=True)
class ItemPattern:
    """Item name pattern; exact patterns were written with a leading '='."""
    text: str = "*"
    exact: bool = False

    def __str__(self) -> str:
        return f"={self.text}" if self.exact else self.text


class CountKind(Enum):
    FIXED = "fixed"
    ONE_STACK = "one_stack"
    ALL_MATCHING = "all_matching"


@dataclass(frozen=True)
class CountSpec:
    """How many items to move."""
    kind: CountKind = CountKind.FIXED
    n: int = 1                              # Only meaningful for FIXED

    @classmethod
    def fixed(cls, n: int) -> "CountSpec":
        return cls(CountKind.FIXED, n)

    @classmethod
    def one_stack(cls) -> "CountSpec":
        return cls(CountKind.ONE_STACK, 0)

    @classmethod
    def all_matching(cls) -> "CountSpec":
        return cls(CountKind.ALL_MATCHING, 0)

    def __str__(self) -> str:
        if self.kind is CountKind.ONE_STACK:
            return "+"
        if self.kind is CountKind.ALL_MATCHING:
            return "++"
        return str(self.n)


@dataclass(frozen=True)
class Pattern:
    """A parsed location/item:count expression."""
    location: LocationPattern
    item: ItemPattern = field(default_factory=ItemPattern)
    count: CountSpec = field(default_factory=CountSpec)


@dataclass
class Resolution:
    """Concrete node names a location pattern resolved to."""
    names: list[str]
    any_mode: bool = False

    def __len__(self) -> int:
        return len(self.names)


@dataclass
class TransferRequest:
    """A move with both sides already resolved to node names."""
    sources: list[str]
    item: ItemPattern
    count: CountSpec
    destinations: list[str]
    source_any: bool = False
    destination_any: bool = False


class TransferDirection(Enum):
    PULL_FROM_LOCAL = "pull_from_local"     # Destination pulls from the local actor
    PUSH_TO_LOCAL = "push_to_local"         # Source pushes to the local actor
    PUSH_REMOTE = "push_remote"             # Source pushes to destination


class OutcomeStatus(Enum):
    OK = "ok"
    SOFT_FAIL = "soft_fail"
    HARD_FAIL = "hard_fail"


@dataclass
class TransferOutcome:
    """Classified result of one slot-to-node transfer attempt."""
    status: OutcomeStatus
    transferred: int = 0
    message: Optional[str] = None
    error: Optional[Exception] = None       # Classified IMVError for failures

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.OK

    @classmethod
    def success(cls, transferred: int) -> "TransferOutcome":
        return cls(OutcomeStatus.OK, transferred or 0)


@dataclass
class TransferRecord:
    """One executed transfer, for reporting."""
    source: str
    slot: int
    item: str
    destination: str
    count: int

    def to_dict(self) -> dict:
        return {
            "source": self.source,
            "slot": self.slot,
            "item": self.item,
            "destination": self.destination,
            "count": self.count,
        }

    def __str__(self) -> str:
        return f"{self.source}: {self.count} x {self.item} -> {self.destination}"


# Return codes for MoveResult
RC_SUCCESS = 0          # Everything requested was moved (or drain finished)
RC_PARTIAL = 1          # Something moved, less than requested (not an error)
RC_FAILED = 2           # Nothing moved (no match, or every destination full)
RC_LOCATION_ERROR = 3   # Location not found or ambiguous destination


@dataclass
class MoveResult:
    """Result of a move between two patterns."""
    transferred: int                        # Total items moved
    returncode: int                         # 0=success, 1=partial, 2=failed, 3=location error
    error: Optional[str] = None             # Error message if nothing was moved
    error_kind: Optional[str] = None        # IMVError subclass name, e.g. "NoMatchOrFull"
    requested: Optional[int] = None         # Bounded request size (None when draining)
    transfers: list[TransferRecord] = field(default_factory=list)
    failures: list[str] = field(default_factory=list)  # Soft failures skipped on the way

    @property
    def ok(self) -> bool:
        """True if anything was moved."""
        return self.error is None and self.transferred > 0

    def __iter__(self):
        # Allows: moved, err = move(...)
        return iter((self.transferred, self.error))

    def to_dict(self) -> dict:
        return {
            "transferred": self.transferred,
            "returncode": self.returncode,
            "error": self.error,
            "error_kind": self.error_kind,
            "requested": self.requested,
            "transfers": [t.to_dict() for t in self.transfers],
            "failures": self.failures,
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


@dataclass
class BalancePlan:
    """Target distribution for one balance run."""
    total: int
    target: int                             # floor(total / nodes)
    extra: int                              # total mod nodes
    targets: dict[str, int]                 # node -> target count, in plan order
    baseline: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "target": self.target,
            "extra": self.extra,
            "targets": dict(self.targets),
            "baseline": dict(self.baseline),
        }


@dataclass
class BalanceMove:
    """One donor -> receiver step of a balance pass."""
    pass_number: int
    donor: str
    donor_count: int                        # Donor's count before the step
    receiver: str
    receiver_count: int                     # Receiver's count before the step
    count: int                              # Items actually moved

    def to_dict(self) -> dict:
        return {
            "pass": self.pass_number,
            "donor": self.donor,
            "donor_count": self.donor_count,
            "receiver": self.receiver,
            "receiver_count": self.receiver_count,
            "count": self.count,
        }

    def __str__(self) -> str:
        return (
            f"{self.donor} ({self.donor_count}) -> "
            f"{self.receiver} ({self.receiver_count}): {self.count}"
        )


@dataclass
class BalanceResult:
    """Result of balancing an item across the network."""
    moved: int
    error: Optional[str] = None
    passes: int = 0
    plan: Optional[BalancePlan] = None
    moves: list[BalanceMove] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None

    def __iter__(self):
        return iter((self.moved, self.error))

    def to_dict(self) -> dict:
        return {
            "moved": self.moved,
            "error": self.error,
            "passes": self.passes,
            "plan": self.plan.to_dict() if self.plan else None,
            "moves": [m.to_dict() for m in self.moves],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)
