# Author: PB and Claude
# Date: 2026-10-18
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ---
# test/conftest.py

"""Shared fixtures: an in-memory stand-in for the peripheral bridge."""

import pytest

from item_mover.bridge_api import BridgeAPIError
from item_mover.directory import Directory, RetryPolicy


INVENTORY_METHODS = ["list", "size", "getItemDetail", "pushItems", "pullItems"]
MAX_COUNTS = {"minecraft:bucket": 16, "minecraft:ender_pearl": 16}


def max_count(name: str) -> int:
    return MAX_COUNTS.get(name, 64)


class FakeInventory:
    def __init__(self, size: int = 27, methods=None, items=None):
        self.size = size
        self.methods = list(INVENTORY_METHODS if methods is None else methods)
        self.slots = {}
        for slot, (name, count) in (items or {}).items():
            self.slots[slot] = {"name": name, "count": count}

    def total(self, name: str) -> int:
        return sum(s["count"] for s in self.slots.values() if name in s["name"])

    def insert(self, name: str, count: int) -> int:
        cap = max_count(name)
        moved = 0
        for slot in range(1, self.size + 1):
            stack = self.slots.get(slot)
            if stack and stack["name"] == name and stack["count"] < cap:
                add = min(cap - stack["count"], count - moved)
                stack["count"] += add
                moved += add
        for slot in range(1, self.size + 1):
            if moved >= count:
                break
            if slot not in self.slots:
                add = min(cap, count - moved)
                self.slots[slot] = {"name": name, "count": add}
                moved += add
        return moved


class FakeNetwork:
    """Implements the PeripheralClient methods against in-memory inventories."""

    def __init__(self, local_name="turtle_1"):
        self.nodes = {}
        self.other = {}                 # non-inventory peripherals, name -> methods
        self.turtle = FakeInventory(size=16, methods=[])
        self.local = local_name
        self.events = []
        self.calls = []
        self.broken = set()             # names whose push/pull raise
        self.full = set()               # names that accept nothing

    def add_inventory(self, name, items=None, size=27, methods=None) -> FakeInventory:
        inv = FakeInventory(size=size, methods=methods, items=items)
        self.nodes[name] = inv
        return inv

    def _lookup(self, name):
        if self.local and name == self.local:
            return self.turtle
        return self.nodes.get(name)

    def _move(self, src, slot, dst_name, limit) -> int:
        dst = self._lookup(dst_name)
        stack = src.slots.get(slot)
        if dst is None or stack is None or dst_name in self.full:
            return 0
        moved = dst.insert(stack["name"], min(limit, stack["count"]))
        stack["count"] -= moved
        if stack["count"] == 0:
            del src.slots[slot]
        return moved

    # PeripheralClient interface

    def peripherals(self):
        found = [{"name": n, "type": "minecraft:chest", "methods": inv.methods}
                 for n, inv in self.nodes.items()]
        found += [{"name": n, "type": "other", "methods": m} for n, m in self.other.items()]
        return found

    def peripheral(self, name):
        if name in self.nodes:
            return {"name": name, "type": "minecraft:chest", "methods": self.nodes[name].methods}
        if name in self.other:
            return {"name": name, "type": "other", "methods": self.other[name]}
        return None

    def local_name(self):
        return self.local

    def list_items(self, name):
        inv = self.nodes.get(name)
        if inv is None:
            raise BridgeAPIError(f"no such peripheral: {name}", 404)
        return {slot: dict(stack) for slot, stack in inv.slots.items()}

    def item_detail(self, name, slot):
        stack = self.nodes[name].slots.get(slot)
        if stack is None:
            return None
        return {**stack, "maxCount": max_count(stack["name"])}

    def local_item_detail(self, slot):
        stack = self.turtle.slots.get(slot)
        if stack is None:
            return None
        return {**stack, "maxCount": max_count(stack["name"])}

    def push_items(self, name, to_name, from_slot, limit):
        self.calls.append(("push", name, to_name, from_slot, limit))
        if name in self.broken:
            raise BridgeAPIError("peripheral detached", 500)
        return self._move(self.nodes[name], from_slot, to_name, limit)

    def pull_items(self, name, from_name, from_slot, limit):
        self.calls.append(("pull", name, from_name, from_slot, limit))
        if name in self.broken:
            raise BridgeAPIError("peripheral detached", 500)
        src = self._lookup(from_name)
        if src is None:
            return 0
        return self._move(src, from_slot, name, limit)

    def queue_event(self, event):
        self.events.append(event)


def no_sleep(seconds):
    pass


@pytest.fixture
def network():
    return FakeNetwork()


@pytest.fixture
def directory(network):
    return Directory(network, retry=RetryPolicy(attempts=3, delay=0.2, sleep=no_sleep))


@pytest.fixture
def strict_directory(network):
    return Directory(network, retry=RetryPolicy(sleep=no_sleep), strict=True)
