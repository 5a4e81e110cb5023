# Author: PB and Claude
# Date: 2026-10-18
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ---
# test/test_api.py

"""Tests for the HTTP service, run against the fake network."""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from api.app import app, get_directory
from item_mover.bridge_api import BridgeAPIError


@pytest.fixture
def client(network, directory):
    network.add_inventory("minecraft:chest_1", {
        1: ("minecraft:diamond", 10),
        2: ("minecraft:coal", 5),
    })
    network.add_inventory("minecraft:chest_2", {1: ("minecraft:dirt", 64)})
    network.add_inventory("minecraft:chest_3", {4: ("minecraft:diamond", 6)})

    app.dependency_overrides[get_directory] = lambda: directory
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestInfo:
    def test_api_info(self, client):
        response = client.get("/api")
        assert response.status_code == 200
        assert response.json()["service"] == "Item Mover API"

    def test_inventories(self, client):
        data = client.get("/inventories").json()
        assert data["local_name"] == "turtle_1"
        assert len(data["inventories"]) == 3


class TestMove:
    def test_move(self, client, network):
        response = client.post("/move", json={"source": "chest_1/coal:3", "destination": "./"})

        assert response.status_code == 200
        data = response.json()
        assert data["transferred"] == 3
        assert data["returncode"] == 0
        assert data["transfers"][0]["destination"] == "__local_actor__"
        assert network.turtle.total("coal") == 3

    def test_partial(self, client):
        data = client.post("/move", json={"source": "chest_1/coal:9", "destination": "chest_2"}).json()
        assert data["transferred"] == 5
        assert data["returncode"] == 1
        assert data["requested"] == 9

    def test_location_not_found(self, client):
        response = client.post("/move", json={"source": "furnace/coal", "destination": "./"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Could not find source location: furnace"

    def test_nothing_moved(self, client):
        response = client.post("/move", json={"source": "chest_1/emerald", "destination": "./"})
        assert response.status_code == 409

    def test_bridge_failure(self, client):
        with patch("item_mover.operations.move", side_effect=BridgeAPIError("down", 503)):
            response = client.post("/move", json={"source": "a", "destination": "b"})
        assert response.status_code == 502


class TestQueries:
    def test_count(self, client):
        assert client.get("/query/count", params={"item": "diamond"}).json() == {
            "item": "diamond", "count": 16,
        }

    def test_high(self, client):
        data = client.get("/query/high", params={"item": "diamond"}).json()
        assert data["inventory"] == "minecraft:chest_1"
        assert data["count"] == 10

    def test_low(self, client):
        data = client.get("/query/low", params={"item": "diamond"}).json()
        assert data["inventory"] == "minecraft:chest_3"

    def test_low_include_empty(self, client):
        params = {"item": "diamond", "include_empty": "true"}
        data = client.get("/query/low", params=params).json()
        assert data["inventory"] == "minecraft:chest_2"
        assert data["count"] == 0

    def test_high_not_found(self, client):
        data = client.get("/query/high", params={"item": "emerald"}).json()
        assert data["inventory"] is None


class TestBalance:
    def test_balance(self, client, network):
        response = client.post("/balance", json={"item": "diamond"})

        data = response.json()
        assert data["moved"] == 5
        assert data["error"] is None
        assert data["plan"]["target"] == 5
        assert sorted(inv.total("diamond") for inv in network.nodes.values()) == [5, 5, 6]

    def test_moves_reported(self, client):
        data = client.post("/balance", json={"item": "diamond"}).json()
        assert [(m["donor"], m["receiver"], m["count"]) for m in data["moves"]] == [
            ("minecraft:chest_1", "minecraft:chest_2", 4),
            ("minecraft:chest_3", "minecraft:chest_2", 1),
        ]

    def test_no_items(self, client):
        response = client.post("/balance", json={"item": "emerald"})
        assert response.status_code == 409
        assert response.json()["detail"] == "No items matching 'emerald' found"

    def test_no_items_matches_move_status(self, client):
        move = client.post("/move", json={"source": "chest_1/emerald", "destination": "./"})
        balance = client.post("/balance", json={"item": "emerald"})
        assert move.status_code == balance.status_code == 409


class TestSummary:
    def test_summary(self, client):
        data = client.get("/summary", params={"location": "chest_1"}).json()
        assert data["items"] == {"minecraft:diamond": 10, "minecraft:coal": 5}

    def test_unknown_location(self, client):
        response = client.get("/summary", params={"location": "furnace"})
        assert response.status_code == 404
