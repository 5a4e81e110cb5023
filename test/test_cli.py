# Author: PB and Claude
# Date: 2026-10-18
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ---
# test/test_cli.py

"""Tests for the imv command line."""

import json
from unittest.mock import patch

import pytest
import requests
from click.testing import CliRunner

from item_mover.cli import cli
from item_mover.config import IMVConfig


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def invoke(runner, directory):
    """Run the CLI against the fake network."""
    def _invoke(*args, config=None):
        obj = {"directory": directory, "config": config or IMVConfig()}
        return runner.invoke(cli, list(args), obj=obj)
    return _invoke


@pytest.fixture
def stocked(network):
    network.add_inventory("minecraft:chest_1", {
        1: ("minecraft:coal", 40),
        2: ("minecraft:coal", 24),
    })
    network.add_inventory("minecraft:chest_2", {1: ("minecraft:coal", 2)})
    network.add_inventory("minecraft:chest_3")
    return network


class TestMove:
    def test_prints_count(self, stocked, invoke):
        result = invoke("move", "chest_1/coal:10", "chest_3")
        assert result.exit_code == 0
        assert result.output.strip() == "10"

    def test_verbose_lists_transfers(self, stocked, invoke):
        result = invoke("-v", "move", "chest_1/coal:50", "chest_3")

        assert result.exit_code == 0
        lines = result.output.strip().splitlines()
        assert lines == [
            "minecraft:chest_1: 40 x minecraft:coal -> minecraft:chest_3",
            "minecraft:chest_1: 10 x minecraft:coal -> minecraft:chest_3",
            "Total: 50 items transferred",
        ]

    def test_location_error(self, stocked, invoke):
        result = invoke("move", "furnace/coal", "chest_3")
        assert result.exit_code == 1
        assert "Could not find source location: furnace" in result.output

    def test_nothing_moved(self, stocked, invoke):
        result = invoke("move", "chest_1/diamond", "chest_3")
        assert result.exit_code == 1
        assert "No items matching 'diamond'" in result.output


class TestQueries:
    def test_count(self, stocked, invoke):
        result = invoke("count", "coal")
        assert result.output.strip() == "66"

    def test_high(self, stocked, invoke):
        result = invoke("-v", "high", "coal")
        assert result.output.splitlines() == ["minecraft:chest_1", "  (64 items)"]

    def test_low(self, stocked, invoke):
        assert invoke("low", "coal").output.strip() == "minecraft:chest_2"

    def test_low_include_empty(self, stocked, invoke):
        result = invoke("low", "coal", "--include-empty")
        assert result.output.strip() == "minecraft:chest_3"

    def test_not_found(self, stocked, invoke):
        assert invoke("high", "emerald").output.strip() == "Not found"

    def test_query_expression(self, stocked, invoke):
        assert invoke("query", "q:coal:count").output.strip() == "66"
        assert invoke("query", "q:coal:LOW").output.strip() == "minecraft:chest_2"

    def test_query_balance(self, stocked, invoke):
        result = invoke("query", "q:coal:bal")
        assert result.exit_code == 0
        assert result.output.strip() == "42"
        assert [inv.total("coal") for inv in stocked.nodes.values()] == [22, 22, 22]

    def test_query_unknown_mode(self, stocked, invoke):
        result = invoke("query", "q:coal:median")
        assert result.exit_code == 2
        assert "Unknown query mode: median" in result.output

    def test_not_a_query(self, stocked, invoke):
        result = invoke("query", "chest_1/coal")
        assert result.exit_code == 2
        assert "is not a query" in result.output


class TestBalance:
    def test_balance(self, stocked, invoke):
        result = invoke("balance", "coal")
        assert result.exit_code == 0
        assert result.output.strip() == "42"

    def test_verbose_lists_passes(self, stocked, invoke):
        result = invoke("-v", "balance", "coal")

        assert result.exit_code == 0
        assert result.output.splitlines() == [
            "Balancing 66 coal across 3 inventories",
            "Target: 22 per inventory",
            "--- Pass 1 ---",
            "  minecraft:chest_1 (64) -> minecraft:chest_2 (2): 20",
            "  minecraft:chest_1 (44) -> minecraft:chest_3 (0): 22",
            "Total moved: 42",
        ]

    def test_limit_from_config(self, stocked, invoke):
        with patch("item_mover.operations.query_balance") as mock_balance:
            mock_balance.return_value.error = None
            mock_balance.return_value.moved = 0
            invoke("balance", "coal", config=IMVConfig(balance_limit=16))
        assert mock_balance.call_args.kwargs["limit"] == 16

    def test_no_items(self, stocked, invoke):
        result = invoke("balance", "diamond")
        assert result.exit_code == 1
        assert "No items matching 'diamond' found" in result.output


class TestListing:
    def test_inventories(self, stocked, invoke):
        result = invoke("inventories")
        data = json.loads(result.output)
        assert data["local_name"] == "turtle_1"
        assert data["inventories"] == [
            "minecraft:chest_1", "minecraft:chest_2", "minecraft:chest_3",
        ]

    def test_ls(self, stocked, invoke):
        result = invoke("ls", "chest_1")
        assert result.output == "    64  minecraft:coal\n"

    def test_ls_empty(self, stocked, invoke):
        assert invoke("ls", "chest_3").output.strip() == "(empty)"

    def test_ls_unknown(self, stocked, invoke):
        result = invoke("ls", "furnace")
        assert result.exit_code == 1
        assert "Error: Could not find location: furnace" in result.output


class TestErrors:
    def test_connection_error(self, runner):
        with patch("item_mover.operations.query_count",
                   side_effect=requests.exceptions.ConnectionError("host='base'")):
            result = runner.invoke(cli, ["count", "coal"], obj={"directory": object()})
        assert result.exit_code == 1
        assert "Could not connect to bridge" in result.output
        assert "Host: base" in result.output


class TestConfig:
    def test_valid_config(self, runner, tmp_path):
        auth = tmp_path / "auth"
        auth.write_text("imv:pw")
        config = tmp_path / "imv.toml"
        config.write_text(f"""
[bridge]
host = "base"
auth_file = "{auth}"

[aliases]
ore = "minecraft:barrel_4"
""")
        result = runner.invoke(cli, ["--config-file", str(config), "config"])

        assert result.exit_code == 0
        assert "host: base" in result.output
        assert "ore -> minecraft:barrel_4" in result.output
        assert "Config is valid" in result.output

    def test_invalid_config(self, runner, tmp_path):
        config = tmp_path / "imv.toml"
        config.write_text("""
[bridge]
port = 0
""")
        result = runner.invoke(cli, ["--config-file", str(config), "config", "--validate-only"])

        assert result.exit_code == 1
        assert "out of range" in result.output
