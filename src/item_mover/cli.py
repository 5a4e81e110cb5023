# Author: PB and Claude
# Date: 2026-10-18
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ---
# src/item_mover/cli.py

"""
IMV Command Line Interface

Thin wrapper around the operations module.

    imv move chest23/lava:1 ./        1 lava from chest23 to self
    imv move ./coal:* chest23         full stack of coal from self to chest23
    imv move */diamond:+ ./           full stack of diamonds from anywhere to self
    imv move ./*:++ ../               everything from self to any inventory
    imv query q:gold:bal:10           balance gold until a pass moves < 10
"""

from pathlib import Path
import json
import logging
import re
import sys

import click
import requests

from item_mover.bridge_api import BridgeAPIError
from item_mover import config as config_module
from item_mover import operations
from item_mover.errors import IMVError
from item_mover.patterns import QUERY_MODES, parse_query


def handle_api_error(func):
    """Decorator to catch API and connection errors."""
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except BridgeAPIError as e:
            click.echo(f"Error: Bridge API error: {e}", err=True)
            sys.exit(1)
        except IMVError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)
        except requests.exceptions.ConnectionError as e:
            msg = str(e)
            click.echo("Error: Could not connect to bridge", err=True)
            if "host=" in msg:
                match = re.search(r"host='([^']+)'", msg)
                if match:
                    click.echo(f"  Host: {match.group(1)}", err=True)
            click.echo("  Check --host value or config", err=True)
            sys.exit(1)
        except requests.exceptions.RequestException as e:
            click.echo(f"Error: Network error: {e}", err=True)
            sys.exit(1)
    wrapper.__name__ = func.__name__
    wrapper.__doc__ = func.__doc__
    return wrapper


def _directory(ctx: click.Context):
    """Build the Directory from the group options, once per invocation."""
    obj = ctx.ensure_object(dict)
    if "directory" not in obj:
        config = config_module.load_config(obj.get("config_file"))
        obj["config"] = config
        obj["directory"] = operations.get_directory(
            config, host=obj.get("host"), strict=obj.get("debug", False)
        )
    return obj["directory"]


@click.group()
@click.option(
    "--config-file",
    type=click.Path(exists=True, path_type=Path),
    help="Config file path (default: /etc/tfc/imv.toml)",
)
@click.option("--host", help="Override bridge host to talk to (default: from config)")
@click.option("-v", "--verbose", is_flag=True, help="Print every transfer")
@click.option("-d", "--debug", is_flag=True, help="Debug logging; stop on the first failure")
@click.pass_context
def cli(ctx, config_file: Path, host: str, verbose: bool, debug: bool):
    """Move, count and balance items across networked inventories."""
    ctx.ensure_object(dict)
    ctx.obj.update(config_file=config_file, host=host, verbose=verbose, debug=debug)

    # -v output goes through click.echo; logging stays quiet unless debugging
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )


@cli.command()
@click.argument("source")
@click.argument("destination")
@click.pass_context
@handle_api_error
def move(ctx, source: str, destination: str) -> None:
    """
    Move items from SOURCE to DESTINATION.

    Patterns are <location>/<item>:<count>. location is a peripheral name
    or fuzzy match (chest23), ./ for self, * or ../ for any. item defaults
    to everything; a leading = makes it exact. count is a number, * or +
    for one stack, ++ for all matching items (default 1).
    """
    verbose = ctx.obj["verbose"]
    result = operations.move(source, destination, _directory(ctx), verbose=verbose)

    if result.error:
        click.echo(f"Error: {result.error}", err=True)
        sys.exit(1)

    if verbose:
        for record in result.transfers:
            click.echo(str(record))
        click.echo(f"Total: {result.transferred} items transferred")
    else:
        click.echo(result.transferred)


def _print_node(name, count, verbose: bool) -> None:
    if name is None:
        click.echo("Not found")
        return
    click.echo(name)
    if verbose:
        click.echo(f"  ({count} items)")


def _run_balance(ctx, item: str, limit) -> None:
    directory = _directory(ctx)
    if limit is None:
        limit = ctx.obj["config"].balance_limit
    result = operations.query_balance(item, directory, verbose=ctx.obj["verbose"], limit=limit)
    if result.error:
        click.echo(f"Error: {result.error}", err=True)
        sys.exit(1)

    if ctx.obj["verbose"] and result.plan:
        plan = result.plan
        click.echo(f"Balancing {plan.total} {item} across {len(plan.targets)} inventories")
        click.echo(f"Target: {plan.target} per inventory")
        if plan.extra:
            click.echo(f"  ({plan.extra} inventories get {plan.target + 1})")
        current = None
        for step in result.moves:
            if step.pass_number != current:
                current = step.pass_number
                click.echo(f"--- Pass {current} ---")
            click.echo(f"  {step}")
        click.echo(f"Total moved: {result.moved}")
        return
    click.echo(result.moved)


@cli.command()
@click.argument("item")
@click.pass_context
@handle_api_error
def count(ctx, item: str) -> None:
    """Total ITEM across every inventory."""
    click.echo(operations.query_count(item, _directory(ctx)))


@cli.command()
@click.argument("item")
@click.pass_context
@handle_api_error
def high(ctx, item: str) -> None:
    """Inventory holding the most ITEM."""
    name, total = operations.query_high(item, _directory(ctx))
    _print_node(name, total, ctx.obj["verbose"])


@cli.command()
@click.argument("item")
@click.option("--include-empty", is_flag=True, help="Consider inventories holding none")
@click.pass_context
@handle_api_error
def low(ctx, item: str, include_empty: bool) -> None:
    """Inventory holding the least ITEM (more than zero by default)."""
    name, total = operations.query_low(item, _directory(ctx), include_empty=include_empty)
    _print_node(name, total, ctx.obj["verbose"])


@cli.command()
@click.argument("item")
@click.option("--limit", type=int, help="Keep balancing until a pass moves fewer items")
@click.pass_context
@handle_api_error
def balance(ctx, item: str, limit: int) -> None:
    """Distribute ITEM evenly across every inventory."""
    _run_balance(ctx, item, limit)


@cli.command()
@click.argument("expression")
@click.pass_context
@handle_api_error
def query(ctx, expression: str) -> None:
    """
    Run a query written as q:<item>:<mode>[:<limit>].

    Modes: count, high, low, bal. The limit only applies to bal.

    Examples:

        imv query q:diamond:count

        imv -v query q:coal:bal:10
    """
    item, mode, param = parse_query(expression)
    if item is None:
        raise click.BadParameter(
            f"'{expression}' is not a query (expected q:<item>:<mode>)",
            param_hint="EXPRESSION",
        )
    if mode not in QUERY_MODES:
        click.echo(f"Unknown query mode: {mode}", err=True)
        click.echo(f"Valid modes: {', '.join(QUERY_MODES)}", err=True)
        sys.exit(2)

    if mode == "count":
        ctx.invoke(count, item=item)
    elif mode == "high":
        ctx.invoke(high, item=item)
    elif mode == "low":
        ctx.invoke(low, item=item, include_empty=False)
    else:
        limit = int(param) if param and param.isdigit() else None
        _run_balance(ctx, item, limit)


@cli.command()
@click.pass_context
@handle_api_error
def inventories(ctx) -> None:
    """List inventories on the network and the local network name."""
    directory = _directory(ctx)
    directory.refresh()
    output = {
        "local_name": directory.local_name(),
        "inventories": directory.inventories(),
    }
    click.echo(json.dumps(output, indent=2))


@cli.command()
@click.argument("location")
@click.pass_context
@handle_api_error
def ls(ctx, location: str) -> None:
    """
    Item totals in LOCATION (a pattern; an item part filters the listing).
    """
    totals = operations.summary(location, _directory(ctx))
    if not totals:
        click.echo("(empty)")
    for name, total in totals.items():
        click.echo(f"{total:6d}  {name}")


@cli.command()
@click.option(
    "--validate-only",
    is_flag=True,
    help="Only validate config, don't display it",
)
@click.pass_context
def config(ctx, validate_only: bool) -> None:
    """
    Display and validate IMV configuration.

    Examples:

        imv config                    # Display config with validation

        imv config --validate-only    # Just check for errors
    """
    config_file = ctx.obj.get("config_file")
    config_path = config_file or config_module.DEFAULT_CONFIG

    try:
        cfg = config_module.load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    errors, warnings = cfg.validate()

    if not validate_only:
        click.echo(f"Config file: {config_path}")
        click.echo()
        click.echo("Bridge:")
        click.echo(f"  host: {cfg.bridge.host}")
        click.echo(f"  port: {cfg.bridge.port}")
        click.echo(f"  timeout: {cfg.bridge.timeout}")
        click.echo(f"  auth: {'configured' if cfg.auth else '(not set)'}")
        click.echo()
        click.echo("Discovery:")
        click.echo(f"  attempts: {cfg.discovery.attempts}")
        click.echo(f"  delay: {cfg.discovery.delay}")
        click.echo(f"  local_slots: {cfg.discovery.local_slots}")
        click.echo()
        click.echo(f"Balance limit: {cfg.balance_limit if cfg.balance_limit else '(not set)'}")
        if cfg.aliases:
            click.echo()
            click.echo("Aliases:")
            for name, target in cfg.aliases.items():
                click.echo(f"  {name} -> {target}")
        click.echo()

    if errors:
        click.echo("Errors:", err=True)
        for e in errors:
            click.echo(f"  ✗ {e}", err=True)
    if warnings:
        click.echo("Warnings:")
        for w in warnings:
            click.echo(f"  ⚠ {w}")
    if not errors and not warnings:
        click.echo("✓ Config is valid")

    sys.exit(1 if errors else 0)
