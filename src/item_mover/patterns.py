# Author: PB and Claude
# Date: 2026-10-18
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ---
# src/item_mover/patterns.py

"""
Pattern language

    pattern  := location ["/" item [":" count]]
    location := "./" | "." | "*" | "../" | ".." | identifier
    item     := ["="] text
    count    := digits | "*" | "+" | "++"

Examples:
    chest23/lava:1      1 lava from the node matching "chest23"
    ./coal:*            one full stack of coal from the local actor
    */diamond:+         one full stack of diamonds from anywhere
    ./*:++              everything in the local actor
    */=bucket:1         exact match, so not lava_bucket

Parsing is permissive and never raises: anything it cannot split is
treated as a bare location, and resolution reports it as not found.
"""

import re
from typing import Optional

from item_mover.types import (
    CountSpec,
    ItemPattern,
    LocationKind,
    LocationPattern,
    Pattern,
)


SELF_TOKENS = ("./", ".")
ANY_TOKENS = ("*", "../", "..")
QUERY_MODES = ("count", "high", "low", "bal")

_COUNT_TOKEN = re.compile(r"^(\d+|\*|\+|\+\+)$")
_COUNT_CHARS = re.compile(r"^[\d*+]+$")
_QUERY_WITH_PARAM = re.compile(r"^q:([^:]+):([^:]+):(.+)$")
_QUERY = re.compile(r"^q:([^:]+):([^:]+)$")


def parse_location(text: str) -> LocationPattern:
    if text in SELF_TOKENS:
        return LocationPattern(LocationKind.SELF, text)
    if text in ANY_TOKENS:
        return LocationPattern(LocationKind.ANY, text)
    return LocationPattern(LocationKind.NAMED, text)


def parse_item(text: str) -> ItemPattern:
    if not text:
        return ItemPattern()
    if text.startswith("="):
        return ItemPattern(text[1:], exact=True)
    return ItemPattern(text)


def parse_count(token: Optional[str]) -> CountSpec:
    if token == "++":
        return CountSpec.all_matching()
    if token in ("*", "+"):
        return CountSpec.one_stack()
    if token and token.isdigit():
        return CountSpec.fixed(int(token))
    return CountSpec.fixed(1)


def parse_pattern(text: str) -> Pattern:
    """Parse "location/item:count" into a Pattern.

    The location ends at the last "/". The count is whatever follows the
    last ":" of the item part, but only when it is a count token, so that
    namespaced names like "minecraft:coal" stay intact. A malformed count
    ("coal:5+", "minecraft:coal:abc") becomes 1. A single colon followed
    by a word ("coal:abc") reads as a namespaced name.
    """
    text = text.replace("\\", "/")

    if text in SELF_TOKENS or text in ANY_TOKENS:
        return Pattern(parse_location(text))

    location, sep, rest = text.rpartition("/")
    if not sep or not location or not rest:
        return Pattern(parse_location(text))

    item_text, count_token = rest, None
    head, colon, tail = rest.rpartition(":")
    if colon:
        if tail == "" or _COUNT_TOKEN.match(tail):
            item_text, count_token = head, tail
        elif ":" in head or _COUNT_CHARS.match(tail):
            # A third field, or a mistyped count; the count degrades to 1
            item_text = head

    return Pattern(
        location=parse_location(location),
        item=parse_item(item_text),
        count=parse_count(count_token),
    )


def strip_namespace(name: str) -> str:
    """'minecraft:coal' -> 'coal'."""
    return name.split(":", 1)[1] if ":" in name else name


def item_matches(item_name: str, pattern: ItemPattern) -> bool:
    """True if an item name satisfies the pattern (case-insensitive)."""
    if not pattern.exact and pattern.text == "*":
        return True

    name = item_name.lower()
    short = strip_namespace(name)
    wanted = pattern.text.lower()

    if pattern.exact:
        return name == wanted or short == wanted
    return wanted in name or wanted in short


def parse_query(text: str) -> tuple[Optional[str], Optional[str], Optional[str]]:
    """Parse "q:<item>:<mode>[:<param>]".

    Returns (item, mode, param), or (None, None, None) if text is not a
    query. The mode is lowercased but not validated.
    """
    match = _QUERY_WITH_PARAM.match(text)
    if match:
        item, mode, param = match.groups()
        return item, mode.lower(), param
    match = _QUERY.match(text)
    if match:
        item, mode = match.groups()
        return item, mode.lower(), None
    return None, None, None
