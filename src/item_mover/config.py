# Author: PB and Claude
# Date: 2026-10-18
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ---
# src/item_mover/config.py

"""
IMV Configuration Management

Reads TFC toml convention:
  /etc/tfc/common.toml  -- shared config
  /etc/tfc/imv.toml     -- IMV-specific config (bridge, discovery, aliases)

Auth credentials live in a separate file referenced by [bridge].auth_file.
Deep merge: common.toml is base, imv.toml overrides at section level.
"""

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from item_mover.bridge_api import DEFAULT_PORT, DEFAULT_TIMEOUT


DEFAULT_COMMON = Path("/etc/tfc/common.toml")
DEFAULT_CONFIG = Path("/etc/tfc/imv.toml")

# Location tokens that cannot be used as alias names
RESERVED_NAMES = ("./", ".", "*", "../", "..")


@dataclass
class BridgeAuth:
    """Authentication credentials for the bridge API."""
    user: str
    password: str

    def to_auth_string(self) -> str:
        return f"{self.user}:{self.password}"

    def to_tuple(self) -> tuple:
        return (self.user, self.password)


@dataclass
class BridgeConfig:
    """Where the peripheral bridge listens."""
    host: str = "localhost"
    port: int = DEFAULT_PORT
    timeout: float = DEFAULT_TIMEOUT

    def to_dict(self) -> dict:
        return {"host": self.host, "port": self.port, "timeout": self.timeout}

    @classmethod
    def from_dict(cls, data: dict) -> "BridgeConfig":
        return cls(
            host=data.get("host", "localhost"),
            port=int(data.get("port", DEFAULT_PORT)),
            timeout=float(data.get("timeout", DEFAULT_TIMEOUT)),
        )


@dataclass
class DiscoveryConfig:
    """Retry settings for node discovery."""
    attempts: int = 3
    delay: float = 0.2
    local_slots: int = 16

    def to_dict(self) -> dict:
        return {
            "attempts": self.attempts,
            "delay": self.delay,
            "local_slots": self.local_slots,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DiscoveryConfig":
        return cls(
            attempts=int(data.get("attempts", 3)),
            delay=float(data.get("delay", 0.2)),
            local_slots=int(data.get("local_slots", 16)),
        )


@dataclass
class IMVConfig:
    """Complete IMV configuration."""
    auth: Optional[BridgeAuth] = None
    bridge: BridgeConfig = field(default_factory=BridgeConfig)
    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)
    balance_limit: Optional[int] = None
    aliases: dict[str, str] = field(default_factory=dict)

    def get_alias(self, name: str) -> Optional[str]:
        """Get the node identifier an alias points at."""
        return self.aliases.get(name)

    def get_basic_auth_string(self) -> Optional[str]:
        """Get basic auth string for API calls."""
        return self.auth.to_auth_string() if self.auth else None

    def validate(self) -> tuple[list[str], list[str]]:
        """
        Validate configuration, return (errors, warnings).
        Empty errors list means config is valid for operations.
        """
        errors = []
        warnings = []

        if not self.bridge.host:
            errors.append("bridge host is not set")
        if not 0 < self.bridge.port < 65536:
            errors.append(f"bridge port {self.bridge.port} is out of range")
        if self.bridge.timeout <= 0:
            errors.append("bridge timeout must be positive")

        if self.discovery.attempts < 1:
            errors.append("discovery attempts must be at least 1")
        if self.discovery.delay < 0:
            errors.append("discovery delay cannot be negative")
        if self.discovery.local_slots < 1:
            errors.append("local_slots must be at least 1")

        if self.balance_limit is not None and self.balance_limit < 1:
            errors.append("balance limit must be at least 1")

        for name, target in self.aliases.items():
            if name in RESERVED_NAMES:
                errors.append(f"alias '{name}' shadows a location token")
            if not target:
                errors.append(f"alias '{name}' has no target")

        if not self.auth:
            warnings.append("no bridge auth configured")

        return errors, warnings


def _deep_merge(base: dict, override: dict) -> dict:
    """Merge override into base at section level.

    For top-level keys that are both dicts (TOML sections), merge their
    contents with override winning on key conflict.
    For non-dict values, override replaces base.
    """
    merged = dict(base)
    for key, val in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(val, dict):
            merged[key] = {**merged[key], **val}
        else:
            merged[key] = val
    return merged


def _load_auth(auth_file: Path) -> BridgeAuth:
    """Read auth file containing 'user:password'.

    Raises:
        FileNotFoundError: If auth file doesn't exist
        ValueError: If auth file format is invalid
    """
    if not auth_file.exists():
        raise FileNotFoundError(f"Auth file not found: {auth_file}")

    text = auth_file.read_text().strip()
    if ":" not in text:
        raise ValueError(f"Invalid auth file format (expected 'user:password'): {auth_file}")

    user, password = text.split(":", 1)
    return BridgeAuth(user=user, password=password)


def load_config(
    config_path: Path = None, common_path: Path = None
) -> IMVConfig:
    """Load config from common.toml + imv.toml. Returns IMVConfig.

    Args:
        config_path: Path to imv.toml. Default: /etc/tfc/imv.toml
        common_path: Path to common.toml. Default: /etc/tfc/common.toml

    Returns:
        IMVConfig object. Built-in defaults when the default imv.toml is absent.

    Raises:
        FileNotFoundError: If an explicit config path or the auth file doesn't exist
        ValueError: If config files are invalid
    """
    common_file = common_path or DEFAULT_COMMON
    config_file = config_path or DEFAULT_CONFIG

    # Load common.toml (optional)
    common = {}
    if common_file.exists():
        with open(common_file, "rb") as f:
            common = tomllib.load(f)

    # imv.toml is optional at its default location, required when named explicitly
    specific = {}
    if config_file.exists():
        with open(config_file, "rb") as f:
            specific = tomllib.load(f)
    elif config_path is not None:
        raise FileNotFoundError(f"Config file not found: {config_file}")

    config = _deep_merge(common, specific)

    bridge = config.get("bridge", {})

    auth = None
    if "auth_file" in bridge:
        auth = _load_auth(Path(bridge["auth_file"]))

    limit = config.get("balance", {}).get("limit")

    return IMVConfig(
        auth=auth,
        bridge=BridgeConfig.from_dict(bridge),
        discovery=DiscoveryConfig.from_dict(config.get("discovery", {})),
        balance_limit=int(limit) if limit is not None else None,
        aliases={name: str(target) for name, target in config.get("aliases", {}).items()},
    )
