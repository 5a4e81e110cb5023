"""
HTTP client for the peripheral bridge REST API.

The bridge exposes the wired-modem network of the controlling computer:
every attached peripheral (inventories, modems) and the local actor's own
slots. This module is the only place that talks to it.

Debug logging:
    Enable with: IMV_DEBUG=1 or by setting log level to DEBUG
    Example: IMV_DEBUG=1 imv move chest23/coal:5 ./
"""

import logging
import os
from typing import Optional
from urllib.parse import quote

import requests

DEFAULT_PORT = 8950
DEFAULT_TIMEOUT = 5.0

# Configure logger for this module
logger = logging.getLogger(__name__)

# Enable debug logging via environment variable
if os.environ.get("IMV_DEBUG"):
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )
    logger.setLevel(logging.DEBUG)


class BridgeAPIError(Exception):
    """Raised when the bridge API returns an error."""

    def __init__(self, message: str, status_code: int = None, response: dict = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


def _path(name: str) -> str:
    # Peripheral names contain ':' (minecraft:chest_23)
    return quote(name, safe="")


class PeripheralClient:
    """HTTP client for the peripheral bridge."""

    def __init__(
        self,
        host: str,
        port: int = DEFAULT_PORT,
        basic_auth: tuple = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """
        Initialize bridge client.

        Args:
            host: Hostname or IP of the bridge
            port: Bridge API port (default 8950)
            basic_auth: Tuple of (username, password) or None
            timeout: Seconds to wait for each request
        """
        self.base_url = f"http://{host}:{port}"
        self.auth = basic_auth
        self.timeout = timeout
        self.session = requests.Session()
        if basic_auth:
            self.session.auth = basic_auth

    def _request(self, method: str, endpoint: str, **kwargs) -> requests.Response:
        """Make HTTP request to bridge API."""
        url = f"{self.base_url}{endpoint}"
        kwargs.setdefault("timeout", self.timeout)

        logger.debug(f"Request: {method} {url}")
        if "json" in kwargs:
            logger.debug(f"Request body: {kwargs['json']}")

        response = self.session.request(method, url, **kwargs)

        logger.debug(f"Response status: {response.status_code}")
        # Truncate body for logging (first 2000 chars)
        body_preview = response.text[:2000] if response.text else "(empty)"
        logger.debug(f"Response body: {body_preview}")

        if response.status_code == 401:
            raise BridgeAPIError("Unauthorized: check basic auth credentials", 401)
        if response.status_code >= 400:
            try:
                error_data = response.json()
                msg = error_data.get("message", response.text)
            except Exception:
                msg = response.text
            raise BridgeAPIError(msg, response.status_code)

        return response

    def _json_or_none(self, response: requests.Response):
        if response.status_code == 204 or not response.text:
            return None
        return response.json()

    def peripherals(self) -> list[dict]:
        """
        List every peripheral on the network.

        Returns list of dicts with: name, type, methods
        """
        response = self._request("GET", "/peripherals")
        return self._json_or_none(response) or []

    def peripheral(self, name: str) -> Optional[dict]:
        """
        Describe one peripheral.

        Returns dict with name, type, methods, or None if it is not attached.
        """
        try:
            response = self._request("GET", f"/peripherals/{_path(name)}")
        except BridgeAPIError as e:
            if e.status_code == 404:
                return None
            raise
        return self._json_or_none(response)

    def local_name(self) -> Optional[str]:
        """
        Network name of the local actor (e.g. "turtle_6").

        Returns None when no modem reports a local name.
        """
        response = self._request("GET", "/local")
        data = self._json_or_none(response) or {}
        return data.get("name") or None

    def list_items(self, name: str) -> dict[int, dict]:
        """
        List the occupied slots of an inventory.

        Returns {slot: {"name": ..., "count": ...}}. JSON object keys come
        back as strings and are converted to ints.
        """
        response = self._request("GET", f"/peripherals/{_path(name)}/list")
        data = self._json_or_none(response) or {}
        return {int(slot): item for slot, item in data.items() if item}

    def item_detail(self, name: str, slot: int) -> Optional[dict]:
        """
        Detailed info for one slot (includes maxCount).

        Returns None for an empty slot.
        """
        response = self._request("GET", f"/peripherals/{_path(name)}/items/{slot}")
        return self._json_or_none(response)

    def local_item_detail(self, slot: int) -> Optional[dict]:
        """Detailed info for one of the local actor's slots, None if empty."""
        response = self._request("GET", f"/local/slots/{slot}")
        return self._json_or_none(response)

    def push_items(self, name: str, to_name: str, from_slot: int, limit: int) -> int:
        """
        Ask inventory `name` to push from one of its slots into `to_name`.

        Returns the number of items actually moved.
        """
        response = self._request(
            "POST",
            f"/peripherals/{_path(name)}/push",
            json={"to_name": to_name, "from_slot": from_slot, "limit": limit},
        )
        data = self._json_or_none(response) or {}
        return int(data.get("transferred") or 0)

    def pull_items(self, name: str, from_name: str, from_slot: int, limit: int) -> int:
        """
        Ask inventory `name` to pull from a slot of `from_name`.

        Returns the number of items actually moved.
        """
        response = self._request(
            "POST",
            f"/peripherals/{_path(name)}/pull",
            json={"from_name": from_name, "from_slot": from_slot, "limit": limit},
        )
        data = self._json_or_none(response) or {}
        return int(data.get("transferred") or 0)

    def queue_event(self, event: str) -> None:
        """Queue an event on the local actor (e.g. "turtle_inventory")."""
        self._request("POST", "/local/events", json={"event": event})
