# Author: PB and Claude
# Date: 2026-10-18
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ---
# src/item_mover/errors.py

"""
IMV Exceptions

Operations report these as values (an error message on the result) and
only raise them in strict mode.
"""


class IMVError(Exception):
    """Base exception for IMV operations."""
    pass


class LocationNotFound(IMVError):
    """A location pattern resolved to zero nodes."""
    pass


class AmbiguousDestination(IMVError):
    """A non-any destination resolved to more than one node."""
    pass


class NoMatchOrFull(IMVError):
    """Nothing matched the item pattern, or every destination refused it."""
    pass


class CapabilityMissing(IMVError):
    """A node lacks the push/pull method a transfer needs."""
    pass


class TransferFailed(IMVError):
    """The network call for a transfer raised a fault."""
    pass


class DirectoryUnavailable(IMVError):
    """No nodes or no local network name could be discovered."""
    pass
