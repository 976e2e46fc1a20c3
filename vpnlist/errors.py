"""Error taxonomy shared by the store, feed and probing layers."""

from __future__ import annotations


class VpnListError(Exception):
    """Base class for all vpnlist failures."""


class PersistenceError(VpnListError):
    """Storage I/O or constraint failure; fatal to the calling operation."""


class NotFoundError(VpnListError, LookupError):
    """A query that must yield one row matched nothing."""


class ProbeSetupError(VpnListError, ValueError):
    """A reachability test could not be constructed for a single target."""

    def __init__(self, address: str, reason: str) -> None:
        super().__init__(f"cannot probe {address!r}: {reason}")
        self.address = address
        self.reason = reason


class FeedError(VpnListError):
    """The upstream server list could not be downloaded."""


__all__ = ["FeedError", "NotFoundError", "PersistenceError", "ProbeSetupError", "VpnListError"]
