"""Value types flowing between the catalog and the probing pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class CatalogRecord:
    """One advertised server, column order matching the upstream feed."""

    host_name: str
    ip: str
    score: int = 0
    ping: int = 0
    speed: int = 0
    country_long: str = ""
    country_short: str = ""
    num_vpn_sessions: int = 0
    uptime: int = 0
    total_users: int = 0
    total_traffic: int = 0
    log_type: str = ""
    operator: str = ""
    message: str = ""
    openvpn_config: bytes = field(default=b"", repr=False)

    @property
    def filename(self) -> str:
        return f"{self.country_short}_{self.host_name}_{self.ip}.ovpn"

    def to_target(self) -> "ProbeTarget":
        return ProbeTarget(
            host_name=self.host_name,
            ip=self.ip,
            country_short=self.country_short,
            speed=self.speed,
            ping=self.ping,
        )


@dataclass(frozen=True, slots=True)
class ProbeTarget:
    """Identity and display fields needed to probe and print a server."""

    host_name: str
    ip: str
    country_short: str
    speed: int
    ping: int

    @property
    def speed_mbps(self) -> float:
        return self.speed / 1_000_000


@dataclass(slots=True)
class ProbeOutcome:
    """Result of a single reachability test."""

    target: ProbeTarget
    reachable: bool
    latency_ms: float | None = None
    error: str | None = None


@dataclass(slots=True)
class ConfigEntry:
    """Configuration blob plus the fields printed alongside it."""

    host_name: str
    ip: str
    country_long: str
    openvpn_config: bytes = field(repr=False)


__all__ = ["CatalogRecord", "ConfigEntry", "ProbeOutcome", "ProbeTarget"]
