"""Pydantic models used across the vpnlist configuration flow."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_FEED_URL = "http://www.vpngate.net/api/iphone/"


class QueryFilter(BaseModel):
    """Criteria selecting catalog records; an unset criterion does not restrict."""

    countries: frozenset[str] | None = None
    min_speed_mbps: int = 0

    @field_validator("countries", mode="before")
    @classmethod
    def _normalise_countries(cls, value: Any) -> frozenset[str] | None:
        if value is None:
            return None
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, Iterable):
            raise ValueError("countries expects a collection of country codes")
        codes = frozenset(str(code).strip().upper() for code in value if str(code).strip())
        return codes or None

    @field_validator("min_speed_mbps")
    @classmethod
    def _validate_speed(cls, value: int) -> int:
        if value < 0:
            raise ValueError("min_speed_mbps must be >= 0")
        return value

    @property
    def min_speed_bps(self) -> int:
        return self.min_speed_mbps * 1_000_000

    @property
    def is_empty(self) -> bool:
        return not self.countries and self.min_speed_mbps == 0


class ProbeConfig(BaseModel):
    """Liveness probing defaults."""

    workers: int = 1
    timeout: float = 0.5
    port: int = 443
    queue_size: int = 50

    @model_validator(mode="after")
    def _validate_bounds(self) -> "ProbeConfig":
        if self.workers < 1:
            raise ValueError("workers must be >= 1")
        if self.timeout <= 0:
            raise ValueError("timeout must be > 0")
        if not 0 < self.port < 65536:
            raise ValueError("port must be within 1..65535")
        if self.queue_size < 1:
            raise ValueError("queue_size must be >= 1")
        return self


class GlobalConfig(BaseModel):
    """Application-wide settings persisted in config.yaml."""

    database_path: Path = Field(default=Path("data/db.sqlite"))
    export_dir: Path = Field(default=Path("ovpn"))
    feed_url: str = DEFAULT_FEED_URL
    feed_timeout: float = 30.0
    color_output: bool = True
    probe: ProbeConfig = Field(default_factory=ProbeConfig)

    @field_validator("database_path", "export_dir", mode="before")
    @classmethod
    def _coerce_paths(cls, value: Any) -> Path:
        return Path(value)

    @field_validator("feed_timeout")
    @classmethod
    def _validate_feed_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("feed_timeout must be > 0")
        return value

    def resolve(self, base_dir: Path) -> "GlobalConfig":
        """Return a copy whose relative paths are anchored at ``base_dir``."""

        updates: dict[str, Path] = {}
        for name in ("database_path", "export_dir"):
            path: Path = getattr(self, name)
            if not path.is_absolute():
                updates[name] = (base_dir / path).resolve()
        return self.model_copy(update=updates)


__all__ = ["DEFAULT_FEED_URL", "GlobalConfig", "ProbeConfig", "QueryFilter"]
