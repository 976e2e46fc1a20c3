"""Shared fixtures for the vpnlist test-suite."""

from __future__ import annotations

import base64
from pathlib import Path
from typing import Any, Callable, Iterable

import pytest

from vpnlist.config import ConfigLocator, ConfigRepository, GlobalConfig, ProbeConfig
from vpnlist.engine.records import CatalogRecord
from vpnlist.infra import RecordStore

FEED_HEADER = (
    "*vpn_servers\n"
    "#HostName,IP,Score,Ping,Speed,CountryLong,CountryShort,NumVpnSessions,"
    "Uptime,TotalUsers,TotalTraffic,LogType,Operator,Message,OpenVPN_ConfigData_Base64\n"
)


def feed_row(record: CatalogRecord) -> str:
    config = base64.b64encode(record.openvpn_config).decode("ascii")
    return ",".join(
        [
            record.host_name,
            record.ip,
            str(record.score),
            str(record.ping),
            str(record.speed),
            record.country_long,
            record.country_short,
            str(record.num_vpn_sessions),
            str(record.uptime),
            str(record.total_users),
            str(record.total_traffic),
            record.log_type,
            record.operator,
            record.message,
            config,
        ]
    )


def build_feed(records: Iterable[CatalogRecord], extra_rows: Iterable[str] = ()) -> str:
    lines = [feed_row(record) for record in records]
    lines.extend(extra_rows)
    return FEED_HEADER + "\n".join(lines) + "\n*\n"


@pytest.fixture
def make_record() -> Callable[..., CatalogRecord]:
    def _builder(**overrides: Any) -> CatalogRecord:
        base: dict[str, Any] = {
            "host_name": "jp-1",
            "ip": "203.0.113.10",
            "score": 100,
            "ping": 12,
            "speed": 5_000_000,
            "country_long": "Japan",
            "country_short": "JP",
            "num_vpn_sessions": 3,
            "uptime": 3600,
            "total_users": 42,
            "total_traffic": 1_234_567_890,
            "log_type": "2weeks",
            "operator": "DESKTOP-1",
            "message": "",
            "openvpn_config": b"client\nremote 203.0.113.10 443\n",
        }
        base.update(overrides)
        return CatalogRecord(**base)

    return _builder


@pytest.fixture
def store(tmp_path: Path) -> Iterable[RecordStore]:
    record_store = RecordStore(tmp_path / "data" / "db.sqlite")
    yield record_store
    record_store.close()


@pytest.fixture
def seeded_store(store: RecordStore, make_record) -> RecordStore:
    store.upsert(make_record())
    store.upsert(
        make_record(
            host_name="us-1",
            ip="198.51.100.7",
            speed=20_000_000,
            country_long="United States",
            country_short="US",
            openvpn_config=b"client\nremote 198.51.100.7 1194\n",
        )
    )
    return store


@pytest.fixture
def sample_global_config(tmp_path: Path) -> GlobalConfig:
    return GlobalConfig(
        database_path=tmp_path / "data" / "db.sqlite",
        export_dir=tmp_path / "ovpn",
        probe=ProbeConfig(workers=2, timeout=0.2, queue_size=4),
    )


@pytest.fixture
def temp_config_repository(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterable[ConfigRepository]:
    monkeypatch.setenv("VPNLIST_HOME", str(tmp_path))
    locator = ConfigLocator(project_root=tmp_path)
    repository = ConfigRepository(locator)
    yield repository


@pytest.fixture(name="feed_row")
def feed_row_fixture() -> Callable[[CatalogRecord], str]:
    return feed_row


@pytest.fixture(name="build_feed")
def build_feed_fixture() -> Callable[..., str]:
    return build_feed
