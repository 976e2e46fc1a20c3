from __future__ import annotations

from pathlib import Path

import pytest

from vpnlist.config import GlobalConfig, ProbeConfig, QueryFilter


def test_query_filter_normalises_countries() -> None:
    query = QueryFilter(countries=["jp", " us ", "JP", ""])
    assert query.countries == frozenset({"JP", "US"})
    assert QueryFilter(countries="kr").countries == frozenset({"KR"})


def test_query_filter_empty_means_unrestricted() -> None:
    assert QueryFilter().is_empty
    assert QueryFilter(countries=[]).countries is None
    assert QueryFilter(countries=[]).is_empty


def test_query_filter_speed_conversion() -> None:
    assert QueryFilter(min_speed_mbps=10).min_speed_bps == 10_000_000
    with pytest.raises(ValueError):
        QueryFilter(min_speed_mbps=-1)


def test_probe_config_bounds() -> None:
    assert ProbeConfig().workers == 1
    with pytest.raises(ValueError):
        ProbeConfig(workers=0)
    with pytest.raises(ValueError):
        ProbeConfig(timeout=0)
    with pytest.raises(ValueError):
        ProbeConfig(port=70000)
    with pytest.raises(ValueError):
        ProbeConfig(queue_size=0)


def test_global_config_resolves_relative_paths(tmp_path: Path) -> None:
    config = GlobalConfig(database_path="data/db.sqlite", export_dir="/abs/ovpn").resolve(tmp_path)
    assert config.database_path == (tmp_path / "data" / "db.sqlite").resolve()
    assert config.export_dir == Path("/abs/ovpn")


def test_global_config_rejects_bad_timeout() -> None:
    with pytest.raises(ValueError):
        GlobalConfig(feed_timeout=0)
