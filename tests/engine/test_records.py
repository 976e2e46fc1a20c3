from __future__ import annotations


def test_record_filename_and_projection(make_record) -> None:
    record = make_record()
    assert record.filename == "JP_jp-1_203.0.113.10.ovpn"
    target = record.to_target()
    assert target.host_name == "jp-1"
    assert target.country_short == "JP"
    assert target.speed_mbps == 5.0
    assert "openvpn_config" not in repr(record)
