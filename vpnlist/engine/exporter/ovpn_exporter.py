"""Write OpenVPN configuration blobs to individual files."""

from __future__ import annotations

import re
from pathlib import Path

from ..records import CatalogRecord
from .base import BaseExporter

_UNSAFE = re.compile(r"[^0-9A-Za-z._-]+")


class OvpnExporter(BaseExporter):
    """One ``<country>_<host>_<ip>.ovpn`` file per record.

    ``written`` lists the paths this exporter instance wrote, in export order.
    A path appears again if a later record maps to the same file name. Files
    already present in ``output_dir`` from earlier runs are not listed.
    """

    def __init__(self, output_dir: Path) -> None:
        self.output_dir = output_dir
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.written: list[Path] = []

    def path_for(self, record: CatalogRecord) -> Path:
        filename = _UNSAFE.sub("_", record.filename).strip("_") or "server.ovpn"
        return self.output_dir / filename

    def export(self, record: CatalogRecord) -> None:
        path = self.path_for(record)
        path.write_bytes(record.openvpn_config)
        self.written.append(path)

    def flush(self) -> None:
        # Each export writes and closes its own file.
        return None

    def close(self) -> None:
        self.flush()


__all__ = ["OvpnExporter"]
