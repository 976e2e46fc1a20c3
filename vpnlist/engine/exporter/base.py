"""Exporter Service Provider Interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable

from ..records import CatalogRecord


class BaseExporter(ABC):
    """Uniform exporter contract for writing catalog configs out."""

    @abstractmethod
    def export(self, record: CatalogRecord) -> None:
        """Persist a single record."""

    def export_many(self, records: Iterable[CatalogRecord]) -> int:
        count = 0
        for record in records:
            self.export(record)
            count += 1
        return count

    @abstractmethod
    def flush(self) -> None:
        """Flush buffered data to destination."""

    @abstractmethod
    def close(self) -> None:
        """Release underlying resources."""


__all__ = ["BaseExporter"]
