"""Exporter SPI and implementations."""

from .base import BaseExporter
from .ovpn_exporter import OvpnExporter

__all__ = ["BaseExporter", "OvpnExporter"]
