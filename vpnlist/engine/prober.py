"""Reachability primitives used by the probe worker pool."""

from __future__ import annotations

import ipaddress
import socket
import time
from typing import Protocol

from ..errors import ProbeSetupError


class Prober(Protocol):
    """Single-attempt reachability test returning ``(reachable, latency_ms)``."""

    def __call__(self, address: str, timeout: float) -> tuple[bool, float]:
        ...


class TcpProber:
    """Measure the TCP connect time to ``address:port``.

    A malformed address raises :class:`ProbeSetupError`; refusal, timeout
    and any other socket failure mean the target is unreachable.
    """

    def __init__(self, port: int = 443) -> None:
        if not 0 < port < 65536:
            raise ValueError("port must be within 1..65535")
        self.port = port

    def __call__(self, address: str, timeout: float) -> tuple[bool, float]:
        host = self._validate(address)
        started = time.perf_counter()
        try:
            with socket.create_connection((host, self.port), timeout=timeout):
                pass
        except OSError:
            return False, 0.0
        return True, (time.perf_counter() - started) * 1000.0

    @staticmethod
    def _validate(address: str) -> str:
        text = (address or "").strip()
        if not text:
            raise ProbeSetupError(address, "empty address")
        try:
            return str(ipaddress.ip_address(text))
        except ValueError as exc:
            raise ProbeSetupError(address, str(exc)) from exc

    def __repr__(self) -> str:
        return f"TcpProber(port={self.port})"


__all__ = ["Prober", "TcpProber"]
