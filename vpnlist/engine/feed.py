"""Download and parse the upstream VPN Gate server list."""

from __future__ import annotations

import base64
import binascii
import csv
import io
from dataclasses import dataclass, field

import httpx
import structlog

from ..config.models import DEFAULT_FEED_URL
from ..errors import FeedError
from .records import CatalogRecord

FEED_COLUMNS = 15
# "*vpn_servers" banner followed by the "#HostName,IP,..." header.
_PREAMBLE_LINES = 2
_INT_FIELDS = (
    (2, "score"),
    (3, "ping"),
    (4, "speed"),
    (7, "num_vpn_sessions"),
    (8, "uptime"),
    (9, "total_users"),
    (10, "total_traffic"),
)

logger = structlog.get_logger("vpnlist.feed")


@dataclass(slots=True)
class FeedResult:
    records: list[CatalogRecord] = field(default_factory=list)
    skipped: int = 0


def parse_row(row: list[str]) -> CatalogRecord:
    """Build a record from one CSV row; raises ``ValueError`` on malformed input."""

    if len(row) != FEED_COLUMNS:
        raise ValueError(f"expected {FEED_COLUMNS} columns, got {len(row)}")
    numbers = {name: int(row[index]) for index, name in _INT_FIELDS}
    try:
        config = base64.b64decode(row[14], validate=True)
    except binascii.Error as exc:
        raise ValueError(f"invalid config encoding: {exc}") from exc
    return CatalogRecord(
        host_name=row[0],
        ip=row[1],
        country_long=row[5],
        country_short=row[6],
        log_type=row[11],
        operator=row[12],
        message=row[13],
        openvpn_config=config,
        **numbers,
    )


def parse_feed(text: str) -> FeedResult:
    """Parse the feed body, skipping rows that fail validation."""

    lines = text.splitlines()[_PREAMBLE_LINES:]
    result = FeedResult()
    for line_no, row in enumerate(csv.reader(io.StringIO("\n".join(lines))), start=_PREAMBLE_LINES + 1):
        if not row or (len(row) == 1 and row[0].strip() in ("", "*")):
            continue
        try:
            result.records.append(parse_row(row))
        except ValueError as exc:
            result.skipped += 1
            logger.debug("feed_row_skipped", line=line_no, error=str(exc))
    return result


class FeedFetcher:
    """Fetch the server list over HTTP."""

    def __init__(
        self,
        url: str = DEFAULT_FEED_URL,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.url = url
        self._client = client or httpx.Client(follow_redirects=True, timeout=timeout)

    def fetch(self) -> FeedResult:
        try:
            response = self._client.get(self.url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise FeedError(f"cannot download {self.url}: {exc}") from exc
        result = parse_feed(response.text)
        logger.info(
            "feed_downloaded",
            url=self.url,
            records=len(result.records),
            skipped=result.skipped,
        )
        return result

    def close(self) -> None:
        self._client.close()


__all__ = ["FEED_COLUMNS", "FeedFetcher", "FeedResult", "parse_feed", "parse_row"]
