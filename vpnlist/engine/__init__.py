"""Engine components: feed ingestion, probing and export."""

from .feed import FeedFetcher, FeedResult, parse_feed
from .prober import Prober, TcpProber
from .records import CatalogRecord, ConfigEntry, ProbeOutcome, ProbeTarget
from .worker_pool import ProbeWorkerPool

__all__ = [
    "CatalogRecord",
    "ConfigEntry",
    "FeedFetcher",
    "FeedResult",
    "ProbeOutcome",
    "ProbeTarget",
    "ProbeWorkerPool",
    "Prober",
    "TcpProber",
    "parse_feed",
]
