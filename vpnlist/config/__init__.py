"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository
from .models import DEFAULT_FEED_URL, GlobalConfig, ProbeConfig, QueryFilter

__all__ = [
    "ConfigLocator",
    "ConfigRepository",
    "DEFAULT_FEED_URL",
    "GlobalConfig",
    "ProbeConfig",
    "QueryFilter",
]
