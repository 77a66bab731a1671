"""Core infrastructure: configuration, logging and canonical serialization."""

from checkpoint_stats.core.canonical import CANONICAL_VERSION, canonical_json, stable_hash
from checkpoint_stats.core.config import StatsSettings, load_settings
from checkpoint_stats.core.logging import configure_logging, get_logger

__all__ = [
    "CANONICAL_VERSION",
    "StatsSettings",
    "canonical_json",
    "configure_logging",
    "get_logger",
    "load_settings",
    "stable_hash",
]
