"""Infra layer utilities (catalog storage)."""

from .storage import RecordStore

__all__ = ["RecordStore"]
