"""Utility helpers for ask."""

from ask.utils.helpers import atomic_write_text, directory_key, ensure_dir, truncate_text

__all__ = ["atomic_write_text", "directory_key", "ensure_dir", "truncate_text"]
