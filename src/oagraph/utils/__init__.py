"""Shared helpers for oagraph."""

from .pointers import escape_segment, join_pointer, split_pointer, unescape_segment

__all__ = [
    "escape_segment",
    "unescape_segment",
    "join_pointer",
    "split_pointer",
]
