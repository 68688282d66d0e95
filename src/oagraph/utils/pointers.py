"""JSON Pointer helpers (RFC 6901) used for paths and ``$ref`` targets."""

from typing import Iterable, List


def escape_segment(segment: str) -> str:
    """Escape a single pointer segment.

    ``~`` is escaped before ``/`` so that an escaped slash is never
    re-escaped.

    Examples:
        >>> escape_segment("/pets/{id}")
        '~1pets~1{id}'
        >>> escape_segment("a~b")
        'a~0b'
    """
    return segment.replace("~", "~0").replace("/", "~1")


def unescape_segment(segment: str) -> str:
    """Reverse :func:`escape_segment`."""
    return segment.replace("~1", "/").replace("~0", "~")


def join_pointer(segments: Iterable[str]) -> str:
    """Join raw (unescaped) segments into a pointer such as ``/a/b~1c``."""
    return "".join("/" + escape_segment(str(segment)) for segment in segments)


def split_pointer(pointer: str) -> List[str]:
    """Split a pointer into unescaped segments.

    Args:
        pointer: Pointer with or without the leading ``#``

    Returns:
        List of raw segments; the root pointer yields an empty list

    Raises:
        ValueError: If the pointer is neither empty nor rooted at ``/``
    """
    if pointer.startswith("#"):
        pointer = pointer[1:]
    if pointer == "":
        return []
    if not pointer.startswith("/"):
        raise ValueError(f"JSON pointer must start with '/': {pointer!r}")
    return [unescape_segment(part) for part in pointer[1:].split("/")]
