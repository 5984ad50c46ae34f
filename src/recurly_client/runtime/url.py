"""
href projections.

Recurly links related records with ``<invoice href="https://x.recurly.com/v2/invoices/1005"/>``
style elements. The client only needs the identifier at the end of the path, so
these helpers reduce an href to its trailing segment at decode time.
"""

from typing import Optional
from urllib.parse import urlsplit, unquote

from .errors import DecodeError


def extract_trailing_segment(href: Optional[str]) -> str:
    """
    Return the last path segment of an href.

    Args:
        href: Absolute or relative URL, possibly empty

    Returns:
        The trailing segment, or "" if there is none
    """
    if not href:
        return ""
    path = urlsplit(href).path.rstrip("/")
    idx = path.rfind("/")
    if idx == -1:
        return unquote(path)
    return unquote(path[idx + 1:])


def extract_trailing_int(href: Optional[str]) -> Optional[int]:
    """
    Return the last path segment of an href as an integer.

    Args:
        href: Absolute or relative URL, possibly empty

    Returns:
        The integer identifier, or None if the href is empty

    Raises:
        DecodeError: If the trailing segment is not an integer
    """
    segment = extract_trailing_segment(href)
    if not segment:
        return None
    try:
        return int(segment)
    except ValueError as e:
        raise DecodeError(f"href does not end in an integer: {href!r}", cause=e) from e


__all__ = ["extract_trailing_segment", "extract_trailing_int"]
