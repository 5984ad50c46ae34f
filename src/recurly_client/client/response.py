"""
Response classification.

``classify`` turns a completed ``requests.Response`` into either a Response
envelope (with the decoded body) or one of the API errors from
``runtime.errors``. Rate-limit headers and pagination cursors are read before
anything else so they are available on every path.

Decision table:

=========  ==========================================================
Status     Outcome
=========  ==========================================================
204        success, nothing decoded
429        RateLimitError (headers only, body ignored)
2xx        success, body decoded into the destination
4xx        ClientError / TransactionFailedError from the body shape
5xx        ServerError (body ignored)
other      success, nothing decoded
=========  ==========================================================
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional
from urllib.parse import parse_qs, urlsplit
from xml.etree import ElementTree

import requests

from ..runtime.errors import (
    ClientError, DecodeError, RateLimitError, ServerError, TransactionFailedError,
    ValidationError,
)
from ..runtime.codec import XmlModel
from ..models import Transaction, TransactionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Rate:
    """Last known rate limit for the client."""

    #: Total request limit during the window.
    limit: int = 0

    #: Requests remaining until requests will be denied.
    remaining: int = 0

    #: When the window completely resets (UTC), if known.
    reset: Optional[datetime] = None

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "Rate":
        """Read X-RateLimit-* headers. Unparseable values are left at zero."""
        return cls(
            limit=_header_int(headers, "X-RateLimit-Limit"),
            remaining=_header_int(headers, "X-RateLimit-Remaining"),
            reset=_header_time(headers, "X-RateLimit-Reset"),
        )


def _header_int(headers: Mapping[str, str], name: str) -> int:
    value = headers.get(name)
    if not value:
        return 0
    try:
        return int(value.strip())
    except ValueError:
        logger.debug("Ignoring malformed %s header: %r", name, value)
        return 0


def _header_time(headers: Mapping[str, str], name: str) -> Optional[datetime]:
    seconds = _header_int(headers, name)
    if seconds == 0:
        return None
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


# =============================================================================
# Link header cursors
# =============================================================================

@dataclass(frozen=True)
class LinkCursors:
    """Cursors extracted from a Link header; empty strings when absent."""
    next: str = ""
    prev: str = ""


def parse_link_header(value: Optional[str]) -> LinkCursors:
    """
    Extract next/prev cursors from a Link header.

    The header holds comma-separated entries shaped like
    ``<https://x.recurly.com/v2/accounts?cursor=1234>; rel="next"``. Entries
    without a bracketed URL, without a rel attribute or without a ``cursor``
    query parameter are skipped; a missing cursor simply means no such page.

    Args:
        value: Raw header value, possibly None

    Returns:
        The cursors found
    """
    cursors = {"next": "", "prev": ""}
    if not value:
        return LinkCursors()

    for link in _split_links(value):
        link = link.strip()
        end = link.find(">")
        if not link.startswith("<") or end == -1:
            continue
        segments = link[end + 1:].split(";")
        if len(segments) < 2 or segments[0].strip():
            continue

        try:
            params = parse_qs(urlsplit(link[1:end]).query)
        except ValueError:
            continue
        cursor = (params.get("cursor") or [""])[0]
        if not cursor:
            continue

        for segment in segments[1:]:
            attr = segment.strip()
            for rel in ("next", "prev"):
                if attr in (f'rel="{rel}"', f"rel={rel}"):
                    cursors[rel] = cursor

    return LinkCursors(next=cursors["next"], prev=cursors["prev"])


def _split_links(value: str) -> List[str]:
    """Split a Link header on commas outside <...> targets."""
    links: List[str] = []
    depth = 0
    start = 0
    for i, ch in enumerate(value):
        if ch == "<":
            depth += 1
        elif ch == ">" and depth:
            depth -= 1
        elif ch == "," and depth == 0:
            links.append(value[start:i])
            start = i + 1
    links.append(value[start:])
    return links


# =============================================================================
# Response envelope
# =============================================================================

class Response:
    """
    A Recurly API response.

    Wraps the ``requests.Response`` and exposes the decoded value along with
    pagination cursors and rate limits.
    """

    def __init__(self, raw: requests.Response, value: Any = None):
        self.raw = raw
        self.value = value
        self.rate = Rate.from_headers(raw.headers)
        links = parse_link_header(raw.headers.get("Link"))
        self.cursor = links.next
        self.prev_cursor = links.prev

    @property
    def status_code(self) -> int:
        return self.raw.status_code

    @property
    def headers(self) -> Mapping[str, str]:
        return self.raw.headers

    @property
    def records(self) -> Optional[int]:
        """Total record count from the X-Records header, if present."""
        value = self.raw.headers.get("X-Records")
        if not value:
            return None
        try:
            return int(value)
        except ValueError as e:
            raise DecodeError(f"invalid X-Records header: {value!r}", cause=e) from e

    def __repr__(self) -> str:
        return f"<Response [{self.status_code}] cursor={self.cursor!r}>"


# =============================================================================
# Classification
# =============================================================================

def parse_document(body: bytes) -> ElementTree.Element:
    """
    Parse an XML body.

    Raises:
        DecodeError: If the body is not well-formed XML
    """
    try:
        return ElementTree.fromstring(body)
    except ElementTree.ParseError as e:
        raise DecodeError(f"malformed XML response: {e}", cause=e) from e


def decode_into(dst: Any, root: ElementTree.Element) -> Any:
    """Decode a parsed document for a destination (model class or callable)."""
    if isinstance(dst, type) and issubclass(dst, XmlModel):
        return dst.from_element(root)
    if callable(dst):
        return dst(root)
    raise TypeError(f"unsupported decode destination: {dst!r}")


def classify(raw: requests.Response, dst: Any = None) -> Response:
    """
    Classify a completed HTTP response.

    Args:
        raw: The response from requests
        dst: Where a success body goes: a writable stream (the body is copied
            verbatim), an XmlModel subclass, or a callable taking the root
            element. None skips decoding.

    Returns:
        The Response envelope; ``value`` holds the decoded body

    Raises:
        RateLimitError: Status 429
        TransactionFailedError: 4xx carrying a failed transaction
        ClientError: Any other 4xx
        ServerError: 5xx
        DecodeError: A body that should have been understood was not
    """
    response = Response(raw)
    status = raw.status_code

    if status == 204:
        return response
    if status == 429:
        logger.debug("Rate limited: %s", response.rate)
        raise RateLimitError(raw, response.rate)
    if 200 <= status <= 299:
        if dst is None:
            return response
        if hasattr(dst, "write"):
            dst.write(raw.content)
            response.value = dst
            return response
        body = raw.content
        if not body or not body.strip():
            return response
        response.value = decode_into(dst, parse_document(body))
        return response
    if 400 <= status <= 499:
        err = parse_client_error(raw)
        logger.debug("Client error: %s", err)
        raise err
    if 500 <= status <= 599:
        raise ServerError(raw)

    return response


def parse_client_error(raw: requests.Response) -> ClientError:
    """
    Build the error for a 4xx response from its body shape.

    Raises:
        DecodeError: If the body is present but not well-formed
    """
    if raw.headers.get("Content-Length") == "0":
        return ClientError(raw)
    body = raw.content
    if not body or not body.strip():
        return ClientError(raw)

    root = parse_document(body)
    if root.tag == "error":
        return ClientError(raw, [_single_error(root)])
    if root.tag == "errors":
        transaction_elem = root.find("transaction")
        transaction_error_elem = root.find("transaction_error")
        if transaction_elem is not None or transaction_error_elem is not None:
            transaction = None
            if transaction_elem is not None:
                transaction = Transaction.from_element(transaction_elem)
            transaction_error = None
            if transaction_error_elem is not None:
                transaction_error = TransactionError.from_element(transaction_error_elem)
            elif transaction is not None and transaction.transaction_error is not None:
                transaction_error = transaction.transaction_error
            return TransactionFailedError(raw, transaction, transaction_error)
        return ClientError(raw, [_list_error(e) for e in root.findall("error")])

    return ClientError(raw)


def _child_text(elem: ElementTree.Element, tag: str) -> Optional[str]:
    child = elem.find(tag)
    if child is None:
        return None
    return child.text or ""


def _single_error(elem: ElementTree.Element) -> ValidationError:
    # Standalone errors normally use child elements; fall back to the
    # attribute/text shape used inside <errors>.
    description = _child_text(elem, "description")
    if description is None and len(elem) == 0:
        return _list_error(elem)
    return ValidationError(
        description=description or "",
        field=_child_text(elem, "field") or elem.attrib.get("field", ""),
        symbol=_child_text(elem, "symbol") or elem.attrib.get("symbol", ""),
    )


def _list_error(elem: ElementTree.Element) -> ValidationError:
    return ValidationError(
        description="".join(elem.itertext()),
        field=elem.attrib.get("field", ""),
        symbol=elem.attrib.get("symbol", ""),
    )


__all__ = [
    "Rate",
    "LinkCursors",
    "parse_link_header",
    "Response",
    "parse_document",
    "decode_into",
    "classify",
    "parse_client_error",
]
