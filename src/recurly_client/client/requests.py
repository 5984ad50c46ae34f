"""
Request types for the Recurly client.

A RequestSpec is everything needed to send one call: verb, versioned path,
query string and an already-serialized body. It is built once and consumed once.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional, Tuple

from ..runtime.errors import EncodeError, InvalidRequestError
from ..runtime.null import Nullable, format_datetime

#: Verbs the Recurly v2 API understands.
ALLOWED_METHODS = frozenset({"GET", "POST", "PUT", "DELETE", "HEAD"})

#: Every path is rooted under this prefix.
API_PREFIX = "/v2/"

XML_CONTENT_TYPE = "application/xml; charset=utf-8"


@dataclass(frozen=True)
class RequestSpec:
    """A fully built, not yet sent, API request."""
    method: str
    path: str
    query: Tuple[Tuple[str, str], ...] = ()
    body: Optional[bytes] = None
    headers: Mapping[str, str] = field(default_factory=dict)


def normalize_method(method: str) -> str:
    """
    Upper-case and validate an HTTP verb.

    Raises:
        InvalidRequestError: If the verb is not supported
    """
    verb = (method or "").upper()
    if verb not in ALLOWED_METHODS:
        raise InvalidRequestError(
            f"unsupported HTTP method: {method!r}",
            details={"allowed": sorted(ALLOWED_METHODS)},
        )
    return verb


def normalize_path(path: str) -> str:
    """
    Root a relative resource path under the API version prefix.

    ``accounts/abc``, ``/accounts/abc`` and ``/v2/accounts/abc`` all become
    ``/v2/accounts/abc``.

    Raises:
        InvalidRequestError: If the path is absolute (has a scheme or host)
    """
    if "://" in path or path.startswith("//"):
        raise InvalidRequestError(f"path must be relative: {path!r}")
    path = path.lstrip("/")
    if path.startswith(API_PREFIX.lstrip("/")):
        path = path[len(API_PREFIX) - 1:]
    return API_PREFIX + path


def encode_query_value(value: Any) -> Optional[str]:
    """
    Render a single query value, or None when it should be dropped.

    Empty strings, None and unset nullables are dropped, matching the
    optional-parameter convention of the resource endpoints.
    """
    if value is None:
        return None
    if isinstance(value, Nullable):
        return str(value) if value.valid else None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return format_datetime(value)
    text = str(value)
    return text or None


def encode_query(query: Optional[Mapping[str, Any]]) -> Tuple[Tuple[str, str], ...]:
    """Render a query mapping into sorted key/value pairs, dropping empty values."""
    if not query:
        return ()
    pairs = []
    for key, value in query.items():
        encoded = encode_query_value(value)
        if encoded is not None:
            pairs.append((key, encoded))
    return tuple(sorted(pairs))


def encode_body(body: Any) -> Optional[bytes]:
    """
    Serialize a request body.

    Args:
        body: An XmlModel (anything with ``to_xml()``), raw bytes/str, or None

    Raises:
        EncodeError: If the body cannot be serialized
    """
    if body is None:
        return None
    if isinstance(body, bytes):
        return body
    if isinstance(body, str):
        return body.encode("utf-8")
    to_xml = getattr(body, "to_xml", None)
    if to_xml is None:
        raise EncodeError(f"cannot encode request body of type {type(body).__name__}")
    return to_xml()


def build_request(method: str, path: str, query: Optional[Mapping[str, Any]] = None,
                  body: Any = None, headers: Optional[Mapping[str, str]] = None) -> RequestSpec:
    """
    Build a RequestSpec.

    Args:
        method: HTTP verb
        path: Resource path relative to the API version prefix
        query: Optional query parameters
        body: Optional request body (see encode_body)
        headers: Fixed headers to attach

    Returns:
        The request, ready to send

    Raises:
        InvalidRequestError: On an unsupported verb or absolute path
        EncodeError: If the body cannot be serialized
    """
    verb = normalize_method(method)
    full_path = normalize_path(path)
    payload = encode_body(body)

    all_headers = dict(headers or {})
    if payload is not None:
        all_headers["Content-Type"] = XML_CONTENT_TYPE

    return RequestSpec(
        method=verb,
        path=full_path,
        query=encode_query(query),
        body=payload,
        headers=all_headers,
    )


__all__ = [
    "ALLOWED_METHODS",
    "API_PREFIX",
    "XML_CONTENT_TYPE",
    "RequestSpec",
    "normalize_method",
    "normalize_path",
    "encode_query_value",
    "encode_query",
    "encode_body",
    "build_request",
]
