"""
HTTP fakes.

make_response builds real ``requests.Response`` objects so the classifier sees
exactly what it would see in production; StubSession replays them in order and
records every call made through it.
"""

from typing import Any, Dict, List, Optional, Union
from unittest.mock import MagicMock

import requests
from requests.structures import CaseInsensitiveDict

BASE_URL = "https://acme.recurly.com"


def xml(body: str) -> bytes:
    """Prefix an XML fragment with a declaration and encode it."""
    return ('<?xml version="1.0" encoding="UTF-8"?>\n' + body).encode("utf-8")


def make_response(status: int = 200, body: Union[bytes, str] = b"",
                  headers: Optional[Dict[str, str]] = None,
                  method: str = "GET", path: str = "/v2/accounts") -> requests.Response:
    """Build a completed requests.Response with a prepared request attached."""
    if isinstance(body, str):
        body = body.encode("utf-8")
    raw = requests.Response()
    raw.status_code = status
    raw._content = body
    raw._content_consumed = True
    raw.headers = CaseInsensitiveDict(headers or {})
    raw.url = BASE_URL + path
    raw.request = requests.Request(method, BASE_URL + path).prepare()
    return raw


class StubSession:
    """
    Stand-in for requests.Session.

    Each call to request() pops the next queued item: a Response is returned,
    an exception is raised. ``calls`` keeps the keyword arguments of every call.
    """

    def __init__(self, *responses: Any):
        self._queue: List[Any] = list(responses)
        self.calls: List[Dict[str, Any]] = []
        self.close = MagicMock()

    def queue(self, *responses: Any) -> None:
        self._queue.extend(responses)

    def request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        self.calls.append({"method": method, "url": url, **kwargs})
        if not self._queue:
            raise AssertionError(f"unexpected request: {method} {url}")
        item = self._queue.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    @property
    def last(self) -> Dict[str, Any]:
        return self.calls[-1]
