"""
Test doubles for code that uses the Recurly client.

Two levels are offered:

* ``MockClient`` replaces every service with an autospecced mock, for unit
  tests that only care which calls were made. ``FakePager`` stands in for the
  pagers those services return.
* ``TestServer`` is a local HTTP server for tests where mocks are not enough.
  Routes answer real requests sent by a real ``RecurlyClient``.

```python
with TestServer() as server:
    server.handle("GET", "accounts/1", lambda req: (200, ACCOUNT_XML))
    account = server.client().accounts.get("1")
    assert server.invoked
```
"""

from __future__ import annotations
import logging
import threading
from dataclasses import dataclass, field
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple
from unittest.mock import create_autospec
from urllib.parse import parse_qs, urlsplit

import requests

from .api_client import ClientConfig, RecurlyClient
from .client.requests import normalize_path
from .runtime.context import Context
from .runtime.errors import NoMoreResultsError
from .services import AccountsService, TransactionsService

logger = logging.getLogger(__name__)


# =============================================================================
# Mocks
# =============================================================================

class MockClient(RecurlyClient):
    """
    A RecurlyClient whose services are autospecced mocks.

    Configure return values on the services, then assert on their calls:

        client = MockClient()
        client.accounts.get.return_value = Account(code="1")
        ...
        client.accounts.get.assert_called_once_with("1")

    Any request that reaches the HTTP layer fails the test.
    """

    def __init__(self, config: Optional[ClientConfig] = None):
        session = create_autospec(requests.Session, instance=True)
        session.request.side_effect = AssertionError("MockClient sent a real request")
        super().__init__(config or ClientConfig(subdomain="test", api_key="foo"), session=session)
        self.accounts = create_autospec(AccountsService, instance=True)
        self.transactions = create_autospec(TransactionsService, instance=True)


class FakePager:
    """
    A pager over canned pages, with the same surface as Pager.

    Args:
        pages: The pages fetch() returns, in order
        count: Value for count(); defaults to the number of items
    """

    def __init__(self, pages: Sequence[List[Any]] = (), count: Optional[int] = None):
        self._pages = [list(page) for page in pages]
        self._count = count if count is not None else sum(len(page) for page in self._pages)
        self.fetches = 0

    def has_next(self) -> bool:
        return self.fetches < len(self._pages)

    def cursor(self) -> str:
        return str(self.fetches) if self.has_next() and self.fetches else ""

    def count(self, ctx: Optional[Context] = None) -> int:
        if ctx is not None:
            ctx.raise_if_done()
        return self._count

    def fetch(self, ctx: Optional[Context] = None) -> List[Any]:
        if ctx is not None:
            ctx.raise_if_done()
        if not self.has_next():
            raise NoMoreResultsError()
        page = self._pages[self.fetches]
        self.fetches += 1
        return list(page)

    def fetch_all(self, ctx: Optional[Context] = None) -> List[Any]:
        results: List[Any] = []
        while self.has_next():
            results.extend(self.fetch(ctx))
        return results

    def __iter__(self) -> Iterator[List[Any]]:
        while self.has_next():
            yield self.fetch()


# =============================================================================
# Test server
# =============================================================================

@dataclass
class RecordedRequest:
    """A request received by TestServer."""
    method: str
    path: str
    query: Dict[str, List[str]] = field(default_factory=dict)
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""


#: A route handler returns (status, body) or (status, body, headers).
Handler = Callable[[RecordedRequest], Tuple[Any, ...]]


class TestServer:
    """
    Local HTTP server for driving a real client.

    Routes are exact paths under /v2/. Requests to an unrouted path get 404;
    a routed path called with the wrong method gets 405 and is recorded in
    ``unexpected``. Every request is kept in ``requests``.
    """

    __test__ = False

    def __init__(self):
        self._lock = threading.Lock()
        self._routes: Dict[str, Tuple[str, Handler]] = {}
        self.invoked = False
        self.requests: List[RecordedRequest] = []
        self.unexpected: List[str] = []

        self._server = ThreadingHTTPServer(("127.0.0.1", 0), self._handler_class())
        self._server.daemon_threads = True
        self._server.block_on_close = False
        self._thread = threading.Thread(
            target=self._server.serve_forever, name="recurly-test-server", daemon=True
        )
        self._thread.start()

    @property
    def url(self) -> str:
        host, port = self._server.server_address[:2]
        return f"http://{host}:{port}/"

    def handle(self, method: str, path: str, fn: Handler) -> None:
        """
        Route method and path to fn.

        Args:
            method: Expected HTTP verb
            path: Resource path, e.g. "accounts/1" or "/v2/accounts/1"
            fn: Called with the RecordedRequest; returns (status, body[, headers])
        """
        with self._lock:
            self._routes[normalize_path(path)] = (method.upper(), fn)

    def client(self, **overrides: Any) -> RecurlyClient:
        """A client pointed at this server."""
        values: Dict[str, Any] = {"subdomain": "test", "api_key": "foo", "base_url": self.url}
        values.update(overrides)
        return RecurlyClient(ClientConfig(**values))

    def close(self) -> None:
        self._server.shutdown()
        self._server.server_close()

    def __enter__(self) -> "TestServer":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _dispatch(self, handler: BaseHTTPRequestHandler) -> None:
        length = int(handler.headers.get("Content-Length") or 0)
        split = urlsplit(handler.path)
        request = RecordedRequest(
            method=handler.command,
            path=split.path,
            query=parse_qs(split.query),
            headers=dict(handler.headers.items()),
            body=handler.rfile.read(length) if length else b"",
        )

        with self._lock:
            self.requests.append(request)
            route = self._routes.get(split.path)
            if route is not None:
                self.invoked = True

        headers: Dict[str, str] = {}
        if route is None:
            status, body = 404, b""
        elif route[0] != request.method:
            with self._lock:
                self.unexpected.append(f"unexpected method: {request.method} {request.path}")
            status, body = 405, b""
        else:
            result = route[1](request)
            status, body = result[0], result[1]
            if len(result) > 2:
                headers = dict(result[2])

        if isinstance(body, str):
            body = body.encode("utf-8")
        if status == 204 or not body:
            body = b""

        handler.send_response(status)
        for key, value in headers.items():
            handler.send_header(key, value)
        handler.send_header("Content-Length", str(len(body)))
        handler.end_headers()
        if body and request.method != "HEAD":
            handler.wfile.write(body)

    def _handler_class(self) -> type:
        server = self

        class _Handler(BaseHTTPRequestHandler):
            protocol_version = "HTTP/1.1"

            def do_GET(self):
                server._dispatch(self)

            do_POST = do_PUT = do_DELETE = do_HEAD = do_GET

            def log_message(self, format, *args):
                logger.debug("TestServer: " + format, *args)

        return _Handler


__all__ = ["MockClient", "FakePager", "RecordedRequest", "TestServer"]
