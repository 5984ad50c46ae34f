"""
Recurly API Client

This module provides the client for the Recurly v2 API. It owns the immutable
configuration, builds authenticated requests, sends them over a shared
``requests.Session`` and hands each response to the classifier.
"""

from __future__ import annotations
import base64
import functools
import logging
import os
from typing import Any, Mapping, Optional

import requests
from pydantic import BaseModel, Field

from .client.pager import Pager, PagerOptions
from .client.requests import RequestSpec, build_request
from .client.response import Response, classify
from .runtime.context import Context
from .runtime.errors import ConnectionError, NetworkError, TimeoutError

#: API version requested with every call.
API_VERSION = "2.27"

DEFAULT_BASE_URL = "https://{subdomain}.recurly.com/"


class ClientConfig(BaseModel):
    """Configuration for the Recurly API client. Immutable once built."""

    subdomain: str = Field(min_length=1, description="Your site's subdomain")
    api_key: str = Field(min_length=1, repr=False, description="Private API key")
    base_url: Optional[str] = Field(default=None, description="Override for https://<subdomain>.recurly.com/")
    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")
    api_version: str = API_VERSION
    user_agent: str = "recurly-client-python/1.0.0"
    debug: bool = False

    model_config = {"frozen": True}

    @property
    def endpoint(self) -> str:
        """Base URL requests are sent to."""
        return self.base_url or DEFAULT_BASE_URL.format(subdomain=self.subdomain)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides: Any) -> "ClientConfig":
        """
        Build a configuration from RECURLY_* environment variables.

        Reads RECURLY_SUBDOMAIN, RECURLY_API_KEY, RECURLY_BASE_URL and
        RECURLY_TIMEOUT. Keyword arguments take precedence.
        """
        env = os.environ if environ is None else environ
        values: dict = {}
        for key, name in (("subdomain", "RECURLY_SUBDOMAIN"), ("api_key", "RECURLY_API_KEY"),
                          ("base_url", "RECURLY_BASE_URL"), ("timeout", "RECURLY_TIMEOUT")):
            if env.get(name):
                values[key] = env[name]
        values.update(overrides)
        return cls(**values)


class RecurlyClient:
    """
    Recurly v2 API client.

    Provides:
    - Request building with fixed authentication and content headers
    - Response classification into the structured error taxonomy
    - Cursor pagination
    - Cancellation through Context

    The client never retries; see ErrorHandler.is_retryable for guidance.

    Example:
        ```python
        client = RecurlyClient(ClientConfig(subdomain="acme", api_key="..."))

        account = client.accounts.get("1")

        pager = client.accounts.list(PagerOptions(state="active"))
        while pager.has_next():
            for account in pager.fetch():
                print(account.code)
        ```
    """

    def __init__(self, config: ClientConfig, session: Optional[requests.Session] = None):
        """
        Initialize the client.

        Args:
            config: Client configuration
            session: Optional requests.Session for connection pooling
        """
        from .services import AccountsService, TransactionsService

        self.config = config
        self.logger = logging.getLogger(__name__)
        if self.config.debug:
            self.logger.setLevel(logging.DEBUG)

        self._session = session or requests.Session()
        self._owns_session = session is None

        credential = base64.b64encode(config.api_key.encode("utf-8")).decode("ascii")
        self._headers = {
            "Authorization": f"Basic {credential}",
            "Accept": "application/xml",
            "User-Agent": config.user_agent,
            "X-Api-Version": config.api_version,
        }

        self.accounts = AccountsService(self)
        self.transactions = TransactionsService(self)

    @property
    def base_url(self) -> str:
        return self.config.endpoint

    def close(self) -> None:
        """Close the HTTP session if owned by this client."""
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> RecurlyClient:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # =========================================================================
    # Request building
    # =========================================================================

    def new_request(self, method: str, path: str, query: Optional[Mapping[str, Any]] = None,
                    body: Any = None) -> RequestSpec:
        """
        Build an authenticated request.

        Args:
            method: HTTP verb (GET, POST, PUT, DELETE or HEAD)
            path: Resource path, rooted under /v2/
            query: Query parameters; empty values are dropped
            body: XmlModel to send, if any

        Returns:
            The request, ready for do()

        Raises:
            InvalidRequestError: On an unsupported verb or absolute path
            EncodeError: If the body cannot be serialized
        """
        return build_request(method, path, query, body, headers=self._headers)

    def new_pager(self, method: str, path: str, options: Optional[PagerOptions] = None,
                  model: Any = None) -> Pager:
        """Create a pager over a list endpoint."""
        return Pager(self, method, path, options, model)

    # =========================================================================
    # Sending
    # =========================================================================

    def url_for(self, spec: RequestSpec) -> str:
        return self.base_url.rstrip("/") + spec.path

    def do(self, spec: RequestSpec, dst: Any = None, ctx: Optional[Context] = None) -> Response:
        """
        Send a request and classify the response.

        With a ctx, the request is sent through ctx.run(), so cancelling ctx or
        reaching its deadline releases the caller while the request is still in
        flight.

        Args:
            spec: Request built by new_request()
            dst: Destination for a success body (see classify())
            ctx: Optional cancellation context

        Returns:
            The classified response

        Raises:
            CancelledError: If ctx is cancelled or past its deadline
            NetworkError: On transport failure
            RecurlyError: Any classified API or decode error
        """
        background = ctx is None
        ctx = ctx or Context.background()
        ctx.raise_if_done()

        url = self.url_for(spec)
        timeout = self.config.timeout
        remaining = ctx.remaining()
        if remaining is not None:
            timeout = min(timeout, remaining)

        self.logger.debug("Request: %s %s params=%s headers=%s", spec.method, url,
                          dict(spec.query), _redacted(spec.headers))

        send = functools.partial(
            self._session.request,
            spec.method,
            url,
            params=list(spec.query) or None,
            data=spec.body,
            headers=dict(spec.headers),
            timeout=timeout,
        )
        try:
            if background:
                raw = send()
            else:
                raw = ctx.run(send, on_abandon=_close_late_response)
        except requests.exceptions.RequestException as e:
            # Cancellation takes precedence over the transport error.
            ctx_err = ctx.error()
            if ctx_err is not None:
                raise ctx_err from e
            raise _network_error(e) from e

        try:
            ctx_err = ctx.error()
            if ctx_err is not None:
                raise ctx_err
            self.logger.debug("Response: %s %s -> %d", spec.method, url, raw.status_code)
            return classify(raw, dst)
        finally:
            raw.close()

    def call(self, method: str, path: str, dst: Any = None, *, query: Optional[Mapping[str, Any]] = None,
             body: Any = None, ctx: Optional[Context] = None) -> Response:
        """Build and send a request in one step."""
        return self.do(self.new_request(method, path, query, body), dst, ctx=ctx)


def _redacted(headers: Mapping[str, str]) -> dict:
    return {k: ("[REDACTED]" if k.lower() == "authorization" else v) for k, v in headers.items()}


def _close_late_response(raw: requests.Response) -> None:
    raw.close()


def _network_error(e: requests.exceptions.RequestException) -> NetworkError:
    if isinstance(e, requests.exceptions.Timeout):
        return TimeoutError(f"Request timed out: {e}", cause=e)
    if isinstance(e, requests.exceptions.ConnectionError):
        return ConnectionError(f"Connection failed: {e}", cause=e)
    return NetworkError(f"Network error: {e}", cause=e)


def new_client(subdomain: str, api_key: str, **kwargs: Any) -> RecurlyClient:
    """Create a client for a subdomain and API key with default settings."""
    session = kwargs.pop("session", None)
    return RecurlyClient(ClientConfig(subdomain=subdomain, api_key=api_key, **kwargs), session=session)


__all__ = [
    "API_VERSION",
    "ClientConfig",
    "RecurlyClient",
    "new_client",
]
