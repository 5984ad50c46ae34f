"""
Cursor pagination.

List endpoints return one page per request and point at the next page through
the Link header. A Pager walks those pages:

```python
pager = client.accounts.list(PagerOptions(per_page=50, state="active"))
while pager.has_next():
    for account in pager.fetch():
        ...
```

A Pager is not safe for concurrent use; give each consumer its own.
"""

from __future__ import annotations
import logging
from datetime import datetime
from typing import Any, Dict, Generic, Iterator, List, Optional, Type, TypeVar, TYPE_CHECKING
from xml.etree import ElementTree

from pydantic import BaseModel, Field

from ..runtime.codec import XmlModel, decode_items
from ..runtime.context import Context
from ..runtime.errors import NoMoreResultsError, RecurlyError

if TYPE_CHECKING:
    from ..api_client import RecurlyClient

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=XmlModel)

#: Largest page size Recurly accepts.
MAX_PER_PAGE = 200


class PagerOptions(BaseModel):
    """
    Options sent with paginated requests.

    Unset options are not sent. ``cursor`` lets a caller resume pagination
    from a cursor obtained earlier (see Pager.cursor()).
    """
    per_page: Optional[int] = Field(default=None, ge=1, le=MAX_PER_PAGE, description="Results per page (Recurly defaults to 50)")
    sort: Optional[str] = Field(default=None, description="Field to sort by, e.g. created_at")
    order: Optional[str] = Field(default=None, description="asc or desc")
    begin_time: Optional[datetime] = Field(default=None, description="Records at or after this time")
    end_time: Optional[datetime] = Field(default=None, description="Records at or before this time")
    state: Optional[str] = Field(default=None, description="State filter, where supported")
    type: Optional[str] = Field(default=None, description="Type filter, where supported")
    gifter_account_code: Optional[str] = None
    recipient_account_code: Optional[str] = None
    cursor: Optional[str] = Field(default=None, description="Starting cursor")
    query: Dict[str, Any] = Field(default_factory=dict, description="One-off query parameters")

    model_config = {"populate_by_name": True}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to query parameters (empty values are dropped later)."""
        result: Dict[str, Any] = dict(self.query)
        for name in ("per_page", "sort", "order", "begin_time", "end_time", "state",
                     "type", "gifter_account_code", "recipient_account_code", "cursor"):
            value = getattr(self, name)
            if value is not None:
                result[name] = value
        return result


class Pager(Generic[M]):
    """Iterates the pages of a list endpoint."""

    def __init__(self, client: "RecurlyClient", method: str, path: str,
                 options: Optional[PagerOptions] = None, model: Optional[Type[M]] = None):
        """
        Args:
            client: Client used to send requests
            method: HTTP verb (normally GET)
            path: List endpoint path
            options: Filters, page size and an optional starting cursor
            model: Resource type of the items; None yields raw elements
        """
        self._client = client
        self._method = method
        self._path = path
        self._options = options.model_copy() if options is not None else PagerOptions()
        self._model = model

        self._cursor = self._options.cursor or ""
        self._exhausted = False
        self._count: Optional[int] = None

    def has_next(self) -> bool:
        """True while another page is expected."""
        return not self._exhausted

    def cursor(self) -> str:
        """The cursor of the next page, or "" when there is none."""
        return self._cursor

    def count(self, ctx: Optional[Context] = None) -> int:
        """
        Total number of records for the list.

        Sends a HEAD request the first time; later calls return the cached value.
        """
        if self._count is not None:
            return self._count

        query = self._options.to_dict()
        query.pop("cursor", None)
        spec = self._client.new_request("HEAD", self._path, query)
        response = self._client.do(spec, None, ctx=ctx)

        records = response.records
        if records is None:
            return 0
        self._count = records
        return records

    def fetch(self, ctx: Optional[Context] = None) -> List[Any]:
        """
        Fetch the next page.

        Returns:
            The page's items

        Raises:
            NoMoreResultsError: If the pager is exhausted (no request is sent)
            RecurlyError: If the request fails; the pager is then exhausted
        """
        if ctx is not None:
            ctx.raise_if_done()
        if self._exhausted:
            raise NoMoreResultsError()

        query = self._options.to_dict()
        query["cursor"] = self._cursor
        spec = self._client.new_request(self._method, self._path, query)

        try:
            response = self._client.do(spec, self._decode, ctx=ctx)
        except RecurlyError:
            self._exhausted = True
            raise

        self._cursor = response.cursor
        if not self._cursor:
            self._exhausted = True
        logger.debug("Fetched page of %s (next cursor %r)", self._path, self._cursor)
        return response.value or []

    def fetch_all(self, ctx: Optional[Context] = None) -> List[Any]:
        """Fetch every remaining page, using the largest page size."""
        self._options = self._options.model_copy(update={"per_page": MAX_PER_PAGE})
        results: List[Any] = []
        while self.has_next():
            results.extend(self.fetch(ctx))
        return results

    def __iter__(self) -> Iterator[List[Any]]:
        while self.has_next():
            yield self.fetch()

    def _decode(self, root: ElementTree.Element) -> List[Any]:
        if self._model is None:
            return list(root)
        return decode_items(root, self._model)


__all__ = ["MAX_PER_PAGE", "PagerOptions", "Pager"]
