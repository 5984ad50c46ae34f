"""
Resource services.

Each service binds a resource model to its endpoint and offers the usual
list/get/create/update/delete calls on top of RecurlyClient.
"""

from __future__ import annotations
from typing import Any, Generic, List, Optional, Type, TypeVar, TYPE_CHECKING
from urllib.parse import quote

from .client.pager import Pager, PagerOptions
from .models import Account, AccountBalance, Note, Notes, Transaction
from .runtime.codec import XmlModel
from .runtime.context import Context
from .runtime.errors import ClientError

if TYPE_CHECKING:
    from .api_client import RecurlyClient

M = TypeVar("M", bound=XmlModel)


class ResourceService(Generic[M]):
    """Generic CRUD calls for one resource collection."""

    def __init__(self, client: "RecurlyClient", collection: str, model: Type[M]):
        """
        Args:
            client: Client used to send requests
            collection: Collection path, e.g. "accounts"
            model: Resource model returned by the calls
        """
        self._client = client
        self._collection = collection.strip("/")
        self._model = model

    def path(self, key: str, *suffix: str) -> str:
        """Member path for key, with optional sub-resource segments."""
        parts = [self._collection, quote(str(key), safe="")]
        parts.extend(s.strip("/") for s in suffix if s)
        return "/".join(parts)

    def list(self, options: Optional[PagerOptions] = None) -> Pager[M]:
        """Pager over the whole collection."""
        return self._client.new_pager("GET", self._collection, options, self._model)

    def get(self, key: str, ctx: Optional[Context] = None) -> Optional[M]:
        """
        Fetch one resource.

        Returns:
            The resource, or None if it does not exist
        """
        try:
            return self._client.call("GET", self.path(key), self._model, ctx=ctx).value
        except ClientError as e:
            if e.status == 404:
                return None
            raise

    def create(self, resource: M, ctx: Optional[Context] = None) -> Optional[M]:
        """Create a resource and return it as stored by Recurly."""
        return self._client.call("POST", self._collection, self._model, body=resource, ctx=ctx).value

    def update(self, key: str, resource: M, ctx: Optional[Context] = None) -> Optional[M]:
        return self._client.call("PUT", self.path(key), self._model, body=resource, ctx=ctx).value

    def delete(self, key: str, ctx: Optional[Context] = None) -> None:
        self._client.call("DELETE", self.path(key), ctx=ctx)

    def action(self, method: str, key: str, suffix: str, dst: Any = None, *,
               body: Any = None, ctx: Optional[Context] = None) -> Any:
        """
        Call a sub-resource endpoint such as ``accounts/<code>/reopen``.

        Returns:
            The decoded body, or None when dst is None or the body is empty
        """
        return self._client.call(method, self.path(key, suffix), dst, body=body, ctx=ctx).value


class AccountsService(ResourceService[Account]):
    """Calls on the accounts endpoint."""

    def __init__(self, client: "RecurlyClient"):
        super().__init__(client, "accounts", Account)

    def close(self, code: str, ctx: Optional[Context] = None) -> None:
        """Close an account; Recurly keeps its history."""
        self.delete(code, ctx=ctx)

    def reopen(self, code: str, ctx: Optional[Context] = None) -> Optional[Account]:
        return self.action("PUT", code, "reopen", Account, ctx=ctx)

    def balance(self, code: str, ctx: Optional[Context] = None) -> Optional[AccountBalance]:
        return self.action("GET", code, "balance", AccountBalance, ctx=ctx)

    def list_notes(self, code: str, ctx: Optional[Context] = None) -> List[Note]:
        notes = self.action("GET", code, "notes", Notes, ctx=ctx)
        if notes is None:
            return []
        return notes.notes or []

    def list_transactions(self, code: str, options: Optional[PagerOptions] = None) -> Pager[Transaction]:
        """Pager over one account's transactions."""
        return self._client.new_pager("GET", self.path(code, "transactions"), options, Transaction)


class TransactionsService(ResourceService[Transaction]):
    """Calls on the transactions endpoint. Transactions are keyed by UUID."""

    def __init__(self, client: "RecurlyClient"):
        super().__init__(client, "transactions", Transaction)


__all__ = ["ResourceService", "AccountsService", "TransactionsService"]
