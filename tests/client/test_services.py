"""
Tests for the resource services.
"""

import pytest

from helpers import make_response, xml

from recurly_client.client.pager import Pager, PagerOptions
from recurly_client.models import Account, AccountBalance, Transaction
from recurly_client.runtime.codec import UnitAmount
from recurly_client.runtime.errors import ClientError, ServerError
from recurly_client.runtime.null import new_bool

ACCOUNT = xml("<account><account_code>abc</account_code><state>active</state></account>")


class TestResourceService:
    """Generic calls, exercised through the accounts service."""

    def test_get(self, client, session):
        session.queue(make_response(200, ACCOUNT))
        account = client.accounts.get("abc")
        assert account.code == "abc"
        assert session.last["url"] == "https://acme.recurly.com/v2/accounts/abc"

    def test_get_escapes_key(self, client, session):
        session.queue(make_response(200, ACCOUNT))
        client.accounts.get("a/b c")
        assert session.last["url"] == "https://acme.recurly.com/v2/accounts/a%2Fb%20c"

    def test_get_missing_returns_none(self, client, session):
        session.queue(make_response(404, xml("<error><symbol>not_found</symbol><description>Not found</description></error>")))
        assert client.accounts.get("missing") is None

    def test_get_other_client_errors_raise(self, client, session):
        session.queue(make_response(403))
        with pytest.raises(ClientError):
            client.accounts.get("abc")

    def test_get_server_error_raises(self, client, session):
        session.queue(make_response(500))
        with pytest.raises(ServerError):
            client.accounts.get("abc")

    def test_create(self, client, session):
        session.queue(make_response(201, ACCOUNT))
        created = client.accounts.create(Account(code="abc", tax_exempt=new_bool(False)))

        assert created.state == "active"
        call = session.last
        assert call["method"] == "POST"
        assert call["url"] == "https://acme.recurly.com/v2/accounts"
        assert call["data"] == b"<account><account_code>abc</account_code><tax_exempt>false</tax_exempt></account>"
        assert call["headers"]["Content-Type"] == "application/xml; charset=utf-8"

    def test_update(self, client, session):
        session.queue(make_response(200, ACCOUNT))
        client.accounts.update("abc", Account(email="new@example.com"))
        assert session.last["method"] == "PUT"
        assert session.last["url"] == "https://acme.recurly.com/v2/accounts/abc"
        assert b"<email>new@example.com</email>" in session.last["data"]

    def test_delete(self, client, session):
        session.queue(make_response(204))
        assert client.accounts.delete("abc") is None
        assert session.last["method"] == "DELETE"

    def test_list(self, client, session):
        session.queue(make_response(200, xml("<accounts>" + "<account><account_code>1</account_code></account>" + "</accounts>")))
        pager = client.accounts.list(PagerOptions(state="active"))
        assert isinstance(pager, Pager)
        assert [a.code for a in pager.fetch()] == ["1"]
        assert session.last["params"] == [("state", "active")]


class TestAccountsService:
    """Account-specific calls."""

    def test_close(self, client, session):
        session.queue(make_response(204))
        client.accounts.close("abc")
        assert session.last["method"] == "DELETE"
        assert session.last["url"] == "https://acme.recurly.com/v2/accounts/abc"

    def test_reopen(self, client, session):
        session.queue(make_response(200, ACCOUNT))
        account = client.accounts.reopen("abc")
        assert account.code == "abc"
        assert session.last["method"] == "PUT"
        assert session.last["url"] == "https://acme.recurly.com/v2/accounts/abc/reopen"

    def test_balance(self, client, session):
        session.queue(make_response(200, xml(
            "<account_balance><past_due type=\"boolean\">false</past_due>"
            "<balance_in_cents><USD type=\"integer\">3000</USD></balance_in_cents></account_balance>"
        )))
        balance = client.accounts.balance("abc")
        assert balance == AccountBalance(past_due=False, balance=UnitAmount(USD=3000))
        assert session.last["url"] == "https://acme.recurly.com/v2/accounts/abc/balance"

    def test_list_notes(self, client, session):
        session.queue(make_response(200, xml(
            "<notes><note><message>first</message></note><note><message>second</message></note></notes>"
        )))
        notes = client.accounts.list_notes("abc")
        assert [n.message for n in notes] == ["first", "second"]
        assert session.last["url"] == "https://acme.recurly.com/v2/accounts/abc/notes"

    def test_list_notes_empty(self, client, session):
        session.queue(make_response(200, xml("<notes></notes>")))
        assert client.accounts.list_notes("abc") == []

    def test_list_transactions(self, client, session):
        session.queue(make_response(200, xml(
            "<transactions><transaction><uuid>t1</uuid><amount_in_cents>100</amount_in_cents></transaction></transactions>"
        )))
        pager = client.accounts.list_transactions("abc")
        [txn] = pager.fetch()
        assert isinstance(txn, Transaction)
        assert txn.uuid == "t1"
        assert session.last["url"] == "https://acme.recurly.com/v2/accounts/abc/transactions"


class TestTransactionsService:
    """Transaction lookups."""

    def test_get(self, client, session):
        session.queue(make_response(200, xml("<transaction><uuid>t1</uuid><status>success</status></transaction>")))
        txn = client.transactions.get("t1")
        assert txn.status == "success"
        assert session.last["url"] == "https://acme.recurly.com/v2/transactions/t1"
