"""
Unit tests for the XML field codec and the resource models.
"""

from datetime import datetime, timezone
from xml.etree import ElementTree

import pytest

from recurly_client.models import (
    Account, AccountBalance, Address, Notes, Transaction, TransactionError,
)
from recurly_client.runtime.codec import UnitAmount, decode_items
from recurly_client.runtime.errors import DecodeError, EncodeError
from recurly_client.runtime.null import NullBool, NullTime, new_bool, new_time


TRANSACTION_XML = b"""<?xml version="1.0" encoding="UTF-8"?>
<transaction href="https://acme.recurly.com/v2/transactions/a13acd8fe4294916b79aec87b7ea441f" type="credit_card">
  <account href="https://acme.recurly.com/v2/accounts/1"/>
  <invoice href="https://acme.recurly.com/v2/invoices/1108"/>
  <original_transaction href="https://acme.recurly.com/v2/transactions/a13acd8fe4294916b79aec87b7ea4400"/>
  <uuid>a13acd8fe4294916b79aec87b7ea441f</uuid>
  <action>purchase</action>
  <amount_in_cents type="integer">1000</amount_in_cents>
  <tax_in_cents type="integer">0</tax_in_cents>
  <currency>USD</currency>
  <status>success</status>
  <payment_method>credit_card</payment_method>
  <reference>5416477</reference>
  <source>subscription</source>
  <recurring type="boolean">true</recurring>
  <test type="boolean">true</test>
  <voidable type="boolean">false</voidable>
  <refundable nil="nil"></refundable>
  <ip_address>127.0.0.1</ip_address>
  <created_at type="datetime">2015-06-10T15:25:06Z</created_at>
  <details>
    <account>
      <account_code>1</account_code>
      <first_name>Verena</first_name>
      <last_name>Example</last_name>
      <email nil="nil"></email>
    </account>
  </details>
</transaction>
"""


class TestAccountEncoding:
    """Encoding accounts to request bodies."""

    def test_minimal_account(self):
        account = Account(code="abc", tax_exempt=new_bool(False))
        assert account.to_xml() == (
            b"<account><account_code>abc</account_code>"
            b"<tax_exempt>false</tax_exempt></account>"
        )

    def test_empty_values_are_omitted(self):
        root = ElementTree.fromstring(Account(code="abc").to_xml())
        assert [child.tag for child in root] == ["account_code"]

    def test_read_only_fields_are_not_sent(self):
        account = Account(
            code="abc",
            hosted_login_token="token",
            has_live_subscription=new_bool(True),
            created_at=new_time(datetime(2020, 1, 1, tzinfo=timezone.utc)),
        )
        root = ElementTree.fromstring(account.to_xml())
        assert root.find("hosted_login_token") is None
        assert root.find("has_live_subscription") is None
        assert root.find("created_at") is None

    def test_wrapped_string_list(self):
        root = ElementTree.fromstring(Account(code="a", cc_emails=["x@example.com", "y@example.com"]).to_xml())
        emails = root.find("cc_emails")
        assert [e.tag for e in emails] == ["email", "email"]
        assert [e.text for e in emails] == ["x@example.com", "y@example.com"]

    def test_empty_list_is_omitted(self):
        assert Account(code="a", cc_emails=[]).to_xml() == Account(code="a").to_xml()
        root = ElementTree.fromstring(Account(code="a", cc_emails=[]).to_xml())
        assert root.find("cc_emails") is None

    def test_encoding_is_deterministic(self):
        account = Account(
            code="a",
            cc_emails=["x@example.com"],
            tax_exempt=new_bool(False),
            address=Address(city="Springfield"),
        )
        assert account.to_xml() == account.to_xml()

    def test_nested_address(self):
        account = Account(code="a", address=Address(city="Springfield", country="US"))
        root = ElementTree.fromstring(account.to_xml())
        assert root.find("address/city").text == "Springfield"
        assert root.find("address/country").text == "US"
        assert root.find("address/zip") is None

    def test_wrong_nullable_type_raises_encode_error(self):
        with pytest.raises(EncodeError):
            Account(code="a", tax_exempt=True).to_xml()


class TestAccountDecoding:
    """Decoding account documents."""

    def test_decode(self):
        account = Account.from_xml(b"""
            <account href="https://acme.recurly.com/v2/accounts/1">
              <account_code>1</account_code>
              <state>active</state>
              <email>verena@example.com</email>
              <cc_emails><email>a@example.com</email></cc_emails>
              <tax_exempt type="boolean">false</tax_exempt>
              <address>
                <city>San Francisco</city>
                <zip nil="nil"></zip>
              </address>
              <has_live_subscription type="boolean">true</has_live_subscription>
              <created_at type="datetime">2011-10-25T12:00:00Z</created_at>
              <closed_at nil="nil"></closed_at>
            </account>
        """)
        assert account.code == "1"
        assert account.state == "active"
        assert account.email == "verena@example.com"
        assert account.cc_emails == ["a@example.com"]
        assert account.tax_exempt == new_bool(False)
        assert account.address.city == "San Francisco"
        assert account.address.zip == ""
        assert account.has_live_subscription.is_(True)
        assert account.created_at == NullTime.from_string("2011-10-25T12:00:00Z")
        assert account.closed_at == NullTime()

    def test_absent_fields(self):
        account = Account.from_xml(b"<account><account_code>1</account_code></account>")
        assert account.email == ""
        assert account.cc_emails is None
        assert account.address is None
        assert account.tax_exempt == NullBool()

    def test_nil_nested_model(self):
        account = Account.from_xml(b'<account><address nil="nil"></address></account>')
        assert account.address is None

    def test_root_mismatch(self):
        with pytest.raises(DecodeError) as exc_info:
            Account.from_xml(b"<transaction></transaction>")
        assert "expected element type <account> but have <transaction>" in str(exc_info.value)

    def test_malformed_document(self):
        with pytest.raises(DecodeError):
            Account.from_xml(b"<account><account_code>1</account>")

    def test_decode_round_trip(self):
        account = Account(code="abc", email="a@example.com", tax_exempt=new_bool(True),
                          address=Address(city="Paris"))
        assert Account.from_xml(account.to_xml()) == account


class TestTransaction:
    """Transactions exercise href projections and nested paths."""

    def test_decode(self):
        txn = Transaction.from_xml(TRANSACTION_XML)
        assert txn.url == "https://acme.recurly.com/v2/transactions/a13acd8fe4294916b79aec87b7ea441f"
        assert txn.invoice_number == 1108
        assert txn.original_transaction_uuid == "a13acd8fe4294916b79aec87b7ea4400"
        assert txn.amount_in_cents == 1000
        assert txn.tax_in_cents == 0
        assert txn.currency == "USD"
        assert txn.recurring.is_(True)
        assert txn.test is True
        assert txn.voidable == new_bool(False)
        assert txn.refundable == NullBool()
        assert txn.transaction_error is None
        assert txn.account.code == "1"
        assert txn.account.first_name == "Verena"
        assert txn.account.email == ""

    def test_missing_href(self):
        txn = Transaction.from_xml(b"<transaction><uuid>x</uuid></transaction>")
        assert txn.invoice_number is None
        assert txn.original_transaction_uuid == ""
        assert txn.url == ""

    def test_non_integer_invoice_href(self):
        with pytest.raises(DecodeError):
            Transaction.from_xml(b'<transaction><invoice href="https://x/v2/invoices/abc"/></transaction>')

    def test_malformed_integer(self):
        with pytest.raises(DecodeError):
            Transaction.from_xml(b"<transaction><amount_in_cents>ten</amount_in_cents></transaction>")

    def test_encode_keeps_required_zero_values(self):
        root = ElementTree.fromstring(Transaction(account=Account(code="1")).to_xml())
        assert root.find("amount_in_cents").text == "0"
        assert root.find("currency") is not None
        assert root.find("tax_in_cents") is None
        assert root.find("details") is None

    def test_encode_skips_href_fields(self):
        txn = Transaction.from_xml(TRANSACTION_XML)
        root = ElementTree.fromstring(txn.to_xml())
        assert root.get("href") is None
        assert root.find("invoice") is None
        assert root.find("original_transaction") is None
        assert root.find("voidable").text == "false"
        assert root.find("refundable") is None

    def test_transaction_error(self):
        err = TransactionError.from_xml(b"""
            <transaction_error>
              <error_code>insufficient_funds</error_code>
              <error_category>soft</error_category>
              <customer_message>The transaction was declined due to insufficient funds.</customer_message>
            </transaction_error>
        """)
        assert err.error_code == "insufficient_funds"
        assert err.error_category == "soft"
        assert err.merchant_message == ""


class TestUnitAmount:
    """Per-currency amounts."""

    def test_decode_balance(self):
        balance = AccountBalance.from_xml(b"""
            <account_balance>
              <past_due type="boolean">true</past_due>
              <balance_in_cents>
                <USD type="integer">2910</USD>
                <EUR type="integer">520</EUR>
              </balance_in_cents>
            </account_balance>
        """)
        assert balance.past_due is True
        assert balance.balance == UnitAmount(USD=2910, EUR=520)

    def test_zero_is_omitted(self):
        assert UnitAmount().to_element("unit_amount_in_cents") is None

    def test_encode(self):
        elem = UnitAmount(USD=1000, GBP=800).to_element("unit_amount_in_cents")
        assert [(c.tag, c.text) for c in elem] == [("USD", "1000"), ("GBP", "800")]

    def test_absent(self):
        assert UnitAmount.from_element(None) == UnitAmount()


class TestCollections:
    """Unwrapped lists and collection decoding."""

    def test_unwrapped_notes(self):
        notes = Notes.from_xml(b"""
            <notes>
              <note><message>first</message><created_at>2015-01-01T00:00:00Z</created_at></note>
              <note><message>second</message></note>
            </notes>
        """)
        assert [n.message for n in notes.notes] == ["first", "second"]
        assert notes.notes[1].created_at == NullTime()

    def test_decode_items(self):
        root = ElementTree.fromstring(
            b"<accounts><account><account_code>1</account_code></account>"
            b"<account><account_code>2</account_code></account></accounts>"
        )
        assert [a.code for a in decode_items(root, Account)] == ["1", "2"]

    def test_decode_items_empty(self):
        assert decode_items(ElementTree.fromstring(b"<accounts></accounts>"), Account) == []
