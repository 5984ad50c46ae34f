"""
Recurly resource models.

Only the resources the client runtime itself needs are defined here: the
transaction records embedded in failed-payment errors, and accounts with their
balance and notes. Other resources are declared the same way.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional

from .runtime.codec import (
    XmlModel, UnitAmount, attribute, boolean, href, href_int, integer, many,
    nested, nullable, strings, text, unit_amount,
)
from .runtime.null import NullBool, NullTime

# Account states
ACCOUNT_STATE_ACTIVE = "active"
ACCOUNT_STATE_CLOSED = "closed"

# Transaction statuses
TRANSACTION_STATUS_SUCCESS = "success"
TRANSACTION_STATUS_FAILED = "failed"
TRANSACTION_STATUS_VOID = "void"


@dataclass
class TransactionError(XmlModel):
    """
    A payment gateway error that Recurly has standardized.

    ``customer_message`` is safe to show to the customer as-is.
    """
    __xml_root__ = "transaction_error"

    error_code: str = text("error_code")
    error_category: str = text("error_category")
    merchant_message: str = text("merchant_message")
    customer_message: str = text("customer_message")
    gateway_error_code: str = text("gateway_error_code")
    three_d_secure_action_token_id: str = text("three_d_secure_action_token_id")


@dataclass
class Address(XmlModel):
    __xml_root__ = "address"

    address1: str = text("address1")
    address2: str = text("address2")
    city: str = text("city")
    state: str = text("state")
    zip: str = text("zip")
    country: str = text("country")
    phone: str = text("phone")


@dataclass
class Account(XmlModel):
    """A customer account."""
    __xml_root__ = "account"

    code: str = text("account_code")
    state: str = text("state")
    username: str = text("username")
    email: str = text("email")
    cc_emails: Optional[List[str]] = strings("cc_emails", "email")
    first_name: str = text("first_name")
    last_name: str = text("last_name")
    company_name: str = text("company_name")
    vat_number: str = text("vat_number")
    tax_exempt: NullBool = nullable("tax_exempt", NullBool)
    address: Optional[Address] = nested("address", Address)
    accept_language: str = text("accept_language")
    preferred_locale: str = text("preferred_locale")
    hosted_login_token: str = text("hosted_login_token", read_only=True)
    has_live_subscription: NullBool = nullable("has_live_subscription", NullBool, read_only=True)
    has_active_subscription: NullBool = nullable("has_active_subscription", NullBool, read_only=True)
    has_past_due_invoice: NullBool = nullable("has_past_due_invoice", NullBool, read_only=True)
    created_at: NullTime = nullable("created_at", NullTime, read_only=True)
    updated_at: NullTime = nullable("updated_at", NullTime, read_only=True)
    closed_at: NullTime = nullable("closed_at", NullTime, read_only=True)


@dataclass
class AccountBalance(XmlModel):
    __xml_root__ = "account_balance"

    past_due: bool = boolean("past_due")
    balance: UnitAmount = unit_amount("balance_in_cents")


@dataclass
class Note(XmlModel):
    __xml_root__ = "note"

    message: str = text("message")
    created_at: NullTime = nullable("created_at", NullTime, read_only=True)


@dataclass
class Transaction(XmlModel):
    """An individual payment transaction."""
    __xml_root__ = "transaction"

    url: str = attribute("href", read_only=True)
    invoice_number: Optional[int] = href_int("invoice")
    original_transaction_uuid: str = href("original_transaction")
    uuid: str = text("uuid")
    action: str = text("action")
    amount_in_cents: int = integer("amount_in_cents", omitempty=False)
    tax_in_cents: int = integer("tax_in_cents")
    currency: str = text("currency", omitempty=False)
    status: str = text("status")
    description: str = text("description")
    payment_method: str = text("payment_method")
    reference: str = text("reference")
    source: str = text("source")
    recurring: NullBool = nullable("recurring", NullBool)
    test: bool = boolean("test")
    voidable: NullBool = nullable("voidable", NullBool)
    refundable: NullBool = nullable("refundable", NullBool)
    ip_address: str = text("ip_address")
    transaction_error: Optional[TransactionError] = nested("transaction_error", TransactionError, read_only=True)
    avs_result_street: str = text("avs_result_street", read_only=True)
    avs_result_postal: str = text("avs_result_postal", read_only=True)
    created_at: NullTime = nullable("created_at", NullTime, read_only=True)
    account: Optional[Account] = nested("details>account", Account, read_only=True)
    gateway_type: str = text("gateway_type", read_only=True)
    origin: str = text("origin", read_only=True)
    message: str = text("message", read_only=True)
    approval_code: str = text("approval_code", read_only=True)


@dataclass
class Notes(XmlModel):
    """Collection wrapper used by the account notes endpoint."""
    __xml_root__ = "notes"

    notes: Optional[List[Note]] = many("", Note)


__all__ = [
    "ACCOUNT_STATE_ACTIVE",
    "ACCOUNT_STATE_CLOSED",
    "TRANSACTION_STATUS_SUCCESS",
    "TRANSACTION_STATUS_FAILED",
    "TRANSACTION_STATUS_VOID",
    "TransactionError",
    "Address",
    "Account",
    "AccountBalance",
    "Note",
    "Notes",
    "Transaction",
]
