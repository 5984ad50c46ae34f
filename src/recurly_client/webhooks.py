"""
Webhook notifications.

Recurly posts an XML document to the site's webhook URL whenever something
happens to an account. ``parse`` reads one such document and returns a typed
notification:

    ```python
    notification = webhooks.parse(request.body)
    if isinstance(notification, webhooks.PaymentNotification):
        record_payment(notification.account.code, notification.transaction)
    ```

Account, invoice and payment notifications are supported. Any other root
element raises UnknownNotificationError.
"""

from __future__ import annotations
import dataclasses
import hashlib
import logging
from dataclasses import dataclass
from typing import IO, Dict, Optional, Type, Union
from xml.etree import ElementTree

from .runtime.codec import XmlModel, integer, nested, nullable, text
from .runtime.errors import DecodeError, UnknownNotificationError
from .runtime.null import NullBool, NullInt, NullTime

logger = logging.getLogger(__name__)

# Account notifications
BILLING_INFO_UPDATED = "billing_info_updated_notification"

# Invoice notifications
NEW_INVOICE = "new_invoice_notification"
PAST_DUE_INVOICE = "past_due_invoice_notification"

# Payment notifications
SUCCESSFUL_PAYMENT = "successful_payment_notification"
FAILED_PAYMENT = "failed_payment_notification"
VOID_PAYMENT = "void_payment_notification"
SUCCESSFUL_REFUND = "successful_refund_notification"

# Transaction failure types
TRANSACTION_FAILURE_TYPE_DECLINED = "declined"
TRANSACTION_FAILURE_TYPE_DUPLICATE = "duplicate_transaction"


# =============================================================================
# Payloads
# =============================================================================

@dataclass
class WebhookAccount(XmlModel):
    """The account summary embedded in every notification."""
    __xml_root__ = "account"

    code: str = text("account_code")
    username: str = text("username")
    email: str = text("email")
    first_name: str = text("first_name")
    last_name: str = text("last_name")
    company_name: str = text("company_name")
    phone: str = text("phone")


@dataclass
class WebhookTransaction(XmlModel):
    """The transaction carried by payment notifications."""
    __xml_root__ = "transaction"

    uuid: str = text("id")
    invoice_number: int = integer("invoice_number")
    subscription_uuid: str = text("subscription_id")
    action: str = text("action")
    amount_in_cents: int = integer("amount_in_cents")
    status: str = text("status")
    message: str = text("message")
    gateway_error_codes: str = text("gateway_error_codes")
    failure_type: str = text("failure_type")
    reference: str = text("reference")
    source: str = text("source")
    test: NullBool = nullable("test", NullBool)
    voidable: NullBool = nullable("voidable", NullBool)
    refundable: NullBool = nullable("refundable", NullBool)


@dataclass
class WebhookInvoice(XmlModel):
    """The invoice carried by invoice notifications."""
    __xml_root__ = "invoice"

    subscription_uuid: str = text("subscription_id")
    uuid: str = text("uuid")
    state: str = text("state")
    invoice_number_prefix: str = text("invoice_number_prefix")
    invoice_number: int = integer("invoice_number")
    po_number: str = text("po_number")
    vat_number: str = text("vat_number")
    total_in_cents: int = integer("total_in_cents")
    currency: str = text("currency")
    created_at: NullTime = nullable("date", NullTime)
    closed_at: NullTime = nullable("closed_at", NullTime)
    net_terms: NullInt = nullable("net_terms", NullInt)
    collection_method: str = text("collection_method")


# =============================================================================
# Notifications
# =============================================================================

@dataclass
class Notification(XmlModel):
    """
    Fields shared by every notification.

    ``type`` is the root element name, e.g. ``successful_payment_notification``.
    ``id`` is the hex MD5 of the raw body; Recurly sends no identifier of its
    own, so this is what to deduplicate redeliveries on.
    """

    type: str = ""
    id: str = ""
    account: Optional[WebhookAccount] = nested("account", WebhookAccount)


@dataclass
class AccountNotification(Notification):
    """billing_info_updated_notification."""


@dataclass
class InvoiceNotification(Notification):
    """new_invoice_notification and past_due_invoice_notification."""

    invoice: Optional[WebhookInvoice] = nested("invoice", WebhookInvoice)


@dataclass
class PaymentNotification(Notification):
    """Successful, failed and voided payments, and successful refunds."""

    transaction: Optional[WebhookTransaction] = nested("transaction", WebhookTransaction)


NOTIFICATION_TYPES: Dict[str, Type[Notification]] = {
    BILLING_INFO_UPDATED: AccountNotification,
    NEW_INVOICE: InvoiceNotification,
    PAST_DUE_INVOICE: InvoiceNotification,
    SUCCESSFUL_PAYMENT: PaymentNotification,
    FAILED_PAYMENT: PaymentNotification,
    VOID_PAYMENT: PaymentNotification,
    SUCCESSFUL_REFUND: PaymentNotification,
}


def parse(stream: Union[bytes, str, IO]) -> Notification:
    """
    Parse a webhook body into its notification.

    Args:
        stream: The raw body, or a binary/text file-like object to read it from

    Returns:
        An AccountNotification, InvoiceNotification or PaymentNotification

    Raises:
        DecodeError: If the body is not well-formed XML or a field is malformed
        UnknownNotificationError: If the root element is not a supported type
    """
    body = stream.read() if hasattr(stream, "read") else stream
    if isinstance(body, str):
        body = body.encode("utf-8")

    try:
        root = ElementTree.fromstring(body)
    except ElementTree.ParseError as e:
        raise DecodeError(f"malformed notification: {e}", cause=e) from e

    cls = NOTIFICATION_TYPES.get(root.tag)
    if cls is None:
        raise UnknownNotificationError(root.tag)

    notification = cls.from_element(root)
    notification = dataclasses.replace(notification, type=root.tag, id=hashlib.md5(body).hexdigest())
    logger.debug("Parsed %s %s", notification.type, notification.id)
    return notification


__all__ = [
    "BILLING_INFO_UPDATED",
    "NEW_INVOICE",
    "PAST_DUE_INVOICE",
    "SUCCESSFUL_PAYMENT",
    "FAILED_PAYMENT",
    "VOID_PAYMENT",
    "SUCCESSFUL_REFUND",
    "TRANSACTION_FAILURE_TYPE_DECLINED",
    "TRANSACTION_FAILURE_TYPE_DUPLICATE",
    "WebhookAccount",
    "WebhookTransaction",
    "WebhookInvoice",
    "Notification",
    "AccountNotification",
    "InvoiceNotification",
    "PaymentNotification",
    "NOTIFICATION_TYPES",
    "parse",
]
