"""
Recurly Python Client

This package provides a client for the Recurly v2 subscription billing API:
XML resource models with nullable field types, request building, response
classification into a structured error taxonomy and cursor pagination.
"""

from .api_client import API_VERSION, ClientConfig, RecurlyClient, new_client
from .client import (
    LinkCursors, Pager, PagerOptions, Rate, RequestSpec, Response,
    build_request, classify, parse_link_header,
)
from .models import *
from .runtime.codec import UnitAmount, XmlModel
from .runtime.context import Context
from .runtime.errors import *
from .runtime.null import (
    DATETIME_FORMAT, NullBool, NullFloat, NullInt, NullTime,
    new_bool, new_float, new_int, new_time,
)
from .services import AccountsService, ResourceService, TransactionsService
from . import webhooks

__version__ = "1.0.0"
__all__ = [
    # Client
    "API_VERSION",
    "ClientConfig",
    "RecurlyClient",
    "new_client",
    "Context",

    # Requests and responses
    "RequestSpec",
    "build_request",
    "Response",
    "Rate",
    "LinkCursors",
    "classify",
    "parse_link_header",
    "Pager",
    "PagerOptions",

    # Services
    "ResourceService",
    "AccountsService",
    "TransactionsService",

    # Webhooks
    "webhooks",

    # Values and models
    "XmlModel",
    "UnitAmount",
    "NullBool",
    "NullInt",
    "NullFloat",
    "NullTime",
    "DATETIME_FORMAT",
    "new_bool",
    "new_int",
    "new_float",
    "new_time",
    "Account",
    "AccountBalance",
    "Address",
    "Note",
    "Notes",
    "Transaction",
    "TransactionError",

    # Errors
    "ErrorCode",
    "RecurlyError",
    "InvalidRequestError",
    "EncodingError",
    "EncodeError",
    "DecodeError",
    "NoMoreResultsError",
    "UnknownNotificationError",
    "NetworkError",
    "ConnectionError",
    "TimeoutError",
    "CancelledError",
    "DeadlineExceededError",
    "ValidationError",
    "APIError",
    "ClientError",
    "TransactionFailedError",
    "RateLimitError",
    "ServerError",
    "ErrorHandler",
]
