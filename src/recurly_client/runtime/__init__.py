"""Runtime helpers for the Recurly Python client"""

from .errors import RecurlyError, DecodeError, EncodeError
from .null import NullBool, NullInt, NullFloat, NullTime, DATETIME_FORMAT
from .codec import XmlModel, UnitAmount
from .context import Context
from .url import extract_trailing_segment, extract_trailing_int

__all__ = [
    "RecurlyError",
    "DecodeError",
    "EncodeError",
    "NullBool",
    "NullInt",
    "NullFloat",
    "NullTime",
    "DATETIME_FORMAT",
    "XmlModel",
    "UnitAmount",
    "Context",
    "extract_trailing_segment",
    "extract_trailing_int",
]
