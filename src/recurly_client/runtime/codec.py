"""
Recurly XML Encoding/Decoding

This module turns resource dataclasses into Recurly's XML documents and back.
Resources declare *what* each field is with the helpers below (``text``,
``integer``, ``nullable``, ``many``, ``href`` ...); the rules for *how* each
kind is encoded live here in one place:

* empty strings, zero ints and false bools are omitted;
* nullable values follow the omission rules of ``runtime.null``;
* list fields may be wrapped (``shipping_addresses>shipping_address``);
* ``href`` fields are reduced to their trailing identifier and never sent;
* read-only fields are decoded but never sent.
"""

from __future__ import annotations
import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Type, TypeVar, Union
from xml.etree import ElementTree

from .errors import DecodeError, EncodeError
from .null import Nullable, NullBool, NullInt, is_nil_element
from .url import extract_trailing_segment, extract_trailing_int

M = TypeVar("M", bound="XmlModel")


class FieldKind(Enum):
    """How a field maps onto XML."""
    TEXT = "text"
    INT = "int"
    BOOL = "bool"
    NULLABLE = "nullable"
    MODEL = "model"
    MODEL_LIST = "model_list"
    TEXT_LIST = "text_list"
    HREF = "href"
    HREF_INT = "href_int"
    UNIT_AMOUNT = "unit_amount"
    ATTR = "attr"


@dataclass(frozen=True)
class XmlField:
    """XML mapping metadata attached to a dataclass field."""
    tag: str
    kind: FieldKind
    type: Optional[type] = None
    item_tag: Optional[str] = None
    omitempty: bool = True
    read_only: bool = False

    @property
    def path(self) -> List[str]:
        return self.tag.split(">")


def _field(tag: str, kind: FieldKind, default: Any = dataclasses.MISSING,
           default_factory: Any = dataclasses.MISSING, **meta: Any) -> Any:
    xml = XmlField(tag=tag, kind=kind, **meta)
    if default_factory is not dataclasses.MISSING:
        return dataclasses.field(default_factory=default_factory, metadata={"xml": xml})
    return dataclasses.field(default=default, metadata={"xml": xml})


# =============================================================================
# Field declarations
# =============================================================================

def text(tag: str, *, omitempty: bool = True, read_only: bool = False) -> Any:
    """A string element; omitted when empty."""
    return _field(tag, FieldKind.TEXT, default="", omitempty=omitempty, read_only=read_only)


def integer(tag: str, *, omitempty: bool = True, read_only: bool = False) -> Any:
    """An int element; omitted when zero unless omitempty is False."""
    return _field(tag, FieldKind.INT, default=0, omitempty=omitempty, read_only=read_only)


def boolean(tag: str, *, omitempty: bool = True, read_only: bool = False) -> Any:
    """A plain bool element; omitted when false. Use nullable() to send false."""
    return _field(tag, FieldKind.BOOL, default=False, omitempty=omitempty, read_only=read_only)


def nullable(tag: str, null_type: Type[Nullable], *, read_only: bool = False) -> Any:
    """A tri-state element; see runtime.null."""
    return _field(tag, FieldKind.NULLABLE, default_factory=null_type, type=null_type, read_only=read_only)


def nested(tag: str, model: Type["XmlModel"], *, read_only: bool = False) -> Any:
    """A single nested resource; omitted when None."""
    return _field(tag, FieldKind.MODEL, default=None, type=model, read_only=read_only)


def many(tag: str, model: Type["XmlModel"], item_tag: Optional[str] = None, *,
         read_only: bool = False) -> Any:
    """
    A list of nested resources.

    ``tag`` names the wrapper element; the items are ``item_tag`` children
    (the model's root tag by default). Pass ``tag=""`` for unwrapped items.
    """
    return _field(tag, FieldKind.MODEL_LIST, default=None, type=model,
                  item_tag=item_tag or model.__xml_root__, read_only=read_only)


def strings(tag: str, item_tag: str, *, read_only: bool = False) -> Any:
    """A wrapped list of strings, e.g. ``<cc_emails><email>..</email></cc_emails>``."""
    return _field(tag, FieldKind.TEXT_LIST, default=None, item_tag=item_tag, read_only=read_only)


def href(tag: str) -> Any:
    """The trailing path segment of the element's href attribute (decode only)."""
    return _field(tag, FieldKind.HREF, default="", read_only=True)


def href_int(tag: str) -> Any:
    """The trailing integer of the element's href attribute (decode only)."""
    return _field(tag, FieldKind.HREF_INT, default=None, read_only=True)


def unit_amount(tag: str, *, read_only: bool = False) -> Any:
    """Per-currency amounts in cents; omitted when every amount is zero."""
    return _field(tag, FieldKind.UNIT_AMOUNT, default_factory=UnitAmount, read_only=read_only)


def attribute(name: str, *, read_only: bool = False) -> Any:
    """An attribute of the resource's own element."""
    return _field(name, FieldKind.ATTR, default="", read_only=read_only)


# =============================================================================
# Unit amounts
# =============================================================================

@dataclass(frozen=True)
class UnitAmount:
    """Amounts in cents keyed by currency, as used by plans and balances."""

    USD: int = 0
    EUR: int = 0
    GBP: int = 0
    CAD: int = 0
    AUD: int = 0

    CURRENCIES: ClassVar[tuple] = ("USD", "EUR", "GBP", "CAD", "AUD")

    def is_zero(self) -> bool:
        return not any(getattr(self, c) > 0 for c in self.CURRENCIES)

    def to_element(self, tag: str) -> Optional[ElementTree.Element]:
        if self.is_zero():
            return None
        elem = ElementTree.Element(tag)
        for currency in self.CURRENCIES:
            amount = getattr(self, currency)
            if amount:
                ElementTree.SubElement(elem, currency).text = str(amount)
        return elem

    @classmethod
    def from_element(cls, elem: Optional[ElementTree.Element]) -> "UnitAmount":
        if elem is None:
            return cls()
        amounts: Dict[str, int] = {}
        for currency in cls.CURRENCIES:
            child = elem.find(currency)
            if not is_nil_element(child):
                amounts[currency] = NullInt.parse(child.text.strip())
        return cls(**amounts)


# =============================================================================
# Models
# =============================================================================

def _find(elem: ElementTree.Element, path: List[str]) -> Optional[ElementTree.Element]:
    return elem.find("/".join(path))


def _parent_for(root: ElementTree.Element, path: List[str]) -> ElementTree.Element:
    parent = root
    for tag in path[:-1]:
        child = parent.find(tag)
        if child is None:
            child = ElementTree.SubElement(parent, tag)
        parent = child
    return parent


class XmlModel:
    """
    Base class for resources exchanged as XML.

    Subclasses are dataclasses whose fields are declared with the helpers in
    this module and set ``__xml_root__`` to their element name.
    """

    __xml_root__: ClassVar[str] = ""

    # -------------------------------------------------------------------------
    # Encoding
    # -------------------------------------------------------------------------

    def to_element(self, tag: Optional[str] = None) -> ElementTree.Element:
        """Encode this resource as an element named tag (the root tag by default)."""
        root = ElementTree.Element(tag or self.__xml_root__)
        for f in dataclasses.fields(self):
            spec: Optional[XmlField] = f.metadata.get("xml")
            if spec is None or spec.read_only:
                continue
            value = getattr(self, f.name)
            if spec.kind is FieldKind.ATTR:
                if value:
                    root.set(spec.tag, str(value))
                continue
            if spec.kind is FieldKind.MODEL_LIST and not spec.tag:
                for item in value or ():
                    root.append(item.to_element(spec.item_tag))
                continue
            child = _encode_value(spec, value)
            if child is not None:
                _parent_for(root, spec.path).append(child)
        return root

    def to_xml(self) -> bytes:
        """
        Serialize to a UTF-8 XML document.

        Raises:
            EncodeError: If a field holds a value that cannot be encoded
        """
        try:
            elem = self.to_element()
            return ElementTree.tostring(elem, encoding="unicode").encode("utf-8")
        except (TypeError, ValueError, AttributeError) as e:
            raise EncodeError(f"cannot encode {type(self).__name__}: {e}", cause=e) from e

    # -------------------------------------------------------------------------
    # Decoding
    # -------------------------------------------------------------------------

    @classmethod
    def from_element(cls: Type[M], elem: ElementTree.Element) -> M:
        """
        Decode from an element, which must be named ``__xml_root__``.

        Raises:
            DecodeError: On a mismatched root or malformed field
        """
        if cls.__xml_root__ and elem.tag != cls.__xml_root__:
            raise DecodeError(
                f"expected element type <{cls.__xml_root__}> but have <{elem.tag}>"
            )
        return cls._decode(elem)

    @classmethod
    def _decode(cls: Type[M], elem: ElementTree.Element) -> M:
        values: Dict[str, Any] = {}
        for f in dataclasses.fields(cls):
            spec: Optional[XmlField] = f.metadata.get("xml")
            if spec is None:
                continue
            values[f.name] = _decode_value(spec, elem)
        return cls(**values)

    @classmethod
    def from_xml(cls: Type[M], data: Union[bytes, str]) -> M:
        """
        Parse an XML document.

        Raises:
            DecodeError: If the document is malformed
        """
        try:
            elem = ElementTree.fromstring(data)
        except ElementTree.ParseError as e:
            raise DecodeError(f"malformed XML: {e}", cause=e) from e
        return cls.from_element(elem)


def _encode_value(spec: XmlField, value: Any) -> Optional[ElementTree.Element]:
    tag = spec.path[-1]
    kind = spec.kind

    if kind is FieldKind.TEXT:
        if value is None or (value == "" and spec.omitempty):
            return None
        elem = ElementTree.Element(tag)
        elem.text = str(value)
        return elem
    if kind is FieldKind.INT:
        if value is None or (value == 0 and spec.omitempty):
            return None
        return NullInt.of(value).to_element(tag)
    if kind is FieldKind.BOOL:
        if value is None or (value is False and spec.omitempty):
            return None
        return NullBool.of(value).to_element(tag)
    if kind is FieldKind.NULLABLE:
        if value is None:
            return None
        if not isinstance(value, Nullable):
            raise TypeError(f"{spec.tag} expects a {spec.type.__name__}, got {type(value).__name__}")
        return value.to_element(tag)
    if kind is FieldKind.MODEL:
        if value is None:
            return None
        return value.to_element(tag)
    if kind is FieldKind.MODEL_LIST:
        if value is None:
            return None
        items = [item.to_element(spec.item_tag) for item in value]
        return _wrap(tag, items)
    if kind is FieldKind.TEXT_LIST:
        if value is None:
            return None
        items = []
        for item in value:
            elem = ElementTree.Element(spec.item_tag)
            elem.text = str(item)
            items.append(elem)
        return _wrap(tag, items)
    if kind is FieldKind.UNIT_AMOUNT:
        if value is None:
            return None
        return value.to_element(tag)
    return None


def _wrap(tag: str, items: List[ElementTree.Element]) -> Optional[ElementTree.Element]:
    if not items:
        return None
    wrapper = ElementTree.Element(tag)
    wrapper.extend(items)
    return wrapper


def _decode_value(spec: XmlField, elem: ElementTree.Element) -> Any:
    kind = spec.kind

    if kind is FieldKind.ATTR:
        return elem.attrib.get(spec.tag, "")
    if kind is FieldKind.MODEL_LIST or kind is FieldKind.TEXT_LIST:
        container = _find(elem, spec.path) if spec.tag else elem
        if container is None:
            return None
        children = container.findall(spec.item_tag)
        if kind is FieldKind.TEXT_LIST:
            return [c.text or "" for c in children]
        return [spec.type._decode(c) for c in children]

    child = _find(elem, spec.path)
    if kind is FieldKind.NULLABLE:
        return spec.type.from_element(child)
    if kind is FieldKind.UNIT_AMOUNT:
        return UnitAmount.from_element(child)
    if kind is FieldKind.MODEL:
        if child is None or child.attrib.get("nil") is not None:
            return None
        return spec.type._decode(child)
    if kind is FieldKind.HREF:
        return extract_trailing_segment(None if child is None else child.attrib.get("href"))
    if kind is FieldKind.HREF_INT:
        return extract_trailing_int(None if child is None else child.attrib.get("href"))

    if is_nil_element(child):
        return {FieldKind.TEXT: "", FieldKind.INT: 0, FieldKind.BOOL: False}[kind]
    if kind is FieldKind.TEXT:
        return child.text
    if kind is FieldKind.INT:
        return NullInt.parse(child.text.strip())
    return NullBool.parse(child.text.strip())


def decode_items(root: ElementTree.Element, model: Type[M]) -> List[M]:
    """Decode every ``model.__xml_root__`` child of a collection element."""
    return [model._decode(child) for child in root.findall(model.__xml_root__)]


__all__ = [
    "FieldKind",
    "XmlField",
    "XmlModel",
    "UnitAmount",
    "text",
    "integer",
    "boolean",
    "nullable",
    "nested",
    "many",
    "strings",
    "href",
    "href_int",
    "unit_amount",
    "attribute",
    "decode_items",
]
