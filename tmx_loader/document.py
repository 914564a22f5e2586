"""
Document front-end: bytes -> element tree, plus attribute helpers.

TMX, TSX and TX files are plain XML, so the tree is produced by
xml.etree.ElementTree. Parsing code below this module only uses the Element
API (tag, get, find, findall, iteration, text), which keeps the front-end
replaceable: any callable ``parser(data, path)`` returning Element-like nodes
can be handed to the Loader.
"""

import xml.etree.ElementTree as ET
from typing import Optional

from .errors import MalformedDocument


def parse_document(data: bytes, path: Optional[str] = None) -> ET.Element:
    """Parse raw document bytes into the root element."""
    try:
        return ET.fromstring(data)
    except ET.ParseError as exc:
        raise MalformedDocument(f"invalid XML: {exc}", path) from exc


def expect_tag(node: ET.Element, tag: str, path: Optional[str] = None):
    if node.tag != tag:
        raise MalformedDocument(
            f"expected <{tag}> root element, found <{node.tag}>", path)


def required_attr(node: ET.Element, name: str, path: Optional[str] = None) -> str:
    value = node.get(name)
    if value is None:
        raise MalformedDocument(
            f"<{node.tag}> is missing required attribute '{name}'", path)
    return value


def int_attr(node: ET.Element, name: str, default: Optional[int] = None,
             path: Optional[str] = None) -> Optional[int]:
    """Read an integer attribute, or ``default`` when it is absent."""
    value = node.get(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise MalformedDocument(
            f"<{node.tag}> attribute '{name}' is not an integer: {value!r}",
            path) from None


def required_int_attr(node: ET.Element, name: str, path: Optional[str] = None) -> int:
    required_attr(node, name, path)
    return int_attr(node, name, path=path)


def float_attr(node: ET.Element, name: str, default: Optional[float] = None,
               path: Optional[str] = None) -> Optional[float]:
    value = node.get(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        raise MalformedDocument(
            f"<{node.tag}> attribute '{name}' is not a number: {value!r}",
            path) from None


def bool_attr(node: ET.Element, name: str, default: bool = False,
              path: Optional[str] = None) -> bool:
    # Tiled writes booleans as "0"/"1"; older files sometimes use true/false
    value = node.get(name)
    if value is None:
        return default
    if value in ('1', 'true'):
        return True
    if value in ('0', 'false'):
        return False
    raise MalformedDocument(
        f"<{node.tag}> attribute '{name}' is not a boolean: {value!r}", path)
