"""Custom properties attached to maps, tilesets, tiles, layers and objects."""

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .errors import MalformedDocument


@dataclass
class Property:
    """
    Custom property attached to any TMX element.

    Tiled allows adding custom properties to maps, layers, tiles, objects, etc.
    Properties are key-value pairs with typed values.

    ==========================================================================
    SUPPORTED TYPES
    ==========================================================================

    - string: Text value (default)
    - int: Integer number
    - float: Decimal number
    - bool: True/False
    - color: Color in #AARRGGBB format (kept as string)
    - file: File path reference (kept as written)
    - object: Reference to another object by ID (int, 0 = none)
    - class: Nested properties (dict of Property), value is a dict

    ==========================================================================
    """
    name: str                    # Property name (key)
    type: str = "string"         # Value type
    value: Any = None            # The actual value
    propertytype: str = ""       # Custom type name for class/enum properties

    @classmethod
    def from_xml(cls, elem: ET.Element, path: Optional[str] = None) -> 'Property':
        """
        Parse property from XML element.

        XML format:
            <property name="solid" type="bool" value="true"/>
            <property name="health" type="int" value="100"/>
            <property name="text">multi-line value</property>
        """
        name = elem.get('name')
        if name is None:
            raise MalformedDocument("<property> without a name", path)
        prop_type = elem.get('type', 'string')

        # Multi-line strings are stored as element text instead of an attribute
        value = elem.get('value')
        if value is None:
            value = elem.text or ''

        if prop_type == 'class':
            return cls(name=name, type=prop_type,
                       value=parse_properties(elem, path),
                       propertytype=elem.get('propertytype', ''))

        try:
            if prop_type in ('int', 'object'):
                value = int(value) if value else 0
            elif prop_type == 'float':
                value = float(value) if value else 0.0
            elif prop_type == 'bool':
                value = value.lower() == 'true'
        except ValueError:
            raise MalformedDocument(
                f"property '{name}' of type {prop_type} has invalid value {value!r}",
                path) from None

        return cls(name=name, type=prop_type, value=value,
                   propertytype=elem.get('propertytype', ''))


def parse_properties(elem: ET.Element, path: Optional[str] = None) -> Dict[str, Property]:
    """Collect the <properties> child of ``elem`` into a name -> Property dict."""
    properties = {}
    props_elem = elem.find('properties')
    if props_elem is not None:
        for prop_elem in props_elem.findall('property'):
            prop = Property.from_xml(prop_elem, path)
            properties[prop.name] = prop
    return properties
