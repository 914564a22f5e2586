"""Attributes shared by every layer type."""

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ..document import bool_attr, float_attr, int_attr
from ..properties import Property, parse_properties


@dataclass
class Layer:
    """
    Common part of tile layers, object groups, image layers and groups.

    Rendering properties:
    - visible: Whether layer is rendered
    - opacity: Transparency (0.0 = invisible, 1.0 = opaque)
    - tintcolor: Color tint applied to all tiles

    Positioning:
    - offsetx, offsety: Pixel offset from map origin
    - parallaxx, parallaxy: Parallax scrolling factors
      (1.0 = normal, 0.5 = half speed, 0 = static background)
    """
    name: str = ""                                   # Layer name
    id: int = 0                                      # Unique layer ID
    class_: str = ""                                 # User-defined class
    visible: bool = True                             # Is layer rendered?
    opacity: float = 1.0                             # Transparency
    offsetx: float = 0                               # X pixel offset
    offsety: float = 0                               # Y pixel offset
    parallaxx: float = 1.0                           # Parallax X factor
    parallaxy: float = 1.0                           # Parallax Y factor
    tintcolor: Optional[str] = None                  # Color tint (#AARRGGBB)
    properties: Dict[str, Property] = field(default_factory=dict)

    @staticmethod
    def common_attrs(elem: ET.Element, path: Optional[str] = None) -> Dict[str, Any]:
        """Keyword arguments for the shared fields, read from ``elem``."""
        return dict(
            name=elem.get('name', ''),
            id=int_attr(elem, 'id', 0, path),
            class_=elem.get('class', ''),
            # '1' is default for visible (absent means visible)
            visible=bool_attr(elem, 'visible', True, path),
            opacity=float_attr(elem, 'opacity', 1.0, path),
            offsetx=float_attr(elem, 'offsetx', 0.0, path),
            offsety=float_attr(elem, 'offsety', 0.0, path),
            parallaxx=float_attr(elem, 'parallaxx', 1.0, path),
            parallaxy=float_attr(elem, 'parallaxy', 1.0, path),
            tintcolor=elem.get('tintcolor'),
            properties=parse_properties(elem, path),
        )
