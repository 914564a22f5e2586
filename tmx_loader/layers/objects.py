"""
Object layers and the objects placed in them

=============================================================================
OBJECT TYPES
=============================================================================

Objects are vector shapes placed on the map, used for:
- Collision shapes (rectangles, polygons)
- Spawn points (position only)
- Trigger areas
- Entity placement (tile objects)

    rectangle   x, y, width, height            (default)
    ellipse     <ellipse/> child
    point       <point/> child
    polygon     <polygon points="0,0 32,0 32,32"/>
    polyline    <polyline points="..."/>
    text        <text>Hello</text>

Tile objects carry a gid attribute and show a tile graphic at their position.

=============================================================================
TEMPLATE INSTANCES
=============================================================================

    <object id="7" template="chest.tx" x="64" y="96"/>

Only the attributes written on the instance are overrides; everything else
comes from the template (see template.resolve_object).
=============================================================================
"""

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from ..document import bool_attr, float_attr, int_attr
from ..errors import MalformedDocument
from ..properties import Property, parse_properties
from ..reader import canonical_path
from ..resolver import TileRef, TilesetList
from ..template import resolve_object
from .base import Layer

if TYPE_CHECKING:
    from ..loader import Loader


SHAPES = ('rectangle', 'ellipse', 'point', 'polygon', 'polyline', 'text')


@dataclass
class MapObject:
    """Object in an object layer (or in a tile's collision group)."""
    id: int = 0                                      # Unique object ID
    name: str = ""                                   # Object name
    type: str = ""                                   # Object type/class
    x: float = 0                                     # X position
    y: float = 0                                     # Y position
    width: float = 0                                 # Width (0 for points)
    height: float = 0                                # Height (0 for points)
    rotation: float = 0                              # Rotation in degrees
    visible: bool = True                             # Is object visible?
    gid: Optional[int] = None                        # Raw tile GID (tile objects)
    tile: Optional[TileRef] = None                   # Resolved tile (tile objects)
    shape: str = "rectangle"
    points: List[Tuple[float, float]] = field(default_factory=list)
    text: Optional[str] = None
    properties: Dict[str, Property] = field(default_factory=dict)
    template: Optional[str] = None                   # Canonical template path

    @classmethod
    def from_xml(cls, elem: ET.Element, tilesets: Optional[TilesetList] = None,
                 loader: Optional['Loader'] = None,
                 path: Optional[str] = None) -> 'MapObject':
        """
        Parse an object, pulling in its template when it references one.

        Parameters:
        -----------
        tilesets : TilesetList or None
            Tilesets of the enclosing map (or template). None for objects
            inside a tileset, where GIDs have no meaning.
        loader : Loader
            Needed only to load referenced templates.
        """
        overrides = object_overrides(elem, path)

        template = None
        template_ref = elem.get('template')
        if template_ref:
            if loader is None:
                raise MalformedDocument(
                    f"object {overrides.get('id', 0)} references template "
                    f"{template_ref!r} but no loader is available", path)
            template = loader.load_template(canonical_path(template_ref, path))

        return resolve_object(overrides, template, tilesets, path)


def parse_points(value: str, path: Optional[str] = None) -> List[Tuple[float, float]]:
    """Parse a Tiled point list: "x1,y1 x2,y2 ..."."""
    points = []
    for pair in value.split():
        coords = pair.split(',')
        if len(coords) != 2:
            raise MalformedDocument(f"invalid point {pair!r} in point list", path)
        try:
            points.append((float(coords[0]), float(coords[1])))
        except ValueError:
            raise MalformedDocument(f"invalid point {pair!r} in point list", path) from None
    return points


def object_overrides(elem: ET.Element, path: Optional[str] = None) -> Dict[str, Any]:
    """
    Fields explicitly present on an <object> element.

    Absent attributes are left out (not defaulted) so template values can
    show through.
    """
    overrides: Dict[str, Any] = {}

    if elem.get('id') is not None:
        overrides['id'] = int_attr(elem, 'id', path=path)
    for name in ('x', 'y', 'width', 'height', 'rotation'):
        if elem.get(name) is not None:
            overrides[name] = float_attr(elem, name, path=path)
    if elem.get('name') is not None:
        overrides['name'] = elem.get('name')
    # "class" replaced "type" in Tiled 1.9
    if elem.get('type') is not None:
        overrides['type'] = elem.get('type')
    elif elem.get('class') is not None:
        overrides['type'] = elem.get('class')
    if elem.get('visible') is not None:
        overrides['visible'] = bool_attr(elem, 'visible', True, path)
    if elem.get('gid') is not None:
        gid = int_attr(elem, 'gid', path=path)
        if not 0 <= gid <= 0xFFFFFFFF:
            raise MalformedDocument(f"object gid {gid} does not fit in 32 bits", path)
        overrides['gid'] = gid

    for child in elem:
        if child.tag in ('ellipse', 'point'):
            overrides['shape'] = child.tag
        elif child.tag in ('polygon', 'polyline'):
            overrides['shape'] = child.tag
            overrides['points'] = parse_points(child.get('points', ''), path)
        elif child.tag == 'text':
            overrides['shape'] = 'text'
            overrides['text'] = child.text or ''

    properties = parse_properties(elem, path)
    if properties:
        overrides['properties'] = properties

    return overrides


@dataclass
class ObjectGroup(Layer):
    """
    Object layer - contains vector objects.

    Objects are stored in a list (order may matter for some games).
    Also used for the collision shapes attached to tileset tiles.
    """
    color: Optional[str] = None                      # Display color
    draworder: str = "topdown"                       # topdown or index
    objects: List[MapObject] = field(default_factory=list)

    @classmethod
    def from_xml(cls, elem: ET.Element, tilesets: Optional[TilesetList] = None,
                 loader: Optional['Loader'] = None,
                 path: Optional[str] = None) -> 'ObjectGroup':
        """Parse object group from XML element."""
        group = cls(
            color=elem.get('color'),
            draworder=elem.get('draworder', 'topdown'),
            **Layer.common_attrs(elem, path)
        )

        for obj_elem in elem.findall('object'):
            group.objects.append(MapObject.from_xml(obj_elem, tilesets, loader, path))

        return group
