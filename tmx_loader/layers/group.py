"""Image layers, layer groups, and the layer-list parser shared with TiledMap."""

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional, Union

from ..document import bool_attr
from ..image import Image
from ..resolver import TilesetList
from .base import Layer
from .objects import ObjectGroup
from .tile import TileLayer

if TYPE_CHECKING:
    from ..loader import Loader


@dataclass
class ImageLayer(Layer):
    """Layer showing a single image, optionally repeated along each axis."""
    image: Optional[Image] = None
    repeatx: bool = False
    repeaty: bool = False

    @classmethod
    def from_xml(cls, elem: ET.Element, path: Optional[str] = None) -> 'ImageLayer':
        img_elem = elem.find('image')
        return cls(
            image=Image.from_xml(img_elem, path) if img_elem is not None else None,
            repeatx=bool_attr(elem, 'repeatx', False, path),
            repeaty=bool_attr(elem, 'repeaty', False, path),
            **Layer.common_attrs(elem, path)
        )


@dataclass
class LayerGroup(Layer):
    """
    Group of layers - a folder containing other layers.

    Layer groups help organize complex maps:

    Layers:
    ├── Background (group)
    │   ├── Sky
    │   └── Mountains
    ├── Gameplay (group)
    │   ├── Ground
    │   └── Objects
    └── Foreground

    Groups can be nested (groups within groups).
    """
    # Recursive type: can contain any layer type, including more LayerGroups
    layers: List['AnyLayer'] = field(default_factory=list)

    @classmethod
    def from_xml(cls, elem: ET.Element, tilesets: TilesetList, infinite: bool = False,
                 loader: Optional['Loader'] = None,
                 path: Optional[str] = None) -> 'LayerGroup':
        group = cls(**Layer.common_attrs(elem, path))
        group.layers = parse_layers(elem, tilesets, infinite, loader, path)
        return group


AnyLayer = Union[TileLayer, ObjectGroup, ImageLayer, LayerGroup]


def parse_layers(parent: ET.Element, tilesets: TilesetList, infinite: bool = False,
                 loader: Optional['Loader'] = None,
                 path: Optional[str] = None) -> List[AnyLayer]:
    """Parse the layer children of <map> or <group>, in document order."""
    layers: List[AnyLayer] = []
    for elem in parent:
        if elem.tag == 'layer':
            layers.append(TileLayer.from_xml(elem, tilesets, infinite, path))
        elif elem.tag == 'objectgroup':
            layers.append(ObjectGroup.from_xml(elem, tilesets, loader, path))
        elif elem.tag == 'imagelayer':
            layers.append(ImageLayer.from_xml(elem, path))
        elif elem.tag == 'group':
            layers.append(LayerGroup.from_xml(elem, tilesets, infinite, loader, path))
        # Note: tileset and properties are handled by the caller
    return layers
