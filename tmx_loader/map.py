"""
TiledMap - the root object for TMX files

=============================================================================
MAP ORIENTATIONS
=============================================================================

ORTHOGONAL (most common):
    Standard square grid, tiles aligned in rows and columns.

ISOMETRIC:
    Diamond-shaped tiles for pseudo-3D effect.

STAGGERED / HEXAGONAL:
    Offset rows/columns; staggeraxis, staggerindex and hexsidelength
    describe the layout.

=============================================================================
USAGE
=============================================================================

Loading:
    loader = Loader()
    level = loader.load_map("level1.tmx")
    print(f"Map size: {level.width}x{level.height}")

Accessing layers:
    ground = level.get_layer_by_name("Ground")
    ref = ground.get_tile(5, 10)        # TileRef or None
    ref.tileset.name, ref.id, ref.flip_h

Resolving a GID directly:
    ref = level.resolve_gid(0x8000000B)
=============================================================================
"""

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, Iterator, List, Optional

from .document import bool_attr, expect_tag, int_attr
from .layers import AnyLayer, LayerGroup, MapObject, ObjectGroup, TileLayer, parse_layers
from .properties import Property, parse_properties
from .resolver import TileRef, TilesetList
from .tileset import Tileset, parse_tileset_refs

if TYPE_CHECKING:
    from .loader import Loader


@dataclass
class TiledMap:
    """Complete Tiled map: metadata, tilesets and layers."""
    version: str = "1.10"                            # TMX format version
    tiledversion: str = ""                           # Tiled editor version
    orientation: str = "orthogonal"                  # Map orientation
    renderorder: str = "right-down"                  # Render order
    width: int = 0                                   # Map width in tiles
    height: int = 0                                  # Map height in tiles
    tilewidth: int = 0                               # Tile width in pixels
    tileheight: int = 0                              # Tile height in pixels
    infinite: bool = False                           # Is map infinite?
    backgroundcolor: Optional[str] = None
    class_: str = ""
    hexsidelength: Optional[int] = None
    staggeraxis: Optional[str] = None
    staggerindex: Optional[str] = None
    properties: Dict[str, Property] = field(default_factory=dict)
    tilesets: TilesetList = field(default_factory=TilesetList)
    layers: List[AnyLayer] = field(default_factory=list)
    source: Optional[str] = None                     # Canonical TMX path

    @classmethod
    def from_xml(cls, root: ET.Element, path: Optional[str] = None,
                 loader: Optional['Loader'] = None) -> 'TiledMap':
        """
        Build a map from a parsed <map> element.

        External tilesets and templates are fetched through ``loader`` (and so
        through its resource cache), tilesets first, in document order.
        """
        expect_tag(root, 'map', path)

        map_obj = cls(
            version=root.get('version', '1.0'),
            tiledversion=root.get('tiledversion', ''),
            orientation=root.get('orientation', 'orthogonal'),
            renderorder=root.get('renderorder', 'right-down'),
            width=int_attr(root, 'width', 0, path),
            height=int_attr(root, 'height', 0, path),
            tilewidth=int_attr(root, 'tilewidth', 0, path),
            tileheight=int_attr(root, 'tileheight', 0, path),
            infinite=bool_attr(root, 'infinite', False, path),
            backgroundcolor=root.get('backgroundcolor'),
            class_=root.get('class', ''),
            hexsidelength=int_attr(root, 'hexsidelength', None, path),
            staggeraxis=root.get('staggeraxis'),
            staggerindex=root.get('staggerindex'),
            properties=parse_properties(root, path),
            source=path,
        )

        # -----------------------------------------------------------------
        # TILESETS: embedded, or external TSX through the loader cache
        # -----------------------------------------------------------------
        map_obj.tilesets = parse_tileset_refs(root, loader, path)

        map_obj.layers = parse_layers(root, map_obj.tilesets, map_obj.infinite,
                                      loader, path)
        return map_obj

    def get_tileset_for_gid(self, gid: int) -> Optional[Tileset]:
        """
        Find which tileset contains a given GID (flags cleared).

        A GID belongs to the tileset with the largest firstgid <= gid, as
        long as it is inside that tileset's range.
        """
        index = self.tilesets.index_for_gid(gid)
        return self.tilesets[index].tileset if index is not None else None

    def resolve_gid(self, raw: int) -> Optional[TileRef]:
        """Resolve a raw GID (flags included) against this map's tilesets."""
        return self.tilesets.resolve(raw)

    def get_layer_by_name(self, name: str) -> Optional[AnyLayer]:
        """Find a layer by name (searches recursively through groups)."""
        def search_layers(layers):
            for layer in layers:
                if layer.name == name:
                    return layer
                if isinstance(layer, LayerGroup):
                    result = search_layers(layer.layers)
                    if result:
                        return result
            return None

        return search_layers(self.layers)

    def get_all_layers_flat(self) -> List[AnyLayer]:
        """All non-group layers, expanding groups recursively, in draw order."""
        result = []

        def flatten(layers):
            for layer in layers:
                if isinstance(layer, LayerGroup):
                    flatten(layer.layers)
                else:
                    result.append(layer)

        flatten(self.layers)
        return result

    def tile_layers(self) -> List[TileLayer]:
        return [l for l in self.get_all_layers_flat() if isinstance(l, TileLayer)]

    def objects(self) -> Iterator[MapObject]:
        """Every object of every object group."""
        for layer in self.get_all_layers_flat():
            if isinstance(layer, ObjectGroup):
                yield from layer.objects
