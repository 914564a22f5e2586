"""
Tile layers

=============================================================================
TILE ACCESS
=============================================================================

A TileLayer holds raw GIDs in one of two shapes:

    FiniteTileData     width x height grid          (map infinite="0")
    InfiniteTileData   chunks keyed by their origin (map infinite="1")

Both answer get_tile_gid(x, y) and get_tile(x, y):

    gid = layer.get_tile_gid(5, 10)   # raw value, flags included, 0 = empty
    ref = layer.get_tile(5, 10)       # TileRef or None

get_tile() resolves the GID through the map's TilesetList on every call. Every
non-empty GID was already checked against the tileset ranges when the layer
was loaded, so get_tile() only raises for cells changed afterwards.
=============================================================================
"""

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Iterator, Optional, Tuple, Union

import numpy as np

from ..document import int_attr
from ..gid import GID_MASK
from ..resolver import TileRef, TilesetList
from .base import Layer
from .data import Chunk, FiniteTileData, InfiniteTileData


@dataclass
class TileLayer(Layer):
    """Tile layer - a grid (or chunk set) of tile references."""
    width: int = 0                                   # Width in tiles
    height: int = 0                                  # Height in tiles
    data: Union[FiniteTileData, InfiniteTileData, None] = None
    tilesets: TilesetList = field(default_factory=TilesetList, repr=False,
                                  compare=False)

    @classmethod
    def from_xml(cls, elem: ET.Element, tilesets: TilesetList, infinite: bool = False,
                 path: Optional[str] = None) -> 'TileLayer':
        """Parse tile layer from XML element and validate all of its GIDs."""
        layer = cls(
            width=int_attr(elem, 'width', 0, path),
            height=int_attr(elem, 'height', 0, path),
            tilesets=tilesets,
            **Layer.common_attrs(elem, path)
        )

        data_elem = elem.find('data')
        if infinite:
            if data_elem is not None:
                layer.data = InfiniteTileData.from_xml(data_elem, path)
            else:
                layer.data = InfiniteTileData(path=path)
            for chunk in layer.data:
                tilesets.check_gids(chunk.tiles, f"layer '{layer.name}'")
        else:
            if data_elem is not None:
                layer.data = FiniteTileData.from_xml(data_elem, layer.width,
                                                     layer.height, path)
            else:
                layer.data = FiniteTileData.empty(layer.width, layer.height)
            tilesets.check_gids(layer.data.tiles, f"layer '{layer.name}'")

        return layer

    @property
    def is_infinite(self) -> bool:
        return isinstance(self.data, InfiniteTileData)

    def get_tile_gid(self, x: int, y: int) -> int:
        """
        Get the raw GID of the tile at position (x, y).

        Returns:
        --------
        int : Raw GID including flip flags (0 = empty or out of bounds)
        """
        return self.data.get_gid(x, y)

    def get_tile(self, x: int, y: int) -> Optional[TileRef]:
        """Resolved tile at (x, y), or None for an empty cell."""
        return self.tilesets.resolve(self.get_tile_gid(x, y))

    def chunks(self) -> Iterator[Chunk]:
        """Chunks of an infinite layer."""
        if not self.is_infinite:
            raise TypeError(f"layer '{self.name}' is finite and has no chunks")
        return iter(self.data)

    def get_chunk(self, x: int, y: int) -> Optional[Chunk]:
        """Chunk of an infinite layer whose origin is (x, y)."""
        if not self.is_infinite:
            raise TypeError(f"layer '{self.name}' is finite and has no chunks")
        return self.data.get_chunk(x, y)

    def iter_tiles(self) -> Iterator[Tuple[int, int, TileRef]]:
        """Yield (x, y, TileRef) for every non-empty cell, in map coordinates."""
        if self.is_infinite:
            blocks = [(chunk.x, chunk.y, chunk.tiles) for chunk in self.data]
        else:
            blocks = [(0, 0, self.data.tiles)]

        for ox, oy, tiles in blocks:
            for y, x in np.argwhere(tiles & GID_MASK):
                yield ox + int(x), oy + int(y), self.tilesets.resolve(int(tiles[y, x]))
