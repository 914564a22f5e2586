"""
Tilesets (embedded <tileset> elements and external .tsx files)

=============================================================================
TILESET TYPES
=============================================================================

1. SPRITESHEET TILESET (most common):
   One large image divided into a grid of tiles.

   +---+---+---+---+
   | 0 | 1 | 2 | 3 |
   +---+---+---+---+
   | 4 | 5 | 6 | 7 |
   +---+---+---+---+

   Attributes used: image, tilewidth, tileheight, columns, spacing, margin

2. IMAGE COLLECTION TILESET:
   Each tile is a separate image file, listed as <tile><image/></tile>.
   Tile ids may have gaps when tiles were removed in the editor.

=============================================================================
SHARING
=============================================================================

A Tileset carries no firstgid: the same parsed .tsx is shared by every map
(and template) that uses it, each with its own first_gid stored in a
TilesetEntry. Tilesets are frozen once parsed and compare by identity.

=============================================================================
SPACING AND MARGIN
=============================================================================

margin = pixels around the EDGE of the entire image
spacing = pixels BETWEEN tiles

    +--+===+===+===+--+
    |  | 0 | 1 | 2 |  |  <- margin
    +--+===+===+===+--+
    |  | 3 | 4 | 5 |  |
    +--+===+===+===+--+
         ^
         spacing between tiles
=============================================================================
"""

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from .document import float_attr, int_attr, required_int_attr
from .errors import InvalidTileId, MalformedDocument
from .image import Image
from .layers.objects import ObjectGroup
from .properties import Property, parse_properties
from .reader import canonical_path
from .resolver import TilesetEntry, TilesetList

if TYPE_CHECKING:
    from .loader import Loader


log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Frame:
    """One animation frame: show local tile ``tileid`` for ``duration`` ms."""
    tileid: int
    duration: int


@dataclass
class Tile:
    """
    Per-tile data within a tileset.

    Only tiles with metadata (properties, animation, collision shapes or, for
    image collections, their own image) appear in the tileset document. The
    'id' is LOCAL to the tileset (0-based index).
    """
    id: int                                          # Local tile ID (within tileset)
    type: str = ""                                   # Tile type/class
    probability: float = 1.0                         # Terrain/wang fill weight
    properties: Dict[str, Property] = field(default_factory=dict)
    image: Optional[Image] = None                    # Image (for collection tilesets)
    animation: List[Frame] = field(default_factory=list)
    objectgroup: Optional[ObjectGroup] = None        # Collision shapes

    @classmethod
    def from_xml(cls, elem: ET.Element, loader: Optional['Loader'] = None,
                 path: Optional[str] = None) -> 'Tile':
        """Parse tile from XML element."""
        tile = cls(
            id=required_int_attr(elem, 'id', path),
            type=elem.get('type', elem.get('class', '')),
            probability=float_attr(elem, 'probability', 1.0, path),
            properties=parse_properties(elem, path),
        )

        img_elem = elem.find('image')
        if img_elem is not None:
            tile.image = Image.from_xml(img_elem, path)

        anim_elem = elem.find('animation')
        if anim_elem is not None:
            for frame_elem in anim_elem.findall('frame'):
                tile.animation.append(Frame(
                    tileid=required_int_attr(frame_elem, 'tileid', path),
                    duration=required_int_attr(frame_elem, 'duration', path),
                ))

        # Objects here have no map tileset list to resolve GIDs against
        group_elem = elem.find('objectgroup')
        if group_elem is not None:
            tile.objectgroup = ObjectGroup.from_xml(group_elem, None, loader, path)

        return tile


# =============================================================================
# WANG SETS
# =============================================================================

@dataclass(frozen=True)
class WangColor:
    name: str
    color: str
    tile: Optional[int]
    probability: float = 1.0
    properties: Dict[str, Property] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class WangTile:
    """
    Wang ID of one tile: eight color indexes (0 = unset) in the order top,
    top-right, right, bottom-right, bottom, bottom-left, left, top-left.
    """
    tileid: int
    wangid: Tuple[int, ...]

    @classmethod
    def from_xml(cls, elem: ET.Element, path: Optional[str] = None) -> 'WangTile':
        raw = elem.get('wangid', '')
        try:
            wangid = tuple(int(v) for v in raw.strip('[]').split(','))
        except ValueError:
            wangid = ()
        if len(wangid) != 8:
            raise MalformedDocument(f"invalid wangid {raw!r}", path)
        return cls(tileid=required_int_attr(elem, 'tileid', path), wangid=wangid)


@dataclass
class WangSet:
    """A terrain brush: colors plus the wang id of each participating tile."""
    name: str
    type: str = "mixed"                              # corner, edge or mixed
    tile: Optional[int] = None                       # Representative tile
    colors: List[WangColor] = field(default_factory=list)
    wangtiles: Dict[int, WangTile] = field(default_factory=dict)
    properties: Dict[str, Property] = field(default_factory=dict)

    @classmethod
    def from_xml(cls, elem: ET.Element, path: Optional[str] = None) -> 'WangSet':
        tile = int_attr(elem, 'tile', -1, path)
        wangset = cls(
            name=elem.get('name', ''),
            type=elem.get('type', 'mixed'),
            tile=tile if tile >= 0 else None,
            properties=parse_properties(elem, path),
        )
        for color_elem in elem.findall('wangcolor'):
            color_tile = int_attr(color_elem, 'tile', -1, path)
            wangset.colors.append(WangColor(
                name=color_elem.get('name', ''),
                color=color_elem.get('color', ''),
                tile=color_tile if color_tile >= 0 else None,
                probability=float_attr(color_elem, 'probability', 1.0, path),
                properties=parse_properties(color_elem, path),
            ))
        for wangtile_elem in elem.findall('wangtile'):
            wangtile = WangTile.from_xml(wangtile_elem, path)
            wangset.wangtiles[wangtile.tileid] = wangtile
        return wangset


# =============================================================================
# TILESET CLASS
# =============================================================================

@dataclass(frozen=True, eq=False)
class Tileset:
    """Tileset collection - a set of tile graphics."""
    name: str                                        # Tileset name
    tilewidth: int                                   # Tile width in pixels
    tileheight: int                                  # Tile height in pixels
    tilecount: int = 0                               # Total number of tiles
    columns: int = 0                                 # Tiles per row (for spritesheet)
    spacing: int = 0                                 # Pixels between tiles
    margin: int = 0                                  # Pixels around edge
    image: Optional[Image] = None                    # Spritesheet image
    tiles: Dict[int, Tile] = field(default_factory=dict)  # Tile metadata
    properties: Dict[str, Property] = field(default_factory=dict)
    wangsets: List[WangSet] = field(default_factory=list)
    tileoffset: Tuple[int, int] = (0, 0)             # Drawing offset in pixels
    objectalignment: str = "unspecified"
    class_: str = ""
    source: Optional[str] = None                     # Canonical TSX path, None if inline

    @classmethod
    def from_xml(cls, elem: ET.Element, source: Optional[str] = None,
                 loader: Optional['Loader'] = None,
                 path: Optional[str] = None) -> 'Tileset':
        """
        Parse tileset from XML element.

        Parameters:
        -----------
        elem : ET.Element
            The <tileset> element (root of a TSX file, or embedded in a map)
        source : str, optional
            Canonical path of the TSX file; None for embedded tilesets
        loader : Loader, optional
            Used to load templates referenced by tile collision objects
        path : str, optional
            Document the element lives in, for resolving relative references
        """
        tilewidth = required_int_attr(elem, 'tilewidth', path)
        tileheight = required_int_attr(elem, 'tileheight', path)
        if tilewidth <= 0 or tileheight <= 0:
            raise MalformedDocument(
                f"tileset tile size must be positive, got {tilewidth}x{tileheight}", path)
        spacing = int_attr(elem, 'spacing', 0, path)
        margin = int_attr(elem, 'margin', 0, path)

        img_elem = elem.find('image')
        image = Image.from_xml(img_elem, path) if img_elem is not None else None

        # Only tiles with metadata (properties, animations, images) are listed
        tiles = {}
        for tile_elem in elem.findall('tile'):
            tile = Tile.from_xml(tile_elem, loader, path)
            tiles[tile.id] = tile

        wangsets = []
        wangsets_elem = elem.find('wangsets')
        if wangsets_elem is not None:
            wangsets = [WangSet.from_xml(w, path) for w in wangsets_elem.findall('wangset')]

        offset_elem = elem.find('tileoffset')
        tileoffset = (0, 0)
        if offset_elem is not None:
            tileoffset = (int_attr(offset_elem, 'x', 0, path),
                          int_attr(offset_elem, 'y', 0, path))

        columns = int_attr(elem, 'columns', None, path)
        if columns is None:
            columns = _grid_count(image.width if image else None, tilewidth, spacing, margin)
        tilecount = int_attr(elem, 'tilecount', None, path)
        if tilecount is None:
            rows = _grid_count(image.height if image else None, tileheight, spacing, margin)
            tilecount = columns * rows if image else len(tiles)

        # A spritesheet has exactly tilecount tiles; only image collections have id gaps
        if image is not None:
            for tile_id in tiles:
                if not 0 <= tile_id < tilecount:
                    raise MalformedDocument(
                        f"tile id {tile_id} outside spritesheet of {tilecount} tiles", path)
        log.debug("tileset %r: %d tiles, %d columns, %d tile overrides",
                  elem.get('name', ''), tilecount, columns, len(tiles))

        return cls(
            name=elem.get('name', ''),
            tilewidth=tilewidth,
            tileheight=tileheight,
            tilecount=tilecount,
            columns=columns,
            spacing=spacing,
            margin=margin,
            image=image,
            tiles=tiles,
            properties=parse_properties(elem, path),
            wangsets=wangsets,
            tileoffset=tileoffset,
            objectalignment=elem.get('objectalignment', 'unspecified'),
            class_=elem.get('class', ''),
            source=source,
        )

    @property
    def is_inline(self) -> bool:
        return self.source is None

    @property
    def gid_span(self) -> int:
        """
        Number of GIDs the tileset occupies in a map.

        Image collections may leave gaps in their tile ids, so their range
        reaches the highest id; a spritesheet spans exactly tilecount.
        """
        if self.image is not None:
            return self.tilecount
        highest = max(self.tiles) + 1 if self.tiles else 0
        return max(self.tilecount, highest)

    def get_tile(self, tile_id: int) -> Optional[Tile]:
        return self.tiles.get(tile_id)

    def tile_rect(self, tile_id: int) -> Tuple[int, int, int, int]:
        """
        Source rectangle (x, y, width, height) of a tile in the spritesheet.

        Column/row come from tile_id // columns and tile_id % columns, so a
        tileset without columns (image collection, broken file) is rejected
        before dividing.
        """
        if not 0 <= tile_id < self.gid_span:
            raise InvalidTileId(f"tile id {tile_id} outside tileset '{self.name}'",
                                path=self.source)
        if self.columns <= 0:
            raise MalformedDocument(
                f"tileset '{self.name}' has no columns; tiles have no sheet position",
                self.source)
        row, column = divmod(tile_id, self.columns)
        x = self.margin + column * (self.tilewidth + self.spacing)
        y = self.margin + row * (self.tileheight + self.spacing)
        return x, y, self.tilewidth, self.tileheight


def _grid_count(image_size: Optional[int], tile_size: int, spacing: int, margin: int) -> int:
    """Tiles that fit along one image axis; 0 without an image size."""
    if not image_size:
        return 0
    return max(0, (image_size - 2 * margin + spacing) // (tile_size + spacing))


def parse_tileset_refs(parent: ET.Element, loader: Optional['Loader'] = None,
                       path: Optional[str] = None) -> TilesetList:
    """
    Collect the <tileset> children of a map or template into a TilesetList.

    External tilesets (``source`` attribute) go through the loader and its
    cache, resolved relative to ``path``; embedded ones are parsed in place.
    """
    entries = []
    for tileset_elem in parent.findall('tileset'):
        firstgid = required_int_attr(tileset_elem, 'firstgid', path)
        reference = tileset_elem.get('source')
        if reference:
            if loader is None:
                raise MalformedDocument(
                    f"external tileset {reference!r} needs a loader", path)
            tileset = loader.load_tileset(canonical_path(reference, path))
        else:
            tileset = Tileset.from_xml(tileset_elem, None, loader, path)
        entries.append(TilesetEntry(firstgid, tileset))
    return TilesetList(entries, path)
