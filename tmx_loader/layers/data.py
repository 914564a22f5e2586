"""
Tile layer payload decoding

=============================================================================
DATA ENCODINGS
=============================================================================

TMX supports multiple encodings for tile data:

1. XML (deprecated):
   <data>
       <tile gid="1"/><tile gid="2"/><tile/>...
   </data>

2. CSV:
   <data encoding="csv">
       1,2,3,4,5,
       6,7,8,9,10
   </data>

3. Base64 (optionally compressed with zlib, gzip or zstd):
   <data encoding="base64" compression="zlib">
       eJxjZGBgYAJiZiBmAWJWIGYDYgAAjwAN
   </data>
   The decoded (and decompressed) bytes are little-endian uint32 values,
   four bytes per cell.

=============================================================================
FINITE vs INFINITE LAYERS
=============================================================================

Finite maps store one <data> block of exactly width * height cells, row by
row. Infinite maps split the data into <chunk> elements, each a small dense
block positioned in tile coordinates:

    <data encoding="csv">
        <chunk x="-16" y="0" width="16" height="16">...</chunk>
        <chunk x="0"   y="0" width="16" height="16">...</chunk>
    </data>

Chunks inside one layer must all have the same size, and their origins must
be multiples of that size (that is how Tiled lays them out). A chunk whose
origin was already used in the layer is rejected: there is no "first wins"
or "last wins" merging.
=============================================================================
"""

import base64
import binascii
import gzip
import re
import xml.etree.ElementTree as ET
import zlib
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, Optional, Sequence, Tuple

import numpy as np
import zstandard

from ..document import int_attr, required_int_attr
from ..errors import DecompressionError, InvalidTileData
from ..gid import MAX_RAW_GID


ENCODINGS = (None, 'csv', 'base64')
COMPRESSIONS = (None, 'zlib', 'gzip', 'zstd')

# Default chunk size written by Tiled for infinite maps
CHUNK_WIDTH = 16
CHUNK_HEIGHT = 16

_CSV_SEPARATORS = re.compile(r'[\s,]+')


# =============================================================================
# RAW PAYLOAD DECODING
# =============================================================================

def decode_csv(text: Optional[str], path: Optional[str] = None) -> np.ndarray:
    """Decode comma/whitespace separated decimal GIDs."""
    values = []
    for token in _CSV_SEPARATORS.split(text or ''):
        if not token:
            continue
        # int() would also take signs, underscores and non-ASCII digits
        if not (token.isascii() and token.isdigit()):
            raise InvalidTileData(f"invalid csv tile value {token!r}", path)
        value = int(token)
        if not 0 <= value <= MAX_RAW_GID:
            raise InvalidTileData(f"csv tile value {value} does not fit in 32 bits", path)
        values.append(value)
    return np.array(values, dtype=np.uint32)


def decompress(data: bytes, compression: Optional[str], expected_size: int = 0,
               path: Optional[str] = None) -> bytes:
    """
    Run ``data`` through the named codec.

    Output is bounded by ``expected_size``: a stream that inflates past the
    layer's byte size is rejected without decompressing the rest.
    """
    if compression is None:
        return data
    try:
        if compression in ('zlib', 'gzip'):
            # wbits 16+ selects the gzip container
            wbits = zlib.MAX_WBITS | (16 if compression == 'gzip' else 0)
            stream = zlib.decompressobj(wbits)
            raw = stream.decompress(data, expected_size + 4)
            if stream.unconsumed_tail:
                raise InvalidTileData(
                    f"{compression} payload inflates past {expected_size} bytes", path)
            if not stream.eof:
                raise DecompressionError(f"truncated {compression} payload", path,
                                         compression=compression)
            return raw
        if compression == 'zstd':
            declared = zstandard.frame_content_size(data)
            if declared > expected_size:
                raise InvalidTileData(
                    f"zstd frame declares {declared} bytes, layer holds {expected_size}", path)
            return zstandard.ZstdDecompressor().decompress(
                data, max_output_size=expected_size)
    except (zlib.error, zstandard.ZstdError) as exc:
        raise DecompressionError(f"corrupt {compression} payload: {exc}", path,
                                 compression=compression) from exc
    raise InvalidTileData(f"unsupported compression {compression!r}", path)


def decode_base64(text: Optional[str], compression: Optional[str] = None,
                  expected_count: int = 0, path: Optional[str] = None) -> np.ndarray:
    """Decode base64 (and optionally compressed) little-endian uint32 GIDs."""
    packed = ''.join((text or '').split())
    try:
        raw = base64.b64decode(packed, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidTileData(f"invalid base64 payload: {exc}", path) from exc

    raw = decompress(raw, compression, expected_count * 4, path)
    if len(raw) % 4:
        raise InvalidTileData(
            f"decoded payload of {len(raw)} bytes is not a multiple of 4", path)
    return np.frombuffer(raw, dtype='<u4').astype(np.uint32)


def decode_xml_tiles(node: ET.Element, path: Optional[str] = None) -> np.ndarray:
    """Decode the deprecated <tile gid="..."/> child list."""
    values = []
    for tile in node.findall('tile'):
        value = int_attr(tile, 'gid', 0, path)
        if not 0 <= value <= MAX_RAW_GID:
            raise InvalidTileData(f"tile gid {value} does not fit in 32 bits", path)
        values.append(value)
    return np.array(values, dtype=np.uint32)


def decode_payload(node: ET.Element, encoding: Optional[str],
                   compression: Optional[str], expected_count: int,
                   path: Optional[str] = None) -> np.ndarray:
    """
    Decode the cells stored in a <data> or <chunk> element.

    Parameters:
    -----------
    node : Element
        Element whose text (or <tile> children) hold the cells
    encoding, compression : str or None
        As declared on the enclosing <data> element
    expected_count : int
        Number of cells the payload must contain

    Returns:
    --------
    np.ndarray : 1-D uint32 array of raw GIDs, exactly ``expected_count`` long
    """
    if encoding not in ENCODINGS:
        raise InvalidTileData(f"unsupported encoding {encoding!r}", path)
    if compression not in COMPRESSIONS:
        raise InvalidTileData(f"unsupported compression {compression!r}", path)
    if compression is not None and encoding != 'base64':
        raise InvalidTileData(
            f"compression {compression!r} requires base64 encoding", path)

    if encoding == 'csv':
        gids = decode_csv(node.text, path)
    elif encoding == 'base64':
        gids = decode_base64(node.text, compression, expected_count, path)
    else:
        gids = decode_xml_tiles(node, path)

    if gids.size != expected_count:
        raise InvalidTileData("wrong number of tiles in layer data", path,
                              expected=expected_count, actual=int(gids.size))
    return gids


def encode_payload(gids: Sequence[int], encoding: str = 'csv',
                   compression: Optional[str] = None) -> str:
    """Encode raw GIDs as <data> text (csv or base64, optionally compressed)."""
    array = np.asarray(gids, dtype=np.uint32).ravel()
    if encoding == 'csv':
        return ','.join(str(int(v)) for v in array)
    if encoding != 'base64':
        raise ValueError(f"unsupported encoding {encoding!r}")

    raw = array.astype('<u4').tobytes()
    if compression == 'zlib':
        raw = zlib.compress(raw)
    elif compression == 'gzip':
        raw = gzip.compress(raw)
    elif compression == 'zstd':
        raw = zstandard.ZstdCompressor().compress(raw)
    elif compression is not None:
        raise ValueError(f"unsupported compression {compression!r}")
    return base64.b64encode(raw).decode('ascii')


def _check_size(width: int, height: int, what: str, path: Optional[str]):
    # Widths feed index arithmetic (y * width + x); zero is never valid
    if width <= 0 or height <= 0:
        raise InvalidTileData(f"{what} size must be positive, got {width}x{height}", path)


# =============================================================================
# FINITE LAYERS
# =============================================================================

@dataclass
class FiniteTileData:
    """Dense width x height grid of raw GIDs, indexed tiles[y, x]."""
    width: int
    height: int
    tiles: np.ndarray

    def __post_init__(self):
        _check_size(self.width, self.height, "layer", None)
        self.tiles = np.asarray(self.tiles, dtype=np.uint32).reshape(self.height, self.width)

    @classmethod
    def empty(cls, width: int, height: int) -> 'FiniteTileData':
        _check_size(width, height, "layer", None)
        return cls(width, height, np.zeros((height, width), dtype=np.uint32))

    @classmethod
    def from_xml(cls, data_elem: ET.Element, width: int, height: int,
                 path: Optional[str] = None) -> 'FiniteTileData':
        _check_size(width, height, "layer", path)
        gids = decode_payload(data_elem, data_elem.get('encoding'),
                              data_elem.get('compression'), width * height, path)
        return cls(width, height, gids)

    def get_gid(self, x: int, y: int) -> int:
        """Raw GID at (x, y); 0 when out of bounds."""
        if 0 <= x < self.width and 0 <= y < self.height:
            return int(self.tiles[y, x])
        return 0


# =============================================================================
# INFINITE LAYERS
# =============================================================================

@dataclass
class Chunk:
    """Fixed-size block of an infinite layer; (x, y) is its top-left tile."""
    x: int
    y: int
    width: int
    height: int
    tiles: np.ndarray

    def __post_init__(self):
        _check_size(self.width, self.height, "chunk", None)
        self.tiles = np.asarray(self.tiles, dtype=np.uint32).reshape(self.height, self.width)

    @property
    def origin(self) -> Tuple[int, int]:
        return self.x, self.y

    @classmethod
    def from_xml(cls, chunk_elem: ET.Element, encoding: Optional[str],
                 compression: Optional[str], path: Optional[str] = None) -> 'Chunk':
        x = required_int_attr(chunk_elem, 'x', path)
        y = required_int_attr(chunk_elem, 'y', path)
        width = int_attr(chunk_elem, 'width', CHUNK_WIDTH, path)
        height = int_attr(chunk_elem, 'height', CHUNK_HEIGHT, path)
        _check_size(width, height, "chunk", path)
        gids = decode_payload(chunk_elem, encoding, compression, width * height, path)
        return cls(x, y, width, height, gids)

    def get_gid(self, x: int, y: int) -> int:
        """Raw GID at (x, y) relative to the chunk origin; 0 when outside."""
        if 0 <= x < self.width and 0 <= y < self.height:
            return int(self.tiles[y, x])
        return 0


class InfiniteTileData:
    """Sparse set of equally sized chunks keyed by their origin."""

    def __init__(self, chunks: Iterable[Chunk] = (), path: Optional[str] = None):
        self.path = path
        self.chunk_width: Optional[int] = None
        self.chunk_height: Optional[int] = None
        self._chunks: Dict[Tuple[int, int], Chunk] = {}
        for chunk in chunks:
            self.add_chunk(chunk)

    @classmethod
    def from_xml(cls, data_elem: ET.Element, path: Optional[str] = None) -> 'InfiniteTileData':
        encoding = data_elem.get('encoding')
        compression = data_elem.get('compression')
        data = cls(path=path)
        for chunk_elem in data_elem.findall('chunk'):
            data.add_chunk(Chunk.from_xml(chunk_elem, encoding, compression, path))
        return data

    def add_chunk(self, chunk: Chunk):
        """Add a chunk; duplicate origins and misaligned chunks are rejected."""
        if self.chunk_width is None:
            self.chunk_width, self.chunk_height = chunk.width, chunk.height
        elif (chunk.width, chunk.height) != (self.chunk_width, self.chunk_height):
            raise InvalidTileData(
                f"chunk at {chunk.origin} is {chunk.width}x{chunk.height}, "
                f"layer chunks are {self.chunk_width}x{self.chunk_height}", self.path)

        if chunk.x % self.chunk_width or chunk.y % self.chunk_height:
            raise InvalidTileData(
                f"chunk origin {chunk.origin} is not aligned to the "
                f"{self.chunk_width}x{self.chunk_height} chunk grid", self.path)
        if chunk.origin in self._chunks:
            raise InvalidTileData(f"duplicate chunk origin {chunk.origin}", self.path)
        self._chunks[chunk.origin] = chunk

    def __len__(self) -> int:
        return len(self._chunks)

    def __iter__(self) -> Iterator[Chunk]:
        return iter(self._chunks.values())

    @property
    def origins(self):
        return self._chunks.keys()

    def chunk_origin(self, x: int, y: int) -> Tuple[int, int]:
        """Origin of the chunk that would contain tile (x, y)."""
        if self.chunk_width is None:
            width, height = CHUNK_WIDTH, CHUNK_HEIGHT
        else:
            width, height = self.chunk_width, self.chunk_height
        return (x // width) * width, (y // height) * height

    def get_chunk(self, x: int, y: int) -> Optional[Chunk]:
        """Chunk whose origin is exactly (x, y)."""
        return self._chunks.get((x, y))

    def get_gid(self, x: int, y: int) -> int:
        """Raw GID at tile (x, y); 0 where no chunk exists."""
        ox, oy = self.chunk_origin(x, y)
        chunk = self._chunks.get((ox, oy))
        if chunk is None:
            return 0
        return chunk.get_gid(x - ox, y - oy)

    def bounds(self) -> Optional[Tuple[int, int, int, int]]:
        """(min_x, min_y, max_x, max_y) in tiles, max exclusive. None when empty."""
        if not self._chunks:
            return None
        xs = [c.x for c in self._chunks.values()]
        ys = [c.y for c in self._chunks.values()]
        return (min(xs), min(ys),
                max(xs) + self.chunk_width, max(ys) + self.chunk_height)
