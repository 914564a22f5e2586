"""
TMX Loader - reads Tiled maps, tilesets and object templates

Requisites:
    pip install numpy zstandard
"""

from .cache import ResourceCache, ResourceState
from .document import parse_document
from .errors import (
    CyclicReference, DecompressionError, InvalidTileData, InvalidTileId,
    MalformedDocument, ResourceIOError, TiledError,
)
from .gid import (
    FLIPPED_DIAGONALLY_FLAG, FLIPPED_HORIZONTALLY_FLAG, FLIPPED_VERTICALLY_FLAG,
    ROTATED_HEXAGONAL_120_FLAG, GID_MASK, TileFlags, decode_gid, encode_gid,
)
from .image import Image
from .layers import (
    Chunk, FiniteTileData, ImageLayer, InfiniteTileData, Layer, LayerGroup,
    MapObject, ObjectGroup, TileLayer,
)
from .loader import Loader, load_map, load_tileset
from .map import TiledMap
from .properties import Property
from .reader import FilesystemReader, MemoryReader, canonical_path
from .resolver import TileRef, TilesetEntry, TilesetList, resolve_gid
from .template import Template
from .tileset import Frame, Tile, Tileset, WangColor, WangSet, WangTile

__version__ = "1.0.0"
__all__ = [
    "Loader",
    "load_map",
    "load_tileset",
    "ResourceCache",
    "ResourceState",
    "FilesystemReader",
    "MemoryReader",
    "canonical_path",
    "parse_document",
    "TiledError",
    "MalformedDocument",
    "InvalidTileData",
    "DecompressionError",
    "InvalidTileId",
    "CyclicReference",
    "ResourceIOError",
    "FLIPPED_HORIZONTALLY_FLAG",
    "FLIPPED_VERTICALLY_FLAG",
    "FLIPPED_DIAGONALLY_FLAG",
    "ROTATED_HEXAGONAL_120_FLAG",
    "GID_MASK",
    "TileFlags",
    "decode_gid",
    "encode_gid",
    "TileRef",
    "TilesetEntry",
    "TilesetList",
    "resolve_gid",
    "TiledMap",
    "Tileset",
    "Tile",
    "Frame",
    "WangSet",
    "WangColor",
    "WangTile",
    "Image",
    "Property",
    "Template",
    "Layer",
    "TileLayer",
    "FiniteTileData",
    "InfiniteTileData",
    "Chunk",
    "ObjectGroup",
    "MapObject",
    "ImageLayer",
    "LayerGroup",
]
