"""Layer types and tile payload decoding"""

from .base import Layer
from .data import (
    CHUNK_HEIGHT, CHUNK_WIDTH, Chunk, FiniteTileData, InfiniteTileData,
    decode_payload, encode_payload,
)
from .tile import TileLayer
from .objects import MapObject, ObjectGroup
from .group import AnyLayer, ImageLayer, LayerGroup, parse_layers

__all__ = [
    "Layer",
    "CHUNK_WIDTH",
    "CHUNK_HEIGHT",
    "Chunk",
    "FiniteTileData",
    "InfiniteTileData",
    "decode_payload",
    "encode_payload",
    "TileLayer",
    "MapObject",
    "ObjectGroup",
    "AnyLayer",
    "ImageLayer",
    "LayerGroup",
    "parse_layers",
]
