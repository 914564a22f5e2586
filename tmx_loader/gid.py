"""
Global Tile ID (GID) bit layout

=============================================================================
RAW GID FORMAT
=============================================================================

Every cell of a tile layer (and every tile object) stores one unsigned 32-bit
integer. The highest four bits are orientation flags, the rest is the GID:

    bit 31  flip horizontally
    bit 30  flip vertically
    bit 29  flip diagonally (swap x/y axes)
    bit 28  rotate 120 degrees (hexagonal maps only)
    bits 0-27  GID (0 = empty cell)

    0x8000000B  ->  GID 11, flipped horizontally

The flags must be cleared before the GID is looked up in the map's tilesets.
=============================================================================
"""

from collections import namedtuple
from typing import Tuple

from .errors import InvalidTileId


FLIPPED_HORIZONTALLY_FLAG = 0x80000000
FLIPPED_VERTICALLY_FLAG = 0x40000000
FLIPPED_DIAGONALLY_FLAG = 0x20000000
ROTATED_HEXAGONAL_120_FLAG = 0x10000000

ALL_FLAGS = (FLIPPED_HORIZONTALLY_FLAG | FLIPPED_VERTICALLY_FLAG |
             FLIPPED_DIAGONALLY_FLAG | ROTATED_HEXAGONAL_120_FLAG)
GID_MASK = 0xFFFFFFFF & ~ALL_FLAGS
MAX_RAW_GID = 0xFFFFFFFF

EMPTY_GID = 0

TileFlags = namedtuple(
    "TileFlags", ["flip_h", "flip_v", "flip_d", "rotate_hex120"],
    defaults=[False, False, False, False])

NO_FLAGS = TileFlags()


def decode_gid(raw: int) -> Tuple[int, TileFlags]:
    """
    Split a raw 32-bit cell value into its GID and orientation flags.

    Any 32-bit value decodes; whether the GID exists is decided by the
    tileset resolver. A GID of 0 means the cell is empty.
    """
    if not 0 <= raw <= MAX_RAW_GID:
        raise InvalidTileId("raw gid does not fit in 32 bits", gid=raw)

    flags = TileFlags(
        flip_h=bool(raw & FLIPPED_HORIZONTALLY_FLAG),
        flip_v=bool(raw & FLIPPED_VERTICALLY_FLAG),
        flip_d=bool(raw & FLIPPED_DIAGONALLY_FLAG),
        rotate_hex120=bool(raw & ROTATED_HEXAGONAL_120_FLAG),
    )
    return raw & GID_MASK, flags


def encode_gid(gid: int, flags: TileFlags = NO_FLAGS) -> int:
    """Pack a GID and its orientation flags back into a raw cell value."""
    if not 0 <= gid <= GID_MASK:
        raise ValueError(f"gid {gid} does not fit in {GID_MASK.bit_length()} bits")

    raw = gid
    if flags.flip_h:
        raw |= FLIPPED_HORIZONTALLY_FLAG
    if flags.flip_v:
        raw |= FLIPPED_VERTICALLY_FLAG
    if flags.flip_d:
        raw |= FLIPPED_DIAGONALLY_FLAG
    if flags.rotate_hex120:
        raw |= ROTATED_HEXAGONAL_120_FLAG
    return raw
