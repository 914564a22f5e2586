"""
GID -> (tileset, local tile id) resolution

=============================================================================
GID RANGES
=============================================================================

A map reserves a contiguous block of GIDs for each tileset it uses:

    Tileset A (first_gid=1,  10 tiles):  GIDs  1-10
    Tileset B (first_gid=11,  5 tiles):  GIDs 11-15

    GID 0   -> empty cell
    GID 11  -> tileset B, local tile 0
    GID 16  -> invalid (past the end of B, no tileset starts there)

A GID belongs to the tileset with the largest first_gid <= GID, and only if
it lands inside that tileset's range. The ranges are checked once when the
list is built: first_gids must be strictly increasing and blocks must not
overlap.

TilesetList is the only place that turns a map GID into a TileRef. It is
consulted for every cell access; lookups are a binary search over the
first_gid table.
=============================================================================
"""

import bisect
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Iterator, List, Optional

import numpy as np

from .errors import InvalidTileId, MalformedDocument
from .gid import GID_MASK, EMPTY_GID, TileFlags, decode_gid

if TYPE_CHECKING:
    from .tileset import Tile, Tileset


@dataclass(frozen=True)
class TilesetEntry:
    """A tileset as used by one map: the shared Tileset plus this map's first_gid."""
    first_gid: int
    tileset: 'Tileset'

    @property
    def end_gid(self) -> int:
        """One past the last GID reserved for this tileset."""
        return self.first_gid + self.tileset.gid_span

    def __contains__(self, gid: int) -> bool:
        return self.first_gid <= gid < self.end_gid


@dataclass(frozen=True)
class TileRef:
    """
    A resolved, non-empty tile reference.

    ``tileset`` is the shared Tileset instance owned by the map's tileset list,
    ``tileset_index`` its position in that list and ``id`` the 0-based tile id
    inside the tileset.
    """
    tileset: 'Tileset'
    tileset_index: int
    id: int
    flip_h: bool = False
    flip_v: bool = False
    flip_d: bool = False
    rotate_hex120: bool = False

    @property
    def flags(self) -> TileFlags:
        return TileFlags(self.flip_h, self.flip_v, self.flip_d, self.rotate_hex120)

    @property
    def tile(self) -> Optional['Tile']:
        """Per-tile data (properties, animation, ...) if the tileset defines any."""
        return self.tileset.tiles.get(self.id)


class TilesetList:
    """Ordered, validated list of a map's TilesetEntry values."""

    def __init__(self, entries: Iterable[TilesetEntry] = (), path: Optional[str] = None):
        self._entries: List[TilesetEntry] = list(entries)
        self._first_gids: List[int] = [e.first_gid for e in self._entries]
        self.path = path
        self._validate()

    def _validate(self):
        previous = None
        for entry in self._entries:
            if entry.first_gid < 1:
                raise MalformedDocument(
                    f"tileset '{entry.tileset.name}' has firstgid {entry.first_gid} < 1",
                    self.path)
            if previous is not None:
                if entry.first_gid <= previous.first_gid:
                    raise MalformedDocument(
                        f"tileset firstgids are not strictly increasing "
                        f"({previous.first_gid} then {entry.first_gid})", self.path)
                if entry.first_gid < previous.end_gid:
                    raise MalformedDocument(
                        f"tileset '{entry.tileset.name}' (firstgid {entry.first_gid}) "
                        f"overlaps '{previous.tileset.name}' which ends at gid "
                        f"{previous.end_gid - 1}", self.path)
            previous = entry

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[TilesetEntry]:
        return iter(self._entries)

    def __getitem__(self, index: int) -> TilesetEntry:
        return self._entries[index]

    def __repr__(self):
        ranges = ", ".join(f"{e.tileset.name}@{e.first_gid}" for e in self._entries)
        return f"TilesetList([{ranges}])"

    @property
    def tilesets(self) -> List['Tileset']:
        return [e.tileset for e in self._entries]

    def index_for_gid(self, gid: int) -> Optional[int]:
        """Index of the entry whose range contains ``gid`` (flags cleared), or None."""
        index = bisect.bisect_right(self._first_gids, gid) - 1
        if index < 0 or gid not in self._entries[index]:
            return None
        return index

    def find(self, tileset: 'Tileset') -> Optional[TilesetEntry]:
        """Entry holding ``tileset``: same instance, or same external source."""
        for entry in self._entries:
            if entry.tileset is tileset:
                return entry
        if tileset.source is not None:
            for entry in self._entries:
                if entry.tileset.source == tileset.source:
                    return entry
        return None

    def resolve(self, raw: int) -> Optional[TileRef]:
        """
        Resolve a raw cell value to a TileRef.

        Returns None for an empty cell (GID 0). Raises InvalidTileId when the
        GID falls outside every tileset's range.
        """
        gid, flags = decode_gid(raw)
        if gid == EMPTY_GID:
            return None

        index = self.index_for_gid(gid)
        if index is None:
            raise InvalidTileId("gid does not belong to any tileset", gid=raw,
                                path=self.path)
        entry = self._entries[index]
        return TileRef(
            tileset=entry.tileset,
            tileset_index=index,
            id=gid - entry.first_gid,
            flip_h=flags.flip_h,
            flip_v=flags.flip_v,
            flip_d=flags.flip_d,
            rotate_hex120=flags.rotate_hex120,
        )

    def check_gids(self, raw: np.ndarray, context: str = ""):
        """
        Validate a whole array of raw cell values at once.

        Raises InvalidTileId for the first non-empty GID that resolves to no
        tileset. ``context`` (e.g. the layer name) is added to the message.
        """
        raw = np.asarray(raw, dtype=np.int64).ravel()
        gids = raw & GID_MASK
        used = gids != EMPTY_GID
        if not used.any():
            return
        raw, gids = raw[used], gids[used]

        if not self._entries:
            bad = np.ones(gids.shape, dtype=bool)
        else:
            first = np.asarray(self._first_gids, dtype=np.int64)
            end = np.asarray([e.end_gid for e in self._entries], dtype=np.int64)
            index = np.searchsorted(first, gids, side='right') - 1
            bad = index < 0
            bad |= gids >= end[np.clip(index, 0, None)]

        if bad.any():
            where = f" in {context}" if context else ""
            raise InvalidTileId(f"gid does not belong to any tileset{where}",
                                gid=int(raw[bad][0]), path=self.path)


def resolve_gid(entries: Iterable[TilesetEntry], raw: int) -> Optional[TileRef]:
    """Resolve ``raw`` against an ordered collection of tileset entries."""
    if not isinstance(entries, TilesetList):
        entries = TilesetList(entries)
    return entries.resolve(raw)
