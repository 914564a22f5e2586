"""
Exceptions raised while loading maps, tilesets and templates.

Every failure caused by the input documents is a subclass of TiledError, so
callers can catch one type and still get a precise diagnostic:

    TiledError
    ├── MalformedDocument   bad XML, missing or unparseable attributes
    ├── InvalidTileData     layer payload has the wrong size or shape
    │   └── DecompressionError   corrupt or truncated compressed payload
    ├── InvalidTileId       GID outside every tileset range
    ├── CyclicReference     tileset/template graph refers back to itself
    └── ResourceIOError     the byte source could not deliver a document
"""

from typing import Optional, Sequence


class TiledError(Exception):
    """Base class for every error raised while loading Tiled documents."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        if path:
            message = f"{path}: {message}"
        super().__init__(message)


class MalformedDocument(TiledError):
    """The document is not valid XML or is missing required structure."""


class InvalidTileData(TiledError):
    """A layer payload does not decode to the expected number of GIDs."""

    def __init__(self, message: str, path: Optional[str] = None,
                 expected: Optional[int] = None, actual: Optional[int] = None):
        self.expected = expected
        self.actual = actual
        if expected is not None and actual is not None:
            message = f"{message} (expected {expected}, got {actual})"
        super().__init__(message, path)


class DecompressionError(InvalidTileData):
    """A compressed layer payload could not be decompressed."""

    def __init__(self, message: str, path: Optional[str] = None,
                 compression: Optional[str] = None):
        self.compression = compression
        super().__init__(message, path)


class InvalidTileId(TiledError):
    """A GID does not belong to any of the map's tilesets."""

    def __init__(self, message: str, gid: Optional[int] = None,
                 path: Optional[str] = None):
        self.gid = gid
        if gid is not None:
            message = f"{message} (raw gid {gid:#010x})"
        super().__init__(message, path)


class CyclicReference(TiledError):
    """A resource was requested again while it was still being loaded."""

    def __init__(self, path: str, chain: Sequence[str] = ()):
        self.chain = tuple(chain)
        cycle = " -> ".join(self.chain) if self.chain else path
        super().__init__(f"cyclic resource reference: {cycle}", path)


class ResourceIOError(TiledError):
    """The byte source failed to fetch a document."""


__all__ = [
    "TiledError",
    "MalformedDocument",
    "InvalidTileData",
    "DecompressionError",
    "InvalidTileId",
    "CyclicReference",
    "ResourceIOError",
]
