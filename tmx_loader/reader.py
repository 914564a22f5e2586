"""
Byte sources and reference path canonicalisation.

A reader is any object with a ``read(path) -> bytes`` method. The loader
never touches the filesystem itself; it asks the reader for the bytes of
every map, tileset and template it needs, using the canonical path of the
resource as the key.

=============================================================================
CANONICAL PATHS
=============================================================================

Tiled stores references relative to the document that contains them:

    maps/level1.tmx   ->  <tileset firstgid="1" source="../tiles/terrain.tsx"/>
    tiles/terrain.tsx ->  <image source="terrain.png"/>

    canonical_path("../tiles/terrain.tsx", "maps/level1.tmx")
        == "tiles/terrain.tsx"

Paths are joined and normalised with POSIX rules only. Two spellings of the
same resource ("maps/../tiles/a.tsx", "tiles/./a.tsx") produce the same key,
so the resource cache sees them as one entry.
=============================================================================
"""

import logging
import posixpath
import re
from pathlib import Path
from typing import Dict, Mapping, Optional, Union

from .errors import ResourceIOError


log = logging.getLogger(__name__)

_DRIVE_PATH = re.compile(r'[A-Za-z]:/')


def canonical_path(reference: str, base: Optional[str] = None) -> str:
    """
    Resolve ``reference`` relative to the directory of document ``base``.

    Parameters:
    -----------
    reference : str
        Path as written in the document (or given by the caller)
    base : str, optional
        Canonical path of the referencing document. None for top-level loads.
    """
    reference = str(reference).replace('\\', '/')
    if base is not None and not is_absolute(reference):
        reference = posixpath.join(posixpath.dirname(base), reference)
    return posixpath.normpath(reference)


def is_absolute(path: str) -> bool:
    """True for rooted POSIX paths and Windows drive paths like C:/maps."""
    return posixpath.isabs(path) or _DRIVE_PATH.match(path) is not None


class FilesystemReader:
    """Reads documents from disk, optionally below a root directory."""

    def __init__(self, root: Optional[Union[str, Path]] = None):
        self.root = Path(root) if root is not None else None

    def read(self, path: str) -> bytes:
        filepath = Path(path)
        if self.root is not None and not filepath.is_absolute():
            filepath = self.root / filepath
        log.debug("reading %s", filepath)
        try:
            return filepath.read_bytes()
        except OSError as exc:
            raise ResourceIOError(f"could not read file: {exc.strerror or exc}",
                                  path) from exc


class MemoryReader:
    """
    Serves documents from an in-memory mapping of path -> bytes.

    Keys are canonicalised on insertion, so "a/./b.tsx" and "a/b.tsx" name the
    same document. Useful for embedded assets and for tests.
    """

    def __init__(self, documents: Optional[Mapping[str, Union[bytes, str]]] = None):
        self.documents: Dict[str, bytes] = {}
        for path, data in (documents or {}).items():
            self.add(path, data)

    def add(self, path: str, data: Union[bytes, str]):
        if isinstance(data, str):
            data = data.encode('utf-8')
        self.documents[canonical_path(path)] = data

    def read(self, path: str) -> bytes:
        try:
            return self.documents[canonical_path(path)]
        except KeyError:
            raise ResourceIOError("no such document", path) from None
