"""
Loader - entry point for reading maps, tilesets and templates

=============================================================================
HOW A LOAD PROCEEDS
=============================================================================

    loader.load_map("maps/level1.tmx")
      │
      ├── reader.read("maps/level1.tmx")  -> bytes -> parser -> <map>
      ├── <tileset source="../tiles/a.tsx">   -> load_tileset("tiles/a.tsx")
      │       └── cache miss: read + parse, stored as CACHED
      ├── <layer>  decode payload, validate every GID
      └── <object template="../obj/chest.tx"> -> load_template("obj/chest.tx")
              └── <tileset source="../tiles/a.tsx"> -> cache hit, same Tileset

References are resolved depth-first in document order, so the cache fills
in the same order for the same input files.

=============================================================================
SHARING BETWEEN LOADS
=============================================================================

Every Loader owns a ResourceCache unless one is passed in. Give several
loaders the same cache to share parsed tilesets between them:

    cache = ResourceCache()
    world = Loader(cache=cache).load_map("world.tmx")
    cave = Loader(cache=cache).load_map("cave.tmx")
    world.tilesets[0].tileset is cave.tilesets[0].tileset   # True
=============================================================================
"""

import logging
from typing import Any, Callable, Optional

from .cache import ResourceCache
from .document import expect_tag, parse_document
from .errors import MalformedDocument, ResourceIOError, TiledError
from .layers.objects import MapObject
from .map import TiledMap
from .reader import FilesystemReader, canonical_path
from .template import Template
from .tileset import Tileset, parse_tileset_refs


log = logging.getLogger(__name__)


class Loader:
    """
    One load session: a byte source, a document parser and a resource cache.

    Parameters:
    -----------
    reader : object with read(path) -> bytes, optional
        Byte source; a FilesystemReader relative to the working directory
        by default
    cache : ResourceCache, optional
        Tileset/template cache; a fresh one by default
    parser : callable, optional
        ``parser(data, path)`` returning the root element
    """

    def __init__(self, reader=None, cache: Optional[ResourceCache] = None,
                 parser: Callable[[bytes, Optional[str]], Any] = parse_document):
        self._reader = reader if reader is not None else FilesystemReader()
        self._cache = cache if cache is not None else ResourceCache()
        self._parser = parser

    @property
    def reader(self):
        return self._reader

    @property
    def cache(self) -> ResourceCache:
        return self._cache

    def load_map(self, path: str) -> TiledMap:
        """Load a TMX map. Maps themselves are not cached."""
        key = canonical_path(path)
        log.info("loading map %s", key)
        root = self._parse(key)
        level = TiledMap.from_xml(root, key, self)
        log.info("loaded map %s: %d tilesets, %d layers",
                 key, len(level.tilesets), len(level.layers))
        return level

    def load_tileset(self, path: str) -> Tileset:
        """Load an external TSX tileset, parsing it at most once per cache."""
        return self._load_cached(path, Tileset, self._build_tileset)

    def load_template(self, path: str) -> Template:
        """Load a TX object template, parsing it at most once per cache."""
        return self._load_cached(path, Template, self._build_template)

    # -------------------------------------------------------------------------
    # INTERNALS
    # -------------------------------------------------------------------------

    def _load_cached(self, path: str, kind: type, factory):
        key = canonical_path(path)
        resource = self._cache.load(key, factory)
        if not isinstance(resource, kind):
            raise MalformedDocument(
                f"cached resource is a {type(resource).__name__}, "
                f"not a {kind.__name__}", key)
        return resource

    def _fetch(self, key: str) -> bytes:
        log.debug("fetching %s", key)
        try:
            return self._reader.read(key)
        except TiledError:
            raise
        except OSError as exc:
            raise ResourceIOError(f"could not read document: {exc}", key) from exc

    def _parse(self, key: str):
        root = self._parser(self._fetch(key), key)
        log.debug("parsed %s: <%s>", key, root.tag)
        return root

    def _build_tileset(self, key: str) -> Tileset:
        root = self._parse(key)
        expect_tag(root, 'tileset', key)
        return Tileset.from_xml(root, source=key, loader=self, path=key)

    def _build_template(self, key: str) -> Template:
        """
        Parse a <template> document.

        A template may carry one <tileset> (external or embedded) that the
        GID of its object refers to; that GID is resolved against the
        template's own tileset list here and re-based per instance later.
        """
        root = self._parse(key)
        expect_tag(root, 'template', key)

        tilesets = parse_tileset_refs(root, self, key)

        obj_elem = root.find('object')
        if obj_elem is None:
            raise MalformedDocument("template has no <object>", key)
        obj = MapObject.from_xml(obj_elem, tilesets, self, key)
        return Template(object=obj, tilesets=tilesets, source=key)


def load_map(path: str, reader=None, cache: Optional[ResourceCache] = None) -> TiledMap:
    """Load a map with a one-off Loader."""
    return Loader(reader, cache).load_map(path)


def load_tileset(path: str, reader=None, cache: Optional[ResourceCache] = None) -> Tileset:
    """Load an external tileset with a one-off Loader."""
    return Loader(reader, cache).load_tileset(path)
