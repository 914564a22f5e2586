"""
Resource cache for tilesets and templates shared between documents.

=============================================================================
WHY A CACHE?
=============================================================================

External tilesets (.tsx) and templates (.tx) are usually referenced by many
maps, and templates by many objects within one map:

    level1.tmx ─┐
    level2.tmx ─┼──> terrain.tsx
    chest.tx  ──┘

Parsing terrain.tsx once and handing the same Tileset instance to every
referencing document saves work and memory, and lets callers compare
tilesets by identity.

=============================================================================
ENTRY STATES
=============================================================================

Each canonical path moves through:

    UNREQUESTED ──load()──> LOADING ──ok──> CACHED
                               │
                               └──error──> FAILED

- LOADING only lasts for the synchronous parse of that resource. A second
  request for a LOADING path means the documents reference each other, and
  fails with CyclicReference instead of recursing forever.
- CACHED entries are returned as-is; the byte source is not read again.
- FAILED entries re-raise the original error. They are never retried
  automatically; call evict() to allow another attempt.

=============================================================================
LIFETIME AND THREADING
=============================================================================

Entries are never evicted by the cache itself. Create one cache per load
session, or keep one around and pass it to every Loader that should share
resources. The cache is NOT safe for concurrent mutation: callers loading
from several threads must give each thread its own cache or serialise access
to a shared one.
=============================================================================
"""

import enum
import logging
from typing import Any, Callable, Dict, List, Optional

from .errors import CyclicReference, TiledError
from .reader import canonical_path


log = logging.getLogger(__name__)


class ResourceState(enum.Enum):
    UNREQUESTED = "unrequested"
    LOADING = "loading"
    CACHED = "cached"
    FAILED = "failed"


class _Entry:
    __slots__ = ('state', 'value', 'error')

    def __init__(self, state: ResourceState, value: Any = None,
                 error: Optional[TiledError] = None):
        self.state = state
        self.value = value
        self.error = error


class ResourceCache:
    """Canonical path -> parsed Tileset or Template."""

    def __init__(self):
        self._entries: Dict[str, _Entry] = {}
        self._loading: List[str] = []
        self.hits = 0
        self.misses = 0

    def __contains__(self, path: str) -> bool:
        return self.get(path) is not None

    def __len__(self) -> int:
        return sum(1 for e in self._entries.values() if e.state is ResourceState.CACHED)

    def state(self, path: str) -> ResourceState:
        entry = self._entries.get(canonical_path(path))
        return entry.state if entry else ResourceState.UNREQUESTED

    def get(self, path: str) -> Optional[Any]:
        """Return the cached resource for ``path``, or None."""
        entry = self._entries.get(canonical_path(path))
        if entry is not None and entry.state is ResourceState.CACHED:
            return entry.value
        return None

    def error(self, path: str) -> Optional[TiledError]:
        """Return the error that made ``path`` fail, if it did."""
        entry = self._entries.get(canonical_path(path))
        return entry.error if entry else None

    def insert(self, path: str, resource: Any):
        """Pre-seed the cache, replacing any existing entry for ``path``."""
        key = canonical_path(path)
        if key in self._loading:
            raise RuntimeError(f"cannot insert {key} while it is being loaded")
        self._entries[key] = _Entry(ResourceState.CACHED, resource)

    def evict(self, path: str) -> bool:
        """Forget ``path`` (cached or failed). Returns whether it was present."""
        key = canonical_path(path)
        if key in self._loading:
            raise RuntimeError(f"cannot evict {key} while it is being loaded")
        return self._entries.pop(key, None) is not None

    def clear(self):
        if self._loading:
            raise RuntimeError("cannot clear the cache during a load")
        self._entries.clear()

    def paths(self) -> List[str]:
        """Cached paths in the order they were populated."""
        return [k for k, e in self._entries.items() if e.state is ResourceState.CACHED]

    def load(self, path: str, factory: Callable[[str], Any]) -> Any:
        """
        Return the resource at ``path``, calling ``factory(path)`` on first use.

        Parameters:
        -----------
        path : str
            Resource path; canonicalised before lookup
        factory : callable
            Fetches and parses the resource. Called at most once per path for
            the lifetime of the entry.

        Raises:
        -------
        CyclicReference : ``path`` is already being loaded further up the stack
        TiledError : whatever the factory raised, now or on an earlier attempt
        """
        key = canonical_path(path)
        entry = self._entries.get(key)

        if entry is not None:
            if entry.state is ResourceState.CACHED:
                self.hits += 1
                log.debug("cache hit: %s", key)
                return entry.value
            if entry.state is ResourceState.FAILED:
                raise entry.error
            if entry.state is ResourceState.LOADING:
                chain = self._loading[self._loading.index(key):] + [key]
                raise CyclicReference(key, chain)

        self.misses += 1
        self._entries[key] = _Entry(ResourceState.LOADING)
        self._loading.append(key)
        try:
            value = factory(key)
        except TiledError as exc:
            self._entries[key] = _Entry(ResourceState.FAILED, error=exc)
            raise
        except BaseException:
            # Not a document fault (bug, interrupt): leave no trace so a retry is possible
            del self._entries[key]
            raise
        finally:
            self._loading.pop()

        self._entries[key] = _Entry(ResourceState.CACHED, value)
        log.debug("cached: %s", key)
        return value
