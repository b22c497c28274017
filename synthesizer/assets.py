"""Versioned offline cache for the external assets used by rendered pages.

Mirrors a cache-first service worker:

* ``install()`` pre-fetches every allow-listed URL into ``root/<version>/``.
* ``activate()`` deletes every cache directory whose name is not the current
  version.
* ``fetch(url)`` serves a cached copy and falls back to the network for
  anything not in the cache.

Entries are stored as ``<sha1(url)>`` files; the URL itself is never used as a
path.
"""

import hashlib
import logging
import shutil
import urllib.request
from pathlib import Path
from typing import Callable, Iterable

logger = logging.getLogger(__name__)

CACHE_VERSION = "doc-synthesizer-v1"

MERMAID_SCRIPT_URL = "https://cdn.jsdelivr.net/npm/mermaid@10.9.1/dist/mermaid.min.js"

ASSET_URLS: tuple[str, ...] = (MERMAID_SCRIPT_URL,)


def _download(url: str) -> bytes:
    with urllib.request.urlopen(url, timeout=30) as response:
        return response.read()


class AssetCache:
    """Cache-first store for a fixed list of asset URLs.

    Args:
        root:    Directory holding one subdirectory per cache version.
        version: Name of the current cache version.
        urls:    The allow-list pre-fetched by ``install``.
        fetcher: Network fetch function; defaults to ``urllib``.
    """

    def __init__(
        self,
        root: Path,
        version: str = CACHE_VERSION,
        urls: Iterable[str] = ASSET_URLS,
        fetcher: Callable[[str], bytes] | None = None,
    ) -> None:
        self.root = root
        self.version = version
        self.urls = tuple(urls)
        self._fetcher = fetcher or _download

    @property
    def directory(self) -> Path:
        return self.root / self.version

    def _entry_path(self, url: str) -> Path:
        return self.directory / hashlib.sha1(url.encode("utf-8")).hexdigest()

    def install(self) -> None:
        """Download every allow-listed URL into the current version's directory.

        A failed download aborts the install; entries already written stay.
        """
        self.directory.mkdir(parents=True, exist_ok=True)
        logger.info("Caching %d asset(s) in %s", len(self.urls), self.directory)
        for url in self.urls:
            self._entry_path(url).write_bytes(self._fetcher(url))
            logger.debug("Cached %s", url)

    def activate(self) -> list[str]:
        """Remove caches left by other versions; return their names."""
        if not self.root.exists():
            return []
        removed: list[str] = []
        for child in sorted(self.root.iterdir()):
            if child.is_dir() and child.name != self.version:
                shutil.rmtree(child)
                removed.append(child.name)
                logger.info("Deleted stale asset cache: %s", child.name)
        return removed

    def get(self, url: str) -> bytes | None:
        """Return the cached bytes for ``url``, or None on a cache miss."""
        entry = self._entry_path(url)
        if entry.is_file():
            return entry.read_bytes()
        return None

    def fetch(self, url: str) -> bytes:
        """Serve ``url`` from the cache, falling back to the network."""
        cached = self.get(url)
        if cached is not None:
            return cached
        logger.debug("Asset cache miss, fetching from network: %s", url)
        return self._fetcher(url)
