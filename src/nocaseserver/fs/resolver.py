"""
=============================================================================
CASE-INSENSITIVE PATH RESOLVER
=============================================================================

Maps URL segments onto real directory entries while ignoring case, on
any filesystem (case-sensitive ext4 as well as case-insensitive APFS/NTFS).

=============================================================================
HOW A PATH IS WALKED
=============================================================================

    Request: GET /IMG/Logo.PNG          Root: /srv/www

    ┌─────────────────────────────────────────────────────────────────────┐
    │                   SEGMENT-BY-SEGMENT RESOLUTION                     │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   segments = ["IMG", "Logo.PNG"]                                    │
    │                                                                      │
    │   current = /srv/www                                                │
    │      │                                                               │
    │      │  "IMG" → cache miss → scandir(/srv/www)                     │
    │      │          entries: index.html, img, css                       │
    │      │          "img".lower() == "img"  ✓                          │
    │      ▼                                                               │
    │   current = /srv/www/img          (on-disk case, not request case!) │
    │      │                                                               │
    │      │  "Logo.PNG" → cache miss → scandir(/srv/www/img)            │
    │      │          entries: logo.png                                   │
    │      ▼                                                               │
    │   current = /srv/www/img/logo.png                                   │
    │                                                                      │
    │   Final check: is current still inside /srv/www?  ✓  → Found       │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
DEFENSE IN DEPTH
=============================================================================

1. "." and ".." segments are rejected BEFORE touching the disk or cache.
2. Each step only follows names that actually exist in the directory.
3. The final path must be lexically inside the root.
4. The request handler additionally runs check_symlink_safety() on the
   result, which catches symlinks pointing out of the root.

=============================================================================
RESULT TYPE
=============================================================================

resolve() returns Found(path) or NOT_FOUND. "Not found" is a normal,
expected outcome (typos, SPA routes, scanners), so it is a value rather
than an exception:

    result = resolver.resolve(root, ["img", "logo.png"])
    if isinstance(result, Found):
        serve(result.path)

=============================================================================
INTERVIEW QUESTIONS ABOUT CASE-INSENSITIVE LOOKUP
=============================================================================

Q: "Why not just lowercase every filename on disk?"
A: "We don't own the files. Deploy tools, CMS exports and designers
   produce mixed-case names; the server has to cope with what's there."

Q: "What if a directory has both 'a.txt' and 'A.txt'?"
A: "The first entry the OS returns wins. Directory order is
   filesystem-defined, so we don't pretend to have a canonical answer."

=============================================================================
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Union

from .cache import ResolutionCache
from .safety import is_inside


logger = logging.getLogger(__name__)

FORBIDDEN_SEGMENTS = frozenset({os.curdir, os.pardir})


@dataclass(frozen=True)
class Found:
    """A successful resolution. `path` has the true on-disk case."""
    path: str


class NotFound:
    """Resolution failed. Use the NOT_FOUND singleton."""

    def __repr__(self) -> str:
        return "NOT_FOUND"

    def __bool__(self) -> bool:
        return False


NOT_FOUND = NotFound()

Resolution = Union[Found, NotFound]


class CaseInsensitiveResolver:
    """
    Resolves request segments against a root directory, ignoring case.

    Args:
        cache: Shared ResolutionCache. None (or a cache with capacity 0)
               means every resolution scans the directories.

    Usage:
        cache = ResolutionCache(2000)
        resolver = CaseInsensitiveResolver(cache)
        resolver.resolve("/srv/www", ["IMG", "logo.PNG"])
        # Found(path='/srv/www/img/logo.png')
    """

    def __init__(self, cache: Optional[ResolutionCache] = None):
        self.cache = cache

    def resolve(self, root: str, segments: Sequence[str]) -> Resolution:
        """
        Walk segments from root, one directory at a time.

        Args:
            root: Absolute directory to start from.
            segments: Path components, already URL-decoded, no empties.

        Returns:
            Found(path) or NOT_FOUND. Never raises for missing paths or
            unreadable directories.
        """
        if any(seg in FORBIDDEN_SEGMENTS for seg in segments):
            logger.debug(f"Traversal segment rejected: {list(segments)}")
            return NOT_FOUND

        cache = self.cache if self.cache is not None and self.cache.enabled else None

        current = root
        for seg in segments:
            wanted = seg.lower()
            key = (current, wanted)

            if cache is not None:
                cached = cache.get(key)
                if cached is not None:
                    current = cached
                    continue

            match = self._find_entry(current, wanted)
            if match is None:
                return NOT_FOUND

            current = os.path.join(current, match)
            if cache is not None:
                cache.put(key, current)

        resolved = os.path.abspath(current)
        if not is_inside(os.path.abspath(root), resolved):
            logger.debug(f"Resolved path left the root: {resolved}")
            return NOT_FOUND

        return Found(resolved)

    def _find_entry(self, directory: str, wanted: str) -> Optional[str]:
        """
        Scan one directory for an entry matching `wanted` (lowercase).

        Returns the entry's real name, or None if nothing matches or the
        directory can't be read (missing, not a directory, no permission).
        """
        try:
            with os.scandir(directory) as entries:
                for entry in entries:
                    if entry.name.lower() == wanted:
                        return entry.name
        except OSError as e:
            logger.debug(f"Cannot scan {directory}: {e}")
        return None


def resolve_nocase_safe(
    root: str,
    segments: Sequence[str],
    cache: Optional[ResolutionCache] = None,
) -> Resolution:
    """
    Resolve segments under root in one call.

    Convenience wrapper; build a CaseInsensitiveResolver yourself when
    resolving many paths with the same cache.
    """
    return CaseInsensitiveResolver(cache).resolve(root, segments)
