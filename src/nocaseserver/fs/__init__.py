"""
=============================================================================
FILESYSTEM MODULE
=============================================================================

Safe, case-insensitive path resolution: everything between "a list of
URL segments" and "an absolute path we are allowed to serve".

    ┌─────────────────────────────────────────────────────────────────────┐
    │   ["IMG", "Logo.PNG"]                                               │
    │          │                                                           │
    │          ▼                                                           │
    │   CaseInsensitiveResolver ◄──► ResolutionCache                      │
    │          │                                                           │
    │          ▼                                                           │
    │   Found("/srv/www/img/logo.png")                                    │
    │          │                                                           │
    │          ▼                                                           │
    │   check_symlink_safety(root, path)  →  real path or None            │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .cache import ResolutionCache, DEFAULT_CACHE_SIZE
from .resolver import (
    CaseInsensitiveResolver,
    Found,
    NotFound,
    NOT_FOUND,
    Resolution,
    resolve_nocase_safe,
)
from .safety import is_inside, check_symlink_safety

__all__ = [
    "ResolutionCache",
    "DEFAULT_CACHE_SIZE",
    "CaseInsensitiveResolver",
    "Found",
    "NotFound",
    "NOT_FOUND",
    "Resolution",
    "resolve_nocase_safe",
    "is_inside",
    "check_symlink_safety",
]
