"""
=============================================================================
PATH SAFETY CHECKER
=============================================================================

Decides whether a path lies inside a base directory, both lexically and
after every symbolic link has been followed.

=============================================================================
TWO KINDS OF CONTAINMENT
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                  LEXICAL VS PHYSICAL CONTAINMENT                    │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   LEXICAL (is_inside)                                               │
    │   ───────────────────                                               │
    │   Compares the path STRINGS only.                                   │
    │   /srv/www/img/logo.png   inside /srv/www   ✓                      │
    │   /srv/www-old/logo.png   inside /srv/www   ✗  (not a prefix match!)│
    │                                                                      │
    │   PHYSICAL (check_symlink_safety)                                   │
    │   ───────────────────────────────                                   │
    │   Follows symlinks on BOTH sides first, then compares.              │
    │   /srv/www/escape.txt → /etc/passwd          ✗                     │
    │   /srv/www/alias.txt  → /srv/www/safe.txt    ✓                     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
THE CONTAINMENT TEST
=============================================================================

We compute the relative path from base to target:

    relpath("/srv/www/img/a.png", "/srv/www")  →  "img/a.png"     inside
    relpath("/srv/www",           "/srv/www")  →  "."             inside
    relpath("/srv",               "/srv/www")  →  ".."            OUTSIDE
    relpath("/etc/passwd",        "/srv/www")  →  "../../etc/passwd" OUTSIDE

A target is outside exactly when the relative path is ".." or starts
with ".." followed by the separator. Disjoint paths always start with
repeated "..", so one test covers both cases.

Note that "..foo" (a file literally named "..foo") does NOT start with
".." + separator, so it is correctly treated as inside.

=============================================================================
"""

import os
import logging
from typing import Optional


logger = logging.getLogger(__name__)

PARENT = os.pardir


def is_inside(base: str, target: str) -> bool:
    """
    Lexical containment test.

    Both paths should already be absolute and normalized. No filesystem
    access happens here.

    Args:
        base: The containing directory.
        target: The candidate path.

    Returns:
        True if target is base itself or below it.
    """
    try:
        rel = os.path.relpath(target, base)
    except ValueError:
        # Different drives on Windows
        return False
    return rel != PARENT and not rel.startswith(PARENT + os.sep)


def check_symlink_safety(base: str, target: str) -> Optional[str]:
    """
    Physical containment test, after resolving symlinks on both sides.

    =========================================================================
    FAILURE MODE
    =========================================================================

    Any filesystem error while canonicalizing (broken symlink, missing
    file, permission denied, symlink loop) means "unsafe". The caller
    never sees the error itself, it just gets None.

    =========================================================================

    Args:
        base: The root directory files must stay within.
        target: The path to check (may be a symlink).

    Returns:
        The real path of target if it is safe, None otherwise.
    """
    try:
        real_target = os.path.realpath(target, strict=True)
        real_base = os.path.realpath(base, strict=True)
    except OSError as e:
        logger.debug(f"Cannot canonicalize {target}: {e}")
        return None

    if not is_inside(real_base, real_target):
        logger.debug(f"Symlink escape rejected: {target} -> {real_target}")
        return None

    return real_target
