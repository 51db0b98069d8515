"""
=============================================================================
HTTP RANGE REQUESTS
=============================================================================

Parses a single-range `Range: bytes=...` header (RFC 7233) against a
known file size.

=============================================================================
THE THREE RANGE FORMS
=============================================================================

    File size = 1000 bytes (offsets 0..999)

    ┌─────────────────────────────────────────────────────────────────────┐
    │ Header             │ Meaning              │ Result                  │
    ├─────────────────────────────────────────────────────────────────────┤
    │ bytes=0-99         │ bounded              │ 0-99    (100 bytes)     │
    │ bytes=900-         │ open-ended           │ 900-999 (100 bytes)     │
    │ bytes=-100         │ suffix: last N bytes │ 900-999 (100 bytes)     │
    │ bytes=-5000        │ suffix > size        │ 0-999   (whole file)    │
    ├─────────────────────────────────────────────────────────────────────┤
    │ bytes=9999999-     │ start past the end   │ invalid → 416           │
    │ bytes=0-1000       │ end past the end     │ invalid → 416           │
    │ bytes=50-10        │ start > end          │ invalid → 416           │
    │ bytes=0-99,200-299 │ multi-range          │ invalid → 416           │
    │ items=0-99         │ wrong unit           │ invalid → 416           │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
RESPONSE HEADERS
=============================================================================

    206 Partial Content
        Content-Range: bytes 0-99/1000
        Content-Length: 100

    416 Range Not Satisfiable
        Content-Range: bytes */1000

=============================================================================
INTERVIEW QUESTIONS ABOUT RANGE REQUESTS
=============================================================================

Q: "Who actually sends Range headers?"
A: "Video and audio players seeking through media, download managers
   resuming broken downloads, and PDF viewers fetching pages lazily."

Q: "Why reject multi-range instead of serving the first range?"
A: "A multi-range response needs a multipart/byteranges body. Answering
   with just the first range would make Content-Length disagree with
   what the client asked for, so we refuse instead."

=============================================================================
"""

import re
from dataclasses import dataclass
from typing import Optional


RANGE_UNIT_PREFIX = "bytes="

# <start?>-<end?>, ASCII digits only
RANGE_SPEC_PATTERN = re.compile(r"^([0-9]*)-([0-9]*)$")


@dataclass(frozen=True)
class ByteRange:
    """
    An inclusive byte interval [start, end] inside a resource.

    Invariant (guaranteed by parse_range):
        0 <= start <= end <= size - 1
    """
    start: int
    end: int

    @property
    def length(self) -> int:
        """Number of bytes covered: end - start + 1."""
        return self.end - self.start + 1

    def content_range(self, size: int) -> str:
        """Content-Range header value for a 206 response."""
        return f"bytes {self.start}-{self.end}/{size}"


def unsatisfied_range(size: int) -> str:
    """Content-Range header value for a 416 response."""
    return f"bytes */{size}"


def parse_range(header: Optional[str], size: int) -> Optional[ByteRange]:
    """
    Parse a Range header value against a file size.

    Args:
        header: The raw Range header value (e.g. "bytes=0-99").
        size: Total size of the resource in bytes.

    Returns:
        ByteRange if the header describes a single satisfiable range,
        None otherwise.

    Examples:
        >>> parse_range("bytes=0-99", 1000)
        ByteRange(start=0, end=99)
        >>> parse_range("bytes=-100", 1000)
        ByteRange(start=900, end=999)
        >>> parse_range("bytes=9999999-", 1000) is None
        True
    """
    if not header or not header.startswith(RANGE_UNIT_PREFIX):
        return None

    spec = header[len(RANGE_UNIT_PREFIX):].strip()
    if not spec or "," in spec:
        return None

    match = RANGE_SPEC_PATTERN.match(spec)
    if not match:
        return None

    start_str, end_str = match.groups()

    if start_str == "":
        # Suffix range: the last N bytes
        if end_str == "":
            return None
        start = max(0, size - _bounded_int(end_str, size))
        end = size - 1
    else:
        start = _bounded_int(start_str, size)
        end = _bounded_int(end_str, size) if end_str else size - 1

    if start < 0 or end >= size or start > end:
        return None

    return ByteRange(start, end)


def _bounded_int(digits: str, size: int) -> int:
    """
    int(digits), capped at size.

    A number with more significant digits than size is larger than it,
    and int() refuses strings past sys.get_int_max_str_digits().
    """
    significant = digits.lstrip("0")
    if len(significant) > len(str(size)):
        return size
    return int(significant or "0")
