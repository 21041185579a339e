"""
lexical.py

Pure string helpers used throughout the scanner:
    - normalize_domain(value) -> str
    - parse_url(url) -> ParsedUrl or None
    - shannon_entropy(s) -> float
    - levenshtein(a, b) -> int
"""

import math
import re
from typing import NamedTuple, Optional
from urllib.parse import urlsplit

# schemes whose URLs always carry a host; "http:x" and "http:\x" both mean "http://x"
SPECIAL_SCHEME_RE = re.compile(r"^(https?|ftp|wss?):[\\/]*", re.IGNORECASE)
FORBIDDEN_HOST_CHARS = frozenset("#/<>?@[\\]^|\"")


class ParsedUrl(NamedTuple):
    scheme: str
    hostname: str
    host: str  # hostname without a leading "www."
    path: str
    query: str  # includes the leading "?" when present

    @property
    def path_and_query(self) -> str:
        return self.path + self.query


def strip_www(hostname: str) -> str:
    if hostname.startswith("www."):
        return hostname[4:]
    return hostname


def _idna(hostname: str) -> str:
    """Encode non-ASCII labels to punycode like a browser would."""
    if hostname.isascii():
        return hostname
    try:
        return hostname.encode("idna").decode("ascii")
    except UnicodeError:
        return hostname


def parse_url(url: str) -> Optional[ParsedUrl]:
    """
    Parse an absolute URL the way a browser address bar would. Returns None
    for anything without a scheme and host, with an invalid port, or with
    characters that are not allowed in a host name.

    Special schemes tolerate missing or backslashed slashes, so
    "http:example.com" parses as "http://example.com".
    """
    if not isinstance(url, str):
        return None
    url = SPECIAL_SCHEME_RE.sub(lambda m: m.group(1) + "://", url.strip(), count=1)
    try:
        parts = urlsplit(url)
        hostname = parts.hostname
        parts.port  # raises ValueError for non-numeric or out-of-range ports
    except ValueError:
        return None
    if not parts.scheme or not hostname:
        return None
    if any(c.isspace() or c in FORBIDDEN_HOST_CHARS for c in hostname):
        return None
    hostname = _idna(hostname)
    query = f"?{parts.query}" if parts.query else ""
    return ParsedUrl(
        scheme=parts.scheme.lower(),
        hostname=hostname,
        host=strip_www(hostname),
        path=parts.path or "/",
        query=query,
    )


def normalize_domain(value: str) -> str:
    """
    Return the www-stripped hostname when value is an absolute URL,
    otherwise return value untouched.
    """
    parsed = parse_url(value)
    if parsed is None:
        return value
    return parsed.host


def shannon_entropy(data: str) -> float:
    """Character-frequency entropy in bits."""
    if not data:
        return 0.0
    length = len(data)
    probabilities = [float(data.count(c)) / length for c in set(data)]
    return -sum(p * math.log(p, 2) for p in probabilities)


def levenshtein(a: str, b: str) -> int:
    """Case-insensitive edit distance."""
    a = (a or "").lower()
    b = (b or "").lower()
    m, n = len(a), len(b)
    if m == 0:
        return n
    if n == 0:
        return m

    dp = [[0] * (n + 1) for _ in range(m + 1)]
    for i in range(m + 1):
        dp[i][0] = i
    for j in range(n + 1):
        dp[0][j] = j

    for i in range(1, m + 1):
        for j in range(1, n + 1):
            cost = 0 if a[i - 1] == b[j - 1] else 1
            dp[i][j] = min(
                dp[i - 1][j] + 1,         # deletion
                dp[i][j - 1] + 1,         # insertion
                dp[i - 1][j - 1] + cost,  # substitution
            )
    return dp[m][n]
