import os
import re
from typing import Optional
from urllib.parse import unquote, urldefrag, urljoin, urlparse

NETWORK_SCHEMES = {"http", "https"}
NON_FETCHABLE_PREFIXES = ("#", "mailto:", "tel:", "javascript:", "data:", "blob:", "about:")

INVALID_FILENAME_CHARS_RE = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def can_fetch_url(u: Optional[str]) -> bool:
    if not u:
        return False
    u = u.strip()
    if not u:
        return False
    if u.lower().startswith(NON_FETCHABLE_PREFIXES):
        return False
    return True


def is_network_url(u: str) -> bool:
    try:
        p = urlparse(u)
    except ValueError:
        return False
    return p.scheme.lower() in NETWORK_SCHEMES and bool(p.netloc)


def resolve_url(base: str, reference: Optional[str]) -> Optional[str]:
    """Absolute http(s) URL for ``reference`` relative to ``base``, or None."""
    if not can_fetch_url(reference):
        return None
    try:
        absolute = urljoin(base, reference.strip())
        absolute, _ = urldefrag(absolute)
    except ValueError:
        return None
    if not is_network_url(absolute):
        return None
    return absolute


def is_same_origin(base: str, other: str) -> bool:
    b, o = urlparse(base), urlparse(other)
    return (b.scheme, b.netloc) == (o.scheme, o.netloc)


def url_extension(u: str) -> str:
    try:
        path = urlparse(u).path
    except ValueError:
        return ""
    return os.path.splitext(path)[1].lower().lstrip(".")


def sanitize_filename(name: str) -> str:
    name = INVALID_FILENAME_CHARS_RE.sub("_", name)
    if name.startswith("."):
        name = "_" + name[1:]
    return name[:200]


def filename_for_url(u: str) -> str:
    """Last path segment of ``u`` without query; empty when there is none."""
    try:
        path = urlparse(u).path
    except ValueError:
        return ""
    last = path.rsplit("/", 1)[-1]
    return sanitize_filename(unquote(last))
