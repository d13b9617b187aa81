import re
from typing import List, Set

from .urls import can_fetch_url, resolve_url

CSS_URL_RE = re.compile(r"url\(\s*([\"']?)([^)\"']+)\1\s*\)", re.IGNORECASE)
CSS_IMPORT_RE = re.compile(
    r"@import\s+(?:url\()?\s*([\"']?)([^\)\"';]+)\1\s*\)?\s*[^;]*;?",
    re.IGNORECASE,
)
CSS_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)


def parse_css_refs(text: str) -> List[str]:
    """Raw @import targets and url(...) references in ``text``, in order."""
    text = CSS_COMMENT_RE.sub("", text)
    refs: List[str] = []
    for m in CSS_IMPORT_RE.finditer(text):
        u = m.group(2).strip()
        if can_fetch_url(u) and u not in refs:
            refs.append(u)
    for m in CSS_URL_RE.finditer(text):
        u = m.group(2).strip()
        if can_fetch_url(u) and u not in refs:
            refs.append(u)
    return refs


def scan_css(css_text: str, base_url: str) -> Set[str]:
    """Absolute asset URLs referenced by a stylesheet located at ``base_url``."""
    urls: Set[str] = set()
    for ref in parse_css_refs(css_text):
        absu = resolve_url(base_url, ref)
        if absu:
            urls.add(absu)
    return urls
