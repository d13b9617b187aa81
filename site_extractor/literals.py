"""Best-effort string-literal scanning of script text.

Heuristic only: patterns match what bundlers and hand-written code commonly
emit, and anything they miss is simply not discovered.
"""
import re
from typing import List

DYNAMIC_IMPORT_RE = re.compile(
    r"""(?:\bimport\s*\(\s*(?P<q1>["'`])(?P<u1>[^"'`\s]+)(?P=q1)\s*\)"""
    r"""|\brequire\s*\(\s*(?P<q2>["'])(?P<u2>[^"'\s]+)(?P=q2)\s*\)"""
    r"""|__webpack_require__\.e\(\s*\d+\s*\)\.then\([^)]*__webpack_require__\.bind\([^,]+,\s*(?P<q3>["'])(?P<u3>[^"']+)(?P=q3))"""
)

API_LITERAL_RE = re.compile(
    r"""(?P<q>["'`])(?P<u>/api/[^"'`\s]*|https?://[^"'`\s]*/api/[^"'`\s]*|/graphql|/v\d+/[^"'`\s]*)(?P=q)"""
)

PATHLIKE_RE = re.compile(r"^(?:https?:)?//|^\.{0,2}/|\.[A-Za-z0-9]{1,5}(?:[?#].*)?$")


def looks_like_path(s: str) -> bool:
    # keeps "./chunk.js", "/static/x", "https://cdn/x", "x.mjs"; drops "react"
    return bool(PATHLIKE_RE.search(s))


def import_targets(script: str) -> List[str]:
    """dynamic import(), require() and webpack chunk targets found in ``script``."""
    out: List[str] = []
    for m in DYNAMIC_IMPORT_RE.finditer(script):
        u = m.group("u1") or m.group("u2") or m.group("u3")
        if u and looks_like_path(u) and u not in out:
            out.append(u)
    return out


def api_paths(script: str) -> List[str]:
    out: List[str] = []
    for m in API_LITERAL_RE.finditer(script):
        u = m.group("u")
        if u not in out:
            out.append(u)
    return out
