import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set

from bs4 import BeautifulSoup, FeatureNotFound

from .classify import FONT_EXTS
from .css import parse_css_refs
from .literals import import_targets
from .models import ExtractedFile, short_token
from .urls import resolve_url, url_extension

SRCSET_SPLIT_RE = re.compile(r"\s*,\s*")
WS_RE = re.compile(r"\s+")

ASSET_LINK_RELS = {
    "stylesheet",
    "icon",
    "apple-touch-icon",
    "manifest",
    "preload",
    "prefetch",
    "modulepreload",
}

MEDIA_SELECTOR = "source, video, audio, embed, object, iframe, track"


@dataclass
class PageScan:
    """What one HTML document references.

    ``assets`` are absolute URLs. ``scripts`` are the inline script bodies,
    kept for payload probing.
    """

    assets: Set[str] = field(default_factory=set)
    inline_files: List[ExtractedFile] = field(default_factory=list)
    scripts: List[str] = field(default_factory=list)


# -------------------- HTML utils --------------------


def bs4_parse(html: str) -> BeautifulSoup:
    try:
        return BeautifulSoup(html, "lxml")
    except FeatureNotFound:
        return BeautifulSoup(html, "html.parser")


def effective_base_url(soup: BeautifulSoup, fallback: str) -> str:
    tag = soup.find("base", href=True)
    if tag is not None:
        base = resolve_url(fallback, tag.get("href"))
        if base:
            return base
    return fallback


def parse_srcset(v: str) -> List[str]:
    urls: List[str] = []
    if not v:
        return urls
    for cand in SRCSET_SPLIT_RE.split(v.strip()):
        if not cand:
            continue
        parts = WS_RE.split(cand.strip())
        if parts and parts[0]:
            urls.append(parts[0])
    return urls


def _rels(tag) -> Set[str]:
    rel = tag.get("rel") or []
    if isinstance(rel, str):
        rel = rel.split()
    return {r.lower() for r in rel}


def _text_of(tag) -> str:
    return tag.string or ""


# -------------------- Scanner --------------------


class _Collector:
    def __init__(self, base: str):
        self.base = base
        self.scan = PageScan()

    def add(self, ref: Optional[str]) -> None:
        absu = resolve_url(self.base, ref)
        if absu is None:
            if ref:
                logging.debug("skip unresolvable reference: %.120s", ref)
            return
        self.scan.assets.add(absu)

    def add_all(self, refs: Iterable[str]) -> None:
        for ref in refs:
            self.add(ref)


def scan_html(html: str, base_url: str, *, scan_literals: bool = True) -> PageScan:
    soup = bs4_parse(html)
    c = _Collector(effective_base_url(soup, base_url))

    for link in soup.find_all("link", href=True):
        href = link.get("href")
        rels = _rels(link)
        if rels & ASSET_LINK_RELS or url_extension(href) in FONT_EXTS:
            c.add(href)

    for tag in soup.find_all("script", src=True):
        c.add(tag.get("src"))

    for tag in soup.find_all("img"):
        c.add(tag.get("src"))
        for u in parse_srcset(tag.get("srcset", "")):
            c.add(u)

    for tag in soup.select(MEDIA_SELECTOR):
        c.add(tag.get("src") or tag.get("data"))
        if tag.name == "source":
            for u in parse_srcset(tag.get("srcset", "")):
                c.add(u)
        if tag.name == "video":
            c.add(tag.get("poster"))

    for tag in soup.find_all(style=True):
        c.add_all(parse_css_refs(tag.get("style") or ""))

    for tag in soup.find_all("script"):
        if tag.get("src"):
            continue
        text = _text_of(tag)
        if not text.strip():
            continue
        c.scan.scripts.append(text)
        name = f"inline-script-{short_token()}.js"
        c.scan.inline_files.append(
            ExtractedFile.create(name, "js", "js", text, "application/javascript")
        )
        if scan_literals:
            c.add_all(import_targets(text))

    for tag in soup.find_all("style"):
        text = _text_of(tag)
        if not text.strip():
            continue
        name = f"inline-style-{short_token()}.css"
        c.scan.inline_files.append(
            ExtractedFile.create(name, "css", "css", text, "text/css")
        )
        c.add_all(parse_css_refs(text))

    return c.scan
