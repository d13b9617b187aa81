import base64
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional

import requests

from .classify import classify, normalize_mime
from .config import Settings
from .errors import ResponseTooLarge
from .models import ExtractedFile, short_token
from .net import decode_text, get_limited
from .urls import filename_for_url, is_network_url

BINARY_ACCEPT = "application/octet-stream,*/*;q=0.8"
TEXT_ACCEPT = "text/css,application/javascript,text/html,*/*;q=0.8"


@dataclass
class Page:
    url: str
    html: str


@dataclass
class FetchedAsset:
    url: str
    file: ExtractedFile


def data_uri(mime: str, body: bytes) -> str:
    return f"data:{mime};base64,{base64.b64encode(body).decode('ascii')}"


def fetch_page(session: requests.Session, url: str, settings: Settings) -> Page:
    """Root document. Errors propagate; the caller treats them as fatal."""
    resp, body = get_limited(
        session, url, timeout=settings.page_timeout, max_bytes=settings.max_page_bytes
    )
    return Page(
        url=resp.url or url,
        html=decode_text(resp, body),
    )


def should_skip(url: Optional[str], settings: Settings) -> bool:
    if not url:
        return True
    if len(url) > settings.max_url_length:
        logging.debug("skip overlong url (%d chars)", len(url))
        return True
    return not is_network_url(url)


def fetch_asset(
    session: requests.Session, url: str, settings: Settings
) -> Optional[ExtractedFile]:
    if should_skip(url, settings):
        return None
    guess = classify(url)
    try:
        resp, body = get_limited(
            session,
            url,
            timeout=settings.asset_timeout,
            max_bytes=settings.max_asset_bytes,
            headers={"Accept": BINARY_ACCEPT if guess.binary else TEXT_ACCEPT},
        )
    except (requests.RequestException, ResponseTooLarge, ValueError) as e:
        logging.warning("failed %s: %s", url, e)
        return None

    declared = resp.headers.get("Content-Type")
    info = classify(url, declared)
    mime = normalize_mime(declared) or info.mime_type
    name = filename_for_url(url) or f"asset-{short_token()}"

    if info.binary:
        content = data_uri(mime, body)
    else:
        content = decode_text(resp, body)

    logging.info("downloaded asset: %s (%d bytes)", url, len(body))
    return ExtractedFile.create(
        name,
        info.folder,
        info.category,
        content,
        declared or info.mime_type,
        binary=info.binary,
    )


def fetch_batch(
    session: requests.Session,
    urls: Iterable[str],
    settings: Settings,
    on_file: Optional[Callable[[str, ExtractedFile], None]] = None,
) -> List[FetchedAsset]:
    """Fetch ``urls`` concurrently and wait for every one to settle.

    ``on_file`` runs on the worker thread as each file arrives, so it may be
    called concurrently. Results are in completion order.
    """
    url_list = list(dict.fromkeys(urls))
    done: List[FetchedAsset] = []
    if not url_list:
        return done

    def work(u: str) -> Optional[ExtractedFile]:
        f = fetch_asset(session, u, settings)
        if f is not None and on_file is not None:
            on_file(u, f)
        return f

    with ThreadPoolExecutor(max_workers=max(1, min(settings.batch_size, len(url_list)))) as pool:
        future_map = {pool.submit(work, u): u for u in url_list}
        for fut in as_completed(future_map):
            u = future_map[fut]
            f = fut.result()
            if f is not None:
                done.append(FetchedAsset(url=u, file=f))
    return done
