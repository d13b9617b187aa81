import logging
from typing import Dict, Optional, Tuple

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import Settings
from .errors import ResponseTooLarge

CHUNK_SIZE = 64 * 1024


def build_session(settings: Optional[Settings] = None) -> requests.Session:
    settings = settings or Settings()
    s = requests.Session()
    retry = Retry(
        total=settings.retries,
        backoff_factor=0.5,
        status_forcelist=[429, 500, 502, 503, 504],
        allowed_methods={"GET", "HEAD"},
        raise_on_status=False,
        respect_retry_after_header=True,
    )
    adapter = HTTPAdapter(max_retries=retry, pool_connections=32, pool_maxsize=32)
    s.mount("http://", adapter)
    s.mount("https://", adapter)
    s.headers.update(settings.headers())
    apply_extra_headers(s, settings)
    return s


def apply_extra_headers(session: requests.Session, settings: Settings) -> None:
    for h in settings.extra_headers:
        if ":" not in h:
            logging.warning("invalid header (no colon): %s", h)
            continue
        k, v = h.split(":", 1)
        session.headers[k.strip()] = v.strip()


def get_limited(
    session: requests.Session,
    url: str,
    *,
    timeout: float,
    max_bytes: int,
    headers: Optional[Dict[str, str]] = None,
) -> Tuple[requests.Response, bytes]:
    """GET ``url`` and read at most ``max_bytes`` of body.

    Raises ``requests.HTTPError`` for any non-2xx status and
    ``ResponseTooLarge`` when the body is over the ceiling.
    """
    with session.get(url, timeout=timeout, stream=True, headers=headers) as resp:
        if not 200 <= resp.status_code < 300:
            raise requests.HTTPError(
                f"HTTP {resp.status_code} for {url}", response=resp
            )
        cl = resp.headers.get("Content-Length")
        if cl:
            try:
                if int(cl) > max_bytes:
                    raise ResponseTooLarge(url, max_bytes)
            except ValueError:
                pass
        buf = bytearray()
        for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
            if not chunk:
                continue
            buf.extend(chunk)
            if len(buf) > max_bytes:
                raise ResponseTooLarge(url, max_bytes)
        return resp, bytes(buf)


def response_charset(resp: requests.Response) -> Optional[str]:
    ct = resp.headers.get("Content-Type") or ""
    for part in ct.split(";")[1:]:
        k, _, v = part.partition("=")
        if k.strip().lower() == "charset" and v.strip():
            return v.strip().strip("\"'")
    return None


def decode_text(resp: requests.Response, body: bytes) -> str:
    # requests assumes ISO-8859-1 for text/* without a charset; prefer UTF-8
    enc = response_charset(resp) or "utf-8"
    try:
        text = body.decode(enc, errors="replace")
    except LookupError:
        # unknown charset, or a bytes-to-bytes codec such as base64
        logging.debug("unusable charset %r, decoding as utf-8", enc)
        text = body.decode("utf-8", errors="replace")
    return text.lstrip("\ufeff")
