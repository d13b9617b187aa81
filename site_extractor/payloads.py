import json
import logging
from typing import Iterable, List

import requests

from .config import COMMON_API_ENDPOINTS, Settings
from .errors import ResponseTooLarge
from .literals import api_paths
from .models import ExtractedFile
from .net import decode_text, get_limited
from .urls import is_same_origin, resolve_url


def probe_candidates(page_url: str, scripts: Iterable[str]) -> List[str]:
    """Same-origin endpoints worth a speculative GET, in discovery order."""
    found: List[str] = []
    for script in scripts:
        found.extend(api_paths(script))
    found.extend(COMMON_API_ENDPOINTS)
    out: List[str] = []
    for ref in found:
        u = resolve_url(page_url, ref)
        if u is None or u in out:
            continue
        if not is_same_origin(page_url, u):
            logging.debug("probe skipped, cross-origin: %s", u)
            continue
        out.append(u)
    return out


def probe_payloads(
    session: requests.Session,
    page_url: str,
    scripts: Iterable[str],
    settings: Settings,
) -> List[ExtractedFile]:
    files: List[ExtractedFile] = []
    for api_url in probe_candidates(page_url, scripts)[: settings.max_probes]:
        try:
            resp, body = get_limited(
                session,
                api_url,
                timeout=settings.probe_timeout,
                max_bytes=settings.max_asset_bytes,
                headers={"Accept": "application/json"},
            )
        except (requests.RequestException, ResponseTooLarge, ValueError) as e:
            logging.debug("no payload at %s: %s", api_url, e)
            continue
        content_type = resp.headers.get("Content-Type") or ""
        if "json" not in content_type.lower():
            logging.debug("no payload at %s: content type %r", api_url, content_type)
            continue
        try:
            data = json.loads(decode_text(resp, body))
        except ValueError:
            logging.debug("no payload at %s: invalid JSON", api_url)
            continue
        # empty objects and arrays are still payloads
        if not data and not isinstance(data, (dict, list)):
            continue
        record = {
            "url": api_url,
            "status": resp.status_code,
            "headers": dict(resp.headers),
            "data": data,
        }
        name = f"api-response-{len(files) + 1}.json"
        files.append(
            ExtractedFile.create(
                name,
                "payloads",
                "payload",
                json.dumps(record, indent=2, ensure_ascii=False),
                "application/json",
            )
        )
        logging.info("captured payload: %s", api_url)
    return files
