import logging
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from dataclasses import dataclass
from threading import Event, Lock, Thread
from typing import Callable, Deque, Dict, Optional
from urllib.parse import urlparse

import requests

from .config import Settings
from .css import scan_css
from .errors import ExtractionCancelled, ExtractorError, InvalidURLError, ResponseTooLarge
from .fetch import fetch_batch, fetch_page
from .models import COMPLETED, FAILED, PROCESSING, ExtractedFile, ExtractionResult
from .net import build_session
from .payloads import probe_payloads
from .scanner import PageScan, scan_html
from .store import ResultStore, open_store

CANCELLED_MESSAGE = "extraction cancelled"


def validate_root_url(url: str) -> str:
    url = (url or "").strip()
    try:
        p = urlparse(url)
    except ValueError:
        p = None
    if p is None or p.scheme not in {"http", "https"} or not p.netloc:
        raise InvalidURLError("Please enter a valid URL")
    return url


def _check_cancel(cancel: Optional[Event]) -> None:
    if cancel is not None and cancel.is_set():
        raise ExtractionCancelled(CANCELLED_MESSAGE)


# -------------------- Asset drain --------------------


def drain_assets(
    session: requests.Session,
    store: ResultStore,
    extraction_id: str,
    scan: PageScan,
    settings: Settings,
    cancel: Optional[Event] = None,
) -> None:
    """Fetch the page's assets in sequential batches.

    Stylesheets referenced by the page are scanned once fetched and their
    references join the queue; stylesheets found that way are fetched but
    not scanned again.
    """
    pending: Deque[str] = deque(sorted(scan.assets))
    seen = set(pending)
    from_css = set()

    def on_file(u: str, f: ExtractedFile) -> None:
        store.append_file(extraction_id, f)

    batch_no = 0
    while pending:
        _check_cancel(cancel)
        batch = [pending.popleft() for _ in range(min(settings.batch_size, len(pending)))]
        batch_no += 1
        logging.debug("batch %d: %d assets, %d queued", batch_no, len(batch), len(pending))
        for item in fetch_batch(session, batch, settings, on_file=on_file):
            if item.file.type != "css" or item.file.binary or item.url in from_css:
                continue
            for u in sorted(scan_css(item.file.content, item.url)):
                if u in seen:
                    continue
                seen.add(u)
                from_css.add(u)
                pending.append(u)


# -------------------- Orchestrator --------------------


def _extract(
    session: requests.Session,
    store: ResultStore,
    extraction_id: str,
    url: str,
    include_payloads: bool,
    include_source_page: bool,
    settings: Settings,
    cancel: Optional[Event],
) -> None:
    _check_cancel(cancel)
    store.update(extraction_id, status=PROCESSING)
    logging.info("GET %s", url)
    try:
        page = fetch_page(session, url, settings)
    except (requests.RequestException, ResponseTooLarge) as e:
        raise ExtractorError(f"failed to fetch {url}: {e}") from e

    scan = scan_html(page.html, page.url, scan_literals=settings.scan_script_literals)
    logging.info(
        "found %d assets and %d inline blocks on %s",
        len(scan.assets),
        len(scan.inline_files),
        page.url,
    )
    for f in scan.inline_files:
        store.append_file(extraction_id, f)
    if include_source_page:
        store.append_file(
            extraction_id,
            ExtractedFile.create("index.html", "", "html", page.html, "text/html"),
        )

    drain_assets(session, store, extraction_id, scan, settings, cancel)

    if include_payloads:
        _check_cancel(cancel)
        for f in probe_payloads(session, page.url, scan.scripts, settings):
            store.append_file(extraction_id, f)

    store.update(extraction_id, status=COMPLETED)


def _mark_failed(store: ResultStore, extraction_id: str, message: str) -> None:
    res = store.get(extraction_id)
    if res is not None and not res.finished:
        store.update(extraction_id, status=FAILED, error=message)


def run_extraction(
    session: requests.Session,
    store: ResultStore,
    extraction_id: str,
    url: str,
    *,
    include_payloads: bool = True,
    include_source_page: bool = True,
    settings: Optional[Settings] = None,
    cancel: Optional[Event] = None,
) -> ExtractionResult:
    """Run one extraction to a terminal status and return the final record."""
    settings = settings or Settings()
    try:
        _extract(
            session,
            store,
            extraction_id,
            url,
            include_payloads,
            include_source_page,
            settings,
            cancel,
        )
    except ExtractionCancelled as e:
        logging.warning("extraction %s cancelled", extraction_id)
        _mark_failed(store, extraction_id, str(e))
    except Exception as e:
        logging.error("extraction %s failed: %s", extraction_id, e)
        _mark_failed(store, extraction_id, str(e) or e.__class__.__name__)
    res = store.require(extraction_id)
    logging.info(
        "extraction %s %s: %d files, %d bytes",
        extraction_id,
        res.status,
        res.total_files,
        res.total_size,
    )
    return res


# -------------------- Service --------------------


@dataclass
class _Job:
    future: "Future[ExtractionResult]"
    cancel: Event


class Extractor:
    """Runs extractions in the background against a result store."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        store: Optional[ResultStore] = None,
        session_factory: Optional[Callable[[Settings], requests.Session]] = None,
    ):
        self.settings = settings or Settings()
        self.store = store or open_store(
            self.settings.store_backend, self.settings.store_path
        )
        self.session_factory = session_factory or build_session
        self._pool = ThreadPoolExecutor(
            max_workers=max(1, self.settings.max_extractions),
            thread_name_prefix="extraction",
        )
        self._jobs: Dict[str, _Job] = {}
        self._lock = Lock()

    def __enter__(self) -> "Extractor":
        return self

    def __exit__(self, *exc) -> None:
        self.shutdown()

    def start_extraction(
        self, url: str, include_payloads: bool = True, include_source_page: bool = True
    ) -> ExtractionResult:
        url = validate_root_url(url)
        res = self.store.create(url)
        cancel = Event()
        with self._lock:
            fut = self._pool.submit(
                self._run, res.id, url, include_payloads, include_source_page, cancel
            )
            self._jobs[res.id] = _Job(future=fut, cancel=cancel)
        return res

    def _run(
        self,
        extraction_id: str,
        url: str,
        include_payloads: bool,
        include_source_page: bool,
        cancel: Event,
    ) -> ExtractionResult:
        with self.session_factory(self.settings) as session:
            return run_extraction(
                session,
                self.store,
                extraction_id,
                url,
                include_payloads=include_payloads,
                include_source_page=include_source_page,
                settings=self.settings,
                cancel=cancel,
            )

    def get(self, extraction_id: str) -> Optional[ExtractionResult]:
        return self.store.get(extraction_id)

    def wait(self, extraction_id: str, timeout: Optional[float] = None) -> ExtractionResult:
        with self._lock:
            job = self._jobs.get(extraction_id)
        if job is not None:
            job.future.result(timeout=timeout)
        return self.store.require(extraction_id)

    def cancel(self, extraction_id: str) -> bool:
        with self._lock:
            job = self._jobs.get(extraction_id)
        if job is None or job.future.done():
            return False
        job.cancel.set()
        return True

    def shutdown(self, wait: bool = True) -> None:
        if wait:
            self._pool.shutdown(wait=True)
            self.store.close()
            return
        with self._lock:
            for job in self._jobs.values():
                job.cancel.set()
        self._pool.shutdown(wait=False)
        # close once the runs already in flight have drained
        Thread(
            target=self._close_when_idle, name="extraction-close", daemon=True
        ).start()

    def _close_when_idle(self) -> None:
        with self._lock:
            futures = [job.future for job in self._jobs.values()]
        wait_futures(futures)
        self.store.close()
