from .bundle import archive_entries, archive_filename, build_zip, file_payload
from .classify import Classification, classify
from .config import Settings
from .css import scan_css
from .errors import (
    ExtractionCancelled,
    ExtractionNotFound,
    ExtractionNotReady,
    ExtractorError,
    InvalidTransition,
    InvalidURLError,
    ResponseTooLarge,
)
from .fetch import fetch_asset, fetch_batch
from .models import ExtractedFile, ExtractionResult
from .pipeline import Extractor, run_extraction
from .scanner import scan_html
from .store import DBMStore, MemoryStore, ResultStore
from .urls import resolve_url

__version__ = "0.1.0"

__all__ = [
    "Classification",
    "DBMStore",
    "ExtractedFile",
    "ExtractionCancelled",
    "ExtractionNotFound",
    "ExtractionNotReady",
    "ExtractionResult",
    "Extractor",
    "ExtractorError",
    "InvalidTransition",
    "InvalidURLError",
    "MemoryStore",
    "ResponseTooLarge",
    "ResultStore",
    "Settings",
    "archive_entries",
    "archive_filename",
    "build_zip",
    "classify",
    "fetch_asset",
    "fetch_batch",
    "file_payload",
    "resolve_url",
    "run_extraction",
    "scan_css",
    "scan_html",
]
