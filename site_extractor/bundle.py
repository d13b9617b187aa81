import base64
import io
import zipfile
from typing import Iterator, Tuple
from urllib.parse import urlparse

from .errors import ExtractionNotFound, ExtractionNotReady
from .models import COMPLETED, ExtractedFile, ExtractionResult
from .urls import sanitize_filename


def file_bytes(f: ExtractedFile) -> bytes:
    """Raw bytes of a stored file; binary files are unwrapped from their data URI."""
    if f.binary:
        _, sep, b64 = f.content.partition(";base64,")
        if sep:
            return base64.b64decode(b64)
    return f.content.encode("utf-8")


def _require_completed(result: ExtractionResult) -> None:
    if result.status != COMPLETED:
        raise ExtractionNotReady(f"extraction {result.id} is {result.status}, not completed")


def archive_entries(result: ExtractionResult) -> Iterator[Tuple[str, bytes]]:
    _require_completed(result)
    for f in result.files:
        yield f.path, file_bytes(f)


def file_payload(result: ExtractionResult, file_id: str) -> Tuple[bytes, str, str]:
    """(content, mime type, file name) for serving one file on its own."""
    _require_completed(result)
    f = result.find_file(file_id)
    if f is None:
        raise ExtractionNotFound(f"file not found: {file_id}")
    return file_bytes(f), f.mime_type, f.name


def build_zip(result: ExtractionResult) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as z:
        for path, data in archive_entries(result):
            z.writestr(path, data)
    return buf.getvalue()


def archive_filename(result: ExtractionResult) -> str:
    host = sanitize_filename(urlparse(result.url).hostname or "") or "site"
    return f"{host}-sources.zip"
