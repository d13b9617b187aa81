from dataclasses import dataclass
from typing import Optional

from .urls import url_extension

# -------------------- Tables --------------------

EXT_CATEGORY = {
    "html": "html",
    "htm": "html",
    "css": "css",
    "js": "js",
    "mjs": "js",
    "cjs": "js",
    "jsx": "js",
    "ts": "js",
    "tsx": "js",
    "png": "image",
    "jpg": "image",
    "jpeg": "image",
    "gif": "image",
    "svg": "image",
    "webp": "image",
    "ico": "image",
    "bmp": "image",
    "tif": "image",
    "tiff": "image",
    "avif": "image",
    "json": "payload",
    "xml": "payload",
    "webmanifest": "payload",
}

FONT_EXTS = {"woff", "woff2", "ttf", "eot", "otf"}
MEDIA_EXTS = {"mp4", "webm", "ogg", "ogv", "avi", "mov", "mkv", "mp3", "wav", "flac", "aac", "m4a"}

BINARY_EXTS = {
    "png",
    "jpg",
    "jpeg",
    "gif",
    "webp",
    "ico",
    "bmp",
    "tif",
    "tiff",
    "avif",
    "woff",
    "woff2",
    "ttf",
    "eot",
    "otf",
    "mp4",
    "webm",
    "ogg",
    "ogv",
    "avi",
    "mov",
    "mkv",
    "mp3",
    "wav",
    "flac",
    "aac",
    "m4a",
    "pdf",
    "zip",
    "gz",
    "wasm",
}

EXT_MIME = {
    "html": "text/html",
    "htm": "text/html",
    "css": "text/css",
    "js": "application/javascript",
    "mjs": "application/javascript",
    "cjs": "application/javascript",
    "jsx": "application/javascript",
    "ts": "application/javascript",
    "tsx": "application/javascript",
    "json": "application/json",
    "webmanifest": "application/manifest+json",
    "xml": "application/xml",
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "svg": "image/svg+xml",
    "webp": "image/webp",
    "ico": "image/x-icon",
    "bmp": "image/bmp",
    "tif": "image/tiff",
    "tiff": "image/tiff",
    "avif": "image/avif",
    "woff": "font/woff",
    "woff2": "font/woff2",
    "ttf": "font/ttf",
    "otf": "font/otf",
    "eot": "application/vnd.ms-fontobject",
    "mp4": "video/mp4",
    "webm": "video/webm",
    "ogv": "video/ogg",
    "ogg": "audio/ogg",
    "mov": "video/quicktime",
    "avi": "video/x-msvideo",
    "mkv": "video/x-matroska",
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
    "flac": "audio/flac",
    "aac": "audio/aac",
    "m4a": "audio/mp4",
    "pdf": "application/pdf",
    "zip": "application/zip",
    "gz": "application/gzip",
    "wasm": "application/wasm",
    "txt": "text/plain",
}

CATEGORY_FOLDER = {
    "css": "css",
    "js": "js",
    "image": "images",
    "payload": "payloads",
}

DEFAULT_MIME = "application/octet-stream"

# -------------------- Classifier --------------------


@dataclass(frozen=True)
class Classification:
    category: str
    mime_type: str
    folder: str
    binary: bool


def normalize_mime(content_type: Optional[str]) -> str:
    if not content_type:
        return ""
    return content_type.split(";")[0].strip().lower()


def category_for_mime(mime: str) -> Optional[str]:
    if not mime:
        return None
    if mime in ("text/html", "application/xhtml+xml"):
        return "html"
    if mime == "text/css":
        return "css"
    if "javascript" in mime or mime == "text/ecmascript":
        return "js"
    if mime.startswith("image/"):
        return "image"
    if "json" in mime or mime.endswith("/xml") or mime.endswith("+xml"):
        return "payload"
    return None


def is_binary_mime(mime: str) -> bool:
    if not mime:
        return False
    if mime == "image/svg+xml":
        return False
    return mime.startswith(("image/", "font/", "audio/", "video/")) or mime in {
        "application/octet-stream",
        "application/pdf",
        "application/zip",
        "application/gzip",
        "application/wasm",
        "application/font-woff",
        "application/x-font-ttf",
        "application/vnd.ms-fontobject",
    }


def classify(url: str, declared_mime: Optional[str] = None) -> Classification:
    """Category, canonical MIME type, output folder and transfer mode.

    The extension decides when it is recognised; otherwise the declared
    content type does. Every input maps to some classification.
    """
    ext = url_extension(url)
    declared = normalize_mime(declared_mime)

    category = EXT_CATEGORY.get(ext)
    font = ext in FONT_EXTS
    if category is None and not font and ext not in MEDIA_EXTS:
        category = category_for_mime(declared)
        font = declared.startswith("font/") or "font" in declared
    if category is None:
        category = "other"

    mime = EXT_MIME.get(ext) or declared or DEFAULT_MIME

    if font and category == "other":
        folder = "fonts"
    else:
        folder = CATEGORY_FOLDER.get(category, "assets")

    if ext in BINARY_EXTS:
        binary = True
    elif ext in EXT_MIME:
        binary = False
    else:
        binary = is_binary_mime(declared)
    return Classification(category=category, mime_type=mime, folder=folder, binary=binary)
