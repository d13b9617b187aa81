import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Dict, List, Optional

from .errors import InvalidTransition

PENDING = "pending"
PROCESSING = "processing"
COMPLETED = "completed"
FAILED = "failed"

TERMINAL = {COMPLETED, FAILED}

_TRANSITIONS = {
    PENDING: {PROCESSING, FAILED},
    PROCESSING: {COMPLETED, FAILED},
    COMPLETED: set(),
    FAILED: set(),
}

FILE_TYPES = ("html", "css", "js", "image", "payload", "other")


def new_id() -> str:
    return str(uuid.uuid4())


def short_token() -> str:
    return uuid.uuid4().hex[:8]


def utc_timestamp() -> str:
    # RFC3339 UTC timestamp without microseconds
    return (
        datetime.now(timezone.utc)
        .replace(microsecond=0)
        .isoformat()
        .replace("+00:00", "Z")
    )


def byte_length(content: str) -> int:
    return len(content.encode("utf-8"))


def check_transition(current: str, new: str) -> None:
    if new not in _TRANSITIONS:
        raise InvalidTransition(f"unknown status: {new!r}")
    if current == new:
        return
    if new not in _TRANSITIONS[current]:
        raise InvalidTransition(f"cannot move extraction from {current} to {new}")


@dataclass(frozen=True)
class ExtractedFile:
    """One fetched or synthesized artifact.

    ``content`` is either UTF-8 text or, when ``binary`` is set, a
    ``data:<mime>;base64,...`` string. ``size`` is the UTF-8 byte length of
    ``content`` exactly as stored.
    """

    name: str
    path: str
    type: str
    content: str
    mime_type: str
    binary: bool = False
    id: str = field(default_factory=new_id)
    size: int = -1

    def __post_init__(self) -> None:
        if self.type not in FILE_TYPES:
            raise ValueError(f"unknown file type: {self.type!r}")
        # size always mirrors the stored representation
        object.__setattr__(self, "size", byte_length(self.content))

    @classmethod
    def create(
        cls,
        name: str,
        folder: str,
        type: str,
        content: str,
        mime_type: str,
        *,
        binary: bool = False,
    ) -> "ExtractedFile":
        path = f"{folder}/{name}" if folder else name
        return cls(
            name=name,
            path=path,
            type=type,
            content=content,
            mime_type=mime_type,
            binary=binary,
        )

    def to_dict(self, include_content: bool = True) -> Dict[str, object]:
        d: Dict[str, object] = {
            "id": self.id,
            "name": self.name,
            "path": self.path,
            "type": self.type,
            "size": self.size,
            "mimeType": self.mime_type,
            "binary": self.binary,
        }
        if include_content:
            d["content"] = self.content
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, object]) -> "ExtractedFile":
        return cls(
            id=str(d["id"]),
            name=str(d["name"]),
            path=str(d["path"]),
            type=str(d["type"]),
            content=str(d["content"]),
            mime_type=str(d["mimeType"]),
            binary=bool(d.get("binary", False)),
        )


@dataclass
class ExtractionResult:
    url: str
    id: str = field(default_factory=new_id)
    status: str = PENDING
    files: List[ExtractedFile] = field(default_factory=list)
    total_size: int = 0
    total_files: int = 0
    extracted_at: str = field(default_factory=utc_timestamp)
    error: Optional[str] = None

    def recompute_totals(self) -> None:
        self.total_files = len(self.files)
        self.total_size = sum(f.size for f in self.files)

    def add_file(self, f: ExtractedFile) -> None:
        self.files.append(f)
        self.recompute_totals()

    def set_status(self, status: str, error: Optional[str] = None) -> None:
        check_transition(self.status, status)
        self.status = status
        self.error = error if status == FAILED else None

    def find_file(self, file_id: str) -> Optional[ExtractedFile]:
        for f in self.files:
            if f.id == file_id:
                return f
        return None

    @property
    def finished(self) -> bool:
        return self.status in TERMINAL

    def snapshot(self) -> "ExtractionResult":
        return replace(self, files=list(self.files))

    def to_dict(self, include_content: bool = True) -> Dict[str, object]:
        d: Dict[str, object] = {
            "id": self.id,
            "url": self.url,
            "status": self.status,
            "files": [f.to_dict(include_content) for f in self.files],
            "totalSize": self.total_size,
            "totalFiles": self.total_files,
            "extractedAt": self.extracted_at,
        }
        if self.error is not None:
            d["error"] = self.error
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, object]) -> "ExtractionResult":
        res = cls(
            url=str(d["url"]),
            id=str(d["id"]),
            status=str(d["status"]),
            files=[ExtractedFile.from_dict(f) for f in d.get("files") or []],
            extracted_at=str(d["extractedAt"]),
            error=d.get("error"),  # type: ignore[arg-type]
        )
        res.recompute_totals()
        return res
