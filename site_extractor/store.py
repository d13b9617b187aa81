import dbm.dumb
import json
from pathlib import Path
from threading import Lock
from typing import Dict, Optional

from .errors import ExtractionNotFound
from .models import ExtractedFile, ExtractionResult

# fields update() may merge; totals are always derived from files
UPDATABLE_FIELDS = {"status", "error"}


class ResultStore:
    def create(self, url: str) -> ExtractionResult:
        raise NotImplementedError

    def get(self, extraction_id: str) -> Optional[ExtractionResult]:
        raise NotImplementedError

    def update(self, extraction_id: str, **fields: object) -> ExtractionResult:
        raise NotImplementedError

    def append_file(self, extraction_id: str, f: ExtractedFile) -> None:
        raise NotImplementedError

    def require(self, extraction_id: str) -> ExtractionResult:
        res = self.get(extraction_id)
        if res is None:
            raise ExtractionNotFound(f"extraction not found: {extraction_id}")
        return res

    def close(self) -> None:
        pass


def _apply_update(res: ExtractionResult, fields: Dict[str, object]) -> None:
    unknown = set(fields) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"cannot update fields: {', '.join(sorted(unknown))}")
    status = fields.get("status", res.status)
    error = fields.get("error", res.error)
    res.set_status(str(status), None if error is None else str(error))
    res.recompute_totals()


class MemoryStore(ResultStore):
    def __init__(self) -> None:
        self._m: Dict[str, ExtractionResult] = {}
        self._lock = Lock()

    def create(self, url: str) -> ExtractionResult:
        res = ExtractionResult(url=url)
        with self._lock:
            self._m[res.id] = res
            return res.snapshot()

    def get(self, extraction_id: str) -> Optional[ExtractionResult]:
        with self._lock:
            res = self._m.get(extraction_id)
            return None if res is None else res.snapshot()

    def update(self, extraction_id: str, **fields: object) -> ExtractionResult:
        with self._lock:
            res = self._m.get(extraction_id)
            if res is None:
                raise ExtractionNotFound(f"extraction not found: {extraction_id}")
            _apply_update(res, fields)
            return res.snapshot()

    def append_file(self, extraction_id: str, f: ExtractedFile) -> None:
        with self._lock:
            res = self._m.get(extraction_id)
            if res is None:
                raise ExtractionNotFound(f"extraction not found: {extraction_id}")
            res.add_file(f)


class DBMStore(ResultStore):
    """Results persisted as one JSON document per id in a dbm file.

    Backed by dbm.dumb, which can be shared across worker threads.
    """

    def __init__(self, path: Path):
        path.parent.mkdir(parents=True, exist_ok=True)
        self._db = dbm.dumb.open(str(path), "c")
        self._lock = Lock()

    def _load(self, extraction_id: str) -> Optional[ExtractionResult]:
        v = self._db.get(extraction_id.encode("utf-8"))
        if v is None:
            return None
        return ExtractionResult.from_dict(json.loads(v.decode("utf-8")))

    def _save(self, res: ExtractionResult) -> None:
        self._db[res.id.encode("utf-8")] = json.dumps(res.to_dict()).encode("utf-8")

    def create(self, url: str) -> ExtractionResult:
        res = ExtractionResult(url=url)
        with self._lock:
            self._save(res)
        return res.snapshot()

    def get(self, extraction_id: str) -> Optional[ExtractionResult]:
        with self._lock:
            return self._load(extraction_id)

    def update(self, extraction_id: str, **fields: object) -> ExtractionResult:
        with self._lock:
            res = self._load(extraction_id)
            if res is None:
                raise ExtractionNotFound(f"extraction not found: {extraction_id}")
            _apply_update(res, fields)
            self._save(res)
            return res

    def append_file(self, extraction_id: str, f: ExtractedFile) -> None:
        with self._lock:
            res = self._load(extraction_id)
            if res is None:
                raise ExtractionNotFound(f"extraction not found: {extraction_id}")
            res.add_file(f)
            self._save(res)

    def close(self) -> None:
        with self._lock:
            self._db.close()


def open_store(backend: str, path: Optional[str] = None) -> ResultStore:
    if backend == "memory":
        return MemoryStore()
    if backend == "dbm":
        if not path:
            raise RuntimeError("dbm store requires a store path")
        return DBMStore(Path(path))
    raise RuntimeError(f"unknown store backend: {backend}")
