from __future__ import annotations

import tempfile
import threading
import unittest
from pathlib import Path

from site_extractor.errors import ExtractionNotFound, InvalidTransition
from site_extractor.models import ExtractedFile, ExtractionResult
from site_extractor.store import DBMStore, MemoryStore, open_store


def _file(name: str, content: str) -> ExtractedFile:
    return ExtractedFile.create(name, "js", "js", content, "application/javascript")


class StoreContract:
    def make_store(self):
        raise NotImplementedError

    def setUp(self) -> None:
        self.store = self.make_store()

    def tearDown(self) -> None:
        self.store.close()

    def test_create_starts_pending_and_empty(self) -> None:
        res = self.store.create("https://ex.com/")
        self.assertEqual(res.status, "pending")
        self.assertEqual((res.files, res.total_files, res.total_size), ([], 0, 0))
        self.assertIsNone(res.error)
        self.assertTrue(res.extracted_at.endswith("Z"))
        self.assertEqual(self.store.get(res.id).url, "https://ex.com/")

    def test_unknown_ids(self) -> None:
        self.assertIsNone(self.store.get("nope"))
        with self.assertRaises(ExtractionNotFound):
            self.store.update("nope", status="processing")
        with self.assertRaises(ExtractionNotFound):
            self.store.append_file("nope", _file("a.js", "a"))
        with self.assertRaises(ExtractionNotFound):
            self.store.require("nope")

    def test_append_recomputes_totals(self) -> None:
        res = self.store.create("https://ex.com/")
        self.store.append_file(res.id, _file("a.js", "abc"))
        self.store.append_file(res.id, _file("b.js", "é"))
        got = self.store.get(res.id)
        self.assertEqual([f.name for f in got.files], ["a.js", "b.js"])
        self.assertEqual(got.total_files, 2)
        self.assertEqual(got.total_size, 3 + 2)
        self.assertEqual(got.total_size, sum(f.size for f in got.files))

    def test_status_machine(self) -> None:
        res = self.store.create("https://ex.com/")
        self.assertEqual(self.store.update(res.id, status="processing").status, "processing")
        done = self.store.update(res.id, status="completed")
        self.assertEqual(done.status, "completed")
        with self.assertRaises(InvalidTransition):
            self.store.update(res.id, status="failed", error="late")
        with self.assertRaises(InvalidTransition):
            self.store.update(res.id, status="processing")

    def test_failed_carries_error(self) -> None:
        res = self.store.create("https://ex.com/")
        failed = self.store.update(res.id, status="failed", error="boom")
        self.assertEqual((failed.status, failed.error), ("failed", "boom"))
        self.assertEqual(self.store.get(res.id).to_dict()["error"], "boom")

    def test_completed_has_no_error(self) -> None:
        res = self.store.create("https://ex.com/")
        self.store.update(res.id, status="processing")
        done = self.store.update(res.id, status="completed", error="ignored")
        self.assertIsNone(done.error)
        self.assertNotIn("error", done.to_dict())

    def test_totals_cannot_be_written(self) -> None:
        res = self.store.create("https://ex.com/")
        with self.assertRaises(ValueError):
            self.store.update(res.id, total_size=99)

    def test_concurrent_appends_are_not_lost(self) -> None:
        res = self.store.create("https://ex.com/")
        barrier = threading.Barrier(8)

        def worker(n: int) -> None:
            barrier.wait()
            for i in range(25):
                self.store.append_file(res.id, _file(f"{n}-{i}.js", "x" * (i + 1)))

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        got = self.store.get(res.id)
        self.assertEqual(got.total_files, 200)
        self.assertEqual(len(got.files), 200)
        self.assertEqual(got.total_size, 8 * sum(range(1, 26)))


class TestMemoryStore(StoreContract, unittest.TestCase):
    def make_store(self):
        return MemoryStore()

    def test_get_returns_a_snapshot(self) -> None:
        res = self.store.create("https://ex.com/")
        before = self.store.get(res.id)
        self.store.append_file(res.id, _file("a.js", "a"))
        self.assertEqual(before.files, [])
        self.assertEqual(before.total_files, 0)
        self.assertEqual(self.store.get(res.id).total_files, 1)


class TestDBMStore(StoreContract, unittest.TestCase):
    def make_store(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        return DBMStore(Path(self._tmp.name) / "results.db")

    def test_results_survive_reopen(self) -> None:
        res = self.store.create("https://ex.com/")
        self.store.append_file(res.id, _file("a.js", "abc"))
        self.store.update(res.id, status="failed", error="root fetch failed")
        self.store.close()

        self.store = DBMStore(Path(self._tmp.name) / "results.db")
        got = self.store.get(res.id)
        self.assertEqual(got.status, "failed")
        self.assertEqual(got.error, "root fetch failed")
        self.assertEqual(got.files[0].content, "abc")
        self.assertEqual(got.total_size, 3)


class TestOpenStore(unittest.TestCase):
    def test_backends(self) -> None:
        self.assertIsInstance(open_store("memory"), MemoryStore)
        with self.assertRaises(RuntimeError):
            open_store("dbm")
        with self.assertRaises(RuntimeError):
            open_store("redis")


class TestModels(unittest.TestCase):
    def test_size_always_matches_stored_content(self) -> None:
        f = ExtractedFile(name="a", path="x/a", type="other", content="日本", mime_type="text/plain", size=1)
        self.assertEqual(f.size, 6)

    def test_unknown_type_rejected(self) -> None:
        with self.assertRaises(ValueError):
            _ = ExtractedFile.create("a", "x", "font", "", "font/woff")

    def test_dict_round_trip_keeps_wire_names(self) -> None:
        res = ExtractionResult(url="https://ex.com/")
        res.add_file(_file("a.js", "abc"))
        d = res.to_dict()
        self.assertEqual(
            set(d), {"id", "url", "status", "files", "totalSize", "totalFiles", "extractedAt"}
        )
        self.assertEqual(d["files"][0]["mimeType"], "application/javascript")
        back = ExtractionResult.from_dict(d)
        self.assertEqual(back.files, res.files)
        self.assertEqual(back.total_size, 3)

    def test_metadata_without_content(self) -> None:
        res = ExtractionResult(url="https://ex.com/")
        res.add_file(_file("a.js", "abc"))
        self.assertNotIn("content", res.to_dict(include_content=False)["files"][0])
