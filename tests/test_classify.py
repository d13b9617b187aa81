from __future__ import annotations

import unittest

from site_extractor.classify import classify


class TestClassify(unittest.TestCase):
    def test_extension_table(self) -> None:
        cases = {
            "https://ex.com/index.htm": ("html", "text/html", "assets"),
            "https://ex.com/s.css": ("css", "text/css", "css"),
            "https://ex.com/app.mjs": ("js", "application/javascript", "js"),
            "https://ex.com/App.TSX": ("js", "application/javascript", "js"),
            "https://ex.com/logo.svg": ("image", "image/svg+xml", "images"),
            "https://ex.com/favicon.ico": ("image", "image/x-icon", "images"),
            "https://ex.com/data.json": ("payload", "application/json", "payloads"),
            "https://ex.com/feed.xml": ("payload", "application/xml", "payloads"),
        }
        for url, (category, mime, folder) in cases.items():
            c = classify(url)
            self.assertEqual((c.category, c.mime_type, c.folder), (category, mime, folder), url)

    def test_fonts_are_other_in_fonts_folder(self) -> None:
        c = classify("https://ex.com/f/inter.woff2?v=1")
        self.assertEqual(c.category, "other")
        self.assertEqual(c.folder, "fonts")
        self.assertEqual(c.mime_type, "font/woff2")
        self.assertTrue(c.binary)

    def test_declared_type_decides_when_extension_is_absent(self) -> None:
        self.assertEqual(classify("https://ex.com/page", "text/html; charset=utf-8").category, "html")
        self.assertEqual(classify("https://ex.com/styles?v=1", "text/css").category, "css")
        img = classify("https://ex.com/avatar?id=3", "image/png")
        self.assertEqual((img.category, img.folder, img.mime_type), ("image", "images", "image/png"))
        self.assertTrue(img.binary)
        font = classify("https://ex.com/font", "font/woff")
        self.assertEqual((font.category, font.folder), ("other", "fonts"))

    def test_extension_wins_over_declared_type(self) -> None:
        c = classify("https://ex.com/app.js", "text/plain")
        self.assertEqual(c.category, "js")
        self.assertEqual(c.mime_type, "application/javascript")
        self.assertFalse(c.binary)

    def test_unknown_inputs_still_classify(self) -> None:
        c = classify("https://ex.com/thing.xyz")
        self.assertEqual((c.category, c.folder, c.mime_type), ("other", "assets", "application/octet-stream"))
        self.assertFalse(c.binary)
        self.assertEqual(classify("not a url at all").category, "other")

    def test_media_is_binary_other(self) -> None:
        c = classify("https://ex.com/clip.mp4", "text/html")
        self.assertEqual((c.category, c.folder, c.mime_type), ("other", "assets", "video/mp4"))
        self.assertTrue(c.binary)

    def test_classification_is_pure(self) -> None:
        args = ("https://ex.com/a/b/c.png", "image/png")
        self.assertEqual(classify(*args), classify(*args))
