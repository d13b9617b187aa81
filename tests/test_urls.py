from __future__ import annotations

import unittest

from site_extractor.urls import can_fetch_url, filename_for_url, is_same_origin, resolve_url


class TestResolveUrl(unittest.TestCase):
    def test_absolute_reference_is_returned_unchanged(self) -> None:
        href = "https://cdn.example.org/lib/app.js?v=3"
        self.assertEqual(resolve_url("https://ex.com/page/", href), href)

    def test_relative_reference_keeps_base_origin(self) -> None:
        got = resolve_url("https://ex.com/docs/page.html", "../s.css")
        self.assertEqual(got, "https://ex.com/s.css")
        self.assertTrue(is_same_origin("https://ex.com/docs/page.html", got))

    def test_root_relative_and_scheme_relative(self) -> None:
        self.assertEqual(resolve_url("https://ex.com/a/b", "/c.js"), "https://ex.com/c.js")
        self.assertEqual(
            resolve_url("https://ex.com/a/b", "//static.ex.com/c.js"),
            "https://static.ex.com/c.js",
        )

    def test_query_kept_and_fragment_dropped(self) -> None:
        self.assertEqual(
            resolve_url("https://ex.com/", "img.png?w=10#top"), "https://ex.com/img.png?w=10"
        )

    def test_non_network_schemes_are_rejected(self) -> None:
        base = "https://ex.com/"
        for ref in (
            "data:image/png;base64,AAAA",
            "javascript:void(0)",
            "mailto:a@b.c",
            "blob:https://ex.com/1",
            "#section",
            "ftp://ex.com/file.txt",
        ):
            self.assertIsNone(resolve_url(base, ref), ref)

    def test_empty_and_malformed_references(self) -> None:
        self.assertIsNone(resolve_url("https://ex.com/", ""))
        self.assertIsNone(resolve_url("https://ex.com/", "   "))
        self.assertIsNone(resolve_url("https://ex.com/", None))
        self.assertIsNone(resolve_url("https://ex.com/", "http://[::1/x"))

    def test_can_fetch_url(self) -> None:
        self.assertTrue(can_fetch_url("/a.css"))
        self.assertFalse(can_fetch_url("DATA:text/plain,hi"))


class TestFilenameForUrl(unittest.TestCase):
    def test_last_segment_without_query(self) -> None:
        self.assertEqual(filename_for_url("https://ex.com/css/site.css?v=2"), "site.css")

    def test_directory_url_has_no_name(self) -> None:
        self.assertEqual(filename_for_url("https://ex.com/assets/"), "")
        self.assertEqual(filename_for_url("https://ex.com"), "")

    def test_percent_escapes_are_decoded_and_sanitized(self) -> None:
        self.assertEqual(filename_for_url("https://ex.com/my%20file.js"), "my file.js")
        self.assertEqual(filename_for_url("https://ex.com/a%3Fb.js"), "a_b.js")
