"""
Tests for turning URLs into output filenames.

Test coverage:
- Last path segment selection (trailing slash, query, fragment)
- Percent-decoding and removal of separators and null bytes
- Rejection of root-only URLs and dot segments
- Destination containment in the output directory
"""

import os

import pytest

from kbart_harvester.exceptions import NamingError
from kbart_harvester.utils.path import resolve_destination, sanitize_url_filename


class TestSanitizeUrlFilename:
    """Test suite for sanitize_url_filename."""

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("https://host/path/a.txt", "a.txt"),
            ("https://host/a.txt", "a.txt"),
            ("https://host/export/holdings.txt?format=tsv#top", "holdings.txt"),
            ("https://host/export/holdings/", "holdings"),
            ("https://host/files/My%20Holdings.txt", "My Holdings.txt"),
            ("  https://host/path/a.txt  ", "a.txt"),
        ],
    )
    def test_uses_last_path_segment(self, url, expected):
        assert sanitize_url_filename(url) == expected

    @pytest.mark.parametrize(
        "url",
        [
            "https://host/",
            "https://host",
            "https://host//",
            "https://host/?file=a.txt",
        ],
    )
    def test_url_without_path_segment_fails(self, url):
        with pytest.raises(NamingError):
            sanitize_url_filename(url)

    @pytest.mark.parametrize(
        "url",
        [
            "https://host/a/..",
            "https://host/a/.",
            "https://host/a/%2E%2E",
            "https://host/a/%2e",
        ],
    )
    def test_dot_segments_are_rejected(self, url):
        with pytest.raises(NamingError):
            sanitize_url_filename(url)

    def test_encoded_separators_are_removed(self):
        name = sanitize_url_filename("https://host/files/..%2F..%2Fetc%2Fpasswd")

        assert "/" not in name
        assert "\\" not in name
        assert name not in ("", ".", "..")
        assert os.path.basename(name) == name

    def test_backslashes_are_removed(self):
        name = sanitize_url_filename("https://host/files/..%5Cwindows%5Cwin.ini")

        assert "\\" not in name
        assert os.path.basename(name) == name

    def test_null_bytes_are_removed(self):
        assert sanitize_url_filename("https://host/a/file%00.txt") == "file.txt"

    def test_segment_empty_after_sanitization_fails(self):
        with pytest.raises(NamingError):
            sanitize_url_filename("https://host/a/%00%00")

    def test_is_deterministic(self):
        url = "https://host/provider/Holdings%20(2024).tsv"
        assert sanitize_url_filename(url) == sanitize_url_filename(url)

    def test_malformed_url_still_yields_a_name(self):
        # Malformed URLs are only detected when connecting.
        assert sanitize_url_filename("not a url") == "not a url"


class TestResolveDestination:
    """Test suite for resolve_destination."""

    def test_joins_name_onto_output_dir(self, tmp_path):
        destination = resolve_destination(tmp_path, "a.txt")

        assert destination == tmp_path.resolve() / "a.txt"

    @pytest.mark.parametrize("name", ["..", ".", "../a.txt", "sub/a.txt"])
    def test_rejects_names_leaving_the_directory(self, tmp_path, name):
        with pytest.raises(NamingError):
            resolve_destination(tmp_path, name)
