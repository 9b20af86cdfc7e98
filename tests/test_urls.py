# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for siteschema.urls — page URL validation and absolutization."""

from __future__ import annotations

import pytest

from siteschema.errors import InvalidInputError
from siteschema.urls import absolutize, validate_page_url


class TestValidatePageUrl:
    def test_strips_whitespace(self):
        assert validate_page_url("  https://example.com/a  ") == "https://example.com/a"

    @pytest.mark.parametrize("url", ["", "   ", None])
    def test_required(self, url):
        with pytest.raises(InvalidInputError, match="URL is required"):
            validate_page_url(url)

    @pytest.mark.parametrize("url", ["ftp://example.com", "file:///etc/passwd", "javascript:alert(1)", "example.com"])
    def test_scheme_not_allowed(self, url):
        with pytest.raises(InvalidInputError, match="scheme"):
            validate_page_url(url)

    def test_hostname_required(self):
        with pytest.raises(InvalidInputError, match="hostname"):
            validate_page_url("https:///path")

    @pytest.mark.parametrize(
        "url",
        [
            "http://169.254.169.254/latest/meta-data/",
            "http://metadata.google.internal/",
            "http://169.254.1.1/",
        ],
    )
    def test_cloud_metadata_always_blocked(self, url):
        with pytest.raises(InvalidInputError, match="blocked"):
            validate_page_url(url, allow_local=True)

    @pytest.mark.parametrize(
        "url",
        [
            "http://localhost:8000/",
            "http://127.0.0.1/",
            "http://2130706433/",
            "http://0x7f000001/",
            "http://10.1.2.3/",
            "http://192.168.0.10/",
            "http://[::1]/",
        ],
    )
    def test_local_blocked_by_default(self, url):
        with pytest.raises(InvalidInputError, match="blocked"):
            validate_page_url(url)

    @pytest.mark.parametrize("url", ["http://localhost:8000/", "http://127.0.0.1/", "http://192.168.0.10/"])
    def test_local_allowed_with_flag(self, url):
        assert validate_page_url(url, allow_local=True) == url

    def test_cgnat_blocked_even_with_flag(self):
        with pytest.raises(InvalidInputError, match="private/reserved"):
            validate_page_url("http://100.64.0.1/", allow_local=True)

    def test_public_ip_allowed(self):
        assert validate_page_url("http://93.184.216.34/") == "http://93.184.216.34/"

    def test_error_carries_value(self):
        with pytest.raises(InvalidInputError) as exc_info:
            validate_page_url("ftp://example.com")
        assert exc_info.value.value == "ftp://example.com"


class TestAbsolutize:
    def test_root_relative(self):
        assert absolutize("/img.png", "https://x.test/page") == "https://x.test/img.png"

    def test_document_relative(self):
        assert absolutize("b.png", "https://x.test/dir/page") == "https://x.test/dir/b.png"

    def test_protocol_relative(self):
        assert absolutize("//cdn.test/a.png", "https://x.test/") == "https://cdn.test/a.png"

    def test_absolute_value_unchanged(self):
        assert absolutize("https://cdn.test/a.png", "whatever") == "https://cdn.test/a.png"

    def test_data_uri_unchanged(self):
        assert absolutize("data:image/png;base64,AAAA", "https://x.test/") == "data:image/png;base64,AAAA"

    @pytest.mark.parametrize("base", ["", "relative/page", "/only/path"])
    def test_non_absolute_base_rejected(self, base):
        with pytest.raises(InvalidInputError, match="non-absolute base"):
            absolutize("/img.png", base)

    def test_is_also_a_value_error(self):
        with pytest.raises(ValueError):
            absolutize("/img.png", "nope")

    def test_unparseable_value_kept_verbatim(self):
        assert absolutize("http://[broken/a.png", "https://x.test/page") == "http://[broken/a.png"

    def test_unparseable_base_rejected(self):
        with pytest.raises(InvalidInputError, match="Malformed base URL"):
            absolutize("/img.png", "http://[broken/")
