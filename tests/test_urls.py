"""Tests for patchright_session.urls module."""

from __future__ import annotations

import base64

import pytest

from patchright_session.errors import InvalidArgumentError
from patchright_session.urls import decode_data_uri, merge_url, origin_root, same_origin


class TestMergeUrl:
    def test_path_and_query_override_current(self):
        assert (
            merge_url("https://h.example/a/b?y=2", "/path?x=1")
            == "https://h.example/path?x=1"
        )

    def test_full_url_replaces_everything_present(self):
        assert (
            merge_url("https://h.example/a?y=2", "http://other.example/z")
            == "http://other.example/z?y=2"
        )

    def test_keeps_port_and_credentials(self):
        assert (
            merge_url("https://u:p@h.example:8443/a", "/b")
            == "https://u:p@h.example:8443/b"
        )

    def test_relative_path_gets_leading_slash(self):
        assert merge_url("https://h.example/a/b", "c") == "https://h.example/c"

    def test_fragment_only(self):
        assert merge_url("https://h.example/a?y=2", "#top") == "https://h.example/a?y=2#top"

    def test_query_only(self):
        assert merge_url("https://h.example/a?y=2", "?x=1") == "https://h.example/a?x=1"

    def test_root_url(self):
        assert merge_url("https://h.example/a/b", "https://h.example/") == "https://h.example/"


class TestSameOrigin:
    def test_same_scheme_and_host(self):
        assert same_origin("https://h.example/a", "https://h.example/b?x=1")

    def test_host_is_case_insensitive(self):
        assert same_origin("https://H.example/a", "https://h.EXAMPLE/b")

    def test_different_host(self):
        assert not same_origin("https://h.example/a", "https://cdn.example/a")

    def test_different_scheme(self):
        assert not same_origin("http://h.example/a", "https://h.example/a")


class TestOriginRoot:
    def test_drops_path_query_fragment(self):
        assert origin_root("https://cdn.example:8080/f/report.pdf?t=1#p") == "https://cdn.example:8080/"


class TestDecodeDataUri:
    def test_base64(self):
        payload = bytes(range(256))
        uri = "data:application/octet-stream;base64," + base64.b64encode(payload).decode()
        assert decode_data_uri(uri) == payload

    def test_percent_encoded(self):
        assert decode_data_uri("data:text/plain,hello%20world") == b"hello world"

    def test_empty_payload(self):
        assert decode_data_uri("data:,") == b""

    def test_bare_data_scheme_is_empty(self):
        assert decode_data_uri("data:") == b""

    def test_not_a_data_uri(self):
        with pytest.raises(InvalidArgumentError, match="Not a data URI"):
            decode_data_uri("https://h.example/file")

    def test_none(self):
        with pytest.raises(InvalidArgumentError):
            decode_data_uri(None)

    def test_missing_separator(self):
        with pytest.raises(InvalidArgumentError, match="separator"):
            decode_data_uri("data:text/plain;base64")

    def test_invalid_base64(self):
        with pytest.raises(InvalidArgumentError, match="base64"):
            decode_data_uri("data:text/plain;base64,@@@")
