from unittest.mock import MagicMock, patch

import pytest
import requests

from pdfmarker.errors import DecodeFailureError, FetchFailureError
from pdfmarker.imaging.sources import decode_data_uri, fetch_bytes, is_data_uri
from tests.helpers.pdf_factory import data_uri, png_bytes


class TestDataUri:
    def test_base64_payload(self):
        payload = png_bytes()
        assert decode_data_uri(data_uri(payload)) == payload

    def test_percent_encoded_payload(self):
        assert decode_data_uri("data:text/plain,hello%20world") == b"hello world"

    def test_missing_separator_fails(self):
        with pytest.raises(DecodeFailureError, match="separator"):
            decode_data_uri("data:image/png;base64")

    def test_invalid_base64_fails(self):
        with pytest.raises(DecodeFailureError, match="base64"):
            decode_data_uri("data:image/png;base64,@@@@")

    def test_is_data_uri(self):
        assert is_data_uri("data:image/png;base64,AAAA")
        assert not is_data_uri("https://example.com/a.png")


class TestFetchBytes:
    def test_raw_bytes_pass_through(self):
        assert fetch_bytes(b"abc") == b"abc"

    def test_local_path(self, tmp_path):
        path = tmp_path / "image.png"
        path.write_bytes(b"content")
        assert fetch_bytes(path) == b"content"
        assert fetch_bytes(str(path)) == b"content"
        assert fetch_bytes(path.as_uri()) == b"content"

    def test_missing_file_fails(self, tmp_path):
        with pytest.raises(FetchFailureError):
            fetch_bytes(tmp_path / "missing.png")

    def test_remote_fetch(self):
        response = MagicMock()
        response.content = b"remote"
        response.raise_for_status.return_value = None
        with patch("pdfmarker.imaging.sources.requests.get", return_value=response) as get:
            assert fetch_bytes("https://example.com/sig.png", timeout=5) == b"remote"
        get.assert_called_once_with("https://example.com/sig.png", timeout=5)

    def test_remote_http_error_fails(self):
        response = MagicMock()
        response.raise_for_status.side_effect = requests.HTTPError("404 Not Found")
        with patch("pdfmarker.imaging.sources.requests.get", return_value=response):
            with pytest.raises(FetchFailureError, match="404"):
                fetch_bytes("https://example.com/missing.png")

    def test_remote_connection_error_fails(self):
        with patch("pdfmarker.imaging.sources.requests.get", side_effect=requests.ConnectionError("refused")):
            with pytest.raises(FetchFailureError, match="refused"):
                fetch_bytes("http://example.com/sig.png")

    def test_session_is_used_when_given(self):
        session = MagicMock()
        session.get.return_value.content = b"via session"
        assert fetch_bytes("https://example.com/a.png", session=session) == b"via session"
        session.get.assert_called_once()
