"""Tests for the HTTP download helper."""

from pathlib import Path

import httpx
import pytest

from bpm.errors import ProviderFetchError
from bpm.utils.http import download_file, filename_from_url


class TestFilenameFromUrl:
    """Tests for filename_from_url."""

    def test_last_segment(self) -> None:
        """Test that the last path segment is used."""
        assert filename_from_url("https://example.com/dl/tool_1.0.tar.gz") == "tool_1.0.tar.gz"

    def test_query_is_ignored(self) -> None:
        """Test that query strings are not part of the name."""
        assert filename_from_url("https://example.com/tool.zip?x=1") == "tool.zip"

    def test_percent_decoding(self) -> None:
        """Test that escaped characters are decoded."""
        assert filename_from_url("https://example.com/my%20tool") == "my tool"

    def test_fallback(self) -> None:
        """Test that a URL without a path uses the fallback."""
        assert filename_from_url("https://example.com/", fallback="tool") == "tool"


class TestDownloadFile:
    """Tests for download_file."""

    def test_writes_body(self, tmp_path: Path) -> None:
        """Test that the response body is written to the target."""
        transport = httpx.MockTransport(lambda request: httpx.Response(200, content=b"binary"))
        with httpx.Client(transport=transport) as client:
            result = download_file(client, "https://example.com/tool", tmp_path / "tool")

        assert result == tmp_path / "tool"
        assert result.read_bytes() == b"binary"

    def test_follows_redirects(self, tmp_path: Path) -> None:
        """Test that redirects to the real asset are followed."""

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/asset":
                return httpx.Response(302, headers={"Location": "https://cdn.example.com/blob"})
            return httpx.Response(200, content=b"blob")

        with httpx.Client(transport=httpx.MockTransport(handler)) as client:
            result = download_file(client, "https://example.com/asset", tmp_path / "asset")

        assert result.read_bytes() == b"blob"

    def test_http_error(self, tmp_path: Path) -> None:
        """Test that an error status raises ProviderFetchError and leaves no file."""
        transport = httpx.MockTransport(lambda request: httpx.Response(404))
        target = tmp_path / "tool"

        with httpx.Client(transport=transport) as client:
            with pytest.raises(ProviderFetchError, match="cannot download"):
                download_file(client, "https://example.com/tool", target)

        assert not target.exists()

    def test_transport_error(self, tmp_path: Path) -> None:
        """Test that connection failures raise ProviderFetchError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with httpx.Client(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(ProviderFetchError):
                download_file(client, "https://example.com/tool", tmp_path / "tool")
