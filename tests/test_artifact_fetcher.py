"""Tests for artifact URL composition and download."""

import hashlib
import http.client
import io
import urllib.error
from unittest.mock import patch

import pytest

from dicom_json_installer.core.artifact_fetcher import ArtifactFetcher
from dicom_json_installer.core.artifact_fetcher import verify_checksum
from dicom_json_installer.core.errors import ChecksumMismatchError
from dicom_json_installer.core.errors import DownloadError
from dicom_json_installer.core.platform_resolver import PlatformDescriptor
from dicom_json_installer.core.release_locator import ReleaseIdentity

RELEASE = ReleaseIdentity(repository="owner/tool", tag="v1.2.3")
LINUX = PlatformDescriptor("linux", "x86_64")


class FlakyResponse(io.BytesIO):
    """Response body that drops the connection after the first chunk."""

    def __init__(self, first_chunk: bytes) -> None:
        super().__init__(first_chunk)
        self._served = False

    def read(self, size=-1):
        if self._served:
            raise ConnectionResetError("connection reset by peer")
        self._served = True
        return super().read(size)


class FakeSocket:
    """Socket stand-in so a real HTTPResponse can parse canned bytes."""

    def __init__(self, raw: bytes) -> None:
        self._file = io.BytesIO(raw)

    def makefile(self, mode, *args, **kwargs):
        return self._file


def _http_response(raw: bytes) -> http.client.HTTPResponse:
    response = http.client.HTTPResponse(FakeSocket(raw))
    response.begin()
    return response


@pytest.fixture
def fetcher():
    """Create an ArtifactFetcher for the test tool."""
    return ArtifactFetcher(tool_name="tool")


def test_reference_linux(fetcher, tmp_path):
    """Test the artifact reference for a linux host."""
    reference = fetcher.reference(RELEASE, LINUX, tmp_path)

    assert reference.filename == "tool-linux-x86_64.tar.gz"
    assert reference.url == (
        "https://github.com/owner/tool/releases/download/v1.2.3/tool-linux-x86_64.tar.gz"
    )
    assert reference.temp_path == tmp_path / "tool-linux-x86_64.tar.gz"


def test_reference_windows(fetcher, tmp_path):
    """Test that Windows artifacts are zip archives."""
    reference = fetcher.reference(RELEASE, PlatformDescriptor("windows", "aarch64"), tmp_path)

    assert reference.filename == "tool-windows-aarch64.zip"
    assert reference.url.endswith("/releases/download/v1.2.3/tool-windows-aarch64.zip")


def test_reference_custom_host(tmp_path):
    """Test that the download host is configurable."""
    fetcher = ArtifactFetcher(tool_name="tool", download_host="mirror.example.org")

    reference = fetcher.reference(RELEASE, LINUX, tmp_path)

    assert reference.url.startswith("https://mirror.example.org/owner/tool/releases/download/")


@patch("urllib.request.urlopen")
def test_fetch_writes_body(mock_urlopen, fetcher, tmp_path):
    """Test that the response body is streamed to the temp path."""
    body = b"archive-bytes" * 10000
    mock_urlopen.return_value = io.BytesIO(body)
    reference = fetcher.reference(RELEASE, LINUX, tmp_path / "download")

    path = fetcher.fetch(reference)

    assert path == reference.temp_path
    assert path.read_bytes() == body
    assert mock_urlopen.call_args[0][0].full_url == reference.url


@patch("urllib.request.urlopen")
def test_fetch_http_error_leaves_no_file(mock_urlopen, fetcher, tmp_path):
    """Test that a non-success status raises and leaves nothing behind."""
    reference = fetcher.reference(RELEASE, LINUX, tmp_path)
    mock_urlopen.side_effect = urllib.error.HTTPError(
        reference.url, 404, "Not Found", hdrs=None, fp=None
    )

    with pytest.raises(DownloadError, match="HTTP 404"):
        fetcher.fetch(reference)

    assert not reference.temp_path.exists()


@patch("urllib.request.urlopen")
def test_fetch_network_error(mock_urlopen, fetcher, tmp_path):
    """Test that transport errors become DownloadError."""
    mock_urlopen.side_effect = urllib.error.URLError("timed out")
    reference = fetcher.reference(RELEASE, LINUX, tmp_path)

    with pytest.raises(DownloadError, match="timed out"):
        fetcher.fetch(reference)


@patch("urllib.request.urlopen")
def test_fetch_interrupted_transfer_removes_partial_file(mock_urlopen, fetcher, tmp_path):
    """Test that a transfer failing partway removes the partial file."""
    mock_urlopen.return_value = FlakyResponse(b"x" * 1024)
    reference = fetcher.reference(RELEASE, LINUX, tmp_path)

    with pytest.raises(DownloadError, match="connection reset"):
        fetcher.fetch(reference)

    assert not reference.temp_path.exists()


@patch("urllib.request.urlopen")
def test_fetch_keyboard_interrupt_removes_partial_file(mock_urlopen, fetcher, tmp_path):
    """Test that an interrupt during download removes the partial file and propagates."""

    class InterruptedResponse(FlakyResponse):
        def read(self, size=-1):
            if self._served:
                raise KeyboardInterrupt
            return super().read(size)

    mock_urlopen.return_value = InterruptedResponse(b"x" * 1024)
    reference = fetcher.reference(RELEASE, LINUX, tmp_path)

    with pytest.raises(KeyboardInterrupt):
        fetcher.fetch(reference)

    assert not reference.temp_path.exists()


@patch("urllib.request.urlopen")
def test_fetch_chunked_transfer_cut_short(mock_urlopen, fetcher, tmp_path):
    """Test that a chunked body ending mid-chunk raises DownloadError."""
    mock_urlopen.return_value = _http_response(
        b"HTTP/1.1 200 OK\r\nTransfer-Encoding: chunked\r\n\r\n"
        b"400\r\n" + b"x" * 1024 + b"\r\n"
        b"400\r\n" + b"x" * 10
    )
    reference = fetcher.reference(RELEASE, LINUX, tmp_path)

    with pytest.raises(DownloadError, match="IncompleteRead"):
        fetcher.fetch(reference)

    assert not reference.temp_path.exists()


@patch("urllib.request.urlopen")
def test_fetch_body_shorter_than_content_length(mock_urlopen, fetcher, tmp_path):
    """Test that a connection closed before Content-Length bytes raises DownloadError."""
    mock_urlopen.return_value = _http_response(
        b"HTTP/1.1 200 OK\r\nContent-Length: 100000\r\n\r\n" + b"x" * 1000
    )
    reference = fetcher.reference(RELEASE, LINUX, tmp_path)

    with pytest.raises(DownloadError, match="tool-linux-x86_64.tar.gz"):
        fetcher.fetch(reference)

    assert not reference.temp_path.exists()


@patch("urllib.request.urlopen")
def test_fetch_complete_http_response(mock_urlopen, fetcher, tmp_path):
    """Test that a body matching its Content-Length is accepted."""
    body = b"archive" * 2000
    mock_urlopen.return_value = _http_response(
        b"HTTP/1.1 200 OK\r\nContent-Length: %d\r\n\r\n" % len(body) + body
    )
    reference = fetcher.reference(RELEASE, LINUX, tmp_path)

    assert fetcher.fetch(reference).read_bytes() == body


@patch("urllib.request.urlopen")
def test_fetch_verifies_checksum(mock_urlopen, tmp_path):
    """Test that a matching digest is accepted, compared case-insensitively."""
    body = b"artifact"
    mock_urlopen.return_value = io.BytesIO(body)
    fetcher = ArtifactFetcher(
        tool_name="tool", expected_sha256=hashlib.sha256(body).hexdigest().upper()
    )
    reference = fetcher.reference(RELEASE, LINUX, tmp_path)

    assert fetcher.fetch(reference).read_bytes() == body


@patch("urllib.request.urlopen")
def test_fetch_checksum_mismatch(mock_urlopen, tmp_path):
    """Test that a digest mismatch raises and removes the download."""
    mock_urlopen.return_value = io.BytesIO(b"tampered")
    fetcher = ArtifactFetcher(tool_name="tool", expected_sha256="0" * 64)
    reference = fetcher.reference(RELEASE, LINUX, tmp_path)

    with pytest.raises(ChecksumMismatchError, match="Checksum mismatch"):
        fetcher.fetch(reference)

    assert not reference.temp_path.exists()


def test_checksum_mismatch_is_download_error(tmp_path):
    """Test that checksum failures share the download failure category."""
    path = tmp_path / "file.bin"
    path.write_bytes(b"data")

    with pytest.raises(DownloadError):
        verify_checksum(path, "f" * 64)


def test_verify_checksum_match(tmp_path):
    """Test verification of a file against its own digest."""
    path = tmp_path / "file.bin"
    path.write_bytes(b"data" * 50000)

    verify_checksum(path, hashlib.sha256(b"data" * 50000).hexdigest())
