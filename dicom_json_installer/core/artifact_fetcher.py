"""Build artifact download URLs and stream artifacts to disk."""

from __future__ import annotations

import hashlib
import http.client
import logging
import shutil
import urllib.error
from dataclasses import dataclass
from pathlib import Path

from dicom_json_installer.core.errors import ChecksumMismatchError
from dicom_json_installer.core.errors import DownloadError
from dicom_json_installer.core.platform_resolver import PlatformDescriptor
from dicom_json_installer.core.release_locator import ReleaseIdentity
from dicom_json_installer.utils.http import open_url

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class ArtifactReference:
    """Where an artifact lives remotely and where it is written locally."""

    filename: str
    url: str
    temp_path: Path


class ArtifactFetcher:
    """Download release artifacts from the release host."""

    def __init__(
        self,
        tool_name: str,
        download_host: str = "github.com",
        timeout: float | None = None,
        expected_sha256: str | None = None,
    ) -> None:
        """
        Initialize the fetcher.

        Parameters
        ----------
        tool_name : str
            Tool name, the prefix of every artifact filename
        download_host : str
            Host serving release downloads
        timeout : float | None
            Socket timeout in seconds, ``None`` for the library default
        expected_sha256 : str | None
            Hex digest the artifact must match; no verification when ``None``
        """
        self.tool_name = tool_name
        self.download_host = download_host
        self.timeout = timeout
        self.expected_sha256 = expected_sha256.lower() if expected_sha256 else None

    def download_url(self, release: ReleaseIdentity, filename: str) -> str:
        return (
            f"https://{self.download_host}/{release.owner}/{release.name}"
            f"/releases/download/{release.tag}/{filename}"
        )

    def reference(
        self,
        release: ReleaseIdentity,
        platform: PlatformDescriptor,
        temp_dir: Path,
    ) -> ArtifactReference:
        """
        Compose the artifact reference for a release and platform.

        Parameters
        ----------
        release : ReleaseIdentity
            Resolved repository and tag
        platform : PlatformDescriptor
            Target platform tokens
        temp_dir : Path
            Scratch directory the artifact will be written into

        Returns
        -------
        ArtifactReference
            Filename, download URL and local temporary path
        """
        filename = platform.artifact_filename(self.tool_name)
        return ArtifactReference(
            filename=filename,
            url=self.download_url(release, filename),
            temp_path=temp_dir / filename,
        )

    def fetch(self, reference: ArtifactReference) -> Path:
        """
        Stream the artifact to its temporary path.

        The partially written file is removed if the transfer or the checksum
        check fails.

        Parameters
        ----------
        reference : ArtifactReference
            Artifact to download

        Returns
        -------
        Path
            Path of the downloaded archive

        Raises
        ------
        DownloadError
            On transport failure or a non-success HTTP status, including a
            body shorter than its Content-Length
        ChecksumMismatchError
            If an expected digest is configured and does not match
        """
        logger.info("Downloading %s", reference.url)
        target = reference.temp_path
        target.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open_url(reference.url, timeout=self.timeout) as response:
                expected_size = _content_length(response)
                with target.open("wb") as f:
                    shutil.copyfileobj(response, f, CHUNK_SIZE)
                    written = f.tell()
            if expected_size is not None and written < expected_size:
                raise DownloadError(
                    f"Failed to download {reference.filename}: connection closed after "
                    f"{written} of {expected_size} bytes"
                )
        except urllib.error.HTTPError as e:
            target.unlink(missing_ok=True)
            raise DownloadError(
                f"Failed to download {reference.filename}: HTTP {e.code} from {reference.url}"
            ) from e
        except urllib.error.URLError as e:
            target.unlink(missing_ok=True)
            raise DownloadError(f"Failed to download {reference.filename}: {e.reason}") from e
        except (OSError, http.client.HTTPException) as e:
            target.unlink(missing_ok=True)
            raise DownloadError(f"Failed to download {reference.filename}: {e}") from e
        except BaseException:
            target.unlink(missing_ok=True)
            raise

        logger.debug("Wrote %d bytes to %s", target.stat().st_size, target)

        if self.expected_sha256 is None:
            logger.debug("No checksum configured, skipping verification of %s", target.name)
        else:
            try:
                verify_checksum(target, self.expected_sha256)
            except ChecksumMismatchError:
                target.unlink(missing_ok=True)
                raise

        return target


def sha256_file(path: Path) -> str:
    """Return the hex SHA-256 digest of a file, read in chunks."""
    digest = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def verify_checksum(path: Path, expected_sha256: str) -> None:
    """
    Check a file against an expected SHA-256 digest.

    Parameters
    ----------
    path : Path
        File to hash
    expected_sha256 : str
        Expected hex digest, compared case-insensitively

    Raises
    ------
    ChecksumMismatchError
        If the digests differ
    """
    actual = sha256_file(path)
    if actual != expected_sha256.lower():
        raise ChecksumMismatchError(
            f"Checksum mismatch for {path.name}: expected {expected_sha256.lower()}, got {actual}"
        )
    logger.info("Checksum verified for %s", path.name)


def _content_length(response) -> int | None:
    headers = getattr(response, "headers", None)
    value = headers.get("Content-Length") if headers is not None else None
    try:
        return int(value) if value is not None else None
    except ValueError:
        return None
