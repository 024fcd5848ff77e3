"""Look up the latest published release on the release host."""

from __future__ import annotations

import json
import logging
import urllib.error
from dataclasses import dataclass

from dicom_json_installer.core.errors import ReleaseResolutionError
from dicom_json_installer.utils.http import open_url

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReleaseIdentity:
    """A repository and one of its release tags."""

    repository: str
    tag: str

    @property
    def owner(self) -> str:
        return self.repository.split("/", 1)[0]

    @property
    def name(self) -> str:
        return self.repository.split("/", 1)[1]


class ReleaseLocator:
    """Resolve the latest release tag through the GitHub releases API."""

    def __init__(
        self,
        repository: str,
        api_host: str = "api.github.com",
        timeout: float | None = None,
    ) -> None:
        """
        Initialize the locator.

        Parameters
        ----------
        repository : str
            Repository identity as ``owner/name``
        api_host : str
            Host serving the releases API
        timeout : float | None
            Socket timeout in seconds, ``None`` for the library default
        """
        self.repository = repository
        self.api_host = api_host
        self.timeout = timeout

    @property
    def latest_url(self) -> str:
        return f"https://{self.api_host}/repos/{self.repository}/releases/latest"

    def latest(self) -> ReleaseIdentity:
        """
        Fetch the latest release.

        The tag is returned as published, without validating its shape.

        Returns
        -------
        ReleaseIdentity
            Repository and latest tag

        Raises
        ------
        ReleaseResolutionError
            On transport failure, a non-success status, an unparseable body or
            a missing ``tag_name`` field
        """
        url = self.latest_url
        logger.info("Querying latest release: %s", url)
        try:
            with open_url(
                url, timeout=self.timeout, accept="application/vnd.github+json"
            ) as response:
                payload = json.loads(response.read().decode("utf-8"))
        except urllib.error.HTTPError as e:
            raise ReleaseResolutionError(
                f"Failed to get latest version: HTTP {e.code} from {url}"
            ) from e
        except urllib.error.URLError as e:
            raise ReleaseResolutionError(f"Failed to get latest version: {e.reason}") from e
        except (OSError, ValueError) as e:
            raise ReleaseResolutionError(f"Failed to get latest version: {e}") from e

        tag = payload.get("tag_name") if isinstance(payload, dict) else None
        if not isinstance(tag, str) or not tag:
            raise ReleaseResolutionError(
                f"Failed to get latest version: no tag_name in response from {url}"
            )

        logger.debug("Latest release of %s is %s", self.repository, tag)
        return ReleaseIdentity(repository=self.repository, tag=tag)

