"""Install pipeline that orchestrates platform detection through PATH setup."""

from __future__ import annotations

import logging
import signal
import threading
from collections.abc import Iterator
from collections.abc import MutableMapping
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from rich.console import Console

from dicom_json_installer.core.artifact_fetcher import ArtifactFetcher
from dicom_json_installer.core.installer import Installer
from dicom_json_installer.core.installer import InstallTarget
from dicom_json_installer.core.installer import staged_download
from dicom_json_installer.core.path_registrar import PathRegistrar
from dicom_json_installer.core.path_registrar import RegistrationResult
from dicom_json_installer.core.platform_resolver import PlatformDescriptor
from dicom_json_installer.core.platform_resolver import detect_platform
from dicom_json_installer.core.release_locator import ReleaseIdentity
from dicom_json_installer.core.release_locator import ReleaseLocator
from dicom_json_installer.models.environment_store import EnvironmentStore
from dicom_json_installer.models.environment_store import default_environment_store
from dicom_json_installer.utils.config import InstallerConfig
from dicom_json_installer.utils.config import default_install_dir

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InstallResult:
    """Everything a completed install produced."""

    release: ReleaseIdentity
    platform: PlatformDescriptor
    artifact_url: str
    executable: Path
    registration: RegistrationResult


class InstallPipeline:
    """Run the install stages in order: platform, release, download, extract, PATH.

    Every stage before PATH registration is fatal on error and raises an
    :class:`~dicom_json_installer.core.errors.InstallerError`. PATH registration
    only reports.
    """

    def __init__(
        self,
        config: InstallerConfig | None = None,
        platform: PlatformDescriptor | None = None,
        store: EnvironmentStore | None = None,
        environ: MutableMapping[str, str] | None = None,
        console: Console | None = None,
    ) -> None:
        """
        Initialize the pipeline.

        Parameters
        ----------
        config : InstallerConfig | None
            Install settings, defaults when ``None``
        platform : PlatformDescriptor | None
            Target platform, detected from the host when ``None``
        store : EnvironmentStore | None
            Persistent search path store, the host's own when ``None``
        environ : MutableMapping[str, str] | None
            Process environment, ``os.environ`` when ``None``
        console : Console | None
            Console for status output
        """
        self.config = config or InstallerConfig()
        self.platform = platform
        self.store = store
        self.environ = environ
        self.console = console or Console()

    def run(self) -> InstallResult:
        """
        Install the tool.

        Returns
        -------
        InstallResult
            Resolved release, installed executable and PATH outcome
        """
        config = self.config
        self.console.print(f"[bold blue]Installing {config.tool_name}...[/bold blue]")

        platform = self.platform or detect_platform()
        logger.info("Platform: %s/%s", platform.os, platform.arch)

        release = self._resolve_release()

        install_dir = config.install_dir or default_install_dir(
            platform.is_windows, config.tool_name
        )
        target = InstallTarget.for_platform(install_dir, config.tool_name, platform)

        fetcher = ArtifactFetcher(
            tool_name=config.tool_name,
            download_host=config.download_host,
            timeout=config.timeout,
            expected_sha256=config.sha256,
        )
        installer = Installer(platform)

        with terminate_as_interrupt(), staged_download() as temp_dir:
            reference = fetcher.reference(release, platform, temp_dir)
            self.console.print(f"Downloading {reference.filename}...")
            with self.console.status(f"Downloading {reference.url}"):
                archive = fetcher.fetch(reference)
            executable = installer.install(archive, target)

        self.console.print(
            f"[bold green]{config.tool_name} installed to {executable}[/bold green]"
        )

        store = self.store
        if store is None:
            store = default_environment_store(platform.is_windows)
        registration = PathRegistrar(platform, store, self.environ).register(target.directory)
        logger.info("PATH registration: %s", registration.status)

        return InstallResult(
            release=release,
            platform=platform,
            artifact_url=reference.url,
            executable=executable,
            registration=registration,
        )

    def _resolve_release(self) -> ReleaseIdentity:
        config = self.config
        if config.tag:
            self.console.print(f"Using version: [bold]{config.tag}[/bold]")
            return ReleaseIdentity(repository=config.repository, tag=config.tag)

        self.console.print("Getting latest version...")
        locator = ReleaseLocator(config.repository, config.api_host, config.timeout)
        release = locator.latest()
        self.console.print(f"Latest version: [bold]{release.tag}[/bold]")
        return release


@contextmanager
def terminate_as_interrupt() -> Iterator[None]:
    """Turn SIGTERM into ``KeyboardInterrupt`` so cleanup handlers run.

    Only the main thread can install signal handlers; elsewhere this is a no-op.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def _handler(signum, frame):
        raise KeyboardInterrupt(f"received signal {signum}")

    previous = signal.signal(signal.SIGTERM, _handler)
    try:
        yield
    finally:
        if previous is not None:
            signal.signal(signal.SIGTERM, previous)
