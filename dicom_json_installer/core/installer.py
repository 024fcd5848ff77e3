"""Unpack downloaded artifacts into the install directory."""

from __future__ import annotations

import logging
import os
import shutil
import stat
import tarfile
import tempfile
import zipfile
import zlib
from abc import ABC
from abc import abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from pathlib import PurePosixPath

from dicom_json_installer.core.errors import ExtractionError
from dicom_json_installer.core.platform_resolver import PlatformDescriptor

logger = logging.getLogger(__name__)

_EXECUTE_BITS = stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH
_READ_SIZE = 64 * 1024


@dataclass(frozen=True)
class InstallTarget:
    """Install directory and the executable expected inside it."""

    directory: Path
    executable: Path

    @classmethod
    def for_platform(
        cls, directory: Path, tool_name: str, platform: PlatformDescriptor
    ) -> InstallTarget:
        directory = directory.expanduser()
        executable = directory / f"{tool_name}{platform.executable_suffix}"
        return cls(directory=directory, executable=executable)

    def ensure_directory(self) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)


class ArchiveFormat(ABC):
    """Extraction strategy for one archive format."""

    @abstractmethod
    def extract(self, archive_path: Path, destination: Path) -> None:
        """
        Extract every member of ``archive_path`` into ``destination``.

        Parameters
        ----------
        archive_path : Path
            Archive to read
        destination : Path
            Existing, empty directory to extract into
        """


class ZipFormat(ArchiveFormat):
    def extract(self, archive_path: Path, destination: Path) -> None:
        with zipfile.ZipFile(archive_path) as archive:
            for name in archive.namelist():
                _check_member_name(name)
            corrupt = archive.testzip()
            if corrupt is not None:
                raise ExtractionError(f"Corrupt member {corrupt} in {archive_path.name}")
            archive.extractall(destination)


class TarGzFormat(ArchiveFormat):
    def extract(self, archive_path: Path, destination: Path) -> None:
        with tarfile.open(archive_path, mode="r:gz") as archive:
            for member in archive.getmembers():
                _check_member_name(member.name)
            archive.extractall(destination, filter="data")
            # tarfile stops at the end-of-archive block; the gzip CRC is only
            # checked once the compressed stream is read to its end.
            while archive.fileobj.read(_READ_SIZE):
                pass


def archive_format_for(platform: PlatformDescriptor) -> ArchiveFormat:
    """Pick the archive format published for ``platform``."""
    if platform.is_windows:
        return ZipFormat()
    return TarGzFormat()


def _check_member_name(name: str) -> None:
    path = PurePosixPath(name.replace("\\", "/"))
    if path.is_absolute() or ".." in path.parts or (path.parts and ":" in path.parts[0]):
        raise ExtractionError(f"Archive member escapes the install directory: {name}")


@contextmanager
def staged_download(prefix: str = "dicom-json-") -> Iterator[Path]:
    """
    Provide a scratch directory for a download, removed on every exit path.

    Yields
    ------
    Path
        Empty temporary directory
    """
    temp_dir = Path(tempfile.mkdtemp(prefix=prefix))
    logger.debug("Created download directory %s", temp_dir)
    try:
        yield temp_dir
    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)
        logger.debug("Removed download directory %s", temp_dir)


class Installer:
    """Extract an artifact into an install target and make it runnable."""

    def __init__(self, platform: PlatformDescriptor) -> None:
        self.platform = platform
        self.archive_format = archive_format_for(platform)

    def install(self, archive_path: Path, target: InstallTarget) -> Path:
        """
        Install an archive into ``target``.

        Members are extracted into a hidden staging directory inside the
        install directory and then moved up, replacing existing files, so a
        corrupt archive leaves the installed files untouched. The archive itself is
        removed whether or not installation succeeds.

        Parameters
        ----------
        archive_path : Path
            Downloaded archive
        target : InstallTarget
            Where to install

        Returns
        -------
        Path
            The installed executable

        Raises
        ------
        ExtractionError
            If the archive is corrupt, unsafe, or lacks the expected executable
        """
        try:
            staging = self._prepare(target)
            try:
                self._extract(archive_path, staging)
                staged_executable = staging / target.executable.name
                if not staged_executable.is_file():
                    raise ExtractionError(
                        f"{archive_path.name} does not contain {target.executable.name}"
                    )
                _merge_into(staging, target.directory)
            finally:
                shutil.rmtree(staging, ignore_errors=True)
        finally:
            archive_path.unlink(missing_ok=True)

        self._make_executable(target.executable)
        logger.info("Installed %s", target.executable)
        return target.executable

    def _prepare(self, target: InstallTarget) -> Path:
        try:
            target.ensure_directory()
            return Path(tempfile.mkdtemp(prefix=".staging-", dir=target.directory))
        except OSError as e:
            raise ExtractionError(f"Cannot write to {target.directory}: {e}") from e

    def _extract(self, archive_path: Path, destination: Path) -> None:
        logger.debug(
            "Extracting %s with %s", archive_path, type(self.archive_format).__name__
        )
        try:
            self.archive_format.extract(archive_path, destination)
        except ExtractionError:
            raise
        except (tarfile.TarError, zipfile.BadZipFile, zlib.error, EOFError, OSError) as e:
            raise ExtractionError(f"Failed to extract {archive_path.name}: {e}") from e

    def _make_executable(self, executable: Path) -> None:
        if self.platform.is_windows:
            return
        mode = executable.stat().st_mode
        executable.chmod(mode | _EXECUTE_BITS)


def _merge_into(source: Path, destination: Path) -> None:
    """Move every entry of ``source`` into ``destination``, overwriting."""
    for entry in source.iterdir():
        dest = destination / entry.name
        try:
            if entry.is_dir() and not entry.is_symlink():
                shutil.copytree(entry, dest, dirs_exist_ok=True)
            else:
                if dest.is_dir() and not dest.is_symlink():
                    shutil.rmtree(dest)
                os.replace(entry, dest)
        except OSError as e:
            raise ExtractionError(f"Failed to install {entry.name} into {destination}: {e}") from e
