"""Map the host OS and CPU architecture onto release artifact tokens."""

from __future__ import annotations

import logging
import platform
import sys
from dataclasses import dataclass

from dicom_json_installer.core.errors import UnsupportedPlatformError

logger = logging.getLogger(__name__)

WINDOWS = "windows"
MACOS = "macos"
LINUX = "linux"

_ARCH_TOKENS = {
    "x86_64": "x86_64",
    "amd64": "x86_64",
    "arm64": "aarch64",
    "aarch64": "aarch64",
}


@dataclass(frozen=True)
class PlatformDescriptor:
    """OS and architecture tokens used in artifact filenames."""

    os: str
    arch: str

    @property
    def is_windows(self) -> bool:
        return self.os == WINDOWS

    @property
    def archive_extension(self) -> str:
        return "zip" if self.is_windows else "tar.gz"

    @property
    def executable_suffix(self) -> str:
        return ".exe" if self.is_windows else ""

    def artifact_filename(self, tool_name: str) -> str:
        """Return ``<tool>-<os>-<arch>.<ext>`` for this platform."""
        return f"{tool_name}-{self.os}-{self.arch}.{self.archive_extension}"


def resolve_platform(
    system: str,
    machine: str,
    *,
    native_windows: bool = False,
) -> PlatformDescriptor:
    """
    Resolve raw host identifiers into a platform descriptor.

    Parameters
    ----------
    system : str
        OS identifier, e.g. ``platform.system()`` or ``uname -s``
    machine : str
        Machine architecture, e.g. ``platform.machine()`` or ``uname -m``
    native_windows : bool
        True when running as a native Windows process; the OS token is then
        ``windows`` and ``system`` is not inspected

    Returns
    -------
    PlatformDescriptor
        Canonical OS and architecture tokens

    Raises
    ------
    UnsupportedPlatformError
        If either the OS or the architecture has no published artifact
    """
    if native_windows:
        os_token = WINDOWS
    else:
        lowered = system.lower()
        if "darwin" in lowered:
            os_token = MACOS
        elif "linux" in lowered:
            os_token = LINUX
        else:
            raise UnsupportedPlatformError(f"Unsupported OS: {system or 'unknown'}")

    arch_token = _ARCH_TOKENS.get(machine.lower())
    if arch_token is None:
        raise UnsupportedPlatformError(f"Unsupported architecture: {machine or 'unknown'}")

    return PlatformDescriptor(os=os_token, arch=arch_token)


def detect_platform() -> PlatformDescriptor:
    """Resolve the platform of the running interpreter."""
    system = platform.system()
    machine = platform.machine()
    logger.debug("Host reports system=%r machine=%r", system, machine)
    return resolve_platform(system, machine, native_windows=sys.platform == "win32")
