"""Make the install directory reachable from the user's shell."""

from __future__ import annotations

import logging
import os
import warnings
from collections.abc import MutableMapping
from dataclasses import dataclass
from pathlib import Path

from dicom_json_installer.core.errors import PathRegistrationWarning
from dicom_json_installer.core.platform_resolver import PlatformDescriptor
from dicom_json_installer.models.environment_store import EnvironmentStore

logger = logging.getLogger(__name__)

ALREADY_CONFIGURED = "already_configured"
REGISTERED = "registered"
MANUAL = "manual"
FAILED = "failed"


@dataclass(frozen=True)
class RegistrationResult:
    """Outcome of a search path registration attempt. Never fatal."""

    status: str
    message: str
    export_line: str | None = None

    @property
    def on_path(self) -> bool:
        return self.status in (ALREADY_CONFIGURED, REGISTERED)


class PathRegistrar:
    """Add the install directory to the search path where that is safe.

    On Windows the persistent user ``Path`` is updated through an
    :class:`EnvironmentStore`. Elsewhere no shell profile is edited; the
    caller gets an ``export`` line to add by hand instead.
    """

    def __init__(
        self,
        platform: PlatformDescriptor,
        store: EnvironmentStore | None = None,
        environ: MutableMapping[str, str] | None = None,
    ) -> None:
        self.platform = platform
        self.store = store
        self.environ = os.environ if environ is None else environ
        self.separator = ";" if platform.is_windows else ":"

    def register(self, directory: Path) -> RegistrationResult:
        """
        Register ``directory`` on the search path.

        Parameters
        ----------
        directory : Path
            Install directory

        Returns
        -------
        RegistrationResult
            What was done, with a human readable message
        """
        if self._contains(self.environ.get("PATH", ""), directory):
            return RegistrationResult(ALREADY_CONFIGURED, f"{directory} is already on PATH")

        if self.platform.is_windows:
            return self._register_persistent(directory)

        export_line = f'export PATH="{_shell_path(directory)}:$PATH"'
        return RegistrationResult(
            MANUAL,
            f"{directory} is not on PATH; add this to your shell profile:",
            export_line=export_line,
        )

    def _register_persistent(self, directory: Path) -> RegistrationResult:
        if self.store is None:
            return self._failed(directory, "no persistent environment store available")

        try:
            current = self.store.read()
            if self._contains(current, directory):
                logger.info("%s already in persistent PATH", directory)
            else:
                updated = f"{current}{self.separator}{directory}" if current else str(directory)
                self.store.write(updated)
                logger.info("Appended %s to persistent user PATH", directory)
        except OSError as e:
            return self._failed(directory, str(e))

        session_path = self.environ.get("PATH", "")
        self.environ["PATH"] = (
            f"{session_path}{self.separator}{directory}" if session_path else str(directory)
        )
        return RegistrationResult(
            REGISTERED,
            f"Added {directory} to your user PATH; new terminals will pick it up",
        )

    def _failed(self, directory: Path, reason: str) -> RegistrationResult:
        message = f"Could not add {directory} to PATH: {reason}"
        warnings.warn(message, PathRegistrationWarning, stacklevel=3)
        return RegistrationResult(FAILED, message)

    def _contains(self, search_path: str, directory: Path) -> bool:
        wanted = self._normalise(str(directory))
        return any(
            self._normalise(entry) == wanted
            for entry in search_path.split(self.separator)
            if entry.strip()
        )

    def _normalise(self, entry: str) -> str:
        entry = os.path.expandvars(os.path.expanduser(entry.strip().strip('"')))
        entry = entry.rstrip("/\\") or entry
        if self.platform.is_windows:
            return entry.replace("/", "\\").lower()
        return entry


def _shell_path(directory: Path) -> str:
    """Render ``directory`` with ``$HOME`` in place of the home directory."""
    home = Path.home()
    try:
        relative = directory.relative_to(home)
    except ValueError:
        return str(directory)
    return f"$HOME/{relative.as_posix()}" if relative.parts else "$HOME"
