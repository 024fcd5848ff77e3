"""Error types raised by the install pipeline."""

from __future__ import annotations


class InstallerError(Exception):
    """Base class for fatal install errors."""


class UnsupportedPlatformError(InstallerError):
    """The host OS or CPU architecture has no published artifact."""


class ReleaseResolutionError(InstallerError):
    """The latest release tag could not be determined."""


class DownloadError(InstallerError):
    """The release artifact could not be retrieved."""


class ChecksumMismatchError(DownloadError):
    """The downloaded artifact does not match the expected SHA-256 digest."""


class ExtractionError(InstallerError):
    """The artifact could not be unpacked into the install directory."""


class PathRegistrationWarning(UserWarning):
    """The install directory could not be added to the search path."""
