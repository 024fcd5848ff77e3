"""Install pipeline stages: platform, release, download, extraction and PATH setup."""

from dicom_json_installer.core.errors import InstallerError
from dicom_json_installer.core.pipeline import InstallPipeline
from dicom_json_installer.core.pipeline import InstallResult

__all__ = ["InstallerError", "InstallPipeline", "InstallResult"]
