"""Installer for the dicom-json command-line tool.

Detects the host platform, downloads the matching prebuilt release from GitHub
and puts the executable somewhere the shell can find it.
"""

__version__ = "0.1.0"

__author__ = "DICOM-JSON Developers"
__license__ = "MIT"
__maintainer__ = "DICOM-JSON Developers"

from dicom_json_installer.core.pipeline import InstallPipeline  # noqa: E402
from dicom_json_installer.utils.config import InstallerConfig  # noqa: E402

__all__ = [
    "__version__",
    "InstallPipeline",
    "InstallerConfig",
]
