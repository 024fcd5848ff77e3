"""Utility functions and helpers."""

from dicom_json_installer.utils.config import InstallerConfig
from dicom_json_installer.utils.logging import setup_logging

__all__ = ["InstallerConfig", "setup_logging"]
