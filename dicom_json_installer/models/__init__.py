"""Persistent environment storage backends."""

from dicom_json_installer.models.environment_store import EnvironmentStore
from dicom_json_installer.models.environment_store import InMemoryEnvironmentStore

__all__ = ["EnvironmentStore", "InMemoryEnvironmentStore"]
