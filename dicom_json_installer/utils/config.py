"""Configuration management utilities."""

from __future__ import annotations

import json
import os
from pathlib import Path

from pydantic import BaseModel
from pydantic import field_validator

DEFAULT_REPOSITORY = "fayazexo/dicom-json"
DEFAULT_TOOL_NAME = "dicom-json"


class InstallerConfig(BaseModel):
    """Settings for a single install run."""

    repository: str = DEFAULT_REPOSITORY
    tool_name: str = DEFAULT_TOOL_NAME
    api_host: str = "api.github.com"
    download_host: str = "github.com"
    install_dir: Path | None = None
    tag: str | None = None
    sha256: str | None = None
    timeout: float | None = None

    @field_validator("repository")
    @classmethod
    def _check_repository(cls, value: str) -> str:
        owner, sep, name = value.strip().partition("/")
        if not sep or not owner or not name or "/" in name:
            raise ValueError(f"repository must look like 'owner/name', got {value!r}")
        return f"{owner}/{name}"

    @field_validator("sha256")
    @classmethod
    def _check_sha256(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip().lower()
        if len(value) != 64 or any(c not in "0123456789abcdef" for c in value):
            raise ValueError("sha256 must be a 64 character hex digest")
        return value

    @field_validator("tag", "install_dir", mode="before")
    @classmethod
    def _blank_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @classmethod
    def from_file(cls, config_file: Path) -> InstallerConfig:
        """
        Load configuration from a JSON file.

        Parameters
        ----------
        config_file : Path
            Path to configuration file

        Returns
        -------
        InstallerConfig
            Configuration instance
        """
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_file}")

        with open(config_file) as f:
            config_data = json.load(f)

        return cls(**config_data)

    @classmethod
    def from_env(cls) -> InstallerConfig:
        """
        Load configuration from environment variables.

        Returns
        -------
        InstallerConfig
            Configuration instance
        """
        config_data = {}

        if "DICOM_JSON_REPOSITORY" in os.environ:
            config_data["repository"] = os.environ["DICOM_JSON_REPOSITORY"]
        if "DICOM_JSON_INSTALL_DIR" in os.environ:
            config_data["install_dir"] = os.environ["DICOM_JSON_INSTALL_DIR"]
        if "DICOM_JSON_VERSION" in os.environ:
            config_data["tag"] = os.environ["DICOM_JSON_VERSION"]
        if "DICOM_JSON_SHA256" in os.environ:
            config_data["sha256"] = os.environ["DICOM_JSON_SHA256"]
        if "DICOM_JSON_API_HOST" in os.environ:
            config_data["api_host"] = os.environ["DICOM_JSON_API_HOST"]
        if "DICOM_JSON_DOWNLOAD_HOST" in os.environ:
            config_data["download_host"] = os.environ["DICOM_JSON_DOWNLOAD_HOST"]
        if "DICOM_JSON_TIMEOUT" in os.environ:
            config_data["timeout"] = float(os.environ["DICOM_JSON_TIMEOUT"])

        return cls(**config_data)

    def with_overrides(self, **overrides) -> InstallerConfig:
        """Return a copy with every non-``None`` override applied and re-validated."""
        data = self.model_dump()
        data.update({key: value for key, value in overrides.items() if value is not None})
        return type(self)(**data)


def default_install_dir(is_windows: bool, tool_name: str = DEFAULT_TOOL_NAME) -> Path:
    """
    Get the default install directory for the host platform.

    Parameters
    ----------
    is_windows : bool
        Whether the target is a native Windows host
    tool_name : str
        Tool name, used as the directory name on Windows

    Returns
    -------
    Path
        ``%LOCALAPPDATA%\\<tool>`` on Windows, ``~/.local/bin`` elsewhere
    """
    if is_windows:
        local_app_data = os.environ.get("LOCALAPPDATA")
        base = Path(local_app_data) if local_app_data else Path.home() / "AppData" / "Local"
        return base / tool_name
    return Path.home() / ".local" / "bin"


def load_config(config_file: Path | None = None) -> InstallerConfig:
    """
    Load configuration from file or environment.

    Parameters
    ----------
    config_file : Path | None
        Optional configuration file path

    Returns
    -------
    InstallerConfig
        Configuration instance
    """
    if config_file is not None:
        return InstallerConfig.from_file(config_file)

    return InstallerConfig.from_env()
