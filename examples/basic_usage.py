#!/usr/bin/env python3
"""
Basic usage example for dicom-json-installer.

This script walks through the install stages one at a time instead of calling
``InstallPipeline.run``:
1. Detect the host platform
2. Resolve the latest release
3. Download the artifact for this platform
4. Extract it into a scratch install directory
5. Check whether that directory is on PATH

Nothing outside ``./example_install`` is modified: the PATH step uses an
in-memory environment store.
"""

import logging
from pathlib import Path

from dicom_json_installer.core.artifact_fetcher import ArtifactFetcher
from dicom_json_installer.core.errors import InstallerError
from dicom_json_installer.core.installer import Installer
from dicom_json_installer.core.installer import InstallTarget
from dicom_json_installer.core.installer import staged_download
from dicom_json_installer.core.path_registrar import PathRegistrar
from dicom_json_installer.core.platform_resolver import detect_platform
from dicom_json_installer.core.release_locator import ReleaseLocator
from dicom_json_installer.models.environment_store import InMemoryEnvironmentStore
from dicom_json_installer.utils.config import InstallerConfig
from dicom_json_installer.utils.logging import setup_logging

logger = logging.getLogger(__name__)


def main():
    """Install dicom-json into ./example_install step by step."""
    setup_logging(logging.INFO)

    config = InstallerConfig()
    install_dir = Path("./example_install").resolve()

    try:
        # Step 1: platform tokens
        platform = detect_platform()
        logger.info("Step 1: platform is %s/%s", platform.os, platform.arch)

        # Step 2: latest release
        release = ReleaseLocator(config.repository, config.api_host).latest()
        logger.info("Step 2: latest release of %s is %s", release.repository, release.tag)

        target = InstallTarget.for_platform(install_dir, config.tool_name, platform)
        fetcher = ArtifactFetcher(config.tool_name, config.download_host)

        with staged_download() as temp_dir:
            # Step 3: download
            reference = fetcher.reference(release, platform, temp_dir)
            logger.info("Step 3: downloading %s", reference.url)
            archive = fetcher.fetch(reference)

            # Step 4: extract
            executable = Installer(platform).install(archive, target)
            logger.info("Step 4: installed %s", executable)

    except InstallerError as e:
        logger.error("Install failed: %s", e)
        return

    # Step 5: PATH check against a throwaway store and environment
    store = InMemoryEnvironmentStore()
    registrar = PathRegistrar(platform, store, environ={"PATH": ""})
    result = registrar.register(target.directory)
    logger.info("Step 5: PATH registration -> %s", result.status)
    if result.export_line:
        logger.info("   %s", result.export_line)

    logger.info("Try it: %s --help", executable)


if __name__ == "__main__":
    main()
