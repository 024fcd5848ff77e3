"""Shared fixtures for installer tests."""

from __future__ import annotations

import io
import json
import tarfile
import tempfile
import zipfile
from pathlib import Path

import pytest


def _build_tar_gz(path: Path, members: dict[str, bytes]) -> Path:
    with tarfile.open(path, "w:gz") as archive:
        for name, data in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = 0o644
            archive.addfile(info, io.BytesIO(data))
    return path


def _build_zip(
    path: Path, members: dict[str, bytes], compression: int = zipfile.ZIP_STORED
) -> Path:
    with zipfile.ZipFile(path, "w", compression=compression) as archive:
        for name, data in members.items():
            archive.writestr(name, data)
    return path


@pytest.fixture
def make_tar_gz():
    """Factory writing a gzip-compressed tar archive with the given members."""
    return _build_tar_gz


@pytest.fixture
def make_zip():
    """Factory writing a zip archive with the given members."""
    return _build_zip


@pytest.fixture
def tar_gz_bytes(tmp_path):
    """Bytes of a linux artifact containing a ``tool`` executable."""
    archive = _build_tar_gz(
        tmp_path / "fixture.tar.gz",
        {"tool": b"#!/bin/sh\necho tool\n", "README.md": b"tool readme\n"},
    )
    data = archive.read_bytes()
    archive.unlink()
    return data


@pytest.fixture
def release_body():
    """Factory for a releases API response body."""

    def _body(payload) -> io.BytesIO:
        return io.BytesIO(json.dumps(payload).encode("utf-8"))

    return _body


@pytest.fixture
def isolated_tempdir(tmp_path, monkeypatch):
    """Point :mod:`tempfile` at an empty directory so leftovers can be counted."""
    temp_root = tmp_path / "tmp"
    temp_root.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(temp_root))
    return temp_root
