# -*- coding: utf-8 -*-
"""
Tests for the deploy archive builder
"""

import base64
import io
import os
import zipfile
from unittest.mock import patch

import pytest

from metaforce.archive import build_deploy_archive, collect_entries, encode_archive
from metaforce.exceptions import ArchiveError, SourceUnavailableError


def _names(data: bytes):
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        return zf.namelist()


class TestBuildDeployArchive:
    """Tests for build_deploy_archive"""

    def test_paths_relative_to_parent_of_root(self, project_dir):
        """proj/src/classes/Foo.cls archives as src/classes/Foo.cls"""
        data = build_deploy_archive(project_dir)

        assert sorted(_names(data)) == [
            "src/classes/Foo.cls",
            "src/classes/Foo.cls-meta.xml",
            "src/package.xml",
        ]

    def test_every_file_appears_once_with_content(self, project_dir):
        (project_dir / "classes" / "deep" / "er").mkdir(parents=True)
        (project_dir / "classes" / "deep" / "er" / "Bar.cls").write_bytes(b"\x00\x01binary")

        data = build_deploy_archive(str(project_dir))
        names = _names(data)

        assert len(names) == len(set(names)) == 4
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            assert zf.read("src/classes/Foo.cls") == b"public class Foo {}"
            assert zf.read("src/classes/deep/er/Bar.cls") == b"\x00\x01binary"

    def test_trailing_separator_does_not_change_paths(self, project_dir):
        data = build_deploy_archive(str(project_dir) + os.sep)
        assert "src/package.xml" in _names(data)

    def test_empty_directory_gives_empty_archive(self, tmp_path):
        (tmp_path / "empty").mkdir()
        assert _names(build_deploy_archive(tmp_path / "empty")) == []

    def test_missing_root_raises_ioerror(self, tmp_path):
        """Nonexistent root fails with an IOError kind and leaves nothing behind"""
        before = sorted(os.listdir(tmp_path))

        with pytest.raises(SourceUnavailableError) as exc_info:
            build_deploy_archive(tmp_path / "missing")

        assert isinstance(exc_info.value, IOError)
        assert sorted(os.listdir(tmp_path)) == before

    def test_file_root_rejected(self, project_dir):
        with pytest.raises(SourceUnavailableError):
            build_deploy_archive(project_dir / "package.xml")

    def test_write_failure_raises_archive_error(self, project_dir):
        with patch.object(zipfile.ZipFile, "write", side_effect=OSError("disk full")):
            with pytest.raises(ArchiveError) as exc_info:
                build_deploy_archive(project_dir)

        assert exc_info.value.entry.startswith("src/")
        assert isinstance(exc_info.value.__cause__, OSError)

    def test_files_older_than_1980_are_included(self, project_dir):
        os.utime(project_dir / "package.xml", (0, 0))

        data = build_deploy_archive(project_dir)

        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            assert zf.getinfo("src/package.xml").date_time[0] == 1980
            assert b"<name>ApexClass</name>" in zf.read("src/package.xml")

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks not supported")
    def test_symlinked_directories_not_followed(self, project_dir, tmp_path):
        outside = tmp_path / "outside"
        outside.mkdir()
        (outside / "Other.cls").write_text("x")
        os.symlink(outside, project_dir / "linked")

        entries = [name for name, _ in collect_entries(project_dir)]

        assert not any(name.startswith("src/linked") for name in entries)


class TestEncodeArchive:

    def test_base64_text(self):
        assert encode_archive(b"PK\x03\x04") == base64.b64encode(b"PK\x03\x04").decode("ascii")
