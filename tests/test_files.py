"""Tests for archive extraction and executable helpers."""

import io
import os
import stat
import tarfile
import zipfile

import pytest

from k8sbake.toolchain import files
from k8sbake.toolchain.files import (
    _is_safe_archive_member,
    _sanitize_path_component,
    extract_archive,
    find_executable,
    make_executable,
    safe_extract_path,
)

pytestmark = [pytest.mark.unit, pytest.mark.toolchain]


def _write_zip(path, members):
    with zipfile.ZipFile(path, "w") as zf:
        for name, data in members.items():
            zf.writestr(name, data)
    return str(path)


def _write_tar(path, members):
    with tarfile.open(path, "w:gz") as tf:
        for name, data in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            tf.addfile(info, io.BytesIO(data))
    return str(path)


class TestPathSafety:
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("v3.12.0", "v3.12.0"),
            ("  v1  ", "v1"),
            ("", None),
            (".", None),
            ("..", None),
            ("a/b", None),
            ("a\\b", None),
            ("/abs", None),
            ("nul\x00", None),
            (None, None),
        ],
    )
    def test_sanitize_path_component(self, name, expected):
        assert _sanitize_path_component(name) == expected

    @pytest.mark.parametrize(
        "member, safe",
        [
            ("linux-amd64/helm", True),
            ("helm.exe", True),
            ("../evil", False),
            ("a/../../evil", False),
            ("/etc/passwd", False),
            ("\\windows\\evil", False),
            ("", False),
        ],
    )
    def test_is_safe_archive_member(self, member, safe):
        assert _is_safe_archive_member(member) is safe

    def test_safe_extract_path_rejects_escape(self, tmp_path):
        with pytest.raises(ValueError):
            safe_extract_path(str(tmp_path), "../outside")

    def test_safe_extract_path_inside(self, tmp_path):
        target = safe_extract_path(str(tmp_path), "dir/file")
        assert target == os.path.join(os.path.realpath(str(tmp_path)), "dir", "file")


class TestExtractArchive:
    def test_zip_by_name(self, tmp_path):
        archive = _write_zip(
            tmp_path / "download", {"windows-amd64/helm.exe": b"exe", "README.md": b"hi"}
        )

        out = extract_archive(archive, "helm-v3.0.0-windows-amd64.zip", str(tmp_path / "out"))

        assert open(os.path.join(out, "windows-amd64", "helm.exe"), "rb").read() == b"exe"
        assert os.path.isfile(os.path.join(out, "README.md"))

    def test_tar_gz_by_name(self, tmp_path):
        archive = _write_tar(tmp_path / "download", {"linux-amd64/helm": b"elf"})

        out = extract_archive(archive, "helm-v3.0.0-linux-amd64.tar.gz", str(tmp_path / "out"))

        assert os.path.isfile(os.path.join(out, "linux-amd64", "helm"))

    def test_zip_sniffed_without_extension(self, tmp_path):
        archive = _write_zip(tmp_path / "download", {"helm": b"x"})

        out = extract_archive(archive, "https://example.com/artifact", str(tmp_path / "out"))

        assert os.path.isfile(os.path.join(out, "helm"))

    def test_unsafe_members_are_skipped(self, tmp_path, mocker):
        archive = _write_zip(
            tmp_path / "download", {"../evil": b"bad", "ok/helm": b"good"}
        )
        mock_logger = mocker.patch.object(files, "logger")

        out = extract_archive(archive, "a.zip", str(tmp_path / "out"))

        assert not (tmp_path / "evil").exists()
        assert os.path.isfile(os.path.join(out, "ok", "helm"))
        mock_logger.warning.assert_called_once()

    def test_corrupt_zip_raises(self, tmp_path):
        bad = tmp_path / "download"
        bad.write_bytes(b"not a zip")

        with pytest.raises(zipfile.BadZipFile):
            extract_archive(str(bad), "helm.zip", str(tmp_path / "out"))

    def test_extracts_only_into_given_directory(self, tmp_path, mocker):
        archive = _write_zip(tmp_path / "download", {"helm": b"x"})
        mkdtemp = mocker.patch("tempfile.mkdtemp")

        out = extract_archive(archive, "helm.zip", str(tmp_path / "nested" / "out"))

        assert out == str(tmp_path / "nested" / "out")
        assert os.path.isfile(os.path.join(out, "helm"))
        mkdtemp.assert_not_called()

    def test_destination_is_required(self, tmp_path):
        archive = _write_zip(tmp_path / "download", {"helm": b"x"})

        with pytest.raises(TypeError):
            extract_archive(archive, "helm.zip")


class TestFindExecutable:
    def test_nested_match(self, tmp_path):
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        (nested / "helm").write_bytes(b"")

        assert find_executable(str(tmp_path), "helm") == str(nested / "helm")

    def test_shallowest_match_wins(self, tmp_path):
        (tmp_path / "z").mkdir()
        (tmp_path / "z" / "helm").write_bytes(b"")
        (tmp_path / "a" / "deep").mkdir(parents=True)
        (tmp_path / "a" / "deep" / "helm").write_bytes(b"")

        assert find_executable(str(tmp_path), "helm") == str(tmp_path / "z" / "helm")

    def test_suffix_must_match(self, tmp_path):
        (tmp_path / "helm").write_bytes(b"")
        assert find_executable(str(tmp_path), "helm.exe") is None

    def test_root_can_be_the_file(self, tmp_path):
        path = tmp_path / "kubectl"
        path.write_bytes(b"")
        assert find_executable(str(path), "kubectl") == str(path)
        assert find_executable(str(path), "helm") is None

    def test_missing_root(self, tmp_path):
        assert find_executable(str(tmp_path / "missing"), "helm") is None


class TestMakeExecutable:
    def test_sets_execute_bits(self, tmp_path):
        path = tmp_path / "helm"
        path.write_bytes(b"")
        os.chmod(path, 0o600)

        make_executable(str(path))

        mode = stat.S_IMODE(os.stat(path).st_mode)
        assert mode & 0o755 == 0o755

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(OSError):
            make_executable(str(tmp_path / "nope"))
