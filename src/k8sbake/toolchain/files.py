"""
File Operations for the k8s-bake Toolchain Subsystem

This module provides archive extraction with traversal checks, executable
lookup inside extracted trees, and permission handling.
"""

import os
import shutil
import stat
import tarfile
import zipfile
from typing import List, Optional

from k8sbake.constants import (
    EXECUTABLE_PERMISSIONS,
    TAR_GZ_EXTENSIONS,
    ZIP_EXTENSION,
)
from k8sbake.exceptions import CacheError
from k8sbake.log_utils import logger


def _sanitize_path_component(component: Optional[str]) -> Optional[str]:
    """
    Validate and sanitize a single filesystem path component.

    Returns the trimmed component, or None when it is empty, "." or "..", an
    absolute path, contains a null byte, or contains a path separator.
    """
    if component is None:
        return None

    sanitized = component.strip()
    if not sanitized or sanitized in {".", ".."}:
        return None

    if os.path.isabs(sanitized):
        return None

    if "\x00" in sanitized:
        return None

    for separator in (os.sep, os.altsep, "/", "\\"):
        if separator and separator in sanitized:
            return None

    return sanitized


def _is_within_base(real_base_dir: str, candidate: str) -> bool:
    try:
        return os.path.commonpath([real_base_dir, candidate]) == real_base_dir
    except ValueError:
        return False


def _is_safe_archive_member(member_name: str) -> bool:
    """
    Determine whether an archive member name is safe to extract.

    Returns:
        `True` if the member name contains no absolute paths, parent-directory references, or null bytes, `False` otherwise.
    """
    if not member_name or member_name.startswith(("/", "\\")):
        return False
    if "\x00" in member_name:
        return False
    normalized = os.path.normpath(member_name)
    if os.path.isabs(normalized) or normalized == "..":
        return False
    if normalized.startswith(f"..{os.sep}"):
        return False
    if os.altsep and normalized.startswith(f"..{os.altsep}"):
        return False
    return True


def safe_extract_path(extract_dir: str, file_path: str) -> str:
    """
    Resolve a safe absolute extraction path and prevent directory traversal.

    Raises:
        ValueError: If the resolved path is outside extract_dir.
    """
    real_extract_dir = os.path.realpath(extract_dir)
    normalized_path = os.path.realpath(os.path.join(real_extract_dir, file_path))

    if not _is_within_base(real_extract_dir, normalized_path):
        raise ValueError(
            f"Unsafe extraction path '{file_path}' is outside base '{extract_dir}'"
        )

    return normalized_path


def _extract_zip(archive_path: str, extract_dir: str) -> int:
    count = 0
    with zipfile.ZipFile(archive_path, "r") as zip_ref:
        for info in zip_ref.infolist():
            if info.is_dir():
                continue
            if not _is_safe_archive_member(info.filename):
                logger.warning(
                    "Skipping unsafe archive member %s (possible traversal)",
                    info.filename,
                )
                continue
            target = safe_extract_path(extract_dir, info.filename)
            os.makedirs(os.path.dirname(target), exist_ok=True)
            with zip_ref.open(info) as source, open(target, "wb") as out:
                shutil.copyfileobj(source, out)
            count += 1
    return count


def _extract_tar(archive_path: str, extract_dir: str) -> int:
    count = 0
    with tarfile.open(archive_path, "r:*") as tar_ref:
        for member in tar_ref.getmembers():
            if not member.isfile():
                continue
            if not _is_safe_archive_member(member.name):
                logger.warning(
                    "Skipping unsafe archive member %s (possible traversal)",
                    member.name,
                )
                continue
            source = tar_ref.extractfile(member)
            if source is None:
                continue
            target = safe_extract_path(extract_dir, member.name)
            os.makedirs(os.path.dirname(target), exist_ok=True)
            with source, open(target, "wb") as out:
                shutil.copyfileobj(source, out)
            count += 1
    return count


def extract_archive(
    archive_path: str, archive_name: str, extract_dir: str
) -> str:
    """
    Extract a zip or gzipped tar archive into a directory.

    The archive type is taken from `archive_name` (usually the download URL),
    since downloaded files carry no extension. Unknown names are sniffed with
    zipfile/tarfile.

    Parameters:
        archive_path (str): Path of the downloaded archive.
        archive_name (str): Name or URL the archive came from.
        extract_dir (str): Destination directory; created if missing.

    Returns:
        str: The directory the archive was extracted into.

    Raises:
        zipfile.BadZipFile, tarfile.TarError: If the archive is corrupt.
        OSError: If files cannot be written.
    """
    os.makedirs(extract_dir, exist_ok=True)

    lowered = archive_name.lower()
    if lowered.endswith(ZIP_EXTENSION) or (
        not lowered.endswith(TAR_GZ_EXTENSIONS) and zipfile.is_zipfile(archive_path)
    ):
        count = _extract_zip(archive_path, extract_dir)
    else:
        count = _extract_tar(archive_path, extract_dir)

    logger.debug(f"Extracted {count} files from {archive_path} to {extract_dir}")
    return extract_dir


def find_executable(root: str, file_name: str) -> Optional[str]:
    """
    Recursively search `root` for a file named `file_name`.

    Directories are walked in sorted order so the shallowest, alphabetically
    first match wins. `root` may itself be the executable.

    Returns:
        Optional[str]: Absolute path of the first match, or None.
    """
    if os.path.isfile(root):
        return os.path.abspath(root) if os.path.basename(root) == file_name else None

    matches: List[str] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        if file_name in filenames:
            matches.append(os.path.join(dirpath, file_name))
    if not matches:
        return None
    matches.sort(key=lambda p: (p.count(os.sep), p))
    return os.path.abspath(matches[0])


def make_executable(path: str) -> None:
    """
    Set executable permission bits on `path`.

    Raises:
        OSError: If permissions cannot be changed.
    """
    mode = os.stat(path).st_mode
    os.chmod(path, stat.S_IMODE(mode) | EXECUTABLE_PERMISSIONS)


def copy_file(source: str, destination: str) -> None:
    """Copy a single file, creating the destination directory."""
    os.makedirs(os.path.dirname(destination), exist_ok=True)
    shutil.copy2(source, destination)


def copy_tree(source_dir: str, destination_dir: str) -> None:
    """
    Copy a directory tree into `destination_dir`.

    Raises:
        CacheError: If the source is not a directory.
    """
    if not os.path.isdir(source_dir):
        raise CacheError(f"Not a directory: {source_dir}", path=source_dir)
    shutil.copytree(source_dir, destination_dir, dirs_exist_ok=True)


def remove_tree(path: str) -> None:
    if os.path.isdir(path) and not os.path.islink(path):
        shutil.rmtree(path)
    elif os.path.lexists(path):
        os.remove(path)
