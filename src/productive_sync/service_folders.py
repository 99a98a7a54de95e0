"""
Service folder discovery

A project folder declares the Productive service it bills to with a
`.productive` file holding the numeric service id.
"""

import logging
import os
import re
from pathlib import Path
from typing import Callable, Iterable, Optional

from .models import ServiceFolderMap

logger = logging.getLogger(__name__)

MARKER_FILE = ".productive"
SKIP_DIRS = frozenset({".git", ".hg", ".svn", "node_modules", "dist", ".venv", "__pycache__"})

_SERVICE_ID_RE = re.compile(r"[0-9]+")


def default_exclude(name: str) -> bool:
    """Directories that never hold project folders worth scanning"""
    return name in SKIP_DIRS


def normalize_path(path: str) -> str:
    """Absolute path without trailing separators ("/" stays "/")"""
    return os.path.abspath(path)


def is_path_within_folder(path: str, folder: str) -> bool:
    """True if `path` is `folder` itself or lies below it.

    Compares on separator boundaries, so /a2/b is not within /a.
    """
    normalized_path = normalize_path(path)
    normalized_folder = normalize_path(folder)
    if normalized_path == normalized_folder:
        return True
    prefix = normalized_folder if normalized_folder.endswith(os.sep) else normalized_folder + os.sep
    return normalized_path.startswith(prefix)


def is_path_within_any_folder(path: str, folders: Iterable[str]) -> bool:
    return any(is_path_within_folder(path, folder) for folder in folders)


def parse_service_id(content: str) -> Optional[str]:
    trimmed = content.strip()
    if not _SERVICE_ID_RE.fullmatch(trimmed):
        return None
    return trimmed


def read_service_id(folder: str) -> Optional[str]:
    """Service id declared by the folder's own marker file, if any"""
    marker = Path(folder) / MARKER_FILE
    try:
        content = marker.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return None

    service_id = parse_service_id(content)
    if service_id is None:
        logger.warning(f"Invalid {MARKER_FILE} file at {marker} (expected numeric service id)")
    return service_id


def discover_service_folders(
    scan_dirs: Iterable[str],
    exclude: Callable[[str], bool] = default_exclude,
) -> ServiceFolderMap:
    """
    Walk every directory below the scan roots and collect marker folders

    Args:
        scan_dirs: root folders to walk
        exclude: predicate on a directory name; matching directories are not entered

    Returns:
        {service_id: [folder, ...]} in discovery order
    """
    result: ServiceFolderMap = {}

    for scan_dir in scan_dirs:
        stack = [normalize_path(scan_dir)]
        while stack:
            folder = stack.pop()
            try:
                with os.scandir(folder) as it:
                    subdirs = [
                        entry.path for entry in it
                        if entry.is_dir(follow_symlinks=False) and not exclude(entry.name)
                    ]
            except OSError:
                continue

            service_id = read_service_id(folder)
            if service_id:
                folders = result.setdefault(service_id, [])
                if folder not in folders:
                    folders.append(folder)

            # reversed so siblings are visited in name order
            stack.extend(sorted(subdirs, reverse=True))

    return result


def count_folders(service_folders: ServiceFolderMap) -> int:
    return sum(len(folders) for folders in service_folders.values())


def all_folders(service_folders: ServiceFolderMap) -> list[str]:
    """Unique mapped folders across all service ids"""
    seen: dict[str, None] = {}
    for folders in service_folders.values():
        for folder in folders:
            seen.setdefault(folder, None)
    return list(seen)
