"""Utility helpers for working with files."""

from __future__ import annotations

import os
import shutil
import zipfile
from pathlib import Path, PurePosixPath
from typing import Iterable, Iterator

DOCUMENT_SUFFIXES = frozenset({".html", ".htm", ".pdf", ".pptx"})
ARCHIVE_SUFFIXES = frozenset({".zip"})
IGNORED_DIRS = frozenset({"assets", "node_modules", "__pycache__", "__MACOSX"})
THUMBNAIL_SUFFIX = ".png"


def flatten_thumbnail_name(relative_path: str) -> str:
    """Flatten a document path into a unique thumbnail file name.

    ``_`` is escaped as ``_-`` and each path separator becomes ``__``. The
    escape is prefix-free so distinct paths never share a name, e.g.
    ``foo/bar.html`` -> ``foo__bar.html.png`` and ``foo_bar.html`` ->
    ``foo_-bar.html.png``.
    """
    posix = relative_path.replace("\\", "/").strip("/")
    escaped = posix.replace("_", "_-").replace("/", "__")
    return escaped + THUMBNAIL_SUFFIX


def is_ignored(relative: PurePosixPath) -> bool:
    """True when any segment is hidden or an asset/dependency folder."""
    for part in relative.parts:
        if part.startswith(".") or part in IGNORED_DIRS:
            return True
    return False


def _iter_matching(root: Path, suffixes: Iterable[str]) -> Iterator[Path]:
    wanted = frozenset(suffixes)
    found = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [
            name for name in dirnames if not name.startswith(".") and name not in IGNORED_DIRS
        ]
        for name in filenames:
            if name.startswith("."):
                continue
            if Path(name).suffix.lower() in wanted:
                found.append(Path(dirpath) / name)
    yield from sorted(found, key=lambda path: path.relative_to(root).as_posix())


def iter_document_paths(root: Path) -> Iterator[Path]:
    """Yield presentation files under ``root``, skipping ignored folders."""
    if not root.is_dir():
        return
    yield from _iter_matching(root, DOCUMENT_SUFFIXES)


def iter_archive_paths(root: Path) -> Iterator[Path]:
    """Yield zip bundles under ``root``, skipping ignored folders."""
    if not root.is_dir():
        return
    yield from _iter_matching(root, ARCHIVE_SUFFIXES)


def relative_posix(path: Path, root: Path) -> str:
    return path.relative_to(root).as_posix()


class LocalFileSystem:
    """Filesystem effects used by the build, kept behind one seam."""

    def read_text(self, path: Path) -> str:
        return Path(path).read_text(encoding="utf-8")

    def read_bytes(self, path: Path) -> bytes:
        return Path(path).read_bytes()

    def mtime(self, path: Path) -> float:
        return Path(path).stat().st_mtime

    def exists(self, path: Path) -> bool:
        return Path(path).exists()

    def is_dir(self, path: Path) -> bool:
        return Path(path).is_dir()

    def make_dirs(self, path: Path) -> None:
        Path(path).mkdir(parents=True, exist_ok=True)

    def write_text(self, path: Path, content: str) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")

    def write_bytes(self, path: Path, content: bytes) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)

    def copy_file(self, src: Path, dst: Path) -> None:
        dst = Path(dst)
        dst.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src, dst)

    def copy_tree(self, src: Path, dst: Path) -> None:
        shutil.copytree(src, dst, dirs_exist_ok=True)

    def move_file(self, src: Path, dst: Path) -> None:
        dst = Path(dst)
        dst.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(src), str(dst))

    def remove_file(self, path: Path) -> None:
        Path(path).unlink(missing_ok=True)

    def remove_tree(self, path: Path) -> None:
        if Path(path).exists():
            shutil.rmtree(path)

    def reset_dir(self, path: Path) -> None:
        """Remove ``path`` with its contents and create it empty."""
        self.remove_tree(path)
        self.make_dirs(path)

    def iter_files(self, root: Path) -> Iterator[Path]:
        """Yield every file below ``root`` in a stable order."""
        yield from sorted(p for p in Path(root).rglob("*") if p.is_file())

    def extract_zip(self, archive: Path, destination: Path) -> None:
        """Expand ``archive`` into ``destination``.

        Raises ``zipfile.BadZipFile`` for corrupt bundles and ``ValueError``
        for members that would land outside ``destination``.
        """
        with zipfile.ZipFile(archive) as bundle:
            for member in bundle.namelist():
                member_path = PurePosixPath(member.replace("\\", "/"))
                if member_path.is_absolute() or ".." in member_path.parts:
                    raise ValueError(f"Unsafe member path in {archive.name}: {member}")
            Path(destination).mkdir(parents=True, exist_ok=True)
            bundle.extractall(destination)
