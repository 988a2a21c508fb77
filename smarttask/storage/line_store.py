"""
SmartTask — Durable Line Store.

Plain text files, one record per line. The store knows nothing about what
a line means; repositories own the encoding.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
import time
from pathlib import Path

logger = logging.getLogger(__name__)


class StorageError(OSError):
    """Raised when a file operation fails (directory creation, read, write)."""


class LineStore:
    """Read/write/append whole lines against files keyed by path."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self._encoding = encoding

    @staticmethod
    def _ensure_parent(path: Path) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.error("Could not create directory %s: %s", path.parent, exc)
            raise StorageError(f"Cannot create directory {path.parent}: {exc}") from exc

    def read_lines(self, path: str | Path) -> list[str]:
        """Return every line of the file, or [] when the file does not exist."""
        path = Path(path)
        if not path.exists():
            logger.debug("File does not exist yet: %s", path)
            return []
        try:
            with path.open("r", encoding=self._encoding, newline="") as fh:
                text = fh.read()
        except (OSError, UnicodeDecodeError) as exc:
            logger.error("Error reading %s: %s", path, exc)
            raise StorageError(f"Cannot read {path}: {exc}") from exc
        # Only "\n" separates records; other Unicode line breaks may appear in text.
        lines = [line.removesuffix("\r") for line in text.split("\n")]
        if lines and lines[-1] == "":
            lines.pop()
        return lines

    def write_lines(self, path: str | Path, lines: list[str]) -> None:
        """Atomically replace the file contents with `lines`.

        Writes to a temp file in the same directory and renames it over the
        target, so a crash mid-write never leaves a truncated file behind.
        """
        path = Path(path)
        self._ensure_parent(path)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding=self._encoding, newline="\n") as fh:
                for line in lines:
                    fh.write(line)
                    fh.write("\n")
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, path)
        except OSError as exc:
            leftover = Path(tmp_name)
            if leftover.exists():
                leftover.unlink()
            logger.error("Error writing %s: %s", path, exc)
            raise StorageError(f"Cannot write {path}: {exc}") from exc
        logger.debug("Wrote %d lines to %s", len(lines), path)

    def append_line(self, path: str | Path, line: str) -> None:
        path = Path(path)
        self._ensure_parent(path)
        try:
            with path.open("a", encoding=self._encoding, newline="\n") as fh:
                fh.write(line)
                fh.write("\n")
        except OSError as exc:
            logger.error("Error appending to %s: %s", path, exc)
            raise StorageError(f"Cannot append to {path}: {exc}") from exc

    def exists(self, path: str | Path) -> bool:
        return Path(path).exists()

    def delete(self, path: str | Path) -> bool:
        """Delete the file. Returns False if there was nothing to delete."""
        path = Path(path)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise StorageError(f"Cannot delete {path}: {exc}") from exc
        return True

    def size(self, path: str | Path) -> int:
        """File size in bytes, -1 if the file does not exist."""
        path = Path(path)
        if not path.exists():
            return -1
        return path.stat().st_size

    def last_modified(self, path: str | Path) -> float:
        """Modification time as a POSIX timestamp, -1 if the file does not exist."""
        path = Path(path)
        if not path.exists():
            return -1
        return path.stat().st_mtime

    def create_backup(self, path: str | Path, suffix: str = ".backup") -> Path | None:
        """Copy the file to `<path><suffix>`. Returns the backup path, or None if absent."""
        path = Path(path)
        if not path.exists():
            return None
        backup = path.with_name(path.name + suffix)
        try:
            shutil.copy2(path, backup)
        except OSError as exc:
            raise StorageError(f"Cannot back up {path}: {exc}") from exc
        logger.info("Backed up %s -> %s", path, backup)
        return backup

    def create_timestamped_backup(self, path: str | Path) -> Path | None:
        return self.create_backup(path, f".backup.{int(time.time() * 1000)}")

    def cleanup_backups(self, path: str | Path, suffix: str = ".backup.", keep: int = 5) -> list[Path]:
        """Delete all but the `keep` newest `<path><suffix>*` files by mtime.

        Returns the paths that were removed. A backup that cannot be deleted
        is logged and left in place.
        """
        if keep < 0:
            raise ValueError("keep must be >= 0")
        path = Path(path)
        if not path.parent.exists():
            return []
        prefix = path.name + suffix
        backups = [p for p in path.parent.iterdir() if p.is_file() and p.name.startswith(prefix)]
        backups.sort(key=lambda p: (p.stat().st_mtime, p.name), reverse=True)

        removed: list[Path] = []
        for old in backups[keep:]:
            try:
                old.unlink()
            except OSError as exc:
                logger.error("Error deleting backup %s: %s", old, exc)
                continue
            logger.info("Deleted old backup: %s", old.name)
            removed.append(old)
        return removed
