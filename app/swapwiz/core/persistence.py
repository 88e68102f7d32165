"""Persistent configuration stores.

The mount table (/etc/fstab) and kernel tuning file (/etc/sysctl.conf) are
treated as small line-oriented key-value stores. Every rewrite is preceded
by a point-in-time backup and performed atomically, and upsert/remove are
idempotent: repeating them yields the same file content.
"""

import functools
import logging
import os
import re
import shutil
import time
from collections.abc import Callable
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Concatenate, ParamSpec, TypeVar

from swapwiz.core.errors import PersistenceError

logger = logging.getLogger(__name__)

LinePredicate = Callable[[str], bool]

NEW_FILE_MODE = 0o644

# Bytes that are not valid UTF-8 (e.g. Latin-1 comments) round-trip unchanged.
_ERRORS = "surrogateescape"

P = ParamSpec("P")
R = TypeVar("R")


def fstab_entry_matcher(swap_path: Path | str) -> LinePredicate:
    """Match mount-table swap entries for a given file.

    Matches lines of the form ``<path> none swap ...`` with any whitespace
    between fields.
    """
    pattern = re.compile(rf"^{re.escape(str(swap_path))}\s+none\s+swap\s")
    return lambda line: pattern.match(line) is not None


def sysctl_key_matcher(key: str) -> LinePredicate:
    """Match kernel tuning lines that start with exactly ``key=``."""
    pattern = re.compile(rf"^{re.escape(key)}=")
    return lambda line: pattern.match(line) is not None


def with_backup(
    rewrite: Callable[Concatenate["LineStore", P], R],
) -> Callable[Concatenate["LineStore", P], R]:
    """Take a backup of the store before running a rewriting method."""

    @functools.wraps(rewrite)
    def wrapper(store: "LineStore", *args: P.args, **kwargs: P.kwargs) -> R:
        store.backup()
        return rewrite(store, *args, **kwargs)

    return wrapper


class LineStore:
    """A line-oriented text file edited through upsert/remove.

    Attributes:
        path: File backing the store.
    """

    def __init__(self, path: Path) -> None:
        """Initialize the store.

        Args:
            path: File backing the store. It need not exist yet.
        """
        self._path = path

    @property
    def path(self) -> Path:
        """File backing the store."""
        return self._path

    def read_lines(self) -> list[str]:
        """Read the store's lines without line terminators.

        Returns:
            Lines of the file; empty if it does not exist.

        Raises:
            PersistenceError: If the file exists but cannot be read.
        """
        try:
            return self._path.read_text(encoding="utf-8", errors=_ERRORS).splitlines()
        except FileNotFoundError:
            return []
        except (OSError, UnicodeError) as e:
            raise PersistenceError(f"Cannot read {self._path}: {e}") from e

    def backup(self) -> Path | None:
        """Copy the file to ``<file>.bak.<unix-seconds>``.

        An existing backup is never overwritten; a numeric suffix is added
        instead.

        Returns:
            Backup path, or None if the file does not exist.

        Raises:
            PersistenceError: If the copy fails.
        """
        if not self._path.exists():
            return None

        base = f"{self._path}.bak.{int(time.time())}"
        backup_path = Path(base)
        counter = 1
        while backup_path.exists():
            backup_path = Path(f"{base}.{counter}")
            counter += 1

        try:
            shutil.copy2(self._path, backup_path)
        except OSError as e:
            raise PersistenceError(f"Cannot back up {self._path}: {e}") from e

        logger.info("Backed up %s to %s", self._path, backup_path)
        return backup_path

    @with_backup
    def upsert(self, matches: LinePredicate, new_line: str) -> bool:
        """Replace all matching lines with exactly one new_line at the end.

        Creates the file with mode 0644 if it does not exist.

        Args:
            matches: Predicate selecting the lines that share new_line's key.
            new_line: Line to keep as the single entry for that key.

        Returns:
            True if the file content changed.

        Raises:
            PersistenceError: If the file cannot be read or written.
        """
        lines = self.read_lines()
        kept = [line for line in lines if not matches(line)]
        kept.append(new_line)
        if kept == lines and self._path.exists():
            logger.debug("%s already holds '%s'", self._path, new_line)
            return False
        self._write_lines(kept)
        logger.info("Wrote '%s' to %s", new_line, self._path)
        return True

    @with_backup
    def remove(self, matches: LinePredicate) -> int:
        """Remove all matching lines.

        A missing file is left missing.

        Args:
            matches: Predicate selecting the lines to drop.

        Returns:
            Number of lines removed.

        Raises:
            PersistenceError: If the file cannot be read or written.
        """
        if not self._path.exists():
            return 0
        lines = self.read_lines()
        kept = [line for line in lines if not matches(line)]
        removed = len(lines) - len(kept)
        if removed:
            self._write_lines(kept)
            logger.info("Removed %d line(s) from %s", removed, self._path)
        return removed

    def _write_lines(self, lines: list[str]) -> None:
        """Atomically replace the file with the given lines.

        The existing file's permissions are preserved; a new file gets 0644.
        """
        content = "".join(f"{line}\n" for line in lines)
        existed = self._path.exists()
        tmp_path: Path | None = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                errors=_ERRORS,
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_path = Path(f.name)
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            if existed:
                shutil.copymode(self._path, tmp_path)
            else:
                tmp_path.chmod(NEW_FILE_MODE)
            os.replace(tmp_path, self._path)
        except (OSError, UnicodeError) as e:
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink()
            raise PersistenceError(f"Failed to write {self._path}: {e}") from e


def upsert_line(target_file: Path, matches: LinePredicate, new_line: str) -> bool:
    """Ensure new_line is the only line in target_file matching the predicate.

    See LineStore.upsert.
    """
    return LineStore(target_file).upsert(matches, new_line)


def remove_line(target_file: Path, matches: LinePredicate) -> int:
    """Remove every line in target_file matching the predicate.

    See LineStore.remove.
    """
    return LineStore(target_file).remove(matches)
