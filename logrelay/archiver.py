"""
Log archiver.

Packs log files into a gzip compressed tar archive and then deletes or
truncates the archived files. Only one archive operation runs at a time; a
request made while one is in progress is rejected, not queued.
"""

from __future__ import annotations

import logging
import os
import tarfile
import threading
from collections.abc import Callable, Sequence
from typing import Any

from .exceptions import ArchiveError, ArchiverBusyError, ValidationError
from .log.constants import LogConstants

PathPredicate = Callable[[str], Any]
ArchiveCallback = Callable[[Exception | None], Any]


def _readonly(info: tarfile.TarInfo) -> tarfile.TarInfo:
    """Store every entry world readable and read-only."""
    info.mode = 0o555 if info.isdir() else 0o444
    return info


def _ask(fn: PathPredicate | None, name: str, path: str) -> Any:
    """Call a user predicate, wrapping its failure as an ArchiveError."""
    if fn is None:
        return None
    try:
        return fn(path)
    except Exception as e:
        raise ArchiveError(f"{name} failed: {e}", predicate=name, file=path) from e


class LogArchiver:
    """
    Tar and gzip log files.

    Example:
        archiver = LogArchiver()
        archiver.archive(
            "./logs/archive.tar.gz",
            should_delete_logs=True,
            clear_fn=lambda path: os.path.basename(path) == "err.log",
            callback=lambda err: print("done", err),
        )
    """

    def __init__(self, lg: logging.Logger | None = None) -> None:
        self._lg = lg or logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._busy = False

    @property
    def is_busy(self) -> bool:
        """True while an archive operation is running."""
        return self._busy

    def archive(
        self,
        target_file: str,
        should_delete_logs: bool,
        source_dir: str = LogConstants.DEFAULT_LOG_DIR,
        ignore_fn: PathPredicate | None = None,
        delete_fn: PathPredicate | None = None,
        clear_fn: PathPredicate | None = None,
        entries: Sequence[str] | None = None,
        callback: ArchiveCallback | None = None,
        background: bool = True,
    ) -> bool:
        """
        Archive the files of a directory.

        Each file is first offered to ``ignore_fn`` (true: skipped entirely),
        then to ``clear_fn`` (true: archived and truncated, never deleted),
        then to ``delete_fn`` (True/False: archived and deleted/kept; any
        other result falls through) and finally archived and deleted when
        ``should_delete_logs`` is set. Predicates receive the file path.

        Args:
            target_file: Path of the .tar.gz to write (never packed itself)
            should_delete_logs: Delete archived files by default
            source_dir: Directory whose files are archived
            ignore_fn: Excludes a file from the archive
            delete_fn: Overrides the default delete decision
            clear_fn: Marks a file for truncation
            entries: Explicit file names (relative to source_dir) to archive
            callback: Called with None on success or the error
            background: Run in a daemon thread instead of blocking

        Returns:
            True if archiving started, False if the archiver is busy

        Raises:
            ValidationError: If arguments have the wrong type
        """
        if not isinstance(target_file, str) or not target_file:
            raise ValidationError("'target_file' must be a non-empty string")
        if not isinstance(should_delete_logs, bool):
            raise ValidationError("'should_delete_logs' must be a boolean")
        if not isinstance(source_dir, str) or not source_dir:
            raise ValidationError("'source_dir' must be a non-empty string")
        for name, fn in (("ignore_fn", ignore_fn), ("delete_fn", delete_fn),
                         ("clear_fn", clear_fn), ("callback", callback)):
            if fn is not None and not callable(fn):
                raise ValidationError(f"'{name}' must be callable")

        with self._lock:
            if self._busy:
                busy = True
            else:
                busy = False
                self._busy = True

        if busy:
            if callback is not None:
                callback(ArchiverBusyError())
            return False

        def job() -> None:
            self._run(
                target_file, should_delete_logs, source_dir,
                ignore_fn, delete_fn, clear_fn, entries, callback,
            )

        if background:
            threading.Thread(target=job, name="log-archiver", daemon=True).start()
        else:
            job()
        return True

    def _run(
        self,
        target_file: str,
        should_delete_logs: bool,
        source_dir: str,
        ignore_fn: PathPredicate | None,
        delete_fn: PathPredicate | None,
        clear_fn: PathPredicate | None,
        entries: Sequence[str] | None,
        callback: ArchiveCallback | None,
    ) -> None:
        error: Exception | None = None
        packed = False
        try:
            to_delete, to_clear = self._pack(
                target_file, should_delete_logs, source_dir,
                ignore_fn, delete_fn, clear_fn, entries,
            )
            packed = True
            self._cleanup(to_delete, to_clear)
            self._lg.info(
                "logs archived",
                extra={"target": target_file, "deleted": len(to_delete), "cleared": len(to_clear)},
            )
        except ArchiveError as e:
            error = e
            self._lg.error("failed to archive logs", extra={"exception": e})
        except (OSError, tarfile.TarError) as e:
            error = ArchiveError(f"failed to archive logs: {e}", target=target_file)
            error.__cause__ = e
            self._lg.error("failed to archive logs", extra={"exception": e})
        finally:
            if error is not None and not packed:
                self._remove_partial(target_file)
            with self._lock:
                self._busy = False

        if callback is None:
            return
        try:
            callback(error)
        except Exception as e:
            self._lg.warning("archive callback error", extra={"exception": e})

    def _files(
        self, source_dir: str, target_file: str, entries: Sequence[str] | None
    ) -> list[str]:
        if entries is not None:
            paths = [os.path.join(source_dir, entry) for entry in entries]
        else:
            paths = []
            for root, dirs, files in os.walk(source_dir):
                dirs.sort()
                paths.extend(os.path.join(root, name) for name in sorted(files))

        target = os.path.realpath(target_file)
        return [p for p in paths if os.path.realpath(p) != target]

    def _pack(
        self,
        target_file: str,
        should_delete_logs: bool,
        source_dir: str,
        ignore_fn: PathPredicate | None,
        delete_fn: PathPredicate | None,
        clear_fn: PathPredicate | None,
        entries: Sequence[str] | None,
    ) -> tuple[list[str], list[str]]:
        to_delete: list[str] = []
        to_clear: list[str] = []

        target_dir = os.path.dirname(target_file)
        if target_dir:
            os.makedirs(target_dir, exist_ok=True)

        files = self._files(source_dir, target_file, entries)
        with tarfile.open(target_file, "w:gz") as tar:
            for path in files:
                if _ask(ignore_fn, "ignore_fn", path):
                    continue

                tar.add(path, arcname=os.path.relpath(path, source_dir), filter=_readonly)

                if _ask(clear_fn, "clear_fn", path):
                    to_clear.append(path)
                    continue

                if delete_fn is not None:
                    should_delete = _ask(delete_fn, "delete_fn", path)
                    if should_delete is True:
                        to_delete.append(path)
                        continue
                    if should_delete is False:
                        continue

                if should_delete_logs:
                    to_delete.append(path)

        return to_delete, to_clear

    def _cleanup(self, to_delete: list[str], to_clear: list[str]) -> None:
        for path in to_delete:
            try:
                os.unlink(path)
            except OSError as e:
                self._lg.warning("failed to delete log file", extra={"exception": e, "file": path})
        for path in to_clear:
            try:
                os.truncate(path, 0)
            except OSError as e:
                self._lg.warning("failed to clear log file", extra={"exception": e, "file": path})

    def _remove_partial(self, target_file: str) -> None:
        try:
            os.unlink(target_file)
        except FileNotFoundError:
            pass
        except OSError as e:
            self._lg.warning(
                "failed to remove partial archive", extra={"exception": e, "target": target_file}
            )
