"""File and directory copying helpers that log failures before raising."""

from __future__ import annotations

import os
import shutil
import stat
from contextlib import contextmanager
from typing import Iterator

from nomadpack.logger import Logger


@contextmanager
def _logged(logger: Logger, action: str) -> Iterator[None]:
    """Log any OS error raised inside the block at debug level, then re-raise."""
    try:
        yield
    except OSError as exc:
        logger.debug(f"error {action}: {exc}")
        raise


def copy_file(
    source_path: str | os.PathLike,
    destination_path: str | os.PathLike,
    logger: Logger,
) -> None:
    """Copy a file's contents and permission bits to a new path."""
    with _logged(logger, "opening source file"):
        source = open(source_path, "rb")
    with source:
        with _logged(logger, "opening destination file"):
            destination = open(destination_path, "wb")
        with destination:
            with _logged(logger, "copying file"):
                shutil.copyfileobj(source, destination)
            with _logged(logger, "syncing destination file"):
                destination.flush()
                os.fsync(destination.fileno())

    with _logged(logger, "getting source file info"):
        source_mode = os.stat(source_path).st_mode
    with _logged(logger, "setting destination file permissions"):
        os.chmod(destination_path, stat.S_IMODE(source_mode))


def copy_dir(
    source_dir: str | os.PathLike,
    destination_dir: str | os.PathLike,
    logger: Logger,
) -> None:
    """Recursively copy a directory to a destination that must not exist yet.

    Symbolic links inside the source directory are skipped.
    """
    source_dir = os.path.normpath(os.fspath(source_dir))
    destination_dir = os.path.normpath(os.fspath(destination_dir))

    with _logged(logger, "getting source directory info"):
        source_info = os.stat(source_dir)

    if not stat.S_ISDIR(source_info.st_mode):
        error = NotADirectoryError("source is not a directory")
        logger.debug(str(error))
        raise error

    try:
        os.stat(destination_dir)
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.debug(f"error getting destination file info: {exc}")
        raise
    else:
        error = FileExistsError("destination already exists")
        logger.debug(str(error))
        raise error

    with _logged(logger, "creating destination directory"):
        os.makedirs(destination_dir, mode=stat.S_IMODE(source_info.st_mode))

    with _logged(logger, "reading source directory entries"):
        with os.scandir(source_dir) as scanner:
            entries = sorted(scanner, key=lambda entry: entry.name)

    for entry in entries:
        source_path = os.path.join(source_dir, entry.name)
        destination_path = os.path.join(destination_dir, entry.name)

        if entry.is_dir(follow_symlinks=False):
            copy_dir(source_path, destination_path, logger)
        elif entry.is_symlink():
            continue
        else:
            copy_file(source_path, destination_path, logger)