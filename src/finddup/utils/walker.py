import logging
import os
import stat
from pathlib import Path
from typing import Callable, Iterator, NamedTuple

logger = logging.getLogger(__name__)


class FileContext:
    """Context object for a directory entry met during traversal.

    The lstat() result is fetched lazily from the entry path and cached, so an
    entry is stat'ed at most once no matter how many predicates are checked.
    """
    def __init__(self, path: Path | None = None, st: os.stat_result | None = None):
        self._stat: os.stat_result | None = st
        self._path: Path | None = path

    @property
    def stat(self) -> os.stat_result:
        if self._stat is None:
            if self._path is None:
                raise LookupError("stat not available and path not provided")
            self._stat = self._path.stat(follow_symlinks=False)
        return self._stat

    def is_file(self):
        return stat.S_ISREG(self.stat.st_mode)

    def is_dir(self):
        return stat.S_ISDIR(self.stat.st_mode)

    def is_symlink(self):
        return stat.S_ISLNK(self.stat.st_mode)


class WalkPolicy(NamedTuple):
    """Policy controlling filesystem traversal behavior.

    Attributes:
        on_error: Called with (directory_path, error) when a directory cannot be listed or
                  one of its entries cannot be stat'ed. The walk continues afterwards.
    """
    on_error: Callable[[Path, OSError], None]


def walk(path: Path, policy: WalkPolicy) -> Iterator[tuple[Path, FileContext]]:
    """Traverse the tree below path and yield every regular file in it.

    Directories are descended into through an explicit stack, so the depth of the
    tree is bounded only by memory. Symbolic links are neither followed nor yielded,
    and other special files are skipped.
    """
    pending: list[Path] = [path]

    while pending:
        directory = pending.pop()

        try:
            children = list(directory.iterdir())
        except OSError as e:
            policy.on_error(directory, e)
            continue

        subdirectories = []
        for child in children:
            context = FileContext(child)
            try:
                is_dir = context.is_dir()
            except OSError as e:
                policy.on_error(directory, e)
                continue

            if is_dir:
                subdirectories.append(child)
            elif context.is_file():
                yield child, context
            elif context.is_symlink():
                logger.debug(f"Not following symbolic link: {child}")
            else:
                logger.debug(f"Skipping special file: {child}")

        # Reversed so that directories are visited in listing order
        pending.extend(reversed(subdirectories))


def walk_with_policy(path: Path, policy: WalkPolicy) -> Iterator[tuple[Path, FileContext]]:
    """Walk a scan root using the provided policy.

    The root is listed as given, so a root that is itself a symbolic link to a
    directory is scanned; links met below the root are not followed.

    Yields:
        Tuples of (file_path, file_context) for each regular file encountered, where
        file_path is the root joined with the entry's relative path
    """
    logger.info(f"Walking: {path}")
    yield from walk(path, policy)
