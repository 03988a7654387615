import abc
from enum import StrEnum
from pathlib import Path
from typing import NamedTuple


class FileRecord(NamedTuple):
    """A regular file discovered during a scan.

    Attributes:
        path: Path of the file as reached from its scan root (unique per scan)
        size: Size in bytes at the time the file was discovered
        content_hash: Text-encoded content digest, filled in once the file has been hashed
    """
    path: Path
    size: int
    content_hash: str | None = None


class SizeGroup(NamedTuple):
    """All discovered files sharing one exact byte size."""
    size: int
    members: list[FileRecord]


class HashGroup(NamedTuple):
    """Files sharing both size and content digest.

    Singleton groups are emitted as well; consumers decide whether to skip them.
    """
    size: int
    digest: str
    members: list[FileRecord]

    @property
    def is_duplicate(self) -> bool:
        return len(self.members) > 1

    @property
    def wasted_size(self) -> int:
        """Bytes reclaimable by keeping a single copy of this group."""
        if not self.members:
            return 0
        return (len(self.members) - 1) * self.size


class ScanErrorKind(StrEnum):
    DIRECTORY = 'directory'
    HASH = 'hash'
    COMPARE = 'compare'


class ScanError(NamedTuple):
    """A non-fatal failure confined to one directory or one file."""
    kind: ScanErrorKind
    path: Path
    cause: OSError

    def description(self) -> str:
        cause = self.cause.strerror or str(self.cause)
        if self.kind == ScanErrorKind.DIRECTORY:
            return f"error reading directory '{self.path}': {cause}"
        elif self.kind == ScanErrorKind.HASH:
            return f"can not hash file '{self.path}': {cause}"
        else:
            return f"can not compare file '{self.path}': {cause}"


class ScanListener(metaclass=abc.ABCMeta):
    """Receiver of everything a scan produces.

    Both methods are invoked on the event loop thread, one call at a time.
    """

    @abc.abstractmethod
    def on_cluster(self, group: HashGroup) -> None:
        raise NotImplementedError()

    @abc.abstractmethod
    def on_error(self, error: ScanError) -> None:
        raise NotImplementedError()
