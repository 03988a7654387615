import asyncio
import os
from pathlib import Path
from typing import Callable, Awaitable, Iterable, NamedTuple

from .utils.processor import Processor
from .records import HashGroup, ScanError, ScanListener
from .commands.find_duplicates import do_find_duplicates, FindDuplicatesArgs


class ScanResult(NamedTuple):
    """Everything a scan produced, as collected by Scanner.collect().

    Attributes:
        clusters: Every hash group emitted by the pipeline, singletons included
        errors: Every non-fatal error met on the way
    """
    clusters: list[HashGroup]
    errors: list[ScanError]

    @property
    def duplicates(self) -> list[HashGroup]:
        return [group for group in self.clusters if group.is_duplicate]

    @property
    def wasted_size(self) -> int:
        return sum(group.wasted_size for group in self.duplicates)


class _CollectingListener(ScanListener):
    def __init__(self):
        self.clusters: list[HashGroup] = []
        self.errors: list[ScanError] = []

    def on_cluster(self, group: HashGroup) -> None:
        self.clusters.append(group)

    def on_error(self, error: ScanError) -> None:
        self.errors.append(error)


class Scanner:
    """Entry point for finding duplicate files below a set of directories.

    The scan roots are passed explicitly to each call; a Scanner holds only the
    processing configuration and may be reused for several scans.
    """

    HASH_ALGORITHMS = ('sha256', 'md5')

    def __init__(self, processor: Processor, hash_algorithm: str = 'sha256', verify_content: bool = False):
        """Initialize the scanner.

        Args:
            processor: File processing backend for hashing and comparison
            hash_algorithm: Name of the content digest, one of Scanner.HASH_ALGORITHMS
            verify_content: Confirm files of equal digest byte by byte before clustering them

        Raises:
            ValueError: Unknown hash algorithm
        """
        self._processor = processor
        self._hash_algorithms: dict[str, tuple[int, Callable[[Path], Awaitable[bytes]]]] = {
            'sha256': (32, self._processor.sha256),
            'md5': (16, self._processor.md5),
        }

        if hash_algorithm not in self._hash_algorithms:
            raise ValueError(f"Unknown hash algorithm: {hash_algorithm}")

        self._hash_algorithm = hash_algorithm
        self._verify_content = verify_content

    @property
    def hash_algorithm(self) -> str:
        return self._hash_algorithm

    def scan(self, roots: Iterable[str | os.PathLike], listener: ScanListener):
        """Scan roots, reporting every hash group and error to listener.

        Returns once all roots have been fully traversed and hashed.
        """
        asyncio.run(do_find_duplicates(
            [Path(root) for root in roots],
            FindDuplicatesArgs(
                self._processor,
                self._hash_algorithms[self._hash_algorithm],
                self._verify_content
            ),
            listener
        ))

    def collect(self, roots: Iterable[str | os.PathLike]) -> ScanResult:
        """Scan roots and return all results at once."""
        listener = _CollectingListener()
        self.scan(roots, listener)
        return ScanResult(listener.clusters, listener.errors)
