"""Machine-readable storage of scan results."""

import os
from dataclasses import dataclass, asdict, field
from pathlib import Path
from typing import Any, Iterator, BinaryIO

import msgpack

from ..records import FileRecord, HashGroup


@dataclass
class ReportManifest:
    """Header of a report file, describing the scan that produced it."""
    version: str = "1.0"
    """Report format version"""

    roots: list[str] = field(default_factory=list)
    """Scan roots, in the order they were given"""

    hash_algorithm: str = ""
    """Name of the digest used to group files"""

    timestamp: str = ""
    """ISO format timestamp when the scan was performed"""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReportManifest":
        return cls(**data)


def encode_cluster(group: HashGroup) -> list[Any]:
    """Encode a cluster as [size, digest, [path_bytes, ...]].

    Paths are stored as raw file system bytes so that names that are not valid
    UTF-8 survive the round trip.
    """
    return [group.size, group.digest, [os.fsencode(record.path) for record in group.members]]


def decode_cluster(data: list[Any]) -> HashGroup:
    size, digest, paths = data
    members = [FileRecord(Path(os.fsdecode(path)), size, digest) for path in paths]
    return HashGroup(size, digest, members)


class ReportStore:
    """Reads and writes a report file.

    The file is a msgpack stream: the manifest map first, followed by one array
    per duplicate cluster. Clusters are appended as they are found, so a report
    can be written while the scan is still running.
    """

    def __init__(self, report_path: Path) -> None:
        self.report_path: Path = report_path
        self._file: BinaryIO | None = None
        self._packer = msgpack.Packer()

    def open_for_writing(self, manifest: ReportManifest) -> None:
        """Create (or truncate) the report file and write its manifest.

        Raises:
            OSError: If the report file cannot be created
        """
        self._file = open(self.report_path, 'wb')
        self._file.write(self._packer.pack(manifest.to_dict()))

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def __enter__(self) -> "ReportStore":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def write_cluster(self, group: HashGroup) -> None:
        if self._file is None:
            raise RuntimeError("Report not opened. Call open_for_writing() first.")

        self._file.write(self._packer.pack(encode_cluster(group)))

    def read_manifest(self) -> ReportManifest:
        """Read the manifest of an existing report.

        Raises:
            FileNotFoundError: If the report file doesn't exist
            ValueError: If the file does not start with a manifest
        """
        items = self._unpack()
        try:
            first = next(items, None)
        finally:
            items.close()

        if not isinstance(first, dict):
            raise ValueError(f"Not a report file: {self.report_path}")
        return ReportManifest.from_dict(first)

    def read_clusters(self) -> Iterator[HashGroup]:
        """Iterate over the clusters of an existing report in the order they were written."""
        items = self._unpack()
        next(items, None)
        for item in items:
            yield decode_cluster(item)

    def _unpack(self) -> Iterator[Any]:
        with open(self.report_path, 'rb') as f:
            yield from msgpack.Unpacker(f, raw=False)
