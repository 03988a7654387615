import logging
import os
import sys
from typing import TextIO

from ..records import HashGroup, ScanError, ScanListener
from .store import ReportStore

logger = logging.getLogger(__name__)


def write_lines(stream: TextIO, lines: list[str]):
    """Write lines holding file names to stream.

    File names that are not valid in the file system encoding come back from the
    OS as lone surrogates, which a strict text stream refuses to encode. Streams
    backed by a binary buffer therefore get the raw file system bytes instead.
    """
    data = ''.join(line + '\n' for line in lines)
    buffer = getattr(stream, 'buffer', None)
    if buffer is None:
        stream.write(data)
        return

    stream.flush()
    buffer.write(os.fsencode(data))


class ClusterReporter(ScanListener):
    """Prints duplicate clusters and keeps the running total of wasted space.

    Every path of a duplicate cluster goes to output on its own line, followed by a
    blank line. Errors and the final summary go to diagnostics. Clusters of a single
    file are dropped here, since they carry no duplication.
    """

    def __init__(self, output: TextIO | None = None, diagnostics: TextIO | None = None,
                 store: ReportStore | None = None):
        self._output = output if output is not None else sys.stdout
        self._diagnostics = diagnostics if diagnostics is not None else sys.stderr
        self._store = store
        self.wasted_size = 0
        self.clusters = 0
        self.errors = 0

    def on_cluster(self, group: HashGroup) -> None:
        if not group.is_duplicate:
            return

        write_lines(self._output, [str(record.path) for record in group.members] + [''])

        self.clusters += 1
        self.wasted_size += group.wasted_size

        if self._store is not None:
            self._store.write_cluster(group)

    def on_error(self, error: ScanError) -> None:
        self.errors += 1
        logger.warning(error.description())
        write_lines(self._diagnostics, [error.description()])

    def finish(self) -> None:
        logger.info(f"Scan finished: {self.clusters} clusters, {self.wasted_size} B duplicated, "
                    f"{self.errors} errors")
        print(f"duplicated size: {self.wasted_size} B", file=self._diagnostics)
