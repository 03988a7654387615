"""Duplicate clustering pipeline.

Four stages run as tasks of a single TaskGroup and hand their output to the next
stage through bounded queues, with None marking the end of each stream:

    Traverser -> SizeGrouper -> HashGrouper -> listener

The size grouper is a full barrier: no size group leaves it before traversal has
finished. The hash grouper starts on the first size group while later ones are
still being emitted.
"""
import asyncio
import base64
import logging
import os
from asyncio import TaskGroup
from pathlib import Path
from typing import NamedTuple, Callable, Awaitable, Iterable

from ..records import FileRecord, SizeGroup, HashGroup, ScanError, ScanErrorKind, ScanListener
from ..utils.processor import Processor
from ..utils.throttler import Throttler
from ..utils.walker import WalkPolicy, walk_with_policy

logger = logging.getLogger(__name__)

QUEUE_SIZE = 1024


class FindDuplicatesArgs(NamedTuple):
    """Arguments for a duplicate scan."""
    processor: Processor  # File processing backend for hashing and comparison
    # Hash algorithm configuration (digest_size, calculator)
    hash_algorithm: tuple[int, Callable[[Path], Awaitable[bytes]]]
    verify_content: bool = False  # Confirm digest matches byte by byte
    queue_size: int = QUEUE_SIZE


class Traverser:
    """Discovers regular files below the scan roots.

    A file reached through more than one root, as with a repeated root or a root
    nested in another, is emitted once only.
    """

    def __init__(self, roots: Iterable[Path], on_error: Callable[[ScanError], None]):
        self._roots = list(roots)
        self._on_error = on_error

    async def run(self, files: asyncio.Queue):
        loop = asyncio.get_running_loop()

        def report(path: Path, error: OSError):
            loop.call_soon_threadsafe(self._on_error, ScanError(ScanErrorKind.DIRECTORY, path, error))

        def produce():
            policy = WalkPolicy(on_error=report)
            seen: set[str] = set()
            count = 0
            for root in self._roots:
                for file_path, context in walk_with_policy(root, policy):
                    key = os.path.abspath(file_path)
                    if key in seen:
                        logger.debug(f"Already discovered: {file_path}")
                        continue
                    seen.add(key)

                    record = FileRecord(file_path, context.stat.st_size)
                    # Blocks this thread while the queue is full
                    asyncio.run_coroutine_threadsafe(files.put(record), loop).result()
                    count += 1
            return count

        count = await asyncio.to_thread(produce)
        logger.info(f"Traversal completed: {count} files")
        await files.put(None)


class SizeGrouper:
    """Partitions files by exact size.

    Groups of a single file are emitted too; filtering is left to the consumer.
    """

    async def run(self, files: asyncio.Queue, size_groups: asyncio.Queue):
        sizes: dict[int, list[FileRecord]] = {}

        while True:
            record = await files.get()
            if record is None:
                break
            sizes.setdefault(record.size, []).append(record)

        logger.info(f"Size grouping completed: {len(sizes)} distinct sizes")

        for size, members in sizes.items():
            await size_groups.put(SizeGroup(size, members))
        await size_groups.put(None)


class HashGrouper:
    """Splits each size group by content digest."""

    def __init__(self, args: FindDuplicatesArgs, on_error: Callable[[ScanError], None]):
        self._processor = args.processor
        _, self._calculate_digest = args.hash_algorithm
        self._verify_content = args.verify_content
        self._on_error = on_error

    async def run(self, size_groups: asyncio.Queue, hash_groups: asyncio.Queue):
        async with TaskGroup() as tg:
            throttler = Throttler(tg, self._processor.concurrency * 2)

            while True:
                group = await size_groups.get()
                if group is None:
                    break
                await throttler.schedule(self._handle_group(group, hash_groups))

        await hash_groups.put(None)

    async def _handle_group(self, group: SizeGroup, hash_groups: asyncio.Queue):
        digests = await asyncio.gather(*(self._digest(record) for record in group.members))

        clusters: dict[str, list[FileRecord]] = {}
        for record, digest in zip(group.members, digests):
            if digest is not None:
                clusters.setdefault(digest, []).append(record._replace(content_hash=digest))

        for digest, members in clusters.items():
            if self._verify_content and len(members) > 1:
                for equivalent in await self._split_by_content(members):
                    await hash_groups.put(HashGroup(group.size, digest, equivalent))
            else:
                await hash_groups.put(HashGroup(group.size, digest, members))

    async def _digest(self, record: FileRecord) -> str | None:
        try:
            digest = await self._calculate_digest(record.path)
        except OSError as e:
            self._on_error(ScanError(ScanErrorKind.HASH, record.path, e))
            return None

        return base64.b64encode(digest).decode('ascii')

    async def _split_by_content(self, members: list[FileRecord]) -> list[list[FileRecord]]:
        """Partition files of equal digest into classes of byte-identical content.

        Each file is compared against the first member of every known class in turn.
        A file that cannot be compared is reported and left out. When the failure lies
        with the first member of a class instead, that member is reported and dropped,
        and the next member of the class takes its place.
        """
        classes: list[list[FileRecord]] = []

        for record in members:
            for equivalent in classes:
                same = await self._matches(equivalent, record)
                if same is None:
                    break
                if same:
                    equivalent.append(record)
                    break
            else:
                classes.append([record])

            classes = [equivalent for equivalent in classes if equivalent]

        if len(classes) > 1:
            logger.warning(f"Digest collision across {len(classes)} distinct contents: {members[0].content_hash}")

        return classes

    async def _matches(self, equivalent: list[FileRecord], record: FileRecord) -> bool | None:
        """Compare record against the first member of a class.

        Returns None when record itself cannot be read. Unreadable first members are
        removed from the class, which may leave it empty.
        """
        while equivalent:
            leader = equivalent[0]
            try:
                return await self._processor.compare_content(leader.path, record.path)
            except OSError as e:
                if e.filename is not None and Path(e.filename) == leader.path:
                    self._on_error(ScanError(ScanErrorKind.COMPARE, leader.path, e))
                    equivalent.pop(0)
                    continue
                self._on_error(ScanError(ScanErrorKind.COMPARE, record.path, e))
                return None

        return False


async def _deliver(hash_groups: asyncio.Queue, listener: ScanListener):
    while True:
        group = await hash_groups.get()
        if group is None:
            break
        listener.on_cluster(group)


async def do_find_duplicates(roots: Iterable[Path], args: FindDuplicatesArgs, listener: ScanListener):
    """Run the whole pipeline over roots, delivering every hash group to listener."""
    files: asyncio.Queue = asyncio.Queue(args.queue_size)
    size_groups: asyncio.Queue = asyncio.Queue(args.queue_size)
    hash_groups: asyncio.Queue = asyncio.Queue(args.queue_size)

    async with TaskGroup() as tg:
        tg.create_task(Traverser(roots, listener.on_error).run(files))
        tg.create_task(SizeGrouper().run(files, size_groups))
        tg.create_task(HashGrouper(args, listener.on_error).run(size_groups, hash_groups))
        tg.create_task(_deliver(hash_groups, listener))
