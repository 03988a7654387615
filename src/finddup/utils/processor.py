import asyncio
import filecmp
import hashlib
import logging
import multiprocessing
from multiprocessing.pool import Pool
import pathlib
from typing import Awaitable

logger = logging.getLogger(__name__)


def compute_digest_for_path(path: pathlib.Path, algorithm: str) -> bytes:
    with open(path, "rb") as f:
        # noinspection PyTypeChecker
        return hashlib.file_digest(f, algorithm).digest()


def compare_file_content(a: pathlib.Path, b: pathlib.Path) -> bool:
    return filecmp.cmp(a, b, shallow=False)


class Processor:
    """Pool of worker processes doing the file reading of a scan.

    Results are delivered as awaitables resolved on the calling event loop, and
    exceptions raised in a worker (typically OSError) are re-raised to the awaiter.
    """

    def __init__(self, concurrency: int | None = None):
        if concurrency is None:
            concurrency = multiprocessing.cpu_count()

        self._concurrency = concurrency
        self._pool: Pool = Pool(self._concurrency)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        self._pool.close()

    @property
    def concurrency(self):
        return self._concurrency

    def sha256(self, path: pathlib.Path) -> Awaitable[bytes]:
        return self._digest(path, 'sha256')

    def md5(self, path: pathlib.Path) -> Awaitable[bytes]:
        return self._digest(path, 'md5')

    def compare_content(self, a: pathlib.Path, b: pathlib.Path) -> Awaitable[bool]:
        """Compare content of two files byte by byte.

        :return: True if two files are equal, False otherwise."""
        logger.info(f"Starting content comparison: {a} vs {b}")

        async def log_and_compare():
            result = await self._evaluate(compare_file_content, a, b)
            logger.info(f"Completed content comparison: {a} vs {b} (equal={result})")
            return result

        return log_and_compare()

    def _digest(self, path: pathlib.Path, algorithm: str) -> Awaitable[bytes]:
        logger.info(f"Starting {algorithm} computation for: {path}")

        async def log_and_compute():
            result = await self._evaluate(compute_digest_for_path, path, algorithm)
            logger.info(f"Completed {algorithm} computation for: {path}")
            return result

        return log_and_compute()

    def _evaluate(self, func, *args):
        loop = asyncio.get_running_loop()
        future = loop.create_future()

        self._pool.apply_async(func, args=args,
                               callback=lambda v: loop.call_soon_threadsafe(future.set_result, v),
                               error_callback=lambda e: loop.call_soon_threadsafe(future.set_exception, e))

        return future
