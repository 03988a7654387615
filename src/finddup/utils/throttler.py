import asyncio
from asyncio import TaskGroup, Semaphore


class Throttler:
    """Limits how many tasks of a TaskGroup run at the same time.

    schedule() suspends the caller until a slot is free, which pushes back on
    whatever loop is producing the work.
    """

    def __init__(self, task_group: TaskGroup, concurrency: int):
        """Initialize the throttler.

        Args:
            task_group: The TaskGroup to which tasks will be added
            concurrency: Maximum number of tasks that can run concurrently
        """
        if concurrency < 1:
            raise ValueError(f"concurrency must be positive: {concurrency}")

        self._task_group = task_group
        self._semaphore = Semaphore(concurrency)

    async def schedule(self, coro, name=None) -> asyncio.Task:
        """Start coro as a task of the group once a slot is available.

        The slot is held until the task finishes, whether it succeeds or fails.
        """
        await self._semaphore.acquire()

        async def wrapper():
            try:
                return await coro
            finally:
                self._semaphore.release()

        try:
            return self._task_group.create_task(wrapper(), name=name)
        except BaseException:
            self._semaphore.release()
            coro.close()
            raise
