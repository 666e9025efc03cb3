"""
Async Task Executor
===================

Scatter/gather for independent coroutines using asyncio.gather.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from core.timeout_decorator import run_with_timeout

logger = logging.getLogger(__name__)

TaskFactory = Callable[[], Awaitable[Any]]


class TaskOutcome(BaseModel):
    """Settled result of one task, keyed by its input position."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    position: int
    name: str
    value: Any = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class AsyncTaskExecutor:
    """
    Runs task factories concurrently and settles every one of them.

    - Each task runs under its own timeout
    - An optional semaphore bounds how many are in flight
    - An exception from one task never cancels the others
    """

    def __init__(self, timeout: Optional[float] = None, max_concurrency: int = 0):
        """
        Args:
            timeout: Per-task timeout in seconds (None or 0 = no timeout)
            max_concurrency: Max tasks in flight (0 = unbounded)
        """
        self.timeout = timeout
        self.max_concurrency = max_concurrency

    async def _run_one(self, name: str, factory: TaskFactory, semaphore: Optional[asyncio.Semaphore]) -> Any:
        if semaphore is None:
            return await run_with_timeout(factory(), self.timeout, name)
        async with semaphore:
            return await run_with_timeout(factory(), self.timeout, name)

    async def gather_by_position(
        self,
        factories: Sequence[TaskFactory],
        names: Optional[Sequence[str]] = None
    ) -> List[TaskOutcome]:
        """
        Execute all factories concurrently.

        Args:
            factories: Zero-arg callables returning an awaitable
            names: Optional label per factory (for logs and timeout errors)

        Returns:
            One TaskOutcome per factory, in input order
        """
        if names is None:
            names = [f"task-{i}" for i in range(len(factories))]
        if len(names) != len(factories):
            raise ValueError("names and factories must have the same length")

        semaphore = asyncio.Semaphore(self.max_concurrency) if self.max_concurrency > 0 else None

        logger.info(f"🚀 [AsyncExecutor] Executing {len(factories)} tasks concurrently")

        tasks = [
            self._run_one(name, factory, semaphore)
            for name, factory in zip(names, factories)
        ]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        outcomes = []
        for i, result in enumerate(results):
            if isinstance(result, BaseException):
                if isinstance(result, asyncio.CancelledError):
                    raise result
                logger.error(f"❌ [AsyncExecutor] {names[i]} failed: {type(result).__name__}: {result}")
                outcomes.append(TaskOutcome(position=i, name=names[i], error=result))
            else:
                outcomes.append(TaskOutcome(position=i, name=names[i], value=result))

        failed = sum(1 for o in outcomes if not o.ok)
        logger.info(f"✅ [AsyncExecutor] {len(outcomes) - failed}/{len(outcomes)} tasks completed")
        return outcomes
