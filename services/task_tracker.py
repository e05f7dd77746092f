# services/task_tracker.py
"""
Tracks detached notification pipelines so shutdown can wait for them.
"""
import asyncio
from typing import Coroutine, Optional, Set

import structlog

logger = structlog.get_logger(__name__)


class PipelineTracker:
     """Owns background tasks started after a request has been acknowledged."""

     def __init__(self):
          self._tasks: Set[asyncio.Task] = set()

     def __len__(self) -> int:
          return len(self._tasks)

     def spawn(self, coro: Coroutine, name: Optional[str] = None) -> asyncio.Task:
          task = asyncio.get_running_loop().create_task(coro, name=name)
          self._tasks.add(task)
          task.add_done_callback(self._finished)
          return task

     def _finished(self, task: asyncio.Task) -> None:
          self._tasks.discard(task)
          if task.cancelled():
               logger.warning("pipeline_cancelled", task=task.get_name())
               return
          exc = task.exception()
          if exc is not None:
               logger.error("pipeline_crashed", task=task.get_name(), error=repr(exc))

     async def drain(self, timeout: Optional[float] = None) -> int:
          """
          Wait for in-flight pipelines.

          Returns:
               Number of tasks still running when the timeout expired
          """
          pending = set(self._tasks)
          if not pending:
               return 0
          _, still_running = await asyncio.wait(pending, timeout=timeout)
          return len(still_running)
