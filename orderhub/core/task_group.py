from __future__ import annotations

import contextvars
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Dict, List


_LOGGER = logging.getLogger("orderhub")


@dataclass
class _PendingTask:
    key: str
    fn: Callable[[], Any]
    best_effort: bool
    fallback: Any


class TaskGroup:
    """Runs independent callables concurrently and joins them into one dict.

    Strict tasks fail the whole group: every task still runs to completion,
    then the first strict failure (in submission order) is re-raised.
    Best-effort tasks log a warning and resolve to their fallback instead.
    """

    def __init__(self, max_workers: int = 6, *, name: str = "task_group") -> None:
        self.max_workers = max(1, int(max_workers or 1))
        self.name = name
        self._tasks: List[_PendingTask] = []

    def submit(
        self,
        key: str,
        fn: Callable[[], Any],
        *,
        best_effort: bool = False,
        fallback: Any = None,
    ) -> None:
        if any(task.key == key for task in self._tasks):
            raise ValueError(f"Duplicate task key: {key}")
        self._tasks.append(_PendingTask(key=key, fn=fn, best_effort=best_effort, fallback=fallback))

    def join(self) -> Dict[str, Any]:
        if not self._tasks:
            return {}

        tasks = list(self._tasks)
        self._tasks = []
        workers = min(self.max_workers, len(tasks))
        results: Dict[str, Any] = {}
        first_error: BaseException | None = None

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=self.name) as executor:
            # Each task runs in its own copy of the caller context so the request id follows it.
            futures: List[tuple[_PendingTask, Future]] = [
                (task, executor.submit(contextvars.copy_context().run, task.fn)) for task in tasks
            ]
            for task, future in futures:
                try:
                    results[task.key] = future.result()
                except Exception as exc:  # noqa: BLE001
                    if task.best_effort:
                        _LOGGER.warning(
                            "task_group_best_effort_failed",
                            extra={"task_group": self.name, "task_key": task.key, "error": str(exc)},
                        )
                        results[task.key] = task.fallback
                        continue
                    if first_error is None:
                        first_error = exc

        if first_error is not None:
            raise first_error
        return results


def run_concurrently(
    tasks: Dict[str, Callable[[], Any]], *, max_workers: int = 6, name: str = "task_group"
) -> Dict[str, Any]:
    """Strict fan-out of every task; shorthand for a TaskGroup with no best-effort members."""
    group = TaskGroup(max_workers=max_workers, name=name)
    for key, fn in tasks.items():
        group.submit(key, fn)
    return group.join()
