from orderhub.core.task_group import TaskGroup, run_concurrently

__all__ = [
    "TaskGroup",
    "run_concurrently",
]
