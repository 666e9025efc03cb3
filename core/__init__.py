from .config import EngineConfig, setup_logging
from .executor_async import AsyncTaskExecutor, TaskOutcome
from .timeout_decorator import CallTimeoutError, run_with_timeout, with_timeout

__all__ = [
    "EngineConfig",
    "setup_logging",
    "AsyncTaskExecutor",
    "TaskOutcome",
    "CallTimeoutError",
    "run_with_timeout",
    "with_timeout",
]
