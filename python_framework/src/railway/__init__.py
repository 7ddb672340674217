"""
Railway-Oriented Programming (ROP) Framework for Python.

Explicit, composable, functional error handling — adapters return Result
values instead of raising into business logic.

    from railway import Result, ErrorCode

    def read_log_list(path: Path) -> Result[bytes]:
        return Result.from_computation(
            path.read_bytes, ErrorCode.NOT_FOUND, f"Cannot read {path}"
        )

    state = read_log_list(path).flat_map(parser.parse).either(
        on_success=classify,
        on_failure=lambda err: StoreState.MALFORMED,
    )
"""

from railway.result import Result, Success, Failure
from railway.failure import ErrorCode, FailureDescription
from railway.execution import (
    ExecutionContext,
    NoOpExecutionContext,
    LoggingExecutionContext,
)
from railway.assertions import ResultAssertions

__all__ = [
    "Result",
    "Success",
    "Failure",
    "ErrorCode",
    "FailureDescription",
    "ExecutionContext",
    "NoOpExecutionContext",
    "LoggingExecutionContext",
    "ResultAssertions",
]

__version__ = "1.1.0"
