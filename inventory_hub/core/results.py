"""Tagged results returned across service boundaries instead of control-flow exceptions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Completed(Generic[T]):
    """The command ran immediately."""

    value: T


@dataclass(frozen=True)
class ApprovalRequired:
    """The command was captured as an approval request instead of running."""

    request_id: int
    message: str = "Request submitted for approval"


ManagementResult = Union[Completed[T], ApprovalRequired]


@dataclass(frozen=True)
class ExecutionError:
    code: str  # stable machine code, e.g. "http_error", "invalid_action_data"
    message: str  # safe human message, never contains credentials
    status_code: int | None = None


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of replaying an approved request against its owning service."""

    success: bool
    error: ExecutionError | None = None

    @classmethod
    def ok(cls) -> ExecutionResult:
        return cls(success=True)

    @classmethod
    def failed(
        cls, code: str, message: str, status_code: int | None = None
    ) -> ExecutionResult:
        return cls(success=False, error=ExecutionError(code, message, status_code))

    @property
    def reason(self) -> str | None:
        return self.error.message if self.error else None
