"""
Result type for arena service operations.

Arena operations that a user can trigger at the wrong moment (dropping a
stat before joining a side, ending a round that is not running, ...) are
rejected without touching state and without raising. They return a failed
Result that the command layer renders as an ephemeral message.

Usage:
    return Result.ok(state)
    return Result.fail("Join a side first", code=NO_SIDE_JOINED)

    result = machine.start()
    if not result:
        await interaction.response.send_message(result.error, ephemeral=True)
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Outcome of a service operation.

    Attributes:
        success: Whether the operation was applied
        value: Payload of a successful operation (may be None)
        error: Human readable reason for a rejection
        error_code: Machine readable reason, one of services.error_codes
    """

    success: bool
    value: T | None = None
    error: str | None = None
    error_code: str | None = None

    @classmethod
    def ok(cls, value: T | None = None) -> "Result[T]":
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, error: str, code: str | None = None) -> "Result[T]":
        return cls(success=False, error=error, error_code=code)

    def __bool__(self) -> bool:
        return self.success

    def unwrap(self) -> T:
        """
        Get the value of a successful result.

        Raises:
            ValueError: If the operation was rejected
        """
        if not self.success:
            raise ValueError(f"Cannot unwrap failed result: {self.error}")
        return self.value  # type: ignore

    def unwrap_or(self, default: T) -> T:
        return self.value if self.success else default  # type: ignore

    def map(self, fn: Callable[[T], "Result[U]"]) -> "Result[U]":
        """Chain another operation onto a successful result; failures pass through."""
        if not self.success:
            return self  # type: ignore[return-value]
        return fn(self.value)  # type: ignore[arg-type]
