"""Result type for transport outcomes."""

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a request to the proof engine.

    Transports never raise for a failed request; they return Result.err with
    a message the controller can show to the player.

    Example:
        result = await transport.send(RequestName.GAMESTATE, session_id)
        if result.is_err:
            presenter.notify(Notification.error(result.error))
            return
        payload = result.unwrap()
    """

    _value: T | None = None
    _error: str | None = None

    @classmethod
    def ok(cls, value: T) -> "Result[T]":
        """Create a successful result with a value."""
        return cls(_value=value)

    @classmethod
    def err(cls, error: str) -> "Result[T]":
        """Create an error result with a message."""
        return cls(_error=error)

    @property
    def is_ok(self) -> bool:
        return self._error is None

    @property
    def is_err(self) -> bool:
        return self._error is not None

    @property
    def error(self) -> str | None:
        """Get the error message, or None if successful."""
        return self._error

    def unwrap(self) -> T:
        """Get the value, or raise ValueError if this is an error."""
        if self._error is not None:
            raise ValueError(self._error)
        return self._value  # type: ignore
