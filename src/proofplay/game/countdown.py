"""Resumable countdown for timed games."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from proofplay.core.errors import AlreadyOver, InvalidTransition

logger = logging.getLogger(__name__)

DEFAULT_TICK_MS = 1000


def minutes_to_ms(minutes: float) -> int:
    """Convert a number of minutes to milliseconds."""
    return int(minutes * 60 * 1000)


class CountdownState(str, Enum):
    """Lifecycle state of a countdown."""

    CREATED = "created"
    STARTED = "started"
    PAUSED = "paused"
    OVER = "over"


@dataclass(frozen=True)
class CountdownSnapshot:
    """Serialized form of a countdown that is not ticking.

    Sessions that are not current keep their timer in this form so that no
    ticker survives a session switch.
    """

    duration_ms: int
    remaining_ms: int

    @property
    def is_over(self) -> bool:
        return self.remaining_ms <= 0

    def __str__(self) -> str:
        return format_ms(self.remaining_ms)


def format_ms(ms: int) -> str:
    """Render a duration as mm:ss, rounding down to the second."""
    total_seconds = max(0, ms) // 1000
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes:02d}:{seconds:02d}"


class Countdown:
    """A countdown that ticks on the asyncio event loop.

    Every tick removes tick_ms from the remaining time and calls
    on_update(countdown). When the remaining time reaches zero the countdown
    goes OVER and on_over() is called once, after the last on_update.

    The loop argument only needs call_later(); when omitted the running
    event loop is used at start().
    """

    def __init__(
        self,
        duration_ms: int,
        on_over: Callable[[], None],
        on_update: Callable[["Countdown"], None],
        remaining_ms: int | None = None,
        tick_ms: int = DEFAULT_TICK_MS,
        loop: asyncio.AbstractEventLoop | None = None,
    ):
        if duration_ms <= 0:
            raise ValueError(f"duration_ms must be positive, got {duration_ms}")
        if remaining_ms is None:
            remaining_ms = duration_ms
        if remaining_ms < 0 or remaining_ms > duration_ms:
            raise ValueError(
                f"remaining_ms must be between 0 and {duration_ms}, got {remaining_ms}"
            )
        if tick_ms <= 0:
            raise ValueError(f"tick_ms must be positive, got {tick_ms}")

        self.duration_ms = duration_ms
        self.remaining_ms = remaining_ms
        self.tick_ms = tick_ms
        self.state = CountdownState.CREATED
        self._on_over = on_over
        self._on_update = on_update
        self._loop = loop
        self._handle: asyncio.TimerHandle | None = None

    @classmethod
    def from_snapshot(
        cls,
        snapshot: CountdownSnapshot,
        on_over: Callable[[], None],
        on_update: Callable[["Countdown"], None],
        tick_ms: int = DEFAULT_TICK_MS,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> "Countdown":
        """Rebuild a countdown that continues from a snapshot."""
        countdown = cls(
            snapshot.duration_ms,
            on_over,
            on_update,
            remaining_ms=snapshot.remaining_ms,
            tick_ms=tick_ms,
            loop=loop,
        )
        countdown.state = CountdownState.PAUSED
        return countdown

    @property
    def is_running(self) -> bool:
        return self.state == CountdownState.STARTED

    @property
    def is_over(self) -> bool:
        return self.state == CountdownState.OVER

    def start(self) -> None:
        """Start or resume ticking.

        Raises:
            AlreadyOver: If the countdown has no time left.
            InvalidTransition: If the countdown is already ticking.
        """
        if self.state == CountdownState.OVER or self.remaining_ms == 0:
            raise AlreadyOver("Countdown is over and cannot be started")
        if self.state == CountdownState.STARTED:
            raise InvalidTransition("Countdown is already started")

        self.state = CountdownState.STARTED
        self._schedule()
        logger.debug(f"Countdown started with {self} remaining")

    def pause(self) -> None:
        """Stop ticking and keep the remaining time.

        Raises:
            InvalidTransition: If the countdown is not ticking.
        """
        if self.state != CountdownState.STARTED:
            raise InvalidTransition(f"Cannot pause a countdown in state {self.state.value}")

        self._cancel()
        self.state = CountdownState.PAUSED
        logger.debug(f"Countdown paused with {self} remaining")

    def cancel(self) -> None:
        """Drop any scheduled tick without changing state or calling back."""
        self._cancel()
        if self.state == CountdownState.STARTED:
            self.state = CountdownState.PAUSED

    def tick(self) -> None:
        """Advance the countdown by one tick."""
        if self.state != CountdownState.STARTED:
            return

        self._handle = None
        self.remaining_ms = max(0, self.remaining_ms - self.tick_ms)
        self._on_update(self)

        # on_update may have paused us
        if self.state != CountdownState.STARTED:
            return

        if self.remaining_ms == 0:
            self.state = CountdownState.OVER
            logger.info("Countdown over")
            self._on_over()
        else:
            self._schedule()

    def time_elapsed(self) -> int:
        """Milliseconds consumed so far."""
        return self.duration_ms - self.remaining_ms

    def snapshot(self) -> CountdownSnapshot:
        return CountdownSnapshot(duration_ms=self.duration_ms, remaining_ms=self.remaining_ms)

    def _schedule(self) -> None:
        loop = self._loop or asyncio.get_running_loop()
        self._handle = loop.call_later(self.tick_ms / 1000, self.tick)

    def _cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def __str__(self) -> str:
        return format_ms(self.remaining_ms)

    def __repr__(self) -> str:
        return (
            f"Countdown(state={self.state.value}, remaining_ms={self.remaining_ms}, "
            f"duration_ms={self.duration_ms})"
        )
