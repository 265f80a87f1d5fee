"""A single puzzle instance paired with its server-side game."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from proofplay.core.errors import AlreadyAssigned, AlreadyOver
from proofplay.game.countdown import (
    DEFAULT_TICK_MS,
    Countdown,
    CountdownSnapshot,
    CountdownState,
    minutes_to_ms,
)
from proofplay.game.timeline import ProofState, Timeline

logger = logging.getLogger(__name__)

DEFAULT_COUNTDOWN_MS = minutes_to_ms(2)


class GameMode(str, Enum):
    """Whether a game runs against the clock."""

    NORMAL = "NORMAL"
    UNTIMED = "UNTIMED"


class GameStatus(str, Enum):
    """Progress of a game as reported by the proof engine."""

    IN_PROGRESS = "IN_PROGRESS"
    VICTORY = "VICTORY"


@dataclass(frozen=True)
class GameConfig:
    """Parameters chosen by the player when creating a game."""

    mode: GameMode = GameMode.NORMAL
    rule_set: str = "default"
    formula_id: int = 0
    use_theorem: bool = False
    formula_text: str = ""


@dataclass(frozen=True)
class CurrentState:
    """Latest proof state received for a game and its status."""

    state: ProofState
    status: GameStatus = GameStatus.IN_PROGRESS

    @property
    def is_victory(self) -> bool:
        return self.status == GameStatus.VICTORY


@dataclass
class GameSession:
    """Client-side view of one game.

    A session is pending until the proof engine acknowledges it with an id.
    Its countdown is a live Countdown only while it is the current session;
    otherwise it is kept as a CountdownSnapshot (or None before the first
    start).
    """

    config: GameConfig
    session_id: int | str | None = None
    current_state: CurrentState | None = None
    timeline: Timeline = field(default_factory=Timeline)
    countdown: Countdown | CountdownSnapshot | None = None
    request_pending: bool = False
    end_deferred: bool = False
    finished: bool = False

    @property
    def mode(self) -> GameMode:
        return self.config.mode

    @property
    def is_timed(self) -> bool:
        return self.config.mode == GameMode.NORMAL

    @property
    def label(self) -> str:
        """Short identifier used in log lines."""
        if self.session_id is None:
            return "pending"
        return f"game {self.session_id}"

    def is_pending(self) -> bool:
        return self.session_id is None

    def record_server_id(self, session_id: int | str) -> None:
        """Attach the id assigned by the proof engine.

        Raises:
            AlreadyAssigned: If the session already has an id.
        """
        if self.session_id is not None:
            raise AlreadyAssigned(
                f"Session already has id {self.session_id}, refusing {session_id}"
            )
        self.session_id = session_id
        logger.info(f"[{self.label}] Session confirmed by server")

    # Proof state updates. Each returns True when the update is a timed victory.

    def apply_proof_state(self, state: ProofState, status: GameStatus = GameStatus.IN_PROGRESS) -> bool:
        """Record the result of a rule application."""
        self.timeline.append(state)
        return self._set_current(state, status)

    def show_previous(self, state: ProofState, status: GameStatus = GameStatus.IN_PROGRESS) -> bool:
        self.timeline.step_back()
        return self._set_current(state, status)

    def show_next(self, state: ProofState, status: GameStatus = GameStatus.IN_PROGRESS) -> bool:
        self.timeline.step_forward()
        return self._set_current(state, status)

    def show_index(
        self, index: int, state: ProofState, status: GameStatus = GameStatus.IN_PROGRESS
    ) -> bool:
        """Replay the state at index of the timeline.

        Raises:
            OutOfRange: If index is not in the timeline.
        """
        self.timeline.jump_to(index)
        return self._set_current(state, status)

    def refresh(self, state: ProofState, status: GameStatus = GameStatus.IN_PROGRESS) -> bool:
        """Take the state sent when resuming a game without moving the timeline."""
        if self.timeline.is_empty():
            self.timeline.append(state)
        return self._set_current(state, status)

    def _set_current(self, state: ProofState, status: GameStatus) -> bool:
        self.current_state = CurrentState(state=state, status=status)
        return status == GameStatus.VICTORY and self.is_timed

    # Countdown ownership

    @property
    def live_countdown(self) -> Countdown | None:
        if isinstance(self.countdown, Countdown):
            return self.countdown
        return None

    def is_over(self) -> bool:
        """True if the countdown ran out, whether live or serialized."""
        if isinstance(self.countdown, Countdown):
            return self.countdown.state == CountdownState.OVER
        if isinstance(self.countdown, CountdownSnapshot):
            return self.countdown.is_over
        return False

    def suspend_timer(self) -> None:
        """Stop a live countdown and keep only its snapshot."""
        countdown = self.live_countdown
        if countdown is None:
            return
        if countdown.state == CountdownState.STARTED:
            countdown.pause()
        else:
            countdown.cancel()
        self.countdown = countdown.snapshot()
        logger.debug(f"[{self.label}] Timer suspended at {self.countdown}")

    def resume_timer(
        self,
        on_over: Callable[[], None],
        on_update: Callable[[Countdown], None],
        duration_ms: int = DEFAULT_COUNTDOWN_MS,
        tick_ms: int = DEFAULT_TICK_MS,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> Countdown | None:
        """Start this session's countdown, continuing where it stopped.

        Untimed games have no countdown and are left alone.

        Raises:
            AlreadyOver: If the countdown has no time left; the game is over
                and has to be deleted or restarted.
        """
        if not self.is_timed:
            return None

        countdown = self.countdown
        if countdown is None:
            countdown = Countdown(duration_ms, on_over, on_update, tick_ms=tick_ms, loop=loop)
            logger.info(f"[{self.label}] New countdown of {countdown}")
        elif isinstance(countdown, CountdownSnapshot):
            if countdown.is_over:
                raise AlreadyOver(f"[{self.label}] Countdown is over, game must be deleted or restarted")
            countdown = Countdown.from_snapshot(
                countdown, on_over, on_update, tick_ms=tick_ms, loop=loop
            )
        elif countdown.state == CountdownState.STARTED:
            return countdown

        countdown.start()
        self.countdown = countdown
        return countdown

    def stop_timer(self) -> int | None:
        """Stop a running countdown and return the elapsed milliseconds."""
        countdown = self.live_countdown
        if countdown is None:
            return None
        if countdown.state == CountdownState.STARTED:
            countdown.pause()
        return countdown.time_elapsed()

    def discard_timer(self) -> None:
        """Cancel the ticker of a session being destroyed."""
        countdown = self.live_countdown
        if countdown is not None:
            countdown.cancel()

    def reset_for_restart(self) -> None:
        """Forget the server game so the same configuration can be started again."""
        self.discard_timer()
        self.session_id = None
        self.current_state = None
        self.timeline = Timeline()
        self.countdown = None
        self.end_deferred = False
        self.finished = False

    def to_dict(self) -> dict:
        if self.current_state is not None:
            text = self.current_state.state.text
        else:
            text = self.config.formula_text
        return {
            "id": self.session_id,
            "mode": self.config.mode.value,
            "rule_set": self.config.rule_set,
            "formula_id": self.config.formula_id,
            "use_theorem": self.config.use_theorem,
            "text": text,
            "remaining": str(self.countdown) if self.countdown is not None else None,
            "status": self.current_state.status.value if self.current_state else None,
        }
