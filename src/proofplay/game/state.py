"""Registry of the games open in the client."""

import asyncio
import logging
from collections.abc import Callable, Iterator

from proofplay.core.errors import OutOfRange
from proofplay.game.countdown import DEFAULT_TICK_MS, Countdown, CountdownState
from proofplay.game.session import DEFAULT_COUNTDOWN_MS, GameConfig, GameSession

logger = logging.getLogger(__name__)

TickHook = Callable[[GameSession, Countdown], None]
ExpireHook = Callable[[GameSession], None]


class GameState:
    """Ordered collection of game sessions and the one currently displayed.

    The registry is the only place that starts countdowns, and it always
    suspends the outgoing session's timer before starting another, so at
    most one countdown ticks at any time.

    The tick and expiry hooks receive the session that owns the countdown.
    """

    def __init__(
        self,
        on_tick: TickHook | None = None,
        on_expire: ExpireHook | None = None,
        countdown_ms: int = DEFAULT_COUNTDOWN_MS,
        tick_ms: int = DEFAULT_TICK_MS,
        loop: asyncio.AbstractEventLoop | None = None,
    ):
        self._sessions: list[GameSession] = []
        self._current_index: int | None = None
        self.on_tick = on_tick
        self.on_expire = on_expire
        self.countdown_ms = countdown_ms
        self.tick_ms = tick_ms
        self.loop = loop

    @property
    def sessions(self) -> tuple[GameSession, ...]:
        return tuple(self._sessions)

    @property
    def current_index(self) -> int | None:
        return self._current_index

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[GameSession]:
        return iter(list(self._sessions))

    def current(self) -> GameSession | None:
        """Get the current session, or None when there is none."""
        if self._current_index is None:
            return None
        return self._sessions[self._current_index]

    def find(self, session_id: int | str) -> GameSession | None:
        for session in self._sessions:
            if session.session_id == session_id:
                return session
        return None

    def index_of(self, session: GameSession) -> int:
        for index, candidate in enumerate(self._sessions):
            if candidate is session:
                return index
        raise OutOfRange(f"Session {session.label} is not registered")

    def add_session(self, config: GameConfig) -> GameSession:
        """Register a new pending session and make it current."""
        outgoing = self.current()
        if outgoing is not None:
            outgoing.suspend_timer()

        session = GameSession(config=config)
        self._sessions.append(session)
        self._current_index = len(self._sessions) - 1
        logger.info(
            f"Added {config.mode.value} game for formula {config.formula_id} "
            f"at index {self._current_index}"
        )
        return session

    def delete_session(self, session_id: int | str) -> GameSession:
        """Remove the session with the given server id.

        Raises:
            OutOfRange: If no session has this id.
        """
        for index, session in enumerate(self._sessions):
            if session.session_id == session_id:
                return self.delete_at(index)
        raise OutOfRange(f"No session with id {session_id}")

    def delete_at(self, index: int) -> GameSession:
        """Remove the session at index and reselect the nearest neighbour.

        Raises:
            OutOfRange: If index is not a registry position.
        """
        self._check_index(index)
        session = self._sessions.pop(index)
        session.discard_timer()

        if not self._sessions:
            self._current_index = None
        elif self._current_index is not None:
            if index < self._current_index:
                self._current_index -= 1
            elif index == self._current_index:
                # The session that shifted into the slot, else the one before it
                self._current_index = min(index, len(self._sessions) - 1)

        logger.info(f"[{session.label}] Removed from registry, current index {self._current_index}")
        return session

    def switch_to(self, index: int) -> GameSession:
        """Make the session at index current, moving the live timer with it.

        The incoming countdown always ticks afterwards, even if the player
        had paused it before switching away.

        Raises:
            OutOfRange: If index is not a registry position.
            AlreadyOver: If the incoming session's countdown has run out.
        """
        self._check_index(index)

        outgoing = self.current()
        if outgoing is not None and index != self._current_index:
            outgoing.suspend_timer()

        self._current_index = index
        incoming = self._sessions[index]
        logger.info(f"[{incoming.label}] Switched to index {index}")
        self._resume(incoming)
        return incoming

    def start_current_timer(self) -> Countdown | None:
        """Start or resume the current session's countdown.

        Raises:
            AlreadyOver: If the current session's countdown has run out.
        """
        session = self.current()
        if session is None:
            return None
        for other in self._sessions:
            if other is not session:
                other.suspend_timer()
        return self._resume(session)

    def stop_all_timers(self) -> None:
        for session in self._sessions:
            session.suspend_timer()
        logger.debug("All timers suspended")

    def live_countdowns(self) -> list[Countdown]:
        """Countdowns that are ticking right now."""
        return [
            session.countdown
            for session in self._sessions
            if isinstance(session.countdown, Countdown)
            and session.countdown.state == CountdownState.STARTED
        ]

    def _resume(self, session: GameSession) -> Countdown | None:
        if session.finished or session.is_pending():
            return None
        return session.resume_timer(
            on_over=lambda: self._expired(session),
            on_update=lambda countdown: self._ticked(session, countdown),
            duration_ms=self.countdown_ms,
            tick_ms=self.tick_ms,
            loop=self.loop,
        )

    def _ticked(self, session: GameSession, countdown: Countdown) -> None:
        if self.on_tick is not None:
            self.on_tick(session, countdown)

    def _expired(self, session: GameSession) -> None:
        logger.info(f"[{session.label}] Time is up")
        if self.on_expire is not None:
            self.on_expire(session)

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._sessions):
            raise OutOfRange(f"Game index {index} out of range ({len(self._sessions)} games)")
