"""Game controller - drives the registry from player actions and server replies."""

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any

from pydantic import ValidationError

from proofplay.client.messages import ProofStatePayload, RequestName, RulesPayload, StartPayload
from proofplay.client.presenter import Notification, NotificationLog, Presenter
from proofplay.client.transport import Transport
from proofplay.core.errors import (
    AlreadyOver,
    GameError,
    IncompleteSelection,
    NoGameInProgress,
    OutOfRange,
    RemoteFailure,
    RequestPending,
)
from proofplay.game.countdown import Countdown, CountdownState, format_ms
from proofplay.game.session import GameConfig, GameSession, GameStatus
from proofplay.game.state import GameState
from proofplay.game.theorem_selection import TheoremSelection
from proofplay.game.timeline import ProofState

logger = logging.getLogger(__name__)

StateUpdate = Callable[[ProofState, GameStatus], bool]


class GameController:
    """Handles player actions on the current game.

    Every request goes through the transport; a failed reply is reported as
    an error notification and raised as RemoteFailure before any session is
    modified. Only one request may be in flight per session.
    """

    def __init__(
        self,
        game_state: GameState,
        transport: Transport,
        presenter: Presenter | None = None,
        notifications: NotificationLog | None = None,
    ):
        self.game_state = game_state
        self.transport = transport
        self.presenter = presenter or Presenter()
        self.notifications = notifications or NotificationLog()
        self.selection = TheoremSelection()
        self.theorem_mode = False
        self._tasks: set[asyncio.Task] = set()

        game_state.on_tick = self._on_tick
        game_state.on_expire = self._on_expire

    # Game lifecycle

    async def new_game(self, config: GameConfig) -> GameSession:
        """Create a game client side, then start it on the server."""
        session = self.game_state.add_session(config)
        self._leave_theorem_mode()
        self.presenter.on_sessions_changed(self.game_state)
        await self.open_current()
        return session

    async def open_current(self) -> GameSession:
        """Bring the current game on screen, starting it server side if needed."""
        session = self._require_current()

        if session.is_pending():
            config = session.config
            data = await self._request(
                session,
                RequestName.START,
                config.mode,
                config.rule_set,
                config.formula_id,
                config.use_theorem,
            )
            start = self._parse(RequestName.START, StartPayload, data)
            session.record_server_id(start.id)
            data = await self._request(session, RequestName.GAMESTATE, session.session_id)
            await self._show(session, RequestName.GAMESTATE, data, session.apply_proof_state)
        else:
            await self._request(session, RequestName.RESUME, session.session_id)
            data = await self._request(session, RequestName.GAMESTATE, session.session_id)
            await self._show(session, RequestName.GAMESTATE, data, session.refresh)

        self._start_timer(session)
        return session

    async def switch_game(self, index: int) -> GameSession:
        """Make another game current and resume its countdown.

        Raises:
            OutOfRange: If index is not a game of the registry.
            AlreadyOver: If the game's countdown already ran out.
        """
        if index == self.game_state.current_index:
            return self._require_current()

        self._leave_theorem_mode()
        try:
            session = self.game_state.switch_to(index)
        except AlreadyOver:
            self._notify(Notification.error("Time is up for this game, delete or restart it."))
            self.presenter.on_sessions_changed(self.game_state)
            raise
        self.presenter.on_sessions_changed(self.game_state)

        if session.finished:
            # Already ended server side, only the cached state is left
            self.presenter.on_state_changed(session)
            self.presenter.on_timeline_changed(session.timeline)
            return session
        if session.is_pending():
            return await self.open_current()

        data = await self._request(session, RequestName.GAMESTATE, session.session_id)
        await self._show(session, RequestName.GAMESTATE, data, session.refresh)
        return session

    async def delete_game(self, index: int | None = None) -> GameSession:
        """Delete a game (the current one by default) on both sides."""
        if index is None:
            session = self._require_current()
        else:
            if not 0 <= index < len(self.game_state):
                raise OutOfRange(f"Game index {index} out of range")
            session = self.game_state.sessions[index]

        # Finished games were already deleted server side
        if not session.is_pending() and not session.finished:
            await self._request(session, RequestName.DELETE, session.session_id)

        self.game_state.stop_all_timers()
        self.game_state.delete_at(self.game_state.index_of(session))
        self._leave_theorem_mode()
        logger.info(f"[{session.label}] Game deleted")
        self.presenter.on_sessions_changed(self.game_state)

        if self.game_state.current() is not None:
            await self.open_current()
        return session

    async def restart_game(self) -> GameSession:
        """Throw away the current game and start the same configuration again."""
        session = self._require_current()
        if not session.is_pending() and not session.finished:
            await self._request(session, RequestName.DELETE, session.session_id)

        self.game_state.stop_all_timers()
        session.reset_for_restart()
        self._leave_theorem_mode()
        logger.info(f"[{session.label}] Restarting game")
        return await self.open_current()

    async def go_home(self) -> None:
        """Leave a finished game and drop it from the registry."""
        session = self.game_state.current()
        if session is not None and session.finished:
            self.game_state.delete_at(self.game_state.index_of(session))
        self.leave()
        self.presenter.on_sessions_changed(self.game_state)

    async def dismiss_outcome(self) -> bool:
        """Close the victory/defeat prompt without choosing an action.

        The current game is only dropped if it still is the finished one;
        if it was already handled elsewhere nothing happens.
        """
        session = self.game_state.current()
        if session is None:
            return False
        won = session.current_state is not None and session.current_state.is_victory
        if not (won or session.is_over()):
            return False

        self.game_state.delete_at(self.game_state.index_of(session))
        self._leave_theorem_mode()
        self.presenter.on_sessions_changed(self.game_state)
        if self.game_state.current() is not None:
            await self.open_current()
        return True

    def leave(self) -> None:
        """Stop every countdown when the game screen is left."""
        self.game_state.stop_all_timers()
        self._leave_theorem_mode()

    # Proof actions

    async def apply_rule(self, expr_id: int | str, rule_id: int | str, context: Any = 0) -> GameSession:
        session = self._require_confirmed()
        data = await self._request(
            session, RequestName.APPLYRULE, session.session_id, expr_id, rule_id, context
        )
        await self._show(session, RequestName.APPLYRULE, data, session.apply_proof_state)
        return session

    async def previous(self) -> GameSession:
        session = self._require_confirmed()
        data = await self._request(session, RequestName.PREVIOUS, session.session_id)
        await self._show(session, RequestName.PREVIOUS, data, session.show_previous)
        return session

    async def next(self) -> GameSession:
        session = self._require_confirmed()
        data = await self._request(session, RequestName.NEXT, session.session_id)
        await self._show(session, RequestName.NEXT, data, session.show_next)
        return session

    async def jump_to(self, index: int) -> GameSession:
        """Display the state at index of the timeline.

        Raises:
            OutOfRange: If index is not in the timeline; nothing is sent.
        """
        session = self._require_confirmed()
        if not 0 <= index < len(session.timeline):
            raise OutOfRange(f"Timeline index {index} out of range")
        data = await self._request(session, RequestName.TIMELINE, session.session_id, index)
        await self._show(
            session,
            RequestName.TIMELINE,
            data,
            lambda state, status: session.show_index(index, state, status),
        )
        return session

    async def timeline_click(self, index: int) -> None:
        """Select for the theorem in theorem mode, otherwise replay the state."""
        if self.theorem_mode:
            self.select_for_theorem(index)
        else:
            await self.jump_to(index)

    async def rules_list(self) -> dict[str, list[str]]:
        session = self._require_confirmed()
        data = await self._request(session, RequestName.RULESLIST, session.session_id)
        rules = self._parse(RequestName.RULESLIST, RulesPayload, data).by_category()
        self.presenter.on_rules(rules)
        return rules

    # Theorem creation

    def toggle_theorem_mode(self) -> bool:
        """Enter or leave theorem mode. The selection is cleared either way."""
        self.theorem_mode = not self.theorem_mode
        self.selection.reset()
        self.presenter.on_selection_changed(self.selection)
        return self.theorem_mode

    def select_for_theorem(self, index: int) -> bool:
        if not self.theorem_mode:
            return False
        session = self._require_current()
        if not 0 <= index < len(session.timeline):
            return False
        changed = self.selection.toggle(index)
        if changed:
            self.presenter.on_selection_changed(self.selection)
        return changed

    async def submit_theorem(self) -> bool:
        """Ask the server to turn the selected range into a theorem.

        An incomplete selection is refused locally without contacting the
        server.
        """
        session = self._require_confirmed()
        try:
            start, end = self.selection.normalized()
        except IncompleteSelection as e:
            self._notify(Notification.error(str(e)))
            return False

        await self._request(session, RequestName.CREATETHEOREM, session.session_id, start, end)
        logger.info(f"[{session.label}] Theorem created from states {start} to {end}")
        self._notify(Notification.success(f"Theorem created from states {start} to {end}"))
        self._leave_theorem_mode()
        return True

    # Countdown

    def toggle_pause(self) -> CountdownState | None:
        """Pause or resume the current game's countdown."""
        session = self._require_current()
        if not session.is_timed:
            self._notify(Notification.info("This game is not timed"))
            return None

        countdown = session.live_countdown
        if countdown is not None and countdown.state == CountdownState.STARTED:
            countdown.pause()
            return countdown.state

        countdown = self.game_state.start_current_timer()
        return countdown.state if countdown is not None else None

    def _start_timer(self, session: GameSession) -> None:
        if self.game_state.current() is not session:
            return
        try:
            self.game_state.start_current_timer()
        except AlreadyOver:
            self._notify(Notification.error("Time is up for this game, delete or restart it."))
            raise

    def _on_tick(self, session: GameSession, countdown: Countdown) -> None:
        if session is self.game_state.current():
            self.presenter.on_tick(countdown)

    def _on_expire(self, session: GameSession) -> None:
        self._notify(Notification.warning("Time is up, game over."))
        self._spawn(self._finish_expired(session))

    async def _finish_expired(self, session: GameSession) -> None:
        if session.finished:
            return
        if session.request_pending:
            # Retried by _request once the reply is in
            logger.info(f"[{session.label}] Time is up, ending the game after the pending request")
            session.end_deferred = True
            return
        try:
            await self._request(session, RequestName.DELETE, session.session_id)
        except GameError as e:
            logger.warning(f"[{session.label}] Could not end expired game: {e}")
            return
        session.finished = True
        if session is self.game_state.current():
            self.presenter.on_expire()

    async def _on_victory(self, session: GameSession) -> None:
        elapsed = session.stop_timer() or 0
        logger.info(f"[{session.label}] Victory in {elapsed}ms")
        self.presenter.on_victory(elapsed)
        self._notify(Notification.success(f"Well done, formula solved in {format_ms(elapsed)}"))
        await self._request(session, RequestName.DELETE, session.session_id)
        session.finished = True

    # Plumbing

    async def drain(self) -> None:
        """Wait for work started from timer callbacks."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _request(self, session: GameSession, request: RequestName, *params: Any) -> dict:
        if session.request_pending:
            raise RequestPending(f"[{session.label}] A request is already pending, {request.value} refused")

        session.request_pending = True
        try:
            result = await self.transport.send(request, *params)
        finally:
            session.request_pending = False
            if session.end_deferred:
                session.end_deferred = False
                self._spawn(self._finish_expired(session))

        if result.is_err:
            logger.warning(f"[{session.label}] {request.value} failed: {result.error}")
            self._notify(Notification.error(result.error))
            raise RemoteFailure(request.value, result.error)
        return result.unwrap()

    def _parse(self, request: RequestName, model, data: dict):
        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.error(f"Unexpected {request.value} payload: {e}")
            message = f"Unexpected reply from server for {request.value}"
            self._notify(Notification.error(message))
            raise RemoteFailure(request.value, message) from e

    async def _show(
        self, session: GameSession, request: RequestName, data: dict, update: StateUpdate
    ) -> None:
        payload = self._parse(request, ProofStatePayload, data)
        victory = update(payload.to_state(), payload.game_status)

        self.presenter.on_state_changed(session)
        self.presenter.on_timeline_changed(session.timeline)

        if session.finished or session.is_over():
            return
        if victory:
            await self._on_victory(session)
        elif payload.game_status == GameStatus.VICTORY:
            # Untimed games have no elapsed time to report
            self._notify(Notification.success("Well done, formula solved"))
            await self._request(session, RequestName.DELETE, session.session_id)
            session.finished = True

    def _notify(self, notification: Notification) -> None:
        self.notifications.add(notification)
        self.presenter.notify(notification)

    def _leave_theorem_mode(self) -> None:
        if self.theorem_mode:
            self.theorem_mode = False
            self.selection.reset()
            self.presenter.on_selection_changed(self.selection)
        else:
            self.selection.reset()

    def _require_current(self) -> GameSession:
        session = self.game_state.current()
        if session is None:
            raise NoGameInProgress("No game in progress")
        return session

    def _require_confirmed(self) -> GameSession:
        session = self._require_current()
        if session.is_pending():
            raise NoGameInProgress("Game is not started on the server yet")
        if session.finished or session.is_over():
            raise AlreadyOver(f"[{session.label}] The game is over, delete or restart it")
        return session
