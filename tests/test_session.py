"""Tests for a single game session."""

import pytest

from proofplay.core.errors import AlreadyAssigned, AlreadyOver
from proofplay.game.countdown import Countdown, CountdownSnapshot, CountdownState
from proofplay.game.session import (
    DEFAULT_COUNTDOWN_MS,
    GameConfig,
    GameMode,
    GameSession,
    GameStatus,
)
from proofplay.game.timeline import ProofState


def noop():
    pass


def resume(session, fake_loop, updates=None):
    updates = updates if updates is not None else []
    return session.resume_timer(noop, lambda c: updates.append(c.remaining_ms), loop=fake_loop)


@pytest.fixture
def session(normal_config):
    return GameSession(config=normal_config, session_id=7)


class TestIdentity:
    """Tests for pending and confirmed sessions."""

    def test_new_session_is_pending(self, normal_config):
        """Test a session without id is pending."""
        session = GameSession(config=normal_config)
        assert session.is_pending()
        assert session.label == "pending"

    def test_record_server_id(self, normal_config):
        """Test recording the id confirms the session."""
        session = GameSession(config=normal_config)
        session.record_server_id(42)
        assert not session.is_pending()
        assert session.session_id == 42

    def test_record_server_id_twice_fails(self, normal_config):
        """Test the id can only be set once."""
        session = GameSession(config=normal_config)
        session.record_server_id(42)
        with pytest.raises(AlreadyAssigned):
            session.record_server_id(43)
        assert session.session_id == 42


class TestProofStates:
    """Tests for applying proof states."""

    def test_apply_appends(self, session):
        """Test a rule application extends the timeline."""
        assert session.apply_proof_state(ProofState("a")) is False
        session.apply_proof_state(ProofState("b"))
        assert len(session.timeline) == 2
        assert session.current_state.state.text == "b"
        assert session.current_state.status == GameStatus.IN_PROGRESS

    def test_victory_signalled_for_timed_game(self, session):
        """Test a timed victory is reported to the caller."""
        assert session.apply_proof_state(ProofState("goal"), GameStatus.VICTORY) is True
        assert session.current_state.is_victory

    def test_victory_not_signalled_for_untimed_game(self, untimed_config):
        """Test an untimed victory is not reported as timed."""
        session = GameSession(config=untimed_config, session_id=1)
        assert session.apply_proof_state(ProofState("goal"), GameStatus.VICTORY) is False

    def test_navigation_moves_cursor(self, session):
        """Test previous/next/index updates move the cursor without appending."""
        for text in ("a", "b", "c"):
            session.apply_proof_state(ProofState(text))

        session.show_previous(ProofState("b"))
        assert session.timeline.cursor == 1
        session.show_index(0, ProofState("a"))
        assert session.timeline.cursor == 0
        session.show_next(ProofState("b"))
        assert session.timeline.cursor == 1
        assert len(session.timeline) == 3
        assert session.current_state.state.text == "b"

    def test_refresh_only_seeds_empty_timeline(self, session):
        """Test a resume refresh does not duplicate states."""
        session.refresh(ProofState("a"))
        session.refresh(ProofState("a"))
        assert len(session.timeline) == 1


class TestTimer:
    """Tests for countdown ownership."""

    def test_resume_creates_default_countdown(self, session, fake_loop):
        """Test a timed session gets a fresh two minute countdown."""
        countdown = resume(session, fake_loop)
        assert isinstance(session.countdown, Countdown)
        assert countdown.duration_ms == DEFAULT_COUNTDOWN_MS == 120000
        assert countdown.state == CountdownState.STARTED

    def test_resume_untimed_is_noop(self, untimed_config, fake_loop):
        """Test untimed games never get a countdown."""
        session = GameSession(config=untimed_config, session_id=1)
        assert resume(session, fake_loop) is None
        assert session.countdown is None

    def test_suspend_keeps_snapshot(self, session, fake_loop):
        """Test suspending replaces the countdown by its snapshot."""
        resume(session, fake_loop)
        fake_loop.advance(5)
        session.suspend_timer()

        assert session.countdown == CountdownSnapshot(120000, 115000)
        assert fake_loop.pending == 0

    def test_suspend_without_countdown_is_noop(self, session):
        """Test suspending twice or with no timer does nothing."""
        session.suspend_timer()
        assert session.countdown is None
        session.countdown = CountdownSnapshot(1000, 500)
        session.suspend_timer()
        assert session.countdown == CountdownSnapshot(1000, 500)

    def test_resume_from_snapshot_continues(self, session, fake_loop):
        """Test resuming restores the remaining time instead of restarting."""
        session.countdown = CountdownSnapshot(120000, 30000)
        countdown = resume(session, fake_loop)
        assert countdown.remaining_ms == 30000
        fake_loop.advance(1)
        assert countdown.remaining_ms == 29000

    def test_resume_over_snapshot_fails(self, session, fake_loop):
        """Test a snapshot with nothing left is not resumable."""
        session.countdown = CountdownSnapshot(120000, 0)
        with pytest.raises(AlreadyOver):
            resume(session, fake_loop)
        assert session.is_over()

    def test_resume_running_countdown_is_noop(self, session, fake_loop):
        """Test resuming an already ticking countdown leaves it alone."""
        first = resume(session, fake_loop)
        assert resume(session, fake_loop) is first
        assert fake_loop.pending == 1

    def test_stop_timer_reports_elapsed(self, session, fake_loop):
        """Test stopping returns the elapsed time and halts ticking."""
        updates = []
        resume(session, fake_loop, updates)
        fake_loop.advance(7)

        assert session.stop_timer() == 7000
        fake_loop.advance(5)
        assert len(updates) == 7

    def test_stop_timer_without_countdown(self, untimed_config):
        """Test there is nothing to stop for untimed games."""
        session = GameSession(config=untimed_config, session_id=1)
        assert session.stop_timer() is None

    def test_reset_for_restart(self, session, fake_loop):
        """Test a restart forgets server id, history and timer."""
        session.apply_proof_state(ProofState("a"))
        resume(session, fake_loop)
        session.reset_for_restart()

        assert session.is_pending()
        assert session.countdown is None
        assert session.timeline.is_empty()
        assert fake_loop.pending == 0

    def test_to_dict_uses_formula_text_before_first_state(self):
        """Test the summary falls back to the configured formula text."""
        session = GameSession(config=GameConfig(mode=GameMode.UNTIMED, formula_text="p -> p"))
        assert session.to_dict()["text"] == "p -> p"
        assert session.to_dict()["mode"] == "UNTIMED"
