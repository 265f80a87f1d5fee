"""Pytest configuration and fixtures."""

import pytest

from proofplay.client.handler import GameController
from proofplay.client.messages import RequestName
from proofplay.client.presenter import Presenter
from proofplay.client.transport import Transport
from proofplay.config import get_settings
from proofplay.core.result import Result
from proofplay.game.session import GameConfig, GameMode
from proofplay.game.state import GameState

STATE_REQUESTS = {
    RequestName.GAMESTATE,
    RequestName.APPLYRULE,
    RequestName.PREVIOUS,
    RequestName.NEXT,
    RequestName.TIMELINE,
}


class FakeHandle:
    """Scheduled callback returned by FakeLoop.call_later."""

    def __init__(self, when: float, callback):
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeLoop:
    """Deterministic stand-in for the event loop's call_later."""

    def __init__(self):
        self.now = 0.0
        self._handles: list[FakeHandle] = []

    def call_later(self, delay: float, callback) -> FakeHandle:
        handle = FakeHandle(self.now + delay, callback)
        self._handles.append(handle)
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for handle in self._handles if not handle.cancelled)

    def advance(self, seconds: float) -> None:
        """Run every callback due within the next seconds."""
        target = self.now + seconds
        while True:
            due = [h for h in self._handles if not h.cancelled and h.when <= target + 1e-9]
            if not due:
                break
            handle = min(due, key=lambda h: h.when)
            self._handles.remove(handle)
            self.now = handle.when
            handle.callback()
        self._handles = [h for h in self._handles if not h.cancelled]
        self.now = target


class FakeTransport(Transport):
    """Transport answering from a queue of canned results, recording every call."""

    def __init__(self):
        self.calls: list[tuple[RequestName, tuple]] = []
        self.queued: dict[RequestName, list[Result]] = {}
        self._next_id = 1

    def queue(self, request: RequestName, result: Result) -> None:
        self.queued.setdefault(request, []).append(result)

    def queue_state(self, request: RequestName, text: str, status: str = "IN_PROGRESS") -> None:
        self.queue(request, Result.ok({"text": text, "math": {"latex": text}, "gameStatus": status}))

    def fail(self, request: RequestName, message: str = "server error") -> None:
        self.queue(request, Result.err(message))

    @property
    def requests(self) -> list[RequestName]:
        return [request for request, _ in self.calls]

    async def send(self, request: RequestName, *params):
        self.calls.append((request, params))
        queued = self.queued.get(request)
        if queued:
            return queued.pop(0)
        if request == RequestName.START:
            session_id = self._next_id
            self._next_id += 1
            return Result.ok({"id": session_id})
        if request in STATE_REQUESTS:
            return Result.ok({"text": f"{request.value.lower()} {len(self.calls)}"})
        if request == RequestName.RULESLIST:
            return Result.ok({"rules": []})
        return Result.ok({})


class RecordingPresenter(Presenter):
    """Presenter keeping every event it receives."""

    def __init__(self):
        self.events: list[tuple[str, object]] = []

    def on_tick(self, countdown):
        self.events.append(("tick", countdown.remaining_ms))

    def on_expire(self):
        self.events.append(("expire", None))

    def on_victory(self, elapsed_ms):
        self.events.append(("victory", elapsed_ms))

    def on_timeline_changed(self, timeline):
        self.events.append(("timeline", timeline.cursor))

    def on_selection_changed(self, selection):
        self.events.append(("selection", (selection.start, selection.end)))

    def on_rules(self, rules):
        self.events.append(("rules", rules))

    def notify(self, notification):
        self.events.append(("notify", notification))

    def named(self, name: str) -> list:
        return [value for event, value in self.events if event == name]


@pytest.fixture
def fake_loop():
    """Provide a deterministic scheduler for countdown ticks."""
    return FakeLoop()


@pytest.fixture
def game_state(fake_loop):
    """Provide an empty registry ticking on the fake loop."""
    return GameState(loop=fake_loop)


@pytest.fixture
def transport():
    """Provide a fake transport with default successful replies."""
    return FakeTransport()


@pytest.fixture
def presenter():
    """Provide a presenter that records events."""
    return RecordingPresenter()


@pytest.fixture
def controller(game_state, transport, presenter):
    """Provide a controller wired to the fakes."""
    return GameController(game_state, transport, presenter)


@pytest.fixture
def normal_config():
    """Provide a timed game configuration."""
    return GameConfig(mode=GameMode.NORMAL, rule_set="logic", formula_id=3, use_theorem=True)


@pytest.fixture
def untimed_config():
    """Provide an untimed game configuration."""
    return GameConfig(mode=GameMode.UNTIMED, rule_set="logic", formula_id=4)


@pytest.fixture(autouse=True)
def mock_env_vars(monkeypatch):
    """Set up test environment variables."""
    monkeypatch.setenv("PROOFPLAY_HOST", "localhost")
    monkeypatch.setenv("PROOFPLAY_PORT", "8080")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
