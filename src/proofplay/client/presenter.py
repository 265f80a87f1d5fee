"""Presentation hooks fed by the game controller."""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING

from proofplay.game.countdown import Countdown, format_ms
from proofplay.game.theorem_selection import TheoremSelection
from proofplay.game.timeline import Timeline

if TYPE_CHECKING:
    from proofplay.game.session import GameSession
    from proofplay.game.state import GameState

logger = logging.getLogger(__name__)


class NotificationLevel(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    """A message shown to the player."""

    level: NotificationLevel
    message: str
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def error(cls, message: str) -> "Notification":
        return cls(NotificationLevel.ERROR, message)

    @classmethod
    def success(cls, message: str) -> "Notification":
        return cls(NotificationLevel.SUCCESS, message)

    @classmethod
    def info(cls, message: str) -> "Notification":
        return cls(NotificationLevel.INFO, message)

    @classmethod
    def warning(cls, message: str) -> "Notification":
        return cls(NotificationLevel.WARNING, message)

    def __str__(self) -> str:
        return f"[{self.level.value.upper()}] {self.message}"


class NotificationLog:
    """Every notification issued since the client started."""

    def __init__(self):
        self._entries: list[Notification] = []

    def add(self, notification: Notification) -> None:
        self._entries.append(notification)

    @property
    def entries(self) -> tuple[Notification, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


class Presenter:
    """Rendering surface for a game. All hooks do nothing by default."""

    def on_tick(self, countdown: Countdown) -> None:
        pass

    def on_expire(self) -> None:
        pass

    def on_victory(self, elapsed_ms: int) -> None:
        pass

    def on_timeline_changed(self, timeline: Timeline) -> None:
        pass

    def on_selection_changed(self, selection: TheoremSelection) -> None:
        pass

    def on_state_changed(self, session: "GameSession") -> None:
        pass

    def on_rules(self, rules: dict[str, list[str]]) -> None:
        pass

    def on_sessions_changed(self, game_state: "GameState") -> None:
        pass

    def notify(self, notification: Notification) -> None:
        pass


class TextPresenter(Presenter):
    """Prints game events to the terminal for the text client."""

    def __init__(self, show_ticks: bool = False):
        self.show_ticks = show_ticks
        self.selection: TheoremSelection | None = None

    def on_tick(self, countdown: Countdown) -> None:
        if self.show_ticks:
            print(f"[TIMER] {countdown} left")

    def on_expire(self) -> None:
        print("[DEFEAT] Time is up, you lost! Use /home or /restart.")

    def on_victory(self, elapsed_ms: int) -> None:
        print(f"[VICTORY] Formula solved in {format_ms(elapsed_ms)}. Use /home or /restart.")

    def on_timeline_changed(self, timeline: Timeline) -> None:
        print(format_timeline(timeline, self.selection))

    def on_selection_changed(self, selection: TheoremSelection) -> None:
        self.selection = selection
        start = "-" if selection.start is None else selection.start
        end = "-" if selection.end is None else selection.end
        print(f"[THEOREM] start={start} end={end}")

    def on_state_changed(self, session: "GameSession") -> None:
        if session.current_state is not None:
            print(f"[FORMULA] {session.current_state.state.text}")

    def on_rules(self, rules: dict[str, list[str]]) -> None:
        lines = ["[RULES]"]
        for category, descriptions in rules.items():
            lines.append(f"  {category}")
            for description in descriptions:
                lines.append(f"    - {description}")
        print("\n".join(lines))

    def on_sessions_changed(self, game_state: "GameState") -> None:
        print(format_sessions(game_state))

    def notify(self, notification: Notification) -> None:
        print(str(notification))


def format_timeline(timeline: Timeline, selection: TheoremSelection | None = None) -> str:
    """Render the timeline with the newest state first.

    The cursor is marked with -> and states picked for a theorem with *.
    """
    lines = ["[TIMELINE]"]
    for index in range(len(timeline) - 1, -1, -1):
        marker = "->" if index == timeline.cursor else "  "
        picked = "*" if selection is not None and selection.is_selected(index) else " "
        lines.append(f" {marker}{picked}{index}: {timeline.elements[index].text}")
    return "\n".join(lines)


def format_sessions(game_state: "GameState") -> str:
    if len(game_state) == 0:
        return "[GAMES] No game in progress, use /new to start one"
    lines = ["[GAMES]"]
    for index, session in enumerate(game_state.sessions):
        info = session.to_dict()
        marker = "->" if index == game_state.current_index else "  "
        line = f" {marker} {index}: {info['mode']}"
        if info["remaining"] is not None:
            line += f" ({info['remaining']} left)"
        line += " with theorems" if info["use_theorem"] else " without theorems"
        if info["text"]:
            line += f" | {info['text']}"
        lines.append(line)
    return "\n".join(lines)
