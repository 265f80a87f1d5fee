"""Game state module for proofplay."""

from proofplay.game.countdown import Countdown, CountdownSnapshot, CountdownState, minutes_to_ms
from proofplay.game.session import CurrentState, GameConfig, GameMode, GameSession, GameStatus
from proofplay.game.state import GameState
from proofplay.game.theorem_selection import TheoremSelection
from proofplay.game.timeline import ProofState, Timeline

__all__ = [
    "Countdown",
    "CountdownSnapshot",
    "CountdownState",
    "minutes_to_ms",
    "CurrentState",
    "GameConfig",
    "GameMode",
    "GameSession",
    "GameStatus",
    "GameState",
    "TheoremSelection",
    "ProofState",
    "Timeline",
]
