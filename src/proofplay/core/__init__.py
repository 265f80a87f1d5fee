"""Core building blocks shared by the game and client layers."""

from proofplay.core.errors import (
    AlreadyAssigned,
    AlreadyOver,
    GameError,
    IncompleteSelection,
    InvalidTransition,
    NoGameInProgress,
    OutOfRange,
    RemoteFailure,
    RequestPending,
)
from proofplay.core.result import Result

__all__ = [
    "GameError",
    "InvalidTransition",
    "AlreadyOver",
    "OutOfRange",
    "IncompleteSelection",
    "NoGameInProgress",
    "AlreadyAssigned",
    "RemoteFailure",
    "RequestPending",
    "Result",
]
