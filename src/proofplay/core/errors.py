"""Exception hierarchy for the game client."""


class GameError(Exception):
    """Base class for every error raised by proofplay."""


class InvalidTransition(GameError):
    """A countdown operation was invoked from a state that does not allow it."""


class AlreadyOver(InvalidTransition):
    """The countdown has run out and cannot be started again."""


class OutOfRange(GameError, IndexError):
    """A timeline or registry index is outside the valid range."""


class IncompleteSelection(GameError):
    """A theorem selection was used before both bounds were chosen."""


class AlreadyAssigned(GameError):
    """A server id was recorded twice for the same session."""


class RequestPending(GameError):
    """A request was issued while another one is still in flight for the session."""


class RemoteFailure(GameError):
    """The proof engine answered a request with a non-success status."""

    def __init__(self, request: str, message: str):
        super().__init__(f"{request} failed: {message}")
        self.request = request
        self.message = message


class NoGameInProgress(GameError):
    """An operation needs a current game but the registry is empty."""
