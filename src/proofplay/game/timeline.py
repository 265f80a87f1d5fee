"""Proof history of a game with a movable cursor."""

import logging
from dataclasses import dataclass, field
from typing import Any

from proofplay.core.errors import OutOfRange

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProofState:
    """One snapshot of the formula being rewritten."""

    text: str
    math_payload: Any = None

    def to_dict(self) -> dict:
        return {"text": self.text, "math": self.math_payload}


@dataclass
class Timeline:
    """Ordered proof states and the index of the one on display.

    Navigation clamps at both ends: stepping past the first or last state
    leaves the cursor where it is and reports False instead of raising.
    Appending after stepping back drops the states that followed the cursor.
    """

    _elements: list[ProofState] = field(default_factory=list)
    _cursor: int = 0

    @property
    def elements(self) -> tuple[ProofState, ...]:
        return tuple(self._elements)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def current(self) -> ProofState | None:
        """State under the cursor, or None for an empty timeline."""
        if not self._elements:
            return None
        return self._elements[self._cursor]

    def __len__(self) -> int:
        return len(self._elements)

    def is_empty(self) -> bool:
        return not self._elements

    def append(self, state: ProofState) -> None:
        if self._elements and self._cursor < len(self._elements) - 1:
            dropped = len(self._elements) - self._cursor - 1
            logger.debug(f"Branching timeline, dropping {dropped} state(s)")
            del self._elements[self._cursor + 1 :]
        self._elements.append(state)
        self._cursor = len(self._elements) - 1

    def step_back(self) -> bool:
        if self._cursor <= 0:
            return False
        self._cursor -= 1
        return True

    def step_forward(self) -> bool:
        if self._cursor >= len(self._elements) - 1:
            return False
        self._cursor += 1
        return True

    def jump_to(self, index: int) -> None:
        """Move the cursor to index.

        Raises:
            OutOfRange: If index is not a position in the timeline.
        """
        if not 0 <= index < len(self._elements):
            raise OutOfRange(f"Timeline index {index} out of range (length {len(self._elements)})")
        self._cursor = index

    def to_dict(self) -> dict:
        return {
            "elements": [state.to_dict() for state in self._elements],
            "current": self._cursor,
        }
