"""Two-point selection of a timeline range to turn into a theorem."""

from dataclasses import dataclass

from proofplay.core.errors import IncompleteSelection


@dataclass
class TheoremSelection:
    """Start and end indices picked on the timeline.

    Clicking a selected index deselects it; otherwise the first free slot is
    filled. When both slots are taken further clicks on other indices are
    ignored until one is cleared.
    """

    start: int | None = None
    end: int | None = None

    def toggle(self, index: int) -> bool:
        """Select or deselect index. Returns True if the selection changed."""
        # Deselection is checked before selection
        if self.start == index:
            self.start = None
        elif self.end == index:
            self.end = None
        elif self.start is None:
            self.start = index
        elif self.end is None:
            self.end = index
        else:
            return False
        return True

    def is_selected(self, index: int) -> bool:
        return index in (self.start, self.end)

    def is_complete(self) -> bool:
        return self.start is not None and self.end is not None

    def is_empty(self) -> bool:
        return self.start is None and self.end is None

    def normalized(self) -> tuple[int, int]:
        """Return (low, high) bounds of the selected range.

        Raises:
            IncompleteSelection: If one of the bounds is missing.
        """
        if self.start is None or self.end is None:
            raise IncompleteSelection("Both ends of the theorem must be selected")
        return min(self.start, self.end), max(self.start, self.end)

    def reset(self) -> None:
        self.start = None
        self.end = None
