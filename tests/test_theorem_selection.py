"""Tests for the theorem range selection."""

import pytest

from proofplay.core.errors import IncompleteSelection
from proofplay.game.theorem_selection import TheoremSelection


class TestToggle:
    """Tests for selecting and deselecting indices."""

    def test_first_click_sets_start(self):
        """Test the start slot is filled first."""
        selection = TheoremSelection()
        assert selection.toggle(4) is True
        assert selection.start == 4
        assert selection.end is None

    def test_second_click_sets_end(self):
        """Test the end slot is filled second."""
        selection = TheoremSelection()
        selection.toggle(4)
        selection.toggle(1)
        assert (selection.start, selection.end) == (4, 1)
        assert selection.is_complete()

    def test_double_toggle_returns_to_empty(self):
        """Test clicking the same index twice clears it."""
        selection = TheoremSelection()
        selection.toggle(3)
        selection.toggle(3)
        assert selection.is_empty()

    def test_deselect_start_then_refill(self):
        """Test a cleared start slot is the next one filled."""
        selection = TheoremSelection(start=1, end=5)
        selection.toggle(1)
        assert (selection.start, selection.end) == (None, 5)
        selection.toggle(2)
        assert (selection.start, selection.end) == (2, 5)

    def test_deselect_end(self):
        """Test clicking the end index clears only the end."""
        selection = TheoremSelection(start=1, end=5)
        selection.toggle(5)
        assert (selection.start, selection.end) == (1, None)

    def test_full_selection_ignores_new_index(self):
        """Test a third index is ignored while both slots are set."""
        selection = TheoremSelection(start=1, end=5)
        assert selection.toggle(3) is False
        assert (selection.start, selection.end) == (1, 5)

    def test_deselection_checked_before_selection(self):
        """Test an index equal to start is cleared even when end is free."""
        selection = TheoremSelection(start=0)
        selection.toggle(0)
        assert selection.is_empty()


class TestNormalized:
    """Tests for the submitted range."""

    def test_reversed_order(self):
        """Test bounds are sorted."""
        assert TheoremSelection(start=5, end=2).normalized() == (2, 5)

    def test_equal_points(self):
        """Test a single-state range is allowed."""
        selection = TheoremSelection()
        selection.toggle(2)
        # The same index deselects, so equal bounds only come from direct construction
        assert selection.start == 2
        assert TheoremSelection(start=2, end=2).normalized() == (2, 2)

    @pytest.mark.parametrize("start, end", [(None, None), (1, None), (None, 3)])
    def test_incomplete(self, start, end):
        """Test an incomplete selection cannot be normalized."""
        with pytest.raises(IncompleteSelection):
            TheoremSelection(start=start, end=end).normalized()

    def test_reset(self):
        """Test reset clears both slots."""
        selection = TheoremSelection(start=1, end=2)
        selection.reset()
        assert selection.is_empty()
        assert not selection.is_complete()
