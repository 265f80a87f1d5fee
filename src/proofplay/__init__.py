"""proofplay - client for a turn-based formula rewriting puzzle."""

__version__ = "0.1.0"
