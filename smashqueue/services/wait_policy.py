"""Estimated wait policies for the queue.

A policy maps a 1-based waiting position to minutes. It is a plain
callable so the heuristic can change without touching queue code.
"""

from collections.abc import Callable
from dataclasses import dataclass

WaitPolicy = Callable[[int], int]


@dataclass(frozen=True)
class FixedMatchDurationPolicy:
    """Everyone ahead of you costs one average match."""

    average_match_minutes: int = 5

    def __call__(self, position: int) -> int:
        if position < 1:
            raise ValueError(f"position must be >= 1, got {position}")
        return (position - 1) * self.average_match_minutes


def default_wait_policy(average_match_minutes: int | None = None) -> WaitPolicy:
    """Build the configured policy."""
    if average_match_minutes is None:
        from smashqueue.config import get_settings

        average_match_minutes = get_settings().average_match_minutes
    return FixedMatchDurationPolicy(average_match_minutes)


def format_wait(minutes: int) -> str:
    """Render minutes for display."""
    if minutes <= 0:
        return "Next up!"
    return f"~{minutes} min"
