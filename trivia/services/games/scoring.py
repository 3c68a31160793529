import math
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class ScoringPolicy:
    """Points for one answer.

    A correct answer earns ``base_points``, plus ``time_bonus_per_second`` for
    every second left on the clock (floored), plus ``streak_bonus`` for each
    consecutive correct answer after the first. A wrong answer earns nothing
    and breaks the streak.
    """

    base_points: int = 100
    time_bonus_per_second: float = 5
    streak_bonus: int = 25

    @classmethod
    def from_config(cls, config):
        return cls(
            base_points=int(config.get('BASE_POINTS_CORRECT', 100)),
            time_bonus_per_second=float(config.get('TIME_BONUS_PER_SECOND', 5)),
            streak_bonus=int(config.get('STREAK_BONUS', 25)),
        )

    def score(self, is_correct: bool, elapsed: float, time_limit: float, streak: int) -> Tuple[int, int]:
        """Return ``(points_earned, new_streak)``."""
        if not is_correct:
            return 0, 0
        new_streak = streak + 1
        remaining = max(0.0, time_limit - max(0.0, elapsed))
        points = self.base_points
        points += int(math.floor(remaining * self.time_bonus_per_second))
        points += (new_streak - 1) * self.streak_bonus
        return max(0, points), new_streak


def apply_points(score: int, points: int) -> int:
    """Cumulative scores never drop below zero."""
    return max(0, score + points)
