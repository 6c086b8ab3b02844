"""Per-difficulty tuning shared by the event selector and the price engine."""

from __future__ import annotations

from dataclasses import dataclass

from models.config import Difficulty


@dataclass(frozen=True)
class DifficultyProfile:
    """Numbers behind a difficulty level.

    - positive_ratio: target share of positive events among active ones
    - impact_multiplier: scales every event's price impact
    - random_volatility: half-width of the hourly uniform noise
    """

    positive_ratio: float
    impact_multiplier: float
    random_volatility: float

    @property
    def negative_ratio(self) -> float:
        return 1.0 - self.positive_ratio


DIFFICULTY_PROFILES: dict[Difficulty, DifficultyProfile] = {
    Difficulty.EASY: DifficultyProfile(positive_ratio=0.60, impact_multiplier=0.7, random_volatility=0.001),
    Difficulty.MEDIUM: DifficultyProfile(positive_ratio=0.40, impact_multiplier=1.0, random_volatility=0.002),
    Difficulty.HARD: DifficultyProfile(positive_ratio=0.20, impact_multiplier=1.2, random_volatility=0.003),
}


def profile_for(difficulty: Difficulty | str) -> DifficultyProfile:
    return DIFFICULTY_PROFILES[Difficulty(difficulty)]
