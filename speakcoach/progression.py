"""
XP and level progression.

Each completed attempt earns XP by score tier. Reaching the threshold
levels up once per attempt; the threshold then grows by 50%.
"""

from dataclasses import dataclass
from typing import Callable, Optional

from .logger import logger
from .models import Progress
from .text import round_half_up

LEVEL_GROWTH = 1.5


def xp_for_score(score: int) -> int:
    if score >= 90:
        return 20
    if score >= 70:
        return 10
    return 5


@dataclass(frozen=True)
class LevelUpdate:
    progress: Progress
    xp_gained: int
    leveled_up: bool


class ProgressionEngine:
    """Turns attempt scores into Progress transitions.

    `on_level_up` is called with the new level whenever a level is gained;
    errors raised by it are logged and otherwise ignored.
    """

    def __init__(self, on_level_up: Optional[Callable[[int], None]] = None):
        self.on_level_up = on_level_up

    def update(self, progress: Progress, score: int) -> LevelUpdate:
        xp_gained = xp_for_score(score)
        threshold = progress.xp_to_next_level
        new_xp = progress.xp + xp_gained

        level = progress.level
        next_threshold = threshold
        leveled_up = False
        # Single step: at most one level per attempt, even if new_xp clears the next threshold too
        if new_xp >= threshold:
            level += 1
            next_threshold = round_half_up(threshold * LEVEL_GROWTH)
            leveled_up = True

        updated = progress.evolve(
            level=level,
            xp=new_xp % threshold,
            xp_to_next_level=next_threshold,
            practiced=progress.practiced + 1,
        )
        logger.debug(
            f"Progress: +{xp_gained} XP → level {updated.level}, "
            f"{updated.xp}/{updated.xp_to_next_level} XP, practiced {updated.practiced}"
        )

        if leveled_up:
            logger.success(f"Level up! Now level {level}")
            self._notify(level)
        return LevelUpdate(progress=updated, xp_gained=xp_gained, leveled_up=leveled_up)

    def _notify(self, level: int) -> None:
        if self.on_level_up is None:
            return
        try:
            self.on_level_up(level)
        except Exception as e:
            logger.error(f"Level-up listener failed: {e}")
