"""Channel level value types."""

from __future__ import annotations

from collections.abc import Sequence

from ledpanel._constants import NUM_CHANNELS
from ledpanel.models._base import ChannelIndex, Level, LevelTriple, PanelBaseModel


class ChannelLevel(PanelBaseModel):
    """One channel's intensity."""

    index: ChannelIndex
    level: Level


class LevelVector(PanelBaseModel):
    """Fixed-size, immutable vector of the three channel levels.

    Equality is by value, so ``previous == current`` comparisons are
    meaningful across mutation boundaries. Mutation helpers return a new
    vector and never touch the receiver.
    """

    levels: LevelTriple = (0, 0, 0)

    @classmethod
    def of(cls, levels: Sequence[int]) -> LevelVector:
        """Build a vector from any 3-length sequence of ints."""
        return cls(levels=tuple(levels))

    def __getitem__(self, index: int) -> int:
        return self.levels[index]

    def __len__(self) -> int:
        return NUM_CHANNELS

    def with_level(self, index: int, level: int) -> LevelVector:
        """Return a copy with channel *index* set to *level*."""
        values = list(self.levels)
        values[index] = level
        return LevelVector.of(values)

    def as_list(self) -> list[int]:
        return list(self.levels)
