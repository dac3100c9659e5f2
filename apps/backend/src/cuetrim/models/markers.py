"""Timer marker data models."""

from enum import Enum

from pydantic import BaseModel, Field


class MarkerName(str, Enum):
    """Recognised timer marker names, in on-air order."""

    START = "Start"
    INTRO = "Intro"
    HOOK_START = "HookStart"
    HOOK_END = "HookEnd"
    EOM = "EOM"
    END = "End"


class TimerMarkerSet(BaseModel):
    """Named millisecond offsets from the start of the audio file.

    A marker missing from ``offsets`` is absent. Absent markers read as 0
    through :meth:`get`, which is how downstream arithmetic treats them.
    """

    offsets: dict[MarkerName, int] = Field(
        default_factory=dict, description="Marker offsets in milliseconds"
    )

    @classmethod
    def of(cls, **values: int | None) -> "TimerMarkerSet":
        """Build a set from keyword arguments named after markers.

        ``TimerMarkerSet.of(Start=500, EOM=30000)``; ``None`` values are
        left absent.
        """
        offsets = {
            MarkerName(name): int(value)
            for name, value in values.items()
            if value is not None
        }
        return cls(offsets=offsets)

    def __getitem__(self, name: MarkerName | str) -> int | None:
        return self.offsets.get(MarkerName(name))

    def __contains__(self, name: object) -> bool:
        try:
            return MarkerName(name) in self.offsets
        except ValueError:
            return False

    def get(self, name: MarkerName | str) -> int:
        """Return the offset for ``name``, 0 when absent."""
        return self.offsets.get(MarkerName(name), 0)

    def is_set(self, name: MarkerName | str) -> bool:
        """Check if ``name`` carries a non-zero offset."""
        return self.get(name) != 0

    @property
    def cue_offset_ms(self) -> int:
        """Offset at which meaningful audio begins (0 = no cue point)."""
        return self.get(MarkerName.START)

    def with_offsets(self, updates: dict[MarkerName, int]) -> "TimerMarkerSet":
        """Return a copy with ``updates`` applied."""
        merged = dict(self.offsets)
        merged.update(updates)
        return TimerMarkerSet(offsets=merged)

    def as_dict(self) -> dict[str, int]:
        """Return present markers keyed by name, in on-air order."""
        return {
            name.value: self.offsets[name]
            for name in MarkerName
            if name in self.offsets
        }
