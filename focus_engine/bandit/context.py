"""
Context Key Encoder — canonicalises a situational context into the string key
under which the bandit keeps its statistics.

Key layout:
    focus family   "<task>|<energy>|<time_of_day>"
    break family   "<task>|<energy>|<time_of_day>-break"

Energy level and time of day are closed enums sitting at fixed positions from
the right, so a task name containing "|" or "-break" cannot collide with
another context.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Union

from ..errors import InvalidContext

DEFAULT_TASK = "default"
BREAK_SUFFIX = "-break"


class EnergyLevel(str, Enum):
    LOW = "low"
    MID = "mid"
    HIGH = "high"
    UNSET = "unset"


class TimeOfDay(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    NIGHT = "night"


class Family(str, Enum):
    FOCUS = "focus"
    BREAK = "break"


def normalise_task(task_type: Optional[str]) -> str:
    if task_type is not None and not isinstance(task_type, str):
        raise InvalidContext(f"task_type must be a string, got {type(task_type).__name__}")
    task = (task_type or "").strip().lower()
    return task or DEFAULT_TASK


def _parse(enum_cls, value, field_name: str):
    if isinstance(value, enum_cls):
        return value
    if value is None or not str(value).strip():
        raise InvalidContext(f"missing required context field: {field_name}")
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise InvalidContext(
            f"unknown {field_name} {value!r} (expected one of: {allowed})"
        ) from None


@dataclass(frozen=True)
class Context:
    """
    The situational triple a recommendation is conditioned on.

    Fields are normalised on construction, so two contexts compare equal iff
    they describe the same decision point.
    """
    task_type: str
    energy_level: EnergyLevel
    time_of_day: TimeOfDay

    def __post_init__(self):
        object.__setattr__(self, "task_type", normalise_task(self.task_type))
        object.__setattr__(self, "energy_level", _parse(EnergyLevel, self.energy_level, "energy_level"))
        object.__setattr__(self, "time_of_day", _parse(TimeOfDay, self.time_of_day, "time_of_day"))

    @classmethod
    def create(
        cls,
        task_type: Optional[str],
        energy_level: Union[str, EnergyLevel, None],
        time_of_day: Union[str, TimeOfDay, None],
    ) -> "Context":
        """Build a context from raw (possibly user-typed) values."""
        return cls(task_type or "", energy_level, time_of_day)  # type: ignore[arg-type]


def encode(context: Context, family: Union[Family, str] = Family.FOCUS) -> str:
    family = Family(family)
    key = f"{context.task_type}|{context.energy_level.value}|{context.time_of_day.value}"
    return key + BREAK_SUFFIX if family is Family.BREAK else key


def detect_time_of_day(when: Optional[datetime] = None) -> TimeOfDay:
    hour = (when or datetime.now()).hour
    if 5 <= hour < 12:
        return TimeOfDay.MORNING
    if 12 <= hour < 17:
        return TimeOfDay.AFTERNOON
    if 17 <= hour < 21:
        return TimeOfDay.EVENING
    return TimeOfDay.NIGHT
