# backend/scheduler/services/scheduling/config.py
"""
Tuning knobs for slot suggestion and series generation.
"""

from dataclasses import dataclass
from functools import lru_cache


@dataclass(frozen=True)
class SchedulingConfig:
    """
    Configuration for the suggestion engine.

    Attributes:
        horizon_days: How many days ahead (starting today) to look for slots
        max_suggestions: Cap of the ranked list
        optimal_threshold: Score above which a slot is flagged "optimal"
        adjacent_bonus: Slot touches another appointment of the therapist
        near_bonus: Slot is within one hour of another appointment
        pattern_bonus: Same client/therapist/time found 14*k days earlier
        proximity_window_days: Sooner dates score up to this many points
        core_hours_bonus: Slot starts within core_hours
        core_hours: [start, end) hours preferred for sessions
        pattern_interval_days: Rhythm detected by the pattern bonus
    """
    horizon_days: int = 14
    max_suggestions: int = 10
    optimal_threshold: int = 60

    adjacent_bonus: int = 30
    near_bonus: int = 20
    pattern_bonus: int = 25
    proximity_window_days: int = 15
    core_hours_bonus: int = 10
    core_hours: tuple[int, int] = (10, 18)
    pattern_interval_days: int = 14

    def __post_init__(self):
        """Validate configuration."""
        if self.horizon_days <= 0:
            raise ValueError(f"horizon_days must be positive, got {self.horizon_days}")
        if self.max_suggestions <= 0:
            raise ValueError(f"max_suggestions must be positive, got {self.max_suggestions}")
        start, end = self.core_hours
        if not 0 <= start < end <= 24:
            raise ValueError(f"core_hours must satisfy 0 <= start < end <= 24, got {self.core_hours}")
        if self.pattern_interval_days <= 0:
            raise ValueError("pattern_interval_days must be positive")

    def is_core_hour(self, hour: int) -> bool:
        start, end = self.core_hours
        return start <= hour < end


@lru_cache
def get_scheduling_config() -> SchedulingConfig:
    """Get scheduling configuration (singleton)."""
    return SchedulingConfig()
