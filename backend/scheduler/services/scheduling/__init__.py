# backend/scheduler/services/scheduling/__init__.py
"""
Appointment scheduling engine.

Suggestion pipeline: intersection -> conflicts -> scorer
Series lifecycle:    series (generation) -> mutations (edits/deletes)

The facade (`engine.SchedulingEngine`) and the SQLAlchemy record store
(`store.AppointmentStore`) are imported from their modules directly.
"""

from .config import SchedulingConfig, get_scheduling_config
from .intersection import CandidateSlot, WeeklyBlock, compute_candidate_slots
from .conflicts import filter_conflicts
from .scorer import RankedSlot, rank_slots
from .stats import WeeklyStats, calculate_weekly_stats
from .errors import (
    SchedulingError,
    ValidationError,
    NotFoundError,
    UnlinkedSeriesError,
    ConflictError,
    PartialBatchFailure,
)

__all__ = [
    "SchedulingConfig",
    "get_scheduling_config",
    "CandidateSlot",
    "WeeklyBlock",
    "compute_candidate_slots",
    "filter_conflicts",
    "RankedSlot",
    "rank_slots",
    "WeeklyStats",
    "calculate_weekly_stats",
    "SchedulingError",
    "ValidationError",
    "NotFoundError",
    "UnlinkedSeriesError",
    "ConflictError",
    "PartialBatchFailure",
]
