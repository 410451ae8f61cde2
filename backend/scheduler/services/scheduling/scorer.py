# backend/scheduler/services/scheduling/scorer.py
"""
Suggestion scorer and ranker.

Additive heuristics on conflict-free candidates:
- grouping: slot touches (or is one hour from) another appointment of
  the therapist that day, keeping the therapist's day compact
- pattern: the same client/therapist/hour occurred 14*k days earlier
- proximity: sooner dates score higher, decaying to 0
- core hours: mild preference for daytime slots
"""

from dataclasses import dataclass
from datetime import date
from typing import Iterable

from .config import SchedulingConfig, get_scheduling_config
from .conflicts import index_by_date, is_active
from .intersection import CandidateSlot
from .time_utils import hour_of, time_str_to_minutes

REASON_ADJACENT = "Junto a otra cita del terapeuta"
REASON_NEAR = "A una hora de otra cita del terapeuta"
REASON_PATTERN = "Continúa el ritmo quincenal del cliente"
REASON_PROXIMITY = "Fecha próxima"
REASON_CORE_HOURS = "Horario central"


@dataclass(frozen=True)
class RankedSlot:
    slot: CandidateSlot
    score: int
    reasons: tuple[str, ...]
    is_optimal: bool

    @property
    def date(self) -> date:
        return self.slot.date

    @property
    def start_time(self) -> str:
        return self.slot.start_time

    @property
    def end_time(self) -> str:
        return self.slot.end_time


def grouping_gap_minutes(slot: CandidateSlot, day_appointments: Iterable) -> int | None:
    """Smallest non-negative gap between the slot and an appointment, or None."""
    slot_start = slot.start_hour * 60
    slot_end = slot_start + 60
    best = None
    for apt in day_appointments:
        apt_start = time_str_to_minutes(apt.start_time)
        apt_end = time_str_to_minutes(apt.end_time)
        gap = max(apt_start - slot_end, slot_start - apt_end)
        if gap < 0:
            continue
        if best is None or gap < best:
            best = gap
    return best


def has_pattern(slot: CandidateSlot, history: Iterable, interval_days: int) -> bool:
    for apt in history:
        if not is_active(apt):
            continue
        days_back = (slot.date - apt.date).days
        if days_back <= 0 or days_back % interval_days:
            continue
        if hour_of(apt.start_time) == slot.start_hour:
            return True
    return False


def score_slot(
    slot: CandidateSlot,
    today: date,
    day_appointments: Iterable,
    history: Iterable,
    config: SchedulingConfig,
) -> tuple[int, list[str]]:
    """Score one candidate. Returns (score, reasons)."""
    score = 0
    reasons: list[str] = []

    gap = grouping_gap_minutes(slot, day_appointments)
    if gap == 0:
        score += config.adjacent_bonus
        reasons.append(REASON_ADJACENT)
    elif gap is not None and gap <= 60:
        score += config.near_bonus
        reasons.append(REASON_NEAR)

    if has_pattern(slot, history, config.pattern_interval_days):
        score += config.pattern_bonus
        reasons.append(REASON_PATTERN)

    proximity = max(0, config.proximity_window_days - (slot.date - today).days)
    if proximity:
        score += proximity
        reasons.append(REASON_PROXIMITY)

    if config.is_core_hour(slot.start_hour):
        score += config.core_hours_bonus
        reasons.append(REASON_CORE_HOURS)

    return score, reasons


def rank_slots(
    candidates: list[CandidateSlot],
    today: date,
    therapist_appointments: Iterable,
    client_history: Iterable = (),
    config: SchedulingConfig | None = None,
    exclude_appointment_id: int | None = None,
    limit: int | None = None,
) -> list[RankedSlot]:
    """
    Score candidates and return the best ones, highest score first.

    Ties keep chronological order. `limit` defaults to config.max_suggestions.
    """
    config = config or get_scheduling_config()
    limit = config.max_suggestions if limit is None else limit

    by_date = index_by_date(therapist_appointments, exclude_appointment_id)
    history = [
        apt for apt in client_history
        if exclude_appointment_id is None or apt.id != exclude_appointment_id
    ]

    ranked = []
    for slot in sorted(set(candidates)):
        score, reasons = score_slot(slot, today, by_date.get(slot.date, ()), history, config)
        ranked.append(RankedSlot(
            slot=slot,
            score=score,
            reasons=tuple(reasons),
            is_optimal=score > config.optimal_threshold,
        ))

    ranked.sort(key=lambda r: r.score, reverse=True)
    return ranked[:limit]
