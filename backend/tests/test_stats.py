from datetime import date
from types import SimpleNamespace

from scheduler.services.scheduling.intersection import WeeklyBlock
from scheduler.services.scheduling.stats import calculate_weekly_stats, week_bounds

WEDNESDAY = date(2024, 6, 5)


def apt(day, duration=60, status="confirmed", start="10:00", end="11:00"):
    return SimpleNamespace(
        date=day, duration_minutes=duration, status=status, start_time=start, end_time=end
    )


def hours():
    # 2 x 5h = 600 working minutes a week
    return [
        WeeklyBlock(owner_id=1, day_of_week=0, start_time="09:00", end_time="14:00"),
        WeeklyBlock(owner_id=1, day_of_week=2, start_time="09:00", end_time="14:00"),
    ]


def test_week_bounds_monday_to_sunday():
    assert week_bounds(WEDNESDAY) == (date(2024, 6, 3), date(2024, 6, 9))


def test_occupancy_counts_active_appointments_in_week():
    appointments = [
        apt(date(2024, 6, 3), 60),
        apt(date(2024, 6, 5), 90),
        apt(date(2024, 6, 9), 30),
        apt(date(2024, 6, 5), 60, status="cancelled"),
        apt(date(2024, 6, 10), 60),
    ]

    stats = calculate_weekly_stats(appointments, hours(), WEDNESDAY)

    assert stats.week_start == date(2024, 6, 3)
    assert stats.occupancy == 30
    assert stats.availability == 70


def test_duration_falls_back_to_times():
    appointments = [apt(date(2024, 6, 3), duration=None, start="10:00", end="12:00")]
    stats = calculate_weekly_stats(appointments, hours(), WEDNESDAY)
    assert stats.occupancy == 20


def test_occupancy_clamped():
    appointments = [apt(date(2024, 6, 3), 240) for _ in range(5)]
    stats = calculate_weekly_stats(appointments, hours(), WEDNESDAY)
    assert stats.occupancy == 100
    assert stats.availability == 0


def test_no_working_hours():
    stats = calculate_weekly_stats([apt(WEDNESDAY)], [], WEDNESDAY)
    assert (stats.availability, stats.occupancy) == (0, 0)
