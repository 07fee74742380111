"""
Streak engine.

Pure date arithmetic over a user's entry dates. Nothing here touches the
database or reads the clock: callers pass the qualifying dates and "today".
"""
from datetime import date, timedelta
from typing import Iterable, List, Set

DEFAULT_MAX_LOOKBACK_DAYS = 365


def current_streak(
    qualifying_dates: Iterable[date],
    today: date,
    max_lookback_days: int = DEFAULT_MAX_LOOKBACK_DAYS,
) -> int:
    """
    Count consecutive days with a qualifying entry, walking back from today.

    The walk starts at ``today`` itself, so a user who has not logged today
    has a streak of 0 even if yesterday closed a long run.
    """
    logged: Set[date] = set(qualifying_dates)
    if not logged:
        return 0

    streak = 0
    check_date = today
    for _ in range(max_lookback_days):
        if check_date not in logged:
            break
        streak += 1
        check_date -= timedelta(days=1)
    return streak


def longest_streak(qualifying_dates: Iterable[date]) -> int:
    """Longest run of consecutive calendar days, 0 when there are no dates."""
    ordered = sorted(set(qualifying_dates))
    if not ordered:
        return 0

    longest = 1
    running = 1
    for previous, current in zip(ordered, ordered[1:]):
        if (current - previous).days == 1:
            running += 1
            longest = max(longest, running)
        else:
            running = 1
    return longest


def missed_days(signup_date: date, today: date, entry_dates: Iterable[date]) -> List[date]:
    """
    Days from signup through yesterday with no entry row at all.

    Skipped entries count as resolved. Today is never reported. Oldest first.
    """
    resolved: Set[date] = set(entry_dates)
    missed = []
    check_date = signup_date
    while check_date < today:
        if check_date not in resolved:
            missed.append(check_date)
        check_date += timedelta(days=1)
    return missed
