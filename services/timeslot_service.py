"""
Time slot service: display times and meeting timer

Event layout:
- 7 rounds, one every 15 minutes starting at 09:00
- each meeting lasts 8 minutes
"""
from datetime import datetime, timezone
from typing import Optional

TIME_SLOTS = ["09:00", "09:15", "09:30", "09:45", "10:00", "10:15", "10:30"]
PLACEHOLDER_TIME = "À venir"
MEETING_DURATION_SECONDS = 480


def get_scheduled_time(round_number: int) -> str:
    """
    Display time for a round.

    Args:
        round_number: 1-based round number

    Returns:
        the slot label, or the placeholder when the round has no slot

    Examples:
        get_scheduled_time(1) -> "09:00"
        get_scheduled_time(7) -> "10:30"
        get_scheduled_time(8) -> "À venir"
    """
    if 1 <= round_number <= len(TIME_SLOTS):
        return TIME_SLOTS[round_number - 1]
    return PLACEHOLDER_TIME


def seconds_remaining(
    actual_start_time: Optional[datetime],
    now: Optional[datetime] = None,
    duration_seconds: int = MEETING_DURATION_SECONDS,
) -> int:
    """
    Seconds left on a meeting timer, never negative.

    A meeting that has not started yet reports the full duration.
    """
    if actual_start_time is None:
        return duration_seconds

    now = now or datetime.now(timezone.utc)
    if actual_start_time.tzinfo is None:
        # SQLite hands back naive datetimes
        actual_start_time = actual_start_time.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    elapsed = (now - actual_start_time).total_seconds()
    return max(0, int(duration_seconds - elapsed))


def is_expired(
    actual_start_time: Optional[datetime],
    now: Optional[datetime] = None,
    duration_seconds: int = MEETING_DURATION_SECONDS,
) -> bool:
    """True once a started meeting has used up its duration."""
    if actual_start_time is None:
        return False
    return seconds_remaining(actual_start_time, now, duration_seconds) == 0
