"""
Time and pace formatting helpers.
"""

import math


def format_duration(total_seconds: float) -> str:
    """Format seconds as H:MM:SS, or M:SS when under an hour."""
    if not math.isfinite(total_seconds):
        total_seconds = 0
    seconds = max(0, int(round(total_seconds)))
    hours = seconds // 3600
    mins = (seconds % 3600) // 60
    secs = seconds % 60
    if hours:
        return f"{hours}:{mins:02d}:{secs:02d}"
    return f"{mins}:{secs:02d}"


def format_pace(total_seconds: float, distance_km: float) -> str:
    """
    Format the average pace of an effort as M:SS/km.

    The pace is rounded to whole seconds before it is split into
    minutes and seconds.
    """
    seconds_per_km = total_seconds / distance_km if distance_km > 0 else 0
    if not math.isfinite(seconds_per_km):
        seconds_per_km = 0
    rounded = max(0, int(round(seconds_per_km)))
    return f"{rounded // 60}:{rounded % 60:02d}/km"
