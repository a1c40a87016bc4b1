"""Aggregate statistics over an in-memory reading collection.

Pure functions; no I/O and no mutation of the input.
"""

from collections.abc import Sequence

from glucodiary.models.glucose import GLUCOSE_TYPES
from glucodiary.schemas.glucose import GlucoseReadingResponse, GlucoseStats, TypeStats


def _percentage(part: int, total: int) -> float:
    if total == 0:
        return 0.0
    return part / total * 100


def calculate_stats(readings: Sequence[GlucoseReadingResponse]) -> GlucoseStats:
    """Compute totals, value range and per-type breakdown.

    Every count and percentage is 0 for an empty collection.

    Args:
        readings: Readings to summarize

    Returns:
        GlucoseStats for the collection
    """
    total = len(readings)
    normal = sum(1 for r in readings if r.is_normal)
    values = [r.value for r in readings]

    by_type: dict = {}
    for glucose_type in GLUCOSE_TYPES:
        of_type = [r for r in readings if r.type == glucose_type]
        type_normal = sum(1 for r in of_type if r.is_normal)
        by_type[glucose_type] = TypeStats(
            total=len(of_type),
            normal=type_normal,
            abnormal=len(of_type) - type_normal,
            percentage_normal=_percentage(type_normal, len(of_type)),
        )

    return GlucoseStats(
        total_readings=total,
        normal_readings=normal,
        abnormal_readings=total - normal,
        percentage_in_target=_percentage(normal, total),
        average_value=sum(values) / total if total else 0.0,
        min_value=min(values) if values else 0.0,
        max_value=max(values) if values else 0.0,
        by_type=by_type,
    )
