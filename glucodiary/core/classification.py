"""Gestational diabetes glucose targets.

Fixed reference thresholds (mg/dL) deciding whether a reading is in
target. Fasting uses a strict bound (< 92); post-meal readings use an
inclusive bound (<= 140, one hour after the meal).
"""

from glucodiary.models.glucose import GlucoseType

# Accepted input range for any reading (mg/dL)
MIN_GLUCOSE_VALUE = 20
MAX_GLUCOSE_VALUE = 600

GLUCOSE_THRESHOLDS: dict[GlucoseType, float] = {
    GlucoseType.FASTING: 92,
    GlucoseType.POST_BREAKFAST: 140,
    GlucoseType.POST_LUNCH: 140,
    GlucoseType.POST_DINNER: 140,
}


def is_glucose_normal(glucose_type: GlucoseType, value: float) -> bool:
    """Classify a reading as within target for its meal-relative type.

    Args:
        glucose_type: Meal-relative timing of the reading
        value: Glucose value in mg/dL

    Returns:
        True if the reading is within target
    """
    threshold = GLUCOSE_THRESHOLDS[GlucoseType(glucose_type)]
    if glucose_type == GlucoseType.FASTING:
        return value < threshold
    return value <= threshold
