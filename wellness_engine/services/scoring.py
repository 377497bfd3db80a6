"""
Per-day wellness scores (0-100) used by the chart series.

All functions are pure: they read only the records / totals passed in.
"""

import math
from collections.abc import Sequence

from wellness_engine.models.record import NutritionMetrics, WellnessRecord

# Target share of calories from protein / carbs / fat
MACRO_TARGETS = {"protein": 0.30, "carbs": 0.40, "fat": 0.30}
KCAL_PER_GRAM = {"protein": 4, "carbs": 4, "fat": 9}


def _meals(records: Sequence[WellnessRecord]) -> list[WellnessRecord]:
    return [r for r in records if r.type == "meal"]


def _has_nutrition(record: WellnessRecord) -> bool:
    return record.metrics.nutrition is not None


def macro_balance(nutrition: NutritionMetrics) -> float:
    """
    100 when calories split exactly 30/40/30 across protein/carbs/fat,
    minus the total absolute deviation in percentage points.
    """
    kcal = {name: getattr(nutrition, name) * KCAL_PER_GRAM[name] for name in MACRO_TARGETS}
    total = sum(kcal.values())
    if total <= 0:
        return 0.0
    deviation = sum(abs(kcal[name] / total - target) for name, target in MACRO_TARGETS.items())
    return max(0.0, min(100.0, 100.0 - deviation * 100.0))


def nutrition_balance(records: Sequence[WellnessRecord]) -> float:
    """Mean macro balance across meals that carry nutrition data"""
    scores = [macro_balance(r.metrics.nutrition) for r in _meals(records) if _has_nutrition(r)]
    if not scores:
        return 0.0
    return sum(scores) / len(scores)


def nutrition_score(records: Sequence[WellnessRecord]) -> float:
    """
    Meal frequency (30%), calorie adequacy (30 points for 1200-3000 kcal)
    and nutrition-data coverage (40%).
    """
    meals = _meals(records)
    if not meals:
        return 0.0

    score = min(100.0, len(meals) / 3 * 100) * 0.3

    total_calories = sum(m.metrics.calories or 0 for m in meals)
    if 1200 <= total_calories <= 3000:
        score += 30
    elif total_calories > 0:
        ratio = min(total_calories / 1200, 3000 / total_calories)
        score += min(30.0, ratio * 30)

    coverage = sum(10 for m in meals if _has_nutrition(m)) / len(meals)
    score += coverage * 0.4

    return min(100.0, score)


def sleep_score(records: Sequence[WellnessRecord]) -> float:
    """Duration (70 points at 7-9 h, proportional outside) plus quality (30%)"""
    sleeps = [r for r in records if r.type == "sleep"]
    if not sleeps:
        return 0.0

    avg_hours = sum(s.metrics.duration or 0 for s in sleeps) / len(sleeps) / 60

    score = 0.0
    if 7 <= avg_hours <= 9:
        score += 70
    elif 5 < avg_hours < 7:
        score += (avg_hours - 5) * 17.5
    elif 9 < avg_hours < 11:
        score += (11 - avg_hours) * 17.5

    avg_quality = sum(s.metrics.quality or 0 for s in sleeps) / len(sleeps)
    score += avg_quality * 30

    return min(100.0, score)


def recovery_score(sleep_hours: float, activity_minutes: float) -> float:
    """Balance between the day's sleep and its activity load"""
    score = 0.0

    if 7 <= sleep_hours <= 9:
        score += 60
    elif 5 < sleep_hours < 7:
        score += (sleep_hours - 5) * 15
    elif 9 < sleep_hours < 11:
        score += (11 - sleep_hours) * 15

    if activity_minutes > 0:
        # More active days call for slightly more sleep (2 h caps the load)
        activity_level = min(1.0, activity_minutes / 120)
        optimal_low = 7 + activity_level * 0.5
        optimal_high = 9 + activity_level * 0.5
        if optimal_low <= sleep_hours <= optimal_high:
            score += 40
        else:
            score += min(40.0, sleep_hours / optimal_low * 40)
    else:
        score += 10

    return min(100.0, score)


def meal_quality_trend(records: Sequence[WellnessRecord]) -> float:
    """Category variety, nutrition coverage and how evenly calories are spread"""
    meals = _meals(records)
    if not meals:
        return 0.0

    score = len({m.category for m in meals}) / 5 * 40
    score += sum(20 for m in meals if _has_nutrition(m)) / len(meals)

    if len(meals) > 1:
        calories = [m.metrics.calories or 0 for m in meals]
        mean = sum(calories) / len(calories)
        std_dev = math.sqrt(sum((c - mean) ** 2 for c in calories) / len(calories))
        variation = std_dev / mean if mean > 0 else 1
        score += max(0.0, (1 - variation) * 40)
    else:
        score *= 0.5

    return min(100.0, score)


def slope(values: Sequence[float]) -> float:
    """Least-squares slope of values against their index; 0 for < 2 points"""
    n = len(values)
    if n < 2:
        return 0.0
    mean_x = (n - 1) / 2
    mean_y = sum(values) / n
    numerator = sum((i - mean_x) * (y - mean_y) for i, y in enumerate(values))
    denominator = sum((i - mean_x) ** 2 for i in range(n))
    return numerator / denominator
