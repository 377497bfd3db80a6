"""Prompt templates for insight generation"""
from wellness_engine.models.aggregate import SummaryStats

PERIOD_LABELS = {
    "day": "today",
    "week": "last week",
    "month": "last month",
}

INSIGHT_PROMPT = """User: {user_label} (date range: {range_label})
Weekly summary:
- Steps total: {steps:.0f}
- Calories in: {calories_in:.0f} kcal
- Calories out: {calories_out:.0f} kcal
- Net calories: {net_calories:.0f} kcal
- Total sleep: {sleep:.1f} hours
- XP earned: {xp:.0f}
Today:
- Steps: {today_steps:.0f}
- Calories in/out: {today_in:.0f}/{today_out:.0f} kcal
- Sleep: {today_sleep:.1f} hours

Task: Generate a short and actionable analysis. Output must contain:
1) Three brief insights (single sentence each) about the user's {period} trend.
2) Three practical recommendations the user can follow next {period} (each 6-10 words max).
Return JSON object: {{ "insights": ["...","...","..."], "recommendations": ["...","...","..."] }}
Be concise and return valid JSON only."""


def build_insight_prompt(user_label: str, period: str, summary: SummaryStats) -> str:
    """Render the insight prompt from summary statistics"""
    week = summary.week
    day = summary.day
    return INSIGHT_PROMPT.format(
        user_label=user_label,
        range_label=PERIOD_LABELS.get(period, period),
        period=period,
        steps=week.steps_total,
        calories_in=week.calories_in_total,
        calories_out=week.calories_out_total,
        net_calories=week.net_calories_total,
        sleep=week.sleep_total,
        xp=week.xp_total,
        today_steps=day.steps,
        today_in=day.calories_in,
        today_out=day.calories_out,
        today_sleep=day.sleep_hours,
    )
