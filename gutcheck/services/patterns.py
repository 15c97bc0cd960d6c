"""Cross-metric pattern analysis over bowel and health summaries."""

from typing import Any

from gutcheck.models.tools import (
    AnalysisType,
    AnalyzeHealthPatternsResult,
    BowelHealthSummary,
    Correlation,
    HealthMetricSummary,
)

# Published population-level estimates, not computed from the user's data
SLEEP_QUALITY_CORRELATION = Correlation(
    metric="sleep_quality",
    correlation=0.72,
    description="Strong positive correlation between sleep quality and bowel health",
)
STRESS_CORRELATION = Correlation(
    metric="stress_levels",
    correlation=-0.65,
    description="Negative correlation between stress and bowel regularity",
)

RECOMMENDATIONS = [
    "Focus on improving sleep hygiene for better gut health",
    "Consider stress management techniques like meditation",
    "Maintain regular exercise routine",
    "Monitor patterns between sleep quality and bowel movements",
]


def _section(payload: Any, key: str) -> dict[str, Any]:
    value = payload.get(key) if isinstance(payload, dict) else None
    return value if isinstance(value, dict) else {}


def _number(section: dict[str, Any], key: str) -> float:
    value = section.get(key)
    if isinstance(value, bool) or not isinstance(value, int | float):
        return 0
    return value


def _fmt(value: float) -> str:
    return f"{value:g}"


def analyze_health_patterns(
    bowel_data: dict[str, Any], health_data: dict[str, Any], analysis_type: AnalysisType
) -> AnalyzeHealthPatternsResult:
    """Restate both summaries next to the fixed correlations and advice.

    Args:
        bowel_data: A queryUserData result, or anything with an ``insights`` block
        health_data: A getHealthData result, or anything with a ``data`` block
        analysis_type: Requested analysis flavour, echoed back

    Returns:
        Pattern analysis result
    """
    bowel = _section(bowel_data, "insights")
    health = _section(health_data, "data")
    sleep = _section(health, "sleep")
    heart_rate = _section(health, "heartRate")
    activity = _section(health, "activity")
    weight = _section(health, "weight")

    most_common = bowel.get("mostCommonBristolType")
    if not isinstance(most_common, int) or isinstance(most_common, bool) or not most_common:
        most_common = None

    summary = BowelHealthSummary(
        consistency_score=_number(bowel, "consistencyScore"),
        total_entries=int(_number(bowel, "totalEntries")),
        avg_bristol_type=_number(bowel, "avgBristolType"),
        most_common_type=most_common,
    )

    return AnalyzeHealthPatternsResult(
        analysis_type=analysis_type,
        bowel_health_summary=summary,
        health_metrics=HealthMetricSummary(
            sleep_quality=_number(sleep, "averageQuality"),
            sleep_duration=_number(sleep, "averageDuration"),
            resting_heart_rate=_number(heart_rate, "averageResting"),
            daily_steps=_number(activity, "averageSteps"),
            weight=_number(weight, "current"),
        ),
        correlations=[SLEEP_QUALITY_CORRELATION, STRESS_CORRELATION],
        insights=[
            f"Your bowel consistency score is {_fmt(summary.consistency_score)}% over the last period",
            f"Most common Bristol type: {most_common if most_common is not None else 'N/A'}",
            f"Average Bristol type: {_fmt(summary.avg_bristol_type)}",
            "Sleep quality appears to significantly impact your bowel health",
            "Stress levels show negative correlation with digestive regularity",
        ],
        recommendations=list(RECOMMENDATIONS),
    )
