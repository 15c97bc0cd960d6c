"""Typed arguments and results for the assistant's tools.

Arguments arrive from the model as loosely-typed JSON and are validated into
one model per tool. Results are serialized back with camelCase keys, which is
what the model sees in the tool messages.
"""

import math
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class ToolName(StrEnum):
    """Names of the tools exposed to the model."""

    QUERY_USER_DATA = "queryUserData"
    SEARCH_PUBMED = "searchPubMed"
    GET_HEALTH_DATA = "getHealthData"
    ANALYZE_HEALTH_PATTERNS = "analyzeHealthPatterns"


AnalysisType = Literal["correlation", "trends", "triggers", "recommendations"]


def clamp_days(value: Any, minimum: int, maximum: int) -> int:
    """Coerce a model-supplied day count to an int inside [minimum, maximum]."""
    if isinstance(value, bool):
        raise ValueError("days must be a number")
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError as e:
            raise ValueError(f"days must be a number, got {value!r}") from e
    if not isinstance(value, int | float) or math.isnan(value):
        raise ValueError(f"days must be a number, got {value!r}")
    if math.isinf(value):
        return maximum if value > 0 else minimum
    return max(minimum, min(maximum, round(value)))


class QueryUserDataArgs(BaseModel):
    """Arguments for queryUserData."""

    days: int

    @field_validator("days", mode="before")
    @classmethod
    def validate_days(cls, v: Any) -> int:
        """Clamp into the advertised 1-90 range."""
        return clamp_days(v, 1, 90)


class SearchPubMedArgs(BaseModel):
    """Arguments for searchPubMed."""

    query: str = Field(..., min_length=1)


class GetHealthDataArgs(BaseModel):
    """Arguments for getHealthData."""

    days: int

    @field_validator("days", mode="before")
    @classmethod
    def validate_days(cls, v: Any) -> int:
        """Clamp into the advertised 1-30 range."""
        return clamp_days(v, 1, 30)


class AnalyzeHealthPatternsArgs(BaseModel):
    """Arguments for analyzeHealthPatterns."""

    model_config = ConfigDict(populate_by_name=True)

    bowel_data: dict[str, Any] = Field(..., alias="bowelData")
    health_data: dict[str, Any] = Field(..., alias="healthData")
    analysis_type: AnalysisType = Field(..., alias="analysisType")


class WireModel(BaseModel):
    """Base for tool results, dumped with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """Serialize into the JSON-compatible dict handed back to the model."""
        return self.model_dump(mode="json", by_alias=True)


# queryUserData
class EntryInsights(WireModel):
    total_entries: int = 0
    healthy_entries: int = 0
    consistency_score: int = 0
    avg_bristol_type: float = 0.0
    most_common_bristol_type: int | None = None
    recent_trend: list[int] | None = None
    note: str | None = None


class DateRange(WireModel):
    start: str
    end: str


class QueryUserDataResult(WireModel):
    summary: str
    entries: list[dict[str, Any]]
    insights: EntryInsights
    date_range: DateRange
    fallback: bool = False


# searchPubMed
class LiteratureArticle(WireModel):
    title: str
    authors: str
    journal: str
    year: int | None = None
    abstract: str = ""
    url: str
    key_findings: str = ""


class SearchPubMedResult(WireModel):
    query: str
    results: list[LiteratureArticle]
    total_results: int
    summary: str


# getHealthData
class SleepMetrics(WireModel):
    average_duration: float
    average_quality: float
    consistency: float


class HeartRateMetrics(WireModel):
    average_resting: int
    average_active: int
    variability: int


class ActivityMetrics(WireModel):
    average_steps: int
    average_calories: int
    exercise_minutes: int


class WeightMetrics(WireModel):
    current: float
    trend: Literal["increasing", "decreasing", "stable"]
    change: float


class HealthMetrics(WireModel):
    sleep: SleepMetrics
    heart_rate: HeartRateMetrics
    activity: ActivityMetrics
    weight: WeightMetrics


class GetHealthDataResult(WireModel):
    days: int
    data: HealthMetrics
    last_updated: str
    source: str
    note: str


# analyzeHealthPatterns
class BowelHealthSummary(WireModel):
    consistency_score: float = 0
    total_entries: int = 0
    avg_bristol_type: float = 0
    most_common_type: int | None = None


class HealthMetricSummary(WireModel):
    sleep_quality: float = 0
    sleep_duration: float = 0
    resting_heart_rate: float = 0
    daily_steps: float = 0
    weight: float = 0


class Correlation(WireModel):
    metric: str
    correlation: float
    description: str


class AnalyzeHealthPatternsResult(WireModel):
    analysis_type: AnalysisType
    bowel_health_summary: BowelHealthSummary
    health_metrics: HealthMetricSummary
    correlations: list[Correlation]
    insights: list[str]
    recommendations: list[str]
