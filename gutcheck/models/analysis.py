"""Stool image analysis and bowel insight models."""

from pydantic import BaseModel, Field


class StoolAnalysisResult(BaseModel):
    """Classification of a stool photo against the Bristol scale."""

    is_poop: bool
    bristol_type: int | None = None
    color: str | None = None
    texture: str | None = None
    hydration_level: str | None = None
    ai_insight: str | None = None
    entry_id: str | None = None


class BowelInsight(BaseModel):
    """Narrative analysis of a user's logged entries."""

    summary: str
    patterns: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    concerns: list[str] = Field(default_factory=list)
    positive_trends: list[str] = Field(default_factory=list)
