"""Row-store records: logged entries, user profiles and health samples."""

from datetime import UTC, date, datetime
from typing import Literal

from pydantic import BaseModel, Field

HEALTHY_BRISTOL_TYPES = frozenset({3, 4})


class Entry(BaseModel):
    """A single logged bowel movement observation."""

    id: str | None = None
    user_id: str
    entry_date: date
    bristol_type: int | None = Field(default=None, ge=1, le=7)
    color: str | None = None
    texture: str | None = None
    hydration_level: str | None = None
    notes: str | None = None
    ai_insight: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    class Config:
        extra = "ignore"  # Row-store tables carry columns we never read

    @property
    def is_healthy(self) -> bool:
        """Whether the Bristol type falls in the typical 3-4 range."""
        return self.bristol_type in HEALTHY_BRISTOL_TYPES


class UserProfile(BaseModel):
    """Self-reported demographic and lifestyle information."""

    id: str
    name: str | None = None
    age: int | None = None
    diet_type: str | None = None
    hydration_glasses: int | None = None
    restroom_frequency: str | None = None
    has_conditions: bool = False
    conditions_description: str | None = None

    class Config:
        extra = "ignore"


HealthSampleKind = Literal["sleep", "heart_rate", "steps", "active_energy", "body_mass", "hrv"]


class HealthSample(BaseModel):
    """A single health sensor reading exported from the user's device."""

    user_id: str
    kind: HealthSampleKind
    start: datetime
    end: datetime
    value: float = 0.0

    class Config:
        extra = "ignore"

    @property
    def duration_hours(self) -> float:
        """Length of the sample window in hours."""
        return (self.end - self.start).total_seconds() / 3600
