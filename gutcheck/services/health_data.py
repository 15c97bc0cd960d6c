"""Health metrics providers: synthetic data and aggregated device samples."""

import random
from collections.abc import Callable, Sequence
from datetime import UTC, datetime, timedelta
from typing import Protocol

from gutcheck.clients.postgrest import PostgrestClient
from gutcheck.models.entries import HealthSample, HealthSampleKind
from gutcheck.models.tools import ActivityMetrics, HealthMetrics, HeartRateMetrics, SleepMetrics, WeightMetrics
from gutcheck.services.statistics import round_half_up
from gutcheck.utils.logging import get_logger

logger = get_logger(__name__)


class HealthDataProvider(Protocol):
    """Interface for sources of sleep, heart rate, activity and weight metrics."""

    source: str

    async def get_health_data(self, user_id: str, days: int) -> HealthMetrics:
        """Get averaged health metrics for the last ``days`` days.

        Args:
            user_id: The user's unique identifier
            days: Size of the window ending now

        Returns:
            Aggregated health metrics
        """
        ...


class MockHealthDataProvider:
    """Synthetic metrics in plausible ranges.

    No sensor integration is wired up, so every call draws fresh values.
    Passing a seed makes every call return the same values, which tests rely on.
    """

    source = "Mock"

    def __init__(self, seed: int | None = None):
        """Initialize the provider with an optional fixed seed."""
        self.seed = seed

    async def get_health_data(self, user_id: str, days: int) -> HealthMetrics:
        """Generate a synthetic metrics snapshot."""
        rng = random.Random(self.seed)

        base_sleep = 7.0 + rng.random() * 2
        base_steps = 6000 + rng.random() * 6000
        base_weight = 65 + rng.random() * 20

        if rng.random() > 0.7:
            trend = "increasing" if rng.random() > 0.5 else "decreasing"
        else:
            trend = "stable"

        return HealthMetrics(
            sleep=SleepMetrics(
                average_duration=round_half_up(base_sleep, 1),
                average_quality=round_half_up(6 + rng.random() * 3, 1),
                consistency=round_half_up(0.6 + rng.random() * 0.3, 2),
            ),
            heart_rate=HeartRateMetrics(
                average_resting=int(round_half_up(60 + rng.random() * 20)),
                average_active=int(round_half_up(100 + rng.random() * 40)),
                variability=int(round_half_up(30 + rng.random() * 30)),
            ),
            activity=ActivityMetrics(
                average_steps=int(round_half_up(base_steps)),
                average_calories=int(round_half_up(1800 + rng.random() * 800)),
                exercise_minutes=int(round_half_up(20 + rng.random() * 60)),
            ),
            weight=WeightMetrics(
                current=round_half_up(base_weight, 1),
                trend=trend,
                change=round_half_up((rng.random() - 0.5) * 2, 1),
            ),
        )


class HealthSampleSource(Protocol):
    """Interface for stored device health samples."""

    async def fetch_samples(
        self, user_id: str, kind: HealthSampleKind, start: datetime, end: datetime
    ) -> list[HealthSample]:
        """Get samples of one kind recorded within [start, end], oldest first."""
        ...


class InMemoryHealthSampleSource:
    """In-memory sample store for tests and local development."""

    def __init__(self, samples: list[HealthSample] | None = None):
        """Initialize with optional seed samples."""
        self.samples: list[HealthSample] = list(samples or [])

    async def fetch_samples(
        self, user_id: str, kind: HealthSampleKind, start: datetime, end: datetime
    ) -> list[HealthSample]:
        """Get samples of one kind recorded within [start, end], oldest first."""
        matching = [
            s for s in self.samples if s.user_id == user_id and s.kind == kind and s.start >= start and s.start <= end
        ]
        return sorted(matching, key=lambda s: s.start)


class PostgrestHealthSampleSource:
    """Samples stored in the ``health_samples`` table."""

    TABLE = "health_samples"

    def __init__(self, client: PostgrestClient):
        """Initialize with a PostgREST client."""
        self.client = client

    async def fetch_samples(
        self, user_id: str, kind: HealthSampleKind, start: datetime, end: datetime
    ) -> list[HealthSample]:
        """Get samples of one kind recorded within [start, end], oldest first."""
        rows = await self.client.select(
            self.TABLE,
            filters=[
                ("user_id", "eq", user_id),
                ("kind", "eq", kind),
                ("start", "gte", start.isoformat()),
                ("start", "lte", end.isoformat()),
            ],
            order="start.asc",
        )
        return [HealthSample.model_validate(row) for row in rows]


def _mean(samples: Sequence[HealthSample]) -> float:
    return sum(s.value for s in samples) / len(samples)


class SampleHealthDataProvider:
    """Metrics aggregated from stored device samples.

    Each metric falls back to a neutral default when no samples exist for it.
    """

    source = "Device samples"

    IDEAL_SLEEP_NIGHTS = 7

    def __init__(self, samples: HealthSampleSource, clock: Callable[[], datetime] | None = None):
        """Initialize with a sample source and an optional clock returning aware datetimes."""
        self.samples = samples
        self._clock = clock or (lambda: datetime.now(UTC))

    async def get_health_data(self, user_id: str, days: int) -> HealthMetrics:
        """Aggregate the samples recorded in the window."""
        end = self._clock()
        start = end - timedelta(days=days)
        logger.debug(f"Aggregating health samples for {user_id} from {start.isoformat()} to {end.isoformat()}")

        async def fetch(kind: HealthSampleKind) -> list[HealthSample]:
            return await self.samples.fetch_samples(user_id, kind, start, end)

        sleep = await fetch("sleep")
        heart_rate = await fetch("heart_rate")
        hrv = await fetch("hrv")
        steps = await fetch("steps")
        energy = await fetch("active_energy")
        weight = await fetch("body_mass")

        return HealthMetrics(
            sleep=self._sleep(sleep),
            heart_rate=self._heart_rate(heart_rate, hrv),
            activity=ActivityMetrics(
                average_steps=int(round_half_up(_mean(steps))) if steps else 8000,
                average_calories=int(round_half_up(_mean(energy))) if energy else 2000,
                exercise_minutes=0,  # needs workout samples
            ),
            weight=self._weight(weight),
        )

    def _sleep(self, samples: list[HealthSample]) -> SleepMetrics:
        if not samples:
            return SleepMetrics(average_duration=7.0, average_quality=7.0, consistency=0.7)
        average = sum(s.duration_hours for s in samples) / len(samples)
        consistency = min(1.0, len(samples) / self.IDEAL_SLEEP_NIGHTS)
        return SleepMetrics(
            average_duration=round_half_up(average, 1),
            average_quality=8.0,  # devices do not export a quality score
            consistency=round_half_up(consistency, 2),
        )

    @staticmethod
    def _heart_rate(samples: list[HealthSample], hrv: list[HealthSample]) -> HeartRateMetrics:
        variability = int(round_half_up(_mean(hrv))) if hrv else 40
        if not samples:
            return HeartRateMetrics(average_resting=70, average_active=120, variability=variability)
        average = _mean(samples)
        return HeartRateMetrics(
            average_resting=int(round_half_up(average)),
            average_active=int(round_half_up(average * 1.5)),
            variability=variability,
        )

    @staticmethod
    def _weight(samples: list[HealthSample]) -> WeightMetrics:
        if not samples:
            return WeightMetrics(current=70.0, trend="stable", change=0.0)
        change = samples[-1].value - samples[0].value
        if change > 0.5:
            trend = "increasing"
        elif change < -0.5:
            trend = "decreasing"
        else:
            trend = "stable"
        return WeightMetrics(
            current=round_half_up(samples[-1].value, 1),
            trend=trend,
            change=round_half_up(change, 1),
        )
