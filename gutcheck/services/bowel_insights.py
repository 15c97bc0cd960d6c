"""Narrative insights over a user's logged entries."""

import json
import re
from collections.abc import Sequence

from gutcheck.clients.openrouter import LLMResponseError, OpenRouterClient
from gutcheck.models.analysis import BowelInsight
from gutcheck.models.entries import Entry, UserProfile
from gutcheck.models.tools import EntryInsights
from gutcheck.services.statistics import summarize_entries
from gutcheck.utils.logging import get_logger

logger = get_logger(__name__)

JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)

PROMPT_ENTRY_LIMIT = 10
FALLBACK_SUMMARY_LENGTH = 200

SYSTEM_PROMPT = (
    "You are a helpful health assistant specializing in digestive health and bowel movement analysis. "
    "Provide clear, actionable insights based on the data provided. "
    "Always recommend consulting healthcare professionals for medical concerns."
)


def build_insight_prompt(
    profile: UserProfile, entries: Sequence[Entry], time_period: str, stats: EntryInsights
) -> str:
    """Render the analysis prompt for one user.

    Args:
        profile: The user's profile
        entries: Entries in the period, newest first
        time_period: Human-readable period label, e.g. "Last 30 days"
        stats: Summary statistics over ``entries``

    Returns:
        Prompt text
    """
    recent = "\n".join(
        f"- Date: {e.entry_date.isoformat()}, Bristol: {e.bristol_type if e.bristol_type is not None else 'N/A'}, "
        f"Color: {e.color or 'N/A'}, Texture: {e.texture or 'N/A'}, Notes: {e.notes or 'None'}"
        for e in entries[:PROMPT_ENTRY_LIMIT]
    )

    return f"""Analyze this bowel health data for a {profile.age}-year-old user named {profile.name}:

USER PROFILE:
- Age: {profile.age}
- Diet Type: {profile.diet_type}
- Hydration Target: {profile.hydration_glasses} glasses/day
- Restroom Frequency: {profile.restroom_frequency}
- Has Conditions: {"Yes" if profile.has_conditions else "No"}

TIME PERIOD: {time_period}

OVERALL METRICS:
- Total Entries: {stats.total_entries}
- Consistency Score: {stats.consistency_score}%
- Average Bristol Type: {stats.avg_bristol_type:.1f}
- Healthy Entries: {stats.healthy_entries}/{stats.total_entries}

RECENT ENTRIES (Last {PROMPT_ENTRY_LIMIT}):
{recent}

Please provide a comprehensive analysis in the following JSON format:
{{
  "summary": "Brief 2-3 sentence overview of their bowel health",
  "patterns": ["Pattern 1", "Pattern 2", "Pattern 3"],
  "recommendations": ["Recommendation 1", "Recommendation 2", "Recommendation 3"],
  "concerns": ["Any concerns or red flags"],
  "positiveTrends": ["Positive trends or improvements"]
}}

Focus on:
1. Bristol Stool Scale patterns (types 3-4 are ideal, 1-2 indicate constipation, 5-7 indicate diarrhea)
2. Consistency trends over time and frequency patterns
3. Color and texture patterns that might indicate health issues
4. Actionable lifestyle recommendations (diet, fiber, exercise, stress management)
5. When to consult a healthcare provider (persistent issues, sudden changes)

Guidelines:
- Keep recommendations practical and encouraging
- Avoid medical diagnoses or treatments
- Focus on lifestyle factors that can improve bowel health
- Be specific about what patterns you observe
- Suggest concrete actions users can take
- Always recommend professional consultation for persistent concerns"""


def _string_list(value) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value]


def parse_insight(content: str) -> BowelInsight:
    """Parse the model's reply, degrading to a placeholder insight when it holds no JSON."""
    match = JSON_OBJECT.search(content)
    if match:
        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            logger.warning(f"Could not parse insight JSON: {e}")
        else:
            if isinstance(data, dict):
                return BowelInsight(
                    summary=str(data.get("summary") or "Analysis completed"),
                    patterns=_string_list(data.get("patterns")),
                    recommendations=_string_list(data.get("recommendations")),
                    concerns=_string_list(data.get("concerns")),
                    positive_trends=_string_list(data.get("positiveTrends")),
                )

    return BowelInsight(
        summary=content[:FALLBACK_SUMMARY_LENGTH] + "...",
        patterns=["Pattern analysis unavailable"],
        recommendations=["Recommendations unavailable"],
        concerns=["Analysis incomplete"],
        positive_trends=["Trend analysis unavailable"],
    )


class BowelInsightService:
    """Model-authored insights over a period of entries."""

    def __init__(self, client: OpenRouterClient, model: str = "anthropic/claude-3.5-sonnet"):
        """Initialize the service.

        Args:
            client: OpenRouter client
            model: Model identifier used for insights
        """
        self.client = client
        self.model = model

    async def generate(self, profile: UserProfile, entries: Sequence[Entry], time_period: str) -> BowelInsight:
        """Ask the model for an analysis of the given entries.

        Raises:
            LLMError: If the model request fails
            LLMResponseError: If the model returns no content
        """
        stats = summarize_entries(entries)
        prompt = build_insight_prompt(profile, entries, time_period, stats)

        logger.info(f"Requesting insights for user {profile.id} over {len(entries)} entries")
        result = await self.client.create_completion(
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            model=self.model,
            temperature=0.3,
            max_tokens=1500,
        )

        if not result.content:
            raise LLMResponseError("No response from model")

        return parse_insight(result.content)


class RuleBasedInsightGenerator:
    """Insights derived from summary statistics alone, without a model call."""

    async def generate(self, profile: UserProfile, entries: Sequence[Entry], time_period: str) -> BowelInsight:
        """Build insights from thresholds on the entry statistics."""
        stats = summarize_entries(entries)
        total = stats.total_entries
        score = stats.consistency_score
        avg = stats.avg_bristol_type

        good_consistency = score > 70
        healthy_average = 3 <= avg <= 4

        if avg < 3:
            form_pattern = "Tendency toward harder stools (constipation)"
        elif avg > 4:
            form_pattern = "Tendency toward looser stools (diarrhea)"
        else:
            form_pattern = "Good consistency range (Bristol 3-4)"

        positive_trends = []
        if stats.healthy_entries > total * 0.7:
            positive_trends.append("Good consistency maintenance")
        if total > 10:
            positive_trends.append("Excellent tracking habit")
        if good_consistency:
            positive_trends.append("Strong bowel health patterns")

        return BowelInsight(
            summary=(
                f"Based on your {total} entries, your bowel health shows "
                f"{'good' if good_consistency else 'room for improvement'} consistency. "
                f"Your Bristol Stool Scale average of {avg:.1f} indicates "
                f"{'healthy' if healthy_average else 'suboptimal'} bowel function."
            ),
            patterns=[
                form_pattern,
                "Good tracking consistency" if total > 20 else "Limited data for patterns",
                "Consistent healthy bowel movements" if good_consistency else "Inconsistent bowel patterns",
            ],
            recommendations=[
                "Consider adding more fiber-rich foods to your diet"
                if score < 70
                else "Maintain your current healthy diet",
                "Try gentle exercise and increase water intake to promote regularity"
                if avg < 3
                else "Continue current routine",
                "Consider reducing stress and avoiding trigger foods" if avg > 4 else "Keep up the good work",
            ],
            concerns=(
                ["Consider consulting a healthcare provider about stool consistency"] if avg < 2 or avg > 6 else []
            ),
            positive_trends=positive_trends,
        )
