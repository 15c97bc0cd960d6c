"""Query user data tool."""

from collections.abc import Callable
from datetime import date, timedelta

from gutcheck.models.tools import DateRange, QueryUserDataArgs, QueryUserDataResult, ToolName
from gutcheck.services.entries import EntryRepository
from gutcheck.services.statistics import summarize_entries
from gutcheck.tools.base import ToolDefinition
from gutcheck.utils.logging import get_logger

logger = get_logger(__name__)

FALLBACK_LIMIT = 10

DESCRIPTION = "Get user's bowel health data from the last X days to analyze patterns and trends"

PARAMETERS = {
    "type": "object",
    "properties": {
        "days": {
            "type": "number",
            "description": "Number of days to retrieve data for (1-90)",
            "minimum": 1,
            "maximum": 90,
        }
    },
    "required": ["days"],
}


def create_query_user_data_tool(
    repository: EntryRepository, today: Callable[[], date] = date.today
) -> ToolDefinition:
    async def query_user_data_handler(args: QueryUserDataArgs, user_id: str) -> QueryUserDataResult:
        """Summarize the user's entries from the last ``days`` days.

        When the window is empty but the user has older entries, the most
        recent ones are summarized instead and the result is flagged as a
        fallback.
        """
        end = today()
        start = end - timedelta(days=args.days)
        date_range = DateRange(start=start.isoformat(), end=end.isoformat())
        logger.info(f"Querying entries for user {user_id} from {date_range.start} to {date_range.end}")

        entries = await repository.list_entries(user_id, start, end)
        if entries:
            return QueryUserDataResult(
                summary=f"Found {len(entries)} bowel movement entries over the last {args.days} days",
                entries=[e.model_dump(mode="json") for e in entries],
                insights=summarize_entries(entries),
                date_range=date_range,
            )

        recent = await repository.recent_entries(user_id, FALLBACK_LIMIT)
        if recent:
            logger.info(f"No entries in window for user {user_id}, falling back to {len(recent)} recent entries")
            return QueryUserDataResult(
                summary=(
                    f"Found {len(recent)} recent entries in your history, but none in the last {args.days} days"
                ),
                entries=[e.model_dump(mode="json") for e in recent],
                insights=summarize_entries(
                    recent, note=f"No entries in last {args.days} days, showing recent entries instead"
                ),
                date_range=date_range,
                fallback=True,
            )

        return QueryUserDataResult(
            summary="No bowel movement entries found in your history",
            entries=[],
            insights=summarize_entries(
                [], note="No data available. Start tracking your bowel movements to get personalized insights!"
            ),
            date_range=date_range,
        )

    return ToolDefinition(
        name=ToolName.QUERY_USER_DATA,
        description=DESCRIPTION,
        input_schema_class=QueryUserDataArgs,
        handler=query_user_data_handler,
        parameters=PARAMETERS,
    )
