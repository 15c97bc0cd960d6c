"""Health metrics tool."""

from datetime import UTC, datetime

from gutcheck.models.tools import GetHealthDataArgs, GetHealthDataResult, ToolName
from gutcheck.services.health_data import HealthDataProvider
from gutcheck.tools.base import ToolDefinition
from gutcheck.utils.logging import get_logger

logger = get_logger(__name__)

DESCRIPTION = (
    "Get user's Apple Health data including sleep, heart rate, activity, and weight for correlation analysis"
)

PARAMETERS = {
    "type": "object",
    "properties": {
        "days": {
            "type": "number",
            "description": "Number of days to retrieve health data for (1-30)",
            "minimum": 1,
            "maximum": 30,
        }
    },
    "required": ["days"],
}


def create_get_health_data_tool(provider: HealthDataProvider) -> ToolDefinition:
    async def get_health_data_handler(args: GetHealthDataArgs, user_id: str) -> GetHealthDataResult:
        logger.info(f"Getting {args.days} days of health data for user {user_id} from {provider.source}")
        data = await provider.get_health_data(user_id, args.days)
        return GetHealthDataResult(
            days=args.days,
            data=data,
            last_updated=datetime.now(UTC).isoformat(),
            source=provider.source,
            note=f"{provider.source} health data for the last {args.days} days",
        )

    return ToolDefinition(
        name=ToolName.GET_HEALTH_DATA,
        description=DESCRIPTION,
        input_schema_class=GetHealthDataArgs,
        handler=get_health_data_handler,
        parameters=PARAMETERS,
    )
