"""Health pattern analysis tool."""

from gutcheck.models.tools import AnalyzeHealthPatternsArgs, AnalyzeHealthPatternsResult, ToolName
from gutcheck.services.patterns import analyze_health_patterns
from gutcheck.tools.base import ToolDefinition
from gutcheck.utils.logging import get_logger

logger = get_logger(__name__)

DESCRIPTION = (
    "Analyze correlations between user's bowel health data and other health metrics to identify patterns"
)

PARAMETERS = {
    "type": "object",
    "properties": {
        "bowelData": {
            "type": "object",
            "description": "User's bowel health data",
        },
        "healthData": {
            "type": "object",
            "description": "User's Apple Health data",
        },
        "analysisType": {
            "type": "string",
            "description": "Type of analysis to perform",
            "enum": ["correlation", "trends", "triggers", "recommendations"],
        },
    },
    "required": ["bowelData", "healthData", "analysisType"],
}


def create_analyze_health_patterns_tool() -> ToolDefinition:
    async def analyze_health_patterns_handler(
        args: AnalyzeHealthPatternsArgs, user_id: str
    ) -> AnalyzeHealthPatternsResult:
        logger.info(f"Analyzing health patterns ({args.analysis_type}) for user {user_id}")
        return analyze_health_patterns(args.bowel_data, args.health_data, args.analysis_type)

    return ToolDefinition(
        name=ToolName.ANALYZE_HEALTH_PATTERNS,
        description=DESCRIPTION,
        input_schema_class=AnalyzeHealthPatternsArgs,
        handler=analyze_health_patterns_handler,
        parameters=PARAMETERS,
    )
