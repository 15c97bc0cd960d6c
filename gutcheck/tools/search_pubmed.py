"""Medical literature search tool."""

from gutcheck.models.tools import SearchPubMedArgs, SearchPubMedResult, ToolName
from gutcheck.services.literature import LiteratureSearch
from gutcheck.tools.base import ToolDefinition
from gutcheck.utils.logging import get_logger

logger = get_logger(__name__)

DESCRIPTION = (
    "Search medical research papers for relevant information about gut health, symptoms, or conditions"
)

PARAMETERS = {
    "type": "object",
    "properties": {
        "query": {
            "type": "string",
            "description": (
                "Search query for medical research (e.g., 'IBS symptoms', 'gut microbiome', 'fiber intake')"
            ),
        }
    },
    "required": ["query"],
}


def create_search_pubmed_tool(literature: LiteratureSearch) -> ToolDefinition:
    async def search_pubmed_handler(args: SearchPubMedArgs, user_id: str) -> SearchPubMedResult:
        logger.info(f"Searching {literature.source} literature for: {args.query}")
        results = await literature.search(args.query)
        return SearchPubMedResult(
            query=args.query,
            results=results,
            total_results=len(results),
            summary=f"Found {len(results)} relevant studies about {args.query.lower()}",
        )

    return ToolDefinition(
        name=ToolName.SEARCH_PUBMED,
        description=DESCRIPTION,
        input_schema_class=SearchPubMedArgs,
        handler=search_pubmed_handler,
        parameters=PARAMETERS,
    )
