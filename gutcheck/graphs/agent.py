"""Agent graph: the two-phase tool-calling exchange behind the chat assistant."""

from collections.abc import Sequence
from typing import Any

from langgraph.graph import END, START, StateGraph

from gutcheck.graphs.edges import route_agent_output
from gutcheck.graphs.nodes import APOLOGY_MESSAGE, AgentNodes, CompletionClient
from gutcheck.graphs.state import AgentState
from gutcheck.models.messages import AgentResponse, ChatMessage, ConversationOutcome
from gutcheck.tools.registry import ToolsRegistry
from gutcheck.utils.logging import get_logger

logger = get_logger(__name__)

SYSTEM_PROMPT = """You are Dr. Gut, a knowledgeable and empathetic gut health assistant. You have access to the user's personal health data and medical research.

Your capabilities:
- Access user's bowel health data from their tracking
- Search medical research papers (PubMed)
- Analyze health data (sleep, heart rate, activity, weight)
- Identify patterns and correlations between health metrics

Response Guidelines:
- Provide detailed, personalized insights (4-6 sentences)
- ALWAYS clearly distinguish between personal data and research findings
- When using personal data, explicitly mention "Based on your data" or "Your records show"
- When using research, say "Research shows" or "Studies indicate"
- Use specific numbers and metrics from the actual data
- Explain what the data means for their specific situation
- Include actionable recommendations based on their data
- Be conversational but informative

Data Attribution Examples:
- "Based on your bowel health data from the last 7 days, you have a consistency score of 85%"
- "Your sleep records show an average of 7.2 hours per night"
- "Research from PubMed indicates that fiber intake reduces constipation risk by 40%"
- "Your health data shows your most common Bristol type is 3, which is excellent"

Tool Usage Priority:
1. ALWAYS query user data for health questions to provide personalized insights
2. Use PubMed search for medical/symptom questions to add research context
3. Use health data analysis for correlation questions
4. Combine multiple tools for comprehensive, personalized insights

Remember: You're not a replacement for medical advice, but a helpful assistant for understanding gut health patterns."""


def create_agent_graph(client: CompletionClient, registry: ToolsRegistry):
    """Create the agent graph.

    agent -> end              model answered directly, or the call failed
    agent -> tools -> respond model asked for tools; respond makes the final call

    Args:
        client: Chat-completions client
        registry: Tools the model may call

    Returns:
        Compiled LangGraph workflow
    """
    nodes = AgentNodes(client, registry)

    workflow = StateGraph(AgentState)

    workflow.add_node("agent", nodes.agent)
    workflow.add_node("tools", nodes.tools)
    workflow.add_node("respond", nodes.respond)

    workflow.add_edge(START, "agent")
    workflow.add_conditional_edges(
        "agent",
        route_agent_output,
        {
            "tools": "tools",
            "end": END,
        },
    )
    workflow.add_edge("tools", "respond")
    workflow.add_edge("respond", END)

    return workflow.compile()


def build_messages(user_text: str, history: Sequence[ChatMessage]) -> list[dict[str, Any]]:
    """System prompt, then the prior conversation role by role, then the new message."""
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        *({"role": msg.role, "content": msg.content} for msg in history),
        {"role": "user", "content": user_text},
    ]


class AgentOrchestrator:
    """Runs one user turn through the agent graph."""

    def __init__(self, client: CompletionClient, registry: ToolsRegistry):
        """Initialize the orchestrator.

        Args:
            client: Chat-completions client
            registry: Tools the model may call
        """
        self.registry = registry
        self.graph = create_agent_graph(client, registry)

    async def converse(self, user_text: str, history: Sequence[ChatMessage], user_id: str) -> AgentResponse:
        """Answer a user message, calling tools when the model asks for them.

        Args:
            user_text: The new user message
            history: Prior messages of the conversation, oldest first
            user_id: Identity that scopes tool data access

        Returns:
            Final message, executed tool calls, terminal outcome and any error

        Raises:
            ValueError: If the message is empty
        """
        if not user_text or not user_text.strip():
            raise ValueError("Message cannot be empty")

        initial_state = AgentState(messages=build_messages(user_text, history), user_id=user_id)
        logger.info(f"Starting exchange for user {user_id} with {len(history)} prior messages")

        try:
            result = await self.graph.ainvoke(initial_state.model_dump(), {"recursion_limit": 10})
            final = result if isinstance(result, AgentState) else AgentState.model_validate(result)
        except Exception as e:
            logger.error(f"Agent graph execution error: {e}", exc_info=True)
            return AgentResponse(message=APOLOGY_MESSAGE, error=str(e), outcome=ConversationOutcome.FAILED)

        logger.info(f"Exchange for user {user_id} ended as {final.outcome} with {len(final.tool_calls)} tool calls")

        return AgentResponse(
            message=final.response or APOLOGY_MESSAGE,
            tool_calls=final.tool_calls,
            error=final.error,
            outcome=final.outcome or ConversationOutcome.FAILED,
        )
