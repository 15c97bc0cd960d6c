"""Edge logic and routing for the agent graph."""

from typing import Literal

from gutcheck.graphs.state import AgentState
from gutcheck.utils.logging import get_logger

logger = get_logger(__name__)


def route_agent_output(state: AgentState) -> Literal["tools", "end"]:
    """Route from the first model call.

    Tools run only when the model asked for them and the call succeeded;
    every other case already carries a terminal outcome.
    """
    if state.outcome is not None:
        logger.debug(f"Agent reached terminal state {state.outcome}")
        return "end"

    if state.pending_tool_calls:
        return "tools"

    return "end"
