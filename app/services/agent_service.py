"""
Agent service: process-wide wiring of the chat pipeline.

Responsibility: Build the Orchestrator with the configured completion and
search clients once, and hand it to the API layer. Clients hold read-only
config only, so one instance serves all concurrent requests.
"""

import logging

from app.agent.graph import Orchestrator
from app.agent.llm import CompletionClient
from app.agent.tools import SearchClient

logger = logging.getLogger(__name__)

_orchestrator: Orchestrator | None = None


def get_orchestrator() -> Orchestrator:
    """FastAPI dependency returning the shared Orchestrator."""
    global _orchestrator
    if _orchestrator is None:
        llm = CompletionClient()
        search = SearchClient()
        logger.info("[agent_service] orchestrator ready llm=%r search=%r", llm, search)
        _orchestrator = Orchestrator(llm=llm, search=search)
    return _orchestrator
