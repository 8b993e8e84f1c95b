from __future__ import annotations

from typing import Mapping

import httpx

from osint_investigator.agents.http_agent import HttpFunctionAgent
from osint_investigator.agents.web_search import WebSearchAgent
from osint_investigator.config import settings
from osint_investigator.core.agents import AgentKind
from osint_investigator.core.errors import UnknownAgentError
from osint_investigator.core.interfaces import Agent, SearchProvider
from osint_investigator.search import create_search_provider
from osint_investigator.utils import get_logger
from osint_investigator.utils.retry import RetryPolicy

logger = get_logger(__name__)


class AgentRegistry:
    """Routes each ``AgentKind`` to the agent instance that serves it."""

    def __init__(self, agents: Mapping[AgentKind, Agent] | None = None, client: httpx.AsyncClient | None = None) -> None:
        self._agents: dict[AgentKind, Agent] = dict(agents or {})
        self._client = client

    def register(self, kind: AgentKind, agent: Agent) -> None:
        self._agents[kind] = agent

    def get(self, kind: AgentKind) -> Agent:
        try:
            return self._agents[kind]
        except KeyError:
            raise UnknownAgentError(f"No agent registered for {kind.value}") from None

    def __contains__(self, kind: object) -> bool:
        return kind in self._agents

    def kinds(self) -> list[AgentKind]:
        return list(self._agents)

    async def aclose(self) -> None:
        for agent in {id(agent): agent for agent in self._agents.values()}.values():
            await agent.aclose()
        if self._client is not None:
            await self._client.aclose()

    @classmethod
    def from_settings(cls, search_provider: SearchProvider | None = None) -> AgentRegistry:
        """Gateway-backed agents for every kind; web-class kinds run locally
        when ``WEB_SEARCH_BACKEND`` names a search provider."""
        timeout = httpx.Timeout(settings.runtime.agent_timeout_seconds)
        client = httpx.AsyncClient(timeout=timeout)
        retry_policy = RetryPolicy(attempts=settings.runtime.agent_retry_attempts)
        backend = settings.runtime.web_search_backend

        if backend != "gateway" and search_provider is None:
            search_provider = create_search_provider(backend)

        registry = cls(client=client)
        for kind in AgentKind:
            if kind.is_web_class and search_provider is not None:
                registry.register(kind, WebSearchAgent(kind, search_provider))
            elif settings.secrets.agent_gateway_url:
                registry.register(
                    kind,
                    HttpFunctionAgent(
                        kind,
                        client,
                        settings.secrets.agent_gateway_url,
                        settings.secrets.agent_gateway_token,
                        retry_policy=retry_policy,
                    ),
                )
        logger.info(
            "agent_registry.configured",
            agents=len(registry.kinds()),
            web_search_backend=backend,
            gateway_configured=bool(settings.secrets.agent_gateway_url),
        )
        return registry
