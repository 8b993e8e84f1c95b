from __future__ import annotations

from typing import Any

import httpx

from osint_investigator.agents.base import BaseAgent
from osint_investigator.core.agents import AgentKind
from osint_investigator.core.errors import ProviderNotConfiguredError
from osint_investigator.core.interfaces import AgentRequest, AgentResponse
from osint_investigator.utils.retry import RetryPolicy


class HttpFunctionAgent(BaseAgent):
    """Invokes a remote lookup function through the agent gateway.

    The gateway exposes every function at ``{base_url}/functions/v1/{name}``
    and answers with the function's JSON body. HTTP status errors and a JSON
    ``error`` field are returned as ``AgentResponse`` errors; connect and read
    failures are retried and then surface as ``AgentResponse`` errors too.
    """

    def __init__(
        self,
        kind: AgentKind,
        client: httpx.AsyncClient,
        base_url: str,
        token: str | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        super().__init__(kind.value, retry_policy)
        if not base_url:
            raise ProviderNotConfiguredError("AGENT_GATEWAY_URL is not configured.")
        self.kind = kind
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.token = token

    def function_name(self, payload: dict[str, Any]) -> str:
        template = self.kind.spec.function
        if "{state}" in template:
            state = str(payload.get("state") or "").lower()
            if not state:
                raise ValueError(f"{self.kind.value} requires a state in its payload")
            return template.format(state=state)
        return template

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def invoke(self, request: AgentRequest) -> AgentResponse:
        function = self.function_name(request.payload)
        url = f"{self.base_url}/functions/v1/{function}"
        body = {"target": request.target, **request.payload}

        @self.retry_policy.wrap_async
        async def _post() -> httpx.Response:
            return await self.client.post(url, json=body, headers=self._headers())

        try:
            response = await _post()
        except httpx.TransportError as exc:
            self.log("agent.transport_error", function=function, error=str(exc) or type(exc).__name__)
            return AgentResponse.failure(f"{function}: {str(exc) or type(exc).__name__}")

        if response.status_code >= 400:
            detail = _error_detail(response)
            self.log("agent.http_error", function=function, status=response.status_code, detail=detail)
            return AgentResponse.failure(f"{function} returned HTTP {response.status_code}: {detail}")

        try:
            data = response.json()
        except ValueError:
            return AgentResponse.failure(f"{function} returned a non-JSON body")

        if isinstance(data, dict) and data.get("error"):
            return AgentResponse.failure(str(data["error"]))
        if data is not None and not isinstance(data, dict):
            data = {"items": data}
        self.log("agent.completed", function=function, has_data=bool(data))
        return AgentResponse(data=data or None)


def _error_detail(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(payload, dict) and payload.get("error"):
        return str(payload["error"])
    return response.text[:200]
