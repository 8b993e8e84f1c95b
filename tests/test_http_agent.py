import json

import httpx
import pytest

from osint_investigator.agents.http_agent import HttpFunctionAgent
from osint_investigator.core.agents import AgentKind
from osint_investigator.core.errors import ProviderNotConfiguredError
from osint_investigator.core.interfaces import AgentRequest
from osint_investigator.utils.retry import RetryPolicy

FAST_RETRY = RetryPolicy(attempts=2, base=0.01, max_wait=0.01)


def make_agent(handler, kind=AgentKind.HOLEHE, token="secret-token"):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpFunctionAgent(kind, client, "https://gateway.example/", token, retry_policy=FAST_RETRY), client


@pytest.mark.asyncio
async def test_posts_target_and_payload_to_the_function():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"accounts": ["github"]})

    agent, client = make_agent(handler)
    response = await agent.invoke(AgentRequest(target="jdoe@example.com", payload={"type": "email"}))
    await client.aclose()

    assert response.data == {"accounts": ["github"]}
    assert response.error is None
    assert seen == {
        "url": "https://gateway.example/functions/v1/osint-holehe",
        "auth": "Bearer secret-token",
        "body": {"target": "jdoe@example.com", "type": "email"},
    }


@pytest.mark.asyncio
async def test_voter_lookup_function_is_chosen_by_state():
    urls = []

    def handler(request):
        urls.append(request.url.path)
        return httpx.Response(200, json={"voters": []})

    agent, client = make_agent(handler, kind=AgentKind.VOTER_RECORDS)
    await agent.invoke(AgentRequest(target="Jane Doe", payload={"state": "FL"}))
    with pytest.raises(ValueError):
        await agent.invoke(AgentRequest(target="Jane Doe", payload={}))
    await client.aclose()

    assert urls == ["/functions/v1/osint-fl-voter-lookup"]


@pytest.mark.parametrize(
    "response,expected_error",
    [
        (httpx.Response(502, json={"error": "upstream down"}), "osint-holehe returned HTTP 502: upstream down"),
        (httpx.Response(200, json={"error": "quota exceeded"}), "quota exceeded"),
        (httpx.Response(200, text="<html>oops</html>"), "osint-holehe returned a non-JSON body"),
    ],
)
@pytest.mark.asyncio
async def test_error_responses_become_agent_errors(response, expected_error):
    agent, client = make_agent(lambda request: response)
    result = await agent.invoke(AgentRequest(target="x"))
    await client.aclose()

    assert result.data is None
    assert result.error == expected_error


@pytest.mark.asyncio
async def test_list_bodies_are_wrapped_and_empty_bodies_mean_no_data():
    agent, client = make_agent(lambda request: httpx.Response(200, json=[{"site": "github"}]))
    wrapped = await agent.invoke(AgentRequest(target="x"))
    await client.aclose()

    agent, client = make_agent(lambda request: httpx.Response(200, json={}))
    empty = await agent.invoke(AgentRequest(target="x"))
    await client.aclose()

    assert wrapped.data == {"items": [{"site": "github"}]}
    assert empty.data is None and empty.error is None


@pytest.mark.asyncio
async def test_transport_errors_are_retried_then_reported():
    calls = {"count": 0}

    def flaky(request):
        calls["count"] += 1
        if calls["count"] == 1:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, json={"ok": True})

    agent, client = make_agent(flaky)
    recovered = await agent.invoke(AgentRequest(target="x"))
    await client.aclose()
    assert recovered.data == {"ok": True}
    assert calls["count"] == 2

    def down(request):
        raise httpx.ConnectError("connection refused", request=request)

    agent, client = make_agent(down)
    result = await agent.invoke(AgentRequest(target="x"))
    await client.aclose()
    assert result.error == "osint-holehe: connection refused"


def test_gateway_url_is_required():
    with pytest.raises(ProviderNotConfiguredError):
        HttpFunctionAgent(AgentKind.HOLEHE, httpx.AsyncClient(), "")
