import pytest

from osint_investigator.agents.web_search import WebSearchAgent, build_name_query, score_result
from osint_investigator.core.agents import AgentKind
from osint_investigator.core.errors import SearchQueryError
from osint_investigator.core.interfaces import AgentRequest

from .fakes import FakeProvider

SEARCH_DATA = {"fullName": "Jane Doe", "address": "123 Main St, Miami, FL 33101", "keywords": "nurse"}


@pytest.mark.parametrize(
    "exact,partial,location,expected",
    [(True, True, True, 0.90), (True, True, False, 0.75), (False, True, True, 0.50), (False, True, False, 0.35), (False, False, False, 0.5)],
)
def test_score_result(exact, partial, location, expected):
    assert score_result(exact, partial, location) == expected


def test_build_name_query():
    assert build_name_query(SEARCH_DATA, "ignored") == '"Jane Doe" Miami FL nurse'
    assert build_name_query({}, "Jane Doe") == '"Jane Doe"'


@pytest.mark.asyncio
async def test_hits_are_split_into_confirmed_and_possible():
    provider = FakeProvider(
        [
            {"title": "Jane Doe - Miami nurse", "url": "https://www.linkedin.com/in/jd", "snippet": "RN"},
            {"title": "Jane Smith v. Acme; John Doe", "url": "https://example.org/x", "snippet": ""},
            {"title": "Unrelated", "url": "https://z.example", "snippet": "weather"},
        ]
    )
    agent = WebSearchAgent(AgentKind.WEB, provider)

    response = await agent.invoke(AgentRequest(target="Jane Doe nurse", payload={"searchData": SEARCH_DATA}))

    assert provider.calls == [('"Jane Doe" Miami FL nurse', {"num_results": 10})]
    confirmed = response.data["confirmedItems"]
    possible = response.data["possibleItems"]
    assert [(item["link"], item["confidenceScore"]) for item in confirmed] == [("https://www.linkedin.com/in/jd", 0.90)]
    assert confirmed[0]["displayLink"] == "linkedin.com"
    assert confirmed[0]["isExactMatch"] and confirmed[0]["hasLocation"]
    assert [(item["link"], item["confidenceScore"]) for item in possible] == [
        ("https://z.example", 0.5),
        ("https://example.org/x", 0.35),
    ]


@pytest.mark.asyncio
async def test_non_name_searches_use_the_task_target():
    provider = FakeProvider([{"title": "Contact jdoe@example.com", "url": "https://a.example", "snippet": ""}])
    agent = WebSearchAgent(AgentKind.WEB_EMAIL_EXACT, provider)

    response = await agent.invoke(AgentRequest(target='"jdoe@example.com"', payload={"searchData": {"email": "jdoe@example.com"}}))

    assert provider.calls[0][0] == '"jdoe@example.com"'
    assert response.data["confirmedItems"][0]["confidenceScore"] == 0.75


@pytest.mark.asyncio
async def test_empty_results_and_provider_errors():
    empty = await WebSearchAgent(AgentKind.WEB_KEYWORDS, FakeProvider([])).invoke(AgentRequest(target="fraud"))
    assert empty.data is None and empty.error is None

    failing = FakeProvider(error=SearchQueryError("Tavily search failed: 401"))
    failed = await WebSearchAgent(AgentKind.WEB_KEYWORDS, failing).invoke(AgentRequest(target="fraud"))
    assert failed.error == "Tavily search failed: 401"


@pytest.mark.asyncio
async def test_aclose_closes_the_provider():
    provider = FakeProvider()
    await WebSearchAgent(AgentKind.WEB, provider).aclose()
    assert provider.closed
