import pytest

from osint_investigator.core.agents import AgentKind
from osint_investigator.core.errors import PayloadValidationError, UnknownAgentError, ValidationError
from osint_investigator.core.payloads import PayloadVariant, validate_payload
from osint_investigator.core.state import GeneratedQuery, RetryRequest, SearchParameters, SearchTask


def test_parameters_from_wire_mapping():
    params = SearchParameters.from_mapping(
        {
            "fullName": "  Jane Doe ",
            "email": "",
            "knownRelatives": "Yana Doe; Owen Doe",
            "keywords": "Nurse, MIAMI",
            "_generatedQueries": [{"query": '"Jane Doe"', "priority": 120, "totalValue": 2256, "template": "t"}],
            "unknown": "ignored",
        }
    )
    assert params.full_name == "Jane Doe"
    assert params.email is None
    assert params.keyword_list == ["nurse", "miami"]
    assert params.relative_list == ["Yana Doe", "Owen Doe"]
    assert params.generated_queries == [GeneratedQuery('"Jane Doe"', 120, 2256, "t")]
    # Known relatives are a fragment but not a data point.
    assert params.data_point_count == 2
    assert params.present_fragments() == ["full_name", "keywords", "known_relatives"]


def test_blank_parameters_fail_validation():
    with pytest.raises(ValidationError):
        SearchParameters(full_name=" ", email="\n").validate()
    assert SearchParameters(known_relatives="Yana Doe").validate().target == "Yana Doe"


def test_search_context_and_wire_dict():
    params = SearchParameters(full_name="Jane Doe", phone="555", keywords="nurse")
    assert params.search_context() == {
        "fullName": "Jane Doe",
        "hasEmail": False,
        "hasPhone": True,
        "hasUsername": False,
        "hasAddress": False,
        "hasKeywords": True,
        "keywords": ["nurse"],
        "knownRelatives": [],
        "totalDataPoints": 3,
    }
    assert params.to_dict() == {"fullName": "Jane Doe", "phone": "555", "keywords": "nurse"}


def test_retry_request_from_mapping():
    request = RetryRequest.from_mapping(
        {"investigationId": "inv-1", "agentType": "Sherlock", "searchData": {"username": "jdoe"}}
    )
    assert request.investigation_id == "inv-1"
    assert request.search_data.username == "jdoe"


@pytest.mark.parametrize(
    "search_type,kind",
    [
        ("Sherlock", AgentKind.SHERLOCK),
        ("sherlock_from_email", AgentKind.SHERLOCK_FROM_EMAIL),
        ("voter_records_fl", AgentKind.VOTER_RECORDS),
        ("state_business_ca", AgentKind.STATE_BUSINESS),
        ("social_username", AgentKind.SOCIAL),
        ("social_name", AgentKind.SOCIAL_NAME),
        ("web_query_3", AgentKind.WEB_QUERY),
        ("people_search_relative_yana_doe", AgentKind.PEOPLE_SEARCH_RELATIVE),
    ],
)
def test_search_types_resolve_to_the_longest_matching_kind(search_type, kind):
    assert AgentKind.from_search_type(search_type) is kind


def test_unknown_search_type():
    with pytest.raises(UnknownAgentError):
        AgentKind.from_search_type("fax_lookup")


def test_search_task_is_immutable():
    task = SearchTask(AgentKind.VOTER_RECORDS, "Jane Doe", {"state": "FL"}, qualifier="fl")
    assert task.search_type == "voter_records_fl"
    with pytest.raises(TypeError):
        task.payload["state"] = "CA"
    with pytest.raises(AttributeError):
        task.target_query = "John"


def test_payload_schemas():
    context = SearchParameters(full_name="Jane Doe").search_context()
    assert validate_payload(PayloadVariant.AGENT, {"found": True, "searchContext": context})["found"]
    with pytest.raises(PayloadValidationError):
        validate_payload(PayloadVariant.AGENT, {"found": True})
    with pytest.raises(PayloadValidationError):
        validate_payload(
            PayloadVariant.SYSTEM,
            {"message": "x", "searchSummary": [{"agentType": "sherlock", "status": "exploded"}]},
        )
    with pytest.raises(PayloadValidationError):
        validate_payload(
            PayloadVariant.WEB_SEARCH,
            {"confirmedItems": [{"title": "no link"}], "possibleItems": [], "discoveredRelatives": [],
             "queriesUsed": [], "searchContext": context},
        )
    assert PayloadVariant.for_agent(AgentKind.WEB_QUERY) is PayloadVariant.WEB_SEARCH
    assert PayloadVariant.for_agent(AgentKind.HOLEHE) is PayloadVariant.AGENT
