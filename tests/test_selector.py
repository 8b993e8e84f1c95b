import pytest

from osint_investigator.core.agents import AgentKind
from osint_investigator.core.state import GeneratedQuery, SearchParameters
from osint_investigator.investigation.selector import (
    BuilderId,
    flatten,
    plausible_username,
    relative_slug,
    select_tasks,
)


def builder_ids(params, **kwargs):
    return [builder_id for builder_id, _ in select_tasks(params, **kwargs)]


def tasks_for(params, **kwargs):
    return flatten(select_tasks(params, **kwargs))


def test_name_only_fires_name_business_and_records():
    params = SearchParameters(full_name="Jane Doe")
    assert builder_ids(params) == [BuilderId.NAME, BuilderId.BUSINESS, BuilderId.RECORDS]

    tasks = tasks_for(params)
    kinds = {task.agent for task in tasks}
    assert AgentKind.PEOPLE_SEARCH in kinds
    assert AgentKind.ADDRESS not in kinds
    sunbiz = [task for task in tasks if task.agent is AgentKind.SUNBIZ]
    assert len(sunbiz) == 1
    assert sunbiz[0].payload["searchType"] == "officer"
    assert sunbiz[0].target_query == "Jane Doe"


def test_email_only_derives_username_tasks():
    params = SearchParameters(email="jdoe@example.com")
    assert builder_ids(params) == [BuilderId.EMAIL]

    tasks = tasks_for(params)
    assert len(tasks) >= 6
    sherlock = [task for task in tasks if task.agent is AgentKind.SHERLOCK_FROM_EMAIL]
    assert [task.target_query for task in sherlock] == ["jdoe"]
    assert any(task.search_type == "web_email_exact" and task.target_query == '"jdoe@example.com"' for task in tasks)


@pytest.mark.parametrize(
    "field,value,expected",
    [
        ("full_name", "Jane Doe", {BuilderId.NAME, BuilderId.BUSINESS, BuilderId.RECORDS}),
        ("email", "jdoe@example.com", {BuilderId.EMAIL}),
        ("phone", "555-123-4567", {BuilderId.PHONE}),
        ("username", "@jdoe", {BuilderId.USERNAME}),
        ("address", "123 Main St, Miami, FL 33101", {BuilderId.ADDRESS}),
        ("keywords", "fraud, miami", {BuilderId.KEYWORDS}),
        ("known_relatives", "Yana Petrie", {BuilderId.RELATIVES}),
    ],
)
def test_single_fragment_selects_only_its_own_builders(field, value, expected):
    params = SearchParameters(**{field: value})
    assert set(builder_ids(params, query_top_n=5)) == expected


def test_florida_address_routes_to_sunbiz():
    params = SearchParameters(full_name="Jane Doe", address="123 Main St, Miami, FL 33101")
    ids = builder_ids(params)
    assert BuilderId.BUSINESS not in ids
    assert BuilderId.RECORDS not in ids

    tasks = tasks_for(params)
    sunbiz = [task for task in tasks if task.agent is AgentKind.SUNBIZ]
    assert len(sunbiz) == 1
    assert sunbiz[0].target_query == "Jane Doe"
    assert not any(task.agent is AgentKind.STATE_BUSINESS for task in tasks)

    property_task = next(task for task in tasks if task.agent is AgentKind.PROPERTY_RECORDS)
    assert property_task.payload["state"] == "FL"
    assert "bcpa.net" in property_task.payload["assessorDomains"]
    assert property_task.payload["normalizedAddress"] == "123 main st"


def test_other_registry_states_use_state_business_search():
    params = SearchParameters(address="9 Pine Rd, Sacramento, CA 95814")
    state_tasks = [task for task in tasks_for(params) if task.agent is AgentKind.STATE_BUSINESS]
    assert len(state_tasks) == 1
    assert state_tasks[0].payload["registryDomain"] == "bizfileonline.sos.ca.gov"
    assert state_tasks[0].target_query == "9 Pine Rd, Sacramento, CA 95814"


def test_address_without_known_state_has_no_registry_task():
    tasks = tasks_for(SearchParameters(address="500 Oak Ave, Springfield"))
    assert not any(task.agent in (AgentKind.SUNBIZ, AgentKind.STATE_BUSINESS) for task in tasks)


def test_keywords_ride_on_the_name_search():
    tasks = tasks_for(SearchParameters(full_name="Jane Doe", keywords="Nurse"))
    assert not any(task.agent is AgentKind.WEB_KEYWORDS for task in tasks)
    web = next(task for task in tasks if task.agent is AgentKind.WEB)
    assert web.target_query == "Jane Doe nurse"

    keyword_only = tasks_for(SearchParameters(keywords="fraud, miami"))
    assert [(task.search_type, task.target_query) for task in keyword_only] == [("web_keywords", "fraud miami")]


def test_relatives_are_deduplicated_and_qualified():
    params = SearchParameters(full_name="Michael Petrie", known_relatives="Yana Petrie; Owen Petrie, yana petrie")
    relative_tasks = dict(select_tasks(params))[BuilderId.RELATIVES]
    assert [task.search_type for task in relative_tasks] == [
        "relative_connection_search_yana_petrie",
        "people_search_relative_yana_petrie",
        "relative_connection_search_owen_petrie",
        "people_search_relative_owen_petrie",
    ]
    assert relative_tasks[0].target_query == '"Michael Petrie" "Yana Petrie"'
    assert relative_tasks[1].payload["relativeOf"] == "Michael Petrie"


def test_generated_queries_take_the_top_ranked_unique_entries():
    params = SearchParameters(
        full_name="Jane Doe",
        generated_queries=[
            GeneratedQuery('"Jane Doe" nurse', 80, 2592, "t1"),
            GeneratedQuery('"Jane Doe" "jdoe@example.com"', 3, 12740, "t2"),
            GeneratedQuery('"Jane Doe" "jdoe@example.com"', 25, 9000, "t3"),
            GeneratedQuery('"jdoe@example.com"', 5, 9760, "t4"),
        ],
    )
    generated = dict(select_tasks(params, query_top_n=2))[BuilderId.GENERATED]
    assert [(task.search_type, task.target_query, task.priority) for task in generated] == [
        ("web_query_1", '"Jane Doe" "jdoe@example.com"', 3),
        ("web_query_2", '"jdoe@example.com"', 5),
    ]
    assert BuilderId.GENERATED not in builder_ids(params, query_top_n=0)


def test_search_types_are_unique_for_a_full_parameter_set():
    params = SearchParameters(
        full_name="Jane Doe",
        email="jdoe@example.com",
        phone="555-123-4567",
        username="jdoe",
        address="123 Main St, Miami, FL 33101",
        keywords="nurse",
        known_relatives="John Doe, Mary Doe",
        generated_queries=[GeneratedQuery('"Jane Doe" nurse', 80, 2592, "t")],
    )
    search_types = [task.search_type for task in tasks_for(params, query_top_n=5)]
    assert len(search_types) == len(set(search_types))
    assert "social" in search_types and "social_username" in search_types
    for search_type in search_types:
        AgentKind.from_search_type(search_type)


def test_web_tasks_carry_the_search_data():
    tasks = tasks_for(SearchParameters(phone="555-123-4567"))
    web = next(task for task in tasks if task.agent is AgentKind.WEB_PHONE_SEARCH)
    assert web.payload["searchData"] == {"phone": "555-123-4567"}
    assert web.body() == {"target": '"555-123-4567"', "searchData": {"phone": "555-123-4567"}}


@pytest.mark.parametrize(
    "local_part,expected",
    [("jdoe", True), ("j.doe-99", True), ("12", False), ("123456", False), ("ab", False), ("", False)],
)
def test_plausible_username(local_part, expected):
    assert plausible_username(local_part) is expected


def test_relative_slug():
    assert relative_slug("  Mary-Ann O'Neil ") == "mary_ann_o_neil"
