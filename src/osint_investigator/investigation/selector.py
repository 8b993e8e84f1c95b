"""Agent selection: which lookup tasks a set of identity fragments justifies.

Each builder looks at one fragment kind and emits zero or more immutable
``SearchTask`` objects. Builders are pure string/table operations; nothing
here performs I/O. The business and records builders only fire for a name
without an address, since the address builder already emits the
state-specific registry task.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Callable, Iterable

from osint_investigator.analysis.name_matching import split_name
from osint_investigator.analysis.registries import (
    STATE_BUSINESS_SEARCH_STATES,
    STATE_NAMES,
    VOTER_LOOKUP_STATES,
    detect_state_code,
    get_property_assessors,
    get_state_registry,
    normalize_address_for_search,
    parse_location_from_address,
)
from osint_investigator.core.agents import AgentKind
from osint_investigator.core.state import SearchParameters, SearchTask
from osint_investigator.utils import get_logger

logger = get_logger(__name__)

_PLAUSIBLE_USERNAME = re.compile(r"^(?=.*[A-Za-z])[A-Za-z0-9._-]{3,30}$")
_SLUG = re.compile(r"[^a-z0-9]+")


class BuilderId(str, Enum):
    NAME = "name"
    KEYWORDS = "keywords"
    EMAIL = "email"
    USERNAME = "username"
    PHONE = "phone"
    ADDRESS = "address"
    BUSINESS = "business"
    RECORDS = "records"
    RELATIVES = "relatives"
    GENERATED = "generated"


def plausible_username(local_part: str | None) -> bool:
    """True when an email local part could double as a username."""
    return bool(local_part) and _PLAUSIBLE_USERNAME.match(local_part) is not None


def relative_slug(name: str) -> str:
    return _SLUG.sub("_", name.lower()).strip("_")


def _web_context(params: SearchParameters) -> dict:
    return {"searchData": params.to_dict()}


def build_name_tasks(params: SearchParameters) -> list[SearchTask]:
    if not params.full_name:
        return []
    first, last = split_name(params.full_name)
    location = parse_location_from_address(params.address)
    web_query = " ".join([params.full_name, *params.keyword_list])
    return [
        SearchTask(AgentKind.WEB, web_query, _web_context(params)),
        SearchTask(
            AgentKind.PEOPLE_SEARCH,
            params.full_name,
            {
                "firstName": first,
                "lastName": last,
                "city": location.get("city"),
                "state": location.get("state"),
            },
        ),
        SearchTask(AgentKind.SOCIAL_NAME, params.full_name, {"searchType": "name"}),
        SearchTask(AgentKind.IDCRAWL, params.full_name, {"searchType": "name"}),
    ]


def build_keyword_tasks(params: SearchParameters) -> list[SearchTask]:
    # With a name, keywords ride along on the name web search instead.
    if params.full_name or not params.keyword_list:
        return []
    return [SearchTask(AgentKind.WEB_KEYWORDS, " ".join(params.keyword_list), _web_context(params))]


def build_email_tasks(params: SearchParameters) -> list[SearchTask]:
    email = params.email
    if not email:
        return []
    tasks = [
        SearchTask(AgentKind.SELECTOR_ENRICHMENT, email, {"selectorType": "email"}),
        SearchTask(AgentKind.LEAKCHECK, email, {"email": email, "type": "email"}),
        SearchTask(AgentKind.HOLEHE, email),
        SearchTask(AgentKind.EMAIL, email),
        SearchTask(AgentKind.OSINT_INDUSTRIES, email),
        SearchTask(AgentKind.SOCIAL, email),
        SearchTask(AgentKind.WEB_EMAIL_EXACT, f'"{email}"', _web_context(params)),
    ]
    local_part = email.split("@", 1)[0]
    if plausible_username(local_part):
        tasks += [
            SearchTask(AgentKind.SHERLOCK_FROM_EMAIL, local_part, {"derivedFrom": "email"}),
            SearchTask(AgentKind.TOUTATIS_FROM_EMAIL, local_part, {"derivedFrom": "email"}),
            SearchTask(AgentKind.INSTALOADER_FROM_EMAIL, local_part, {"derivedFrom": "email"}),
        ]
    return tasks


def build_username_tasks(params: SearchParameters) -> list[SearchTask]:
    if not params.username:
        return []
    username = params.username.lstrip("@")
    return [
        SearchTask(AgentKind.SHERLOCK, username),
        # Qualified so it never collides with the email builder's social task.
        SearchTask(AgentKind.SOCIAL, username, qualifier="username"),
        SearchTask(AgentKind.LEAKCHECK_USERNAME, username, {"type": "username"}),
        SearchTask(AgentKind.TOUTATIS, username),
        SearchTask(AgentKind.INSTALOADER, username),
    ]


def build_phone_tasks(params: SearchParameters) -> list[SearchTask]:
    phone = params.phone
    if not phone:
        return []
    return [
        SearchTask(AgentKind.PHONE, phone),
        SearchTask(AgentKind.PEOPLE_SEARCH_PHONE, phone, {"searchType": "phone"}),
        SearchTask(AgentKind.LEAKCHECK_PHONE, phone, {"type": "phone"}),
        SearchTask(AgentKind.WEB_PHONE_SEARCH, f'"{phone}"', _web_context(params)),
    ]


def build_address_tasks(params: SearchParameters) -> list[SearchTask]:
    address = params.address
    if not address:
        return []
    state = detect_state_code(address)
    assessors = get_property_assessors(state)
    tasks = [
        SearchTask(AgentKind.ADDRESS, address),
        SearchTask(
            AgentKind.PROPERTY_RECORDS,
            address,
            {
                "state": state,
                "assessorDomains": list(assessors.domains) if assessors else [],
                "normalizedAddress": normalize_address_for_search(address),
                "ownerName": params.full_name,
            },
        ),
        SearchTask(AgentKind.ADDRESS_OWNER_SEARCH, f'"{address}" owner property records', _web_context(params)),
        SearchTask(AgentKind.ADDRESS_RESIDENTS_SEARCH, f'"{address}" residents people', _web_context(params)),
    ]

    registry = get_state_registry(state)
    if state and registry:
        registry_target = params.full_name or address
        if state == "FL":
            tasks.append(SearchTask(AgentKind.SUNBIZ, registry_target, {"searchType": "officer"}))
        else:
            tasks.append(
                SearchTask(
                    AgentKind.STATE_BUSINESS,
                    registry_target,
                    {
                        "state": state,
                        "registryDomain": registry.domain,
                        "registryName": registry.name,
                        "searchTypes": list(registry.search_types),
                    },
                )
            )
    return tasks


def build_business_tasks(params: SearchParameters) -> list[SearchTask]:
    if not params.full_name or params.address:
        return []
    tasks = [SearchTask(AgentKind.SUNBIZ, params.full_name, {"searchType": "officer"})]
    for state in STATE_BUSINESS_SEARCH_STATES:
        registry = get_state_registry(state)
        tasks.append(
            SearchTask(
                AgentKind.STATE_BUSINESS,
                params.full_name,
                {
                    "state": state,
                    "registryDomain": registry.domain if registry else None,
                    "registryName": registry.name if registry else STATE_NAMES.get(state),
                    "searchTypes": list(registry.search_types) if registry else ["officer"],
                },
                qualifier=state.lower(),
            )
        )
    return tasks


def build_records_tasks(params: SearchParameters) -> list[SearchTask]:
    if not params.full_name or params.address:
        return []
    first, last = split_name(params.full_name)
    tasks = [SearchTask(AgentKind.COURT_RECORDS, params.full_name, {"firstName": first, "lastName": last})]
    for state in VOTER_LOOKUP_STATES:
        tasks.append(
            SearchTask(
                AgentKind.VOTER_RECORDS,
                params.full_name,
                {"state": state, "firstName": first, "lastName": last},
                qualifier=state.lower(),
            )
        )
    return tasks


def build_relative_tasks(params: SearchParameters) -> list[SearchTask]:
    tasks: list[SearchTask] = []
    seen: set[str] = set()
    for relative in params.relative_list:
        slug = relative_slug(relative)
        if not slug or slug in seen:
            continue
        seen.add(slug)
        query = f'"{params.full_name}" "{relative}"' if params.full_name else f'"{relative}"'
        tasks.append(
            SearchTask(
                AgentKind.RELATIVE_CONNECTION_SEARCH,
                query,
                {**_web_context(params), "relative": relative},
                qualifier=slug,
            )
        )
        first, last = split_name(relative)
        tasks.append(
            SearchTask(
                AgentKind.PEOPLE_SEARCH_RELATIVE,
                relative,
                {"firstName": first, "lastName": last, "relativeOf": params.full_name},
                qualifier=slug,
            )
        )
    return tasks


def build_generated_tasks(params: SearchParameters, top_n: int) -> list[SearchTask]:
    if not params.generated_queries or top_n <= 0:
        return []
    ranked = sorted(params.generated_queries, key=lambda query: (query.priority, -query.total_value))
    tasks: list[SearchTask] = []
    seen: set[str] = set()
    for generated in ranked:
        if not generated.query or generated.query in seen:
            continue
        seen.add(generated.query)
        tasks.append(
            SearchTask(
                AgentKind.WEB_QUERY,
                generated.query,
                _web_context(params),
                qualifier=str(len(tasks) + 1),
                priority=generated.priority,
                source_template=generated.template,
            )
        )
        if len(tasks) >= top_n:
            break
    return tasks


BUILDERS: tuple[tuple[BuilderId, Callable[[SearchParameters], list[SearchTask]]], ...] = (
    (BuilderId.NAME, build_name_tasks),
    (BuilderId.KEYWORDS, build_keyword_tasks),
    (BuilderId.EMAIL, build_email_tasks),
    (BuilderId.USERNAME, build_username_tasks),
    (BuilderId.PHONE, build_phone_tasks),
    (BuilderId.ADDRESS, build_address_tasks),
    (BuilderId.BUSINESS, build_business_tasks),
    (BuilderId.RECORDS, build_records_tasks),
    (BuilderId.RELATIVES, build_relative_tasks),
)


def select_tasks(params: SearchParameters, *, query_top_n: int = 0) -> list[tuple[BuilderId, list[SearchTask]]]:
    """Run every builder over ``params`` and return the ones that fired, in builder order."""
    selection: list[tuple[BuilderId, list[SearchTask]]] = []
    for builder_id, builder in BUILDERS:
        tasks = builder(params)
        if tasks:
            selection.append((builder_id, tasks))
    generated = build_generated_tasks(params, query_top_n)
    if generated:
        selection.append((BuilderId.GENERATED, generated))

    logger.debug(
        "selector.selected",
        builders=[builder_id.value for builder_id, _ in selection],
        tasks=sum(len(tasks) for _, tasks in selection),
    )
    return selection


def flatten(selection: Iterable[tuple[BuilderId, list[SearchTask]]]) -> list[SearchTask]:
    return [task for _, tasks in selection for task in tasks]


__all__ = [
    "BuilderId",
    "BUILDERS",
    "select_tasks",
    "flatten",
    "plausible_username",
    "relative_slug",
]
