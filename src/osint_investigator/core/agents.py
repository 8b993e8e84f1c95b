from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from osint_investigator.core.errors import UnknownAgentError

WEB_SEARCH_FUNCTION = "osint-web-search"


class AgentKind(str, Enum):
    """Closed set of lookup agents the orchestrator can route to."""

    WEB = "web"
    WEB_QUERY = "web_query"
    WEB_KEYWORDS = "web_keywords"
    WEB_EMAIL_EXACT = "web_email_exact"
    WEB_PHONE_SEARCH = "web_phone_search"
    ADDRESS_OWNER_SEARCH = "address_owner_search"
    ADDRESS_RESIDENTS_SEARCH = "address_residents_search"
    RELATIVE_CONNECTION_SEARCH = "relative_connection_search"

    HOLEHE = "holehe"
    EMAIL = "email"
    SOCIAL = "social"
    SOCIAL_NAME = "social_name"
    OSINT_INDUSTRIES = "osint_industries"
    LEAKCHECK = "leakcheck"
    LEAKCHECK_USERNAME = "leakcheck_username"
    LEAKCHECK_PHONE = "leakcheck_phone"
    SELECTOR_ENRICHMENT = "selector_enrichment"
    SHERLOCK = "sherlock"
    SHERLOCK_FROM_EMAIL = "sherlock_from_email"
    TOUTATIS = "toutatis"
    TOUTATIS_FROM_EMAIL = "toutatis_from_email"
    INSTALOADER = "instaloader"
    INSTALOADER_FROM_EMAIL = "instaloader_from_email"
    PHONE = "phone"
    PEOPLE_SEARCH = "people_search"
    PEOPLE_SEARCH_PHONE = "people_search_phone"
    PEOPLE_SEARCH_RELATIVE = "people_search_relative"
    IDCRAWL = "idcrawl"
    ADDRESS = "address"
    PROPERTY_RECORDS = "property_records"
    STATE_BUSINESS = "state_business"
    SUNBIZ = "sunbiz"
    COURT_RECORDS = "court_records"
    VOTER_RECORDS = "voter_records"

    @property
    def spec(self) -> "AgentSpec":
        return AGENT_SPECS[self]

    @property
    def is_web_class(self) -> bool:
        return AGENT_SPECS[self].web_class

    @classmethod
    def from_search_type(cls, search_type: str) -> "AgentKind":
        """Resolve a search type such as ``voter_records_fl`` to its agent kind.

        The longest kind value that equals the search type or prefixes it
        followed by ``_`` wins, so ``sherlock_from_email`` never resolves to
        ``sherlock``.
        """
        key = (search_type or "").strip().lower()
        best: AgentKind | None = None
        for kind in cls:
            if key == kind.value or key.startswith(f"{kind.value}_"):
                if best is None or len(kind.value) > len(best.value):
                    best = kind
        if best is None:
            raise UnknownAgentError(f"Unknown agent type: {search_type!r}")
        return best


@dataclass(frozen=True, slots=True)
class AgentSpec:
    """Static routing facts for one agent kind."""

    function: str
    web_class: bool = False


AGENT_SPECS: dict[AgentKind, AgentSpec] = {
    AgentKind.WEB: AgentSpec(WEB_SEARCH_FUNCTION, web_class=True),
    AgentKind.WEB_QUERY: AgentSpec(WEB_SEARCH_FUNCTION, web_class=True),
    AgentKind.WEB_KEYWORDS: AgentSpec(WEB_SEARCH_FUNCTION, web_class=True),
    AgentKind.WEB_EMAIL_EXACT: AgentSpec(WEB_SEARCH_FUNCTION, web_class=True),
    AgentKind.WEB_PHONE_SEARCH: AgentSpec(WEB_SEARCH_FUNCTION, web_class=True),
    AgentKind.ADDRESS_OWNER_SEARCH: AgentSpec(WEB_SEARCH_FUNCTION, web_class=True),
    AgentKind.ADDRESS_RESIDENTS_SEARCH: AgentSpec(WEB_SEARCH_FUNCTION, web_class=True),
    AgentKind.RELATIVE_CONNECTION_SEARCH: AgentSpec(WEB_SEARCH_FUNCTION, web_class=True),
    AgentKind.HOLEHE: AgentSpec("osint-holehe"),
    AgentKind.EMAIL: AgentSpec("osint-email-lookup"),
    AgentKind.SOCIAL: AgentSpec("osint-social-search"),
    AgentKind.SOCIAL_NAME: AgentSpec("osint-social-search"),
    AgentKind.OSINT_INDUSTRIES: AgentSpec("osint-industries"),
    AgentKind.LEAKCHECK: AgentSpec("osint-leakcheck"),
    AgentKind.LEAKCHECK_USERNAME: AgentSpec("osint-leakcheck"),
    AgentKind.LEAKCHECK_PHONE: AgentSpec("osint-leakcheck"),
    AgentKind.SELECTOR_ENRICHMENT: AgentSpec("osint-selector-enrichment"),
    AgentKind.SHERLOCK: AgentSpec("osint-sherlock"),
    AgentKind.SHERLOCK_FROM_EMAIL: AgentSpec("osint-sherlock"),
    AgentKind.TOUTATIS: AgentSpec("osint-toutatis"),
    AgentKind.TOUTATIS_FROM_EMAIL: AgentSpec("osint-toutatis"),
    AgentKind.INSTALOADER: AgentSpec("osint-instaloader"),
    AgentKind.INSTALOADER_FROM_EMAIL: AgentSpec("osint-instaloader"),
    AgentKind.PHONE: AgentSpec("osint-phone-lookup"),
    AgentKind.PEOPLE_SEARCH: AgentSpec("osint-people-search"),
    AgentKind.PEOPLE_SEARCH_PHONE: AgentSpec("osint-people-search"),
    AgentKind.PEOPLE_SEARCH_RELATIVE: AgentSpec("osint-people-search"),
    AgentKind.IDCRAWL: AgentSpec("osint-idcrawl"),
    AgentKind.ADDRESS: AgentSpec("osint-address-search"),
    AgentKind.PROPERTY_RECORDS: AgentSpec("osint-property-records"),
    AgentKind.STATE_BUSINESS: AgentSpec("osint-state-business-search"),
    AgentKind.SUNBIZ: AgentSpec("osint-sunbiz-search"),
    AgentKind.COURT_RECORDS: AgentSpec("osint-court-records"),
    # Voter lookups are one function per state; the task payload carries the state.
    AgentKind.VOTER_RECORDS: AgentSpec("osint-{state}-voter-lookup"),
}

WEB_CLASS_KINDS = frozenset(kind for kind, spec in AGENT_SPECS.items() if spec.web_class)

__all__ = ["AgentKind", "AgentSpec", "AGENT_SPECS", "WEB_CLASS_KINDS", "WEB_SEARCH_FUNCTION"]
