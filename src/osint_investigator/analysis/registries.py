from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Mapping


@dataclass(frozen=True, slots=True)
class BusinessRegistry:
    domain: str
    name: str
    search_types: tuple[str, ...] = ("officer", "agent", "business")


@dataclass(frozen=True, slots=True)
class PropertyAssessor:
    domains: tuple[str, ...]
    name: str


STATE_NAMES: Mapping[str, str] = {
    "FL": "FLORIDA",
    "CA": "CALIFORNIA",
    "NY": "NEW YORK",
    "TX": "TEXAS",
    "PA": "PENNSYLVANIA",
    "NJ": "NEW JERSEY",
    "IL": "ILLINOIS",
    "OH": "OHIO",
    "GA": "GEORGIA",
    "NC": "NORTH CAROLINA",
    "MI": "MICHIGAN",
    "AZ": "ARIZONA",
    "WA": "WASHINGTON",
    "CO": "COLORADO",
    "MA": "MASSACHUSETTS",
    "VA": "VIRGINIA",
    "NV": "NEVADA",
    "MD": "MARYLAND",
}
_CODES_BY_NAME = {name: code for code, name in STATE_NAMES.items()}

STATE_BUSINESS_REGISTRIES: Mapping[str, BusinessRegistry] = {
    "FL": BusinessRegistry("dos.fl.gov", "Florida SunBiz", ("officer", "registered agent", "business")),
    "CA": BusinessRegistry("bizfileonline.sos.ca.gov", "California Business Search"),
    "NY": BusinessRegistry("apps.dos.ny.gov", "NY Business Entity Search"),
    "TX": BusinessRegistry("mycpa.cpa.state.tx.us", "Texas Comptroller", ("officer", "business")),
    "PA": BusinessRegistry("file.dos.pa.gov", "PA Business Entity Search"),
    "NJ": BusinessRegistry("njportal.com", "NJ Business Gateway"),
    "IL": BusinessRegistry("apps.ilsos.gov", "Illinois Business Search"),
    "OH": BusinessRegistry("businesssearch.ohiosos.gov", "Ohio Business Search"),
    "GA": BusinessRegistry("ecorp.sos.ga.gov", "Georgia Business Search"),
    "NC": BusinessRegistry("sosnc.gov", "NC Business Search"),
    "MI": BusinessRegistry("cofs.lara.state.mi.us", "Michigan Business Search"),
    "AZ": BusinessRegistry("azsos.gov", "Arizona Corporation Commission"),
    "WA": BusinessRegistry("sos.wa.gov", "Washington Business Search"),
    "CO": BusinessRegistry("sos.state.co.us", "Colorado Business Search"),
    "MA": BusinessRegistry("corp.sec.state.ma.us", "Massachusetts Corporations"),
    "VA": BusinessRegistry("scc.virginia.gov", "Virginia Business Search"),
    "NV": BusinessRegistry("nvsos.gov", "Nevada Business Search"),
    "MD": BusinessRegistry("egov.maryland.gov", "Maryland Business Express"),
}

STATE_PROPERTY_ASSESSORS: Mapping[str, PropertyAssessor] = {
    "FL": PropertyAssessor(
        (
            "appraiser.miamidade.gov",
            "bcpa.net",
            "pabroward.gov",
            "ocpafl.org",
            "hcpafl.org",
            "pcpao.org",
            "leepa.org",
            "scpafl.org",
            "ccappraiser.com",
        ),
        "Florida Property Appraiser",
    ),
    "CA": PropertyAssessor(
        ("assessor.lacounty.gov", "sccassessor.org", "assr.sfdlg.org", "acgov.org", "sdcounty.ca.gov"),
        "California Assessor",
    ),
    "TX": PropertyAssessor(
        ("hcad.org", "dallascad.org", "bcad.org", "taad.org", "traviscad.org", "collincad.org"),
        "Texas Appraisal District",
    ),
    "NY": PropertyAssessor(
        ("nyc.gov/finance", "nassaucountyny.gov", "suffolkcountyny.gov", "westchestergov.com"),
        "NY Property Records",
    ),
    "PA": PropertyAssessor(
        ("philadelphiarealestate.phila.gov", "alleghenycounty.us/real-estate", "montcopa.org"),
        "PA Property Assessment",
    ),
    "NJ": PropertyAssessor(("njactb.org", "tax1.co.monmouth.nj.us", "bergencounty.com"), "NJ Property Tax Records"),
    "IL": PropertyAssessor(("cookcountyassessor.com", "cciillinois.org"), "Illinois Assessor"),
    "OH": PropertyAssessor(
        ("fiscalofficer.cuyahogacounty.us", "auditor.franklincountyohio.gov", "hamiltoncountyauditor.org"),
        "Ohio Auditor/Assessor",
    ),
    "GA": PropertyAssessor(
        ("qpublic.net", "fultoncountyga.gov", "cobbassessor.org", "dekalbcountyga.gov"),
        "Georgia Property Records",
    ),
    "NC": PropertyAssessor(("wake.gov", "mecklenburgcountync.gov", "guilfordcountync.gov"), "NC Property Tax"),
    "AZ": PropertyAssessor(("mcassessor.maricopa.gov", "asr.pima.gov", "assessor.pinal.gov"), "Arizona Assessor"),
    "NV": PropertyAssessor(("clarkcountynv.gov", "washoecounty.us/assessor"), "Nevada Assessor"),
    "CO": PropertyAssessor(
        ("denvergov.org/assessor", "arapahoegov.com/assessor", "elpasoco.com/assessor"),
        "Colorado Assessor",
    ),
    "WA": PropertyAssessor(
        ("kingcounty.gov/assessor", "co.pierce.wa.us/assessor", "snoco.org/assessor"),
        "Washington Assessor",
    ),
    "MI": PropertyAssessor(("waynecounty.com", "oakgov.com/treasury", "accesskent.com"), "Michigan Property Records"),
    "VA": PropertyAssessor(
        ("fairfaxcounty.gov/tax", "loudoun.gov/commissioner", "henrico.us/real-estate"),
        "Virginia Property Records",
    ),
    "MA": PropertyAssessor(("cityofboston.gov/assessing", "sec.state.ma.us/rod"), "Massachusetts Property Records"),
    "MD": PropertyAssessor(("sdat.dat.maryland.gov", "baltimorecity.gov/real-property"), "Maryland Property Records"),
}

# States served by the dedicated state business search agent (FL goes to Sunbiz).
STATE_BUSINESS_SEARCH_STATES: tuple[str, ...] = ("CA", "NY", "TX")

# States with a voter-roll lookup agent.
VOTER_LOOKUP_STATES: tuple[str, ...] = ("CA", "FL", "GA", "NC", "NY", "OH", "PA", "TX")

_STATE_CODE_WITH_ZIP = re.compile(r",\s*([A-Z]{2})\s*\d{5}", re.IGNORECASE)
_STATE_CODE_AT_END = re.compile(r",\s*([A-Z]{2})\s*$", re.IGNORECASE)
_CITY_STATE = re.compile(r",\s*([^,]+),\s*([A-Z]{2})\b", re.IGNORECASE)
_ZIP = re.compile(r"\b(\d{5})(?:-\d{4})?\b")
_COUNTY = re.compile(r"([^,]+?)\s+County\b", re.IGNORECASE)

_STREET_ABBREVIATIONS = (
    (re.compile(r"\bstreet\b", re.IGNORECASE), "st"),
    (re.compile(r"\bavenue\b", re.IGNORECASE), "ave"),
    (re.compile(r"\bdrive\b", re.IGNORECASE), "dr"),
    (re.compile(r"\broad\b", re.IGNORECASE), "rd"),
    (re.compile(r"\blane\b", re.IGNORECASE), "ln"),
    (re.compile(r"\bcourt\b", re.IGNORECASE), "ct"),
    (re.compile(r"\bapartment\b", re.IGNORECASE), "apt"),
    (re.compile(r"\bsuite\b", re.IGNORECASE), "ste"),
)


def _state_key(state_input: str) -> str | None:
    normalized = " ".join(state_input.upper().split())
    if normalized in STATE_NAMES:
        return normalized
    return _CODES_BY_NAME.get(normalized)


def get_state_registry(state_input: str | None) -> BusinessRegistry | None:
    """Business registry for a state code or full state name."""
    if not state_input:
        return None
    key = _state_key(state_input)
    return STATE_BUSINESS_REGISTRIES.get(key) if key else None


def get_property_assessors(state_input: str | None) -> PropertyAssessor | None:
    if not state_input:
        return None
    key = _state_key(state_input)
    return STATE_PROPERTY_ASSESSORS.get(key) if key else None


def detect_state_code(address: str | None) -> str | None:
    """Detect a two-letter US state code in a free-form address.

    ``, FL 33101`` and a trailing ``, FL`` are recognised, then full state
    names following a comma (``..., Florida``).
    """
    if not address:
        return None
    match = _STATE_CODE_WITH_ZIP.search(address) or _STATE_CODE_AT_END.search(address)
    if match:
        return match.group(1).upper()

    for segment in address.split(",")[1:]:
        words = re.sub(r"[\d-]+", " ", segment).upper().split()
        for size in (2, 1):
            for start in range(0, max(len(words) - size + 1, 0)):
                code = _CODES_BY_NAME.get(" ".join(words[start:start + size]))
                if code:
                    return code
    return None


def parse_location_from_address(address: str | None) -> dict[str, str]:
    """Extract ``city``, ``state``, ``zip`` and ``county`` where present."""
    if not address:
        return {}
    location: dict[str, str] = {}
    match = _CITY_STATE.search(address)
    if match:
        location["city"] = match.group(1).strip()
        location["state"] = match.group(2).strip().upper()
    else:
        state = detect_state_code(address)
        if state:
            location["state"] = state
    zip_match = _ZIP.search(address.split(",", 1)[-1]) if "," in address else None
    if zip_match:
        location["zip"] = zip_match.group(1)
    county = _COUNTY.search(address)
    if county:
        location["county"] = county.group(1).strip()
    return location


def normalize_address_for_search(address: str | None) -> str:
    """Street line of an address, lower-cased with common suffixes abbreviated."""
    if not address:
        return ""
    street = address.split(",")[0].lower().strip()
    for pattern, abbreviation in _STREET_ABBREVIATIONS:
        street = pattern.sub(abbreviation, street)
    street = re.sub(r"[#.,]", "", street)
    return " ".join(street.split())


def split_street_line(address: str | None) -> tuple[str | None, str | None]:
    """Split ``"123 Main St, ..."`` into house number and street."""
    if not address:
        return None, None
    street_line = address.split(",")[0].strip()
    match = re.match(r"^(\d+[A-Za-z]?)\s+(.+)$", street_line)
    if match:
        return match.group(1), match.group(2).strip()
    return None, street_line or None


__all__ = [
    "BusinessRegistry",
    "PropertyAssessor",
    "STATE_NAMES",
    "STATE_BUSINESS_REGISTRIES",
    "STATE_PROPERTY_ASSESSORS",
    "STATE_BUSINESS_SEARCH_STATES",
    "VOTER_LOOKUP_STATES",
    "get_state_registry",
    "get_property_assessors",
    "detect_state_code",
    "parse_location_from_address",
    "normalize_address_for_search",
    "split_street_line",
]
