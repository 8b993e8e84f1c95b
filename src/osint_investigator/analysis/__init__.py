from .name_matching import (
    NameMatch,
    Relative,
    check_name_match,
    extract_potential_relatives,
    is_keyword_potential_relative,
    is_valid_first_name,
    split_name,
)
from .registries import (
    STATE_BUSINESS_REGISTRIES,
    STATE_BUSINESS_SEARCH_STATES,
    STATE_PROPERTY_ASSESSORS,
    VOTER_LOOKUP_STATES,
    detect_state_code,
    get_property_assessors,
    get_state_registry,
    normalize_address_for_search,
    parse_location_from_address,
)
from .urls import display_domain, normalize_url

__all__ = [
    "NameMatch",
    "Relative",
    "check_name_match",
    "extract_potential_relatives",
    "is_keyword_potential_relative",
    "is_valid_first_name",
    "split_name",
    "STATE_BUSINESS_REGISTRIES",
    "STATE_BUSINESS_SEARCH_STATES",
    "STATE_PROPERTY_ASSESSORS",
    "VOTER_LOOKUP_STATES",
    "detect_state_code",
    "get_property_assessors",
    "get_state_registry",
    "normalize_address_for_search",
    "parse_location_from_address",
    "display_domain",
    "normalize_url",
]
