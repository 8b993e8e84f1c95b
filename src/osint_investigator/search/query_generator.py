from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Mapping

from osint_investigator.analysis.registries import parse_location_from_address, split_street_line
from osint_investigator.core.state import GeneratedQuery, SearchParameters
from osint_investigator.utils import get_logger

# Relative value of each filled placeholder; unknown parameters weigh 1.
PARAM_WEIGHTS: Mapping[str, int] = {
    "first_name": 10,
    "middle_name": 10,
    "last_name": 20,
    "house_number": 5,
    "street": 15,
    "city": 10,
    "state": 5,
    "zip": 10,
    "age": 5,
    "email": 100,
    "phone": 50,
    "email_username": 5,
    "username": 40,
    "keyword": 0,
    "spouse_first_name": 3,
    "spouse_last_name": 3,
}


@dataclass(frozen=True, slots=True)
class QueryTemplate:
    template: str
    priority: int
    base_value: int


QUERY_TEMPLATES: tuple[QueryTemplate, ...] = (
    # Name + full address
    QueryTemplate('"{first_name} {last_name}" "{house_number} {street} {city} {state} {zip}"', 1, 10000),
    QueryTemplate('"{first_name} {last_name}" "{house_number} {street} {city}, {state} {zip}"', 1, 9960),
    QueryTemplate('"{first_name} {last_name}" "{house_number} {street} {city} {state}"', 2, 9920),
    QueryTemplate('"{first_name} {last_name}" "{phone}" "{house_number} {street} {city} {state}"', 2, 9880),
    QueryTemplate('"{first_name} {last_name}" "{house_number} {street} {city}"', 3, 9840),
    QueryTemplate('"{first_name} {last_name}" "{email}"', 3, 9800),
    QueryTemplate('"{email}"', 5, 9760),
    QueryTemplate('"{first_name} {last_name}" "{phone}" "{city} {state}"', 7, 9720),
    QueryTemplate('"{first_name} {last_name}" "{street} {city}"', 10, 9680),
    QueryTemplate('"{first_name} {last_name}" {age} "{house_number} {street} {city} {state}"', 12, 9640),
    QueryTemplate('"{first_name} {last_name}" {age} "{house_number} {street} {city}"', 13, 9600),
    QueryTemplate('"{first_name} {last_name}" {age} "{street} {city}"', 15, 9560),
    QueryTemplate('"{first_name} {last_name}" "{house_number} {street}"', 15, 9520),
    QueryTemplate('{first_name} {last_name} "{phone}" "{house_number} {street} {city} {state}"', 17, 9480),
    QueryTemplate('"{first_name} {last_name}" {age} "{city} {state}"', 18, 9440),
    QueryTemplate('"{first_name} {middle_name} {last_name}" "{phone}"', 22, 9320),
    QueryTemplate('"{first_name} {last_name}" "{street}"', 22, 9280),
    QueryTemplate('{first_name} {last_name} "{email}"', 25, 9240),
    # Phone and email username
    QueryTemplate('"{first_name} {last_name}" {email_username}', 45, 9200),
    QueryTemplate('"{first_name} {last_name}" "{phone}"', 45, 9160),
    QueryTemplate('{first_name} "{phone}"', 46, 9120),
    QueryTemplate('"{spouse_first_name} {spouse_last_name}" "{phone}"', 50, 9000),
    QueryTemplate('"{first_name} {last_name}" "{phone}" {city}', 55, 8920),
    QueryTemplate('"{first_name} {middle_name} {last_name}" "{phone}"', 75, 8760),
    QueryTemplate('"{first_name} {last_name}" {keyword}', 80, 8360),
    QueryTemplate('"{first_name} {middle_name} {last_name}"', 85, 8240),
    # Username and social
    QueryTemplate('"{first_name} {last_name}" "@{username}"', 100, 8160),
    QueryTemplate('"{first_name} {last_name}" "{employer}"', 100, 8100),
    QueryTemplate('"{phone}"', 110, 8080),
    QueryTemplate('"{first_name} {last_name}" site:linkedin.com "{employer}"', 110, 8000),
    QueryTemplate('"{first_name} {last_name}"', 120, 7520),
    QueryTemplate('{first_name} "@{username}"', 120, 7800),
    QueryTemplate('"{email_username}@"', 120, 7760),
    QueryTemplate('"{email_username}"', 180, 6200),
    QueryTemplate('"{first_name} {last_name}" "{phone}"', 180, 6240),
    QueryTemplate('{last_name} "{phone}" "{city} {state}"', 180, 6160),
    QueryTemplate('site:facebook.com "{first_name} {last_name}"', 180, 6040),
    QueryTemplate('site:linkedin.com "{first_name} {last_name}"', 180, 6020),
    QueryTemplate('site:twitter.com "{first_name} {last_name}"', 190, 5900),
    QueryTemplate('site:instagram.com "{username}"', 190, 5880),
    QueryTemplate('"{phone}"', 200, 5720),
    QueryTemplate('"{first_name} {last_name}" {keyword}', 250, 4880),
    # Fallbacks
    QueryTemplate('"{last_name}, {first_name}"', 300, 3760),
    QueryTemplate('"{first_name} {last_name}" {age} {city}', 300, 3720),
    QueryTemplate('{first_name} {last_name} {city} {state}', 370, 2320),
    QueryTemplate('{first_name} {last_name} "{house_number} {street} {city} {state}"', 400, 1080),
)

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


def format_phone(phone: str) -> str:
    """Format a 10-digit (or 1-prefixed 11-digit) number as ``(###)###-####``."""
    digits = re.sub(r"\D", "", phone)
    if len(digits) == 11 and digits.startswith("1"):
        digits = digits[1:]
    if len(digits) == 10:
        return f"({digits[:3]}){digits[3:6]}-{digits[6:]}"
    return phone


def query_params_from_search(params: SearchParameters) -> dict[str, Any]:
    """Flatten search parameters into template placeholders."""
    values: dict[str, Any] = {}
    if params.full_name:
        parts = params.full_name.split()
        values["first_name"] = parts[0]
        values["last_name"] = parts[-1]
        if len(parts) > 2:
            values["middle_name"] = " ".join(parts[1:-1])
    if params.address:
        house_number, street = split_street_line(params.address)
        if house_number:
            values["house_number"] = house_number
        if street:
            values["street"] = street
        values.update(parse_location_from_address(params.address))
        values.pop("county", None)
    if params.email:
        values["email"] = params.email
        values["email_username"] = params.email.split("@")[0]
    if params.phone:
        values["phone"] = format_phone(params.phone)
    if params.username:
        values["username"] = params.username.lstrip("@")
    if params.keyword_list:
        values["keyword"] = params.keyword_list[0]
    return {key: value for key, value in values.items() if value not in (None, "")}


class QueryGenerator:
    """Ranks web-search queries by filling weighted templates with known parameters."""

    def __init__(
        self,
        templates: tuple[QueryTemplate, ...] = QUERY_TEMPLATES,
        weights: Mapping[str, int] = PARAM_WEIGHTS,
    ) -> None:
        self.templates = templates
        self.weights = weights
        self.logger = get_logger(__name__)

    def generate_from_values(self, values: Mapping[str, Any], top_n: int = 50) -> list[GeneratedQuery]:
        candidates: list[GeneratedQuery] = []
        for template in self.templates:
            names = _PLACEHOLDER.findall(template.template)
            if not names or any(values.get(name) in (None, "") for name in names):
                continue
            query = _PLACEHOLDER.sub(lambda match: str(values[match.group(1)]), template.template)
            # A zero weight still counts as 1, so keyword-only templates keep a value.
            input_value = sum(self.weights.get(name) or 1 for name in names)
            candidates.append(
                GeneratedQuery(
                    query=query.strip(),
                    priority=template.priority,
                    total_value=round(template.base_value * input_value / 100),
                    template=template.template,
                )
            )

        candidates.sort(key=lambda item: (item.priority, -item.total_value))

        unique: list[GeneratedQuery] = []
        seen: set[str] = set()
        for candidate in candidates:
            if candidate.query in seen:
                continue
            seen.add(candidate.query)
            unique.append(candidate)
            if len(unique) >= top_n:
                break

        self.logger.debug("query_generator.generated", candidates=len(candidates), returned=len(unique))
        return unique

    def generate(self, params: SearchParameters, top_n: int = 50) -> list[GeneratedQuery]:
        """Generate the top ``top_n`` queries for an investigation's parameters."""
        return self.generate_from_values(query_params_from_search(params), top_n)
