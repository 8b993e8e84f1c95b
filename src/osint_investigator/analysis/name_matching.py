"""Name matching and relative extraction over free text.

Used by the web-search agent to classify hits and by the merge engine to
annotate items and collect relatives mentioned next to the subject's name
(obituaries, people-search listings, court captions).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

from osint_investigator.utils import get_logger

logger = get_logger(__name__)

# Legal sources put many unrelated names on one page; only adjacent matches count there.
LEGAL_SOURCE_MARKERS = ("pacer", "court", "docket", "case", "filing", "/pdf", ".pdf", "bankruptcy", "judicial")
PROXIMITY_THRESHOLD = 30
MAX_RELATIVES = 25

NON_NAME_WORDS = frozenset({
    "one", "two", "three", "four", "five", "his", "her", "their", "the", "and", "or", "by",
    "with", "of", "in", "at", "to", "from", "for", "on", "as", "was", "were", "is", "are",
    "beloved", "loving", "dear", "late", "brother", "sister", "father", "mother", "wife",
    "husband", "son", "daughter", "grandfather", "grandmother", "uncle", "aunt", "nephew",
    "niece", "cousin", "friend", "side", "alongside", "survived", "preceded", "death",
    "memorial", "service", "funeral", "obituary", "years", "age", "born", "died", "passed",
    "peacefully", "suddenly", "unexpectedly", "after", "before", "during", "view", "vista",
})

COMMON_FIRST_NAMES = frozenset({
    "james", "john", "robert", "michael", "william", "david", "richard", "joseph", "thomas", "charles",
    "christopher", "daniel", "matthew", "anthony", "mark", "donald", "steven", "paul", "andrew", "joshua",
    "kenneth", "kevin", "brian", "george", "timothy", "ronald", "edward", "jason", "jeffrey", "ryan",
    "jacob", "gary", "nicholas", "eric", "jonathan", "stephen", "larry", "justin", "scott", "brandon",
    "benjamin", "samuel", "raymond", "gregory", "frank", "alexander", "patrick", "jack", "dennis", "jerry",
    "tyler", "aaron", "jose", "adam", "nathan", "henry", "douglas", "zachary", "peter", "kyle",
    "mary", "patricia", "jennifer", "linda", "elizabeth", "barbara", "susan", "jessica", "sarah", "karen",
    "lisa", "nancy", "betty", "margaret", "sandra", "ashley", "kimberly", "emily", "donna", "michelle",
    "dorothy", "carol", "amanda", "melissa", "deborah", "stephanie", "rebecca", "sharon", "laura", "cynthia",
    "kathleen", "amy", "angela", "shirley", "anna", "brenda", "pamela", "emma", "nicole", "helen",
    "samantha", "katherine", "christine", "debra", "rachel", "carolyn", "janet", "catherine", "maria", "heather",
    "diane", "ruth", "julie", "olivia", "joyce", "virginia", "victoria", "kelly", "lauren", "christina",
    "joan", "evelyn", "judith", "megan", "andrea", "cheryl", "hannah", "jacqueline", "martha", "gloria",
    "teresa", "ann", "sara", "madison", "frances", "kathryn", "janice", "jean", "abigail", "alice",
    "judy", "sophia", "grace", "denise", "amber", "doris", "marilyn", "danielle", "beverly", "isabella",
    "theresa", "diana", "natalie", "brittany", "charlotte", "marie", "kayla", "alexis", "lori", "chad",
    "moira", "kate", "caroline", "dee",
})

_RELATIONSHIP_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\b(ex-wife|former wife|ex wife)\b", re.IGNORECASE), "ex-spouse"),
    (re.compile(r"\b(ex-husband|former husband|ex husband)\b", re.IGNORECASE), "ex-spouse"),
    (re.compile(r"\b(sons?)\b", re.IGNORECASE), "son"),
    (re.compile(r"\b(daughters?)\b", re.IGNORECASE), "daughter"),
    (re.compile(r"\b(wife|spouse)\b", re.IGNORECASE), "spouse"),
    (re.compile(r"\b(husband)\b", re.IGNORECASE), "spouse"),
    (re.compile(r"\b(brothers?)\b", re.IGNORECASE), "brother"),
    (re.compile(r"\b(sisters?)\b", re.IGNORECASE), "sister"),
    (re.compile(r"\b(grandfather|grandpa)\b", re.IGNORECASE), "grandfather"),
    (re.compile(r"\b(grandmother|grandma)\b", re.IGNORECASE), "grandmother"),
    (re.compile(r"\b(mother|mom)\b", re.IGNORECASE), "mother"),
    (re.compile(r"\b(father|dad)\b", re.IGNORECASE), "father"),
)

_OBITUARY_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\b(?:his|her)\s+(wife|husband|spouse)\s+([A-Z][a-z]{2,15}(?:\s+[A-Z][a-z]{2,15})?)"),
    re.compile(r"\b(?:his|her)\s+(son|daughter|brother|sister|mother|father)\s+([A-Z][a-z]{2,15}(?:\s+[A-Z][a-z]{2,15})?)"),
    re.compile(
        r"\bsurvived\s+by\s+(?:his|her)\s+(wife|husband|spouse|son|daughter|brother|sister)\s+"
        r"([A-Z][a-z]{2,15}(?:\s+[A-Z][a-z]{2,15})?)"
    ),
)

LIST_RELATIONSHIPS = {
    "children": "child",
    "child": "child",
    "kids": "child",
    "sons": "son",
    "daughters": "daughter",
    "grandchildren": "grandchild",
    "grandkids": "grandchild",
    "great-grandchildren": "great-grandchild",
    "great grandchildren": "great-grandchild",
    "siblings": "sibling",
    "brothers": "brother",
    "sisters": "sister",
    "nieces": "niece",
    "nephews": "nephew",
    "cousins": "cousin",
    "step-children": "step-child",
    "stepchildren": "step-child",
}

_NAME_LIST = (
    r"((?:[A-Z][a-z]+(?:\s+[A-Z][a-z]+){0,2})"
    r"(?:\s*,\s*[A-Z][a-z]+(?:\s+[A-Z][a-z]+){0,2})*"
    r"(?:\s+and\s+[A-Z][a-z]+(?:\s+[A-Z][a-z]+){0,2})?)"
)
_LIST_KEYWORDS = "|".join(sorted((re.escape(key) for key in LIST_RELATIONSHIPS), key=len, reverse=True))
_COMMA_LIST = re.compile(
    r"(?:survived\s+by\s+)?(?:his|her)\s+(?:beloved\s+|loving\s+|dear\s+)?"
    rf"({_LIST_KEYWORDS})\s+" + _NAME_LIST,
)
_SURVIVED_BY_LIST = re.compile(r"survived\s+by\s+" + _NAME_LIST)
_LIST_SPLIT = re.compile(r"\s*,\s*|\s+and\s+", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class NameMatch:
    exact: bool
    partial: bool


@dataclass(frozen=True, slots=True)
class Relative:
    name: str
    relationship: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        return {"name": self.name, "relationship": self.relationship}


def split_name(full_name: str | None) -> tuple[str, str]:
    """Split a full name into (first, last); a single token is used for both."""
    parts = (full_name or "").split()
    if not parts:
        return "", ""
    first = parts[0]
    last = " ".join(parts[1:]) or parts[0]
    return first, last


def check_name_match(text: str, full_name: str, source_url: str | None = None) -> NameMatch:
    """Classify how strongly ``full_name`` appears in ``text``.

    exact: the phrase itself, "First X. Last" (up to 15 chars between) or
    "Last, First". partial: first and last name within 30 characters of each
    other, except on legal/court sources where only exact matches count.
    """
    text_lower = text.lower()
    name_lower = " ".join(full_name.lower().split())
    if not name_lower:
        return NameMatch(False, False)
    if name_lower in text_lower:
        return NameMatch(True, True)

    name_parts = [part for part in name_lower.split() if len(part) > 1]
    if len(name_parts) < 2:
        return NameMatch(False, False)

    first = re.escape(name_parts[0])
    last = re.escape(name_parts[-1])
    forward = re.compile(rf"\b{first}\b.{{0,15}}\b{last}\b", re.IGNORECASE)
    reverse = re.compile(rf"\b{last}\b[,;]?\s{{0,5}}\b{first}\b", re.IGNORECASE)
    if forward.search(text) or reverse.search(text):
        return NameMatch(True, True)

    if source_url and any(marker in source_url.lower() for marker in LEGAL_SOURCE_MARKERS):
        logger.debug("name_match.strict_source", url=source_url)
        return NameMatch(False, False)

    first_positions = [m.start() for m in re.finditer(rf"\b{first}\b", text_lower)]
    last_positions = [m.start() for m in re.finditer(rf"\b{last}\b", text_lower)]
    if any(abs(f - l) <= PROXIMITY_THRESHOLD for f in first_positions for l in last_positions):
        return NameMatch(False, True)
    return NameMatch(False, False)


def is_valid_first_name(word: str) -> bool:
    if len(word) < 2 or not word[0].isupper():
        return False
    lower = word.lower()
    if lower in NON_NAME_WORDS:
        return False
    if lower in COMMON_FIRST_NAMES:
        return True
    return len(word) >= 3 and re.fullmatch(r"[A-Z][a-z]+", word) is not None


class _RelativeCollector:
    def __init__(self, primary_name: str) -> None:
        self.primary_lower = primary_name.lower().strip()
        self.relatives: list[Relative] = []
        self._seen: set[str] = set()

    def add(self, name: str, relationship: str | None) -> None:
        key = name.lower()
        if key in self._seen or key == self.primary_lower:
            return
        self._seen.add(key)
        self.relatives.append(Relative(name=name, relationship=relationship))


def _relationship_near(text: str, start: int, end: int) -> str | None:
    context = text[max(0, start - 50):min(len(text), end + 50)]
    for pattern, relationship in _RELATIONSHIP_PATTERNS:
        if pattern.search(context):
            return relationship
    return None


def _names_from_block(block: str) -> Iterable[str]:
    for name in _LIST_SPLIT.split(block):
        name = name.strip()
        if len(name) > 2 and name[0].isupper() and is_valid_first_name(name.split()[0]):
            yield name


def extract_potential_relatives(text: str, primary_name: str) -> list[Relative]:
    """Pull likely relatives of ``primary_name`` out of free text.

    Looks for same-surname mentions, maiden-name and née forms, obituary
    phrasing ("survived by his wife Yana") and comma-separated family lists.
    At most 25 relatives are returned, first-seen order, unique by name.
    """
    collector = _RelativeCollector(primary_name)
    primary_parts = [part for part in primary_name.split() if len(part) > 1]
    primary_first = primary_parts[0].lower() if primary_parts else ""
    primary_last_display = primary_parts[-1] if len(primary_parts) > 1 else ""
    primary_last = primary_last_display.lower()

    if len(primary_last) > 2:
        last = re.escape(primary_last)

        for match in re.finditer(rf"\b([A-Z][a-z]{{2,15}})\s+{last}\b", text, re.IGNORECASE):
            first = match.group(1)
            if not is_valid_first_name(first) or first.lower() == primary_first:
                continue
            name = f"{first.capitalize()} {primary_last_display}"
            collector.add(name, _relationship_near(text.lower(), match.start(), match.end()))

        for match in re.finditer(rf"\b([A-Z][a-z]{{2,15}})\s+{last}\s+([A-Z][a-z]{{2,15}})\b", text, re.IGNORECASE):
            first, married_last = match.group(1), match.group(2)
            if is_valid_first_name(first) and is_valid_first_name(married_last):
                collector.add(f"{first} {primary_last_display} {married_last}", "ex-spouse")

        nee = re.compile(
            rf"\b([A-Z][a-z]{{2,15}})\s+([A-Z][a-z]{{2,15}})\s*[(,]?\s*(?:née|nee|born|maiden name)\s+{last}",
            re.IGNORECASE,
        )
        for match in nee.finditer(text):
            if is_valid_first_name(match.group(1)):
                collector.add(f"{match.group(1)} {match.group(2)}", "spouse")

    for pattern in _OBITUARY_PATTERNS:
        for match in pattern.finditer(text):
            relationship = match.group(1).lower()
            if relationship in ("wife", "husband"):
                relationship = "spouse"
            name = match.group(2)
            if len(name) > 2:
                collector.add(name, relationship)

    for match in _COMMA_LIST.finditer(text):
        relationship = LIST_RELATIONSHIPS.get(match.group(1).lower(), match.group(1).lower())
        for name in _names_from_block(match.group(2)):
            collector.add(name, relationship)

    if len(primary_last) > 2:
        surname = re.compile(rf"\b{re.escape(primary_last)}\b", re.IGNORECASE)
        for match in _SURVIVED_BY_LIST.finditer(text):
            block = match.group(1)
            if not surname.search(block):
                continue
            for name in _names_from_block(block):
                collector.add(name, "family")

    return collector.relatives[:MAX_RELATIVES]


def is_keyword_potential_relative(
    keyword: str,
    primary_name: str,
    provided_relatives: Iterable[str] | None = None,
) -> bool:
    """True when a keyword looks like a relative: a provided relative or a same-surname name."""
    keyword_lower = keyword.lower().strip()
    if not keyword_lower:
        return False
    for relative in provided_relatives or ():
        relative_lower = relative.lower().strip()
        if relative_lower and (
            keyword_lower == relative_lower or keyword_lower in relative_lower or relative_lower in keyword_lower
        ):
            return True

    primary_parts = [part for part in primary_name.split() if len(part) > 1]
    primary_last = primary_parts[-1].lower() if len(primary_parts) > 1 else ""
    if len(primary_last) < 2:
        return False

    keyword_parts = [part for part in keyword_lower.split() if len(part) > 1]
    if len(keyword_parts) >= 2 and keyword_parts[-1] == primary_last:
        return True
    return keyword_lower == primary_last


__all__ = [
    "NameMatch",
    "Relative",
    "split_name",
    "check_name_match",
    "is_valid_first_name",
    "extract_potential_relatives",
    "is_keyword_potential_relative",
]
