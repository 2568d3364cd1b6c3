"""Numbering-plan XML -> PhoneTerritoryRecord per alpha-2 code."""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from pathlib import Path

from localedb.common.models import FormatRule, NumberType, PhoneTerritoryRecord
from localedb.sources.countries import LoadResult

NUMBER_TYPES = (
    "fixedLine",
    "mobile",
    "tollFree",
    "premiumRate",
    "sharedCost",
    "personalNumber",
    "voip",
    "pager",
    "uan",
    "voicemail",
)
ALPHA2_RE = re.compile(r"^[A-Z]{2}$")
_WHITESPACE_RE = re.compile(r"\s+")


def _compact(text: str | None) -> str:
    """Patterns are wrapped over several lines in the source file."""
    return _WHITESPACE_RE.sub("", text or "")


def _child_text(element: ET.Element, tag: str) -> str:
    child = element.find(tag)
    return (child.text or "").strip() if child is not None else ""


def parse_possible_lengths(value: str | None) -> tuple[int, ...]:
    """Expand ``"[4-6],8"`` into ``(4, 5, 6, 8)``; ``"-1"`` marks an unused type."""
    lengths: set[int] = set()
    for part in (value or "").split(","):
        part = part.strip()
        if not part:
            continue
        if part.startswith("[") and part.endswith("]"):
            low, _, high = part[1:-1].partition("-")
            if low.isdigit() and high.isdigit():
                lengths.update(range(int(low), int(high) + 1))
        elif part.isdigit():
            lengths.add(int(part))
    return tuple(sorted(lengths))


def _format_rule(element: ET.Element) -> FormatRule | None:
    pattern = element.get("pattern")
    template = _child_text(element, "format")
    if not pattern or not template:
        return None
    international = element.find("intlFormat")
    return FormatRule(
        pattern=_compact(pattern),
        template=template,
        leading_digits=tuple(_compact(ld.text) for ld in element.findall("leadingDigits") if ld.text),
        international_template=(international.text or "").strip() if international is not None else None,
        national_prefix_rule=element.get("nationalPrefixFormattingRule"),
    )


def _number_type(territory: ET.Element, name: str) -> NumberType | None:
    element = territory.find(name)
    if element is None:
        return None
    lengths_el = element.find("possibleLengths")
    return NumberType(
        name=name,
        pattern=_compact(_child_text(element, "nationalNumberPattern")),
        example_number=_child_text(element, "exampleNumber"),
        possible_lengths=parse_possible_lengths(lengths_el.get("national") if lengths_el is not None else None),
    )


def parse_territory(territory: ET.Element) -> PhoneTerritoryRecord | None:
    alpha2 = (territory.get("id") or "").upper()
    calling_code = territory.get("countryCode") or ""
    # Non-geographic entities such as "001" have no country document.
    if not ALPHA2_RE.match(alpha2) or not calling_code:
        return None

    rules = tuple(
        rule for rule in (_format_rule(el) for el in territory.findall("availableFormats/numberFormat")) if rule
    )
    types: dict[str, NumberType] = {}
    for name in NUMBER_TYPES:
        number_type = _number_type(territory, name)
        if number_type is not None:
            types[name] = number_type
    general = territory.find("generalDesc")
    return PhoneTerritoryRecord(
        alpha2=alpha2,
        calling_code=calling_code,
        national_prefix=territory.get("nationalPrefix") or "",
        international_prefix=territory.get("internationalPrefix") or "",
        general_pattern=_compact(_child_text(general, "nationalNumberPattern")) if general is not None else "",
        format_rules=rules,
        types=types,
    )


def load_phone_metadata(path: Path) -> LoadResult:
    """Parse the territories file; the first entry for a shared alpha-2 wins."""
    result = LoadResult()
    if not path.exists():
        result.warnings.append("NUMBERING_PLAN_MISSING")
        return result
    try:
        root = ET.parse(path).getroot()
    except (OSError, ET.ParseError):
        result.warnings.append("NUMBERING_PLAN_MALFORMED")
        return result

    for territory in root.iter("territory"):
        record = parse_territory(territory)
        if record is None:
            result.dropped += 1
            continue
        result.records.setdefault(record.alpha2, record)
    return result
