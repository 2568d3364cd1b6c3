"""Render a territory's example number through its formatting rules."""

from __future__ import annotations

import re
from typing import Any

from localedb.common.constants import NOT_APPLICABLE_TEMPLATE
from localedb.common.models import FormatRule, PhoneTerritoryRecord

EXAMPLE_TYPE_PREFERENCE = ("mobile", "fixedLine")
_GROUP_REF_RE = re.compile(r"\$(\d+)")


def example_number(territory: PhoneTerritoryRecord) -> str:
    for name in EXAMPLE_TYPE_PREFERENCE:
        number_type = territory.types.get(name)
        if number_type and number_type.example_number:
            return number_type.example_number
    return ""


def _fallback(territory: PhoneTerritoryRecord, example: str) -> str:
    return f"+{territory.calling_code} {example}"


def _render(template: str, match: re.Match) -> str:
    def _group(ref: re.Match) -> str:
        index = int(ref.group(1))
        if index > (match.re.groups or 0):
            return ""
        return match.group(index) or ""

    return _GROUP_REF_RE.sub(_group, template)


def _template_for(rule: FormatRule) -> str:
    international = rule.international_template
    if international and international != NOT_APPLICABLE_TEMPLATE:
        return international
    return rule.template


def apply_rule(rule: FormatRule, digits: str) -> str | None:
    """Render ``digits`` through ``rule``; ``None`` when it does not match or cannot compile."""
    try:
        match = re.fullmatch(rule.pattern, digits)
    except re.error:
        return None
    if match is None:
        return None
    return _render(_template_for(rule), match)


def format_example(territory: PhoneTerritoryRecord) -> str:
    example = example_number(territory)
    if not territory.format_rules or not example:
        return _fallback(territory, example)
    for rule in territory.format_rules:
        rendered = apply_rule(rule, example)
        if rendered is not None:
            return f"+{territory.calling_code} {rendered}"
    return _fallback(territory, example)


def subscriber_number_lengths(territory: PhoneTerritoryRecord) -> list[int]:
    lengths: set[int] = set()
    for number_type in territory.types.values():
        lengths.update(number_type.possible_lengths)
    return sorted(lengths)


def build_phone_section(territory: PhoneTerritoryRecord | None, calling_code: str) -> dict[str, Any]:
    """Country document ``phone`` section; ``calling_code`` is the resolved value."""
    if territory is None:
        return {
            "callingCode": calling_code,
            "trunkPrefix": "",
            "internationalPrefix": "",
            "exampleFormat": f"+{calling_code}" if calling_code else "",
            "subscriberNumberLengths": [],
            "formats": [],
            "types": {},
            "generalPattern": "",
        }
    return {
        "callingCode": calling_code,
        "trunkPrefix": territory.national_prefix,
        "internationalPrefix": territory.international_prefix,
        "exampleFormat": format_example(territory),
        "subscriberNumberLengths": subscriber_number_lengths(territory),
        "formats": [rule.to_dict() for rule in territory.format_rules],
        "types": {name: number_type.to_dict() for name, number_type in sorted(territory.types.items())},
        "generalPattern": territory.general_pattern,
    }
