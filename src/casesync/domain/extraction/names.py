"""Heuristics for free-text names and custom-field labels."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Final

from casesync.domain.model import RoleHint

ORGANIZATION_INDICATORS: Final[tuple[str, ...]] = (
    "bank",
    "llc",
    "inc",
    "corp",
    "company",
    "title",
    "escrow",
    "trust",
    "group",
    "associates",
    "partners",
    "law",
    "legal",
    "services",
    "holdings",
    "capital",
)

# anchored at a word start only: "Corporation" counts, "Prince" stays a person
_ORGANIZATION_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"\b(?:" + "|".join(ORGANIZATION_INDICATORS) + r")", re.IGNORECASE
)

PLACEHOLDER_VALUES: Final[frozenset[str]] = frozenset({"", "false", "null", "undefined"})

# evaluated top to bottom; the first rule with a matching keyword wins
LABEL_RULES: Final[tuple[tuple[tuple[str, ...], RoleHint], ...]] = (
    (("settlement", "escrow"), RoleHint.SETTLEMENT_AGENT),
    (("attorney", "lawyer"), RoleHint.ATTORNEY),
    (("internal", "credit"), RoleHint.INTERNAL),
    (("referral", "source"), RoleHint.REFERRAL),
)


@dataclass(frozen=True, slots=True)
class ParsedName:
    first_name: str = ""
    last_name: str = ""
    company: str | None = None

    @property
    def is_company(self) -> bool:
        return self.company is not None


def is_company_name(value: str) -> bool:
    return _ORGANIZATION_PATTERN.search(value) is not None


def parse_display_name(value: object) -> ParsedName:
    """Split a display name into first/last name, or detect a company.

    ``"Smith, John"`` and ``"John Smith"`` both give first ``John`` / last ``Smith``;
    anything containing an organisation indicator is kept whole as a company.
    """

    if not isinstance(value, str):
        return ParsedName()
    trimmed = value.strip()
    if not trimmed:
        return ParsedName()

    if is_company_name(trimmed):
        return ParsedName(company=trimmed)

    parts = [part.strip() for part in trimmed.split(",")]
    if len(parts) >= 2:
        return ParsedName(first_name=parts[1], last_name=parts[0])

    tokens = trimmed.split()
    return ParsedName(first_name=tokens[0], last_name=" ".join(tokens[1:]))


def has_text_value(value: object) -> bool:
    """Whether a free-text field holds a real value rather than a placeholder."""

    if not isinstance(value, str):
        return False
    return value.strip() not in PLACEHOLDER_VALUES


def classify_custom_field_label(label: str | None) -> RoleHint:
    lowered = (label or "").lower()
    for keywords, role_hint in LABEL_RULES:
        if any(keyword in lowered for keyword in keywords):
            return role_hint
    return RoleHint.OTHER
