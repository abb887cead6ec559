"""Candidate extraction from case payloads."""

from __future__ import annotations

from .candidates import CandidateEntity
from .extract import (
    REFERRAL_EMAIL_LABEL,
    REFERRAL_SOURCE_LABEL,
    TEXT_FIELDS,
    ExtractionStatistics,
    extract_candidates,
    summarize_candidates,
)
from .names import (
    ORGANIZATION_INDICATORS,
    PLACEHOLDER_VALUES,
    ParsedName,
    classify_custom_field_label,
    has_text_value,
    is_company_name,
    parse_display_name,
)

__all__ = [
    "ORGANIZATION_INDICATORS",
    "PLACEHOLDER_VALUES",
    "REFERRAL_EMAIL_LABEL",
    "REFERRAL_SOURCE_LABEL",
    "TEXT_FIELDS",
    "CandidateEntity",
    "ExtractionStatistics",
    "ParsedName",
    "classify_custom_field_label",
    "extract_candidates",
    "has_text_value",
    "is_company_name",
    "parse_display_name",
    "summarize_candidates",
]
