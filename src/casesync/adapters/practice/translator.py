"""Translate practice API matters into source case records."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from casesync.domain.ports.fetching import SourceCaseRecord

from .schema import MatterPayload

if TYPE_CHECKING:
    from collections.abc import Mapping

# lower-cased custom field label -> case text field
TEXT_FIELD_LABELS: Final[dict[str, str]] = {
    "buyer 1 name": "buyer_1_name",
    "buyer 2 name": "buyer_2_name",
    "rep 1 seller 1 name": "seller_1_name",
    "rep 1 seller 2 name": "seller_2_name",
    "bank": "bank",
    "banking institution": "bank",
}


def text_fields_from(matter: MatterPayload) -> dict[str, str]:
    """First non-blank value per text field, in custom field order."""

    values: dict[str, str] = {}
    for field_value in matter.custom_field_values:
        label = field_value.label
        if label is None or field_value.value_string is None:
            continue
        target = TEXT_FIELD_LABELS.get(label.strip().lower())
        if target is not None and target not in values:
            values[target] = field_value.value_string
    return values


def parse_matter(raw: Mapping[str, object]) -> SourceCaseRecord:
    """Raises ``pydantic.ValidationError`` when the matter has no usable id."""

    matter = MatterPayload.model_validate(raw)
    text = text_fields_from(matter)
    return SourceCaseRecord(
        external_id=matter.id,
        name=matter.title,
        status=matter.status,
        payload=dict(raw),
        buyer_1_name=text.get("buyer_1_name"),
        buyer_2_name=text.get("buyer_2_name"),
        seller_1_name=text.get("seller_1_name"),
        seller_2_name=text.get("seller_2_name"),
        bank=text.get("bank"),
        updated_at=matter.updated_at,
    )
