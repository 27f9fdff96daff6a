"""REDCap data dictionary models for redcaplake.

Metadata records are parsed into typed FieldMetadata at the API boundary.
Absent keys become empty strings; downstream code never checks whether an attribute exists.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


class ValueType:
    """Value type identifiers used by the lake's variable vocabulary."""

    INTEGER = 1
    FLOAT = 2
    STRING = 3
    DATE = 4
    DATETIME = 5
    TIME = 6
    CATEGORY = 7
    MULTIRESPONSE = 8


def _text(record: Dict[str, Any], key: str) -> str:
    value = record.get(key)
    if value is None:
        return ""
    return str(value).strip()


@dataclass(frozen=True)
class FieldMetadata:
    """A single row of the REDCap data dictionary."""

    field_name: str
    field_type: str = ""
    form_name: str = ""
    field_label: str = ""
    select_choices_or_calculations: str = ""
    text_validation_type_or_show_slider_number: str = ""

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> Optional["FieldMetadata"]:
        """Build a FieldMetadata from one decoded JSON object.

        Returns:
            FieldMetadata, or None when the record has no usable field_name.
        """
        name = _text(record, "field_name")
        if not name:
            return None
        return cls(
            field_name=name,
            field_type=_text(record, "field_type"),
            form_name=_text(record, "form_name"),
            field_label=_text(record, "field_label"),
            select_choices_or_calculations=_text(record, "select_choices_or_calculations"),
            text_validation_type_or_show_slider_number=_text(
                record, "text_validation_type_or_show_slider_number"
            ),
        )

    @property
    def normalized_type(self) -> str:
        return self.field_type.lower()


@dataclass(frozen=True)
class ChoiceItem:
    """One coded answer from a radio/dropdown/checkbox choice list."""

    value: int
    code: str
    description: str
