"""Text processing utilities for redcaplake.

Pure functions for cleaning REDCap rich-text labels, parsing choice lists
and classifying field types. All functions are stateless with no I/O.
"""

from __future__ import annotations

import html
import re
from typing import List, Optional, Tuple

from redcaplake.models.metadata import ChoiceItem, ValueType

_SCRIPT_STYLE_RE = re.compile(r"<(script|style)\b.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")

_COMMA_CHOICE_RE = re.compile(r"^\s*([^,]+?)\s*,\s*(.+)$", re.DOTALL)
_EQUALS_CHOICE_RE = re.compile(r"^\s*([^=]+?)\s*=\s*(.+)$", re.DOTALL)

_ENUM_TYPES = frozenset({"radio", "dropdown", "yesno", "truefalse"})
_DATE_VALIDATIONS = frozenset({"date_ymd", "date_mdy", "date_dmy"})
_DATETIME_VALIDATIONS = frozenset(
    {
        "datetime_ymd",
        "datetime_mdy",
        "datetime_dmy",
        "datetime_seconds_ymd",
        "datetime_seconds_mdy",
        "datetime_seconds_dmy",
    }
)
_TIME_VALIDATIONS = frozenset({"time", "time_hh_mm_ss"})


def strip_html(text: str) -> str:
    """Remove HTML markup from a REDCap label.

    Script and style blocks are dropped with their content, remaining tags are
    removed, entities are decoded and whitespace is collapsed.

    Args:
        text: Label text, possibly containing HTML.

    Returns:
        Plain text on a single line.
    """
    cleaned = _SCRIPT_STYLE_RE.sub(" ", text)
    cleaned = _TAG_RE.sub(" ", cleaned)
    cleaned = html.unescape(cleaned).replace("\xa0", " ")
    return _WHITESPACE_RE.sub(" ", cleaned).strip()


def _split_choice(part: str) -> Tuple[str, str]:
    """Split one ``id, label`` (or ``id = label``) item into its two halves."""
    if "," in part:
        match = _COMMA_CHOICE_RE.match(part)
    elif "=" in part:
        match = _EQUALS_CHOICE_RE.match(part)
    else:
        match = None
    if match is None:
        return part, part
    return match.group(1).strip(), match.group(2).strip()


def _parse_choice_id(raw_id: str) -> Optional[int]:
    try:
        return int(raw_id)
    except ValueError:
        pass
    try:
        return round(float(raw_id))
    except (ValueError, OverflowError):
        return None


def parse_choices(text: str) -> List[ChoiceItem]:
    """Parse a REDCap ``select_choices_or_calculations`` string.

    ``"1, Male | 2, Female"`` yields two items. Numeric ids keep their value and
    derive the code from the label in lower snake case. Non-numeric ids are
    numbered sequentially from 1 and keep the raw id as their code.

    Args:
        text: Pipe-separated choice list.

    Returns:
        List of ChoiceItem in source order; empty for blank input.
    """
    items: List[ChoiceItem] = []
    next_seq = 1
    for raw_item in (text or "").split("|"):
        part = raw_item.strip()
        if not part:
            continue
        raw_id, label = _split_choice(part)

        value = _parse_choice_id(raw_id)
        if value is None:
            value = next_seq
            next_seq += 1
            code = raw_id
        else:
            code = _WHITESPACE_RE.sub("_", label.lower())

        items.append(ChoiceItem(value=value, code=code, description=label))
    return items


def map_value_type(field_type: str, validation: Optional[str] = None) -> int:
    """Map a REDCap field type and text validation to a ValueType identifier.

    Args:
        field_type: REDCap field_type (e.g. "text", "radio").
        validation: text_validation_type_or_show_slider_number, if any.

    Returns:
        One of the ValueType constants; STRING when nothing more specific applies.
    """
    ft = (field_type or "").lower()
    v = (validation or "").lower()

    if ft in _ENUM_TYPES:
        return ValueType.CATEGORY
    if ft == "checkbox":
        return ValueType.MULTIRESPONSE
    if ft == "calc":
        return ValueType.FLOAT
    if ft == "slider":
        return ValueType.INTEGER
    if ft == "text":
        if v == "integer":
            return ValueType.INTEGER
        if v == "number":
            return ValueType.FLOAT
        if v in _DATE_VALIDATIONS:
            return ValueType.DATE
        if v in _DATETIME_VALIDATIONS:
            return ValueType.DATETIME
        if v in _TIME_VALIDATIONS:
            return ValueType.TIME
    return ValueType.STRING
