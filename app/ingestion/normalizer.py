"""Per-dataset formatting rules applied to parsed CSV rows."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

Record = Dict[str, Any]


def _rename_y_to_amount_yen(record: Record) -> None:
    if "y" in record:
        record["amount_yen"] = record.pop("y")


@dataclass(frozen=True)
class FormatRule:
    match: Callable[[str], bool]
    remove: Tuple[str, ...] = ()
    transform: Optional[Callable[[Record], None]] = None


# Evaluated in order; the first matching rule wins.
FORMAT_RULES: Tuple[FormatRule, ...] = (
    FormatRule(
        match=lambda name: name in ("breakdown-liability", "breakdown"),
        remove=("timestamp", "amount_text_num", "percentage_text_num"),
    ),
    FormatRule(
        match=lambda name: name.startswith("details__liability"),
        remove=("timestamp", "detail_id", "table_index", "残高_yen"),
    ),
    FormatRule(
        match=lambda name: name == "total-liability",
        remove=("timestamp", "total_text_num"),
    ),
    FormatRule(
        match=lambda name: name == "assetClassRatio",
        remove=("timestamp",),
        transform=_rename_y_to_amount_yen,
    ),
    FormatRule(
        match=lambda name: name.startswith("details__portfolio"),
        remove=("timestamp", "detail_id", "table_index"),
    ),
)


def find_rule(dataset_name: str) -> Optional[FormatRule]:
    return next((rule for rule in FORMAT_RULES if rule.match(dataset_name)), None)


def normalize(records: Any, dataset_name: str) -> Any:
    """Apply the dataset's formatting rule to copies of ``records``.

    Anything that is not a list/tuple of mappings is returned untouched.
    """
    if not isinstance(records, (list, tuple)):
        return records

    rule = find_rule(dataset_name)
    normalized = []
    for record in records:
        item = dict(record)
        if rule:
            for column in rule.remove:
                item.pop(column, None)
            if rule.transform:
                rule.transform(item)
        normalized.append(item)
    return normalized
