from __future__ import annotations

from dataclasses import dataclass
from typing import Any

"""BillingRecord model and BillingDictionary alias.

A BillingRecord is one serial -> value pair harvested from a billing file.
The dictionary is keyed by the trimmed serial number; later records replace
earlier ones with the same key.
"""

__all__ = [
    "BillingRecord",
    "BillingDictionary",
]


@dataclass(frozen=True)
class BillingRecord:
    serial_no: str  # trim 済み・空文字不可
    value: Any  # str | int | float | None (値列のセルそのまま)
    value_column_header: str


BillingDictionary = dict[str, BillingRecord]
