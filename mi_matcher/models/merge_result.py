from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

"""MergeResult model: the single contract between the matcher core and its callers.

Callers only need to check ``success``. On failure headers/rows are empty and
``error`` carries a short human-readable message.
"""

__all__ = [
    "MergeResult",
]


@dataclass(frozen=True)
class MergeResult:
    """Outcome of one merge invocation.

    Attributes:
        success: True when the merged table is available
        headers: Original MI headers plus one appended billing header
        rows: Original MI data rows, each padded and extended by one cell
        matched_count: Rows whose serial was found in the billing dictionary
        unmatched_count: Rows whose serial was not found
        error: Human-readable failure message (failure only)
        error_type: UPPER_SNAKE error classification (failure only)
    """
    success: bool
    headers: list[str] = field(default_factory=list)
    rows: list[list[Any]] = field(default_factory=list)
    matched_count: int = 0
    unmatched_count: int = 0
    error: str | None = None
    error_type: str | None = None

    @staticmethod
    def failure(error: str, error_type: str) -> MergeResult:
        """Build a failed result; no partial table is ever attached."""
        return MergeResult(success=False, error=error, error_type=error_type)

    @property
    def total_rows(self) -> int:
        return self.matched_count + self.unmatched_count

    def to_dict(self) -> dict[str, Any]:
        """Render the caller-facing contract (camelCase keys, ``error`` only on failure)."""
        data: dict[str, Any] = {
            "success": self.success,
            "headers": list(self.headers),
            "rows": [list(r) for r in self.rows],
            "matchedCount": self.matched_count,
            "unmatchedCount": self.unmatched_count,
        }
        if self.error is not None:
            data["error"] = self.error
        return data
