"""Severity metrics over axe violations (bucket counts, top issues)."""
from __future__ import annotations
from typing import Dict, Iterable, List, Optional, Sequence

from .schema import AxeViolation

SEVERITY_LEVELS = ("critical", "serious", "moderate", "minor")
SEVERITY_RANK: Dict[str, int] = {level: i for i, level in enumerate(SEVERITY_LEVELS)}
# Violations with a missing or unrecognised impact sort after "minor".
UNRANKED = len(SEVERITY_LEVELS)
TOP_ISSUES_LIMIT = 5


def severity_rank(impact: Optional[str]) -> int:
    return SEVERITY_RANK.get(impact, UNRANKED)


def count_by_severity(violations: Iterable[AxeViolation]) -> Dict[str, int]:
    """Count violations per severity bucket.

    Matching is exact (``"Critical"`` is not ``"critical"``). Violations whose
    impact is missing or not one of the four levels are not counted in any
    bucket, so the bucket sum can be lower than the number of violations.
    """
    counts = {level: 0 for level in SEVERITY_LEVELS}
    for v in violations:
        if v.impact in counts:
            counts[v.impact] += 1
    return counts


def top_issues(violations: Sequence[AxeViolation], limit: int = TOP_ISSUES_LIMIT) -> List[AxeViolation]:
    """Return the ``limit`` most severe violations.

    ``sorted`` is stable, so within a severity the engine's order is kept.
    """
    if limit <= 0:
        return []
    return sorted(violations, key=lambda v: severity_rank(v.impact))[:limit]


__all__ = [
    "SEVERITY_LEVELS",
    "SEVERITY_RANK",
    "UNRANKED",
    "TOP_ISSUES_LIMIT",
    "severity_rank",
    "count_by_severity",
    "top_issues",
]
