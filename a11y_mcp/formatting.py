"""Reshape raw axe-core results into the two tool payloads."""
from __future__ import annotations
from typing import Optional

from .metrics import count_by_severity, top_issues
from .schema import (
    AuditReport,
    AuditSummary,
    AxeNode,
    AxeResults,
    AxeViolation,
    ReportNode,
    ReportViolation,
    SeverityCounts,
    TopIssue,
)
from .utils import utc_timestamp


def _format_node(node: AxeNode, include_html: bool) -> ReportNode:
    fields = {
        "impact": node.impact,
        "target": list(node.target),
        "failureSummary": node.failureSummary,
    }
    if include_html:
        fields["html"] = node.html
    return ReportNode(**fields)


def _format_violation(v: AxeViolation, include_html: bool) -> ReportViolation:
    return ReportViolation(
        id=v.id,
        impact=v.impact,
        description=v.description,
        helpUrl=v.helpUrl,
        nodes=[_format_node(n, include_html) for n in v.nodes],
    )


def format_report(results: AxeResults, url: str, include_html: bool = False, timestamp: Optional[str] = None) -> AuditReport:
    """Detailed report: every violation with its nodes, other result lists as counts."""
    return AuditReport(
        url=url,
        timestamp=timestamp or utc_timestamp(),
        violations=[_format_violation(v, include_html) for v in results.violations],
        passes=len(results.passes),
        incomplete=len(results.incomplete),
        inapplicable=len(results.inapplicable),
    )


def format_summary(results: AxeResults, url: str, timestamp: Optional[str] = None) -> AuditSummary:
    """Severity-bucketed summary with the five most severe violations."""
    violations = results.violations
    return AuditSummary(
        url=url,
        timestamp=timestamp or utc_timestamp(),
        totalIssues=len(violations),
        issuesBySeverity=SeverityCounts(**count_by_severity(violations)),
        topIssues=[
            TopIssue(id=v.id, impact=v.impact, description=v.description, helpUrl=v.helpUrl)
            for v in top_issues(violations)
        ],
        passedTests=len(results.passes),
        incompleteTests=len(results.incomplete),
    )


def to_json(payload) -> str:
    """Serialize a payload model as 2-space indented JSON.

    Unset fields are dropped, which is what keeps ``html`` off report nodes
    unless it was requested.
    """
    return payload.model_dump_json(indent=2, exclude_unset=True)


__all__ = ["format_report", "format_summary", "to_json"]
