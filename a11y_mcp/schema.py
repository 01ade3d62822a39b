from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional, Any


class _UrlRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    url: str = Field(min_length=1)

    @field_validator("url", mode="before")
    @classmethod
    def _coerce_url(cls, value: Any) -> Any:
        # a non-string url (e.g. 123) is passed on and fails as an unusable URL
        if value is not None and not isinstance(value, str):
            return str(value)
        return value


class AuditRequest(_UrlRequest):
    """Arguments accepted by the ``audit_webpage`` tool."""

    includeHtml: bool = False
    tags: Optional[List[str]] = None


class SummaryRequest(_UrlRequest):
    """Arguments accepted by ``get_summary``. Only ``url`` is honoured."""


# Raw axe-core output. Only the parts we reshape are modelled; axe adds
# plenty of other keys (toolOptions, testEnvironment, ...) that are ignored.

class AxeNode(BaseModel):
    model_config = ConfigDict(extra="ignore")

    impact: Optional[str] = None
    # selectors; an entry is itself a list when the node sits in an iframe or shadow root
    target: List[Any] = []
    failureSummary: Optional[str] = None
    html: Optional[str] = None


class AxeViolation(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    impact: Optional[str] = None
    description: str = ""
    help: Optional[str] = None
    helpUrl: Optional[str] = None
    tags: List[str] = []
    nodes: List[AxeNode] = []


class AxeResults(BaseModel):
    model_config = ConfigDict(extra="ignore")

    url: Optional[str] = None
    violations: List[AxeViolation] = []
    passes: List[Any] = []
    incomplete: List[Any] = []
    inapplicable: List[Any] = []


# Tool payloads

class ReportNode(BaseModel):
    impact: Optional[str] = None
    target: List[Any] = []
    failureSummary: Optional[str] = None
    html: Optional[str] = None  # only set when the caller asked for markup


class ReportViolation(BaseModel):
    id: str
    impact: Optional[str] = None
    description: str
    helpUrl: Optional[str] = None
    nodes: List[ReportNode] = []


class AuditReport(BaseModel):
    url: str
    timestamp: str
    violations: List[ReportViolation] = []
    passes: int
    incomplete: int
    inapplicable: int


class SeverityCounts(BaseModel):
    critical: int = 0
    serious: int = 0
    moderate: int = 0
    minor: int = 0


class TopIssue(BaseModel):
    id: str
    impact: Optional[str] = None
    description: str
    helpUrl: Optional[str] = None


class AuditSummary(BaseModel):
    url: str
    timestamp: str
    totalIssues: int
    issuesBySeverity: SeverityCounts
    topIssues: List[TopIssue] = []
    passedTests: int
    incompleteTests: int
