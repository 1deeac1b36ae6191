"""Core domain entities."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from release_monitor.core.errors import MalformedResponseError


class Severity(str, Enum):
    """Triaged importance of a release."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RepositoryOutcome(str, Enum):
    """Terminal state of one repository in a run."""

    SKIPPED_NO_RELEASE = "skipped-no-release"
    SKIPPED_ALREADY_SEEN = "skipped-already-seen"
    SKIPPED_CLASSIFICATION_ERROR = "skipped-classification-error"
    SKIPPED_ERROR = "skipped-error"
    RECORDED = "recorded"
    NOTIFIED = "notified"
    NOTIFIED_WITH_ISSUE = "notified-with-issue"


@dataclass(frozen=True)
class ReleaseInfo:
    """Latest published release of a monitored repository."""

    tag: str
    url: str
    notes: str = ""
    published_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not self.tag:
            raise ValueError("Tag cannot be empty")
        if not self.url:
            raise ValueError("URL cannot be empty")


@dataclass(frozen=True)
class SeverityJudgment:
    """Severity classification of a single release."""

    severity: Severity
    summary: str

    @classmethod
    def from_response(cls, data: Any) -> "SeverityJudgment":
        """Validate a parsed LLM payload against the {severity, summary} shape."""
        if not isinstance(data, dict):
            raise MalformedResponseError(
                f"Expected a JSON object, got {type(data).__name__}"
            )

        missing = [key for key in ("severity", "summary") if key not in data]
        if missing:
            raise MalformedResponseError(f"Missing field(s): {', '.join(missing)}")

        extra = sorted(set(data) - {"severity", "summary"})
        if extra:
            raise MalformedResponseError(f"Unexpected field(s): {', '.join(map(str, extra))}")

        severity = data["severity"]
        summary = data["summary"]
        if not isinstance(severity, str) or not isinstance(summary, str):
            raise MalformedResponseError("Fields 'severity' and 'summary' must be strings")

        try:
            parsed_severity = Severity(severity.strip().lower())
        except ValueError:
            raise MalformedResponseError(f"Unknown severity: {severity!r}") from None

        if not summary.strip():
            raise MalformedResponseError("Summary cannot be empty")

        return cls(severity=parsed_severity, summary=summary.strip())


@dataclass(frozen=True)
class NotificationDecision:
    """Which sinks a classified release is routed to."""

    send_chat: bool
    create_issue: bool


@dataclass
class RepositoryResult:
    """Outcome of processing one repository."""

    repo: str
    outcome: RepositoryOutcome
    tag: Optional[str] = None
    severity: Optional[Severity] = None
    issue_url: Optional[str] = None
    error: Optional[str] = None
