"""Core domain layer."""

from release_monitor.core.entities import (
    NotificationDecision,
    ReleaseInfo,
    RepositoryOutcome,
    RepositoryResult,
    Severity,
    SeverityJudgment,
)
from release_monitor.core.errors import (
    MalformedResponseError,
    PersistenceError,
    ReleaseMonitorError,
    SinkError,
    TransportError,
)
from release_monitor.core.interfaces import (
    IssueTracker,
    LLMClient,
    NotificationService,
    ReleaseSource,
)
from release_monitor.core.router import NotificationRouter, RouteResult, plan_notifications
from release_monitor.core.version_cache import VersionCache

__all__ = [
    "ReleaseInfo",
    "Severity",
    "SeverityJudgment",
    "NotificationDecision",
    "RepositoryOutcome",
    "RepositoryResult",
    "ReleaseMonitorError",
    "TransportError",
    "MalformedResponseError",
    "PersistenceError",
    "SinkError",
    "ReleaseSource",
    "LLMClient",
    "NotificationService",
    "IssueTracker",
    "NotificationRouter",
    "RouteResult",
    "plan_notifications",
    "VersionCache",
]
