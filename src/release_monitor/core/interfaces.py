"""Core interfaces for adapters."""

from abc import ABC, abstractmethod
from typing import Optional

from release_monitor.core.entities import ReleaseInfo, SeverityJudgment


class ReleaseSource(ABC):
    """Interface for looking up the latest release of a repository."""

    @abstractmethod
    async def fetch_latest(self, repo: str) -> Optional[ReleaseInfo]:
        """Return the newest release, or None if there is none or it can't be fetched."""
        pass


class LLMClient(ABC):
    """Interface for LLM operations."""

    @abstractmethod
    async def classify_release(self, repo: str, release: ReleaseInfo) -> SeverityJudgment:
        """Classify the severity of a release from its notes."""
        pass


class NotificationService(ABC):
    """Interface for chat notifications."""

    @abstractmethod
    async def send_message(self, text: str) -> None:
        """Send a single chat message."""
        pass


class IssueTracker(ABC):
    """Interface for creating tracking issues."""

    @abstractmethod
    async def create_issue(
        self, title: str, body: str, assignees: Optional[list[str]] = None
    ) -> str:
        """Create an issue and return its URL."""
        pass
