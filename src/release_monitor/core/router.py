"""Routing of classified releases to chat and issue-tracker sinks."""

from dataclasses import dataclass
from typing import Optional

from release_monitor.core.entities import (
    NotificationDecision,
    ReleaseInfo,
    Severity,
    SeverityJudgment,
)
from release_monitor.core.errors import SinkError
from release_monitor.core.interfaces import IssueTracker, NotificationService

SEVERITY_LABELS = {
    Severity.LOW: "LOW",
    Severity.MEDIUM: "⚠️ MEDIUM",
    Severity.HIGH: "🚨 HIGH",
}


def plan_notifications(severity: Severity) -> NotificationDecision:
    """Decide which sinks a release of the given severity goes to.

    | severity | chat | issue |
    |----------|------|-------|
    | low      | no   | no    |
    | medium   | yes  | no    |
    | high     | yes  | yes   |
    """
    if severity == Severity.HIGH:
        return NotificationDecision(send_chat=True, create_issue=True)
    if severity == Severity.MEDIUM:
        return NotificationDecision(send_chat=True, create_issue=False)
    return NotificationDecision(send_chat=False, create_issue=False)


def render_issue_title(repo: str, release: ReleaseInfo) -> str:
    return f"[{repo}] High-Priority Update {release.tag}"


def render_issue_body(
    repo: str,
    release: ReleaseInfo,
    judgment: SeverityJudgment,
    documentation_url: Optional[str] = None,
) -> str:
    """Render the markdown body of a tracking issue."""
    lines = [
        "## Release Details",
        f"- **Repository:** {repo}",
        f"- **Version:** {release.tag}",
        f"- **Severity:** {judgment.severity.value.upper()}",
        f"- **Release URL:** {release.url}",
    ]
    if release.published_at:
        lines.append(f"- **Published:** {release.published_at.strftime('%Y-%m-%d %H:%M UTC')}")

    lines += [
        "",
        "## AI Analysis Summary",
        judgment.summary,
    ]

    if documentation_url:
        lines += [
            "",
            "## Testing Documentation",
            f"Please follow the testing guidelines here: {documentation_url}",
        ]

    lines += [
        "",
        "---",
        "*This issue was automatically created by the Release Monitor.*",
    ]
    return "\n".join(lines)


def render_chat_message(
    repo: str,
    release: ReleaseInfo,
    judgment: SeverityJudgment,
    issue_url: Optional[str] = None,
) -> str:
    """Render the chat message in markdown."""
    label = SEVERITY_LABELS[judgment.severity]
    lines = [
        "Hello team! :wave:",
        "",
        f"**{repo}** has a new {label} priority update to version **{release.tag}**",
        "",
        f":brain: AI Summary: {judgment.summary}",
        f":link: Release details: {release.url}",
    ]
    if issue_url:
        lines.append(f"👉 GitHub issue: {issue_url}")
    return "\n".join(lines)


@dataclass
class RouteResult:
    """What the router actually did for one release."""

    decision: NotificationDecision
    issue_url: Optional[str] = None
    chat_sent: bool = False


class NotificationRouter:
    """Send a classified release to the sinks its severity calls for."""

    def __init__(
        self,
        notifier: Optional[NotificationService] = None,
        issue_tracker: Optional[IssueTracker] = None,
        documentation_links: Optional[dict[str, str]] = None,
        assignees: Optional[list[str]] = None,
    ) -> None:
        self.notifier = notifier
        self.issue_tracker = issue_tracker
        self.documentation_links = documentation_links or {}
        self.assignees = assignees or []

    async def route(
        self, repo: str, release: ReleaseInfo, judgment: SeverityJudgment
    ) -> RouteResult:
        """Deliver notifications for a release. Sink failures are reported, never raised."""
        decision = plan_notifications(judgment.severity)
        result = RouteResult(decision=decision)

        if decision.create_issue:
            result.issue_url = await self._create_issue(repo, release, judgment)

        if decision.send_chat:
            result.chat_sent = await self._send_chat(repo, release, judgment, result.issue_url)

        return result

    async def _create_issue(
        self, repo: str, release: ReleaseInfo, judgment: SeverityJudgment
    ) -> Optional[str]:
        if not self.issue_tracker:
            print("  └─ ⚠️  Issue tracker не настроен, issue не создан")
            return None

        title = render_issue_title(repo, release)
        body = render_issue_body(
            repo, release, judgment, self.documentation_links.get(repo)
        )

        try:
            issue_url = await self.issue_tracker.create_issue(title, body, self.assignees)
        except SinkError as e:
            print(f"  └─ ❌ Ошибка создания issue: {e}")
            if e.body:
                print(f"     Ответ: {e.body[:300]}")
            return None

        print(f"  └─ ✓ Issue создан: {issue_url}")
        return issue_url

    async def _send_chat(
        self,
        repo: str,
        release: ReleaseInfo,
        judgment: SeverityJudgment,
        issue_url: Optional[str],
    ) -> bool:
        if not self.notifier:
            print("  └─ ⚠️  Slack отключен, уведомление не отправлено")
            return False

        message = render_chat_message(repo, release, judgment, issue_url)

        try:
            await self.notifier.send_message(message)
        except SinkError as e:
            print(f"  └─ ❌ Ошибка отправки в Slack: {e}")
            return False
        except Exception as e:
            # An issue may already exist; the release must still be recorded
            print(f"  └─ ❌ Ошибка отправки в Slack: {type(e).__name__}: {e}")
            return False

        print("  └─ ✓ Уведомление отправлено в Slack")
        return True
