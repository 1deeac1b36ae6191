"""GitHub Issues adapter for tracking high-severity releases."""

from typing import Optional

import httpx

from release_monitor.core.errors import SinkError
from release_monitor.core.interfaces import IssueTracker


class GitHubIssueTracker(IssueTracker):
    """Create issues in a GitHub repository."""

    def __init__(
        self,
        repo: str,
        token: Optional[str] = None,
        api_base: str = "https://api.github.com",
    ) -> None:
        self.repo = repo
        self.token = token
        self.api_base = api_base

    async def create_issue(
        self, title: str, body: str, assignees: Optional[list[str]] = None
    ) -> str:
        """Create an issue and return its html URL.

        Raises:
            SinkError: With the HTTP status and response body if GitHub refuses
        """
        payload: dict = {"title": title, "body": body}
        if assignees:
            payload["assignees"] = assignees

        async with httpx.AsyncClient(timeout=30.0) as client:
            try:
                response = await client.post(
                    f"{self.api_base}/repos/{self.repo}/issues",
                    headers=self._get_headers(),
                    json=payload,
                )
            except httpx.HTTPError as e:
                raise SinkError("github-issues", str(e)) from e

        if not 200 <= response.status_code < 300:
            raise SinkError(
                "github-issues",
                "failed to create issue",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            return response.json()["html_url"]
        except (ValueError, KeyError, TypeError) as e:
            raise SinkError(
                "github-issues",
                "response has no html_url",
                status_code=response.status_code,
                body=response.text,
            ) from e

    def _get_headers(self) -> dict[str, str]:
        """Get headers for GitHub API requests."""
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        return headers
