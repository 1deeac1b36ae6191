"""GitHub source for the latest release of a repository."""

from datetime import datetime
from typing import Optional

import httpx

from release_monitor.core import ReleaseInfo, ReleaseSource


class GitHubReleaseSource(ReleaseSource):
    """Fetch the newest release of a GitHub repository."""

    def __init__(
        self,
        token: Optional[str] = None,
        api_base: str = "https://api.github.com",
    ) -> None:
        self.token = token
        self.api_base = api_base

    async def fetch_latest(self, repo: str) -> Optional[ReleaseInfo]:
        """Return the newest release, or None if there is none or the request failed."""
        try:
            async with httpx.AsyncClient(timeout=30.0) as client:
                response = await client.get(
                    f"{self.api_base}/repos/{repo}/releases",
                    headers=self._get_headers(),
                    params={"per_page": 1},
                )
        except httpx.HTTPError as e:
            print(f"  └─ ⚠️  Ошибка запроса релизов {repo}: {e}")
            return None

        if response.status_code != 200:
            print(f"  └─ ⚠️  GitHub API error: {response.status_code} for {repo}")
            if response.status_code == 403:
                print("      Rate limit или требуется аутентификация")
            return None

        try:
            releases = response.json()
        except ValueError as e:
            print(f"  └─ ⚠️  Невалидный ответ GitHub для {repo}: {e}")
            return None

        if not isinstance(releases, list) or not releases:
            return None

        # GitHub returns releases newest first
        return self._create_release(repo, releases[0])

    def _create_release(self, repo: str, data: dict) -> Optional[ReleaseInfo]:
        """Create release info from an API record."""
        try:
            return ReleaseInfo(
                tag=data["tag_name"],
                url=data["html_url"],
                notes=data.get("body") or "",
                published_at=self._parse_timestamp(data.get("published_at")),
            )
        except (KeyError, TypeError, ValueError) as e:
            print(f"  └─ ⚠️  Ошибка обработки релиза {repo}: {e}")
            return None

    def _parse_timestamp(self, value: Optional[str]) -> Optional[datetime]:
        if not value:
            return None
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None

    def _get_headers(self) -> dict[str, str]:
        """Get headers for GitHub API requests."""
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        return headers
