"""Source adapters for fetching releases."""

from release_monitor.adapters.sources.github_releases import GitHubReleaseSource

__all__ = ["GitHubReleaseSource"]
