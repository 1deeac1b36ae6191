"""Issue tracker adapters."""

from release_monitor.adapters.issues.github_issues import GitHubIssueTracker

__all__ = ["GitHubIssueTracker"]
