"""CLI entry point for release monitor."""

import asyncio
from pathlib import Path
from typing import Optional

import typer

from release_monitor.adapters.issues import GitHubIssueTracker
from release_monitor.adapters.llm import ClaudeClient
from release_monitor.adapters.notifications import SlackNotifier
from release_monitor.adapters.sources import GitHubReleaseSource
from release_monitor.config import Settings, get_settings
from release_monitor.core import NotificationRouter, PersistenceError, VersionCache
from release_monitor.use_cases import ReleaseMonitorService


def main(
    config: Path = typer.Option(Path("config.yaml"), "--config", help="Path to YAML config"),
    no_slack: bool = typer.Option(False, "--no-slack", help="Disable Slack notifications"),
    no_issues: bool = typer.Option(False, "--no-issues", help="Disable GitHub issue creation"),
    show_cache: bool = typer.Option(False, "--show-cache", help="Print checked versions and exit"),
    reset: Optional[str] = typer.Option(None, "--reset", help="Forget the checked version of REPO and exit"),
) -> None:
    """Check monitored repositories for new releases and notify by severity."""
    settings = get_settings(config)

    cache = VersionCache(settings.cache_file)
    cache.load()

    if show_cache:
        print_cache(cache)
        return

    if reset:
        reset_repository(cache, reset)
        return

    asyncio.run(async_run(settings, cache, no_slack, no_issues))


def app() -> None:
    """CLI entry point."""
    typer.run(main)


def print_cache(cache: VersionCache) -> None:
    entries = cache.entries()
    print(f"\n💾 {cache.cache_file} ({len(entries)} репозиториев)")
    for repo, value in sorted(entries.items()):
        tags = ", ".join(value) if isinstance(value, list) else value
        print(f"  • {repo}: {tags}")


def reset_repository(cache: VersionCache, repo: str) -> None:
    if not cache.forget(repo):
        print(f"⚠️  {repo} нет в кэше")
        return
    try:
        cache.flush()
    except PersistenceError as e:
        print(f"❌ {e}")
        raise typer.Exit(code=1)
    print(f"✓ {repo} удален из кэша, последний релиз будет проверен заново")


async def async_run(settings: Settings, cache: VersionCache, no_slack: bool, no_issues: bool) -> None:
    """Async implementation of run command."""
    # Header
    print("\n" + "=" * 70)
    print("📦 RELEASE MONITOR - Library Update Detector")
    print("=" * 70)

    # Show credentials status
    print("\n🔑 Креды:")
    if settings.anthropic_api_key:
        print("  ✓ ANTHROPIC_API_KEY - для оценки релизов через Claude")
    else:
        print("  ✗ ANTHROPIC_API_KEY - не найден (классификация не будет работать)")

    if settings.github_token:
        print("  ✓ GitHub Token - для релизов и issues")
    else:
        print("  ⚠️  GitHub Token - не найден (ограниченный rate limit, issues отключены)")

    if no_slack:
        print("  ⚠️  SLACK_WEBHOOK_URL - отключен опцией --no-slack")
    elif settings.slack_webhook_url:
        print("  ✓ SLACK_WEBHOOK_URL - для отправки уведомлений")
    else:
        print("  ⚠️  SLACK_WEBHOOK_URL - не найден (уведомления отключены)")

    print("\n⚙️  Настройки:")
    print(f"  • Репозиториев: {len(settings.repositories)}")
    print(f"  • Кэш версий: {settings.cache_file} ({len(cache)} записей)")
    if no_issues:
        print("  • Issues: отключены опцией --no-issues")
    elif settings.github.issues_repo:
        print(f"  • Issues: {settings.github.issues_repo}")
    else:
        print("  • Issues: github.issues_repo не задан")

    notifier = SlackNotifier(settings.slack_webhook_url) if (settings.slack_webhook_url and not no_slack) else None

    issue_tracker = None
    if settings.github.issues_repo and settings.github_token and not no_issues:
        issue_tracker = GitHubIssueTracker(
            repo=settings.github.issues_repo,
            token=settings.github_token,
            api_base=settings.github.api_base,
        )

    router = NotificationRouter(
        notifier=notifier,
        issue_tracker=issue_tracker,
        documentation_links=settings.documentation_links,
        assignees=settings.github.assignees,
    )

    service = ReleaseMonitorService(
        source=GitHubReleaseSource(token=settings.github_token, api_base=settings.github.api_base),
        llm_client=ClaudeClient(settings),
        router=router,
        cache=cache,
    )

    await service.run(settings.repositories)

    print("\n" + "=" * 70)
    print("✅ ГОТОВО!")
    print("=" * 70)
    print()


if __name__ == "__main__":
    app()
