"""Business logic use cases."""

from collections import Counter

from release_monitor.core import (
    LLMClient,
    MalformedResponseError,
    NotificationRouter,
    PersistenceError,
    ReleaseSource,
    RepositoryOutcome,
    RepositoryResult,
    TransportError,
    VersionCache,
)

OUTCOME_EMOJI = {
    RepositoryOutcome.SKIPPED_NO_RELEASE: "∅",
    RepositoryOutcome.SKIPPED_ALREADY_SEEN: "↺",
    RepositoryOutcome.SKIPPED_CLASSIFICATION_ERROR: "⚠️",
    RepositoryOutcome.SKIPPED_ERROR: "❌",
    RepositoryOutcome.RECORDED: "✓",
    RepositoryOutcome.NOTIFIED: "📣",
    RepositoryOutcome.NOTIFIED_WITH_ISSUE: "🚨",
}


class ReleaseMonitorService:
    """Check each repository for a new release, classify it and notify.

    The service owns the version cache for the whole run and is the only
    component that writes to it.
    """

    def __init__(
        self,
        source: ReleaseSource,
        llm_client: LLMClient,
        router: NotificationRouter,
        cache: VersionCache,
    ) -> None:
        self.source = source
        self.llm_client = llm_client
        self.router = router
        self.cache = cache

    async def run(self, repositories: list[str]) -> list[RepositoryResult]:
        """Process repositories one by one. A failing repository never stops the batch."""
        print("\n" + "=" * 70)
        print("📥 ПРОВЕРКА РЕЛИЗОВ")
        print("=" * 70)

        results: list[RepositoryResult] = []

        for i, repo in enumerate(repositories, 1):
            print(f"\n  [{i}/{len(repositories)}] 🐙 {repo}")

            try:
                result = await self.process_repository(repo)
            except Exception as e:
                print(f"  └─ ❌ Ошибка: {type(e).__name__}: {e}")
                result = RepositoryResult(
                    repo=repo,
                    outcome=RepositoryOutcome.SKIPPED_ERROR,
                    error=str(e),
                )

            results.append(result)

        self._print_summary(results)
        return results

    async def process_repository(self, repo: str) -> RepositoryResult:
        """Run a single repository through fetch, dedup, classify, route and record."""
        release = await self.source.fetch_latest(repo)
        if release is None:
            print("  └─ Релизы не найдены")
            return RepositoryResult(repo=repo, outcome=RepositoryOutcome.SKIPPED_NO_RELEASE)

        print(f"  └─ Последний релиз: {release.tag}")

        if self.cache.has(repo, release.tag):
            print(f"  └─ Версия {release.tag} уже проверена, пропуск")
            return RepositoryResult(
                repo=repo,
                outcome=RepositoryOutcome.SKIPPED_ALREADY_SEEN,
                tag=release.tag,
            )

        try:
            judgment = await self.llm_client.classify_release(repo, release)
        except MalformedResponseError as e:
            print(f"  └─ ⚠️  Claude вернул невалидный ответ: {e}")
            if e.raw_response:
                print(f"     Ответ: {e.raw_response[:250]}")
            return RepositoryResult(
                repo=repo,
                outcome=RepositoryOutcome.SKIPPED_CLASSIFICATION_ERROR,
                tag=release.tag,
                error=str(e),
            )
        except TransportError as e:
            print(f"  └─ ⚠️  Ошибка классификации: {e}")
            return RepositoryResult(
                repo=repo,
                outcome=RepositoryOutcome.SKIPPED_CLASSIFICATION_ERROR,
                tag=release.tag,
                error=str(e),
            )

        print(f"  └─ Severity: {judgment.severity.value.upper()} - {judgment.summary}")

        route_result = await self.router.route(repo, release, judgment)

        # Mark seen even if nothing was sent, so low releases aren't reclassified
        self._record(repo, release.tag)

        if route_result.issue_url:
            outcome = RepositoryOutcome.NOTIFIED_WITH_ISSUE
        elif route_result.decision.send_chat:
            outcome = RepositoryOutcome.NOTIFIED
        else:
            outcome = RepositoryOutcome.RECORDED

        return RepositoryResult(
            repo=repo,
            outcome=outcome,
            tag=release.tag,
            severity=judgment.severity,
            issue_url=route_result.issue_url,
        )

    def _record(self, repo: str, tag: str) -> None:
        """Update the cache and flush it right away."""
        self.cache.record(repo, tag)
        try:
            self.cache.flush()
        except PersistenceError as e:
            print(f"  └─ ⚠️  {e}")

    def _print_summary(self, results: list[RepositoryResult]) -> None:
        print("\n" + "=" * 70)
        print("📊 ИТОГИ")
        print("=" * 70)

        counts = Counter(result.outcome for result in results)
        for outcome in RepositoryOutcome:
            if counts[outcome]:
                print(f"  {OUTCOME_EMOJI[outcome]} {outcome.value}: {counts[outcome]}")

        for result in results:
            if result.issue_url:
                print(f"  🚨 {result.repo} {result.tag}: {result.issue_url}")
