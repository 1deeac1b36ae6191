"""Tests for the release monitoring pipeline."""

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from release_monitor.core import (
    MalformedResponseError,
    NotificationRouter,
    PersistenceError,
    ReleaseInfo,
    RepositoryOutcome,
    Severity,
    SeverityJudgment,
    TransportError,
    VersionCache,
)
from release_monitor.use_cases import ReleaseMonitorService


def make_release(tag: str) -> ReleaseInfo:
    return ReleaseInfo(tag=tag, url=f"https://github.com/a/b/releases/tag/{tag}", notes="notes")


@pytest.fixture
def cache(tmp_path: Path) -> VersionCache:
    cache = VersionCache(tmp_path / "checked_versions.json")
    cache.load()
    return cache


@pytest.fixture
def notifier() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def tracker() -> AsyncMock:
    tracker = AsyncMock()
    tracker.create_issue.return_value = "https://github.com/org/tracker/issues/1"
    return tracker


def make_service(
    cache: VersionCache,
    notifier: AsyncMock,
    tracker: AsyncMock,
    releases: dict,
    judgments: dict,
) -> tuple[ReleaseMonitorService, AsyncMock, AsyncMock]:
    """Build a service whose source and classifier answer from the given maps.

    Values that are exceptions are raised instead of returned.
    """
    source = AsyncMock()
    llm = AsyncMock()

    async def fetch_latest(repo: str):
        value = releases.get(repo)
        if isinstance(value, Exception):
            raise value
        return value

    async def classify_release(repo: str, release: ReleaseInfo):
        value = judgments[repo]
        if isinstance(value, Exception):
            raise value
        return value

    source.fetch_latest.side_effect = fetch_latest
    llm.classify_release.side_effect = classify_release

    router = NotificationRouter(notifier=notifier, issue_tracker=tracker)
    service = ReleaseMonitorService(source=source, llm_client=llm, router=router, cache=cache)
    return service, source, llm


def read_cache_file(cache: VersionCache) -> dict:
    return json.loads(cache.cache_file.read_text(encoding="utf-8"))


@pytest.mark.asyncio
async def test_already_seen_release_is_skipped(
    cache: VersionCache, notifier: AsyncMock, tracker: AsyncMock
) -> None:
    """Cached tag: no classification, no sinks, cache unchanged."""
    cache.record("a/b", "v1.0")
    cache.flush()
    before = cache.cache_file.stat().st_mtime_ns

    service, _, llm = make_service(cache, notifier, tracker, {"a/b": make_release("v1.0")}, {})

    results = await service.run(["a/b"])

    assert results[0].outcome == RepositoryOutcome.SKIPPED_ALREADY_SEEN
    llm.classify_release.assert_not_called()
    notifier.send_message.assert_not_called()
    tracker.create_issue.assert_not_called()
    assert cache.entries() == {"a/b": "v1.0"}
    assert cache.cache_file.stat().st_mtime_ns == before


@pytest.mark.asyncio
async def test_low_release_is_recorded_silently(
    cache: VersionCache, notifier: AsyncMock, tracker: AsyncMock
) -> None:
    """Low severity: no sinks, cache moves to the new tag."""
    cache.record("a/b", "v1.0")

    service, _, _ = make_service(
        cache, notifier, tracker,
        {"a/b": make_release("v2.0")},
        {"a/b": SeverityJudgment(Severity.LOW, "docs")},
    )

    results = await service.run(["a/b"])

    assert results[0].outcome == RepositoryOutcome.RECORDED
    assert results[0].severity == Severity.LOW
    notifier.send_message.assert_not_called()
    tracker.create_issue.assert_not_called()
    assert cache.has("a/b", "v2.0")
    assert read_cache_file(cache) == {"a/b": "v2.0"}


@pytest.mark.asyncio
async def test_medium_release_notifies_chat(
    cache: VersionCache, notifier: AsyncMock, tracker: AsyncMock
) -> None:
    """Medium severity: chat only, cache updated."""
    service, _, _ = make_service(
        cache, notifier, tracker,
        {"a/b": make_release("v2.1")},
        {"a/b": SeverityJudgment(Severity.MEDIUM, "Bug fixes")},
    )

    results = await service.run(["a/b"])

    assert results[0].outcome == RepositoryOutcome.NOTIFIED
    notifier.send_message.assert_called_once()
    tracker.create_issue.assert_not_called()
    assert read_cache_file(cache) == {"a/b": "v2.1"}


@pytest.mark.asyncio
async def test_high_release_creates_issue_and_notifies(
    cache: VersionCache, notifier: AsyncMock, tracker: AsyncMock
) -> None:
    """High severity: issue created, its URL in chat, cache updated."""
    service, _, _ = make_service(
        cache, notifier, tracker,
        {"a/b": make_release("v3.0")},
        {"a/b": SeverityJudgment(Severity.HIGH, "CVE fix")},
    )

    results = await service.run(["a/b"])

    assert results[0].outcome == RepositoryOutcome.NOTIFIED_WITH_ISSUE
    assert results[0].issue_url == "https://github.com/org/tracker/issues/1"

    _, body, _ = tracker.create_issue.call_args.args
    assert "HIGH" in body
    assert "CVE fix" in body

    message = notifier.send_message.call_args.args[0]
    assert "https://github.com/org/tracker/issues/1" in message
    assert read_cache_file(cache) == {"a/b": "v3.0"}


@pytest.mark.asyncio
async def test_classifier_failure_leaves_cache_and_continues(
    cache: VersionCache, notifier: AsyncMock, tracker: AsyncMock
) -> None:
    """Classifier error: no sinks, cache untouched, next repository still processed."""
    service, _, _ = make_service(
        cache, notifier, tracker,
        {"a/b": make_release("v4.0"), "c/d": make_release("v1.0")},
        {
            "a/b": MalformedResponseError("not JSON", raw_response="oops"),
            "c/d": SeverityJudgment(Severity.LOW, "docs"),
        },
    )

    results = await service.run(["a/b", "c/d"])

    assert results[0].outcome == RepositoryOutcome.SKIPPED_CLASSIFICATION_ERROR
    assert results[1].outcome == RepositoryOutcome.RECORDED
    notifier.send_message.assert_not_called()
    tracker.create_issue.assert_not_called()
    assert not cache.has("a/b", "v4.0")
    assert cache.entries() == {"c/d": "v1.0"}


@pytest.mark.asyncio
async def test_classifier_transport_error_is_skipped(
    cache: VersionCache, notifier: AsyncMock, tracker: AsyncMock
) -> None:
    """Transport failure during classification is treated like a malformed response."""
    service, _, _ = make_service(
        cache, notifier, tracker,
        {"a/b": make_release("v4.0")},
        {"a/b": TransportError("timeout")},
    )

    results = await service.run(["a/b"])

    assert results[0].outcome == RepositoryOutcome.SKIPPED_CLASSIFICATION_ERROR
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_no_release_is_skipped(
    cache: VersionCache, notifier: AsyncMock, tracker: AsyncMock
) -> None:
    """Missing release: skipped, nothing classified."""
    service, _, llm = make_service(cache, notifier, tracker, {"a/b": None}, {})

    results = await service.run(["a/b"])

    assert results[0].outcome == RepositoryOutcome.SKIPPED_NO_RELEASE
    llm.classify_release.assert_not_called()


@pytest.mark.asyncio
async def test_batch_isolation(
    cache: VersionCache, notifier: AsyncMock, tracker: AsyncMock
) -> None:
    """An unexpected error in one repository doesn't stop the rest."""
    service, _, _ = make_service(
        cache, notifier, tracker,
        {
            "a/b": make_release("v1.0"),
            "c/d": RuntimeError("unexpected"),
            "e/f": make_release("v2.0"),
            "g/h": make_release("v3.0"),
        },
        {
            "a/b": SeverityJudgment(Severity.MEDIUM, "fixes"),
            "e/f": RuntimeError("classifier exploded"),
            "g/h": SeverityJudgment(Severity.HIGH, "CVE"),
        },
    )

    results = await service.run(["a/b", "c/d", "e/f", "g/h"])

    assert [r.outcome for r in results] == [
        RepositoryOutcome.NOTIFIED,
        RepositoryOutcome.SKIPPED_ERROR,
        RepositoryOutcome.SKIPPED_ERROR,
        RepositoryOutcome.NOTIFIED_WITH_ISSUE,
    ]
    assert results[1].error == "unexpected"
    assert read_cache_file(cache) == {"a/b": "v1.0", "g/h": "v3.0"}


@pytest.mark.asyncio
async def test_sink_failure_still_records(
    cache: VersionCache, notifier: AsyncMock, tracker: AsyncMock
) -> None:
    """A failed chat send doesn't roll back the cache update."""
    from release_monitor.core import SinkError

    notifier.send_message.side_effect = SinkError("slack", "down", status_code=503)
    service, _, _ = make_service(
        cache, notifier, tracker,
        {"a/b": make_release("v2.0")},
        {"a/b": SeverityJudgment(Severity.MEDIUM, "fixes")},
    )

    await service.run(["a/b"])

    assert read_cache_file(cache) == {"a/b": "v2.0"}


@pytest.mark.asyncio
async def test_second_run_is_idempotent(
    cache: VersionCache, notifier: AsyncMock, tracker: AsyncMock
) -> None:
    """Processing the same release twice only notifies once."""
    releases = {"a/b": make_release("v3.0")}
    judgments = {"a/b": SeverityJudgment(Severity.HIGH, "CVE fix")}

    service, _, llm = make_service(cache, notifier, tracker, releases, judgments)
    await service.run(["a/b"])
    snapshot = cache.entries()

    # Fresh cache object from disk, as a new process would do
    reloaded = VersionCache(cache.cache_file)
    reloaded.load()
    service2, _, llm2 = make_service(reloaded, notifier, tracker, releases, judgments)
    results = await service2.run(["a/b"])

    assert results[0].outcome == RepositoryOutcome.SKIPPED_ALREADY_SEEN
    llm2.classify_release.assert_not_called()
    assert notifier.send_message.call_count == 1
    assert tracker.create_issue.call_count == 1
    assert reloaded.entries() == snapshot


@pytest.mark.asyncio
async def test_flush_after_each_repository(
    cache: VersionCache, notifier: AsyncMock, tracker: AsyncMock
) -> None:
    """The cache is flushed once per processed repository, not once per run."""
    service, _, _ = make_service(
        cache, notifier, tracker,
        {"a/b": make_release("v1"), "c/d": make_release("v2")},
        {
            "a/b": SeverityJudgment(Severity.LOW, "docs"),
            "c/d": SeverityJudgment(Severity.LOW, "docs"),
        },
    )

    with patch.object(cache, "flush", wraps=cache.flush) as flush:
        await service.run(["a/b", "c/d"])

    assert flush.call_count == 2


@pytest.mark.asyncio
async def test_flush_failure_is_not_fatal(
    cache: VersionCache, notifier: AsyncMock, tracker: AsyncMock
) -> None:
    """A cache write failure is reported and the in-memory state stays authoritative."""
    service, _, _ = make_service(
        cache, notifier, tracker,
        {"a/b": make_release("v1"), "c/d": make_release("v2")},
        {
            "a/b": SeverityJudgment(Severity.LOW, "docs"),
            "c/d": SeverityJudgment(Severity.MEDIUM, "fixes"),
        },
    )

    with patch.object(cache, "flush", side_effect=PersistenceError("disk full")):
        results = await service.run(["a/b", "c/d"])

    assert [r.outcome for r in results] == [RepositoryOutcome.RECORDED, RepositoryOutcome.NOTIFIED]
    assert cache.has("a/b", "v1")
    assert cache.has("c/d", "v2")


@pytest.mark.asyncio
async def test_chat_crash_after_issue_still_records(
    cache: VersionCache, notifier: AsyncMock, tracker: AsyncMock
) -> None:
    """An unexpected chat error after the issue exists must not cause a second issue."""
    notifier.send_message.side_effect = RuntimeError("bad webhook")
    releases = {"a/b": make_release("v3.0")}
    judgments = {"a/b": SeverityJudgment(Severity.HIGH, "CVE fix")}

    service, _, _ = make_service(cache, notifier, tracker, releases, judgments)
    results = await service.run(["a/b"])

    assert results[0].outcome == RepositoryOutcome.NOTIFIED_WITH_ISSUE
    assert read_cache_file(cache) == {"a/b": "v3.0"}

    await service.run(["a/b"])
    assert tracker.create_issue.call_count == 1
