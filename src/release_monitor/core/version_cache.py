"""Persistent record of releases that were already processed."""

import json
import os
from contextlib import suppress
from pathlib import Path
from typing import Union

from release_monitor.core.errors import PersistenceError

CachedValue = Union[str, list[str]]


class VersionCache:
    """Map each repository to the last release tag that went through the pipeline.

    Stored as a single JSON object ``{"owner/name": "v1.2.3"}``. Files written by
    older versions of the tool hold a list of tags per repository; those are
    still honoured by :meth:`has` until the repository is recorded again.
    """

    def __init__(self, cache_file: Path) -> None:
        self.cache_file = cache_file
        self._entries: dict[str, CachedValue] = {}

    def load(self) -> None:
        """Load the cache from disk. A missing or corrupt file yields an empty cache."""
        self._entries = {}

        if not self.cache_file.exists():
            return

        try:
            with open(self.cache_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            print(f"⚠️  Warning: Could not read cache {self.cache_file}, starting empty: {e}")
            return

        if not isinstance(data, dict):
            print(f"⚠️  Warning: Cache {self.cache_file} is not a JSON object, starting empty")
            return

        for repo, value in data.items():
            if isinstance(value, str):
                self._entries[repo] = value
            elif isinstance(value, list) and all(isinstance(tag, str) for tag in value):
                self._entries[repo] = list(value)

    def has(self, repo: str, tag: str) -> bool:
        """Check if this exact tag was already processed for the repository."""
        value = self._entries.get(repo)
        if value is None:
            return False
        if isinstance(value, list):
            return tag in value
        return value == tag

    def record(self, repo: str, tag: str) -> None:
        """Mark tag as the last processed release, replacing any previous value."""
        self._entries[repo] = tag

    def forget(self, repo: str) -> bool:
        """Drop a repository so its latest release is processed again.

        Returns:
            True if the repository was present
        """
        return self._entries.pop(repo, None) is not None

    def entries(self) -> dict[str, CachedValue]:
        """Snapshot of the cached entries."""
        return {
            repo: list(value) if isinstance(value, list) else value
            for repo, value in self._entries.items()
        }

    def flush(self) -> None:
        """Write the cache to disk.

        Raises:
            PersistenceError: If the file can't be written
        """
        tmp_path = self.cache_file.with_name(self.cache_file.name + ".tmp")
        try:
            self.cache_file.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(
                json.dumps(self._entries, indent=2, ensure_ascii=False),
                encoding="utf-8",
            )
            os.replace(tmp_path, self.cache_file)
        except OSError as e:
            with suppress(OSError):
                tmp_path.unlink(missing_ok=True)
            raise PersistenceError(f"Could not save cache to {self.cache_file}: {e}") from e

    def __len__(self) -> int:
        return len(self._entries)
