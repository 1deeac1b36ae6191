"""Configuration management."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_REPOSITORIES = [
    "jackocnr/intl-tel-input",
    "cure53/DOMPurify",
    "chartjs/Chart.js",
    "Choices-js/Choices",
    "WordPress/plugin-check",
]

SEVERITY_SYSTEM_PROMPT = (
    "You are a software engineer assessing how significant a new release "
    "of a third-party library is for the project that depends on it."
)

SEVERITY_USER_PROMPT = """Evaluate this release of {repo}.

Version: {tag}
URL: {url}
Release description/changelog:
\"\"\"
{notes}
\"\"\"

Determine the severity using exactly these rules:
- "low": cosmetic updates or documentation-only changes.
- "medium": bug fixes or minor performance improvements.
- "high": security fixes, critical bug fixes, or major new features.

Respond with a single JSON object containing exactly two keys and nothing else:
- "severity": one of "low", "medium", "high"
- "summary": a brief summary of the release (1-2 sentences)

Example:
{{"severity": "medium", "summary": "Fixes a dropdown rendering bug in Safari."}}"""


@dataclass
class ClaudeConfig:
    """Claude API settings."""
    model: str = "claude-sonnet-4-20250514"
    max_tokens: int = 1024
    temperature: float = 0.0
    max_retries: int = 5
    initial_retry_delay: float = 2.0
    request_delay: float = 1.5
    max_notes_chars: int = 8000


@dataclass
class PathsConfig:
    """Path settings."""
    cache_file: Path = Path("checked_versions.json")


@dataclass
class GitHubConfig:
    """GitHub API settings."""
    api_base: str = "https://api.github.com"
    issues_repo: Optional[str] = None
    assignees: list[str] = field(default_factory=list)


@dataclass
class MonitoringConfig:
    """Monitoring settings."""
    repositories: list[str] = field(default_factory=lambda: list(DEFAULT_REPOSITORIES))
    documentation_links: dict[str, str] = field(default_factory=dict)


@dataclass
class PromptsConfig:
    """Prompts for LLM."""
    severity_check: dict = field(default_factory=lambda: {
        "system": SEVERITY_SYSTEM_PROMPT,
        "user": SEVERITY_USER_PROMPT,
    })


@dataclass
class Settings:
    """Application settings."""

    # API Keys (from environment only)
    anthropic_api_key: str = ""
    github_token: Optional[str] = None
    slack_webhook_url: Optional[str] = None

    # Config sections
    claude: ClaudeConfig = field(default_factory=ClaudeConfig)
    paths: PathsConfig = field(default_factory=PathsConfig)
    github: GitHubConfig = field(default_factory=GitHubConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)
    prompts: PromptsConfig = field(default_factory=PromptsConfig)

    @property
    def cache_file(self) -> Path:
        return self.paths.cache_file

    @property
    def repositories(self) -> list[str]:
        return self.monitoring.repositories

    @property
    def documentation_links(self) -> dict[str, str]:
        return self.monitoring.documentation_links


def load_config(config_path: Path = Path("config.yaml")) -> dict:
    """Load configuration from YAML file."""
    if not config_path.exists():
        return {}

    with open(config_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def get_settings(config_path: Path = Path("config.yaml")) -> Settings:
    """Get application settings from YAML config and environment."""
    # Load YAML config
    config = load_config(config_path)

    # Get secrets from environment
    settings = Settings(
        anthropic_api_key=os.getenv("ANTHROPIC_API_KEY", ""),
        github_token=os.getenv("GITHUB_TOKEN") or None,
        slack_webhook_url=os.getenv("SLACK_WEBHOOK_URL") or os.getenv("SLACK_WEBHOOK") or None,
    )

    # Apply YAML config
    if "claude" in config:
        for key, value in config["claude"].items():
            setattr(settings.claude, key, value)

    if "paths" in config:
        for key, value in config["paths"].items():
            setattr(settings.paths, key, Path(value))

    if "github" in config:
        for key, value in config["github"].items():
            setattr(settings.github, key, value)

    if "monitoring" in config:
        for key, value in config["monitoring"].items():
            setattr(settings.monitoring, key, value)

    if "prompts" in config:
        settings.prompts = PromptsConfig(**config["prompts"])

    return settings
