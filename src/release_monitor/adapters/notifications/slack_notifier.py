"""Slack notification adapter."""

import re
from typing import Optional

import httpx

from release_monitor.core.errors import SinkError
from release_monitor.core.interfaces import NotificationService


class SlackNotifier(NotificationService):
    """Send notifications to Slack via webhook."""

    def __init__(self, webhook_url: Optional[str] = None) -> None:
        """Initialize Slack notifier.

        Args:
            webhook_url: Slack webhook URL. If None, notifications are skipped.
        """
        self.webhook_url = webhook_url

    def _convert_markdown_to_mrkdwn(self, text: str) -> str:
        """Convert markdown to Slack mrkdwn format.

        Args:
            text: Markdown text

        Returns:
            Text in Slack mrkdwn format
        """
        # Convert markdown links [text](url) to Slack format <url|text>
        text = re.sub(r'\[([^\]]+)\]\(([^)]+)\)', r'<\2|\1>', text)

        # Convert markdown bold **text** to Slack bold *text*
        text = re.sub(r'\*\*([^*]+)\*\*', r'*\1*', text)

        return text

    async def send_message(self, text: str) -> None:
        """Send a message to Slack.

        Args:
            text: Message text (in markdown)

        Raises:
            SinkError: If the webhook rejects the message or can't be reached
        """
        if not self.webhook_url:
            # Silently skip if no webhook configured
            return

        payload = {
            "text": self._convert_markdown_to_mrkdwn(text),
            "mrkdwn": True,
        }

        async with httpx.AsyncClient(timeout=30.0) as client:
            try:
                response = await client.post(self.webhook_url, json=payload)
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise SinkError(
                    "slack",
                    "webhook rejected message",
                    status_code=e.response.status_code,
                    body=e.response.text,
                ) from e
            except httpx.HTTPError as e:
                raise SinkError("slack", str(e)) from e
