"""Claude API client for release severity classification."""

import asyncio
import json
import re

import httpx

from release_monitor.config import Settings
from release_monitor.core import (
    LLMClient,
    MalformedResponseError,
    ReleaseInfo,
    SeverityJudgment,
    TransportError,
)

EMPTY_NOTES_PLACEHOLDER = "(no release notes provided)"


class ClaudeClient(LLMClient):
    """Claude API client implementation."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.api_key = settings.anthropic_api_key
        self.model = settings.claude.model
        self.max_tokens = settings.claude.max_tokens
        self.temperature = settings.claude.temperature
        self.base_url = "https://api.anthropic.com/v1"
        self.max_retries = settings.claude.max_retries
        self.initial_retry_delay = settings.claude.initial_retry_delay
        self.request_delay = settings.claude.request_delay
        self.max_notes_chars = settings.claude.max_notes_chars
        self._last_request_time = 0.0

    async def classify_release(self, repo: str, release: ReleaseInfo) -> SeverityJudgment:
        """Classify the severity of a release.

        Raises:
            MalformedResponseError: If the response is not a valid {severity, summary} object
            TransportError: If the API could not be reached
        """
        prompt_template = self.settings.prompts.severity_check.get("user", "")
        system_prompt = self.settings.prompts.severity_check.get("system", "")

        notes = release.notes.strip() or EMPTY_NOTES_PLACEHOLDER
        prompt = prompt_template.format(
            repo=repo,
            tag=release.tag,
            url=release.url,
            notes=notes[:self.max_notes_chars],
        )

        try:
            response = await self._call_api(prompt=prompt, system=system_prompt)
        except (httpx.HTTPError, KeyError, IndexError, ValueError) as e:
            raise TransportError(f"Claude API call failed: {e}") from e

        # Extract JSON from markdown code block if present
        json_text = self._extract_json(response)

        try:
            data = json.loads(json_text)
        except json.JSONDecodeError as e:
            raise MalformedResponseError(
                f"Response is not valid JSON: {e}", raw_response=response
            ) from e

        try:
            return SeverityJudgment.from_response(data)
        except MalformedResponseError as e:
            e.raw_response = response
            raise

    async def _call_api(self, prompt: str, system: str) -> str:
        """Call Claude API with retry logic and rate limiting."""
        # Rate limiting: ensure minimum delay between requests
        current_time = asyncio.get_running_loop().time()
        time_since_last_request = current_time - self._last_request_time
        if time_since_last_request < self.request_delay:
            await asyncio.sleep(self.request_delay - time_since_last_request)

        last_exception = None

        for attempt in range(self.max_retries):
            try:
                async with httpx.AsyncClient(timeout=60.0) as client:
                    response = await client.post(
                        f"{self.base_url}/messages",
                        headers={
                            "x-api-key": self.api_key,
                            "anthropic-version": "2023-06-01",
                            "content-type": "application/json",
                        },
                        json={
                            "model": self.model,
                            "max_tokens": self.max_tokens,
                            "temperature": self.temperature,
                            "system": system,
                            "messages": [
                                {"role": "user", "content": prompt}
                            ],
                        },
                    )

                    self._last_request_time = asyncio.get_running_loop().time()

                    # Success case
                    if response.status_code == 200:
                        data = response.json()
                        return data["content"][0]["text"]

                    # Rate limit - retry with backoff
                    if response.status_code == 429:
                        retry_after = self._get_retry_delay(response, attempt)
                        print(f"⏳ Rate limit hit, retrying after {retry_after:.1f}s (attempt {attempt + 1}/{self.max_retries})")
                        await asyncio.sleep(retry_after)
                        continue

                    # Server errors - retry with backoff
                    if response.status_code >= 500:
                        retry_delay = self.initial_retry_delay * (2 ** attempt)
                        print(f"⚠️  Server error {response.status_code}, retrying after {retry_delay:.1f}s")
                        await asyncio.sleep(retry_delay)
                        continue

                    # Other errors - raise immediately
                    response.raise_for_status()

            except httpx.HTTPStatusError:
                # 4xx other than 429 won't succeed on retry
                raise
            except httpx.RequestError as e:
                last_exception = e
                if attempt < self.max_retries - 1:
                    retry_delay = self.initial_retry_delay * (2 ** attempt)
                    print(f"⚠️  Network error, retrying after {retry_delay:.1f}s")
                    await asyncio.sleep(retry_delay)
                    continue
                raise

        # If we exhausted all retries
        if last_exception:
            raise last_exception
        raise TransportError("Failed to call API after all retries")

    def _get_retry_delay(self, response: httpx.Response, attempt: int) -> float:
        """Calculate retry delay from response headers or use exponential backoff."""
        # Check for Retry-After header
        retry_after = response.headers.get("retry-after")
        if retry_after:
            try:
                return float(retry_after)
            except ValueError:
                pass

        # Exponential backoff
        return self.initial_retry_delay * (2 ** attempt)

    def _fix_json(self, text: str) -> str:
        """Try to fix common JSON issues."""
        # Remove trailing commas before } or ]
        text = re.sub(r',(\s*[}\]])', r'\1', text)
        return text

    def _extract_json(self, text: str) -> str:
        """Extract JSON from markdown code block or raw text."""
        # Strategy 1: Try to find JSON in markdown code block
        code_block_match = re.search(r'```(?:json)?\s*\n(.*?)\n```', text, re.DOTALL)
        if code_block_match:
            candidate = code_block_match.group(1).strip()
            return self._fix_json(candidate)

        # Strategy 2: Try to find JSON object with the severity field
        json_with_fields = re.search(
            r'\{[^{}]*"severity"\s*:\s*"[^"]*"[^{}]*\}',
            text,
            re.DOTALL
        )
        if json_with_fields:
            candidate = self._fix_json(json_with_fields.group(0))
            try:
                json.loads(candidate)
                return candidate
            except json.JSONDecodeError:
                pass

        # Strategy 3: Try to find any JSON object
        json_object_match = re.search(r'\{[^{}]*(?:\{[^{}]*\}[^{}]*)*\}', text, re.DOTALL)
        if json_object_match:
            candidate = self._fix_json(json_object_match.group(0))
            try:
                json.loads(candidate)
                return candidate
            except json.JSONDecodeError:
                pass

        # Strategy 4: Return as is (last resort)
        return self._fix_json(text.strip())
