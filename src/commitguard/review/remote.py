"""Optional free-text review of the staged diff through the Claude API."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from commitguard.core.config import RemoteConfig

logger = logging.getLogger("commitguard.review")

MAX_DIFF_CHARS = 20000


@dataclass
class RemoteFeedback:
    text: str = ""
    rate_limited: bool = False


class RemoteReviewer:
    """Sends the filtered diff for review; never raises on API failure."""

    def __init__(self, config: RemoteConfig):
        self.config = config
        self._client = None

    def _get_client(self):
        """Lazy-initialize the Anthropic client."""
        if self._client is None:
            try:
                import anthropic
            except ImportError:
                raise ImportError(
                    "Remote review requires the anthropic package. "
                    "Install with: pip install commitguard[ai]"
                )
            self._client = anthropic.Anthropic(
                api_key=self.config.api_key,
                timeout=self.config.timeout_ms / 1000,
                max_retries=0,
            )
        return self._client

    def review(self, diff_text: str) -> RemoteFeedback | None:
        """Return feedback, a rate-limit marker, or None to fall back to local analysis."""
        if not self.config.enabled or not diff_text.strip():
            return None

        try:
            client = self._get_client()
        except ImportError as exc:
            logger.warning("%s", exc)
            return None

        try:
            response = client.messages.create(
                model=self.config.model,
                max_tokens=self.config.max_tokens,
                messages=[{"role": "user", "content": self._build_prompt(diff_text)}],
            )
        except Exception as exc:
            if getattr(exc, "status_code", None) == 429:
                logger.warning("Remote review rate-limited")
                return RemoteFeedback(rate_limited=True)
            logger.warning("Remote review failed, using local analysis only: %s", exc)
            return None

        text = "".join(
            getattr(block, "text", "") for block in getattr(response, "content", []) or []
        ).strip()
        if not text:
            return None
        return RemoteFeedback(text=text)

    def _build_prompt(self, diff_text: str) -> str:
        if len(diff_text) > MAX_DIFF_CHARS:
            diff_text = diff_text[:MAX_DIFF_CHARS] + "\n... (diff truncated)\n"
        return f"""You are reviewing a change that is about to be committed.

Review the staged diff below. Focus on security problems, bugs and
maintainability. Be concise: list concrete issues with file and line where
possible, then short suggested improvements. If the change looks fine, say so
in one line.

STAGED DIFF:
```diff
{diff_text}
```
"""
