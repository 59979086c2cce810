"""Note summaries.

Gemini (google-genai SDK) writes the summary when an API key is configured.
The SDK is sync, so calls run in a worker thread with retry/backoff and an
overall timeout. Any upstream failure degrades to a summary computed
locally; key points and insights are always local.
"""
import asyncio
import logging
import random
import re
from dataclasses import dataclass, field

from securepad.config import Settings
from securepad.errors import InvalidInput, UpstreamUnavailable

logger = logging.getLogger(__name__)

MIN_SUMMARY_CHARS = 50
MAX_PROMPT_CHARS = 30000

SUMMARY_PROMPT = "Summarize the following text clearly and concisely:\n\n{content}"

DEFAULT_KEY_POINTS = [
    "Main content focuses on the topics discussed",
    "Multiple points and ideas are covered",
    "Further details available in full text",
]

_SENTENCE_RE = re.compile(r"[^.!?]+[.!?]+")
_BULLET_RE = re.compile(r"^[-*•]\s")


@dataclass
class Summary:
    summary: str
    key_points: list[str] = field(default_factory=list)
    insights: str = ""
    source: str = "fallback"


class GeminiSummaryProvider:
    """Async wrapper around the sync google-genai client."""

    RETRYABLE_EXCEPTIONS: tuple[type[BaseException], ...] = (ConnectionError, TimeoutError)

    def __init__(self, api_key: str, model_name: str, timeout: float = 30.0, max_retries: int = 2):
        from google import genai
        from google.genai import errors

        self.RETRYABLE_EXCEPTIONS = (errors.ServerError, ConnectionError, TimeoutError)
        self.client = genai.Client(api_key=api_key)
        self.model_name = model_name
        self.timeout = timeout
        self.max_retries = max_retries

    def _sync_generate(self, prompt: str) -> str:
        from google.genai import types

        config = types.GenerateContentConfig(temperature=0.3)
        response = self.client.models.generate_content(
            model=self.model_name, contents=prompt, config=config,
        )
        return response.text or ""

    async def _with_retry(self, sync_fn, *args):
        """Run a sync SDK call in a thread with exponential backoff for transient errors."""
        for attempt in range(self.max_retries + 1):
            try:
                return await asyncio.to_thread(sync_fn, *args)
            except self.RETRYABLE_EXCEPTIONS as e:
                if attempt == self.max_retries:
                    raise
                delay = (2 ** (attempt + 1)) + random.uniform(0, 1)
                logger.warning(
                    "Gemini call failed (attempt %d/%d), retrying in %.1fs: %s",
                    attempt + 1, self.max_retries + 1, delay, e,
                )
                await asyncio.sleep(delay)

    async def generate(self, prompt: str) -> str:
        try:
            return await asyncio.wait_for(
                self._with_retry(self._sync_generate, prompt), timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            raise UpstreamUnavailable(f"Summarization timed out after {self.timeout}s")
        except UpstreamUnavailable:
            raise
        except Exception as e:
            raise UpstreamUnavailable(f"Summarization failed: {e}") from e


def fallback_summary(text: str) -> str:
    """First three sentences, or the first 200 characters."""
    sentences = [s.strip() for s in _SENTENCE_RE.findall(text)]
    summary = " ".join(s for s in sentences[:3] if s)
    return summary or text[:200] + "..."


def extract_key_points(text: str) -> list[str]:
    """Bullet lines and short lines, up to five, bullet markers removed."""
    lines = [line for line in text.split("\n") if line.strip()]
    points = [
        _BULLET_RE.sub("", line.strip(), count=1).strip()
        for line in lines
        if _BULLET_RE.match(line) or len(line) < 100
    ][:5]
    return points or list(DEFAULT_KEY_POINTS)


def generate_insights(text: str) -> str:
    word_count = len(text.split())
    line_count = len(text.split("\n"))
    if word_count > 500:
        band = "This is a detailed document with substantial content."
    elif word_count > 200:
        band = "This is a medium-length note."
    else:
        band = "This is a brief note."
    return f"This note contains approximately {word_count} words across {line_count} lines. {band}"


class Summarizer:
    """Summaries with a Gemini provider when available, local fallback otherwise."""

    def __init__(self, provider: GeminiSummaryProvider | None = None):
        self.provider = provider

    @classmethod
    def from_settings(cls, settings: Settings) -> "Summarizer":
        if not settings.GEMINI_API_KEY:
            logger.info("GEMINI_API_KEY not set, summaries use the local fallback")
            return cls(provider=None)
        return cls(GeminiSummaryProvider(
            api_key=settings.GEMINI_API_KEY,
            model_name=settings.GEMINI_MODEL,
            timeout=settings.SUMMARY_TIMEOUT_SECONDS,
        ))

    async def summarize(self, text: str) -> Summary:
        if len(text.strip()) < MIN_SUMMARY_CHARS:
            raise InvalidInput(f"Content must be at least {MIN_SUMMARY_CHARS} characters")

        key_points = extract_key_points(text)
        insights = generate_insights(text)

        if self.provider is not None:
            prompt = SUMMARY_PROMPT.format(content=text[:MAX_PROMPT_CHARS])
            try:
                summary = (await self.provider.generate(prompt)).strip()
                if summary:
                    return Summary(summary, key_points, insights, source="gemini")
                logger.warning("Gemini returned an empty summary, using fallback")
            except UpstreamUnavailable as e:
                logger.warning(f"{e.message}; using fallback summary")

        return Summary(fallback_summary(text), key_points, insights, source="fallback")
