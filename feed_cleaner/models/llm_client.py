"""Async Gemini classification client with fail-open fallback."""

import re
import time
from typing import Any

import httpx
import orjson

from ..config import Settings, get_settings
from ..logging import get_logger, log_api_request, log_error
from ..utils import RateLimiter
from .items import FALLBACK_RESULT, Category, ClassificationResult

logger = get_logger(__name__)

# First brace-delimited object without nested braces
_JSON_OBJECT = re.compile(r"\{[^}]+\}")
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class ClassificationError(Exception):
    """Oracle call or response parsing failed."""
    pass


def build_prompt(template: str, author: str, content: str) -> str:
    """Substitute the first ``{{author}}`` and ``{{content}}`` placeholders."""
    return template.replace("{{author}}", author, 1).replace("{{content}}", content, 1)


def coerce_score(value: Any, default: int = FALLBACK_RESULT.score) -> int:
    """Read an integer score the way a lenient integer parse would.

    ``7``, ``7.9`` and ``"7/10"`` all give 7; anything unreadable gives
    ``default``.
    """
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value == value and abs(value) != float("inf") else default
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        if match:
            return int(match.group(1))
    return default


def parse_oracle_text(text: str) -> ClassificationResult:
    """Extract a classification from the oracle's free-form reply.

    Raises:
        ClassificationError: No usable JSON object, or the object reports an error
    """
    match = _JSON_OBJECT.search(text or "")
    if not match:
        raise ClassificationError("No JSON object in oracle reply")

    try:
        parsed = orjson.loads(match.group(0))
    except orjson.JSONDecodeError as e:
        raise ClassificationError(f"Malformed JSON in oracle reply: {e}") from e

    if not isinstance(parsed, dict):
        raise ClassificationError("Oracle reply is not a JSON object")
    if parsed.get("error"):
        raise ClassificationError(f"Oracle reported error: {parsed['error']}")

    return ClassificationResult(
        score=coerce_score(parsed.get("informativeness")),
        category=Category.parse(parsed.get("category") or Category.NORMAL.value)
    )


def extract_candidate_text(data: Any) -> str:
    """Pull the generated text out of a generateContent envelope."""
    try:
        return data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as e:
        raise ClassificationError("Oracle response has no candidate text") from e


class ClassificationClient:
    """Scores feed items through the external oracle.

    Every failure path returns the same permissive fallback result, which is
    indistinguishable from a genuine ``normal``/8 answer.
    """

    def __init__(
        self,
        api_key: str,
        prompt_template: str,
        rate_limiter: RateLimiter,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None
    ):
        """Initialize classification client.

        Args:
            api_key: Oracle credential; empty disables oracle calls
            prompt_template: Template with ``{{author}}`` and ``{{content}}``
            rate_limiter: Shared request budget
            settings: Application settings
            http_client: Optional pre-built HTTP client
        """
        self.api_key = api_key
        self.prompt_template = prompt_template
        self.rate_limiter = rate_limiter
        self.settings = settings or get_settings()
        self._client = http_client
        self._owns_client = http_client is None

        if not self.api_key:
            logger.warning("No oracle API key configured, all items pass through")

    async def __aenter__(self) -> "ClassificationClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.settings.request_timeout_seconds)
        return self._client

    async def classify(self, content: str, author: str) -> ClassificationResult:
        """Classify one item, falling back to a permissive result on any failure."""
        if not self.api_key:
            return FALLBACK_RESULT

        if not self.rate_limiter.try_acquire():
            logger.warning("Skipping classification, rate budget exhausted")
            return FALLBACK_RESULT

        prompt = build_prompt(self.prompt_template, author, content)

        try:
            text = await self._request(prompt)
            result = parse_oracle_text(text)
        except (ClassificationError, httpx.HTTPError) as e:
            logger.warning("Classification failed, using fallback", **log_error(e, context="classify"))
            return FALLBACK_RESULT
        except Exception as e:
            logger.error("Unexpected classification error, using fallback", **log_error(e, context="classify"))
            return FALLBACK_RESULT

        logger.debug(
            "Item classified",
            score=result.score,
            category=result.category.value
        )
        return result

    async def _request(self, prompt: str) -> str:
        url = self.settings.generate_content_url
        payload = {"contents": [{"parts": [{"text": prompt}]}]}
        start_time = time.time()

        response = await self._http().post(
            url,
            params={"key": self.api_key},
            headers={"Content-Type": "application/json"},
            content=orjson.dumps(payload)
        )
        response_time = time.time() - start_time

        logger.debug(
            "Oracle request finished",
            **log_api_request("POST", url, status_code=response.status_code, response_time=response_time)
        )

        if not response.is_success:
            raise ClassificationError(
                f"API request failed: {response.status_code} {response.reason_phrase}"
            )

        try:
            data = orjson.loads(response.content)
        except orjson.JSONDecodeError as e:
            raise ClassificationError("Oracle response is not JSON") from e

        if isinstance(data, dict) and data.get("error"):
            logger.error("Oracle API error", error=data["error"])
            raise ClassificationError(f"Oracle API error: {data['error']}")

        return extract_candidate_text(data)
