"""
Remote enrichment - asks a Claude model to turn a property query into filters.
Falls back to the keyword extractor whenever the model is unavailable or its
answer cannot be used.
"""

import json
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import anthropic

from propfinder.config import EnrichmentConfig
from propfinder.error_handling import EnrichmentError
from propfinder.filtering import CriteriaExtractor
from propfinder.models import FilterSource, SearchFilters

logger = logging.getLogger(__name__)


SYSTEM_PROMPT = (
    "You are a real estate assistant. Extract structured search filters from the "
    "natural language query. Return a JSON object with fields: propertyType, "
    "bedrooms, bathrooms, minPrice, maxPrice, location, features. "
    "Use null if a value is missing. Return only the JSON object."
)


@dataclass(frozen=True)
class ValidatedFilters:
    """Filters produced locally by the keyword extractor"""
    filters: SearchFilters
    source: FilterSource = FilterSource.KEYWORD

    def resolve(self) -> SearchFilters:
        return self.filters

    def logged_payload(self) -> Dict[str, Any]:
        return self.filters.to_public()


@dataclass(frozen=True)
class UnvalidatedFilters:
    """Raw JSON object returned by the model. Not trusted until resolved."""
    payload: Dict[str, Any]
    source: FilterSource = FilterSource.MODEL

    def resolve(self) -> SearchFilters:
        return SearchFilters.from_untrusted(self.payload)

    def logged_payload(self) -> Dict[str, Any]:
        return dict(self.payload)


EnrichmentResult = Union[ValidatedFilters, UnvalidatedFilters]


def _reject_constant(name: str):
    # NaN and Infinity are not JSON and cannot be stored in a JSONB column
    raise EnrichmentError(f"Non-finite number in model reply: {name}")


def _finite_float(literal: str) -> float:
    value = float(literal)
    if not math.isfinite(value):
        raise EnrichmentError(f"Number out of range in model reply: {literal}")
    return value


def _decode(text: str) -> Any:
    return json.loads(text, parse_constant=_reject_constant, parse_float=_finite_float)


def parse_model_reply(text: Optional[str]) -> Dict[str, Any]:
    """
    Pull the JSON object out of a model reply.

    Accepts a bare object or an object surrounded by prose or code fences.

    Args:
        text: Raw reply text

    Returns:
        The decoded JSON object

    Raises:
        EnrichmentError: If no JSON object can be decoded
    """
    if not text or not text.strip():
        raise EnrichmentError("Empty model reply")

    candidate = text.strip()
    try:
        data = _decode(candidate)
    except json.JSONDecodeError:
        start = candidate.find("{")
        end = candidate.rfind("}")
        if start == -1 or end <= start:
            raise EnrichmentError(f"No JSON object in model reply: {candidate[:200]}")
        try:
            data = _decode(candidate[start:end + 1])
        except json.JSONDecodeError as e:
            raise EnrichmentError(f"Malformed JSON in model reply: {e}") from e

    if not isinstance(data, dict):
        raise EnrichmentError(f"Model reply is not a JSON object: {type(data).__name__}")
    return data


class RemoteEnrichmentAdapter:
    """Extract search filters with Claude, falling back to keyword rules"""

    def __init__(
        self,
        config: EnrichmentConfig,
        extractor: CriteriaExtractor,
        client: Optional[Any] = None
    ):
        """
        Args:
            config: Model, key and timeout settings
            extractor: Keyword extractor used as the fallback
            client: Pre-built async Anthropic client (built from config if omitted)
        """
        self.config = config
        self.extractor = extractor

        if client is None and config.is_available:
            client = anthropic.AsyncAnthropic(
                api_key=config.api_key,
                timeout=config.timeout_seconds,
                max_retries=0,
            )
        self.client = client
        self.use_llm = config.enabled and self.client is not None

    async def enrich(self, query: str) -> EnrichmentResult:
        """
        Turn a query into filters, never raising.

        Makes at most one model call. Any failure is logged and answered with
        the keyword extractor's result for the same query.

        Args:
            query: Natural-language search text

        Returns:
            UnvalidatedFilters with the model's object, or ValidatedFilters
            from the keyword extractor
        """
        if self.use_llm:
            try:
                payload = await self._ask_model(query)
                logger.info(f"Model extracted filters for query: {query!r}")
                return UnvalidatedFilters(payload=payload)
            except Exception as e:
                logger.warning(f"Model filter extraction failed, using keyword rules: {e}")

        return ValidatedFilters(filters=self.extractor.extract(query))

    async def close(self):
        """Close the model client's connections"""
        close = getattr(self.client, "close", None)
        if close is not None:
            await close()

    async def _ask_model(self, query: str) -> Dict[str, Any]:
        response = await self.client.messages.create(
            model=self.config.model,
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
            system=SYSTEM_PROMPT,
            messages=[{
                "role": "user",
                "content": query
            }],
            timeout=self.config.timeout_seconds,
        )

        if not response.content:
            raise EnrichmentError("Model returned no content")
        return parse_model_reply(getattr(response.content[0], "text", None))
