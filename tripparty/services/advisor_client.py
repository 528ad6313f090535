# tripparty/services/advisor_client.py
import asyncio
import logging
from typing import Dict, List, Optional

import openai
from openai import AsyncOpenAI

from tripparty.core import config
from tripparty.core.errors import AdvisorTimeout, AdvisorUnavailable, RateLimited
from tripparty.services.advisor_tuning import CompletionParams

logger = logging.getLogger("tripparty.advisor.client")
logger.setLevel(logging.INFO)

TIMEOUT_MESSAGE = "Request timed out. Please try a more specific question or break it into smaller parts."
RATE_LIMIT_MESSAGE = "Service temporarily unavailable. Please try again in a few minutes."
UNAVAILABLE_MESSAGE = "Service temporarily unavailable"


def classify_failure(error: Exception):
    """Map a provider failure to the advisor's error categories."""
    if isinstance(error, (asyncio.TimeoutError, openai.APITimeoutError)):
        return AdvisorTimeout(TIMEOUT_MESSAGE)
    if isinstance(error, openai.RateLimitError):
        return RateLimited(RATE_LIMIT_MESSAGE)
    text = str(error).lower()
    if "timeout" in text or "timed out" in text:
        return AdvisorTimeout(TIMEOUT_MESSAGE)
    if "rate limit" in text:
        return RateLimited(RATE_LIMIT_MESSAGE)
    return AdvisorUnavailable(UNAVAILABLE_MESSAGE)


class AdvisorClient:
    """
    Chat-completion client for the travel advisor.

    One attempt per call, bounded by a caller-side deadline. The OpenAI client
    is built on first use so the app can start without an API key.
    """

    def __init__(
        self,
        model_name: Optional[str] = None,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
    ):
        self.model_name = model_name or config.ADVISOR_MODEL
        self.api_key = api_key
        self.base_url = base_url
        self.timeout_seconds = timeout_seconds or config.ADVISOR_TIMEOUT_SECONDS
        self._client: Optional[AsyncOpenAI] = None

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.api_key or config.OPENAI_API_KEY,
                base_url=self.base_url,
                # Our own deadline is the budget; a retry would blow it
                timeout=self.timeout_seconds + 5,
                max_retries=0,
            )
        return self._client

    async def _create(self, messages: List[Dict[str, str]], params: CompletionParams):
        return await self.client.chat.completions.create(
            model=self.model_name,
            messages=messages,
            temperature=params.temperature,
            max_tokens=params.max_tokens,
            top_p=1,
            frequency_penalty=0,
            presence_penalty=0,
        )

    async def complete(self, messages: List[Dict[str, str]], params: CompletionParams) -> str:
        logger.info(
            f"Issuing advisor request to model {self.model_name} "
            f"({len(messages)} messages, max_tokens={params.max_tokens}, temperature={params.temperature})"
        )
        try:
            response = await asyncio.wait_for(self._create(messages, params), timeout=self.timeout_seconds)
        except Exception as e:
            failure = classify_failure(e)
            logger.error(f"Advisor request to {self.model_name} failed ({failure.category}): {e}")
            raise failure from e

        if not getattr(response, "choices", None):
            logger.error(f"Received no choices from {self.model_name}: {response}")
            raise AdvisorUnavailable(UNAVAILABLE_MESSAGE)
        reply = (response.choices[0].message.content or "").strip()
        if not reply:
            logger.error(f"Model {self.model_name} returned empty content")
            raise AdvisorUnavailable(UNAVAILABLE_MESSAGE)
        logger.info(f"Received advisor reply from {self.model_name} ({len(reply)} chars)")
        return reply
