import logging
import time
from typing import Callable, List, Optional

import requests

from shared.core.config import settings
from ...core.exceptions import AssistantUpstreamError, QuotaExhaustedError, RateLimitedError

logger = logging.getLogger(__name__)

RETRYABLE_STATUS = (429, 503)


class ChatCompletionClient:
    """OpenAI compatible chat-completion client with exponential backoff."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        url: Optional[str] = None,
        model: Optional[str] = None,
        max_retries: Optional[int] = None,
        base_delay: Optional[float] = None,
        timeout: Optional[int] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.api_key = api_key or settings.AI_API_KEY
        self.url = url or settings.AI_GATEWAY_URL
        self.model = model or settings.AI_MODEL
        self.max_retries = max_retries or settings.AI_MAX_RETRIES
        self.base_delay = settings.AI_RETRY_BASE_DELAY if base_delay is None else base_delay
        self.timeout = timeout or settings.AI_REQUEST_TIMEOUT
        self.sleep = sleep

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _backoff(self, attempt: int):
        # no wait after the last attempt
        if attempt < self.max_retries - 1:
            self.sleep(self.base_delay * (2 ** attempt))

    def complete(
        self,
        messages: List[dict],
        tools: Optional[List[dict]] = None,
        temperature: float = 0.7,
        max_tokens: int = 8192,
    ) -> dict:
        """Returns the assistant message of the first choice."""
        if not self.api_key:
            raise AssistantUpstreamError("AI_API_KEY is not configured")

        body = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if tools:
            body["tools"] = tools
            body["tool_choice"] = "auto"

        last_status = None
        for attempt in range(self.max_retries):
            try:
                response = requests.post(
                    self.url, headers=self._headers(), json=body, timeout=self.timeout)
            except requests.RequestException as e:
                last_status = None
                logger.warning("AI call failed (attempt %s/%s): %s", attempt + 1, self.max_retries, e)
                self._backoff(attempt)
                continue

            if response.status_code in RETRYABLE_STATUS:
                last_status = response.status_code
                logger.warning("AI gateway returned %s (attempt %s/%s)",
                               response.status_code, attempt + 1, self.max_retries)
                self._backoff(attempt)
                continue

            if response.status_code == 402:
                raise QuotaExhaustedError("AI credits exhausted. Please add credits to continue.")

            if not response.ok:
                logger.error("AI gateway error %s: %s", response.status_code, response.text[:500])
                raise AssistantUpstreamError(f"AI gateway error: {response.status_code}")

            choices = response.json().get("choices") or []
            message = choices[0].get("message") if choices else None
            if not message:
                raise AssistantUpstreamError("No response from AI")
            return message

        if last_status == 429:
            raise RateLimitedError("Rate limit exceeded. Please try again in a moment.")
        raise AssistantUpstreamError("Max retries exceeded for AI API call")
