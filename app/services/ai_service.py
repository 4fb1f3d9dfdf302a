"""
Claude integration for coaching message generation.

The coaching pipeline must never block on the AI provider, so this service
returns a CompletionResult value instead of raising: callers check `ok` and
fall back to templated text when generation fails. A missing API key is an
expected configuration, signalled by get_completion_provider() returning None.
"""

import asyncio
import random
import logging
from dataclasses import dataclass
from typing import Optional
from functools import wraps

from anthropic import Anthropic
import anthropic
import httpx

from app.config import settings


logger = logging.getLogger(__name__)


class ServiceUnavailableError(Exception):
    """AI service is temporarily unavailable."""

    pass


@dataclass(frozen=True)
class CompletionResult:
    """Either generated text or the reason generation failed."""

    text: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.text and self.text.strip())

    @classmethod
    def success(cls, text: str) -> "CompletionResult":
        return cls(text=text)

    @classmethod
    def failure(cls, error: str) -> "CompletionResult":
        return cls(error=error)


def retry_on_connection_error(max_attempts=3, base_delay=1.0):
    """
    Retry decorator for API calls that may fail due to transient network issues.

    Args:
        max_attempts: Maximum retry attempts (default 3)
        base_delay: Base delay in seconds for exponential backoff (default 1.0)
    """

    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            last_exception = None

            for attempt in range(max_attempts):
                try:
                    return await func(*args, **kwargs)
                except anthropic.APIConnectionError as e:
                    last_exception = e

                    if attempt < max_attempts - 1:
                        # Exponential backoff with jitter
                        delay = base_delay * (2**attempt)
                        jitter = (
                            delay * 0.1 * (2 * random.random() - 1)
                        )  # ±10% random variance
                        sleep_time = delay + jitter

                        logger.warning(
                            "Connection error on attempt %d/%d, retrying in %.1fs...",
                            attempt + 1,
                            max_attempts,
                            sleep_time,
                        )
                        await asyncio.sleep(sleep_time)
                    else:
                        logger.error("All %d attempts failed", max_attempts)

            raise ServiceUnavailableError(
                "AI service temporarily unavailable after retries"
            ) from last_exception

        return wrapper

    return decorator


class ClaudeService:
    """Text completion capability backed by the Anthropic API."""

    def __init__(self, api_key: Optional[str] = None):
        timeout = httpx.Timeout(
            timeout=settings.anthropic_timeout,
            connect=settings.anthropic_connect_timeout,
        )
        self.client = Anthropic(
            api_key=api_key or settings.anthropic_api_key, timeout=timeout
        )
        self.model = settings.coaching_model

    async def complete(
        self,
        system: str,
        prompt: str,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> CompletionResult:
        """
        Generate a single completion for a coaching prompt.

        Args:
            system: Persona/system prompt
            prompt: User prompt with the member's data
            max_tokens: Output cap (defaults to settings.coaching_max_tokens)
            temperature: Sampling temperature (defaults to settings.coaching_temperature)

        Returns:
            CompletionResult with the trimmed text, or with an error description
        """
        try:
            text = await self._create_message(
                system=system,
                prompt=prompt,
                max_tokens=max_tokens or settings.coaching_max_tokens,
                temperature=(
                    settings.coaching_temperature if temperature is None else temperature
                ),
            )
        except ServiceUnavailableError as e:
            logger.warning("Coaching completion unavailable: %s", e)
            return CompletionResult.failure("service_unavailable")
        except anthropic.RateLimitError:
            logger.warning("Coaching completion rate limited")
            return CompletionResult.failure("rate_limited")
        except anthropic.APIStatusError as e:
            logger.warning(
                "Coaching completion failed with status %s: %s", e.status_code, e.message
            )
            return CompletionResult.failure(f"status_{e.status_code}")
        except anthropic.APIError as e:
            logger.warning("Coaching completion failed: %s", e)
            return CompletionResult.failure("api_error")

        if not text:
            return CompletionResult.failure("empty_response")
        return CompletionResult.success(text)

    @retry_on_connection_error()
    async def _create_message(
        self, system: str, prompt: str, max_tokens: int, temperature: float
    ) -> str:
        response = self.client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            temperature=temperature,
            system=system,
            messages=[{"role": "user", "content": prompt}],
        )

        response_text = ""
        for block in response.content:
            if hasattr(block, "text"):
                response_text += block.text
        return response_text.strip()


def get_completion_provider() -> Optional[ClaudeService]:
    """The configured completion capability, or None when no key is set."""
    if not settings.anthropic_api_key:
        return None
    return ClaudeService()
