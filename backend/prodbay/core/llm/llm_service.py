# backend/prodbay/core/llm/llm_service.py
"""
LLM client wrapper for ProdBay brief analysis.

Owns the OpenAI-compatible client and the JSON-answer conventions shared by
asset allocation and highlight extraction. When no API key is configured
the service stays unavailable and callers fall back to rule-based logic.

Usage:
    from prodbay.core.llm.llm_service import LLMService

    llm = LLMService()
    if llm.is_available:
        content = await llm.complete(system_prompt, user_prompt)
        data = LLMService.parse_json_response(content)
"""

import asyncio
import json
import logging
import re
from typing import Any, Dict, Optional

import httpx
import urllib3
from openai import OpenAI

from prodbay.config import settings
from prodbay.core.errors import ExternalServiceError

logger = logging.getLogger("prodbay.llm")


class LLMService:
    """Service for LLM interactions."""

    def __init__(self):
        self._client: Optional[OpenAI] = None
        self._initialize_client()

    def _initialize_client(self) -> None:
        """Initialize OpenAI client with configuration."""
        if not settings.openai_api_key:
            self._client = None
            logger.info("OpenAI API key not configured; AI brief analysis disabled")
            return

        try:
            # Disable SSL warnings if SSL verification is disabled
            if not settings.openai_verify_ssl:
                urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

            http_client = httpx.Client(
                verify=settings.openai_verify_ssl,
                timeout=settings.openai_timeout,
            )

            self._client = OpenAI(
                api_key=settings.openai_api_key,
                base_url=settings.openai_base_url,
                http_client=http_client,
                max_retries=settings.openai_max_retries,
            )

        except Exception as e:
            logger.warning(f"Failed to initialize OpenAI client: {e}")
            self._client = None

    @property
    def is_available(self) -> bool:
        """Check if LLM client is available."""
        return self._client is not None

    @property
    def model(self) -> str:
        return settings.openai_model

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        json_mode: bool = False,
    ) -> str:
        """
        Run one chat completion and return the message content.

        Raises:
            ExternalServiceError: client unavailable, request failed, or empty answer
        """
        if not self._client:
            raise ExternalServiceError("OpenAI API key not configured")

        kwargs: Dict[str, Any] = {
            "model": settings.openai_model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": settings.openai_temperature if temperature is None else temperature,
            "max_tokens": max_tokens or settings.openai_max_tokens,
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            # Sync client: keep it off the event loop
            resp = await asyncio.to_thread(self._client.chat.completions.create, **kwargs)
        except Exception as e:
            raise ExternalServiceError(f"LLM request failed: {e}") from e

        content = resp.choices[0].message.content if resp.choices else None
        if not content:
            raise ExternalServiceError("LLM returned an empty response")

        logger.debug(f"Raw LLM response: {content[:500]}")
        return content

    @staticmethod
    def parse_json_response(content: str) -> Dict[str, Any]:
        """
        Decode a JSON object from an LLM answer.

        Strips markdown code fences and anything outside the outermost
        ``{...}`` before decoding.

        Raises:
            ExternalServiceError: if no JSON object can be decoded
        """
        cleaned = (content or "").strip()
        cleaned = re.sub(r"^```(?:json)?\s*", "", cleaned)
        cleaned = re.sub(r"\s*```$", "", cleaned).strip()

        json_match = re.search(r"\{[\s\S]*\}", cleaned)
        if json_match:
            cleaned = json_match.group(0)

        try:
            data = json.loads(cleaned)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse AI response: {e}")
            raise ExternalServiceError(f"Failed to parse AI response: {e}") from e

        if not isinstance(data, dict):
            raise ExternalServiceError("Failed to parse AI response: expected a JSON object")
        return data

    async def test_connection(self) -> Dict[str, Any]:
        """Send a minimal prompt and report whether the endpoint answered."""
        if not self._client:
            return {
                "healthy": False,
                "error": "OpenAI API key not configured",
                "model": settings.openai_model,
            }

        try:
            await asyncio.to_thread(
                self._client.chat.completions.create,
                model=settings.openai_model,
                messages=[{"role": "user", "content": "Hello"}],
                max_tokens=5,
            )
            return {"healthy": True, "model": settings.openai_model}
        except Exception as e:
            return {"healthy": False, "error": str(e), "model": settings.openai_model}
