import asyncio
import json
from abc import ABC, abstractmethod
from typing import Any

import httpx

from learnpath.core.json_parser import parse_llm_json
from learnpath.core.llm_errors import (
    InvalidResponseShape,
    LLMTimeout,
    NotJson,
    ParseError,
    TransportError,
)
from learnpath.core.logging import DOMAIN_GENERATION, get_domain_logger
from learnpath.core.settings import settings

logger = get_domain_logger(__name__, DOMAIN_GENERATION)


def _estimate_tokens(text: str) -> int:
    # Lightweight deterministic estimate used for observability without provider-specific token APIs.
    return max(1, len((text or "").strip()) // 4)


def extract_candidate_text(data: Any) -> str:
    """Pull the text payload out of a generateContent response body."""
    if not isinstance(data, dict):
        raise InvalidResponseShape()
    candidates = data.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        raise InvalidResponseShape()
    content = candidates[0].get("content") if isinstance(candidates[0], dict) else None
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        raise InvalidResponseShape()
    texts = [p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str)]
    if not texts:
        raise InvalidResponseShape()
    return "".join(texts)


class BaseLLMProvider(ABC):
    provider_name: str

    @abstractmethod
    async def execute(self, prompt: str, timeout_ms: int) -> Any:
        """Send one prompt and return the decoded JSON value of the completion."""
        raise NotImplementedError


class GeminiLLMProvider(BaseLLMProvider):
    provider_name = "gemini"

    def __init__(
        self,
        model_name: str | None = None,
        *,
        api_key: str | None = None,
        api_base: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.model_name = model_name or settings.llm_model
        self.api_key = settings.gemini_api_key if api_key is None else api_key
        self.api_base = (api_base or settings.gemini_api_base).rstrip("/")
        self._transport = transport

    @property
    def api_url(self) -> str:
        return f"{self.api_base}/models/{self.model_name}:generateContent"

    async def _post(self, prompt: str) -> httpx.Response:
        payload = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
        # The timer in execute() bounds the call; no client-side timeout here.
        async with httpx.AsyncClient(transport=self._transport, timeout=None) as client:
            return await client.post(self.api_url, params={"key": self.api_key}, json=payload)

    async def execute(self, prompt: str, timeout_ms: int) -> Any:
        if not self.api_key:
            logger.error("Gemini call skipped: GEMINI_API_KEY is not configured")
            raise TransportError(0, "GEMINI_API_KEY is not configured")

        request = asyncio.ensure_future(self._post(prompt))
        try:
            response = await asyncio.wait_for(request, timeout=timeout_ms / 1000)
        except asyncio.TimeoutError:
            # wait_for cancels the in-flight request; the remote side may still finish.
            logger.warning("Gemini request timed out after %sms (model=%s)", timeout_ms, self.model_name)
            raise LLMTimeout(timeout_ms) from None
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.error("Gemini transport failure (model=%s): %s", self.model_name, exc)
            raise TransportError(0, str(exc)) from exc

        if response.is_error:
            body = response.text
            logger.error("Gemini request failed | status=%s | body=%s", response.status_code, body)
            raise TransportError(response.status_code, body)

        try:
            text = extract_candidate_text(response.json())
        except (ValueError, InvalidResponseShape):
            logger.error("Unexpected Gemini response shape: %s", response.text)
            raise InvalidResponseShape() from None

        try:
            value = parse_llm_json(text)
        except NotJson as exc:
            logger.error("Gemini response is not JSON | normalized=%s", exc.text)
            raise
        except ParseError as exc:
            logger.error("JSON parse error: %s | normalized=%s", exc.detail, exc.text)
            raise

        logger.info(
            json.dumps(
                {
                    "type": "llm_usage",
                    "provider": self.provider_name,
                    "model": self.model_name,
                    "prompt_tokens_estimate": _estimate_tokens(prompt),
                    "completion_tokens_estimate": _estimate_tokens(text),
                }
            )
        )
        return value


def get_llm_provider() -> BaseLLMProvider:
    return GeminiLLMProvider(model_name=settings.llm_model)
