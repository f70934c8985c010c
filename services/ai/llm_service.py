# services/ai/llm_service.py
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol

import httpx
from google import genai
from google.genai import types

from config.settings import Settings, get_settings
from services.errors import ProviderError
from utils.common_helpers import parse_json_strict

logger = logging.getLogger(__name__)

OPENAI_CHAT_URL = "https://api.openai.com/v1/chat/completions"


# ============================================================================
# PUBLIC INTERFACE
# ============================================================================

class LLMClient(Protocol):
    provider: str

    async def generate_json(self, *, system: str, user: str) -> str:
        """Return raw text that should be JSON."""


@dataclass
class LLMConfig:
    temperature: float = 0.3
    max_tokens: int = 500
    timeout_s: float = 15.0

    # Gemini (tried first)
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"

    # OpenAI (fallback)
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"

    @staticmethod
    def from_settings(settings: Optional[Settings] = None) -> "LLMConfig":
        s = settings or get_settings()
        return LLMConfig(
            temperature=s.ai_temperature,
            max_tokens=s.ai_max_tokens,
            timeout_s=s.ai_timeout_s,
            gemini_api_key=s.gemini_api_key,
            gemini_model=s.gemini_model,
            openai_api_key=s.openai_api_key,
            openai_model=s.openai_model,
        )


# ============================================================================
# PROVIDER CLIENTS
# ============================================================================

class OpenAIClient:
    provider = "openai"

    def __init__(
        self,
        api_key: str,
        model: str,
        temperature: float,
        *,
        max_tokens: int = 500,
        timeout_s: float = 15.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout_s = timeout_s
        self._http = http_client

    async def generate_json(self, *, system: str, user: str) -> str:
        payload = {
            "model": self.model,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "response_format": {"type": "json_object"},
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        try:
            if self._http is not None:
                r = await self._http.post(OPENAI_CHAT_URL, headers=headers, json=payload)
            else:
                async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout_s)) as client:
                    r = await client.post(OPENAI_CHAT_URL, headers=headers, json=payload)
        except httpx.HTTPError as e:
            raise ProviderError(self.provider, f"request failed: {e}") from e

        if r.status_code >= 400:
            raise ProviderError(self.provider, f"HTTP {r.status_code}")

        try:
            data = r.json()
            text = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ProviderError(self.provider, "no text in response") from e
        if not text:
            raise ProviderError(self.provider, "no text in response")
        return text


class GeminiClient:
    provider = "gemini"

    def __init__(
        self,
        api_key: str,
        model: str,
        temperature: float,
        *,
        max_tokens: int = 500,
        timeout_s: float = 15.0,
    ):
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout_s = timeout_s

    async def generate_json(self, *, system: str, user: str) -> str:
        # google-genai SDK is sync-ish; run in thread.
        try:
            text = await asyncio.wait_for(
                asyncio.to_thread(self._sync_call, system, user), self.timeout_s
            )
        except asyncio.TimeoutError as e:
            raise ProviderError(self.provider, "timeout") from e
        except ProviderError:
            raise
        except Exception as e:
            raise ProviderError(self.provider, f"generate_content failed: {e}") from e
        return text

    def _sync_call(self, system: str, user: str) -> str:
        client = genai.Client(api_key=self.api_key)

        contents = [
            types.Content(
                role="user",
                parts=[types.Part.from_text(text=f"{system}\n\n{user}")],
            )
        ]
        config = types.GenerateContentConfig(
            temperature=self.temperature,
            max_output_tokens=self.max_tokens,
            response_mime_type="application/json",
        )
        resp = client.models.generate_content(model=self.model, contents=contents, config=config)
        text = getattr(resp, "text", None)
        if not text:
            raise ProviderError(self.provider, "no text in response")
        return text


# ============================================================================
# LLM SERVICE
# ============================================================================

class LLMService:
    """Ordered provider chain: Gemini first when configured, then OpenAI."""

    def __init__(self, cfg: Optional[LLMConfig] = None, clients: Optional[List[LLMClient]] = None):
        self.cfg = cfg or LLMConfig.from_settings()
        self.clients: List[LLMClient] = clients if clients is not None else self._resolve_clients(self.cfg)

    @staticmethod
    def _resolve_clients(cfg: LLMConfig) -> List[LLMClient]:
        chain: List[LLMClient] = []
        if cfg.gemini_api_key:
            chain.append(GeminiClient(
                api_key=cfg.gemini_api_key,
                model=cfg.gemini_model,
                temperature=cfg.temperature,
                max_tokens=cfg.max_tokens,
                timeout_s=cfg.timeout_s,
            ))
        if cfg.openai_api_key:
            chain.append(OpenAIClient(
                api_key=cfg.openai_api_key,
                model=cfg.openai_model,
                temperature=cfg.temperature,
                max_tokens=cfg.max_tokens,
                timeout_s=cfg.timeout_s,
            ))
        return chain

    @property
    def configured(self) -> bool:
        return bool(self.clients)

    @staticmethod
    async def generate_json(client: LLMClient, *, system: str, user: str) -> Dict[str, Any]:
        """One provider call; malformed JSON counts as that provider failing."""
        raw = await client.generate_json(system=system, user=user)
        try:
            return parse_json_strict(raw)
        except ValueError as e:
            raise ProviderError(client.provider, f"malformed JSON: {e}") from e


_llm_singleton: Optional[LLMService] = None


def get_llm_service() -> LLMService:
    global _llm_singleton
    if _llm_singleton is None:
        _llm_singleton = LLMService()
    return _llm_singleton
