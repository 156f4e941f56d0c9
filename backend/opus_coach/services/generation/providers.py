"""Thin wrappers around the Anthropic and OpenAI SDKs.

Each provider makes exactly one call per request: SDK retries are disabled and
every client is bound to the configured timeout. Errors propagate to the
fallback chain, which decides what happens next.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

import anthropic
import openai

from opus_coach.core.config import Settings
from opus_coach.services.generation.types import GenerationKind

ANTHROPIC = "anthropic"
OPENAI = "openai"

SYSTEM_PROMPTS: Dict[GenerationKind, str] = {
    GenerationKind.GOALS: "You are an expert professional coach. Return ONLY valid JSON, no markdown or explanations.",
    GenerationKind.TASKS: "You are a task planning expert. Return ONLY valid JSON.",
    GenerationKind.REFLECTION: "You are an empathetic professional coach. Return ONLY valid JSON.",
    GenerationKind.REFLECTION_PROMPT: "You are a thoughtful professional coach. Return ONLY valid JSON.",
}


@dataclass(frozen=True)
class KindProfile:
    temperature: float
    max_tokens: int
    fast: bool = False


PROFILES: Dict[GenerationKind, KindProfile] = {
    GenerationKind.GOALS: KindProfile(temperature=0.7, max_tokens=2000),
    GenerationKind.TASKS: KindProfile(temperature=0.6, max_tokens=1500, fast=True),
    GenerationKind.REFLECTION: KindProfile(temperature=0.7, max_tokens=1500),
    GenerationKind.REFLECTION_PROMPT: KindProfile(temperature=0.8, max_tokens=200, fast=True),
}


class ProviderError(RuntimeError):
    """Raised when a provider answers without usable text."""


class TextProvider:
    """A language-model backend that turns a prompt into raw text."""

    name: str = "provider"

    @property
    def available(self) -> bool:
        raise NotImplementedError

    def complete(self, kind: GenerationKind, prompt: str) -> str:
        raise NotImplementedError


class AnthropicProvider(TextProvider):
    name = ANTHROPIC

    def __init__(
        self,
        api_key: Optional[str],
        *,
        model: str,
        fast_model: str,
        timeout: float,
        client: Optional[anthropic.Anthropic] = None,
    ) -> None:
        self.model = model
        self.fast_model = fast_model
        self._client = client
        if self._client is None and api_key:
            self._client = anthropic.Anthropic(api_key=api_key, timeout=timeout, max_retries=0)

    @property
    def available(self) -> bool:
        return self._client is not None

    def complete(self, kind: GenerationKind, prompt: str) -> str:
        if self._client is None:
            raise ProviderError("Anthropic client is not configured")
        profile = PROFILES[kind]
        response = self._client.messages.create(
            model=self.fast_model if profile.fast else self.model,
            max_tokens=profile.max_tokens,
            temperature=profile.temperature,
            system=SYSTEM_PROMPTS[kind],
            messages=[{"role": "user", "content": prompt}],
        )
        parts = [block.text for block in response.content if getattr(block, "type", None) == "text"]
        text = "".join(parts).strip()
        if not text:
            raise ProviderError("Anthropic returned no text content")
        return text


class OpenAIProvider(TextProvider):
    name = OPENAI

    def __init__(
        self,
        api_key: Optional[str],
        *,
        model: str,
        fast_model: str,
        timeout: float,
        client: Optional[openai.OpenAI] = None,
    ) -> None:
        self.model = model
        self.fast_model = fast_model
        self._client = client
        if self._client is None and api_key:
            self._client = openai.OpenAI(api_key=api_key, timeout=timeout, max_retries=0)

    @property
    def available(self) -> bool:
        return self._client is not None

    def complete(self, kind: GenerationKind, prompt: str) -> str:
        if self._client is None:
            raise ProviderError("OpenAI client is not configured")
        profile = PROFILES[kind]
        completion = self._client.chat.completions.create(
            model=self.fast_model if profile.fast else self.model,
            response_format={"type": "json_object"},
            temperature=profile.temperature,
            max_tokens=profile.max_tokens,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPTS[kind]},
                {"role": "user", "content": prompt},
            ],
        )
        content = completion.choices[0].message.content if completion.choices else None
        if not content or not content.strip():
            raise ProviderError("OpenAI returned an empty completion")
        return content


def build_providers(settings: Settings) -> List[TextProvider]:
    """Instantiate every known provider; unconfigured ones report `available = False`."""
    return [
        AnthropicProvider(
            settings.anthropic_api_key,
            model=settings.anthropic_model,
            fast_model=settings.anthropic_fast_model,
            timeout=settings.provider_timeout_seconds,
        ),
        OpenAIProvider(
            settings.openai_api_key,
            model=settings.openai_model,
            fast_model=settings.openai_fast_model,
            timeout=settings.provider_timeout_seconds,
        ),
    ]
