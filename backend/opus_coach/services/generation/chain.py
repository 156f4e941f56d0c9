"""Ordered provider fallback with a static last resort."""
from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from opus_coach.core.config import Settings
from opus_coach.observability.metrics import log_metric, log_provider_attempt
from opus_coach.observability.tracing import annotate, trace
from opus_coach.services.generation.parser import parse_response
from opus_coach.services.generation.providers import TextProvider
from opus_coach.services.generation.types import (
    GenerationKind,
    GenerationOutcome,
    GenerationValue,
    ProviderAttempt,
)

logger = logging.getLogger(__name__)

OK = "ok"
ERROR = "error"
UNPARSEABLE = "unparseable"
SKIPPED = "skipped"


def orders_from_settings(settings: Settings) -> Dict[GenerationKind, List[str]]:
    return {
        GenerationKind.GOALS: list(settings.goal_provider_order),
        GenerationKind.TASKS: list(settings.task_provider_order),
        GenerationKind.REFLECTION: list(settings.reflection_provider_order),
        GenerationKind.REFLECTION_PROMPT: list(settings.reflection_prompt_provider_order),
    }


class ProviderFallbackChain:
    """
    Try providers in the configured order for each kind of request.

    The first provider whose answer parses wins. Providers without credentials
    are skipped, failures and unparseable answers move on to the next one, and
    when nothing works the static fallback is returned. `generate` does not raise.
    """

    def __init__(self, providers: Iterable[TextProvider], orders: Mapping[GenerationKind, Sequence[str]]):
        self._providers: Dict[str, TextProvider] = {provider.name: provider for provider in providers}
        self._orders = {kind: list(order) for kind, order in orders.items()}

    def providers_for(self, kind: GenerationKind) -> List[TextProvider]:
        resolved: List[TextProvider] = []
        for name in self._orders.get(kind, []):
            provider = self._providers.get(name)
            if provider is None:
                logger.warning("Unknown provider %r in %s order; ignoring", name, kind.value)
                continue
            resolved.append(provider)
        return resolved

    def generate(
        self,
        kind: GenerationKind,
        week: int,
        prompt: str,
        fallback: Callable[[], GenerationValue],
    ) -> GenerationOutcome:
        attempts: List[ProviderAttempt] = []
        with trace("generation.chain", metadata={"kind": kind.value, "week": week}) as chain_trace:
            for provider in self.providers_for(kind):
                value = self._attempt(provider, kind, week, prompt, attempts)
                if value is not None:
                    outcome = GenerationOutcome(
                        kind=kind,
                        week=week,
                        value=value,
                        provider=provider.name,
                        attempts=attempts,
                    )
                    annotate(chain_trace, provider=provider.name, used_fallback=False)
                    return outcome

            logger.warning(
                "All providers failed for %s (week %s); using static fallback",
                kind.value,
                week,
            )
            log_metric("generation.fallback.used", 1, {"kind": kind.value, "week": week})
            annotate(chain_trace, provider=None, used_fallback=True)
            return GenerationOutcome(
                kind=kind,
                week=week,
                value=fallback(),
                used_fallback=True,
                attempts=attempts,
            )

    def _attempt(
        self,
        provider: TextProvider,
        kind: GenerationKind,
        week: int,
        prompt: str,
        attempts: List[ProviderAttempt],
    ) -> Optional[GenerationValue]:
        if not provider.available:
            self._record(attempts, provider.name, kind, SKIPPED, 0.0)
            return None

        started = time.perf_counter()
        try:
            raw_text = provider.complete(kind, prompt)
        except Exception as exc:
            latency_ms = (time.perf_counter() - started) * 1000
            logger.warning("%s call failed for %s: %s", provider.name, kind.value, exc)
            self._record(attempts, provider.name, kind, ERROR, latency_ms, error=str(exc) or type(exc).__name__)
            return None

        latency_ms = (time.perf_counter() - started) * 1000
        value = parse_response(kind, raw_text, week=week)
        if value is None:
            logger.warning("%s returned an unparseable %s response", provider.name, kind.value)
            self._record(attempts, provider.name, kind, UNPARSEABLE, latency_ms)
            return None

        self._record(attempts, provider.name, kind, OK, latency_ms)
        return value

    @staticmethod
    def _record(
        attempts: List[ProviderAttempt],
        provider: str,
        kind: GenerationKind,
        outcome: str,
        latency_ms: float,
        error: Optional[str] = None,
    ) -> None:
        attempts.append(ProviderAttempt(provider=provider, outcome=outcome, latency_ms=round(latency_ms, 1), error=error))
        logger.info("provider=%s kind=%s outcome=%s latency_ms=%.1f", provider, kind.value, outcome, latency_ms)
        log_provider_attempt(provider, kind.value, outcome, latency_ms)
