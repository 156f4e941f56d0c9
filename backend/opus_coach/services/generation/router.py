"""Dispatch generation requests to the right week's prompt and fallback."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial
from typing import Callable, Dict, Optional, Tuple

from opus_coach.core.config import Settings
from opus_coach.core.errors import InvalidWeekError
from opus_coach.services.generation.chain import ProviderFallbackChain, orders_from_settings
from opus_coach.services.generation.fallbacks import FALLBACKS, FallbackFn
from opus_coach.services.generation.prompts import build_prompt
from opus_coach.services.generation.providers import build_providers
from opus_coach.services.generation.types import GenerationContext, GenerationKind, GenerationOutcome
from opus_coach.services.program.themes import FINAL_WEEK, FIRST_WEEK, is_program_week, theme_for

logger = logging.getLogger(__name__)

PromptTemplate = Callable[..., str]


@dataclass(frozen=True)
class Route:
    template: PromptTemplate
    fallback: FallbackFn


def _build_routes() -> Dict[Tuple[int, GenerationKind], Route]:
    routes: Dict[Tuple[int, GenerationKind], Route] = {}
    for week in range(FIRST_WEEK, FINAL_WEEK + 1):
        for kind in GenerationKind:
            routes[(week, kind)] = Route(template=partial(build_prompt, kind, week), fallback=FALLBACKS[(week, kind)])
    return routes


ROUTES = _build_routes()


class GenerationRouter:
    """Entry point for every AI generation request."""

    def __init__(self, chain: ProviderFallbackChain, routes: Optional[Dict[Tuple[int, GenerationKind], Route]] = None):
        self.chain = chain
        self.routes = routes if routes is not None else ROUTES

    @classmethod
    def from_settings(cls, settings: Settings) -> "GenerationRouter":
        chain = ProviderFallbackChain(build_providers(settings), orders_from_settings(settings))
        return cls(chain)

    def route(self, kind: GenerationKind, week: int, context: GenerationContext) -> GenerationOutcome:
        """
        Generate `kind` content for a program week.

        Raises InvalidWeekError for weeks outside the program and
        MissingContextError when the context does not fit the kind. Provider
        failures never escape: the outcome then carries static content.
        """
        kind = GenerationKind(kind)
        if not is_program_week(week):
            raise InvalidWeekError(week)

        route = self.routes[(week, kind)]
        theme = theme_for(week)
        next_theme = theme_for(week + 1) if kind is GenerationKind.REFLECTION else None
        prompt = route.template(context, theme=theme, next_theme=next_theme)

        outcome = self.chain.generate(kind, week, prompt, lambda: route.fallback(context))
        logger.info(
            "Generated %s for week %s via %s",
            kind.value,
            week,
            "static fallback" if outcome.used_fallback else outcome.provider,
        )
        return outcome
