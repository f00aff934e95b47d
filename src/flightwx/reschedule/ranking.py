"""LLM-backed ranker: phrases and orders alternatives from the overlap set."""

from __future__ import annotations

import logging

from langchain_core.language_models import BaseChatModel

from flightwx.models import (
    Booking,
    ProposedCandidate,
    RankingResponse,
    SafetyEvaluation,
    TimeSlot,
)
from flightwx.reschedule.llm_config import RankingConfig, create_llm
from flightwx.reschedule.prompt_builder import build_ranking_context

logger = logging.getLogger(__name__)


class LLMRanker:
    """Ranker using a LangChain chat model with structured output.

    The model only phrases and orders; every suggestion is checked afterwards
    by ``reschedule.validator``.
    """

    def __init__(
        self,
        config: RankingConfig,
        llm: BaseChatModel | None = None,
        tz: str = "UTC",
    ):
        self.config = config
        self.tz = tz
        self._llm = llm

    @property
    def llm(self) -> BaseChatModel:
        if self._llm is None:
            self._llm = create_llm(self.config)
        return self._llm

    def rank(
        self,
        booking: Booking,
        evaluation: SafetyEvaluation,
        slots: list[TimeSlot],
    ) -> list[ProposedCandidate]:
        context = build_ranking_context(booking, evaluation, slots, self.tz)
        structured_llm = self.llm.with_structured_output(RankingResponse)
        system_prompt = self.config.load_prompt("ranker")

        logger.info(
            "Ranking %d slots for booking %s (%s)",
            len(slots), booking.id, self.config.llm.model,
        )
        result = structured_llm.invoke([
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": context},
        ])
        if isinstance(result, dict):
            result = RankingResponse.model_validate(result)
        return list(result.options)
