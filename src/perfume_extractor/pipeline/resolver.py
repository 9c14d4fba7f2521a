# -*- coding: utf-8 -*-
"""Interactive resolution protocol for low-confidence extractions.

The RowConverter consults an InteractiveResolver only when a field's
confidence falls below ``resolver.confidence_threshold``. Resolvers only
decide; learned rules are persisted by the converter through the
RuntimeRuleManager.

Answer conventions:
- ``None``: no answer, keep the deterministic value
- ``LEAVE_EMPTY``: explicitly leave the field unset
- anything else: the value to use
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import List, NamedTuple, Optional, Sequence, Union

from perfume_extractor.parsing.constants import (
    DEFAULT_CONFIDENCE_THRESHOLD,
    Concentration,
    Unit,
)
from perfume_extractor.pipeline.models import InteractiveContext

logger = logging.getLogger(__name__)


class Answer(Enum):
    LEAVE_EMPTY = "leave_empty"


LEAVE_EMPTY = Answer.LEAVE_EMPTY


class BrandCandidate(NamedTuple):
    brand_id: int
    name: str
    score: float
    reason: str


class ConcentrationCandidate(NamedTuple):
    value: Concentration
    matched_text: str
    score: float
    reason: str


class SizeInfo(NamedTuple):
    magnitude: str
    unit: Optional[Unit] = None


class SizeCandidate(NamedTuple):
    size: SizeInfo
    matched_text: str
    score: float
    reason: str


BrandAnswer = Union[int, Answer, None]
ConcentrationAnswer = Union[Concentration, Answer, None]
SizeAnswer = Union[SizeInfo, Answer, None]


class InteractiveResolver(ABC):
    """Operator decision points used by RowConverter.convert_interactive.

    Every call blocks until the operator (or an automated stand-in)
    answers. Implementations must not touch the rule file.
    """

    confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD

    def should_consult(self, context: InteractiveContext) -> bool:
        return context.confidence < self.confidence_threshold

    @abstractmethod
    def resolve_brand(
        self, context: InteractiveContext, candidates: Sequence[BrandCandidate]
    ) -> BrandAnswer:
        """Pick a brand id for the row."""

    @abstractmethod
    def resolve_concentration(
        self, context: InteractiveContext, candidates: Sequence[ConcentrationCandidate]
    ) -> ConcentrationAnswer:
        """Pick a concentration for the row."""

    @abstractmethod
    def resolve_size(
        self, context: InteractiveContext, candidates: Sequence[SizeCandidate]
    ) -> SizeAnswer:
        """Pick a size (or enter one manually) for the row."""

    @abstractmethod
    def resolve_general(
        self, context: InteractiveContext, question: str, options: Sequence[str]
    ) -> Optional[int]:
        """Choose among options.

        Returns:
            0-based index of the chosen option, or None to skip
        """

    @abstractmethod
    def should_learn(
        self, context: InteractiveContext, original_text: str, detected_summary: str
    ) -> bool:
        """Ask whether the operator wants to teach rules for this description."""

    def collect_teaching_statements(
        self, context: InteractiveContext, original_text: str
    ) -> List[str]:
        """Teaching statements entered after a positive ``should_learn``."""
        return []

    def report_learning(self, context: InteractiveContext, outcomes: list) -> None:
        """Called with the TeachingOutcome of every collected statement."""


class DeferringResolver(InteractiveResolver):
    """Never answers; interactive conversion then matches plain conversion."""

    def resolve_brand(self, context, candidates):
        return None

    def resolve_concentration(self, context, candidates):
        return None

    def resolve_size(self, context, candidates):
        return None

    def resolve_general(self, context, question, options):
        return None

    def should_learn(self, context, original_text, detected_summary):
        return False


class FirstCandidateResolver(InteractiveResolver):
    """Automated stand-in that accepts the best-ranked candidate.

    Args:
        confidence_threshold: Consult below this confidence
        learn_statements: Teaching statements to offer after every description
    """

    def __init__(
        self,
        confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
        learn_statements: Optional[List[str]] = None,
    ):
        self.confidence_threshold = confidence_threshold
        self.learn_statements = list(learn_statements or [])
        self.outcomes: list = []

    def resolve_brand(self, context, candidates):
        return candidates[0].brand_id if candidates else None

    def resolve_concentration(self, context, candidates):
        return candidates[0].value if candidates else None

    def resolve_size(self, context, candidates):
        return candidates[0].size if candidates else None

    def resolve_general(self, context, question, options):
        return 0 if options else None

    def should_learn(self, context, original_text, detected_summary):
        return bool(self.learn_statements)

    def collect_teaching_statements(self, context, original_text):
        statements, self.learn_statements = self.learn_statements, []
        return statements

    def report_learning(self, context, outcomes):
        self.outcomes.extend(outcomes)
        for outcome in outcomes:
            if not outcome.succeeded:
                logger.warning(f"Row {context.row_number}: {outcome.statement}: {outcome.error}")
