# -*- coding: utf-8 -*-
"""Console binding of the InteractiveResolver.

Menus are numbered from 1; ``0`` leaves the field empty and a blank
answer keeps whatever the parser detected.
"""

import logging
from typing import Callable, List, Optional, Sequence

from perfume_extractor.parsing.constants import (
    DEFAULT_CONFIDENCE_THRESHOLD,
    Concentration,
    Unit,
)
from perfume_extractor.pipeline.models import InteractiveContext
from perfume_extractor.pipeline.resolver import (
    LEAVE_EMPTY,
    BrandCandidate,
    ConcentrationCandidate,
    InteractiveResolver,
    SizeCandidate,
    SizeInfo,
)
from perfume_extractor.utils.data_cleaning import format_decimal

logger = logging.getLogger(__name__)

TEACHING_HELP = (
    "Teach with PATTERN -> Attribute=Value, one per line, blank line to finish.\n"
    "  'INTENSE' -> Concentration=Parfum\n"
    "  POUR HOMME -> Gender=Male\n"
    "  'CH' -> Brand=1\n"
    "  'FL.OZ' -> Size=oz"
)


class ConsoleResolver(InteractiveResolver):
    """Prompt an operator on the terminal.

    Args:
        enabled: When False every question is skipped
        confidence_threshold: Ask only below this confidence
        input_func: Reads one answer line (default: input)
        output_func: Prints one line (default: print)
    """

    def __init__(
        self,
        enabled: bool = True,
        confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
        input_func: Callable[[str], str] = input,
        output_func: Callable[[str], None] = print,
    ):
        self.enabled = enabled
        self.confidence_threshold = confidence_threshold
        self._input = input_func
        self._print = output_func

    def should_consult(self, context: InteractiveContext) -> bool:
        return self.enabled and super().should_consult(context)

    # ------------------------------------------------------------------
    # Prompt helpers
    # ------------------------------------------------------------------

    def _ask(self, prompt: str) -> str:
        try:
            return self._input(prompt).strip()
        except EOFError:
            return ""

    def _ask_int(self, prompt: str) -> Optional[int]:
        answer = self._ask(prompt)
        if answer.lstrip("-").isdigit():
            return int(answer)
        return None

    def _header(self, title: str, context: InteractiveContext) -> None:
        self._print("")
        self._print(title)
        self._print("=" * 50)
        self._print(f"Row {context.row_number}: {context.original_text}")
        self._print(f"Field: {context.field_name}")
        self._print(f"Confidence: {context.confidence:.0%}")
        self._print("")

    def _ask_manual_size(self) -> Optional[SizeInfo]:
        magnitude = format_decimal(self._ask("Enter size (blank to skip): "))
        if magnitude is None:
            return None
        units = list(Unit)
        for i, unit in enumerate(units, start=1):
            self._print(f"{i}. {unit.value}")
        choice = self._ask_int(f"Units (1-{len(units)}): ")
        unit = units[choice - 1] if choice and 1 <= choice <= len(units) else Unit.ML
        return SizeInfo(magnitude, unit)

    # ------------------------------------------------------------------
    # Resolver operations
    # ------------------------------------------------------------------

    def resolve_brand(self, context: InteractiveContext, candidates: Sequence[BrandCandidate]):
        self._header("Brand recognition uncertain", context)
        self._print("0. Leave brand empty")
        for i, candidate in enumerate(candidates, start=1):
            self._print(f"{i}. {candidate.name} (ID: {candidate.brand_id})")
            self._print(f"    Score: {candidate.score:.0%} - {candidate.reason}")
        manual = len(candidates) + 1
        self._print(f"{manual}. Enter brand ID manually")

        choice = self._ask_int(f"Select brand (0-{manual}, Enter = keep detected): ")
        if choice is None:
            return None
        if choice == 0:
            return LEAVE_EMPTY
        if 1 <= choice <= len(candidates):
            return candidates[choice - 1].brand_id
        if choice == manual:
            brand_id = self._ask_int("Enter brand ID: ")
            return brand_id if brand_id and brand_id > 0 else None
        return None

    def resolve_concentration(
        self, context: InteractiveContext, candidates: Sequence[ConcentrationCandidate]
    ):
        self._header("Concentration recognition uncertain", context)
        options: List[Concentration] = [c.value for c in candidates]
        if not options:
            self._print("No concentration found in the text. Choose one:")
            options = list(Concentration)
        self._print("0. Leave concentration empty")
        for i, value in enumerate(options, start=1):
            reason = ""
            if i <= len(candidates):
                reason = f" - {candidates[i - 1].reason} ({candidates[i - 1].score:.0%})"
            self._print(f"{i}. {value.value}{reason}")

        choice = self._ask_int(f"Select concentration (0-{len(options)}, Enter = keep detected): ")
        if choice is None:
            return None
        if choice == 0:
            return LEAVE_EMPTY
        if 1 <= choice <= len(options):
            return options[choice - 1]
        return None

    def resolve_size(self, context: InteractiveContext, candidates: Sequence[SizeCandidate]):
        self._header("Size recognition uncertain", context)
        if not candidates:
            self._print("No size found in the text.")
            return self._ask_manual_size()

        self._print("0. Leave size empty")
        for i, candidate in enumerate(candidates, start=1):
            unit = candidate.size.unit.value if candidate.size.unit else "?"
            self._print(f"{i}. {candidate.size.magnitude} {unit}")
            self._print(f"    Score: {candidate.score:.0%} - {candidate.reason}")
        manual = len(candidates) + 1
        self._print(f"{manual}. Enter size manually")

        choice = self._ask_int(f"Select size (0-{manual}, Enter = keep detected): ")
        if choice is None:
            return None
        if choice == 0:
            return LEAVE_EMPTY
        if 1 <= choice <= len(candidates):
            return candidates[choice - 1].size
        if choice == manual:
            return self._ask_manual_size()
        return None

    def resolve_general(
        self, context: InteractiveContext, question: str, options: Sequence[str]
    ) -> Optional[int]:
        self._header("Parser decision required", context)
        self._print(question)
        for i, option in enumerate(options, start=1):
            self._print(f"{i}. {option}")
        self._print("0. Skip / keep detected")

        choice = self._ask_int(f"Select option (0-{len(options)}): ")
        if choice is None or not 1 <= choice <= len(options):
            return None
        return choice - 1

    def should_learn(
        self, context: InteractiveContext, original_text: str, detected_summary: str
    ) -> bool:
        if not self.enabled:
            return False
        cells = [c.strip().strip('"') for c in context.raw_row_text.split(",")]
        self._print("")
        self._print("Parser learning opportunity")
        self._print("=" * 50)
        self._print(f"Original row ({context.row_number}): {' | '.join(cells)}")
        self._print(f"Description: {original_text}")
        self._print(f"Detected: {detected_summary}")
        answer = self._ask("Teach the parser something about this description? (y/N): ")
        return answer.lower() in ("y", "yes")

    def collect_teaching_statements(
        self, context: InteractiveContext, original_text: str
    ) -> List[str]:
        self._print(TEACHING_HELP)
        statements = []
        while True:
            line = self._ask("> ")
            if not line:
                break
            statements.append(line)
        return statements

    def report_learning(self, context: InteractiveContext, outcomes: list) -> None:
        for outcome in outcomes:
            if outcome.succeeded:
                for change in outcome.applied:
                    self._print(f"Learned {change}")
            else:
                self._print(f"Could not learn '{outcome.statement}': {outcome.error}")
