# -*- coding: utf-8 -*-
"""Row-by-row conversion of catalog files into ProductRecords.

For every data row:
1. Skip empty rows (recorded) and recurring title rows (silent)
2. Map schema columns onto a fresh ProductRecord with light cleanup
3. Run description columns through the Extractor without overwriting
4. Validate; keep the record or attach the messages to the row

Interactive conversion follows the same loop but scores every mapped field
and asks the resolver when the score is below its threshold.
"""

import logging
import re
from dataclasses import dataclass
from difflib import SequenceMatcher
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Type, Union

from perfume_extractor.errors import ConfigurationError
from perfume_extractor.parsing.constants import (
    CONFIDENCE_DICTIONARY,
    CONFIDENCE_DIRECT,
    CONFIDENCE_NONE,
    CONFIDENCE_RULE,
    AttributeKind,
    ColumnField,
    DispenserType,
    Gender,
)
from perfume_extractor.parsing.extractor import (
    SOURCE_DICTIONARY,
    SOURCE_RULE,
    Extractor,
    ParsedAttributes,
)
from perfume_extractor.parsing.rules import RuleSet
from perfume_extractor.parsing.runtime import RuntimeRuleManager
from perfume_extractor.pipeline.data_loader import SourceRow, TabularSource, read_tabular_file
from perfume_extractor.pipeline.models import (
    ConversionResult,
    FileSchema,
    InteractiveContext,
    ProductRecord,
    RecordSink,
    RowIssue,
)
from perfume_extractor.pipeline.resolver import (
    LEAVE_EMPTY,
    BrandCandidate,
    ConcentrationCandidate,
    InteractiveResolver,
    SizeCandidate,
    SizeInfo,
)
from perfume_extractor.pipeline.validation import validate_record
from perfume_extractor.utils.data_cleaning import (
    clean_country_name,
    clean_field,
    clean_product_name,
    code_candidates,
    extract_numeric_prefix,
    extract_unit_token,
    format_decimal,
    normalize_whitespace,
    parse_li_free,
    split_code_column,
)

logger = logging.getLogger(__name__)

CONFIDENCE_NAME_CHOICE = 0.6
CONFIDENCE_CODE_SPLIT = 0.4

SIMILARITY_THRESHOLD = 0.8
MAX_BRAND_CANDIDATES = 5

_SIZE_MENTION = re.compile(r"(\d+(?:[.,]\d+)?)\s*([A-Z]+)")

_NO_ANSWER = object()


def get_similarity(a: str, b: str) -> float:
    """Similarity ratio (0-1) between two uppercase strings."""
    return SequenceMatcher(None, a.upper(), b.upper()).ratio()


def source_confidence(parsed: ParsedAttributes, field_name: str) -> float:
    """Confidence of a parsed field from how it was found."""
    source = parsed.source_of(field_name)
    if source == SOURCE_RULE:
        return CONFIDENCE_RULE
    if source == SOURCE_DICTIONARY:
        return CONFIDENCE_DICTIONARY
    return CONFIDENCE_NONE


def suggest_brands(text: str, rule_set: RuleSet, limit: int = MAX_BRAND_CANDIDATES) -> List[BrandCandidate]:
    """Brands whose name is similar to the text or to one of its words.

    Args:
        text: Brand cell or description
        rule_set: Supplies the brand dictionary
        limit: Maximum number of suggestions

    Returns:
        Candidates above SIMILARITY_THRESHOLD, best first
    """
    normalized = normalize_whitespace(text).upper()
    if not normalized:
        return []
    probes = [normalized] + normalized.split()

    best: Dict[int, BrandCandidate] = {}
    for brand_name, brand_id in rule_set.brand_name_to_id.items():
        score = max(get_similarity(probe, brand_name) for probe in probes)
        if score < SIMILARITY_THRESHOLD:
            continue
        current = best.get(brand_id)
        if current is None or score > current.score:
            best[brand_id] = BrandCandidate(brand_id, brand_name, round(score, 3), "similar name")

    return sorted(best.values(), key=lambda c: -c.score)[:limit]


@dataclass
class _RowState:
    row: SourceRow
    result: ConversionResult
    resolver: Optional[InteractiveResolver]


class RowConverter:
    """Convert tabular catalog files into validated ProductRecords.

    The Extractor is always taken from the RuntimeRuleManager, so rules
    learned on one row apply to every following row.

    Usage:
        converter = RowConverter(RuntimeRuleManager(ConfigStore(rules_path)))
        result = converter.convert("stock.csv", FileSchema.default())
    """

    def __init__(self, runtime: RuntimeRuleManager):
        self.runtime = runtime

    @property
    def extractor(self) -> Extractor:
        return self.runtime.extractor

    @property
    def rule_set(self) -> RuleSet:
        return self.runtime.extractor.rule_set

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def convert(
        self,
        file_path: Union[str, Path],
        schema: FileSchema,
        sink: Optional[RecordSink] = None,
    ) -> ConversionResult:
        """Convert a file without operator interaction.

        Valid records are collected on the result and, when given, passed to
        the sink as they are produced.

        Raises:
            FileNotFoundError: If the file does not exist
            ConfigurationError: If the schema is invalid
        """
        schema.validate()
        return self.convert_source(read_tabular_file(file_path), schema, sink=sink)

    def convert_interactive(
        self,
        file_path: Union[str, Path],
        schema: FileSchema,
        resolver: InteractiveResolver,
        sink: Optional[RecordSink] = None,
    ) -> ConversionResult:
        """Convert a file, consulting the resolver on low-confidence fields.

        Raises:
            FileNotFoundError: If the file does not exist
            ConfigurationError: If the schema is invalid or learning cannot persist
        """
        schema.validate()
        return self.convert_source(read_tabular_file(file_path), schema, resolver, sink)

    def convert_source(
        self,
        source: TabularSource,
        schema: FileSchema,
        resolver: Optional[InteractiveResolver] = None,
        sink: Optional[RecordSink] = None,
    ) -> ConversionResult:
        """Convert rows already in memory. Shared by both entry points."""
        result = ConversionResult(source=str(source.path))
        last_row = source.row_count
        if schema.last_data_row != -1:
            last_row = min(schema.last_data_row, source.row_count)

        mode = "interactive" if resolver else "batch"
        logger.info(
            f"Converting {source.path} ({schema.format_name}, {mode}): "
            f"rows {schema.first_data_row}-{last_row}"
        )

        for index in range(schema.first_data_row, last_row + 1):
            result.lines_processed += 1
            row = source.get_row(index)

            if row is None or not row.cells:
                result.errors.append(RowIssue(index, "Validation", "Empty row"))
                continue

            if schema.has_inner_titles and len(row.cells) != schema.expected_column_count:
                logger.debug(f"Row {index}: skipping inner title '{row.raw_text}'")
                continue

            try:
                record = self._build_record(_RowState(row, result, resolver), schema)
                if record is None:
                    result.empty_lines += 1
                    continue

                messages = validate_record(record)
                if not messages:
                    if sink is not None:
                        sink.accept(record)
                    result.records.append(record)
            except ConfigurationError:
                raise
            except Exception as e:
                logger.warning(f"Row {index}: {e}")
                result.errors.append(
                    RowIssue(index, "General", f"Error processing row: {e}", raw_line=row.raw_text)
                )
                continue

            for message in messages:
                result.errors.append(
                    RowIssue(
                        index,
                        "Product Validation",
                        message,
                        raw_line=row.raw_text,
                        value=record.code or "",
                    )
                )

        logger.info(
            f"Converted {len(result.records)} records from {result.lines_processed} lines "
            f"({len(result.errors)} errors)"
        )
        return result

    # ------------------------------------------------------------------
    # Row assembly
    # ------------------------------------------------------------------

    def _build_record(self, state: _RowState, schema: FileSchema) -> Optional[ProductRecord]:
        row = state.row
        if not row.has_data:
            return None

        record = ProductRecord(original_source_text=row.raw_text)
        handlers: Dict[ColumnField, Callable] = {
            ColumnField.CODE: self._map_code,
            ColumnField.NAME: self._map_name,
            ColumnField.BRAND: self._map_brand,
            ColumnField.CONCENTRATION: self._map_concentration,
            ColumnField.DISPENSER_TYPE: self._map_dispenser_type,
            ColumnField.GENDER: self._map_gender,
            ColumnField.SIZE: self._map_size,
            ColumnField.UNITS: self._map_units,
            ColumnField.LI_FREE: self._map_li_free,
            ColumnField.COUNTRY_OF_ORIGIN: self._map_country,
            ColumnField.REMARKS: self._map_remarks,
        }

        for column, target in sorted(schema.column_mapping.items()):
            if column in schema.ignored_columns:
                continue
            value = clean_field(row.cell(column))
            if value:
                handlers[target](record, value, state)

        for column in schema.description_columns:
            if column in schema.ignored_columns:
                continue
            text = clean_field(row.cell(column))
            if text:
                self._analyse_description(record, text, state)

        return record

    def _consult(
        self,
        state: _RowState,
        record: ProductRecord,
        field_name: str,
        text: str,
        confidence: float,
        ask: Callable[[InteractiveContext], Any],
    ) -> Any:
        """Ask the resolver when confidence is low.

        Returns:
            The answer, or _NO_ANSWER when not asked or not answered
        """
        if state.resolver is None:
            return _NO_ANSWER
        context = InteractiveContext(
            row_number=state.row.index,
            field_name=field_name,
            original_text=text,
            current_record=record,
            confidence=confidence,
            raw_row_text=state.row.raw_text,
        )
        if not state.resolver.should_consult(context):
            return _NO_ANSWER

        answer = ask(context)
        if answer is None:
            return _NO_ANSWER
        state.result.interactive_decisions += 1
        logger.debug(f"Row {state.row.index}: {field_name} resolved to {answer!r}")
        return answer

    # ------------------------------------------------------------------
    # Column handlers
    # ------------------------------------------------------------------

    def _map_code(self, record: ProductRecord, value: str, state: _RowState) -> None:
        code, overloaded = split_code_column(value)
        if overloaded:
            options = code_candidates(value)
            answer = self._consult(
                state, record, "Code", value, CONFIDENCE_CODE_SPLIT,
                lambda ctx: state.resolver.resolve_general(
                    ctx, f"Which part of '{value}' is the product code?", options
                ),
            )
            if isinstance(answer, int) and 0 <= answer < len(options):
                code = options[answer]
        record.code = code
        if overloaded:
            self.extractor.parse_and_apply(record, overloaded, overwrite=False)

    def _map_name(self, record: ProductRecord, value: str, state: _RowState) -> None:
        name = clean_product_name(value)
        parsed = self.extractor.parse_description(name)
        if record.brand_id is None and parsed.brand_id is not None:
            record.brand_id = parsed.brand_id

        extracted = parsed.extracted_name
        if extracted and len(extracted) < len(name):
            options = [extracted, name]
            answer = self._consult(
                state, record, "Name", name, CONFIDENCE_NAME_CHOICE,
                lambda ctx: state.resolver.resolve_general(
                    ctx, "Which product name should be used?", options
                ),
            )
            name = options[answer] if isinstance(answer, int) and 0 <= answer < 2 else extracted
        record.name = name

    def _map_brand(self, record: ProductRecord, value: str, state: _RowState) -> None:
        if value.isdigit():
            brand_id, confidence = int(value), CONFIDENCE_DIRECT
        elif self.rule_set.lookup_brand(value) is not None:
            brand_id, confidence = self.rule_set.lookup_brand(value), CONFIDENCE_DIRECT
        else:
            parsed = self.extractor.parse_description(value)
            brand_id, confidence = parsed.brand_id, source_confidence(parsed, "brand_id")

        candidates = self._brand_candidates(value, brand_id, confidence, state)
        answer = self._consult(
            state, record, "Brand", value, confidence,
            lambda ctx: state.resolver.resolve_brand(ctx, candidates),
        )
        self._assign(record, "brand_id", brand_id, answer)

    def _map_concentration(self, record: ProductRecord, value: str, state: _RowState) -> None:
        concentration = self.rule_set.lookup(AttributeKind.CONCENTRATION, value)
        confidence = CONFIDENCE_DIRECT
        if concentration is None:
            parsed = self.extractor.parse_description(value)
            concentration = parsed.concentration
            confidence = source_confidence(parsed, "concentration")

        candidates = self._concentration_candidates(value, concentration, confidence, state)
        answer = self._consult(
            state, record, "Concentration", value, confidence,
            lambda ctx: state.resolver.resolve_concentration(ctx, candidates),
        )
        self._assign(record, "concentration", concentration, answer)

    def _map_dispenser_type(self, record: ProductRecord, value: str, state: _RowState) -> None:
        self._map_choice(
            record, value, state, AttributeKind.DISPENSER_TYPE, DispenserType,
            "dispenser_type", "Type",
        )

    def _map_gender(self, record: ProductRecord, value: str, state: _RowState) -> None:
        self._map_choice(record, value, state, AttributeKind.GENDER, Gender, "gender", "Gender")

    def _map_choice(
        self,
        record: ProductRecord,
        value: str,
        state: _RowState,
        kind: AttributeKind,
        enum_cls: Type[Enum],
        attr: str,
        label: str,
    ) -> None:
        detected = self.rule_set.lookup(kind, value)
        confidence = CONFIDENCE_DIRECT
        if detected is None:
            parsed = self.extractor.parse_description(value)
            detected = getattr(parsed, attr)
            confidence = source_confidence(parsed, attr)

        members = list(enum_cls)
        if detected is not None:
            members.remove(detected)
            members.insert(0, detected)
        options = [m.value for m in members]

        answer = self._consult(
            state, record, label, value, confidence,
            lambda ctx: state.resolver.resolve_general(
                ctx, f"Which {label.lower()} is '{value}'?", options
            ),
        )
        if isinstance(answer, int) and 0 <= answer < len(members):
            setattr(record, attr, members[answer])
        elif detected is not None:
            setattr(record, attr, detected)

    def _map_size(self, record: ProductRecord, value: str, state: _RowState) -> None:
        magnitude = extract_numeric_prefix(value)
        if magnitude is not None:
            unit_token = extract_unit_token(value)
            unit = self.rule_set.lookup(AttributeKind.UNIT, unit_token) if unit_token else None
            confidence = CONFIDENCE_DIRECT
        else:
            parsed = self.extractor.parse_description(value)
            magnitude, unit = parsed.size_value, parsed.size_unit
            confidence = source_confidence(parsed, "size_value")

        detected = SizeInfo(magnitude, unit) if magnitude is not None else None
        candidates = self._size_candidates(value, detected, confidence)
        answer = self._consult(
            state, record, "Size", value, confidence,
            lambda ctx: state.resolver.resolve_size(ctx, candidates),
        )
        if answer is LEAVE_EMPTY:
            return
        chosen = answer if isinstance(answer, SizeInfo) else detected
        if chosen is None:
            return
        record.size = format_decimal(chosen.magnitude) or chosen.magnitude
        if chosen.unit is not None:
            record.unit = chosen.unit

    def _map_units(self, record: ProductRecord, value: str, state: _RowState) -> None:
        unit = self.rule_set.lookup(AttributeKind.UNIT, value)
        if unit is None:
            token = extract_unit_token(value)
            unit = self.rule_set.lookup(AttributeKind.UNIT, token) if token else None
        if unit is not None:
            record.unit = unit

    def _map_li_free(self, record: ProductRecord, value: str, state: _RowState) -> None:
        record.li_free = parse_li_free(value)

    def _map_country(self, record: ProductRecord, value: str, state: _RowState) -> None:
        record.country_of_origin = clean_country_name(value)

    def _map_remarks(self, record: ProductRecord, value: str, state: _RowState) -> None:
        record.remarks = normalize_whitespace(value) or None

    @staticmethod
    def _assign(record: ProductRecord, attr: str, detected: Any, answer: Any) -> None:
        if answer is LEAVE_EMPTY:
            return
        if answer is not _NO_ANSWER:
            setattr(record, attr, answer)
        elif detected is not None:
            setattr(record, attr, detected)

    # ------------------------------------------------------------------
    # Description analysis and learning
    # ------------------------------------------------------------------

    def _analyse_description(self, record: ProductRecord, text: str, state: _RowState) -> None:
        parsed = self.extractor.parse_and_apply(record, text, overwrite=False)
        resolver = state.resolver
        if resolver is None:
            return

        context = InteractiveContext(
            row_number=state.row.index,
            field_name="Description",
            original_text=text,
            current_record=record,
            confidence=CONFIDENCE_DICTIONARY,
            raw_row_text=state.row.raw_text,
        )
        if not resolver.should_learn(context, text, parsed.summary()):
            return

        state.result.learned_rules += 1
        outcomes = [self.runtime.learn(s) for s in resolver.collect_teaching_statements(context, text)]
        for outcome in outcomes:
            if not outcome.succeeded:
                state.result.learning_failures.append(
                    RowIssue(
                        state.row.index,
                        "Learning",
                        outcome.error,
                        raw_line=state.row.raw_text,
                        value=outcome.statement,
                    )
                )
        resolver.report_learning(context, outcomes)

        if any(o.succeeded for o in outcomes):
            self.extractor.parse_and_apply(record, text, overwrite=False)

    # ------------------------------------------------------------------
    # Candidates
    # ------------------------------------------------------------------

    def _brand_candidates(
        self, text: str, brand_id: Optional[int], confidence: float, state: _RowState
    ) -> List[BrandCandidate]:
        if state.resolver is None:
            return []
        candidates = []
        if brand_id is not None:
            names = [n for n, i in self.rule_set.brand_name_to_id.items() if i == brand_id]
            candidates.append(
                BrandCandidate(brand_id, names[0] if names else text, confidence, "detected")
            )
        for candidate in suggest_brands(text, self.rule_set):
            if all(c.brand_id != candidate.brand_id for c in candidates):
                candidates.append(candidate)
        return candidates[:MAX_BRAND_CANDIDATES]

    def _concentration_candidates(
        self, text: str, detected, confidence: float, state: _RowState
    ) -> List[ConcentrationCandidate]:
        if state.resolver is None:
            return []
        normalized = self.extractor.normalize(text)
        candidates = []
        if detected is not None:
            candidates.append(ConcentrationCandidate(detected, text, confidence, "detected"))
        dictionary = self.rule_set.dictionary(AttributeKind.CONCENTRATION)
        for token, value in dictionary.items():
            if any(c.value == value for c in candidates):
                continue
            if re.search(rf"(?<![A-Z0-9]){re.escape(token)}(?![A-Z0-9])", normalized):
                candidates.append(
                    ConcentrationCandidate(value, token, CONFIDENCE_DICTIONARY, "keyword in text")
                )
        return candidates

    def _size_candidates(
        self, text: str, detected: Optional[SizeInfo], confidence: float
    ) -> List[SizeCandidate]:
        candidates = []
        if detected is not None:
            candidates.append(SizeCandidate(detected, text, confidence, "detected"))
        for match in _SIZE_MENTION.finditer(text.upper()):
            unit = self.rule_set.lookup(AttributeKind.UNIT, match.group(2))
            magnitude = format_decimal(match.group(1))
            if unit is None or magnitude is None:
                continue
            size = SizeInfo(magnitude, unit)
            if all(c.size != size for c in candidates):
                candidates.append(SizeCandidate(size, match.group(0), CONFIDENCE_DICTIONARY, "size in text"))
        return candidates
