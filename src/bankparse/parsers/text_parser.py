"""Multi-strategy transaction extraction from statement text lines."""

import logging
import re
from decimal import InvalidOperation
from typing import List, Optional, Sequence, Tuple

from ..models.core import ExtractionCandidate, ParserConfig, ProcessingStats, StrategyTag
from ..utils.validation import ValidationEngine
from .base import CandidateBuilder, ExtractionContext, excise, find_amount, find_date
from .csv_parser import CSVStatementParser
from .patterns import LOOSE_AMOUNT_TOKEN, LOOSE_DATE_TOKEN
from .transformer import DataTransformer


logger = logging.getLogger(__name__)


_MERCHANT_EDGES = ' ,;:-|/*'
_TOKEN_SPLIT = re.compile(r'[\s,;|\t"]+')
_HAS_LETTER = re.compile(r'[A-Za-z]')


def _tokens(text: str) -> List[str]:
    return [token for token in _TOKEN_SPLIT.split(text.lower()) if token]


def _spans_overlap(a: Tuple[int, int], b: Tuple[int, int]) -> bool:
    return a[0] < b[1] and b[0] < a[1]


class TextStatementParser:
    """Runs the competing extraction strategies over statement lines.

    Two global passes (CSV rows and multi-line groups) run first; every
    remaining line is then tried with the pattern, contextual and fuzzy
    strategies and the most confident candidate wins.
    """

    DATE_WEIGHT = 0.3
    AMOUNT_WEIGHT = 0.4
    RESIDUAL_MERCHANT_WEIGHT = 0.3
    FALLBACK_MERCHANT_WEIGHT = 0.2

    CONTEXT_DATE_PENALTY = 0.2
    CONTEXT_AMOUNT_PENALTY = 0.3

    FUZZY_DATE_WEIGHT = 0.25
    FUZZY_AMOUNT_WEIGHT = 0.3
    FUZZY_MERCHANT_WEIGHT = 0.25
    FUZZY_SCALE = 0.8

    MULTI_LINE_CONFIDENCE = 0.8
    MIN_CONTINUATION_LENGTH = 5

    def __init__(self, config: ParserConfig, transformer: Optional[DataTransformer] = None):
        self.config = config
        self.transformer = transformer or DataTransformer(config)
        self.builder = CandidateBuilder(self.transformer)
        self.csv_parser = CSVStatementParser(config, self.transformer)
        self.validator = ValidationEngine(config.max_amount)

        # Order is the tie-break order for equal confidence
        self.strategies = (
            (StrategyTag.PATTERN, self._pattern_strategy),
            (StrategyTag.CONTEXTUAL, self._contextual_strategy),
            (StrategyTag.FUZZY, self._fuzzy_strategy),
        )

    def extract(self, lines: Sequence[str], context: ExtractionContext,
                min_confidence: Optional[float] = None) -> Tuple[List[ExtractionCandidate], ProcessingStats]:
        """Extract candidates from non-empty, stripped statement lines.

        Args:
            lines: Statement lines
            context: Patterns, locale, format and statement year
            min_confidence: Candidate floor; defaults to the configured threshold

        Returns:
            Tuple of (accepted candidates, line statistics)
        """
        floor = self.config.min_confidence_threshold if min_confidence is None else min_confidence
        lines = list(lines)
        stats = ProcessingStats(
            total_lines=len(lines),
            detected_locale=context.locale,
            detected_format=context.text_format,
        )

        skipped = [self.should_skip(line, context) for line in lines]
        sections: List[Optional[str]] = []
        section_lines = set()
        current_section = None
        for index, line in enumerate(lines):
            if not skipped[index] and self.is_section_header(line, context):
                current_section = line
                section_lines.add(index)
                stats.section_headers += 1
            sections.append(current_section)

        pre_pass: List[ExtractionCandidate] = []
        if context.text_format in ('CSV', 'TSV', 'MIXED'):
            csv_candidates = self._accept(self.csv_parser.extract(lines, context), floor)
            stats.csv_transactions = len(csv_candidates)
            pre_pass.extend(csv_candidates)

        body = [(index, line) for index, line in enumerate(lines) if not skipped[index]]
        multi_line = self._accept(self._extract_multi_line(body, context), floor)
        stats.multi_line_transactions = len(multi_line)
        pre_pass.extend(multi_line)

        candidates = list(pre_pass)
        for index, line in enumerate(lines):
            stats.processed_lines += 1
            if skipped[index]:
                stats.skipped_lines += 1
                logger.debug(f"Skipping line {index}: {line}")
                continue
            if index in section_lines:
                continue
            if self._is_already_extracted(line, pre_pass):
                continue

            best = self._best_candidate(index, lines, context)
            accepted = self._accept([best], floor) if best else []
            if not accepted:
                continue
            if any(pattern.match(line) for pattern in context.patterns.transaction_patterns):
                stats.tabular_transactions += 1
            candidates.extend(accepted)

        for candidate in candidates:
            if 0 <= candidate.line_index < len(sections):
                candidate.section = sections[candidate.line_index]

        logger.info(
            f"Extracted {len(candidates)} candidates from {len(lines)} lines "
            f"({stats.csv_transactions} csv, {stats.multi_line_transactions} multi-line)"
        )
        return candidates, stats

    def should_skip(self, line: str, context: ExtractionContext) -> bool:
        text = line.strip()
        return any(pattern.search(text) for pattern in context.patterns.skip_patterns)

    def is_section_header(self, line: str, context: ExtractionContext) -> bool:
        """A section line names a known section and carries no date or amount"""
        if self.transformer.has_date_token(line) or self.transformer.has_amount_token(line):
            return False
        return any(pattern.search(line) for pattern in context.patterns.section_patterns)

    def _accept(self, candidates: List[ExtractionCandidate], floor: float) -> List[ExtractionCandidate]:
        accepted = []
        for candidate in candidates:
            if candidate.confidence < floor:
                logger.debug(
                    f"Discarding {candidate.strategy.value} candidate on line "
                    f"{candidate.line_index}: confidence {candidate.confidence} < {floor}"
                )
                continue
            if not self.validator.is_valid(
                candidate.transaction,
                min_merchant_length=self.config.extractor_min_merchant_length,
                max_amount=self.config.max_amount,
            ):
                continue
            accepted.append(candidate)
        return accepted

    def _is_already_extracted(self, line: str, candidates: List[ExtractionCandidate]) -> bool:
        """True if most merchant tokens of some pre-pass candidate appear on the line"""
        line_tokens = set(_tokens(line))
        for candidate in candidates:
            merchant_tokens = _tokens(candidate.transaction.merchant)
            if not merchant_tokens:
                continue
            overlap = sum(1 for token in merchant_tokens if token in line_tokens)
            if overlap >= self.config.overlap_threshold * len(merchant_tokens):
                return True
        return False

    def _best_candidate(self, index: int, lines: List[str],
                        context: ExtractionContext) -> Optional[ExtractionCandidate]:
        results = []
        for tag, strategy in self.strategies:
            try:
                candidate = strategy(index, lines, context)
            except (ValueError, InvalidOperation) as e:
                logger.debug(f"{tag.value} strategy failed on line {index}: {e}")
                continue
            if candidate is not None:
                results.append(candidate)

        if not results:
            return None
        # max() keeps the first of equal keys; rank breaks confidence ties
        return max(results, key=lambda c: (c.confidence, -c.strategy.rank))

    def _pattern_strategy(self, index: int, lines: List[str],
                          context: ExtractionContext) -> Optional[ExtractionCandidate]:
        return self.parse_line(lines[index], context, StrategyTag.PATTERN, index)

    def _contextual_strategy(self, index: int, lines: List[str],
                             context: ExtractionContext) -> Optional[ExtractionCandidate]:
        candidate = self.parse_line(lines[index], context, StrategyTag.CONTEXTUAL, index)
        if candidate is None:
            return None

        window = self.config.context_window
        line = lines[index]
        neighbours = lines[max(0, index - window):index] + lines[index + 1:index + window + 1]

        penalty = 0.0
        if (not self.transformer.has_date_token(line)
                and any(self.transformer.has_date_token(n) for n in neighbours)):
            penalty += self.CONTEXT_DATE_PENALTY
        if (not self.transformer.has_amount_token(line)
                and any(self.transformer.has_amount_token(n) for n in neighbours)):
            penalty += self.CONTEXT_AMOUNT_PENALTY

        candidate.confidence = round(max(0.0, candidate.confidence - penalty), 4)
        return candidate

    def _fuzzy_strategy(self, index: int, lines: List[str],
                        context: ExtractionContext) -> Optional[ExtractionCandidate]:
        line = lines[index]
        date_tokens = list(LOOSE_DATE_TOKEN.finditer(line))
        if not date_tokens:
            return None
        date_match = date_tokens[0]

        amount_tokens = [
            m for m in LOOSE_AMOUNT_TOKEN.finditer(line)
            if not any(_spans_overlap(m.span(), d.span()) for d in date_tokens)
        ]
        if not amount_tokens:
            return None
        amount_match = amount_tokens[-1]
        if amount_match.start() < date_match.end():
            return None

        merchant = line[date_match.end():amount_match.start()].strip(_MERCHANT_EDGES)
        if not merchant:
            return None

        confidence = (
            self.FUZZY_DATE_WEIGHT + self.FUZZY_AMOUNT_WEIGHT + self.FUZZY_MERCHANT_WEIGHT
        ) * self.FUZZY_SCALE
        return self.builder.build(
            date_match.group(0), amount_match.group(0), merchant,
            confidence, StrategyTag.FUZZY, context, index,
        )

    def parse_line(self, line: str, context: ExtractionContext, strategy: StrategyTag,
                   index: int = -1) -> Optional[ExtractionCandidate]:
        """Pattern extraction: first date, last amount, merchant from what remains"""
        patterns = context.patterns
        date_match = find_date(line, patterns.date_patterns)
        if not date_match:
            return None
        amount_match = find_amount(line, patterns.amount_patterns, exclude=date_match.span())
        if not amount_match:
            return None

        confidence = self.DATE_WEIGHT + self.AMOUNT_WEIGHT
        merchant = excise(line, [date_match.span(), amount_match.span()]).strip(_MERCHANT_EDGES)
        if merchant and _HAS_LETTER.search(merchant):
            confidence += self.RESIDUAL_MERCHANT_WEIGHT
        else:
            merchant = self._fallback_merchant(line, context)
            if not merchant:
                return None
            confidence += self.FALLBACK_MERCHANT_WEIGHT

        return self.builder.build(
            date_match.group(0), amount_match.group(0), merchant,
            confidence, strategy, context, index,
        )

    def _fallback_merchant(self, line: str, context: ExtractionContext) -> Optional[str]:
        for pattern in context.patterns.merchant_patterns:
            match = pattern.search(line)
            if match:
                return match.group(1)
        return None

    def _extract_multi_line(self, body: List[Tuple[int, str]],
                            context: ExtractionContext) -> List[ExtractionCandidate]:
        """Join opener (date only), continuation and closer (amount only) lines"""
        patterns = context.patterns
        candidates = []
        group: List[Tuple[int, str]] = []

        for index, line in body:
            date_match = find_date(line, patterns.date_patterns)
            has_date = date_match is not None
            has_amount = find_amount(
                line, patterns.amount_patterns,
                exclude=date_match.span() if date_match else None,
            ) is not None

            if has_date and not has_amount:
                group = [(index, line)]
            elif group and not has_date and not has_amount:
                if len(line.strip()) > self.MIN_CONTINUATION_LENGTH:
                    group.append((index, line))
                else:
                    group = []
            elif group and has_amount and not has_date:
                group.append((index, line))
                joined = ' '.join(text.strip() for _, text in group)
                candidate = self.parse_line(joined, context, StrategyTag.MULTI_LINE, group[0][0])
                if candidate is not None:
                    candidate.confidence = self.MULTI_LINE_CONFIDENCE
                    candidates.append(candidate)
                    logger.debug(f"Joined lines {[i for i, _ in group]} into one transaction")
                group = []
            else:
                group = []

        return candidates
