"""Shared extraction context and candidate construction for the strategies."""

import logging
from dataclasses import dataclass
from decimal import InvalidOperation
from typing import Iterable, Match, Optional, Pattern, Sequence, Tuple

from ..models.core import ExtractionCandidate, PatternConfig, RawTransaction, StrategyTag
from .transformer import DataTransformer


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExtractionContext:
    """Read-only facts about the statement being parsed"""
    patterns: PatternConfig
    locale: str = 'UNIVERSAL'
    text_format: str = 'NARRATIVE'
    statement_year: Optional[int] = None

    @property
    def day_first(self) -> bool:
        return self.locale == 'EU'


def _overlaps(span: Tuple[int, int], other: Optional[Tuple[int, int]]) -> bool:
    if other is None:
        return False
    return span[0] < other[1] and other[0] < span[1]


def find_date(text: str, patterns: Iterable[Pattern]) -> Optional[Match]:
    """First match of the first date pattern that matches"""
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match
    return None


def find_amount(text: str, patterns: Iterable[Pattern],
                exclude: Optional[Tuple[int, int]] = None) -> Optional[Match]:
    """Last match of the first amount pattern that matches outside `exclude`"""
    for pattern in patterns:
        matches = [m for m in pattern.finditer(text) if not _overlaps(m.span(), exclude)]
        if matches:
            return matches[-1]
    return None


def excise(text: str, spans: Sequence[Tuple[int, int]]) -> str:
    """Remove the given spans from text, joining the remainder with spaces"""
    pieces = []
    position = 0
    for start, end in sorted(spans):
        if start < position:
            continue
        pieces.append(text[position:start])
        position = end
    pieces.append(text[position:])
    return ' '.join(' '.join(pieces).split())


class CandidateBuilder:
    """Turns raw date/amount/merchant tokens into an ExtractionCandidate"""

    def __init__(self, transformer: DataTransformer):
        self.transformer = transformer

    def build(self, date_token: str, amount_token: str, merchant: str,
              confidence: float, strategy: StrategyTag, context: ExtractionContext,
              line_index: int = -1) -> Optional[ExtractionCandidate]:
        """Normalise the tokens; returns None if any of them is unusable"""
        try:
            iso_date = self.transformer.normalize_date(
                date_token, year=context.statement_year, day_first=context.day_first
            )
            amount = self.transformer.parse_amount(amount_token, context.locale)
        except (ValueError, InvalidOperation) as e:
            logger.debug(f"Dropping {strategy.value} candidate on line {line_index}: {e}")
            return None

        merchant = self.transformer.clean_merchant(merchant)
        if not iso_date or amount is None or not merchant:
            return None

        return ExtractionCandidate(
            transaction=RawTransaction(date=iso_date, merchant=merchant, amount=amount),
            confidence=round(max(0.0, min(1.0, confidence)), 4),
            strategy=strategy,
            line_index=line_index,
        )
