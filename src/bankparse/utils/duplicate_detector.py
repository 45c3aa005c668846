"""Duplicate detection and final normalisation of extracted transactions."""

import logging
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Tuple

from ..models.core import ExtractionCandidate, ParserConfig, RawTransaction
from .validation import ValidationEngine


logger = logging.getLogger(__name__)


class DuplicateDetector:
    """Collapses transactions that share date, merchant and amount"""

    def signature(self, transaction: RawTransaction) -> Tuple[str, str, Decimal]:
        return (
            transaction.date,
            transaction.merchant.lower().strip(),
            transaction.amount,
        )

    def detect_duplicates(self, transactions: List[RawTransaction]) -> Dict[Tuple, List[RawTransaction]]:
        """Group transactions by signature, keeping only groups with duplicates"""
        groups: Dict[Tuple, List[RawTransaction]] = {}
        for transaction in transactions:
            groups.setdefault(self.signature(transaction), []).append(transaction)
        return {sig: txns for sig, txns in groups.items() if len(txns) > 1}

    def deduplicate(self, transactions: List[RawTransaction]) -> List[RawTransaction]:
        """Remove duplicates and sort ascending by date.

        On collision the first occurrence keeps its position but takes the
        longer merchant string of the two.
        """
        duplicate_groups = self.detect_duplicates(transactions)
        if not duplicate_groups:
            return sorted(transactions, key=lambda txn: txn.date)

        for key, group in duplicate_groups.items():
            logger.debug(f"{len(group)} transactions share signature {key}")

        kept: Dict[Tuple, RawTransaction] = {}
        for transaction in transactions:
            key = self.signature(transaction)
            existing = kept.get(key)
            if existing is None:
                kept[key] = transaction
            elif len(transaction.merchant) > len(existing.merchant):
                kept[key] = RawTransaction(
                    date=existing.date,
                    merchant=transaction.merchant,
                    amount=existing.amount,
                )

        logger.debug(f"Removed {len(transactions) - len(kept)} duplicate transactions")

        # sorted() is stable, so same-day transactions keep extraction order
        return sorted(kept.values(), key=lambda txn: txn.date)


@dataclass
class NormalizationReport:
    """Outcome of TransactionNormalizer.normalize"""
    transactions: List[RawTransaction]
    rejected: int = 0
    merged: int = 0
    errors: List[str] = field(default_factory=list)


class TransactionNormalizer:
    """Validates, rounds, deduplicates and sorts extraction candidates"""

    def __init__(self, config: ParserConfig):
        self.config = config
        self.validator = ValidationEngine(config.max_amount)
        self.duplicate_detector = DuplicateDetector()

    def normalize(self, candidates: List[ExtractionCandidate]) -> NormalizationReport:
        valid: List[RawTransaction] = []
        errors: List[str] = []

        for candidate in candidates:
            transaction = candidate.transaction
            problems = self.validator.validate_transaction(
                transaction,
                min_merchant_length=self.config.min_merchant_length,
                max_amount=self.config.max_amount,
            )
            if problems:
                errors.extend(f"Line {candidate.line_index}: {problem}" for problem in problems)
                continue
            valid.append(RawTransaction(
                date=transaction.date,
                merchant=transaction.merchant.strip(),
                amount=transaction.amount.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP),
            ))

        transactions = self.duplicate_detector.deduplicate(valid)
        report = NormalizationReport(
            transactions=transactions,
            rejected=len(candidates) - len(valid),
            merged=len(valid) - len(transactions),
            errors=errors,
        )
        logger.info(
            f"Normalized {len(candidates)} candidates: {len(transactions)} kept, "
            f"{report.rejected} rejected, {report.merged} merged"
        )
        return report
