"""Core data models for the statement transaction parser."""

import re
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import List, Dict, Any, Optional, Pattern, Tuple


class Category(str, Enum):
    """Closed set of transaction categories"""
    BANKING = "Banking"
    ATM = "ATM"
    RETAIL = "Retail"
    FOOD = "Food"
    SUBSCRIPTIONS = "Subscriptions"
    CHECK = "Check"
    FEES = "Fees"
    OTHER = "Other"

    @classmethod
    def from_name(cls, name: str) -> "Category":
        """Resolve a category from its display name, case-insensitively"""
        for category in cls:
            if category.value.lower() == str(name).strip().lower():
                return category
        raise ValueError(f"Unknown category: {name}")


class TransactionType(str, Enum):
    """Money direction of a transaction"""
    DEBIT = "debit"
    CREDIT = "credit"


class StrategyTag(Enum):
    """Extraction strategy that produced a candidate.

    The declaration order of PATTERN, CONTEXTUAL and FUZZY is the tie-break
    order used when two per-line candidates share the same confidence.
    """
    PATTERN = "pattern"
    CONTEXTUAL = "contextual"
    FUZZY = "fuzzy"
    MULTI_LINE = "multi_line"
    CSV = "csv"

    @property
    def rank(self) -> int:
        return list(StrategyTag).index(self)


@dataclass(frozen=True)
class BankProfile:
    """Statement conventions of a financial institution.

    Attributes:
        key: Registry key (e.g. "chase")
        name: Display name (e.g. "Chase")
        patterns: Detection regexes matched against the statement header text
        date_formats: Preferred date formats, e.g. "MM/DD/YYYY", "MM/DD"
        layouts: Transaction layout hints - tabular, narrative, csv, auto_detect...
        currency: ISO currency code
        features: Free-form feature flags
    """
    key: str
    name: str
    patterns: Tuple[Pattern, ...]
    date_formats: Tuple[str, ...] = ()
    layouts: Tuple[str, ...] = ("auto_detect",)
    currency: str = "USD"
    features: Tuple[str, ...] = ()

    def matches(self, text: str) -> bool:
        """Check whether any detection pattern matches the text"""
        return any(pattern.search(text) for pattern in self.patterns)

    @classmethod
    def from_dict(cls, key: str, data: Dict[str, Any]) -> "BankProfile":
        """Build a profile from configuration data"""
        if not isinstance(data, dict):
            raise ValueError(f"Bank profile {key} must be a dictionary")
        raw_patterns = data.get('patterns') or []
        if not raw_patterns:
            raise ValueError(f"Bank profile {key} needs at least one detection pattern")
        return cls(
            key=key,
            name=data.get('name', key),
            patterns=tuple(re.compile(p, re.IGNORECASE) for p in raw_patterns),
            date_formats=tuple(data.get('date_formats', ['MM/DD/YYYY'])),
            layouts=tuple(data.get('layouts', ['auto_detect'])),
            currency=data.get('currency', 'USD'),
            features=tuple(data.get('features', [])),
        )


@dataclass(frozen=True)
class PatternConfig:
    """Ordered regex sets derived from a bank profile for one parse call"""
    date_patterns: Tuple[Pattern, ...]
    amount_patterns: Tuple[Pattern, ...]
    merchant_patterns: Tuple[Pattern, ...]
    transaction_patterns: Tuple[Pattern, ...]
    skip_patterns: Tuple[Pattern, ...]
    section_patterns: Tuple[Pattern, ...]


@dataclass
class RawTransaction:
    """Extracted transaction before categorization"""
    date: str  # ISO YYYY-MM-DD
    merchant: str
    amount: Decimal


@dataclass
class ExtractionCandidate:
    """A transaction proposed by one extraction strategy"""
    transaction: RawTransaction
    confidence: float
    strategy: StrategyTag
    line_index: int = -1
    section: Optional[str] = None


@dataclass(frozen=True)
class CategoryRule:
    """Category rule: regex patterns are checked before substring keywords"""
    category: Category
    patterns: Tuple[Pattern, ...]
    keywords: Tuple[str, ...]
    priority: int
    confidence: float


@dataclass
class CategorizationResult:
    """Outcome of categorizing a single transaction"""
    category: Category
    confidence: float
    matched_rule: str
    type: TransactionType


@dataclass
class CategorizedTransaction:
    """Final output unit"""
    date: str
    merchant: str
    amount: Decimal
    category: Category
    type: TransactionType

    def to_dict(self) -> Dict[str, Any]:
        return {
            'date': self.date,
            'merchant': self.merchant,
            'amount': float(self.amount),
            'category': self.category.value,
            'type': self.type.value,
        }


@dataclass
class ProcessingStats:
    """Line-level counters of a parse run"""
    total_lines: int = 0
    processed_lines: int = 0
    skipped_lines: int = 0
    successful_extractions: int = 0
    detected_locale: str = "UNIVERSAL"
    detected_format: str = "NARRATIVE"
    multi_line_transactions: int = 0
    csv_transactions: int = 0
    tabular_transactions: int = 0
    section_headers: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'totalLines': self.total_lines,
            'processedLines': self.processed_lines,
            'skippedLines': self.skipped_lines,
            'successfulExtractions': self.successful_extractions,
            'detectedLocale': self.detected_locale,
            'detectedFormat': self.detected_format,
            'multiLineTransactions': self.multi_line_transactions,
            'csvTransactions': self.csv_transactions,
            'tabularTransactions': self.tabular_transactions,
            'sectionHeaders': self.section_headers,
        }


@dataclass
class ParsingMetadata:
    """Run-level metadata envelope"""
    bank_name: str
    extraction_confidence: float
    total_transactions: int
    processing_stats: ProcessingStats
    category_distribution: Dict[str, int]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'bankName': self.bank_name,
            'extractionConfidence': self.extraction_confidence,
            'totalTransactions': self.total_transactions,
            'processingStats': self.processing_stats.to_dict(),
            'categoryDistribution': dict(self.category_distribution),
        }


@dataclass
class ParsingResult:
    """Result of StatementParser.parse_transactions"""
    transactions: List[CategorizedTransaction]
    metadata: ParsingMetadata

    def to_dict(self) -> Dict[str, Any]:
        return {
            'transactions': [t.to_dict() for t in self.transactions],
            'metadata': self.metadata.to_dict(),
        }


@dataclass
class ParserConfig:
    """Configuration for parser behavior"""
    min_confidence_threshold: float = 0.4
    max_amount: Decimal = Decimal('1000000')
    min_merchant_length: int = 2
    extractor_min_merchant_length: int = 1
    overlap_threshold: float = 0.7
    similarity_threshold: float = 0.7
    learning_capacity: int = 10000
    learning_eviction: int = 1000
    context_window: int = 2
    bank_sample_size: int = 2000
    default_year: Optional[int] = None
    custom_keyword_map: Optional[Dict[str, List[str]]] = None
    custom_bank_profiles: Optional[Dict[str, Dict[str, Any]]] = None

    def __post_init__(self):
        if not isinstance(self.max_amount, Decimal):
            self.max_amount = Decimal(str(self.max_amount))
        if self.custom_keyword_map is None:
            self.custom_keyword_map = {}
        if self.custom_bank_profiles is None:
            self.custom_bank_profiles = {}
