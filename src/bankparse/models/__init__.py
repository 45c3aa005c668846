"""Data models and structures"""

from .core import (
    BankProfile,
    Category,
    CategorizationResult,
    CategorizedTransaction,
    CategoryRule,
    ExtractionCandidate,
    ParserConfig,
    ParsingMetadata,
    ParsingResult,
    PatternConfig,
    ProcessingStats,
    RawTransaction,
    StrategyTag,
    TransactionType,
)

__all__ = [
    'BankProfile',
    'Category',
    'CategorizationResult',
    'CategorizedTransaction',
    'CategoryRule',
    'ExtractionCandidate',
    'ParserConfig',
    'ParsingMetadata',
    'ParsingResult',
    'PatternConfig',
    'ProcessingStats',
    'RawTransaction',
    'StrategyTag',
    'TransactionType',
]
