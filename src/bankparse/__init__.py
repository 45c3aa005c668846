"""Bank statement parser: redacted statement text in, categorized transactions out."""

from .models.core import (
    BankProfile,
    Category,
    CategorizedTransaction,
    CategoryRule,
    ParserConfig,
    ParsingMetadata,
    ParsingResult,
    ProcessingStats,
    RawTransaction,
    TransactionType,
)
from .parser import StatementParser, get_default_parser
from .utils.error_handler import BankParseError, StatementParsingError

__version__ = "0.1.0"

__all__ = [
    'BankProfile',
    'Category',
    'CategorizedTransaction',
    'CategoryRule',
    'ParserConfig',
    'ParsingMetadata',
    'ParsingResult',
    'ProcessingStats',
    'RawTransaction',
    'TransactionType',
    'StatementParser',
    'get_default_parser',
    'BankParseError',
    'StatementParsingError',
]
