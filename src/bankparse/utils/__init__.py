"""Utility functions and helpers"""

from .validation import ValidationEngine
from .duplicate_detector import DuplicateDetector, TransactionNormalizer, NormalizationReport
from .csv_writer import CSVWriter
from .config_manager import ConfigManager, get_default_config_manager
from .error_handler import (
    BankParseError,
    ConfigurationError,
    ErrorCategory,
    JSONFormatter,
    StatementParsingError,
    TextExtractionError,
    UnsupportedFormatError,
    configure_logging,
)
from .report import generate_processing_report
from .text_extractor import TextExtractor

__all__ = [
    'ValidationEngine',
    'DuplicateDetector',
    'TransactionNormalizer',
    'NormalizationReport',
    'CSVWriter',
    'ConfigManager',
    'get_default_config_manager',
    'BankParseError',
    'ConfigurationError',
    'ErrorCategory',
    'JSONFormatter',
    'StatementParsingError',
    'TextExtractionError',
    'UnsupportedFormatError',
    'configure_logging',
    'generate_processing_report',
    'TextExtractor',
]
