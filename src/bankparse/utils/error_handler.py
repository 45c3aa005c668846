"""Error types and structured logging setup for the statement parser."""

import json
import logging
import sys
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional


class ErrorCategory(Enum):
    """Error categories for classification"""
    FILE_ACCESS = "file_access"
    FILE_FORMAT = "file_format"
    DATA_PARSING = "data_parsing"
    CONFIGURATION = "configuration"
    SYSTEM = "system"


class BankParseError(Exception):
    """Base class for all errors raised by bankparse"""

    category = ErrorCategory.SYSTEM

    def __init__(self, message: str, file_path: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.file_path = file_path

    def to_dict(self):
        """Convert to dictionary for JSON serialization"""
        return {
            'error': type(self).__name__,
            'category': self.category.value,
            'message': self.message,
            'file_path': self.file_path,
        }


class StatementParsingError(BankParseError):
    """Catastrophic failure of a parse run; the original exception is chained"""
    category = ErrorCategory.DATA_PARSING


class UnsupportedFormatError(BankParseError):
    """Input file type the text extractor cannot read"""
    category = ErrorCategory.FILE_FORMAT


class TextExtractionError(BankParseError):
    """A supported file could not be turned into text"""
    category = ErrorCategory.FILE_ACCESS


class ConfigurationError(BankParseError):
    """Invalid configuration contents"""
    category = ErrorCategory.CONFIGURATION


class JSONFormatter(logging.Formatter):
    """Formats log records as single-line JSON objects"""

    def format(self, record):
        log_entry = {
            'timestamp': datetime.fromtimestamp(record.created).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        # Add extra fields if present
        if hasattr(record, 'category'):
            log_entry['category'] = record.category
        if hasattr(record, 'file_path'):
            log_entry['file_path'] = record.file_path
        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def configure_logging(verbose: bool = False, log_file: Optional[str] = None) -> logging.Logger:
    """Configure the package logger for command-line use.

    Args:
        verbose: Emit DEBUG records on the console instead of INFO
        log_file: Optional path of a JSON-lines log file

    Returns:
        The configured 'bankparse' logger
    """
    logger = logging.getLogger('bankparse')
    logger.setLevel(logging.DEBUG)

    # Clear existing handlers
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s'
    ))
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        if log_path.parent and not log_path.parent.exists():
            log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(JSONFormatter())
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger
