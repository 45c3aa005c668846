"""Statement text parsers and extraction strategies"""

from .bank_detector import BankRegistry, BUILTIN_PROFILES
from .base import ExtractionContext
from .csv_parser import CSVStatementParser
from .patterns import PatternConfigGenerator
from .text_parser import TextStatementParser
from .transformer import DataTransformer

__all__ = [
    'BankRegistry',
    'BUILTIN_PROFILES',
    'ExtractionContext',
    'CSVStatementParser',
    'PatternConfigGenerator',
    'TextStatementParser',
    'DataTransformer',
]
