"""CSV/TSV strategy with automatic column detection."""

import csv
import logging
from decimal import Decimal
from typing import Dict, List, Optional

from ..models.core import ExtractionCandidate, ParserConfig, StrategyTag
from .base import CandidateBuilder, ExtractionContext, find_amount, find_date
from .transformer import DataTransformer


logger = logging.getLogger(__name__)


class CSVStatementParser:
    """Extracts transactions from delimiter-separated statement rows"""

    CONFIDENCE = 0.9
    DELIMITERS = [',', ';', '\t', '|']
    SNIFF_COLUMNS = 6

    def __init__(self, config: ParserConfig, transformer: Optional[DataTransformer] = None):
        self.config = config
        self.transformer = transformer or DataTransformer(config)
        self.builder = CandidateBuilder(self.transformer)

        # Header name fragments for automatic mapping, checked in this order
        self.column_mappings = {
            'date': ['date', 'posted', 'posting'],
            'description': [
                'description', 'merchant', 'payee', 'memo', 'details', 'narration',
                'narrative', 'particulars',
            ],
            'amount': ['amount', 'value', 'sum'],
            'debit': ['debit', 'withdrawal', 'paid out'],
            'credit': ['credit', 'deposit', 'paid in'],
        }

    def detect_delimiter(self, lines: List[str], text_format: str = 'CSV') -> str:
        """Pick the delimiter that splits the first 10 lines into 3-10 fields most often"""
        if text_format == 'TSV':
            return '\t'

        sample = lines[:10]
        best_delimiter = ','
        best_score = 0
        for delimiter in self.DELIMITERS:
            score = 0
            for line in sample:
                parts = line.count(delimiter) + 1
                if 3 <= parts <= 10:
                    score += parts
            if score > best_score:
                best_delimiter = delimiter
                best_score = score

        logger.debug(f"Detected CSV delimiter: {best_delimiter!r}")
        return best_delimiter

    def split_row(self, line: str, delimiter: str) -> List[str]:
        """Split one row, honouring quoted fields"""
        try:
            return [field.strip() for field in next(csv.reader([line], delimiter=delimiter))]
        except (csv.Error, StopIteration):
            return [field.strip() for field in line.split(delimiter)]

    def detect_column_mapping(self, headers: List[str]) -> Dict[str, int]:
        """Map field names to column positions from header names"""
        mapping = self._match_headers(headers)
        logger.info(f"Detected column mappings: {mapping}")
        return mapping

    def _match_headers(self, headers: List[str]) -> Dict[str, int]:
        mapping: Dict[str, int] = {}
        normalized = [header.strip().strip('"').lower() for header in headers]

        for field, fragments in self.column_mappings.items():
            for index, header in enumerate(normalized):
                if index in mapping.values():
                    continue
                if any(fragment in header for fragment in fragments):
                    mapping[field] = index
                    break
        return mapping

    def sniff_columns(self, fields: List[str], context: ExtractionContext) -> Dict[str, int]:
        """Map columns from the content of a single row"""
        mapping: Dict[str, int] = {}
        for index, value in enumerate(fields[:self.SNIFF_COLUMNS]):
            if not value:
                continue
            if 'date' not in mapping and find_date(value, context.patterns.date_patterns):
                mapping['date'] = index
            elif 'amount' not in mapping and self._looks_like_amount(value, context):
                mapping['amount'] = index
            elif ('description' not in mapping and len(value) > 2
                  and any(ch.isalpha() for ch in value)):
                mapping['description'] = index
        return mapping

    def _looks_like_amount(self, value: str, context: ExtractionContext) -> bool:
        if self.transformer.parse_amount(value, context.locale) is not None:
            return True
        return find_amount(value, context.patterns.amount_patterns) is not None

    def _is_header(self, fields: List[str], context: ExtractionContext) -> bool:
        if any(find_date(value, context.patterns.date_patterns) for value in fields):
            return False
        return len(self._match_headers(fields)) >= 2

    def extract(self, lines: List[str], context: ExtractionContext) -> List[ExtractionCandidate]:
        """Run the CSV strategy over all lines of the statement"""
        delimiter = self.detect_delimiter(lines, context.text_format)
        header_mapping: Optional[Dict[str, int]] = None
        candidates = []

        for index, line in enumerate(lines):
            if not line.strip():
                continue
            fields = self.split_row(line, delimiter)

            if header_mapping is None and self._is_header(fields, context):
                header_mapping = self.detect_column_mapping(fields)
                continue
            if len(fields) < 3:
                continue

            candidate = self._convert_row(fields, header_mapping or {}, context, index)
            if candidate:
                candidates.append(candidate)

        logger.info(f"CSV strategy extracted {len(candidates)} rows")
        return candidates

    def _convert_row(self, fields: List[str], header_mapping: Dict[str, int],
                     context: ExtractionContext, line_index: int) -> Optional[ExtractionCandidate]:
        mapping = dict(header_mapping)
        has_amount = 'amount' in mapping or 'debit' in mapping or 'credit' in mapping
        if 'date' not in mapping or 'description' not in mapping or not has_amount:
            sniffed = self.sniff_columns(fields, context)
            for field, index in sniffed.items():
                if field == 'amount' and has_amount:
                    continue
                mapping.setdefault(field, index)

        date_value = self._cell(fields, mapping.get('date'))
        merchant = self._cell(fields, mapping.get('description'))
        amount = self._extract_amount(fields, mapping, context)
        if not date_value or not merchant or amount is None:
            logger.debug(f"Skipping CSV row {line_index}: incomplete fields")
            return None

        date_match = find_date(date_value, context.patterns.date_patterns)
        date_token = date_match.group(0) if date_match else date_value

        return self.builder.build(
            date_token, str(amount), merchant, self.CONFIDENCE,
            StrategyTag.CSV, context, line_index,
        )

    def _cell(self, fields: List[str], index: Optional[int]) -> str:
        if index is None or index >= len(fields):
            return ''
        return fields[index].strip()

    def _parse_cell_amount(self, value: str, context: ExtractionContext) -> Optional[Decimal]:
        if not value:
            return None
        amount = self.transformer.parse_amount(value, context.locale)
        if amount is None:
            match = find_amount(value, context.patterns.amount_patterns)
            if match:
                amount = self.transformer.parse_amount(match.group(0), context.locale)
        return amount

    def _extract_amount(self, fields: List[str], mapping: Dict[str, int],
                        context: ExtractionContext) -> Optional[Decimal]:
        """Amount from a single amount column or from debit/credit columns"""
        if 'amount' in mapping:
            amount = self._parse_cell_amount(self._cell(fields, mapping['amount']), context)
            if amount is not None:
                return amount

        debit = self._parse_cell_amount(self._cell(fields, mapping.get('debit')), context)
        credit = self._parse_cell_amount(self._cell(fields, mapping.get('credit')), context)
        if debit is None and credit is None:
            return None

        # Credits are positive, debits are negative
        return abs(credit or Decimal('0')) - abs(debit or Decimal('0'))
