"""Tests for the CSV/TSV extraction strategy."""

from decimal import Decimal

from bankparse.models.core import ParserConfig, StrategyTag
from bankparse.parsers.bank_detector import BankRegistry
from bankparse.parsers.base import ExtractionContext
from bankparse.parsers.csv_parser import CSVStatementParser
from bankparse.parsers.patterns import PatternConfigGenerator


class TestCSVStatementParser:
    """Test cases for CSVStatementParser"""

    def setup_method(self):
        """Set up test fixtures"""
        self.config = ParserConfig()
        self.parser = CSVStatementParser(self.config)
        patterns = PatternConfigGenerator().build(BankRegistry().get('generic'))
        self.context = ExtractionContext(patterns, text_format='CSV')
        self.tsv_context = ExtractionContext(patterns, text_format='TSV')

    def test_column_mapping_detection(self):
        """Test automatic column mapping detection"""
        mapping = self.parser.detect_column_mapping(['Date', 'Description', 'Amount'])
        assert mapping == {'date': 0, 'description': 1, 'amount': 2}

    def test_debit_credit_column_detection(self):
        """Test detection of separate debit/credit columns"""
        mapping = self.parser.detect_column_mapping(['Date', 'Debit', 'Credit', 'Description'])

        assert mapping['date'] == 0
        assert mapping['debit'] == 1
        assert mapping['credit'] == 2
        assert mapping['description'] == 3
        assert 'amount' not in mapping

    def test_detect_delimiter(self):
        """Test delimiter detection from the header row"""
        assert self.parser.detect_delimiter(["a;b;c", "1;2;3"]) == ';'
        assert self.parser.detect_delimiter(["a|b|c|d", "1|2|3|4"]) == '|'
        assert self.parser.detect_delimiter(["a,b,c", "1,2,3"]) == ','
        assert self.parser.detect_delimiter(["a,b,c"], text_format='TSV') == '\t'

    def test_split_row_honours_quotes(self):
        """Test that quoted fields keep their delimiters"""
        fields = self.parser.split_row('2024-01-01,"Coffee, Inc",-4.50', ',')
        assert fields == ['2024-01-01', 'Coffee, Inc', '-4.50']

    def test_starbucks_row(self):
        """Test parsing a single CSV transaction row"""
        lines = ["date,description,amount", "2018-07-01,STARBUCKS #123,-5.75"]
        candidates = self.parser.extract(lines, self.context)

        assert len(candidates) == 1
        candidate = candidates[0]
        assert candidate.strategy == StrategyTag.CSV
        assert candidate.confidence == 0.9
        assert candidate.line_index == 1
        assert candidate.transaction.date == "2018-07-01"
        assert candidate.transaction.merchant == "STARBUCKS #123"
        assert candidate.transaction.amount == Decimal("-5.75")

    def test_debit_credit_rows(self):
        """Test parsing rows with separate debit/credit columns"""
        lines = [
            "Date,Debit,Credit,Description",
            "2024-01-01,,100.50,Payroll Deposit",
            "2024-01-02,25.00,,Grocery Market",
        ]
        candidates = self.parser.extract(lines, self.context)

        assert [c.transaction.amount for c in candidates] == [Decimal("100.50"), Decimal("-25.00")]
        assert [c.transaction.merchant for c in candidates] == ["Payroll Deposit", "Grocery Market"]

    def test_headerless_rows_are_sniffed(self):
        """Test parsing rows without a header line"""
        lines = ["2024-03-01,Coffee Shop,4.50", "2024-03-02,Book Store,12.00"]
        candidates = self.parser.extract(lines, self.context)

        assert len(candidates) == 2
        assert candidates[0].transaction.merchant == "Coffee Shop"
        assert candidates[1].transaction.amount == Decimal("12.00")

    def test_sniff_columns(self):
        """Test automatic column detection from field contents"""
        mapping = self.parser.sniff_columns(['Book Store', '2024-03-02', '12.00'], self.context)
        assert mapping == {'description': 0, 'date': 1, 'amount': 2}

    def test_tab_separated(self):
        """Test parsing tab separated rows"""
        lines = ["Date\tMemo\tAmount", "2024-02-10\tGas Station\t-30.00"]
        candidates = self.parser.extract(lines, self.tsv_context)

        assert len(candidates) == 1
        assert candidates[0].transaction.merchant == "Gas Station"
        assert candidates[0].transaction.amount == Decimal("-30.00")

    def test_short_rows_are_ignored(self):
        """Test that rows with too few fields are skipped"""
        lines = ["date,description,amount", "2024-01-01,Coffee", "just text"]
        assert self.parser.extract(lines, self.context) == []

    def test_incomplete_row(self):
        """Test that rows missing a date or amount are skipped"""
        lines = ["date,description,amount", "2024-01-01,Coffee,not-a-number"]
        assert self.parser.extract(lines, self.context) == []
