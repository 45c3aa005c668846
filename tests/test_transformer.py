"""Tests for date, amount and merchant normalisation."""

from decimal import Decimal

import pytest

from bankparse.parsers.transformer import US_BANK_NAMES, DataTransformer


class TestNormalizeDate:
    """Date token normalisation"""

    def setup_method(self):
        self.transformer = DataTransformer()

    @pytest.mark.parametrize("token,expected", [
        ("07/18/2018", "2018-07-18"),
        ("2018-07-18", "2018-07-18"),
        ("2018/07/18", "2018-07-18"),
        ("07-18-2018", "2018-07-18"),
        ("07.18.2018", "2018-07-18"),
        ("07/18/18", "2018-07-18"),
        ("Jul 18, 2018", "2018-07-18"),
        ("July 18 2018", "2018-07-18"),
        ("18 Jul 2018", "2018-07-18"),
    ])
    def test_full_dates(self, token, expected):
        """Test normalisation of dates with a year"""
        assert self.transformer.normalize_date(token) == expected

    def test_dates_without_year_use_statement_year(self):
        """Test dates without a year"""
        assert self.transformer.normalize_date("07/18", year=2018) == "2018-07-18"
        assert self.transformer.normalize_date("Jul 18", year=2016) == "2016-07-18"

    def test_day_first(self):
        """Test day-first date normalisation"""
        assert self.transformer.normalize_date("18/07/2018", day_first=True) == "2018-07-18"
        assert self.transformer.normalize_date("15.03.2020", day_first=True) == "2020-03-15"
        # Month-first reading of the same token is not a date
        assert self.transformer.normalize_date("18/07/2018") is None

    @pytest.mark.parametrize("token", [
        "13/45/2018",
        "02/30/2020",
        "1899-01-01",
        "2101-01-01",
        "00/10/2020",
        "Foo 12, 2020",
        "not a date",
        "",
        None,
    ])
    def test_invalid_dates(self, token):
        """Test rejection of invalid date tokens"""
        assert self.transformer.normalize_date(token) is None

    def test_leap_day(self):
        """Test February 29 handling"""
        assert self.transformer.normalize_date("02/29/2020") == "2020-02-29"
        assert self.transformer.normalize_date("02/29/2019") is None


class TestParseAmount:
    """Amount token parsing"""

    def setup_method(self):
        self.transformer = DataTransformer()

    def test_locale_examples(self):
        """Test US and EU amount examples"""
        assert self.transformer.parse_amount("$1,234.56", "US") == Decimal("1234.56")
        assert self.transformer.parse_amount("1.234,56€", "EU") == Decimal("1234.56")

    @pytest.mark.parametrize("token,expected", [
        ("27759.16", Decimal("27759.16")),
        ("$27759.16", Decimal("27759.16")),
        ("-5.75", Decimal("-5.75")),
        ("5.75-", Decimal("-5.75")),
        ("(25.00)", Decimal("-25.00")),
        ("($25.00)", Decimal("-25.00")),
        ("+12.00", Decimal("12.00")),
        ("€ 12,50", Decimal("12.50")),
        ("1,234", Decimal("1234.00")),
        ("1.234.567", Decimal("1234567.00")),
        ("1,234,567.89", Decimal("1234567.89")),
        ("1.234.567,89", Decimal("1234567.89")),
        ("42", Decimal("42.00")),
    ])
    def test_universal_amounts(self, token, expected):
        """Test amount parsing without a locale"""
        assert self.transformer.parse_amount(token) == expected

    def test_single_separator_respects_locale(self):
        """Test amounts with a single separator in each locale"""
        # Three trailing digits are thousands unless the separator is the locale decimal
        assert self.transformer.parse_amount("1,234", "US") == Decimal("1234.00")
        assert self.transformer.parse_amount("1,234", "EU") == Decimal("1.23")
        assert self.transformer.parse_amount("1.234", "US") == Decimal("1.23")
        assert self.transformer.parse_amount("1.234", "EU") == Decimal("1234.00")

    def test_rounding_half_up(self):
        """Test rounding to two places"""
        assert self.transformer.parse_amount("1.5", "US") == Decimal("1.50")
        assert self.transformer.parse_amount("2.345", "US") == Decimal("2.35")

    @pytest.mark.parametrize("token", ["abc", "", "   ", None, "1e5", "1,2,3.4,5", "$", "--5"])
    def test_malformed_amounts(self, token):
        """Test rejection of malformed amounts"""
        assert self.transformer.parse_amount(token) is None

    @pytest.mark.parametrize("value", ["0.01", "5.75", "999.99", "1234.56", "27759.16", "999999.99"])
    def test_locale_formatting_round_trip(self, value):
        """Test parsing amounts formatted for each locale"""
        amount = Decimal(value)
        us_text = "${:,.2f}".format(amount)
        eu_text = "{:,.2f}".format(amount).replace(",", "_").replace(".", ",").replace("_", ".") + " €"

        assert self.transformer.parse_amount(us_text, "US") == amount
        assert self.transformer.parse_amount(eu_text, "EU") == amount


class TestCleanMerchant:
    """Merchant noise removal"""

    def setup_method(self):
        self.transformer = DataTransformer()

    def test_authorized_prefix_and_zip(self):
        """Test removal of authorization prefix and ZIP code"""
        cleaned = self.transformer.clean_merchant(
            "Purchase authorized on 07/15 Amazon Marketplace Seattle WA 98109"
        )
        assert cleaned == "Amazon Marketplace Seattle"

    def test_atm_prefix(self):
        """Test removal of the ATM prefix"""
        assert self.transformer.clean_merchant("ATM Withdrawal 123 Main St") == "123 Main St"

    def test_check_prefix_only_with_payee(self):
        """Test that the check prefix is removed only when a payee follows"""
        assert self.transformer.clean_merchant("Check #1234 John Smith") == "John Smith"
        assert self.transformer.clean_merchant("Check #1234") == "Check #1234"

    def test_embedded_amount_and_whitespace(self):
        """Test removal of embedded amounts and extra spaces"""
        assert self.transformer.clean_merchant("Shell   Oil  $45.00 pending") == "Shell Oil"

    def test_empty(self):
        """Test cleaning an empty merchant"""
        assert self.transformer.clean_merchant("") == ""


class TestDetection:
    """Locale, layout and statement year detection"""

    def setup_method(self):
        self.transformer = DataTransformer()

    def test_detect_locale(self):
        """Test locale detection from amounts and dates"""
        assert self.transformer.detect_locale("Paid $1.00 then $2.00 and $3.00") == "US"
        assert self.transformer.detect_locale("€1,00 €2,00 on 12.03.2020") == "EU"
        assert self.transformer.detect_locale("hello world") == "UNIVERSAL"
        # Two hits are not enough
        assert self.transformer.detect_locale("$1.00 and $2.00") == "UNIVERSAL"

    def test_detect_locale_eu_narrative_with_purchase_lines(self):
        """Test that bank names inside ordinary words are not US indicators"""
        text = (
            "15.03.2020 Card purchase Supermarkt 45,00\n"
            "16.03.2020 Card purchase Bakerei 3,20\n"
            "17.03.2020 Card purchase Citizens Apotheke 12,80\n"
        )
        assert self.transformer.detect_locale(text) == "EU"
        assert not US_BANK_NAMES.search("Card purchase at Citizens Market")
        assert US_BANK_NAMES.search("Chase Total Checking")

    def test_detect_format(self):
        """Test layout detection"""
        csv_lines = ["date,description,amount", "2024-01-01,Coffee,4.50"]
        tsv_lines = ["date\tdescription\tamount", "2024-01-01\tCoffee\t4.50"]
        tabular_lines = [
            "01/15/2024 Coffee Shop 4.50",
            "01/16/2024 Book Store $12.00",
            "01/17/2024 Gas Station 30.00",
        ]
        mixed_lines = ["a,b,c", "hello world", "foo bar", "x"]

        assert self.transformer.detect_format(csv_lines) == "CSV"
        assert self.transformer.detect_format(tsv_lines) == "TSV"
        assert self.transformer.detect_format(tabular_lines) == "TABULAR"
        assert self.transformer.detect_format(mixed_lines) == "MIXED"
        assert self.transformer.detect_format(["Just some words"]) == "NARRATIVE"
        assert self.transformer.detect_format([]) == "NARRATIVE"

    def test_detect_statement_year(self):
        """Test statement year detection"""
        text = "Statement for 2016\nAnnual summary 2017\n01/02 Coffee $2019.50"
        assert self.transformer.detect_statement_year(text) == 2017
        assert self.transformer.detect_statement_year("07/18/2018 Recurring Payment") == 2018
        assert self.transformer.detect_statement_year("no years here") is None

    def test_detect_statement_year_from_dotted_and_iso_dates(self):
        """Test statement year detection from DD.MM.YYYY and ISO dates"""
        dotted = "Kontoauszug 01.03.2018 - 31.03.2018\n16/03 Cafe Central 12,50 €"
        iso = "Period 2019-01-01 to 2019-01-31\n02/01 Coffee 4.50"
        short_dotted = "Auszug 1.3.2017\n2/3 Cafe 3,00"

        assert self.transformer.detect_statement_year(dotted) == 2018
        assert self.transformer.detect_statement_year(iso) == 2019
        assert self.transformer.detect_statement_year(short_dotted) == 2017
        # Still never taken from an amount
        assert self.transformer.detect_statement_year("Total 1.2020,50 €") is None

    def test_tokens(self):
        """Test date and amount token checks"""
        assert self.transformer.has_date_token("07/18 Coffee")
        assert not self.transformer.has_date_token("Coffee $4.50")
        assert self.transformer.has_amount_token("Coffee $4.50")
        assert not self.transformer.has_amount_token("ATM Withdrawals")
