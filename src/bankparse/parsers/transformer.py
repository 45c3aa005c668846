"""Token normalisation for statement text: dates, amounts and merchants."""

import logging
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import List, Optional

from ..models.core import ParserConfig
from .patterns import LOOSE_DATE_TOKEN, DECIMAL_AMOUNT_TOKEN


logger = logging.getLogger(__name__)


MIN_YEAR = 1900
MAX_YEAR = 2100

MONTHS = {
    'jan': 1, 'january': 1,
    'feb': 2, 'february': 2,
    'mar': 3, 'march': 3,
    'apr': 4, 'april': 4,
    'may': 5,
    'jun': 6, 'june': 6,
    'jul': 7, 'july': 7,
    'aug': 8, 'august': 8,
    'sep': 9, 'sept': 9, 'september': 9,
    'oct': 10, 'october': 10,
    'nov': 11, 'november': 11,
    'dec': 12, 'december': 12,
}

LOCALE_DECIMAL_SEPARATOR = {'US': '.', 'EU': ','}

_ISO = re.compile(r'(\d{4})[-/.](\d{1,2})[-/.](\d{1,2})')
_NUMERIC = re.compile(r'(\d{1,2})[-/.](\d{1,2})[-/.](\d{4}|\d{2})')
_NUMERIC_NO_YEAR = re.compile(r'(\d{1,2})[-/.](\d{1,2})')
_MONTH_FIRST = re.compile(r'([A-Za-z]{3,9})\.?\s+(\d{1,2})(?:st|nd|rd|th)?,?(?:\s+(\d{4}))?')
_DAY_FIRST = re.compile(r'(\d{1,2})(?:st|nd|rd|th)?\s+([A-Za-z]{3,9})\.?,?(?:\s+(\d{4}))?')

_AMOUNT_SHAPE = re.compile(r'\d(?:[\d.,]*\d)?')
# A year on its own or closing a dotted DD.MM.YYYY date, never part of an amount
_YEAR_MENTION = re.compile(
    r'(?:(?<![\d.,$€£¥₹])|(?<=\d\.\d\.)|(?<=\d\.\d\d\.))'
    r'((?:19|20)\d{2})(?!\d|[.,]\d)'
)

MERCHANT_NOISE_PATTERNS = [
    re.compile(r'^(?:purchase|withdrawal|payment)\s+authorized\s+on\s*(?:\d{1,2}/\d{1,2}(?:/\d{2,4})?)?', re.IGNORECASE),
    re.compile(r'^(?:recurring\s+)?transaction\s+on\s*(?:\d{1,2}/\d{1,2}(?:/\d{2,4})?)?', re.IGNORECASE),
    re.compile(r'^ATM\s+(?:withdrawal|deposit)\b\s*', re.IGNORECASE),
    # Only when a payee follows; a bare "Check #1234" is left for categorisation
    re.compile(r'^check\s*#?\s*\d*\s+(?=[A-Za-z])', re.IGNORECASE),
    re.compile(r'\s+[A-Z]{2}\s*\d{5}(?:-\d{4})?\b.*$'),
    re.compile(r'\s+\d{1,2}/\d{1,2}(?:/\d{2,4})?(?=\s|$)'),
    re.compile(r'\s+[$€£¥₹]\s?\d[\d,.]*.*$'),
]

_SEPARATOR_CHARS = ' ,;:-|/*#'

US_BANK_NAMES = re.compile(
    r'\b(?:wells\s+fargo|bank\s+of\s+america|chase|citi(?:bank)?|u\.?s\.?\s+bank|capital\s+one|pnc)\b',
    re.IGNORECASE,
)
EU_BANK_NAMES = re.compile(
    r'deutsche\s+bank|\bing\b|bnp\s+paribas|santander|unicredit|commerzbank|soci[ée]t[ée]\s+g[ée]n[ée]rale|rabobank|\biban\b',
    re.IGNORECASE,
)
_US_AMOUNT = re.compile(r'\$\s?\d[\d,]*\.\d{2}(?!\d)')
_EU_AMOUNT = re.compile(r'(?:€\s?\d[\d.]*,\d{2}(?!\d)|\d[\d.]*,\d{2}\s?€)')
_US_DATE = re.compile(r'(?<!\d)\d{1,2}/\d{1,2}/\d{4}(?!\d)')
_EU_DATE = re.compile(r'(?<![\d.])\d{1,2}\.\d{1,2}\.\d{4}(?!\d)')

_TABULAR_LINE = re.compile(
    r'^\s*(?:\d{1,2}[/-]\d{1,2}(?:[/-]\d{2,4})?|\d{4}-\d{1,2}-\d{1,2})\s+.+?\s+[-+(]?[$€£]?\d[\d,.]*\d\)?\s*$'
)


class DataTransformer:
    """Normalises date, amount and merchant tokens found in statement text"""

    def __init__(self, config: Optional[ParserConfig] = None):
        self.config = config or ParserConfig()

    def normalize_date(self, date_str: str, year: Optional[int] = None,
                       day_first: bool = False) -> Optional[str]:
        """Convert a date token to YYYY-MM-DD.

        Args:
            date_str: Token such as "07/18/2018", "2018-07-18", "Jul 18" or "07/18"
            year: Year used for forms without one (current year when omitted)
            day_first: Read numeric forms as DD/MM instead of MM/DD

        Returns:
            ISO date string, or None if the token is not a valid date
        """
        if date_str is None:
            return None
        text = str(date_str).strip().rstrip('.,')
        if not text:
            return None

        fallback_year = year if year is not None else datetime.now().year

        match = _ISO.fullmatch(text)
        if match:
            return self._build_date(match.group(1), match.group(2), match.group(3))

        match = _NUMERIC.fullmatch(text)
        if match:
            first, second, year_token = match.groups()
            full_year = 2000 + int(year_token) if len(year_token) == 2 else int(year_token)
            month, day = (second, first) if day_first else (first, second)
            return self._build_date(full_year, month, day)

        match = _NUMERIC_NO_YEAR.fullmatch(text)
        if match:
            first, second = match.groups()
            month, day = (second, first) if day_first else (first, second)
            return self._build_date(fallback_year, month, day)

        match = _MONTH_FIRST.fullmatch(text)
        if match:
            month = MONTHS.get(match.group(1).lower())
            if month is None:
                return None
            return self._build_date(match.group(3) or fallback_year, month, match.group(2))

        match = _DAY_FIRST.fullmatch(text)
        if match:
            month = MONTHS.get(match.group(2).lower())
            if month is None:
                return None
            return self._build_date(match.group(3) or fallback_year, month, match.group(1))

        return None

    def _build_date(self, year, month, day) -> Optional[str]:
        year, month, day = int(year), int(month), int(day)
        if not (MIN_YEAR <= year <= MAX_YEAR and 1 <= month <= 12 and 1 <= day <= 31):
            return None
        try:
            return date(year, month, day).isoformat()
        except ValueError:
            # Feb 30 and friends
            return None

    def parse_amount(self, amount_str: str, locale: str = 'UNIVERSAL') -> Optional[Decimal]:
        """Convert an amount token to a signed Decimal with two places.

        Currency symbols and whitespace are ignored; a leading or trailing
        minus sign or surrounding parentheses make the amount negative.
        Returns None for malformed input.
        """
        if amount_str is None:
            return None
        text = str(amount_str).strip()
        if not text:
            return None

        negative = False
        if text.startswith('(') and text.endswith(')'):
            negative = True
            text = text[1:-1]

        text = re.sub(r'[\s$€£¥₹]', '', text)

        if text.startswith('-'):
            negative = True
            text = text[1:]
        elif text.startswith('+'):
            text = text[1:]
        if text.endswith('-'):
            negative = True
            text = text[:-1]

        if not _AMOUNT_SHAPE.fullmatch(text):
            return None

        cleaned = self._normalize_separators(text, locale)
        if cleaned is None:
            return None

        try:
            amount = Decimal(cleaned)
        except InvalidOperation:
            logger.debug(f"Unable to parse amount: {amount_str}")
            return None
        if not amount.is_finite():
            return None

        amount = amount.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
        return -amount if negative else amount

    def _normalize_separators(self, text: str, locale: str) -> Optional[str]:
        has_comma = ',' in text
        has_dot = '.' in text

        if has_comma and has_dot:
            # Rightmost separator is the decimal one
            decimal_sep = ',' if text.rfind(',') > text.rfind('.') else '.'
            thousands_sep = '.' if decimal_sep == ',' else ','
            if text.count(decimal_sep) > 1:
                return None
            return text.replace(thousands_sep, '').replace(decimal_sep, '.')

        if not has_comma and not has_dot:
            return text

        sep = ',' if has_comma else '.'
        if text.count(sep) > 1:
            return text.replace(sep, '')

        trailing = text.rsplit(sep, 1)[1]
        if len(trailing) == 3 and sep != LOCALE_DECIMAL_SEPARATOR.get(locale):
            return text.replace(sep, '')
        return text.replace(sep, '.')

    def clean_merchant(self, merchant: str) -> str:
        """Strip statement noise from a merchant string"""
        if not merchant:
            return ""

        original = ' '.join(str(merchant).split())
        cleaned = original

        for pattern in MERCHANT_NOISE_PATTERNS:
            cleaned = pattern.sub(' ', cleaned)

        cleaned = ' '.join(cleaned.split()).strip(_SEPARATOR_CHARS)
        cleaned = ' '.join(cleaned.split())

        return cleaned if cleaned else original.strip(_SEPARATOR_CHARS)

    def detect_locale(self, text: str) -> str:
        """Guess the number/date convention of a statement: US, EU or UNIVERSAL"""
        us_hits = (
            len(_US_AMOUNT.findall(text))
            + len(_US_DATE.findall(text))
            + len(US_BANK_NAMES.findall(text))
        )
        eu_hits = (
            len(_EU_AMOUNT.findall(text))
            + len(_EU_DATE.findall(text))
            + len(EU_BANK_NAMES.findall(text))
        )

        if us_hits > 2 and us_hits > eu_hits:
            locale = 'US'
        elif eu_hits > 2 and eu_hits > us_hits:
            locale = 'EU'
        else:
            locale = 'UNIVERSAL'

        logger.debug(f"Locale indicators: US={us_hits}, EU={eu_hits} -> {locale}")
        return locale

    def detect_format(self, lines: List[str]) -> str:
        """Classify the layout of the first 20 lines.

        Returns one of CSV, TSV, TABULAR, MIXED or NARRATIVE.
        """
        sample = [line for line in lines[:20] if line.strip()]
        if not sample:
            return 'NARRATIVE'

        total = len(sample)
        csv_lines = sum(1 for line in sample if line.count(',') >= 2)
        tsv_lines = sum(1 for line in sample if line.count('\t') >= 2)
        tabular_lines = sum(1 for line in sample if _TABULAR_LINE.match(line))

        if csv_lines > total * 0.7:
            return 'CSV'
        if tsv_lines > total * 0.7:
            return 'TSV'
        if tabular_lines > total * 0.5:
            return 'TABULAR'
        if csv_lines > 0 or tsv_lines > 0:
            return 'MIXED'
        return 'NARRATIVE'

    def detect_statement_year(self, text: str) -> Optional[int]:
        """Return the last plausible four-digit year mentioned in the text"""
        years = [
            int(token) for token in _YEAR_MENTION.findall(text)
            if MIN_YEAR <= int(token) <= MAX_YEAR
        ]
        return years[-1] if years else None

    def has_date_token(self, text: str) -> bool:
        return bool(LOOSE_DATE_TOKEN.search(text))

    def has_amount_token(self, text: str) -> bool:
        return bool(DECIMAL_AMOUNT_TOKEN.search(text))
