"""Regex tables and the per-profile pattern configuration generator."""

import logging
import re
from typing import Dict, List, Pattern, Tuple

from ..models.core import BankProfile, PatternConfig


logger = logging.getLogger(__name__)


CURRENCY_SYMBOLS = '$€£¥₹'
_SYM = r'[$€£¥₹]'

MONTH_NAMES = (
    r'(?:Jan(?:uary)?|Feb(?:ruary)?|Mar(?:ch)?|Apr(?:il)?|May|June?|July?|'
    r'Aug(?:ust)?|Sep(?:t(?:ember)?)?|Oct(?:ober)?|Nov(?:ember)?|Dec(?:ember)?)\b'
)

# Date token regexes. Look-arounds keep numeric forms from matching inside
# amounts ("59.16") or longer digit runs.
ISO_DATE = r'(?<![\d/.-])\d{4}[-/.]\d{1,2}[-/.]\d{1,2}(?!\d)'
NUMERIC_DATE = r'(?<![\d/.-])\d{1,2}[-/.]\d{1,2}[-/.]\d{4}(?!\d)'
NUMERIC_DATE_SHORT_YEAR = r'(?<![\d/.-])\d{1,2}[/-]\d{1,2}[/-]\d{2}(?![\d/.-]?\d)'
MONTH_DAY_YEAR = MONTH_NAMES + r'\.?\s+\d{1,2}(?:st|nd|rd|th)?,?\s+\d{4}\b'
DAY_MONTH_YEAR = r'\b\d{1,2}(?:st|nd|rd|th)?\s+' + MONTH_NAMES + r'\.?,?\s+\d{4}\b'
MONTH_DAY = r'\b' + MONTH_NAMES + r'\.?\s+\d{1,2}(?:st|nd|rd|th)?\b(?!,?\s*\d)'
MONTH_DAY_NUMERIC = r'(?<![\d/.,$€£¥₹-])\d{1,2}[/-]\d{1,2}(?!\d|[/-]\d|[.,]\d)'

UNIVERSAL_DATE_PATTERNS = (
    ISO_DATE,
    NUMERIC_DATE,
    NUMERIC_DATE_SHORT_YEAR,
    MONTH_DAY_YEAR,
    DAY_MONTH_YEAR,
    MONTH_DAY,
    MONTH_DAY_NUMERIC,
)

PREFERRED_DATE_FORMATS = {
    'MM/DD/YYYY': r'(?<![\d/.-])\d{1,2}/\d{1,2}/\d{4}(?!\d)',
    'DD/MM/YYYY': r'(?<![\d/.-])\d{1,2}/\d{1,2}/\d{4}(?!\d)',
    'MM-DD-YYYY': r'(?<![\d/.-])\d{1,2}-\d{1,2}-\d{4}(?!\d)',
    'DD.MM.YYYY': r'(?<![\d/.-])\d{1,2}\.\d{1,2}\.\d{4}(?!\d)',
    'YYYY-MM-DD': r'(?<![\d/.-])\d{4}-\d{1,2}-\d{1,2}(?!\d)',
    'MM/DD': r'(?<![\d/.,$€£¥₹-])\d{1,2}/\d{1,2}(?!\d|/\d|[.,]\d)',
    'MM-DD': r'(?<![\d/.,$€£¥₹-])\d{1,2}-\d{1,2}(?!\d|-\d|[.,]\d)',
}

# Amount body: thousands-grouped or plain digits, optional 1-2 digit fraction
AMOUNT_BODY = r'(?:\d{1,3}(?:[,.]\d{3})+|\d+)(?:[.,]\d{1,2})?(?!\d)'

CURRENCY_SYMBOL_BY_CODE = {
    'USD': '$',
    'CAD': '$',
    'AUD': '$',
    'EUR': '€',
    'GBP': '£',
    'JPY': '¥',
    'INR': '₹',
}

# Trailing minus on debits: 4.50-
_TRAILING_MINUS = r'(?:-(?![\w.,]))?'

GENERIC_AMOUNT_PATTERNS = (
    # $1,234.56  -$5.75  € 12,50  $4.50-
    r'(?<![\w.])[-+]?' + _SYM + r'\s?-?' + AMOUNT_BODY + _TRAILING_MINUS,
    # 1.234,56€
    r'(?<![\w/.])[-+]?' + AMOUNT_BODY + r'\s?' + _SYM,
    # (25.00) or ($25.00)
    r'\(\s?' + _SYM + r'?\s?' + AMOUNT_BODY + r'\s?\)',
    # -1,234.56  682.98  12,50  4.50-
    r'(?<![\w/.])[-+]?(?:\d{1,3}(?:[,.]\d{3})+|\d+)[.,]\d{2}(?![\d/]|[.,]\d)' + _TRAILING_MINUS,
    # 1,234  1,234-
    r'(?<![\w/.])[-+]?\d{1,3}(?:,\d{3})+(?![\d]|[.,]\d)' + _TRAILING_MINUS,
)

MERCHANT_PATTERNS = (
    # Capitalised multi-word sequences: "Recurring Payment", "SHELL OIL 123"
    r"\b([A-Z][A-Za-z0-9&'.-]*(?:\s+[A-Z0-9][A-Za-z0-9&'.-]*)+)",
    # Any mixed-case word of at least three letters
    r"\b([A-Za-z][A-Za-z&'.-]{2,})\b",
)

# Loose tokens used by the fuzzy strategy and the contextual neighbour check
LOOSE_DATE_TOKEN = re.compile(r'(?<!\d)(?:\d{4}-\d{1,2}-\d{1,2}|\d{1,2}[/-]\d{1,2}(?:[/-]\d{2,4})?)(?!\d)')
LOOSE_AMOUNT_TOKEN = re.compile(r'[$€£¥₹]?\d{1,8}(?:,\d{3})*(?:\.\d{1,2})?')
DECIMAL_AMOUNT_TOKEN = re.compile(r'[$€£¥₹]?\d+[.,]\d{2}(?!\d)')

_LAYOUT_DATE = r'(?P<date>\d{1,2}[/-]\d{1,2}(?:[/-]\d{2,4})?|\d{4}-\d{1,2}-\d{1,2})'
_LAYOUT_AMOUNT = r'(?P<amount>[-+]?\(?[$€£¥₹]?\s?\d(?:[\d,.]*\d)?\)?[$€£¥₹]?)'
_TRAILING_BALANCE = r'(?:\s+[-+]?[$€£¥₹]?\d(?:[\d,.]*\d)?)?'

LAYOUT_PATTERNS: Dict[str, Tuple[str, ...]] = {
    'tabular': (
        r'^' + _LAYOUT_DATE + r'\s+(?P<text>.+?)\s+' + _LAYOUT_AMOUNT + _TRAILING_BALANCE + r'$',
    ),
    'narrative': (
        r'^(?P<text>.+?)\s+' + _LAYOUT_DATE + r'\s+' + _LAYOUT_AMOUNT + r'$',
        r'^(?P<text>.*[A-Za-z].*?)\s+' + _LAYOUT_AMOUNT + r'$',
    ),
    'csv': (
        r'^"(?P<date>[^"]*)","(?P<text>[^"]*)","(?P<amount>[^"]*)"',
        r'^(?P<date>[^,]+),(?P<text>[^,]+),(?P<amount>[^,]+)',
    ),
}

LAYOUT_ALIASES = {
    'tabular': ('tabular',),
    'detailed': ('tabular',),
    'simple': ('tabular',),
    'narrative': ('narrative',),
    'structured': ('narrative',),
    'csv': ('csv',),
    'auto_detect': ('tabular', 'narrative', 'csv'),
    'auto': ('tabular', 'narrative', 'csv'),
}

SKIP_PATTERNS = (
    r'^\s*$',
    r'^[-=_*\s]+$',
    r'^date\b.*\b(?:description|amount|details|payee|memo|merchant)\b',
    r'^(?:sub)?total\b',
    r'^(?:beginning|ending|opening|closing|available|daily|average|previous|current|new)\s+(?:ledger\s+)?balance\b',
    r'^balance\s*(?::|forward\b|brought\b)',
    r'^page\s+\d+(?:\s+of\s+\d+)?\s*$',
    r'^statement\s+(?:period|date)\b',
    r'^account\s+(?:number|summary)\b',
    r'^routing\s+number\b',
    r'^(?:\*{2,}|x{2,})\d{4}\s*$',
    r'^\d+\s*$',
    r'^interest\s+rate\b',
    r'^customer\s+service\b',
    r'^continued\s+on\s+next\s+page\b',
    r'^www\.',
    r'^\d{1,2}/\d{1,2}/\d{2,4}\s*(?:-|to|through)\s*\d{1,2}/\d{1,2}/\d{2,4}\s*$',
)

SECTION_PATTERNS = (
    r'deposits?(?:\s+(?:&|and)?\s*other\s+credits?)?',
    r'atm\s+withdrawals?',
    r'checks?\s+paid',
    r'electronic\s+withdrawals?',
    r'fees?\s+(?:&|and)?\s*service\s+charges?',
    r'other\s+(?:debits?|credits?)',
    r'bill\s+pay',
    r'card\s+purchases?',
    r'interest\s+payments?',
    r'transaction\s+history',
    r'account\s+activity',
    r'purchases?',
    r'withdrawals?',
)


def _compile_all(patterns, flags=0) -> Tuple[Pattern, ...]:
    # dict.fromkeys keeps the first occurrence of each regex, in order
    return tuple(re.compile(p, flags) for p in dict.fromkeys(patterns))


class PatternConfigGenerator:
    """Turns a bank profile into the ordered regex sets used for one parse"""

    def build(self, profile: BankProfile) -> PatternConfig:
        """Build the pattern configuration for a profile"""
        config = PatternConfig(
            date_patterns=self._date_patterns(profile.date_formats),
            amount_patterns=self._amount_patterns(profile.currency),
            merchant_patterns=_compile_all(MERCHANT_PATTERNS),
            transaction_patterns=self._transaction_patterns(profile.layouts),
            skip_patterns=_compile_all(SKIP_PATTERNS, re.IGNORECASE),
            section_patterns=_compile_all(SECTION_PATTERNS, re.IGNORECASE),
        )
        logger.debug(
            f"Pattern config for {profile.name}: {len(config.date_patterns)} date, "
            f"{len(config.amount_patterns)} amount, "
            f"{len(config.transaction_patterns)} layout patterns"
        )
        return config

    def _date_patterns(self, date_formats) -> Tuple[Pattern, ...]:
        preferred: List[str] = []
        for fmt in date_formats:
            pattern = PREFERRED_DATE_FORMATS.get(fmt.upper())
            if pattern is None:
                logger.debug(f"Ignoring unknown date format hint: {fmt}")
                continue
            preferred.append(pattern)
        return _compile_all(preferred + list(UNIVERSAL_DATE_PATTERNS), re.IGNORECASE)

    def _amount_patterns(self, currency: str) -> Tuple[Pattern, ...]:
        patterns = list(GENERIC_AMOUNT_PATTERNS)
        symbol = CURRENCY_SYMBOL_BY_CODE.get((currency or '').upper())
        if symbol:
            patterns.insert(0, r'(?<![\w.])[-+]?' + re.escape(symbol) + r'\s?-?' + AMOUNT_BODY + _TRAILING_MINUS)
        return _compile_all(patterns)

    def _transaction_patterns(self, layouts) -> Tuple[Pattern, ...]:
        families: List[str] = []
        for layout in layouts:
            for family in LAYOUT_ALIASES.get(layout.lower(), ()):
                if family not in families:
                    families.append(family)
        if not families:
            families = list(LAYOUT_ALIASES['auto_detect'])

        patterns: List[str] = []
        for family in families:
            patterns.extend(LAYOUT_PATTERNS[family])
        return _compile_all(patterns)
