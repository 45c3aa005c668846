"""Declarative category rules, domain heuristics and direction keywords."""

import re
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..models.core import Category, CategoryRule


BASE_RULE_DATA: List[Dict[str, Any]] = [
    {
        'category': Category.BANKING,
        'patterns': [
            r'\b(?:deposit|interest|ach|wire|transfer|bank|fee|service|charge)\b',
            r'\b(?:direct.?deposit|payroll|salary|wages)\b',
            r'\b(?:wells.?fargo|bank.?of.?america|chase|citi|us.?bank)\b',
        ],
        'keywords': ['deposit', 'interest', 'ach', 'wire', 'transfer', 'bank', 'payroll', 'finance'],
        'priority': 8,
        'confidence': 0.9,
    },
    {
        'category': Category.ATM,
        'patterns': [
            r'\b(?:atm|cash|withdrawal|teller|branch)\b',
            r'\bcash.?(?:advance|deposit|withdrawal)\b',
            r'\bwithdrawal\s+made\s+in\s+(?:a\s+)?branch\b',
        ],
        'keywords': ['atm', 'cash', 'withdrawal', 'teller', 'branch'],
        'priority': 9,
        'confidence': 0.95,
    },
    {
        'category': Category.CHECK,
        'patterns': [
            r'\b(?:check|ck)[\s#]*\d+',
            r'\b(?:deposited|cashed).?check\b',
            r'\bcheck.?(?:payment|deposit|withdrawal)\b',
        ],
        'keywords': ['check', 'deposited check', 'cashed check'],
        'priority': 9,
        'confidence': 0.95,
    },
    {
        'category': Category.FEES,
        'patterns': [
            r'\b(?:overdraft|nsf|insufficient|penalty|late|fee|charge)\b',
            r'\b(?:service.?charge|maintenance.?fee|returned.?item)\b',
            r'\b(?:stop.?payment|wire.?fee)\b',
        ],
        'keywords': ['overdraft', 'nsf', 'insufficient', 'penalty', 'late fee', 'service charge'],
        'priority': 8,
        'confidence': 0.9,
    },
    {
        'category': Category.FOOD,
        'patterns': [
            r'\b(?:restaurant|cafe|coffee|food|grocery|market|dining)\b',
            r'\b(?:starbucks|mcdonald|burger|pizza|subway|chipotle|taco|kfc)\b',
            r'\b(?:bakery|deli|bar|grill|bistro|eatery)\b',
            r'\b(?:kroger|safeway|whole.?foods|trader.?joe)\b',
        ],
        'keywords': ['restaurant', 'cafe', 'coffee', 'food', 'grocery', 'market', 'starbucks', 'mcdonald'],
        'priority': 7,
        'confidence': 0.85,
    },
    {
        'category': Category.RETAIL,
        'patterns': [
            r'\b(?:store|shop|retail|purchase|pos|sale|goods|supply)\b',
            r'\b(?:amazon|walmart|target|costco|home.?depot|best.?buy)\b',
            r'\b(?:cvs|walgreens|pharmacy|macy|nordstrom|gap|nike)\b',
            r'\b(?:parts|automotive|hardware|electronics|clothing)\b',
        ],
        'keywords': ['store', 'shop', 'retail', 'amazon', 'walmart', 'target', 'costco', 'cvs'],
        'priority': 6,
        'confidence': 0.8,
    },
    {
        'category': Category.SUBSCRIPTIONS,
        'patterns': [
            r'\b(?:subscription|monthly|annual|membership|recurring)\b',
            r'\b(?:netflix|spotify|hulu|disney|amazon.?prime)\b',
            r'\b(?:comcast|at&t|att|verizon|tmobile|internet|cable|phone)\b',
            r'\b(?:streaming|software|saas|service|plan|utilities)\b',
        ],
        'keywords': ['subscription', 'monthly', 'netflix', 'spotify', 'comcast', 'internet', 'cable'],
        'priority': 7,
        'confidence': 0.85,
    },
]

# (patterns, category) checked in order against the lower-cased merchant
DOMAIN_HEURISTICS: Tuple[Tuple[Tuple[re.Pattern, ...], Category], ...] = tuple(
    (tuple(re.compile(p, re.IGNORECASE) for p in patterns), category)
    for patterns, category in [
        ([r'\b\d{3,4}\s*[a-z]+\s+st(?:reet)?\b', r'\b\d+\s*[ns]\.?\s*main\b'], Category.RETAIL),
        ([r'\b(?:kitchen|dining|meal|food|eat|eats|eatery)\b'], Category.FOOD),
        ([r'\b(?:gas|fuel|station|shell|exxon|bp|chevron)\b'], Category.RETAIL),
        ([r'\b(?:medical|dental|doctor|clinic|hospital|pharmacy)\b'], Category.OTHER),
        ([r'\b(?:insurance|policy|premium)\b'], Category.OTHER),
        ([r'\b(?:loan|mortgage|credit|financing)\b'], Category.BANKING),
    ]
)

SMALL_AMOUNT_LIMIT = 5
LARGE_AMOUNT_LIMIT = 1000

CREDIT_KEYWORDS = (
    'deposit', 'interest payment', 'refund', 'credit', 'transfer in',
    'payroll', 'salary', 'wages', 'reimbursement', 'dividend',
)


def build_rule(category, patterns: Iterable[str], keywords: Iterable[str],
               priority: int, confidence: float) -> CategoryRule:
    """Compile a CategoryRule from plain data"""
    if not isinstance(category, Category):
        category = Category.from_name(category)
    return CategoryRule(
        category=category,
        patterns=tuple(re.compile(p, re.IGNORECASE) for p in patterns),
        keywords=tuple(k.lower() for k in keywords),
        priority=int(priority),
        confidence=float(confidence),
    )


BASE_CATEGORY_RULES: Tuple[CategoryRule, ...] = tuple(build_rule(**data) for data in BASE_RULE_DATA)


def merge_rules(base: Tuple[CategoryRule, ...],
                extra: Optional[Iterable[CategoryRule]] = None) -> Tuple[CategoryRule, ...]:
    """Combine base and caller rules, highest priority first.

    The sort is stable, so rules of equal priority keep their declared order
    and caller rules follow base rules of the same priority.
    """
    combined = list(base) + list(extra or ())
    return tuple(sorted(combined, key=lambda rule: -rule.priority))
