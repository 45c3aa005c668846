"""Layered transaction categorization.

A merchant is resolved by the first layer that recognises it: the learning
store, the caller's keyword map, the priority-ordered rule table, domain
heuristics, fuzzy similarity against learned merchants, then Other.
"""

import logging
from collections import Counter
from typing import Dict, Iterable, List, Optional, Tuple

from ..models.core import (
    CategorizationResult,
    CategorizedTransaction,
    Category,
    CategoryRule,
    ParserConfig,
    RawTransaction,
    TransactionType,
)
from .learning_store import LearningStore
from .rules import (
    BASE_CATEGORY_RULES,
    CREDIT_KEYWORDS,
    DOMAIN_HEURISTICS,
    LARGE_AMOUNT_LIMIT,
    SMALL_AMOUNT_LIMIT,
    merge_rules,
)


logger = logging.getLogger(__name__)

KeywordMap = Dict[str, List[str]]


class Categorizer:
    """Assigns a category and a debit/credit direction to transactions"""

    LEARNED_CONFIDENCE = 0.95
    CUSTOM_CONFIDENCE = 0.9
    KEYWORD_FACTOR = 0.9
    HEURISTIC_CONFIDENCE = 0.7
    FUZZY_CONFIDENCE = 0.6
    DEFAULT_CONFIDENCE = 0.5

    def __init__(self, config: Optional[ParserConfig] = None,
                 learning_store: Optional[LearningStore] = None,
                 rules: Tuple[CategoryRule, ...] = BASE_CATEGORY_RULES):
        self.config = config or ParserConfig()
        self.learning_store = learning_store if learning_store is not None else LearningStore(
            self.config.learning_capacity, self.config.learning_eviction
        )
        self.rules = tuple(rules)

    def resolve_keyword_map(self, keyword_map: Optional[KeywordMap]) -> List[Tuple[Category, List[str]]]:
        """Validate a {category name: [keywords]} map.

        Raises:
            ValueError: If a key does not name a known category
        """
        resolved = []
        for name, keywords in (keyword_map or {}).items():
            category = Category.from_name(name)
            if isinstance(keywords, str):
                keywords = [keywords]
            resolved.append((category, [str(k).lower() for k in keywords if str(k).strip()]))
        return resolved

    def categorize(self, transaction: RawTransaction,
                   custom_keyword_map: Optional[KeywordMap] = None,
                   use_learning: bool = True,
                   extra_rules: Optional[Iterable[CategoryRule]] = None) -> CategorizationResult:
        """Categorize one transaction and, if learning is on, remember the outcome"""
        keywords = self.resolve_keyword_map(custom_keyword_map)
        rules = merge_rules(self.rules, extra_rules)
        return self._categorize(transaction, keywords, rules, use_learning)

    def categorize_transactions(self, transactions: List[RawTransaction],
                                custom_keyword_map: Optional[KeywordMap] = None,
                                use_learning: bool = True,
                                extra_rules: Optional[Iterable[CategoryRule]] = None) -> List[CategorizedTransaction]:
        keywords = self.resolve_keyword_map(custom_keyword_map)
        rules = merge_rules(self.rules, extra_rules)

        results = []
        for transaction in transactions:
            outcome = self._categorize(transaction, keywords, rules, use_learning)
            results.append(CategorizedTransaction(
                date=transaction.date,
                merchant=transaction.merchant,
                amount=transaction.amount,
                category=outcome.category,
                type=outcome.type,
            ))

        logger.info(f"Categorized {len(results)} transactions: {self.category_distribution(results)}")
        return results

    def _categorize(self, transaction: RawTransaction,
                    keywords: List[Tuple[Category, List[str]]],
                    rules: Tuple[CategoryRule, ...],
                    use_learning: bool) -> CategorizationResult:
        category, confidence, matched_rule = self._resolve(transaction, keywords, rules, use_learning)
        if use_learning:
            self.learning_store.record(transaction.merchant, category)
        return CategorizationResult(
            category=category,
            confidence=confidence,
            matched_rule=matched_rule,
            type=self.determine_type(transaction),
        )

    def _resolve(self, transaction, keywords, rules, use_learning) -> Tuple[Category, float, str]:
        merchant = transaction.merchant
        merchant_lower = merchant.lower()

        if use_learning:
            learned = self.learning_store.get(merchant)
            if learned is not None:
                return learned, self.LEARNED_CONFIDENCE, 'learned'

        for category, words in keywords:
            if any(word in merchant_lower for word in words):
                return category, self.CUSTOM_CONFIDENCE, 'custom'

        for rule in rules:
            if any(pattern.search(merchant) for pattern in rule.patterns):
                return rule.category, rule.confidence, 'pattern'
            if any(keyword in merchant_lower for keyword in rule.keywords):
                return rule.category, round(rule.confidence * self.KEYWORD_FACTOR, 4), 'keyword'

        heuristic = self._apply_heuristics(merchant_lower, transaction.amount)
        if heuristic is not None:
            return heuristic, self.HEURISTIC_CONFIDENCE, 'heuristic'

        if use_learning:
            match = self.learning_store.nearest(merchant, self.config.similarity_threshold)
            if match is not None:
                known, category, score = match
                logger.debug(f"Fuzzy match: {merchant!r} ~ {known!r} ({score:.2f})")
                return category, self.FUZZY_CONFIDENCE, 'fuzzy'

        return Category.OTHER, self.DEFAULT_CONFIDENCE, 'default'

    def _apply_heuristics(self, merchant_lower: str, amount) -> Optional[Category]:
        for patterns, category in DOMAIN_HEURISTICS:
            if any(pattern.search(merchant_lower) for pattern in patterns):
                return category
        if abs(amount) < SMALL_AMOUNT_LIMIT:
            return Category.FEES
        if abs(amount) > LARGE_AMOUNT_LIMIT:
            return Category.BANKING
        return None

    def determine_type(self, transaction: RawTransaction) -> TransactionType:
        merchant_lower = transaction.merchant.lower()
        if any(keyword in merchant_lower for keyword in CREDIT_KEYWORDS):
            return TransactionType.CREDIT
        if transaction.amount > 0:
            return TransactionType.CREDIT
        return TransactionType.DEBIT

    @staticmethod
    def category_distribution(transactions: List[CategorizedTransaction]) -> Dict[str, int]:
        """Counts for every category, zeros included"""
        counts = Counter(transaction.category for transaction in transactions)
        return {category.value: counts.get(category, 0) for category in Category}
