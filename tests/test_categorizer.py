"""Tests for the layered transaction categorizer and its learning store."""

from decimal import Decimal

import pytest

from bankparse.categorization import (
    BASE_CATEGORY_RULES,
    Categorizer,
    LearningStore,
    build_rule,
    jaccard_similarity,
    merge_rules,
)
from bankparse.models.core import Category, RawTransaction, TransactionType


class TestCategorizer:
    """Test cases for Categorizer"""

    def setup_method(self):
        """Set up test fixtures"""
        self.categorizer = Categorizer()

    def create_transaction(self, merchant: str, amount: str = "-50.00") -> RawTransaction:
        """Helper to create test transactions"""
        return RawTransaction(date="2024-01-15", merchant=merchant, amount=Decimal(amount))

    def categorize(self, merchant, amount="-50.00", **kwargs):
        kwargs.setdefault('use_learning', False)
        return self.categorizer.categorize(self.create_transaction(merchant, amount), **kwargs)

    def test_branch_withdrawal_is_atm(self):
        """Test that branch withdrawals are categorized as ATM"""
        result = self.categorize("Withdrawal Made In A Branch Bank Service Fee Store", "-200.00")

        assert result.category == Category.ATM
        assert result.confidence == 0.95
        assert result.matched_rule == 'pattern'

    @pytest.mark.parametrize("merchant,expected", [
        ("STARBUCKS #123", Category.FOOD),
        ("Check #1234", Category.CHECK),
        ("NETFLIX.COM", Category.SUBSCRIPTIONS),
        ("Overdraft Penalty", Category.FEES),
        ("Payroll Direct Deposit", Category.BANKING),
        ("Walmart Supercenter", Category.RETAIL),
        ("Recurring Payment", Category.SUBSCRIPTIONS),
    ])
    def test_rule_table(self, merchant, expected):
        """Test categorization by the built-in rule table"""
        assert self.categorize(merchant).category == expected

    def test_keyword_match_is_discounted(self):
        """Test that plain keyword matches get lower confidence than rules"""
        result = self.categorize("Amazonia Books")

        assert result.category == Category.RETAIL
        assert result.matched_rule == 'keyword'
        assert result.confidence == pytest.approx(0.72)

    def test_custom_keyword_map(self):
        """Test categorization with a custom keyword map"""
        result = self.categorize("Patreon Creator", custom_keyword_map={'food': ['patreon']})

        assert result.category == Category.FOOD
        assert result.confidence == 0.9
        assert result.matched_rule == 'custom'

    def test_invalid_keyword_map(self):
        """Test rejection of unknown categories in a keyword map"""
        with pytest.raises(ValueError):
            self.categorize("Anything", custom_keyword_map={'Groceries': ['milk']})

    def test_domain_heuristics(self):
        """Test categorization of merchants by their web domain"""
        kitchen = self.categorize("Joe's Kitchen")
        assert kitchen.category == Category.FOOD
        assert kitchen.matched_rule == 'heuristic'
        assert kitchen.confidence == 0.7

        assert self.categorize("Zyx Qwv", "-2.00").category == Category.FEES
        assert self.categorize("Zyx Qwv", "-1500.00").category == Category.BANKING
        assert self.categorize("Mortgage Servicing Co").category == Category.BANKING

    def test_default_other(self):
        """Test that unmatched merchants fall back to Other"""
        result = self.categorize("Zyx Qwv")

        assert result.category == Category.OTHER
        assert result.confidence == 0.5
        assert result.matched_rule == 'default'

    def test_learning(self):
        """Test that categorized merchants are remembered"""
        first = self.categorize("Acme Widgets", custom_keyword_map={'Banking': ['acme']}, use_learning=True)
        second = self.categorize("ACME WIDGETS", use_learning=True)

        assert first.category == Category.BANKING
        assert second.category == Category.BANKING
        assert second.confidence == 0.95
        assert second.matched_rule == 'learned'

    def test_no_learning_leaves_store_untouched(self):
        """Test that disabled learning does not write to the store"""
        self.categorize("Acme Widgets")
        assert len(self.categorizer.learning_store) == 0

    def test_fuzzy_match_against_learned_merchants(self):
        """Test fuzzy lookup of similar learned merchants"""
        self.categorizer.learning_store.record("zyx qwv corp", Category.RETAIL)
        result = self.categorize("Zyx Qwv Corp Ltd", use_learning=True)

        assert result.category == Category.RETAIL
        assert result.confidence == 0.6
        assert result.matched_rule == 'fuzzy'

    def test_extra_rules_do_not_mutate_base_table(self):
        """Test that extra rules leave the built-in table unchanged"""
        rule = build_rule('Fees', [r'\bzyx\b'], [], priority=10, confidence=0.99)
        result = self.categorize("Zyx Qwv", extra_rules=[rule])

        assert result.category == Category.FEES
        assert result.confidence == 0.99
        assert len(BASE_CATEGORY_RULES) == 7
        assert self.categorize("Zyx Qwv").category == Category.OTHER

    def test_determine_type(self):
        """Test debit/credit classification from amount and merchant"""
        assert self.categorizer.determine_type(
            self.create_transaction("Payroll Deposit", "-10.00")) == TransactionType.CREDIT
        assert self.categorizer.determine_type(
            self.create_transaction("Coffee", "-4.50")) == TransactionType.DEBIT
        assert self.categorizer.determine_type(
            self.create_transaction("Coffee", "4.50")) == TransactionType.CREDIT

    def test_categorize_transactions_and_distribution(self):
        """Test batch categorization and category counts"""
        transactions = [
            self.create_transaction("STARBUCKS #123", "-5.75"),
            self.create_transaction("Check #1234", "-100.00"),
            self.create_transaction("Zyx Qwv"),
        ]
        results = self.categorizer.categorize_transactions(transactions, use_learning=False)
        distribution = Categorizer.category_distribution(results)

        assert [r.category for r in results] == [Category.FOOD, Category.CHECK, Category.OTHER]
        assert set(distribution) == {category.value for category in Category}
        assert distribution['Food'] == 1
        assert distribution['Retail'] == 0
        assert sum(distribution.values()) == 3


class TestRules:
    """Rule table ordering"""

    def test_merge_rules_is_stable_by_priority(self):
        """Test rule merge ordering by priority"""
        merged = merge_rules(BASE_CATEGORY_RULES)
        assert [rule.category for rule in merged] == [
            Category.ATM, Category.CHECK, Category.BANKING, Category.FEES,
            Category.FOOD, Category.SUBSCRIPTIONS, Category.RETAIL,
        ]

    def test_extra_rule_follows_base_rules_of_equal_priority(self):
        """Test that extra rules come after base rules of equal priority"""
        extra = build_rule(Category.OTHER, [r'zyx'], [], priority=9, confidence=0.5)
        merged = merge_rules(BASE_CATEGORY_RULES, [extra])
        assert merged[2] is extra


class TestLearningStore:
    """Test cases for LearningStore"""

    def test_eviction(self):
        """Test eviction of the oldest merchant when the store is full"""
        store = LearningStore(capacity=5, eviction=2)
        for i in range(6):
            store.record(f"merchant {i}", Category.OTHER)

        assert len(store) == 4
        assert "merchant 0" not in store
        assert "merchant 1" not in store
        assert "MERCHANT 5" in store

    def test_export_and_load(self):
        """Test exporting and reloading learned merchants"""
        store = LearningStore()
        store.record(" Coffee Shop ", Category.FOOD)
        snapshot = store.export()

        assert snapshot == {"coffee shop": "Food"}

        other = LearningStore()
        other.load(snapshot)
        assert other.get("COFFEE SHOP") == Category.FOOD

        with pytest.raises(ValueError):
            other.load({"x": "Groceries"})

    def test_nearest_prefers_earlier_entry_on_tie(self):
        """Test that the earlier learned merchant wins a similarity tie"""
        store = LearningStore()
        store.record("alpha beta", Category.FOOD)
        store.record("alpha gamma", Category.RETAIL)

        known, category, score = store.nearest("alpha", 0.5)
        assert known == "alpha beta"
        assert category == Category.FOOD
        assert score == 0.5
        assert store.nearest("delta", 0.5) is None

    def test_jaccard_similarity(self):
        """Test token Jaccard similarity"""
        assert jaccard_similarity("a b c", "a b c") == 1.0
        assert jaccard_similarity("a b", "c d") == 0.0
        assert jaccard_similarity("", "") == 0.0
        assert jaccard_similarity("a b c", "a b c d") == 0.75
