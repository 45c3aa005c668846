"""Transaction categorization: rule table, learning store and categorizer"""

from .categorizer import Categorizer
from .learning_store import LearningStore, jaccard_similarity
from .rules import BASE_CATEGORY_RULES, build_rule, merge_rules

__all__ = [
    'Categorizer',
    'LearningStore',
    'jaccard_similarity',
    'BASE_CATEGORY_RULES',
    'build_rule',
    'merge_rules',
]
