"""Bounded in-memory merchant to category memory."""

import logging
from typing import Dict, Iterator, Optional, Tuple

from ..models.core import Category


logger = logging.getLogger(__name__)


def jaccard_similarity(first: str, second: str) -> float:
    """Word-set Jaccard similarity of two strings"""
    words1 = set(first.split())
    words2 = set(second.split())
    union = words1 | words2
    if not union:
        return 0.0
    return len(words1 & words2) / len(union)


class LearningStore:
    """Insertion-ordered map of lower-cased merchant to category.

    When a new entry pushes the store past `capacity`, the `eviction` oldest
    entries are dropped. Nothing is persisted; `export` and `load` give an
    explicit snapshot for callers that want one.
    """

    def __init__(self, capacity: int = 10000, eviction: int = 1000):
        self.capacity = capacity
        self.eviction = eviction
        self._entries: Dict[str, Category] = {}

    @staticmethod
    def key(merchant: str) -> str:
        return str(merchant).strip().lower()

    def get(self, merchant: str) -> Optional[Category]:
        return self._entries.get(self.key(merchant))

    def record(self, merchant: str, category: Category) -> None:
        key = self.key(merchant)
        if not key:
            return
        self._entries[key] = category

        if len(self._entries) > self.capacity:
            for old_key in list(self._entries)[:self.eviction]:
                del self._entries[old_key]
            logger.debug(f"Learning store evicted {self.eviction} oldest entries")

    def nearest(self, merchant: str, threshold: float) -> Optional[Tuple[str, Category, float]]:
        """Most similar known merchant, if its similarity reaches the threshold"""
        target = self.key(merchant)
        best = None
        best_score = 0.0
        for known, category in self._entries.items():
            score = jaccard_similarity(target, known)
            if score > best_score:
                best = (known, category, score)
                best_score = score

        if best is not None and best_score >= threshold:
            return best
        return None

    def export(self) -> Dict[str, str]:
        return {merchant: category.value for merchant, category in self._entries.items()}

    def load(self, data: Dict[str, str]) -> None:
        """Replace the contents with a snapshot produced by export()"""
        self._entries.clear()
        for merchant, category in data.items():
            self.record(merchant, Category.from_name(category))

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, merchant: str) -> bool:
        return self.key(merchant) in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)
