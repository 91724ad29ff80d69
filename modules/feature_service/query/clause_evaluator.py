"""Where-Clause Evaluator

Checks a parsed Predicate against one feature. Comparisons are pure, so the
order they are checked in does not matter.
"""

import operator
from typing import Callable, Dict, Iterable, List

from ..feature_store import Feature
from .clause_models import (
    CategoryEquals, ChangeContains, Comparison, Predicate, YearComparison, YearOperator
)

_YEAR_OPERATORS: Dict[YearOperator, Callable[[int, int], bool]] = {
    YearOperator.EQ: operator.eq,
    YearOperator.LT: operator.lt,
    YearOperator.GT: operator.gt,
    YearOperator.LE: operator.le,
    YearOperator.GE: operator.ge,
}


class ClauseEvaluator:
    """Evaluates predicates against features."""
    
    def evaluate(self, predicate: Predicate, feature: Feature) -> bool:
        """True iff every comparison holds (empty or universal predicate: always)."""
        if predicate.matches_everything:
            return True
        return all(self._holds(comparison, feature) for comparison in predicate.comparisons)
    
    def filter(self, predicate: Predicate, features: Iterable[Feature]) -> List[Feature]:
        """Matching features, order preserved."""
        return [feature for feature in features if self.evaluate(predicate, feature)]
    
    def _holds(self, comparison: Comparison, feature: Feature) -> bool:
        if isinstance(comparison, CategoryEquals):
            return feature.category.lower() == comparison.value.lower()
        if isinstance(comparison, YearComparison):
            if feature.year is None:
                return False
            return _YEAR_OPERATORS[comparison.operator](feature.year, comparison.value)
        if isinstance(comparison, ChangeContains):
            text = feature.change_text
            return text is not None and comparison.value.lower() in text.lower()
        raise TypeError(f"Unknown comparison: {comparison!r}")
