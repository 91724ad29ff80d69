"""Where-clause querying for the feature service.

Components:
- Predicate, CategoryEquals, YearComparison, ChangeContains: parsed clause
- QueryRequest / QueryResult: query input and output
- ClauseParser: lenient clause text -> Predicate
- ClauseEvaluator: Predicate x Feature -> bool
- QueryEngine: cache-backed orchestration with single-flight refresh
"""

from .clause_models import (
    Predicate, Comparison, CategoryEquals, YearComparison, ChangeContains,
    YearOperator, QueryRequest,
)
from .clause_parser import ClauseParser, AtomRule, ATOM_RULES, normalize_clause
from .clause_evaluator import ClauseEvaluator
from .query_engine import QueryEngine, QueryResult

__all__ = [
    'Predicate', 'Comparison', 'CategoryEquals', 'YearComparison', 'ChangeContains',
    'YearOperator', 'QueryRequest', 'ClauseParser', 'AtomRule', 'ATOM_RULES',
    'normalize_clause', 'ClauseEvaluator', 'QueryEngine', 'QueryResult',
]
