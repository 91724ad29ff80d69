"""Where-Clause Parser

Scans a clause for three independent atom rules and conjoins whatever they
find. Anything else in the clause is ignored, so malformed input only
loosens the filter.

Accepted atoms (case-insensitive, whitespace-tolerant):
    type = '<value>'              first occurrence only
    year <op> <integer>           every occurrence, op in >=, <=, =, <, >
    change like '%<value>%'       first occurrence only, percent signs optional
A clause starting with ``1=1`` is universal and nothing else is evaluated.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, List, Optional

from .clause_models import (
    CategoryEquals, ChangeContains, Comparison, Predicate, YearComparison, YearOperator
)

logger = logging.getLogger(__name__)

_UNIVERSAL = re.compile(r"^1\s*=\s*1\b")


@dataclass(frozen=True)
class AtomRule:
    """One independently matched clause atom."""
    name: str
    pattern: re.Pattern
    build: Callable[[re.Match], Comparison]
    repeatable: bool = False
    
    def scan(self, clause: str) -> List[Comparison]:
        if self.repeatable:
            return [self.build(match) for match in self.pattern.finditer(clause)]
        match = self.pattern.search(clause)
        return [self.build(match)] if match else []


ATOM_RULES = (
    AtomRule(
        name="category",
        pattern=re.compile(r"type\s*=\s*'([^']+)'"),
        build=lambda m: CategoryEquals(value=m.group(1)),
    ),
    AtomRule(
        name="year",
        pattern=re.compile(r"year\s*(>=|<=|=|<|>)\s*(\d+)"),
        build=lambda m: YearComparison(operator=YearOperator(m.group(1)), value=int(m.group(2))),
        repeatable=True,
    ),
    AtomRule(
        name="change",
        pattern=re.compile(r"change\s+like\s+'%?(.+?)%?'"),
        build=lambda m: ChangeContains(value=m.group(1)),
    ),
)


def normalize_clause(clause: Optional[str]) -> str:
    """The single representation every rule is matched against."""
    return (clause or "").strip().lower()


class ClauseParser:
    """Total parser from clause text to Predicate; it never raises on bad input."""
    
    def __init__(self, rules=ATOM_RULES):
        self.rules = tuple(rules)
    
    def parse(self, clause: Optional[str]) -> Predicate:
        normalized = normalize_clause(clause)
        
        if _UNIVERSAL.match(normalized):
            return Predicate(universal=True)
        
        comparisons: List[Comparison] = []
        for rule in self.rules:
            comparisons.extend(rule.scan(normalized))
        
        if normalized and not comparisons:
            logger.info(f"No recognised comparisons in clause {clause!r}; matching all features")
        
        predicate = Predicate(comparisons=comparisons)
        logger.debug(f"Parsed clause {clause!r} as {predicate.describe()!r}")
        return predicate
