"""Where-Clause Models

A parsed where-clause is a Predicate: the conjunction of zero or more
comparisons over the three queryable fields, or the universal predicate.
"""

from enum import Enum
from typing import List, Literal, Union

from pydantic import BaseModel, Field


class YearOperator(str, Enum):
    """Integer comparison operators accepted for the year field."""
    EQ = "="
    LT = "<"
    GT = ">"
    LE = "<="
    GE = ">="


class CategoryEquals(BaseModel):
    """``type = '<value>'``, case-insensitive."""
    field: Literal["category"] = "category"
    value: str
    
    model_config = {"frozen": True}
    
    def describe(self) -> str:
        return f"type = '{self.value}'"


class YearComparison(BaseModel):
    """``year <op> <integer>``."""
    field: Literal["year"] = "year"
    operator: YearOperator
    value: int
    
    model_config = {"frozen": True}
    
    def describe(self) -> str:
        return f"year {self.operator.value} {self.value}"


class ChangeContains(BaseModel):
    """``change like '%<value>%'``, case-insensitive substring containment."""
    field: Literal["change"] = "change"
    value: str
    
    model_config = {"frozen": True}
    
    def describe(self) -> str:
        return f"change like '%{self.value}%'"


Comparison = Union[CategoryEquals, YearComparison, ChangeContains]


class Predicate(BaseModel):
    """Conjunction of comparisons; ``universal`` matches everything outright."""
    universal: bool = Field(False, description="Set by the 1=1 sentinel")
    comparisons: List[Comparison] = Field(default_factory=list)
    
    model_config = {"frozen": True}
    
    @property
    def matches_everything(self) -> bool:
        return self.universal or not self.comparisons
    
    def describe(self) -> str:
        """Canonical clause text of the predicate."""
        if self.matches_everything:
            return "1=1"
        return " AND ".join(comparison.describe() for comparison in self.comparisons)


class QueryRequest(BaseModel):
    """Query parameters as a FeatureServer client sends them."""
    where: str = Field("", description="Restricted where-clause; empty matches everything")
    out_fields: str = Field("*", description="Comma separated output fields, '*' for all")
    f: str = Field("json", description="Response format requested by the client")
