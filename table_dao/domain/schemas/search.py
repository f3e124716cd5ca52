"""Pydantic schemas describing one search request and its result."""

from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

from table_dao.domain.entities import Entity

E = TypeVar("E", bound=Entity)


class OrderDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class RequirementRangeValue(BaseModel):
    """Inclusive range; a missing bound leaves that side open."""
    min_value: Optional[Any] = None
    max_value: Optional[Any] = None

    model_config = {"frozen": True}


class Requirement(BaseModel):
    """A single search predicate, AND-ed with its siblings."""
    type: str
    value: Any = None
    negated: bool = False


class SearchFilter(BaseModel):
    order: Dict[str, OrderDirection] = Field(default_factory=dict)
    requirements: List[Requirement] = Field(default_factory=list)
    page_size: int = Field(default=0, ge=0)
    page_number: int = Field(default=1, ge=1)

    def add_requirement(self, requirement: Requirement) -> None:
        self.requirements.append(requirement)


class SearchResult(BaseModel, Generic[E]):
    search_filter: SearchFilter
    entities: Dict[int, E] = Field(default_factory=dict)
    total_records: int = 0
    page_number: int = 1
    page_size: int = 0

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 1 if self.total_records else 0
        return (self.total_records + self.page_size - 1) // self.page_size
