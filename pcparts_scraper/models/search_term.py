from typing import List, Optional

from pydantic import BaseModel, Field


class SearchTerm(BaseModel):
    """A model to search for, with the query strings used on the retail site."""

    model: str
    category: str
    search_terms: List[str] = Field(default_factory=list, alias="searchTerms")
    manufacturer: Optional[str] = None
    priority: int = 2
    tier: Optional[str] = None

    class Config:
        populate_by_name = True

    @property
    def primary_term(self) -> str:
        return self.search_terms[0] if self.search_terms else self.model
