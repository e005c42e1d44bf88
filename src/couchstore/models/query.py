"""In-memory query options."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator


class SortSpec(BaseModel):
    """Sort on one record attribute."""

    attribute: str = Field(description="Record field to sort on")
    descending: bool = Field(default=False, description="Sort in descending order")


class QueryOptions(BaseModel):
    """Sorting and paging applied by the query engine after filtering."""

    start: int = Field(default=0, ge=0, description="Index of the first match to return")
    count: int | None = Field(default=None, ge=0, description="Maximum matches to return (None or 0 = all)")
    sort: list[SortSpec] = Field(default_factory=list, description="Sort keys, most significant first")

    @field_validator("sort", mode="before")
    @classmethod
    def _parse_sort(cls, v: Any) -> Any:
        """Accept ``"field"`` / ``"-field"`` shorthands alongside full sort specs."""
        if v is None:
            return []
        if isinstance(v, (str, dict, SortSpec)):
            v = [v]
        parsed: list[Any] = []
        for item in v:
            if isinstance(item, str):
                descending = item.startswith("-")
                parsed.append({"attribute": item.lstrip("-"), "descending": descending})
            else:
                parsed.append(item)
        return parsed
