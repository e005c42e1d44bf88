"""View descriptor and raw document-database response models."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ViewQuery(BaseModel):
    """A named view plus the options passed to the database when querying it.

    ``view`` is ``"design/view"`` (or the full ``"_design/design/_view/view"``
    path); ``options`` are view query parameters such as ``key``,
    ``startkey``, ``endkey``, ``descending`` or ``include_docs``.
    """

    model_config = ConfigDict(frozen=True)

    view: str = Field(min_length=1, description="View name, e.g. 'articles/by_author'")
    options: dict[str, Any] = Field(default_factory=dict, description="View query options")

    @classmethod
    def coerce(cls, value: ViewQuery | Mapping[str, Any] | None) -> ViewQuery | None:
        """Build a descriptor from a mapping, pass an instance through, keep ``None``."""
        if not value:
            return None
        if isinstance(value, ViewQuery):
            return value
        return cls.model_validate(dict(value))

    def merged(self, overrides: ViewQuery | Mapping[str, Any] | None) -> ViewQuery:
        """Return a new descriptor with ``overrides`` applied on top of this one.

        The override's ``view`` replaces ours; its ``options`` are merged
        shallowly over ours, override keys winning. ``self`` is left untouched.
        """
        if not overrides:
            return self
        patch = ViewOverrides.coerce(overrides)
        return ViewQuery(view=patch.view or self.view, options={**self.options, **(patch.options or {})})


class ViewOverrides(BaseModel):
    """Per-call changes to a view descriptor; every field is optional."""

    view: str | None = Field(default=None, description="View replacing the bound one")
    options: dict[str, Any] | None = Field(default=None, description="Options merged over the bound ones")

    @classmethod
    def coerce(cls, value: ViewQuery | Mapping[str, Any]) -> ViewOverrides:
        if isinstance(value, ViewQuery):
            return cls(view=value.view, options=value.options)
        return cls.model_validate(dict(value))


def resolve_view_query(
    stored: ViewQuery | None,
    overrides: ViewQuery | Mapping[str, Any] | None,
) -> ViewQuery | None:
    """Compute the descriptor for one call from the stored one and per-call overrides.

    Overrides only adjust a bound view; without one the result is ``None``
    and the caller scans all documents.
    """
    if stored is None:
        return None
    return stored.merged(overrides)


class ViewRow(BaseModel):
    """One row of an ``_all_docs`` or view response."""

    id: str | None = Field(default=None, description="Id of the emitting document")
    key: Any = Field(default=None, description="Row key")
    value: Any = Field(default=None, description="Row value")
    doc: dict[str, Any] | None = Field(default=None, description="Full document when include_docs is set")
    error: str | None = Field(default=None, description="Per-row error, e.g. 'not_found' for missing keys")


class ViewResponse(BaseModel):
    """Raw response of an ``_all_docs`` or view request."""

    total_rows: int | None = Field(default=None, description="Number of rows in the whole index")
    offset: int | None = Field(default=None, description="Offset of the first returned row")
    rows: list[ViewRow] = Field(description="Returned rows, in index order")


class BulkResult(BaseModel):
    """Outcome of writing one document in a bulk insert."""

    id: str | None = Field(default=None, description="Document id")
    rev: str | None = Field(default=None, description="New revision when the write succeeded")
    ok: bool = Field(default=False, description="Whether the document was written")
    error: str | None = Field(default=None, description="Error code, e.g. 'conflict'")
    reason: str | None = Field(default=None, description="Human readable error reason")
