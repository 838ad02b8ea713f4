"""Content domain models: pure Pydantic v2 data types.

ContentRecord is the inbound record supplied by the editor for every
create/edit operation. It is wrapped in a Post or Page for the duration
of one operation; the file on disk is the only durable representation.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field, field_validator


class ParentRef(BaseModel):
    """Reference to a page's parent: id plus display name."""

    id: str = ""
    name: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.id


class ContentRecord(BaseModel):
    """A post or page as supplied by (and returned to) the editor."""

    model_config = {"validate_assignment": True}

    id: str = ""
    title: str = ""
    contents: str = ""
    categories: list[str] = Field(default_factory=list)
    date_published: datetime | None = None
    date_published_override: datetime | None = None
    slug: str = ""
    is_page: bool = False
    page_parent: ParentRef = Field(default_factory=ParentRef)

    @field_validator("date_published", "date_published_override")
    @classmethod
    def _naive_utc(cls, value: datetime | None) -> datetime | None:
        """Store dates as naive UTC so on-disk and editor dates compare."""
        if value is not None and value.tzinfo is not None:
            return value.astimezone(UTC).replace(tzinfo=None)
        return value

    @property
    def effective_date(self) -> datetime | None:
        """The override date when set, else the publish date."""
        if self.date_published_override is not None:
            return self.date_published_override
        return self.date_published


class PageInfo(BaseModel):
    """Summary of a page for page lists."""

    id: str
    title: str = ""
    date_published: datetime | None = None
    parent_id: str = ""
