"""Front matter codec: the YAML block at the top of every content file.

Serialization is sparse: empty fields are left out of the block, so on
read an absent key and an explicitly empty value are the same thing.
All keys go through the site's FrontMatterKeys mapping.
"""

from __future__ import annotations

import contextlib
from datetime import UTC, datetime

import yaml
from pydantic import BaseModel, Field
from sitepress.config import FrontMatterKeys
from sitepress.content.models import ContentRecord, ParentRef
from sitepress.errors import ItemParseError

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LAYOUT_POST = "post"
LAYOUT_PAGE = "page"

# Jekyll writes dates like "2019-03-01 10:00:00 +0100"
_DATE_FORMATS = (
    DATE_FORMAT,
    "%Y-%m-%d %H:%M:%S %z",
    "%Y-%m-%d %H:%M %z",
    "%Y-%m-%d %H:%M",
)


class FrontMatter(BaseModel):
    """Structured metadata bound 1:1 to a file's front matter block."""

    id: str = ""
    title: str = ""
    date: str = ""
    layout: str = LAYOUT_POST
    tags: list[str] = Field(default_factory=list)
    parent_id: str = ""
    permalink: str = ""

    @classmethod
    def from_record(cls, record: ContentRecord) -> FrontMatter:
        """Build front matter from an editor record.

        Duplicate category names collapse to a single tag.
        """
        published = record.effective_date
        return cls(
            id=record.id,
            title=record.title,
            date=published.strftime(DATE_FORMAT) if published is not None else "",
            layout=LAYOUT_PAGE if record.is_page else LAYOUT_POST,
            tags=list(dict.fromkeys(record.categories)),
            parent_id=record.page_parent.id if record.is_page else "",
        )

    def apply_to(self, record: ContentRecord) -> None:
        """Copy these values onto a record. An unparsable date is ignored."""
        record.id = self.id
        record.title = self.title
        record.categories = list(self.tags)
        published = parse_date(self.date)
        if published is not None:
            record.date_published = published
            record.date_published_override = published
        record.is_page = self.layout == LAYOUT_PAGE
        if record.is_page or self.parent_id:
            record.page_parent = ParentRef(id=self.parent_id)


def parse_date(value: str) -> datetime | None:
    """Parse a front matter date, returning naive UTC or None."""
    value = value.strip()
    if not value:
        return None

    parsed: datetime | None = None
    for fmt in _DATE_FORMATS:
        with contextlib.suppress(ValueError):
            parsed = datetime.strptime(value, fmt)
            break
    if parsed is None:
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(UTC).replace(tzinfo=None)
    return parsed


def serialize_front_matter(front_matter: FrontMatter, keys: FrontMatterKeys) -> str:
    """Render front matter as YAML under the given key mapping.

    Returns an empty string when every field is empty; otherwise the
    YAML text ends with a newline.
    """
    data: dict[str, str | list[str]] = {}
    if front_matter.id:
        data[keys.id] = front_matter.id
    if front_matter.title:
        data[keys.title] = front_matter.title
    if front_matter.date:
        data[keys.date] = front_matter.date
    if front_matter.layout:
        data[keys.layout] = front_matter.layout
    if front_matter.tags:
        data[keys.tags] = list(front_matter.tags)
    if front_matter.parent_id:
        data[keys.parent_id] = front_matter.parent_id
    if front_matter.permalink:
        data[keys.permalink] = front_matter.permalink

    if not data:
        return ""
    return yaml.safe_dump(
        data,
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
        width=float("inf"),
    )


def deserialize_front_matter(text: str, keys: FrontMatterKeys) -> FrontMatter:
    """Parse a YAML front matter block under the given key mapping.

    Scalars are read as plain strings (no implicit int/date/bool typing),
    so ids and dates come back exactly as written.

    Raises:
        ItemParseError: If the block is not valid YAML or not a mapping.
    """
    try:
        data = yaml.load(text, Loader=yaml.BaseLoader)
    except yaml.YAMLError as exc:
        raise ItemParseError(f"Front matter is not valid YAML: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ItemParseError("Front matter must be a mapping of keys to values.")

    front_matter = FrontMatter()
    for field in ("id", "title", "date", "layout", "parent_id", "permalink"):
        value = data.get(getattr(keys, field))
        if isinstance(value, str):
            setattr(front_matter, field, value)

    tags = data.get(keys.tags)
    if isinstance(tags, list):
        front_matter.tags = [tag for tag in tags if isinstance(tag, str)]
    elif isinstance(tags, str):
        front_matter.tags = tags.split()

    return front_matter
