"""Shared identity, slug and path logic for posts and pages.

The directory is the source of truth: an item is found by scanning its
directory and parsing every file until one carries the same id. There
is no index to go stale, at the cost of an O(n) scan per lookup.
"""

from __future__ import annotations

import logging
import re
import uuid
from abc import ABC, abstractmethod
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path
from typing import TypeVar

from sitepress.config import SiteConfig
from sitepress.content.frontmatter import (
    FrontMatter,
    deserialize_front_matter,
    serialize_front_matter,
)
from sitepress.content.models import ContentRecord
from sitepress.errors import ItemParseError

logger = logging.getLogger(__name__)

PUBLISH_FILE_EXTENSION = ".html"
WEB_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9- ]")
SLUG_PROBE_LIMIT = 1000

# "---\n<yaml>---\n\n<body>"
_ITEM_PARSE_RE = re.compile(r"\A---\r?\n((?:.*\r?\n)*?)---\r?\n\r?\n([\s\S]*)\Z")

ItemT = TypeVar("ItemT", bound="ContentItem")


def sanitize_slug(text: str) -> str:
    """``"Hello World!"`` → ``"hello-world"``."""
    return WEB_UNSAFE_CHARS.sub("", text.lower()).replace(" ", "-")


def iter_item_files(directory: Path) -> list[Path]:
    """Publishable files in a directory, sorted by name."""
    if not directory.is_dir():
        return []
    return sorted(
        path for path in directory.glob(f"*{PUBLISH_FILE_EXTENSION}") if path.is_file()
    )


def load_items(
    item_cls: type[ItemT],
    config: SiteConfig,
    directory: Path,
    *,
    is_draft: bool = False,
) -> Iterator[ItemT]:
    """Yield every parsable item in a directory.

    Files that are not valid items (foreign HTML, missing id, bad YAML)
    are skipped so one broken file does not hide the rest.
    """
    for path in iter_item_files(directory):
        try:
            item = item_cls.from_file(path, config)
        except (ItemParseError, OSError, UnicodeDecodeError) as exc:
            logger.debug("Skipping %s: %s", path, exc)
            continue
        item.is_draft = is_draft
        yield item


class ContentItem(ABC):
    """An addressable post or page backed by one file on disk."""

    def __init__(
        self,
        config: SiteConfig,
        record: ContentRecord | None = None,
        *,
        is_draft: bool = False,
    ) -> None:
        self.config = config
        self.record = record if record is not None else ContentRecord()
        self.is_draft = is_draft
        # Confirmed safe slug: free on disk, or already this item's file
        self._safe_slug = ""
        self._file_path_by_id: Path | None = None

    @classmethod
    def from_file(cls: type[ItemT], path: Path, config: SiteConfig) -> ItemT:
        """Load an item from a published file."""
        item = cls(config)
        item.load_from_file(path)
        return item

    # ── Identity ─────────────────────────────────────────────────

    @property
    def id(self) -> str:
        return self.record.id

    @id.setter
    def id(self, value: str) -> None:
        self.record.id = value

    @property
    def title(self) -> str:
        return self.record.title

    @property
    def content(self) -> str:
        return self.record.contents

    @property
    def date_published(self) -> datetime | None:
        return self.record.effective_date

    @date_published.setter
    def date_published(self, value: datetime) -> None:
        self.record.date_published = value
        self.record.date_published_override = value

    @property
    def slug(self) -> str:
        return self._safe_slug

    @slug.setter
    def slug(self, value: str) -> None:
        self._safe_slug = value
        self.record.slug = value

    @property
    def front_matter(self) -> FrontMatter:
        return FrontMatter.from_record(self.record)

    def ensure_id(self) -> str:
        """Return the item's id, generating one if it has none."""
        if not self.id:
            self.id = str(uuid.uuid4())
        return self.id

    def ensure_date_published(self) -> datetime:
        """Return the publish date, setting it to now if unset."""
        if self.date_published is None:
            self.date_published = datetime.now(UTC).replace(tzinfo=None, microsecond=0)
        return self.date_published

    def ensure_safe_slug(self) -> str:
        """Return the confirmed slug, allocating a safe one if needed."""
        if not self._safe_slug:
            self.slug = self.find_new_slug(self.record.slug, safe=True)
        return self.slug

    def find_new_slug(self, preferred: str = "", safe: bool = True) -> str:
        """Generate a slug from ``preferred`` (default: the title).

        In safe mode the slug is probed against the file system: ``slug``,
        ``slug-1``, ``slug-2``... The first candidate whose file does not
        exist wins. If every probe collides, the sanitized id is used.
        """
        base = sanitize_slug(preferred or self.title)
        if not base:
            return sanitize_slug(self.ensure_id())
        if not safe:
            return base

        for i in range(SLUG_PROBE_LIMIT):
            candidate = base if i == 0 else f"{base}-{i}"
            if not self.file_path_for_slug(candidate).exists():
                return candidate

        logger.warning("No free slug for %r after %d tries, using id", base, SLUG_PROBE_LIMIT)
        return sanitize_slug(self.ensure_id())

    # ── Paths ────────────────────────────────────────────────────

    @property
    @abstractmethod
    def item_dir(self) -> Path:
        """Directory this item lives in."""

    @property
    @abstractmethod
    def site_path(self) -> str:
        """Path of the published item on the site, e.g. ``/about/``."""

    @abstractmethod
    def file_name_for_slug(self, slug: str) -> str:
        """On-disk file name for the provided slug."""

    @abstractmethod
    def slug_from_file_name(self, file_name: str) -> str:
        """Recover the slug from a published file name."""

    def file_path_for_slug(self, slug: str) -> Path:
        return self.item_dir / self.file_name_for_slug(slug)

    @property
    def file_path_by_slug(self) -> Path:
        return self.file_path_for_slug(self.slug)

    @property
    def file_path_by_id(self) -> Path | None:
        """Path of the on-disk file carrying this item's id.

        None means the item has not been published yet. A found path is
        cached on this instance.
        """
        if self._file_path_by_id is None:
            self._file_path_by_id = self._find_file_by_id()
        return self._file_path_by_id

    @property
    def disk_slug(self) -> str | None:
        """Slug of the file currently on disk for this id."""
        path = self.file_path_by_id
        return None if path is None else self.slug_from_file_name(path.name)

    def _find_file_by_id(self) -> Path | None:
        if not self.id:
            return None
        for item in load_items(type(self), self.config, self.item_dir):
            if item.id == self.id:
                return item._file_path_by_id
        return None

    # ── Serialization ────────────────────────────────────────────

    def load_from_file(self, path: Path) -> None:
        """Load this item from a published file.

        Raises:
            ItemParseError: If the file has no front matter block or no id.
        """
        text = path.read_text(encoding="utf-8")
        match = _ITEM_PARSE_RE.match(text)
        if match is None:
            raise ItemParseError(
                f"{path.name} does not start with a front matter block followed by a blank line."
            )

        front_matter = deserialize_front_matter(match.group(1), self.config.front_matter_keys)
        record = ContentRecord()
        front_matter.apply_to(record)
        if not record.id:
            raise ItemParseError(
                f"{path.name} has no '{self.config.front_matter_keys.id}' in its front matter."
            )

        record.contents = match.group(2)
        self.record = record
        self._file_path_by_id = path
        self.slug = self.slug_from_file_name(path.name)

    def render(self) -> str:
        """The full file text: front matter, blank line, body, LF endings."""
        front_matter = serialize_front_matter(self.front_matter, self.config.front_matter_keys)
        text = f"---\n{front_matter}---\n\n{self.content}"
        return text.replace("\r\n", "\n")

    def __str__(self) -> str:
        return self.render()

    def save_to_file(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.render(), encoding="utf-8", newline="\n")
        logger.debug("Wrote %s", path)
