"""Static pages: a flat directory where ancestry is encoded in the file name.

A page ``contact`` under ``about`` lives at ``about_contact.html`` and is
published at ``/about/contact/``.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from sitepress.config import SiteConfig
from sitepress.content.frontmatter import FrontMatter
from sitepress.content.item import PUBLISH_FILE_EXTENSION, ContentItem, load_items
from sitepress.content.models import PageInfo, ParentRef
from sitepress.errors import BrokenParentError

logger = logging.getLogger(__name__)

PARENT_CRAWL_MAX_LEVELS = 32

# Everything after the last "_" is the page's own slug
_PAGE_FILENAME_RE = re.compile(r"^(?:.*_)?(.*?)" + re.escape(PUBLISH_FILE_EXTENSION) + r"$")


class Page(ContentItem):
    """A page, optionally nested under a parent page."""

    @property
    def item_dir(self) -> Path:
        return self.config.pages_dir

    @property
    def parent_id(self) -> str:
        return self.record.page_parent.id

    @property
    def front_matter(self) -> FrontMatter:
        front_matter = super().front_matter
        front_matter.permalink = self.site_path
        return front_matter

    @property
    def site_path(self) -> str:
        parts = [*self.parent_slugs(), self.slug]
        return "/" + "/".join(parts) + "/"

    def file_name_for_slug(self, slug: str) -> str:
        prefix = "".join(f"{parent}_" for parent in self.parent_slugs())
        return f"{prefix}{slug}{PUBLISH_FILE_EXTENSION}"

    def slug_from_file_name(self, file_name: str) -> str:
        match = _PAGE_FILENAME_RE.match(file_name)
        if match is None:
            return Path(file_name).stem
        return match.group(1)

    def parent_slugs(self) -> list[str]:
        """Slugs of every ancestor, outermost first.

        Raises:
            BrokenParentError: If an ancestor id does not resolve to a page,
                the chain loops back on itself, or it is deeper than
                PARENT_CRAWL_MAX_LEVELS.
        """
        slugs: list[str] = []
        seen = {self.id} if self.id else set()
        parent_id = self.parent_id

        for _ in range(PARENT_CRAWL_MAX_LEVELS):
            if not parent_id:
                return slugs
            if parent_id in seen:
                raise BrokenParentError(
                    f"The parent chain of page '{self.title}' loops back to {parent_id}."
                )
            seen.add(parent_id)

            parent = Page.get_by_id(self.config, parent_id)
            if parent is None:
                raise BrokenParentError(
                    f"Could not locate parent for page '{self.title}' with parent ID {parent_id}."
                )
            slugs.insert(0, parent.slug)
            parent_id = parent.parent_id

        if parent_id:
            raise BrokenParentError(
                f"The parent chain of page '{self.title}' is deeper than "
                f"{PARENT_CRAWL_MAX_LEVELS} levels."
            )
        return slugs

    def resolve_parent(self) -> None:
        """Fill in the parent's display name, or drop a dangling parent."""
        if not self.parent_id:
            return
        parent = Page.get_by_id(self.config, self.parent_id)
        if parent is None:
            logger.warning("Page %s references missing parent %s", self.id, self.parent_id)
            self.record.page_parent = ParentRef()
        else:
            self.record.page_parent = ParentRef(id=parent.id, name=parent.title)

    @property
    def page_info(self) -> PageInfo:
        return PageInfo(
            id=self.id,
            title=self.title,
            date_published=self.date_published,
            parent_id=self.parent_id,
        )

    @classmethod
    def all_pages(cls, config: SiteConfig) -> list[Page]:
        return list(load_items(cls, config, config.pages_dir))

    @classmethod
    def get_by_id(cls, config: SiteConfig, page_id: str) -> Page | None:
        """Find a page by id, or None."""
        for page in load_items(cls, config, config.pages_dir):
            if page.id == page_id:
                return page
        return None
