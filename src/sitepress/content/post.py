"""Blog posts: ``<date>-<slug>.html`` files in the posts or drafts directory."""

from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path

from sitepress.config import SiteConfig
from sitepress.content.item import PUBLISH_FILE_EXTENSION, ContentItem, load_items

_POST_FILENAME_RE = re.compile(
    r"^(?:\d{4}-\d{2}-\d{2}-)(.*?)" + re.escape(PUBLISH_FILE_EXTENSION) + r"$"
)


class Post(ContentItem):
    """A dated blog post."""

    @property
    def item_dir(self) -> Path:
        if self.is_draft and self.config.drafts_enabled:
            return self.config.drafts_dir
        return self.config.posts_dir

    @property
    def site_path(self) -> str:
        # The generator derives post URLs from its own permalink setting
        raise NotImplementedError("Post site paths are determined by the site generator.")

    def file_name_for_slug(self, slug: str) -> str:
        published = self.date_published or datetime.min
        return f"{published.date().isoformat()}-{slug}{PUBLISH_FILE_EXTENSION}"

    def slug_from_file_name(self, file_name: str) -> str:
        match = _POST_FILENAME_RE.match(file_name)
        if match is None:
            return Path(file_name).stem
        return match.group(1)

    @classmethod
    def all_posts(cls, config: SiteConfig, *, include_drafts: bool = False) -> list[Post]:
        """Every parsable post, published first, then drafts."""
        posts = list(load_items(cls, config, config.posts_dir))
        if include_drafts and config.drafts_enabled:
            posts.extend(load_items(cls, config, config.drafts_dir, is_draft=True))
        return posts

    @classmethod
    def get_by_id(
        cls, config: SiteConfig, post_id: str, *, include_drafts: bool = True
    ) -> Post | None:
        """Find a post by id, or None."""
        for post in cls.all_posts(config, include_drafts=include_drafts):
            if post.id == post_id:
                return post
        return None
