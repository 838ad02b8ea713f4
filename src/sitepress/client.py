"""Publish posts and pages to a local static site project.

Every write follows the same protocol: mutate the site's files, run the
build command (if any), then the publish command. If either command
fails the file mutation is rolled back before the error propagates, so
a failed publish leaves the content directories as they were.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
import uuid
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel
from sitepress.commands import NOT_CAPTURED, CommandResult, run_command
from sitepress.config import SiteConfig
from sitepress.content.item import ContentItem
from sitepress.content.models import ContentRecord, PageInfo
from sitepress.content.page import Page
from sitepress.content.post import Post
from sitepress.errors import (
    DraftsUnsupportedError,
    ItemNotFoundError,
    SiteBuildError,
    SitePublishError,
    UnsupportedOperationError,
)
from sitepress.settings import SettingsAccessor
from sitepress.urls import join_url

logger = logging.getLogger(__name__)

IMAGE_NAME_PROBE_LIMIT = 1000


class ClientOptions(BaseModel):
    """Features the editor may offer for this site."""

    supports_pages: bool = False
    supports_page_parent: bool = False
    supports_post_as_draft: bool = False
    supports_file_upload: bool = False
    supports_image_upload: bool = False
    supports_scripts: bool = True
    supports_embeds: bool = True
    supports_extended_entries: bool = True
    supports_categories: bool = True
    supports_multiple_categories: bool = True
    supports_new_categories: bool = True
    supports_keywords: bool = False
    supports_custom_date: bool = True
    supports_slug: bool = True
    supports_author: bool = False
    future_publish_date_warning: bool = True

    @classmethod
    def for_config(cls, config: SiteConfig) -> ClientOptions:
        return cls(
            supports_pages=config.pages_enabled,
            supports_page_parent=config.pages_enabled,
            supports_post_as_draft=config.drafts_enabled,
            supports_file_upload=config.images_enabled,
            supports_image_upload=config.images_enabled,
        )


class PublishClient:
    """Create, edit and delete content, then rebuild and publish the site."""

    def __init__(self, config: SiteConfig) -> None:
        self.config = config
        self.options = ClientOptions.for_config(config)

    @classmethod
    def from_settings(cls, settings: SettingsAccessor) -> PublishClient:
        return cls(SiteConfig.from_settings(settings))

    # ── Posts ────────────────────────────────────────────────────

    def new_post(self, record: ContentRecord, *, publish: bool = True) -> str:
        """Create a post (or a draft when ``publish`` is False). Returns its id."""
        self._check_draft_allowed(publish)
        return self._do_new_item(Post(self.config, record, is_draft=not publish))

    def edit_post(self, record: ContentRecord, *, publish: bool = True) -> bool:
        """Update a post, creating it if its id is not on disk.

        Publishing a post that so far only exists as a draft moves it out
        of the drafts directory.
        """
        self._check_draft_allowed(publish)
        post = Post(self.config, record, is_draft=not publish)

        if post.file_path_by_id is None:
            draft_path = None
            if publish and self.config.drafts_enabled:
                draft_path = Post(self.config, record, is_draft=True).file_path_by_id
            if draft_path is None:
                self._do_new_item(post)
            else:
                self._promote_draft(post, draft_path)
            return True

        post.slug = record.slug
        return self._do_edit_item(post)

    def delete_post(self, post_id: str) -> None:
        post = Post.get_by_id(self.config, post_id)
        if post is None:
            raise ItemNotFoundError(f"No post with id {post_id} exists in {self.config.posts_dir}.")
        self._do_delete_item(post)

    def get_post(self, post_id: str) -> ContentRecord:
        post = Post.get_by_id(self.config, post_id)
        if post is None:
            raise ItemNotFoundError(f"No post with id {post_id} exists in {self.config.posts_dir}.")
        return post.record

    def get_recent_posts(
        self, max_posts: int, now: datetime | None = None
    ) -> list[ContentRecord]:
        """Newest posts first, drafts included. ``now`` excludes later posts."""
        posts = Post.all_posts(self.config, include_drafts=True)
        if now is not None:
            posts = [
                post for post in posts
                if post.date_published is not None and post.date_published < now
            ]
        posts.sort(key=lambda post: post.date_published or datetime.min, reverse=True)
        return [post.record for post in posts[:max_posts]]

    def get_categories(self) -> list[str]:
        """Distinct tags across published posts, in first-seen order."""
        tags: dict[str, None] = {}
        for post in Post.all_posts(self.config):
            tags.update(dict.fromkeys(post.record.categories))
        return list(tags)

    # ── Pages ────────────────────────────────────────────────────

    def new_page(self, record: ContentRecord, *, publish: bool = True) -> str:
        self._check_page_allowed(publish)
        return self._do_new_item(Page(self.config, record))

    def edit_page(self, record: ContentRecord, *, publish: bool = True) -> bool:
        """Update a page, creating it if its id is not on disk."""
        self._check_page_allowed(publish)
        page = Page(self.config, record)

        if page.file_path_by_id is None:
            self._do_new_item(page)
            return True

        page.slug = record.slug
        return self._do_edit_item(page)

    def delete_page(self, page_id: str) -> None:
        page = Page.get_by_id(self.config, page_id)
        if page is None:
            raise ItemNotFoundError(f"No page with id {page_id} exists in {self.config.pages_dir}.")
        self._do_delete_item(page)

    def get_page(self, page_id: str) -> ContentRecord:
        page = Page.get_by_id(self.config, page_id)
        if page is None:
            raise ItemNotFoundError(f"No page with id {page_id} exists in {self.config.pages_dir}.")
        page.resolve_parent()
        return page.record

    def get_pages(self, max_pages: int) -> list[ContentRecord]:
        pages = Page.all_pages(self.config)
        pages.sort(key=lambda page: page.date_published or datetime.min, reverse=True)
        return [page.record for page in pages[:max_pages]]

    def get_page_list(self) -> list[PageInfo]:
        return [page.page_info for page in Page.all_pages(self.config)]

    # ── Images ───────────────────────────────────────────────────

    def post_image(self, file_path: str | Path) -> str:
        """Copy an image into the site's images directory.

        Returns:
            The image's public URL under ``site_url``.

        Raises:
            UnsupportedOperationError: If images are disabled for this site.
        """
        if not self.config.images_enabled:
            raise UnsupportedOperationError("Image upload is disabled for this site.")

        source = Path(file_path)
        base_name = source.stem.replace(" ", "")
        images_dir = self.config.images_dir

        for i in range(IMAGE_NAME_PROBE_LIMIT):
            name = base_name if i == 0 else f"{base_name}-{i}"
            if not (images_dir / f"{name}{source.suffix}").exists():
                break
        else:
            name = str(uuid.uuid4())

        target = images_dir / f"{name}{source.suffix}"
        images_dir.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(source, target)
        logger.info("Copied image %s to %s", source, target)

        images_url = join_url(self.config.site_url, self.config.images_path.replace("\\", "/"))
        return join_url(images_url, target.name)

    # ── Write protocol ───────────────────────────────────────────

    def _check_draft_allowed(self, publish: bool) -> None:
        if not publish and not self.config.drafts_enabled:
            raise DraftsUnsupportedError("This site does not have drafts enabled.")

    def _check_page_allowed(self, publish: bool) -> None:
        if not self.config.pages_enabled:
            raise UnsupportedOperationError("This site does not have pages enabled.")
        if not publish:
            raise DraftsUnsupportedError("Pages cannot be saved as drafts.")

    def _do_new_item(self, item: ContentItem) -> str:
        item_id = item.ensure_id()
        item.ensure_date_published()
        item.ensure_safe_slug()

        path = item.file_path_by_slug
        item.save_to_file(path)
        try:
            self._build_and_publish()
        except BaseException:
            logger.warning("Publish failed, removing %s", path)
            path.unlink(missing_ok=True)
            raise

        logger.info("Created %s", path)
        return item_id

    def _do_edit_item(self, item: ContentItem) -> bool:
        old_path = item.file_path_by_id
        if old_path is None:
            raise ItemNotFoundError(f"No item with id {item.id} exists in {item.item_dir}.")

        if item.date_published is None:
            on_disk = type(item).from_file(old_path, self.config)
            if on_disk.date_published is not None:
                item.date_published = on_disk.date_published

        backup = _backup_file(old_path)
        written: Path | None = None
        try:
            if item.file_path_by_slug != old_path:
                old_path.unlink()
                item.slug = item.find_new_slug(item.slug, safe=True)
                written = item.file_path_by_slug
            else:
                written = old_path
            item.save_to_file(written)

            self._build_and_publish()
        except BaseException:
            logger.warning("Publish failed, restoring %s", old_path)
            if written is not None:
                written.unlink(missing_ok=True)
            _restore_file(backup, old_path)
            raise

        backup.unlink(missing_ok=True)
        if written != old_path:
            logger.info("Renamed %s to %s", old_path, written)
        else:
            logger.info("Updated %s", written)
        return True

    def _do_delete_item(self, item: ContentItem) -> None:
        path = item.file_path_by_id
        if path is None:
            raise ItemNotFoundError(f"No item with id {item.id} exists in {item.item_dir}.")

        backup = _backup_file(path)
        try:
            path.unlink()
            self._build_and_publish()
        except BaseException:
            logger.warning("Publish failed, restoring %s", path)
            _restore_file(backup, path)
            raise

        backup.unlink(missing_ok=True)
        logger.info("Deleted %s", path)

    def _promote_draft(self, post: Post, draft_path: Path) -> None:
        backup = _backup_file(draft_path)
        draft_path.unlink()
        try:
            self._do_new_item(post)
        except BaseException:
            logger.warning("Publishing draft failed, restoring %s", draft_path)
            _restore_file(backup, draft_path)
            raise
        backup.unlink(missing_ok=True)
        logger.info("Published draft %s", draft_path)

    # ── Site commands ────────────────────────────────────────────

    def _build_and_publish(self) -> None:
        if self.config.building_enabled and self.config.build_command.strip():
            self._build_site()
        if self.config.publish_command.strip():
            self._publish_site()

    def _build_site(self) -> None:
        result = self._run(self.config.build_command)
        if not result.ok:
            raise SiteBuildError(
                f"The build command exited with code {result.exit_code}.",
                command=result.command,
                exit_code=result.exit_code,
                stdout=result.stdout if result.captured else NOT_CAPTURED,
                stderr=result.stderr if result.captured else NOT_CAPTURED,
            )

    def _publish_site(self) -> None:
        result = self._run(self.config.publish_command)
        if not result.ok:
            raise SitePublishError(
                f"The publish command exited with code {result.exit_code}.",
                command=result.command,
                exit_code=result.exit_code,
                stdout=result.stdout if result.captured else NOT_CAPTURED,
                stderr=result.stderr if result.captured else NOT_CAPTURED,
            )

    def _run(self, command: str) -> CommandResult:
        return run_command(
            command,
            self.config.root,
            timeout_ms=self.config.cmd_timeout_ms,
            capture_output=not self.config.show_cmd_windows,
        )


def _backup_file(path: Path) -> Path:
    """Copy ``path`` to a fresh temp file and return the copy's path."""
    fd, backup = tempfile.mkstemp(prefix="sitepress-", suffix=".bak")
    os.close(fd)
    shutil.copyfile(path, backup)
    return Path(backup)


def _restore_file(backup: Path, path: Path) -> None:
    shutil.copyfile(backup, path)
    backup.unlink(missing_ok=True)
