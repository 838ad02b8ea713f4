"""Chainable checks that a SiteConfig points at a usable site."""

from __future__ import annotations

from pathlib import Path

from sitepress.config import SiteConfig
from sitepress.errors import ConfigValidationError

_FOLDER_NOT_FOUND = "Folder not found"


class ConfigValidator:
    """Validate a site configuration one concern at a time.

    Every ``validate_*`` method returns the validator so checks can be
    chained, and raises ConfigValidationError on the first problem.
    Checks for optional features are no-ops while the feature is off.
    """

    def __init__(self, config: SiteConfig) -> None:
        self.config = config

    def validate_all(self) -> ConfigValidator:
        return (
            self.validate_local_site_path()
            .validate_posts_path()
            .validate_pages_path()
            .validate_drafts_path()
            .validate_images_path()
            .validate_output_path()
            .validate_build_command()
            .validate_publish_command()
        )

    def validate_local_site_path(self) -> ConfigValidator:
        root = self.config.local_site_path
        if not root.strip() or not Path(root).is_dir():
            raise ConfigValidationError(
                f"The local site folder could not be found: {root}",
                title=_FOLDER_NOT_FOUND,
            )
        return self

    def validate_posts_path(self) -> ConfigValidator:
        self._check_dir("Posts", self.config.posts_path, self.config.posts_dir)
        return self

    def validate_pages_path(self) -> ConfigValidator:
        if self.config.pages_enabled:
            self._check_dir("Pages", self.config.pages_path, self.config.pages_dir)
        return self

    def validate_drafts_path(self) -> ConfigValidator:
        if self.config.drafts_enabled:
            self._check_dir("Drafts", self.config.drafts_path, self.config.drafts_dir)
        return self

    def validate_images_path(self) -> ConfigValidator:
        if self.config.images_enabled:
            self._check_dir("Images", self.config.images_path, self.config.images_dir)
        return self

    def validate_output_path(self) -> ConfigValidator:
        if self.config.building_enabled:
            self._check_dir("Output", self.config.output_path, self.config.output_dir)
        return self

    def validate_build_command(self) -> ConfigValidator:
        if self.config.building_enabled and not self.config.build_command.strip():
            raise ConfigValidationError(
                "Local site building is enabled, but no build command is set.",
                title="Build command empty",
            )
        return self

    def validate_publish_command(self) -> ConfigValidator:
        if not self.config.publish_command.strip():
            raise ConfigValidationError(
                "A publish command is required to publish the site.",
                title="Publish command empty",
            )
        return self

    @staticmethod
    def _check_dir(label: str, relative: str, full: Path) -> None:
        if not relative.strip():
            raise ConfigValidationError(
                f"{label} path is empty.",
                title=_FOLDER_NOT_FOUND,
            )
        if not full.is_dir():
            raise ConfigValidationError(
                f"{label} folder could not be found: {full}",
                title=_FOLDER_NOT_FOUND,
            )
