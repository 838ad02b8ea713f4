"""Guess a site's layout from the files in its root directory.

Detection only fills in values it can see on disk or read from the
generator's own config. Build and publish commands are never guessed.
"""

from __future__ import annotations

import logging

import yaml
from sitepress.config import SiteConfig
from sitepress.urls import join_url

logger = logging.getLogger(__name__)

IMAGE_DIR_CANDIDATES = ("images", "image", "img", "assets/img", "assets/images")


class ConfigDetector:
    """Fill a SiteConfig in place from a known generator's conventions."""

    def __init__(self, config: SiteConfig) -> None:
        self.config = config
        self.root = config.root

    def detect(self) -> bool:
        """Try each supported generator in turn. Returns True on a match."""
        return self.detect_jekyll()

    def detect_jekyll(self) -> bool:
        """Detect a Jekyll site: a Gemfile mentioning jekyll plus ``_config.yml``."""
        gemfile = self.root / "Gemfile"
        if not gemfile.is_file():
            return False
        if "jekyll" not in gemfile.read_text(encoding="utf-8", errors="replace"):
            return False

        config_path = self.root / "_config.yml"
        if not config_path.is_file():
            return False

        logger.info("Detected Jekyll site at %s", self.root)

        if (self.root / "_posts").is_dir():
            self.config.posts_path = "_posts"

        self.config.pages_enabled = True
        self.config.pages_path = "."

        if (self.root / "_site").is_dir():
            self.config.building_enabled = True
            self.config.output_path = "_site"

        for candidate in IMAGE_DIR_CANDIDATES:
            if (self.root / candidate).is_dir():
                self.config.images_enabled = True
                self.config.images_path = candidate
                break

        try:
            site_yaml = yaml.safe_load(config_path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError, UnicodeDecodeError) as exc:
            # Directory-based values above still stand
            logger.warning("Could not read %s: %s", config_path, exc)
            return True

        if not isinstance(site_yaml, dict):
            logger.warning("%s is not a YAML mapping, ignoring it", config_path)
            return True

        if site_yaml.get("title") is not None:
            self.config.site_title = str(site_yaml["title"])

        if site_yaml.get("url") is not None:
            site_url = str(site_yaml["url"])
            if site_yaml.get("baseurl") is not None:
                site_url = join_url(site_url, str(site_yaml["baseurl"]))
            self.config.site_url = site_url

        if site_yaml.get("destination") is not None:
            self.config.building_enabled = True
            self.config.output_path = str(site_yaml["destination"])

        return True


def attempt_auto_detect(config: SiteConfig) -> bool:
    """Run ConfigDetector against ``config``."""
    return ConfigDetector(config).detect()
