"""Shared fixtures: a throwaway Jekyll-style site on disk."""

from pathlib import Path

import pytest
from sitepress.config import SiteConfig

SITE_DIRS = ("_posts", "_drafts", "pages", "images", "_site")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep SITEPRESS_* variables from the host out of config loading."""
    for key in (
        "SITEPRESS_SITE_PATH",
        "SITEPRESS_BUILD_COMMAND",
        "SITEPRESS_PUBLISH_COMMAND",
        "SITEPRESS_CMD_TIMEOUT_MS",
        "SITEPRESS_SHOW_CMD_WINDOWS",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def site_root(tmp_path: Path) -> Path:
    root = tmp_path / "site"
    for name in SITE_DIRS:
        (root / name).mkdir(parents=True)
    return root


@pytest.fixture
def site_config(site_root: Path) -> SiteConfig:
    """Config with every feature on and a publish command that succeeds."""
    return SiteConfig(
        local_site_path=str(site_root),
        posts_path="_posts",
        pages_enabled=True,
        pages_path="pages",
        drafts_enabled=True,
        drafts_path="_drafts",
        images_enabled=True,
        images_path="images",
        output_path="_site",
        publish_command="true",
        site_url="https://example.com",
        cmd_timeout_ms=10000,
    )
