"""Tests for sitepress.config: SiteConfig, settings, TOML loading, overrides."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from sitepress.config import (
    DEFAULT_CMD_TIMEOUT_MS,
    FrontMatterKeys,
    SiteConfig,
    load_config,
    merge_cli_overrides,
)
from sitepress.errors import ConfigValidationError
from sitepress.settings import InMemorySettings


def _full_config() -> SiteConfig:
    return SiteConfig(
        local_site_path="/srv/blog",
        posts_path="_posts",
        pages_enabled=True,
        pages_path=".",
        drafts_enabled=True,
        drafts_path="_drafts",
        images_enabled=True,
        images_path="assets/img",
        building_enabled=True,
        output_path="_site",
        build_command="bundle exec jekyll build",
        publish_command="git push",
        cmd_timeout_ms=1234,
        show_cmd_windows=True,
        site_url="https://example.com",
        initialized=True,
        front_matter_keys=FrontMatterKeys(id="uid", parent_id="parent"),
    )


class TestSiteConfigDefaults:
    def test_defaults(self):
        cfg = SiteConfig()
        assert cfg.cmd_timeout_ms == DEFAULT_CMD_TIMEOUT_MS == 60000
        assert cfg.pages_enabled is False
        assert cfg.front_matter_keys == FrontMatterKeys()

    def test_default_front_matter_keys(self):
        keys = FrontMatterKeys()
        assert (keys.id, keys.title, keys.date, keys.layout) == ("id", "title", "date", "layout")
        assert (keys.tags, keys.parent_id, keys.permalink) == ("tags", "parent_id", "permalink")

    def test_empty_key_falls_back_to_default(self):
        assert FrontMatterKeys(id="", tags="  ").id == "id"
        assert FrontMatterKeys(tags="  ").tags == "tags"

    def test_derived_paths(self):
        cfg = _full_config()
        assert cfg.posts_dir == Path("/srv/blog/_posts")
        assert cfg.images_dir == Path("/srv/blog/assets/img")
        assert cfg.output_dir == Path("/srv/blog/_site")

    def test_clone_is_independent(self):
        cfg = _full_config()
        copy = cfg.clone()
        copy.posts_path = "other"
        copy.front_matter_keys.id = "changed"
        assert cfg.posts_path == "_posts"
        assert cfg.front_matter_keys.id == "uid"


class TestSettings:
    def test_round_trip(self):
        settings = InMemorySettings()
        original = _full_config()
        original.save_to_settings(settings)

        loaded = SiteConfig.from_settings(settings)
        assert loaded == original

    def test_stored_names_and_flags(self):
        settings = InMemorySettings()
        _full_config().save_to_settings(settings)

        assert settings.values["LocalSitePath"] == "/srv/blog"
        assert settings.values["PagesEnabled"] == "1"
        assert settings.values["CmdTimeoutMs"] == "1234"
        assert settings.values["FrontMatterKey.Id"] == "uid"
        assert settings.values["FrontMatterKey.ParentId"] == "parent"

    def test_false_flags_are_zero(self):
        settings = InMemorySettings()
        SiteConfig().save_to_settings(settings)
        assert settings.values["DraftsEnabled"] == "0"

    def test_missing_values_use_defaults(self):
        cfg = SiteConfig.from_settings(InMemorySettings())
        assert cfg.cmd_timeout_ms == DEFAULT_CMD_TIMEOUT_MS
        assert cfg.front_matter_keys == FrontMatterKeys()

    def test_bad_timeout_raises(self):
        settings = InMemorySettings({"CmdTimeoutMs": "soon"})
        with pytest.raises(ConfigValidationError):
            SiteConfig.from_settings(settings)


class TestLoadConfig:
    @pytest.fixture(autouse=True)
    def _no_global_config(self, tmp_path):
        with patch("sitepress.config.GLOBAL_CONFIG_PATH", tmp_path / "global" / "config.toml"):
            yield

    def test_load_from_explicit_toml(self, tmp_path):
        toml_path = tmp_path / ".sitepress.toml"
        toml_path.write_text(
            '[site]\npath = "blog"\nurl = "https://example.com"\n'
            '[paths]\nposts = "_posts"\n'
            '[features]\ndrafts = true\n'
            '[commands]\npublish = "git push"\ntimeout_ms = 5000\n'
            '[front_matter]\ntags = "categories"\n'
        )
        cfg = load_config(toml_path)

        assert cfg.local_site_path == str((tmp_path / "blog").resolve())
        assert cfg.site_url == "https://example.com"
        assert cfg.posts_path == "_posts"
        assert cfg.drafts_enabled is True
        assert cfg.publish_command == "git push"
        assert cfg.cmd_timeout_ms == 5000
        assert cfg.front_matter_keys.tags == "categories"

    def test_absolute_site_path_is_kept(self, tmp_path):
        toml_path = tmp_path / "site.toml"
        toml_path.write_text(f'[site]\npath = "{tmp_path.as_posix()}"\n')
        assert load_config(toml_path).local_site_path == tmp_path.as_posix()

    def test_load_from_json_settings(self, tmp_path):
        json_path = tmp_path / "settings.json"
        json_path.write_text(json.dumps({"values": {"PostsPath": "_posts", "DraftsEnabled": "1"}}))
        cfg = load_config(json_path)
        assert cfg.posts_path == "_posts"
        assert cfg.drafts_enabled is True

    def test_missing_path_returns_defaults(self, tmp_path):
        assert load_config(tmp_path / "nonexistent.toml") == SiteConfig()

    def test_invalid_toml_returns_defaults(self, tmp_path):
        toml_path = tmp_path / "bad.toml"
        toml_path.write_text("[site\npath = ")
        assert load_config(toml_path) == SiteConfig()

    def test_searches_cwd(self, tmp_path, monkeypatch):
        (tmp_path / ".sitepress.toml").write_text('[paths]\nposts = "content/posts"\n')
        monkeypatch.chdir(tmp_path)
        assert load_config().posts_path == "content/posts"

    def test_falls_back_to_global(self, tmp_path, monkeypatch):
        global_path = tmp_path / "global" / "config.toml"
        global_path.parent.mkdir()
        global_path.write_text('[commands]\npublish = "rsync"\n')
        monkeypatch.chdir(tmp_path)
        assert load_config().publish_command == "rsync"

    def test_env_vars_override_file(self, tmp_path, monkeypatch):
        toml_path = tmp_path / ".sitepress.toml"
        toml_path.write_text('[commands]\npublish = "git push"\n')
        monkeypatch.setenv("SITEPRESS_PUBLISH_COMMAND", "rsync -a _site/ host:")
        monkeypatch.setenv("SITEPRESS_CMD_TIMEOUT_MS", "250")
        monkeypatch.setenv("SITEPRESS_SHOW_CMD_WINDOWS", "yes")

        cfg = load_config(toml_path)
        assert cfg.publish_command == "rsync -a _site/ host:"
        assert cfg.cmd_timeout_ms == 250
        assert cfg.show_cmd_windows is True

    def test_bad_env_timeout_raises(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SITEPRESS_CMD_TIMEOUT_MS", "soon")
        with pytest.raises(ConfigValidationError, match="SITEPRESS_CMD_TIMEOUT_MS"):
            load_config(tmp_path / "nonexistent.toml")


class TestMergeCliOverrides:
    def test_none_values_are_ignored(self):
        cfg = merge_cli_overrides(_full_config(), local_site_path=None)
        assert cfg.local_site_path == "/srv/blog"

    def test_values_override(self):
        cfg = merge_cli_overrides(_full_config(), local_site_path="/tmp/other", cmd_timeout_ms=5)
        assert cfg.local_site_path == "/tmp/other"
        assert cfg.cmd_timeout_ms == 5
        assert cfg.front_matter_keys.id == "uid"

    def test_unknown_field_raises(self):
        with pytest.raises(ValueError, match="Unknown config field"):
            merge_cli_overrides(SiteConfig(), colour="blue")
