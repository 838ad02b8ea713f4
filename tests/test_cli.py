"""Smoke tests for the CLI."""

import sys
from pathlib import Path

import pytest
from sitepress import __version__
from sitepress.cli import app
from sitepress.config import SiteConfig
from sitepress.settings import JsonSettingsStore
from typer.testing import CliRunner

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="uses POSIX shell commands")


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def config_file(tmp_path: Path, site_root: Path) -> Path:
    """A .sitepress.toml pointing at the test site."""
    path = tmp_path / ".sitepress.toml"
    path.write_text(
        "[site]\n"
        f'path = "{site_root.as_posix()}"\n'
        'url = "https://example.com"\n'
        "[paths]\n"
        'posts = "_posts"\n'
        'pages = "pages"\n'
        'drafts = "_drafts"\n'
        "[features]\n"
        "pages = true\n"
        "drafts = true\n"
        "[commands]\n"
        'publish = "true"\n'
    )
    return path


@pytest.fixture
def jekyll_site(tmp_path: Path) -> Path:
    root = tmp_path / "jekyll"
    (root / "_posts").mkdir(parents=True)
    (root / "Gemfile").write_text('gem "jekyll"\n')
    (root / "_config.yml").write_text("title: CLI Blog\n")
    return root


class TestVersion:
    def test_version(self, runner: CliRunner):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestDetect:
    def test_detects_jekyll(self, runner: CliRunner, jekyll_site: Path):
        result = runner.invoke(app, ["detect", str(jekyll_site)])
        assert result.exit_code == 0
        assert "_posts" in result.output

    def test_saves_settings(self, runner: CliRunner, jekyll_site: Path, tmp_path: Path):
        settings_path = tmp_path / "settings.json"
        result = runner.invoke(app, ["detect", str(jekyll_site), "--save", str(settings_path)])
        assert result.exit_code == 0

        config = SiteConfig.from_settings(JsonSettingsStore(settings_path))
        assert config.posts_path == "_posts"
        assert config.pages_enabled is True

    def test_unknown_site(self, runner: CliRunner, tmp_path: Path):
        result = runner.invoke(app, ["detect", str(tmp_path)])
        assert result.exit_code == 1
        assert "No supported site generator" in result.output


class TestValidate:
    def test_valid(self, runner: CliRunner, config_file: Path):
        result = runner.invoke(app, ["validate", "-c", str(config_file)])
        assert result.exit_code == 0
        assert "Configuration is valid" in result.output

    def test_invalid(self, runner: CliRunner, config_file: Path, tmp_path: Path):
        result = runner.invoke(
            app, ["validate", "-c", str(config_file), "--site", str(tmp_path / "missing")]
        )
        assert result.exit_code == 1
        assert "Error:" in result.output


class TestContentCommands:
    def test_new_and_list_post(self, runner: CliRunner, config_file: Path, site_root: Path):
        result = runner.invoke(
            app,
            ["new", "Hello CLI", "-c", str(config_file), "--date", "2021-02-03 04:05:06", "-t", "cli"],
        )
        assert result.exit_code == 0, result.output
        assert (site_root / "_posts" / "2021-02-03-hello-cli.html").exists()

        listing = runner.invoke(app, ["posts", "-c", str(config_file)])
        assert listing.exit_code == 0
        assert "hello-cli" in listing.output

    def test_new_page_with_body(self, runner: CliRunner, config_file: Path, site_root: Path, tmp_path: Path):
        body = tmp_path / "body.html"
        body.write_text("<p>About us</p>\n")
        result = runner.invoke(app, ["new", "About", "--page", "-b", str(body), "-c", str(config_file)])
        assert result.exit_code == 0, result.output

        text = (site_root / "pages" / "about.html").read_text()
        assert text.endswith("<p>About us</p>\n")

        listing = runner.invoke(app, ["pages", "-c", str(config_file)])
        assert "About" in listing.output

    def test_invalid_date(self, runner: CliRunner, config_file: Path):
        result = runner.invoke(app, ["new", "Bad", "--date", "someday", "-c", str(config_file)])
        assert result.exit_code == 1
        assert "Invalid date" in result.output

    def test_edit_renames(self, runner: CliRunner, config_file: Path, site_root: Path):
        runner.invoke(app, ["new", "Original", "-c", str(config_file), "--date", "2021-02-03 04:05:06"])
        path = site_root / "_posts" / "2021-02-03-original.html"
        post_id = next(
            line.split(": ", 1)[1] for line in path.read_text().splitlines() if line.startswith("id: ")
        )

        result = runner.invoke(app, ["edit", post_id, "--slug", "renamed", "-c", str(config_file)])
        assert result.exit_code == 0, result.output
        assert not path.exists()
        assert (site_root / "_posts" / "2021-02-03-renamed.html").exists()

    def test_delete_missing(self, runner: CliRunner, config_file: Path):
        result = runner.invoke(app, ["delete", "nope", "-c", str(config_file)])
        assert result.exit_code == 1
        assert "Item not found" in result.output

    def test_publish_failure_shows_output(self, runner: CliRunner, config_file: Path, monkeypatch):
        monkeypatch.setenv("SITEPRESS_PUBLISH_COMMAND", "echo '[deploy] failed'; exit 4")
        result = runner.invoke(app, ["new", "Doomed", "-c", str(config_file)])
        assert result.exit_code == 1
        assert "Site publish failed" in result.output
        assert "[deploy] failed" in result.output

    def test_bad_timeout_env_is_reported(self, runner: CliRunner, config_file: Path, monkeypatch):
        monkeypatch.setenv("SITEPRESS_CMD_TIMEOUT_MS", "soon")
        result = runner.invoke(app, ["posts", "-c", str(config_file)])
        assert result.exit_code == 1
        assert "SITEPRESS_CMD_TIMEOUT_MS" in result.output

    def test_image_disabled(self, runner: CliRunner, config_file: Path, tmp_path: Path):
        image = tmp_path / "pic.png"
        image.write_bytes(b"png")
        result = runner.invoke(app, ["image", str(image), "-c", str(config_file)])
        assert result.exit_code == 1
        assert "Operation not supported" in result.output
