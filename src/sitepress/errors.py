"""Error taxonomy for the publishing engine.

Every error carries a short human ``title`` and a longer ``detail`` so
callers (the CLI, an editor UI) can show both without parsing messages.
"""

from __future__ import annotations


class SitePressError(Exception):
    """Base error with a title/detail pair."""

    default_title = "Static site error"

    def __init__(self, detail: str, *, title: str | None = None) -> None:
        self.title = title or self.default_title
        self.detail = detail
        super().__init__(f"{self.title}: {detail}")


class ConfigValidationError(SitePressError):
    """A site configuration path or command is missing or invalid."""

    default_title = "Invalid site configuration"


class ItemNotFoundError(SitePressError):
    """The post or page to edit or delete does not exist on disk."""

    default_title = "Item not found"


class ItemParseError(SitePressError):
    """A content file is not in the expected front matter + body shape."""

    default_title = "Failed to load item"


class DraftsUnsupportedError(SitePressError):
    """A draft was requested but drafts are disabled for this site."""

    default_title = "Drafts not supported"


class UnsupportedOperationError(SitePressError):
    """The operation is not available with the current site features."""

    default_title = "Operation not supported"


class BrokenParentError(SitePressError):
    """A page's parent chain references a page that cannot be resolved."""

    default_title = "Page parent not found"


class CommandError(SitePressError):
    """Base error for build/publish command failures."""

    default_title = "Command failed"

    def __init__(
        self,
        detail: str,
        *,
        title: str | None = None,
        command: str = "",
        exit_code: int | None = None,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        self.command = command
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(detail, title=title)


class CommandTimeoutError(CommandError):
    """A command did not finish within the configured timeout."""

    default_title = "Command timed out"


class SiteBuildError(CommandError):
    """The build command exited with a non-zero status."""

    default_title = "Site build failed"


class SitePublishError(CommandError):
    """The publish command exited with a non-zero status."""

    default_title = "Site publish failed"
