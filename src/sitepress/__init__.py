"""sitepress - publish posts and pages to a local static site project."""

__version__ = "0.1.0"
