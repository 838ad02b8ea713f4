"""Content domain: editor records, front matter and on-disk posts/pages.

Post and Page wrap a ContentRecord for one operation and map it to a
file in the site's posts, drafts or pages directory.
"""

from sitepress.content.frontmatter import FrontMatter
from sitepress.content.item import ContentItem
from sitepress.content.models import ContentRecord, PageInfo, ParentRef
from sitepress.content.page import Page
from sitepress.content.post import Post

__all__ = [
    "ContentItem",
    "ContentRecord",
    "FrontMatter",
    "Page",
    "PageInfo",
    "ParentRef",
    "Post",
]
