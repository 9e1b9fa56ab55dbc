"""
blgo - A small static blog generator.

blgo turns a directory of markdown files with YAML frontmatter into post
pages, an index page and an RSS feed using Jinja2 templates, and can rebuild
on change and serve the result while you write.
"""

__version__ = "1.0.0"

from .core import Blgo, build
from .models import Index, Post, SiteSettings

__all__ = ['Blgo', 'build', 'Index', 'Post', 'SiteSettings']
