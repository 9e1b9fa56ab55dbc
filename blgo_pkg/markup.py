"""Markdown rendering and XML escaping helpers."""

from xml.sax.saxutils import escape

import mistune

MARKDOWN_PLUGINS = ['table', 'strikethrough', 'url', 'task_lists', 'def_list', 'footnotes']

XML_ENTITIES = {'"': '&#34;', "'": '&#39;'}


class PostRenderer(mistune.HTMLRenderer):
    """HTML renderer that lets raw HTML in posts through untouched."""

    def __init__(self):
        super().__init__(escape=False)


def create_markdown_parser():
    """Create a reusable Mistune markdown parser."""
    return mistune.create_markdown(renderer=PostRenderer(), plugins=MARKDOWN_PLUGINS)


def xml_escape(text: str) -> str:
    return escape(text, XML_ENTITIES)
