"""Test configuration and fixtures for blgo tests."""

import logging
import pytest
import tempfile
import shutil
from pathlib import Path

SETTINGS_DOC = """---
title: My Blog
url: http://example.com
xmlurl: http://example.com/index.xml
---
"""

HELLO_POST = """---
title: Hello
date: 2021-05-01
---
# Hi
"""

POST_TEMPLATE = """<html>
<head><title>{{ post.title }} - {{ site.title }}</title></head>
<body>
{{ post.body }}
</body>
</html>
"""

INDEX_TEMPLATE = """<html>
<head><title>{{ index.title }}</title></head>
<body>
{% for post in index.posts %}<a href="{{ post.link }}">{{ post.title }}</a>
{% endfor %}</body>
</html>
"""

FEED_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
<channel>
<title>{{ index.xml_title }}</title>
<lastBuildDate>{{ index.updated_at|rfc822 }}</lastBuildDate>
{% for post in posts %}<item>
<title>{{ post.xml_title }}</title>
<link>{{ post.link }}</link>
<description>{{ post.xml_description }}</description>
</item>
{% endfor %}</channel>
</rss>
"""


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def source_dir(temp_dir):
    """Create a source directory with the settings document and one post."""
    source = Path(temp_dir) / 'content'
    source.mkdir()
    (source / '_index.md').write_text(SETTINGS_DOC, encoding='utf-8')
    (source / 'hello.md').write_text(HELLO_POST, encoding='utf-8')
    return str(source)


@pytest.fixture
def templates_dir(temp_dir):
    """Create a templates directory with the three templates."""
    templates = Path(temp_dir) / 'templates'
    templates.mkdir()
    (templates / 'post.tmpl.html').write_text(POST_TEMPLATE, encoding='utf-8')
    (templates / 'index.tmpl.html').write_text(INDEX_TEMPLATE, encoding='utf-8')
    (templates / 'index.tmpl.xml').write_text(FEED_TEMPLATE, encoding='utf-8')
    return str(templates)


@pytest.fixture
def output_dir(temp_dir):
    """Create an empty output directory."""
    output = Path(temp_dir) / 'generated'
    output.mkdir()
    return str(output)


@pytest.fixture
def test_logger():
    """A logger that propagates to the root logger so caplog sees it."""
    logger = logging.getLogger('blgo-tests')
    logger.setLevel(logging.DEBUG)
    return logger


@pytest.fixture(autouse=True)
def reset_blgo_logger():
    """Drop handlers that cli.main() attaches to the 'blgo' logger."""
    yield
    logger = logging.getLogger('blgo')
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
