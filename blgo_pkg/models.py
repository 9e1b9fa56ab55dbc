"""
Post and Index models.

A ``Post`` is built from one source file and never changes afterwards. An
``Index`` collects the posts of a single build, newest first. Both refer to
the same read-only ``SiteSettings`` for URL composition.
"""

import os
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

from .errors import FileAccessError
from .frontmatter import PostHeader, parse_frontmatter, parse_post_header, require_str
from .markup import create_markdown_parser, xml_escape

POST_DIR = 'post'
EXCERPT_BYTES = 200
EXCERPT_STRIP = ' \n\r'


def join_url(base: str, path: str) -> str:
    base = base.rstrip('/')
    path = path.lstrip('/')
    if not path:
        return base
    return f"{base}/{path}"


def excerpt(raw_body: str, limit: int = EXCERPT_BYTES) -> str:
    """First ``limit`` bytes of the raw body, trimmed. A character cut in half at the limit is dropped."""
    head = raw_body.encode('utf-8')[:limit]
    return head.decode('utf-8', errors='ignore').strip(EXCERPT_STRIP)


def read_source(path: str) -> bytes:
    try:
        with open(path, 'rb') as f:
            return f.read()
    except OSError as e:
        raise FileAccessError(f"failed to read source file: {e}", path)


@dataclass(frozen=True)
class SiteSettings:
    """Site-wide settings from the ``_index.md`` settings document."""
    title: str
    base_url: str
    feed_url: str

    @classmethod
    def from_header(cls, mapping: Dict[str, Any], source: Optional[str] = None) -> 'SiteSettings':
        return cls(
            title=require_str(mapping, 'title', source),
            base_url=require_str(mapping, 'url', source),
            feed_url=require_str(mapping, 'xmlurl', source),
        )

    @classmethod
    def read(cls, path: str) -> 'SiteSettings':
        mapping, _ = parse_frontmatter(read_source(path), path)
        return cls.from_header(mapping, path)

    @property
    def xml_title(self) -> str:
        return xml_escape(self.title)


@dataclass(frozen=True)
class Post:
    slug: str
    title: str
    date: Optional[date]
    draft: bool
    raw_body: str
    body: str
    site: SiteSettings = field(repr=False, compare=False)
    source_path: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_source(cls, filename: str, raw_body: str, site: SiteSettings, header: PostHeader,
                    renderer: Optional[Callable[[str], str]] = None) -> 'Post':
        """Build a post from an already split and validated document."""
        renderer = renderer or create_markdown_parser()
        slug = os.path.splitext(os.path.basename(filename))[0]
        return cls(
            slug=slug,
            title=header.title,
            date=header.date,
            draft=header.draft,
            raw_body=raw_body,
            body=renderer(raw_body),
            site=site,
            source_path=filename,
            meta=dict(header.extra),
        )

    @classmethod
    def parse(cls, filename: str, data: bytes, site: SiteSettings,
              renderer: Optional[Callable[[str], str]] = None) -> 'Post':
        """Build a post from the raw bytes of a source document."""
        mapping, raw_body = parse_frontmatter(data, filename)
        header = parse_post_header(mapping, filename)
        return cls.from_source(filename, raw_body, site, header, renderer)

    @classmethod
    def read(cls, path: str, site: SiteSettings,
             renderer: Optional[Callable[[str], str]] = None) -> 'Post':
        return cls.parse(path, read_source(path), site, renderer)

    @property
    def output_path(self) -> str:
        return f"{POST_DIR}/{self.slug}.html"

    @property
    def relative_link(self) -> str:
        return f"/{self.output_path}"

    @property
    def link(self) -> str:
        return join_url(self.site.base_url, self.output_path)

    @property
    def guid(self) -> str:
        return self.link

    @property
    def description(self) -> str:
        return excerpt(self.raw_body)

    @property
    def xml_title(self) -> str:
        return xml_escape(self.title)

    @property
    def xml_description(self) -> str:
        return xml_escape(self.description)

    @property
    def sort_date(self) -> date:
        return self.date or date.min


def sort_posts(posts: Iterable[Post]) -> Tuple[Post, ...]:
    """Newest first. Posts with the same date keep their input order; undated posts go last."""
    return tuple(sorted(posts, key=lambda p: p.sort_date, reverse=True))


@dataclass(frozen=True)
class Index:
    site: SiteSettings
    posts: Tuple[Post, ...] = ()
    updated_at: datetime = field(default_factory=lambda: datetime.now().astimezone())

    @classmethod
    def collect(cls, site: SiteSettings, posts: Iterable[Post],
                updated_at: Optional[datetime] = None) -> 'Index':
        if updated_at is None:
            updated_at = datetime.now().astimezone()
        return cls(site=site, posts=sort_posts(posts), updated_at=updated_at)

    @property
    def title(self) -> str:
        return self.site.title

    @property
    def base_url(self) -> str:
        return self.site.base_url

    @property
    def feed_url(self) -> str:
        return self.site.feed_url

    @property
    def xml_title(self) -> str:
        return self.site.xml_title
