import glob
import logging
import os
import time
from datetime import datetime, time as dtime, timezone
from email.utils import format_datetime

from jinja2 import Environment, FileSystemLoader
from jinja2 import TemplateError as JinjaTemplateError

from .errors import FileAccessError, TemplateError
from .markup import create_markdown_parser
from .models import Index, Post, SiteSettings

POST_TEMPLATE = 'post.tmpl.html'
INDEX_TEMPLATE = 'index.tmpl.html'
FEED_TEMPLATE = 'index.tmpl.xml'
TEMPLATE_NAMES = (POST_TEMPLATE, INDEX_TEMPLATE, FEED_TEMPLATE)

SETTINGS_FILENAME = '_index.md'
SOURCE_PATTERN = '*.md'

INDEX_OUTPUT = 'index.html'
FEED_OUTPUT = 'index.xml'

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def setup_logging(level=logging.INFO, log_file=None):
    """Setup the 'blgo' logger to write to the console and, optionally, to a file."""
    logger = logging.getLogger('blgo')
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)

    ch = logging.StreamHandler()
    ch.setLevel(level)
    ch.setFormatter(formatter)
    logger.addHandler(ch)

    if log_file:
        fh = logging.FileHandler(log_file, encoding='utf-8')
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(formatter)
        logger.addHandler(fh)
        logger.debug(f"Logging initialized. Logs stored at {log_file}")

    return logger


def _as_datetime(value):
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return datetime.combine(value, dtime.min, tzinfo=timezone.utc)


def rfc822(value):
    """Format a date or datetime for RSS ``pubDate``/``lastBuildDate``."""
    if value is None:
        return ''
    return format_datetime(_as_datetime(value))


def isodate(value):
    """Format a date or datetime as RFC 3339, for Atom ``updated``."""
    if value is None:
        return ''
    return _as_datetime(value).isoformat()


def list_source_files(source_dir):
    """List the markdown files in source_dir, sorted by name."""
    return sorted(glob.glob(os.path.join(glob.escape(source_dir), SOURCE_PATTERN)))


class Blgo:
    """Builds the whole blog from a source directory in one synchronous pass."""

    def __init__(self, templates_dir, output_dir, source_dir, logger=None):
        self.templates_dir = templates_dir
        self.output_dir = output_dir
        self.source_dir = source_dir
        self.logger = logger or logging.getLogger('blgo')
        # cache_size=0 so every build re-reads the templates from disk
        self.env = Environment(loader=FileSystemLoader(templates_dir), cache_size=0)
        self.markdown_parser = create_markdown_parser()
        self.env.filters['markdown'] = self.markdown_filter
        self.env.filters['rfc822'] = rfc822
        self.env.filters['isodate'] = isodate
        self.posts_generated = 0

    def markdown_filter(self, text):
        """Convert markdown text to HTML using the shared parser."""
        return self.markdown_parser(text)

    @property
    def settings_path(self):
        return os.path.join(self.source_dir, SETTINGS_FILENAME)

    def template_paths(self):
        return [os.path.join(self.templates_dir, name) for name in TEMPLATE_NAMES]

    def load_templates(self):
        """Load the post, index and feed templates. Any failure aborts the build."""
        templates = {}
        for name in TEMPLATE_NAMES:
            try:
                templates[name] = self.env.get_template(name)
            except JinjaTemplateError as e:
                raise TemplateError(
                    f"failed to load template: {e}", os.path.join(self.templates_dir, name)
                ) from e
        return templates

    def load_site_settings(self):
        return SiteSettings.read(self.settings_path)

    def list_post_files(self):
        return [
            path for path in list_source_files(self.source_dir)
            if os.path.basename(path) != SETTINGS_FILENAME
        ]

    def render_to(self, template, relative_path, **context):
        """Render template and write it to output_dir/relative_path."""
        output_file_path = os.path.join(self.output_dir, relative_path)
        try:
            rendered = template.render(**context)
        except Exception as e:
            # filters and template expressions can raise any exception
            raise TemplateError(
                f"failed to render {relative_path}: {type(e).__name__}: {e}",
                os.path.join(self.templates_dir, template.name),
            ) from e

        try:
            os.makedirs(os.path.dirname(output_file_path), exist_ok=True)
            with open(output_file_path, 'w', encoding='utf-8') as output_file:
                output_file.write(rendered)
        except OSError as e:
            raise FileAccessError(f"failed to write output file: {e}", output_file_path) from e

        self.logger.debug(f"Wrote {output_file_path}")
        return output_file_path

    def build(self):
        """
        Run one full build.

        Returns:
            The Index of this build.

        Raises:
            BuildError: On the first problem; nothing after it is written.
        """
        start_time = time.time()
        self.posts_generated = 0
        self.logger.info(f"Starting build of {self.source_dir} into {self.output_dir}")

        templates = self.load_templates()
        site = self.load_site_settings()

        posts = []
        for filename in self.list_post_files():
            post = Post.read(filename, site, self.markdown_parser)
            self.render_to(templates[POST_TEMPLATE], post.output_path, post=post, site=site)
            posts.append(post)
            self.posts_generated += 1
            self.logger.info(f'post "{filename}" generated')

        index = Index.collect(site, posts)
        context = {'index': index, 'site': site, 'posts': index.posts}

        self.render_to(templates[INDEX_TEMPLATE], INDEX_OUTPUT, **context)
        self.logger.info(f'page "{INDEX_OUTPUT}" generated')

        self.render_to(templates[FEED_TEMPLATE], FEED_OUTPUT, **context)
        self.logger.info(f'page "{FEED_OUTPUT}" generated')

        self.logger.info(
            f"Build completed in {time.time() - start_time:.6f} seconds, "
            f"{self.posts_generated} posts generated"
        )
        return index


def build(templates_path, output_path, source_path, logger=None):
    """Build the blog once. See Blgo.build."""
    return Blgo(templates_path, output_path, source_path, logger=logger).build()
