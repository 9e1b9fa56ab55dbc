"""
Static file server for the generated blog.

``/`` serves the output directory, ``/assets/`` the optional assets
directory. Paths ending in ``/post/`` (and, under ``/assets/``, any path
ending in ``/``) answer 404 instead of a directory listing.
"""

import logging
import os
import posixpath
import threading
from functools import partial
from http import HTTPStatus
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import unquote

ASSETS_PREFIX = '/assets/'
POST_LISTING_SUFFIX = '/post/'

logger = logging.getLogger('blgo.server')


def parse_address(address):
    """Split ``host:port`` or ``:port`` into a ``(host, port)`` tuple."""
    host, sep, port = address.rpartition(':')
    if not sep or not port.isdigit():
        raise ValueError(f"invalid listen address {address!r}, expected host:port")
    return host.strip('[]'), int(port)


def clean_path(raw_path):
    """Unquote and normalise a request path, keeping a trailing slash."""
    url_path = unquote(raw_path.split('?', 1)[0].split('#', 1)[0])
    cleaned = '/' + posixpath.normpath(url_path).lstrip('/')
    if url_path.endswith('/') and cleaned != '/':
        cleaned += '/'
    return cleaned


class BlogRequestHandler(SimpleHTTPRequestHandler):
    """Serves output_dir, and assets_dir under /assets/ when one is given."""

    def __init__(self, *args, output_dir, assets_dir=None, **kwargs):
        self.output_dir = output_dir
        self.assets_dir = assets_dir
        super().__init__(*args, directory=output_dir, **kwargs)

    def _is_assets_request(self, url_path):
        return bool(self.assets_dir) and url_path.startswith(ASSETS_PREFIX)

    def is_masked(self):
        url_path = clean_path(self.path)
        if self._is_assets_request(url_path):
            return url_path.endswith('/')
        return url_path.endswith(POST_LISTING_SUFFIX)

    def translate_path(self, path):
        url_path = clean_path(path)
        if not self._is_assets_request(url_path):
            return super().translate_path(path)

        parts = [p for p in url_path[len(ASSETS_PREFIX):].split('/') if p]
        return os.path.join(self.assets_dir, *parts)

    def do_GET(self):
        if self.is_masked():
            self.send_error(HTTPStatus.NOT_FOUND)
            return
        super().do_GET()

    def do_HEAD(self):
        if self.is_masked():
            self.send_error(HTTPStatus.NOT_FOUND)
            return
        super().do_HEAD()

    def log_message(self, format, *args):
        logger.info(f"{self.address_string()} - {format % args}")


def create_server(address, output_dir, assets_dir=None):
    """Create (but do not start) a threading HTTP server for the blog."""
    handler = partial(
        BlogRequestHandler,
        output_dir=os.path.abspath(output_dir),
        assets_dir=os.path.abspath(assets_dir) if assets_dir else None,
    )
    return ThreadingHTTPServer(parse_address(address), handler)


def serve_in_background(server):
    """Run server.serve_forever in a daemon thread and return the thread."""
    thread = threading.Thread(target=server.serve_forever, name='blgo-server', daemon=True)
    thread.start()
    host, port = server.server_address[:2]
    logger.info(f"Listening on http://{host or 'localhost'}:{port}")
    return thread
