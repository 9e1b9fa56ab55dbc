#!/usr/bin/env python3
"""
Command-line interface for blgo - static blog generator.
"""

import argparse
import logging
import os
import shutil
import signal
import sys
import threading
from datetime import date
from typing import List, Optional

from . import __version__
from .core import Blgo, list_source_files, setup_logging
from .errors import BuildError
from .server import create_server, serve_in_background
from .settings import BlgoSettings
from .watcher import ChangeWatcher

PACKAGE_TEMPLATES_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'templates')

SAMPLE_SETTINGS = """---
title: My Blog
url: http://localhost:8080
xmlurl: http://localhost:8080/index.xml
---
"""

SAMPLE_POST = """---
title: Hello, world
date: {date}
draft: false
---

# Hello, world

This is the first post of your new blog. Edit `content/hello.md` or add
more markdown files next to it, then run `blgo content` again.
"""


def create_starter_structure(base_dir: Optional[str] = None) -> None:
    """Create templates and sample content in base_dir (default: current directory)."""
    base_dir = base_dir or os.getcwd()
    templates_dest = os.path.join(base_dir, 'templates')
    content_dest = os.path.join(base_dir, 'content')

    for directory in (templates_dest, content_dest):
        if os.path.exists(directory):
            print(f"Directory already exists: {os.path.relpath(directory, base_dir)}")
        else:
            os.makedirs(directory)
            print(f"Created directory: {os.path.relpath(directory, base_dir)}")

    for template_file in sorted(os.listdir(PACKAGE_TEMPLATES_DIR)):
        dest_path = os.path.join(templates_dest, template_file)
        if os.path.exists(dest_path):
            print(f"Template already exists: templates/{template_file}")
        else:
            shutil.copy2(os.path.join(PACKAGE_TEMPLATES_DIR, template_file), dest_path)
            print(f"Created template: templates/{template_file}")

    samples = {
        '_index.md': SAMPLE_SETTINGS,
        'hello.md': SAMPLE_POST.format(date=date.today().isoformat()),
    }
    for filename, text in samples.items():
        path = os.path.join(content_dest, filename)
        if os.path.exists(path):
            print(f"Sample already exists: content/{filename}")
        else:
            with open(path, 'w', encoding='utf-8') as f:
                f.write(text)
            print(f"Created sample: content/{filename}")


def prepare_output_dir(output_dir: str) -> None:
    """Create output_dir and output_dir/post when missing."""
    os.makedirs(os.path.join(output_dir, 'post'), exist_ok=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='blgo',
        usage='%(prog)s [options] sources',
        description='blgo - static blog generator',
    )
    parser.add_argument('source', nargs='?',
                        help='Directory with the markdown posts and _index.md')
    parser.add_argument('--watch', action='store_true', default=None,
                        help='Rebuild when a source or template file changes')
    parser.add_argument('--serve', type=str, metavar='ADDR',
                        help='Listening address for serving the blog, e.g. localhost:8080')
    parser.add_argument('--output', type=str,
                        help='Output directory (default: generated)')
    parser.add_argument('--assets', type=str,
                        help='Assets directory, served under /assets/')
    parser.add_argument('--templates', type=str,
                        help='Directory with post.tmpl.html, index.tmpl.html and index.tmpl.xml')
    parser.add_argument('--config', type=str,
                        help='Configuration file (default: blgo.yml, blgo.yaml or blgo.json if present)')
    parser.add_argument('--log-file', dest='log_file', type=str,
                        help='Also write the full build log to this file')
    parser.add_argument('--verbose', action='store_true', default=None,
                        help='Log debug messages to the console')
    parser.add_argument('--init', type=str, choices=['yml', 'yaml', 'json'],
                        help='Create a sample configuration file, templates and content')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser


def wait_for_shutdown(generator: Blgo, settings: dict, logger: logging.Logger) -> None:
    """Run the watcher and/or the server until SIGINT or SIGTERM."""
    stop_event = threading.Event()

    def request_stop(signum, frame):
        logger.info(f"Received signal {signum}, shutting down")
        stop_event.set()

    signal.signal(signal.SIGINT, request_stop)
    signal.signal(signal.SIGTERM, request_stop)

    watcher = None
    server = None
    try:
        if settings['watch']:
            paths = list_source_files(generator.source_dir) + generator.template_paths()
            watcher = ChangeWatcher(generator.build, paths)
            watcher.start()

        if settings['serve']:
            try:
                server = create_server(settings['serve'], generator.output_dir, settings['assets'])
            except (OSError, ValueError) as e:
                logger.error(f"Cannot serve on {settings['serve']}: {e}")
                sys.exit(1)
            serve_in_background(server)

        while not stop_event.wait(timeout=1.0):
            pass
    finally:
        if server is not None:
            server.shutdown()
            server.server_close()
        if watcher is not None:
            watcher.stop()


def main(argv: Optional[List[str]] = None) -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Handle init command
    if args.init:
        try:
            config_path = BlgoSettings().create_sample_config(args.init)
            print(f"Created sample configuration file: {config_path}")
            print("\nCreating starter project structure...")
            create_starter_structure()
        except (OSError, ValueError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        print("\nRun 'blgo --serve localhost:8080 --watch' to build and preview your blog.")
        return

    # Load settings from configuration file
    settings_loader = BlgoSettings(config_file=args.config)
    try:
        settings_loader.load_settings()
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    # Command line arguments take precedence
    args_dict = {k: v for k, v in vars(args).items() if v is not None}
    final_settings = settings_loader.merge_with_args(args_dict)

    if not final_settings['source']:
        parser.print_help(sys.stderr)
        sys.exit(1)
    if not final_settings['templates']:
        print("Error: no templates directory given (use --templates)", file=sys.stderr)
        sys.exit(1)

    logger = setup_logging(
        logging.DEBUG if final_settings['verbose'] else logging.INFO,
        final_settings['log_file'],
    )
    if settings_loader.config_file_path:
        logger.info(f"Loaded configuration from: {os.path.relpath(settings_loader.config_file_path)}")

    output_dir = os.path.expanduser(final_settings['output'])
    try:
        prepare_output_dir(output_dir)
    except OSError as e:
        print(f"specified path \"{output_dir}\" for output couldn't be created: {e}", file=sys.stderr)
        sys.exit(1)

    assets_dir = final_settings['assets']
    if assets_dir and not os.path.isdir(assets_dir):
        print(f"specified path \"{assets_dir}\" for assets doesn't exist or is not a directory",
              file=sys.stderr)
        sys.exit(1)

    generator = Blgo(
        templates_dir=final_settings['templates'],
        output_dir=output_dir,
        source_dir=final_settings['source'],
        logger=logger,
    )

    try:
        generator.build()
    except BuildError as e:
        logger.error(f"Build failed: {e}")
        sys.exit(1)

    if final_settings['watch'] or final_settings['serve']:
        wait_for_shutdown(generator, final_settings, logger)


if __name__ == '__main__':
    main()
