#!/usr/bin/env python3
"""
Command-line interface for unitsite - static site generator.
"""

import os
import sys
import argparse
import functools
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from typing import List, Optional

from . import __version__
from .archetypes import new_content
from .core import UnitSite
from .errors import SiteError
from .settings import SiteSettings

SAMPLE_ARCHETYPE = """---
title: "{{ title }}"
date: {{ date }}
author: "{{ config.author or '' }}"
description: ""
tags: []
draft: true
---

"""

SAMPLE_POST = """---
title: "Hello, World"
date: 2024-01-01T09:00:00+01:00
description: "The first post on this blog."
tags:
  - meta
draft: false
---

This is the first post. Edit it in `content/post/hello-world.md`, or scaffold
another one with:

```sh
unitsite new post/my-next-post.md
```
"""

SAMPLE_ABOUT = """---
title: "About"
date: 2024-01-01T09:00:00+01:00
description: "About this blog."
---

Simply spreading some dev tips.
"""


def create_starter_structure(project_dir: str) -> None:
    """Create content, static and archetype directories with sample files."""
    directories = [
        'content/post',
        'archetypes',
        'static',
        'layouts',
    ]

    for directory in directories:
        dir_path = os.path.join(project_dir, directory)
        if os.path.exists(dir_path):
            print(f"Directory already exists: {directory}")
        else:
            os.makedirs(dir_path, exist_ok=True)
            print(f"Created directory: {directory}")

    files = [
        ('archetypes/default.md', SAMPLE_ARCHETYPE),
        ('content/post/hello-world.md', SAMPLE_POST),
        ('content/about.md', SAMPLE_ABOUT),
    ]
    for rel_path, text in files:
        path = os.path.join(project_dir, *rel_path.split('/'))
        if os.path.exists(path):
            print(f"File already exists: {rel_path}")
        else:
            with open(path, 'w', encoding='utf-8') as f:
                f.write(text)
            print(f"Created file: {rel_path}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='unitsite', description='unitsite - Static Site Generator')
    parser.add_argument('--project', type=str, default='.',
                        help='Project directory holding config.toml (default: current directory)')
    parser.add_argument('--log-dir', type=str,
                        help='Write a detailed build log to this directory')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    subparsers = parser.add_subparsers(dest='command')

    build = subparsers.add_parser('build', help='Build the site into the publish directory')
    build.add_argument('--output', type=str, help='Output directory for the generated site')
    build.add_argument('--build-drafts', '-D', action='store_true', default=None,
                       help='Include content marked as draft')
    build.add_argument('--base-url', type=str, help='Override baseURL from the configuration')
    build.add_argument('--paginate', type=int, help='Number of posts per listing page')

    new = subparsers.add_parser('new', help='Create a new content file from an archetype')
    new.add_argument('path', help="Path below the content directory, e.g. 'post/my-title.md'")

    serve = subparsers.add_parser('serve', help='Build the site and serve it locally')
    serve.add_argument('--port', type=int, default=1313, help='Port to listen on')
    serve.add_argument('--bind', type=str, default='127.0.0.1', help='Interface to bind to')
    serve.add_argument('--no-drafts', action='store_true', help='Exclude drafts from the preview')
    serve.add_argument('--output', type=str, help='Output directory for the generated site')

    init = subparsers.add_parser('init', help='Create a sample configuration and starter structure')
    init.add_argument('--force', action='store_true', help='Overwrite an existing config.toml')

    return parser


def run_build(args) -> UnitSite:
    settings_loader = SiteSettings(args.project)
    overrides = {
        'baseURL': getattr(args, 'base_url', None),
        'paginate': getattr(args, 'paginate', None),
    }
    config = settings_loader.load_config(overrides)

    build_drafts = getattr(args, 'build_drafts', None)
    if args.command == 'serve':
        build_drafts = not args.no_drafts

    generator = UnitSite(
        project_dir=args.project,
        config=config,
        output_dir=args.output,
        build_drafts=build_drafts,
        log_dir=args.log_dir,
    )
    generator.build()
    return generator


def serve(directory: str, bind: str, port: int) -> None:
    handler = functools.partial(SimpleHTTPRequestHandler, directory=directory)
    with ThreadingHTTPServer((bind, port), handler) as httpd:
        print(f"Serving {directory} at http://{bind}:{port}/ (press Ctrl+C to stop)")
        try:
            httpd.serve_forever()
        except KeyboardInterrupt:
            print("\nStopped.")


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    try:
        if args.command == 'init':
            settings_loader = SiteSettings(args.project)
            config_path = settings_loader.create_sample_config(force=args.force)
            print(f"Created sample configuration file: {config_path}")
            print("\nCreating starter project structure...")
            create_starter_structure(args.project)
            print("\nYour new site is ready! Run 'unitsite build' to generate it.")
            return 0

        if args.command == 'new':
            config = SiteSettings(args.project).load_config()
            path = new_content(args.project, args.path, config)
            print(f"Created {path}")
            return 0

        generator = run_build(args)
        if args.command == 'serve':
            serve(generator.output_dir, args.bind, args.port)
        return 0

    except (SiteError, FileExistsError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
