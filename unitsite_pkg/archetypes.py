"""
Scaffold new content files from archetype templates.

Archetypes live in ``<project>/archetypes/<section>.md`` with
``archetypes/default.md`` as the fallback. They are Jinja2 templates
rendered with ``title``, ``date``, ``section`` and ``config``.
"""

import os
import logging
from datetime import datetime, timezone

from jinja2 import Environment, FileSystemLoader, DictLoader, ChoiceLoader, TemplateError

from .errors import RenderError

DEFAULT_ARCHETYPE = """---
title: "{{ title }}"
date: {{ date }}
author: "{{ config.author or '' }}"
description: ""
tags: []
draft: true
---

"""

logger = logging.getLogger('UnitSite.archetypes')


def title_from_filename(filename):
    stem = os.path.splitext(os.path.basename(filename))[0]
    if stem in ('index', '_index'):
        stem = os.path.basename(os.path.dirname(filename)) or stem
    return stem.replace('-', ' ').replace('_', ' ').strip().title()


def archetype_environment(project_dir):
    archetypes_dir = os.path.join(project_dir, 'archetypes')
    return Environment(
        loader=ChoiceLoader([
            FileSystemLoader(archetypes_dir),
            DictLoader({'default.md': DEFAULT_ARCHETYPE}),
        ]),
        keep_trailing_newline=True,
    )


def new_content(project_dir, content_path, config, now=None):
    """
    Create a new content file from the matching archetype.

    Args:
        project_dir: Project root holding ``archetypes/`` and the content directory
        content_path: Path relative to the content directory, e.g. ``post/my-title.md``
        config: SiteConfig of the project
        now: Timestamp to stamp into the file (defaults to the current time)

    Returns:
        Path of the created file

    Raises:
        FileExistsError: if the target file already exists
        RenderError: if the archetype template is invalid
    """
    content_path = content_path.replace('\\', '/').lstrip('/')
    prefix = config.content_dir.rstrip('/') + '/'
    if content_path.startswith(prefix):
        content_path = content_path[len(prefix):]
    if not content_path.endswith('.md'):
        content_path += '.md'
    if '..' in content_path.split('/'):
        raise ValueError(f"Content path must stay inside the content directory: {content_path}")

    target = os.path.join(project_dir, config.content_dir, *content_path.split('/'))
    if os.path.exists(target):
        raise FileExistsError(f"Content file already exists: {target}")

    section = content_path.split('/', 1)[0] if '/' in content_path else ''
    env = archetype_environment(project_dir)
    names = [f'{section}.md', 'default.md'] if section else ['default.md']
    now = now or datetime.now(timezone.utc).astimezone()
    try:
        template = env.select_template(names)
        text = template.render(
            title=title_from_filename(content_path),
            date=now.replace(microsecond=0).isoformat(),
            section=section,
            config=config,
        )
    except TemplateError as e:
        raise RenderError(content_path, f"archetype error: {e}") from e

    os.makedirs(os.path.dirname(target), exist_ok=True)
    with open(target, 'w', encoding='utf-8') as f:
        f.write(text)
    logger.info(f"Created {target} from archetype '{template.name}'")
    return target
