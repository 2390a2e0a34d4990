"""Test configuration and fixtures for unitsite tests."""

import pytest
import tempfile
import shutil
import os
from pathlib import Path
from datetime import datetime, timezone

import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from unitsite_pkg.content import ContentItem, FrontMatter
from unitsite_pkg.settings import SiteConfig

CONFIG_TOML = """baseURL = 'https://example.com/'
languageCode = 'en'
title = 'Test Blog'
theme = 'paper'
author = 'Test Author'
paginate = 10

[menu]
  [[menu.main]]
    identifier = "about"
    name = "About"
    url = "/about/"
    weight = 10

[taxonomies]
tag = "tags"
"""


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def write_file():
    """Write a UTF-8 file, creating parent directories."""
    def _write(path, text):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding='utf-8')
        return str(path)
    return _write


@pytest.fixture
def project_dir(temp_dir, write_file):
    """Create a small project: config, two posts, a draft and an about page."""
    project = Path(temp_dir) / 'site'
    write_file(project / 'config.toml', CONFIG_TOML)

    write_file(project / 'content' / 'post' / 'hello.md', """---
title: Hello
author: Jane Doe
date: 2023-01-01T10:00:00+01:00
description: The first post
tags: [python, web]
---

# Hello

Some text with <kbd>Ctrl</kbd>.
""")
    write_file(project / 'content' / 'post' / 'second.md', """---
title: Second
date: 2023-02-01
tags:
  - python
---

Second post.
""")
    write_file(project / 'content' / 'post' / 'unfinished.md', """---
title: Unfinished
date: 2023-03-01
tags: [drafts-only]
draft: true
---

Not ready.
""")
    write_file(project / 'content' / 'about.md', """---
title: About
date: 2023-01-01
---

About this blog.
""")
    return str(project)


@pytest.fixture
def site_config():
    """A minimal validated configuration."""
    return SiteConfig(base_url='https://example.com/', title='Test Blog', theme='paper', paginate=10)


@pytest.fixture
def make_item():
    """Build a ContentItem without touching the filesystem."""
    def _make(path, date=datetime(2023, 1, 1, tzinfo=timezone.utc), tags=(), draft=False, **extra):
        front_matter = FrontMatter(title=path.rsplit('/', 1)[-1].title(), date=date,
                                   tags=tuple(tags), draft=draft, extra=extra)
        return ContentItem(path=path, front_matter=front_matter, body='Body', source=f'{path}.md')
    return _make
