"""
Content model and loader.

A content file is a front-matter block (YAML between ``---`` lines or TOML
between ``+++`` lines) followed by a Markdown body.
"""

import os
import re
import logging
import tomllib
from dataclasses import dataclass, field
from datetime import datetime, date, timezone
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml

from .errors import ContentParseError, DuplicatePathError

RECOGNIZED_KEYS = ('title', 'author', 'date', 'description', 'tags', 'draft')

FRONT_MATTER_DELIMITERS = {
    '---': 'yaml',
    '+++': 'toml',
}

TRUE_STRINGS = {'true', 'yes', 'on', '1'}
FALSE_STRINGS = {'false', 'no', 'off', '0'}


@dataclass(frozen=True)
class FrontMatter:
    """Typed view of a content file's metadata block."""

    title: str
    date: datetime
    author: Optional[str] = None
    description: Optional[str] = None
    tags: Tuple[str, ...] = ()
    draft: bool = False
    extra: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def get(self, key, default=None):
        """Look up a recognized key or a passthrough extra by name."""
        if key in RECOGNIZED_KEYS:
            return getattr(self, key)
        return self.extra.get(key, default)

    def to_dict(self) -> Dict[str, Any]:
        data = {'title': self.title, 'date': self.date.isoformat()}
        if self.author is not None:
            data['author'] = self.author
        if self.description is not None:
            data['description'] = self.description
        data['tags'] = list(self.tags)
        data['draft'] = self.draft
        data.update(self.extra)
        return data


@dataclass(frozen=True)
class ContentItem:
    """A post or page: front-matter, Markdown body and its public path."""

    path: str
    front_matter: FrontMatter
    body: str
    source: str = ''

    @property
    def title(self):
        return self.front_matter.title

    @property
    def date(self):
        return self.front_matter.date

    @property
    def tags(self):
        return self.front_matter.tags

    @property
    def draft(self):
        return self.front_matter.draft

    @property
    def section(self):
        """First segment of the path, or '' for top-level pages."""
        return self.path.split('/', 1)[0] if '/' in self.path else ''

    @property
    def url(self):
        return f"/{self.path}/" if self.path else '/'

    def taxonomy_terms(self, plural: str) -> Tuple[str, ...]:
        """Terms this item carries for the taxonomy stored under ``plural``."""
        if plural == 'tags':
            return self.front_matter.tags
        return _parse_terms(self.front_matter.extra.get(plural), plural, self.source)


def parse_bool(value, key='draft', source=''):
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRUE_STRINGS:
            return True
        if lowered in FALSE_STRINGS:
            return False
    raise ContentParseError(source, f"'{key}' must be a boolean, got {value!r}")


def parse_date(value, source=''):
    """
    Parse a front-matter date into a timezone-aware datetime.

    Naive values are interpreted as UTC.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        parsed = None
        try:
            parsed = datetime.fromisoformat(text.replace('Z', '+00:00'))
        except ValueError:
            for fmt in ['%Y-%m-%dT%H:%M:%S', '%Y-%m-%d', '%b %d, %Y']:
                try:
                    parsed = datetime.strptime(text, fmt)
                    break
                except ValueError:
                    continue
        if parsed is None:
            raise ContentParseError(source, f"'date' is not a valid date: {value!r}")
    elif value is None:
        raise ContentParseError(source, "'date' is required")
    else:
        raise ContentParseError(source, f"'date' is not a valid date: {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_terms(value, key, source) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        raise ContentParseError(source, f"'{key}' must be a list of strings")
    terms = []
    for raw in value:
        if isinstance(raw, (dict, list)):
            raise ContentParseError(source, f"'{key}' must be a list of strings")
        term = str(raw).strip()
        if term and term not in terms:
            terms.append(term)
    return tuple(terms)


def _optional_str(metadata, key, source):
    value = metadata.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ContentParseError(source, f"'{key}' must be a string")
    return value


def build_front_matter(metadata: Dict[str, Any], source: str = '') -> FrontMatter:
    """Validate a raw metadata mapping into a FrontMatter record."""
    title = metadata.get('title')
    if not isinstance(title, str) or not title.strip():
        raise ContentParseError(source, "'title' is required and must be a string")

    extra = {k: v for k, v in metadata.items() if k not in RECOGNIZED_KEYS}

    return FrontMatter(
        title=title,
        date=parse_date(metadata.get('date'), source),
        author=_optional_str(metadata, 'author', source),
        description=_optional_str(metadata, 'description', source),
        tags=_parse_terms(metadata.get('tags'), 'tags', source),
        draft=parse_bool(metadata.get('draft'), 'draft', source),
        extra=MappingProxyType(extra),
    )


def split_front_matter(text: str, source: str = '') -> Tuple[str, str, str]:
    """
    Split raw file text into (format, metadata block, body).

    Raises:
        ContentParseError: if the file does not start with a terminated block
    """
    clean_text = text.lstrip('\ufeff')
    lines = clean_text.splitlines(keepends=True)
    if not lines or lines[0].strip() not in FRONT_MATTER_DELIMITERS:
        raise ContentParseError(source, "missing front-matter block")

    delimiter = lines[0].strip()
    for i in range(1, len(lines)):
        if lines[i].strip() == delimiter:
            block = ''.join(lines[1:i])
            body = ''.join(lines[i + 1:])
            return FRONT_MATTER_DELIMITERS[delimiter], block, body

    raise ContentParseError(source, f"unterminated front-matter block (expected closing '{delimiter}')")


def parse_front_matter(text: str, source: str = '') -> Tuple[FrontMatter, str]:
    """Parse file text into a validated FrontMatter and the Markdown body."""
    fmt, block, body = split_front_matter(text, source)
    try:
        if fmt == 'toml':
            metadata = tomllib.loads(block)
        else:
            metadata = yaml.safe_load(block)
    except (yaml.YAMLError, tomllib.TOMLDecodeError, ValueError) as e:
        raise ContentParseError(source, f"invalid {fmt.upper()} front matter: {e}") from e

    if metadata is None:
        metadata = {}
    if not isinstance(metadata, dict):
        raise ContentParseError(source, "front matter must be a mapping")

    return build_front_matter(metadata, source), body.lstrip('\n')


def serialize_front_matter(front_matter: FrontMatter) -> str:
    """Render front matter as a YAML block, delimiters included."""
    dumped = yaml.safe_dump(front_matter.to_dict(), sort_keys=False,
                            allow_unicode=True, default_flow_style=False)
    return f"---\n{dumped}---\n"


def slugify(text: str) -> str:
    text = text.lower()
    text = re.sub(r"[^\w]+", "-", text, flags=re.UNICODE)
    text = text.strip("-_").replace("_", "-")
    return text or "untitled"


class ContentLoader:
    """Discover and parse every Markdown file below a content root."""

    def __init__(self, content_dir):
        self.content_dir = content_dir
        self.logger = logging.getLogger('UnitSite.content')

    def get_markdown_files(self) -> List[str]:
        """Get all markdown files below the content root, in a stable order."""
        markdown_files = []
        for root, dirs, files in os.walk(self.content_dir):
            dirs[:] = sorted(d for d in dirs if not d.startswith('.'))
            for file in sorted(files):
                if file.endswith('.md') and not file.startswith('.'):
                    markdown_files.append(os.path.join(root, file))
        return markdown_files

    def content_path(self, file_path, front_matter: FrontMatter) -> str:
        """Derive the public path (e.g. ``post/my-title``) of a content file."""
        rel = os.path.relpath(file_path, self.content_dir)
        directory, filename = os.path.split(rel)
        stem = os.path.splitext(filename)[0]
        parts = [p for p in directory.replace(os.sep, '/').split('/') if p]
        if stem != 'index':
            parts.append(stem)

        slug = front_matter.extra.get('slug')
        if isinstance(slug, str) and slug.strip().strip('/'):
            slug = slug.strip().strip('/')
            if '/' in slug or '\\' in slug or slug in ('.', '..'):
                raise ContentParseError(file_path, f"'slug' must be a single path segment, got '{slug}'")
            if parts:
                parts[-1] = slug
            else:
                parts = [slug]
        return '/'.join(parts)

    def load_file(self, file_path) -> ContentItem:
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                text = f.read()
        except UnicodeDecodeError as e:
            raise ContentParseError(file_path, f"not valid UTF-8: {e}") from e
        except (IOError, OSError) as e:
            raise ContentParseError(file_path, f"cannot be read: {e}") from e

        front_matter, body = parse_front_matter(text, file_path)
        return ContentItem(
            path=self.content_path(file_path, front_matter),
            front_matter=front_matter,
            body=body,
            source=file_path,
        )

    def load(self) -> List[ContentItem]:
        """
        Parse every content file.

        Raises:
            ContentParseError: on the first malformed file
            DuplicatePathError: if two files resolve to the same path
        """
        if not os.path.isdir(self.content_dir):
            self.logger.warning(f"Content directory not found: {self.content_dir}")
            return []

        items = []
        seen = {}
        for file_path in self.get_markdown_files():
            item = self.load_file(file_path)
            if item.path in seen:
                raise DuplicatePathError(item.path, [seen[item.path], file_path])
            seen[item.path] = file_path
            items.append(item)
            self.logger.debug(f"Loaded {file_path} as '{item.path}'")

        self.logger.info(f"Loaded {len(items)} content files from {self.content_dir}")
        return items
