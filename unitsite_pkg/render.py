"""
Render pipeline: the contract handed to a renderer and the bundled
Jinja2/mistune theme renderer.
"""

import os
import re
import html
import shutil
import logging
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Sequence

import mistune
from jinja2 import (Environment, FileSystemLoader, TemplateNotFound, TemplateSyntaxError,
                    TemplateError, select_autoescape)

from .content import ContentItem, slugify
from .errors import DuplicatePathError, RenderError, SiteError, ThemeMissingError
from .pagination import Pager, paginate
from .taxonomy import build_taxonomies, chronological_listing, published

BUILTIN_THEMES_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'themes')


@dataclass(frozen=True)
class SiteIndex:
    """Everything a renderer needs besides the configuration."""

    items: Sequence[ContentItem]
    published: Sequence[ContentItem]
    listing: Sequence[ContentItem]
    listing_pages: Sequence[Pager]
    taxonomies: Dict[str, Dict[str, List[ContentItem]]]
    taxonomy_pages: Dict[str, Dict[str, List[Pager]]]
    pages: Sequence[ContentItem]


def term_url(plural, term):
    return f"/{plural}/{slugify(term)}/"


def build_index(items, config) -> SiteIndex:
    """
    Derive listings, taxonomy groups and pagination from loaded content.

    Raises:
        DuplicatePathError: if a content path or taxonomy term collides with
            another generated page
    """
    visible = published(items, config.build_drafts)
    listing = chronological_listing(items, config)
    taxonomies = build_taxonomies(items, config.taxonomies, config.build_drafts)

    claimed = {}

    def claim(url, owner):
        if url in claimed:
            raise DuplicatePathError(url.strip('/') or '/', [claimed[url], owner])
        claimed[url] = owner

    listing_pages = paginate(listing, config.paginate, '/')
    for pager in listing_pages:
        claim(pager.url, f"home page listing (page {pager.number})")
    for item in visible:
        claim(item.url, item.source)
    for plural in taxonomies:
        claim(f"/{plural}/", f"taxonomy '{plural}'")

    taxonomy_pages = {}
    for plural, groups in taxonomies.items():
        taxonomy_pages[plural] = {}
        for term, group in groups.items():
            pagers = paginate(group, config.paginate, term_url(plural, term))
            for pager in pagers:
                claim(pager.url, f"{plural} term '{term}' (page {pager.number})")
            taxonomy_pages[plural][term] = pagers

    return SiteIndex(
        items=tuple(items),
        published=tuple(visible),
        listing=tuple(listing),
        listing_pages=tuple(listing_pages),
        taxonomies=taxonomies,
        taxonomy_pages=taxonomy_pages,
        pages=tuple(sorted((i for i in visible if not i.section), key=lambda i: i.path)),
    )


class Renderer(ABC):
    """Turns a SiteIndex and SiteConfig into files below an output directory."""

    @abstractmethod
    def render(self, index: SiteIndex, config, output_dir) -> int:
        """Write the site and return the number of files written."""


class JinjaThemeRenderer(Renderer):
    """Render with a Jinja2 theme: ``themes/<name>/templates`` and ``themes/<name>/static``."""

    def __init__(self, project_dir, builtin_themes_dir=BUILTIN_THEMES_DIR):
        self.project_dir = project_dir
        self.builtin_themes_dir = builtin_themes_dir
        self.logger = logging.getLogger('UnitSite.render')
        self.files_written = 0

    def resolve_theme(self, theme):
        """Return the directory of ``theme``; project themes win over built-in ones."""
        candidates = [os.path.join(self.project_dir, 'themes', theme)]
        if self.builtin_themes_dir:
            candidates.append(os.path.join(self.builtin_themes_dir, theme))
        for candidate in candidates:
            if os.path.isdir(os.path.join(candidate, 'templates')):
                return candidate
        raise ThemeMissingError(theme, candidates)

    def create_markdown_parser(self, unsafe_html):
        """Create a Mistune markdown parser with a custom renderer."""
        class CustomRenderer(mistune.HTMLRenderer):
            def block_code(self, code, info=None):
                escaped_code = mistune.escape(code)
                lang = info.split(None, 1)[0] if info and info.strip() else ''
                if lang:
                    return f'<pre><code class="language-{mistune.escape(lang)}">{escaped_code}</code></pre>\n'
                return f'<pre><code>{escaped_code}</code></pre>\n'
        return mistune.create_markdown(
            renderer=CustomRenderer(escape=not unsafe_html),
            plugins=['table', 'task_lists', 'strikethrough']
        )

    def create_environment(self, theme_dir, config):
        search_path = [os.path.join(theme_dir, 'templates')]
        layouts_dir = os.path.join(self.project_dir, 'layouts')
        if os.path.isdir(layouts_dir):
            search_path.insert(0, layouts_dir)

        env = Environment(
            loader=FileSystemLoader(search_path),
            autoescape=select_autoescape(['html', 'xml']),
        )
        env.filters['format_date'] = format_date
        env.filters['absolute_url'] = lambda url: config.base_url + str(url).lstrip('/')
        env.globals['term_url'] = term_url
        env.globals['site'] = config
        return env

    def render(self, index, config, output_dir):
        theme_dir = self.resolve_theme(config.theme)
        env = self.create_environment(theme_dir, config)
        markdown = self.create_markdown_parser(config.unsafe_html)
        self.files_written = 0

        output_dir = os.path.abspath(output_dir)
        parent = os.path.dirname(output_dir)
        os.makedirs(parent, exist_ok=True)
        staging = tempfile.mkdtemp(prefix='.unitsite-staging-', dir=parent)
        self.logger.debug(f"Rendering into staging directory {staging}")

        try:
            self.copy_static(theme_dir, staging)
            self.render_site(env, markdown, index, config, staging)
        except SiteError:
            shutil.rmtree(staging, ignore_errors=True)
            raise
        except Exception as e:
            shutil.rmtree(staging, ignore_errors=True)
            raise RenderError(output_dir, str(e)) from e

        self.swap_output(staging, output_dir)
        return self.files_written

    def render_site(self, env, markdown, index, config, staging):
        summaries = {}
        rendered = {}
        for item in index.published:
            body_html = markdown(item.body)
            rendered[item.path] = body_html
            summaries[item.path] = item.front_matter.description or generate_excerpt(body_html)

        common = {
            'config': config,
            'menu': config.menu,
            'pages': index.pages,
            'taxonomies': index.taxonomies,
            'summary': lambda item: summaries.get(item.path, ''),
        }

        for item in index.published:
            template_names = ['single.html']
            layout = item.front_matter.extra.get('layout')
            if isinstance(layout, str) and layout:
                template_names.insert(0, f'{layout}.html')
            terms = {}
            for plural in config.taxonomies.values():
                links = {}
                for term in item.taxonomy_terms(plural):
                    links.setdefault(term_url(plural, term), term)
                terms[plural] = [(term, url) for url, term in links.items()]
            self.write_page(env, template_names, staging, item.url,
                            item=item,
                            title=item.title,
                            content=rendered[item.path],
                            author=item.front_matter.author or config.author,
                            terms=terms,
                            **common)

        for pager in index.listing_pages:
            self.write_page(env, ['list.html'], staging, pager.url,
                            title=config.title if pager.number == 1 else f'Page {pager.number}',
                            pager=pager,
                            items=pager.items,
                            **common)

        for plural, groups in index.taxonomy_pages.items():
            terms = [(term, term_url(plural, term), len(index.taxonomies[plural][term]))
                     for term in groups]
            self.write_page(env, ['terms.html'], staging, f"/{plural}/",
                            title=plural.capitalize(),
                            taxonomy=plural,
                            terms=terms,
                            **common)
            for term, pagers in groups.items():
                for pager in pagers:
                    self.write_page(env, ['term.html', 'list.html'], staging, pager.url,
                                    title=term,
                                    taxonomy=plural,
                                    term=term,
                                    pager=pager,
                                    items=pager.items,
                                    **common)

        try:
            template = env.get_template('404.html')
        except TemplateNotFound:
            self.logger.debug("Theme has no 404.html, skipping")
        else:
            self.write_file(staging, '404.html', template.render(title='Page not found', **common))

    def write_page(self, env, template_names, staging, url, **context):
        try:
            template = env.select_template(template_names)
            page_html = template.render(relative_path=relative_path(url), page_url=url, **context)
        except (TemplateNotFound, TemplateSyntaxError) as e:
            raise RenderError(url, f"template error: {e}") from e
        except TemplateError as e:
            raise RenderError(url, str(e)) from e
        self.write_file(staging, os.path.join(url.strip('/'), 'index.html'), page_html)

    def write_file(self, staging, rel_path, text):
        output_file_path = os.path.normpath(os.path.join(staging, rel_path))
        if os.path.commonpath([staging, output_file_path]) != os.path.normpath(staging):
            raise RenderError(rel_path, "target lies outside the output directory")
        os.makedirs(os.path.dirname(output_file_path), exist_ok=True)
        try:
            with open(output_file_path, 'w', encoding='utf-8') as output_file:
                output_file.write(text)
        except (IOError, OSError) as e:
            raise RenderError(rel_path, f"cannot write file: {e}") from e
        self.files_written += 1
        self.logger.debug(f"Generated HTML: {rel_path}")

    def copy_static(self, theme_dir, staging):
        """Copy theme static files, then project static files on top of them."""
        for source in (os.path.join(theme_dir, 'static'), os.path.join(self.project_dir, 'static')):
            if os.path.isdir(source):
                shutil.copytree(source, staging, dirs_exist_ok=True)
                self.logger.debug(f"Copied static files from {source}")

    def swap_output(self, staging, output_dir):
        """Replace ``output_dir`` with the fully rendered staging directory."""
        backup = None
        if os.path.exists(output_dir):
            backup = tempfile.mkdtemp(prefix='.unitsite-previous-', dir=os.path.dirname(output_dir))
            os.rmdir(backup)
            os.replace(output_dir, backup)
        os.replace(staging, output_dir)
        if backup:
            shutil.rmtree(backup, ignore_errors=True)


def relative_path(url):
    """Relative prefix from the page at ``url`` back to the site root."""
    depth = len([part for part in url.strip('/').split('/') if part])
    return '../' * depth


def format_date(value, fmt='%B %d, %Y'):
    """Format a date for display."""
    return value.strftime(fmt)


def generate_excerpt(content, words=30):
    """Generate an excerpt from rendered HTML."""
    plain_text = html.unescape(re.sub(r'<[^>]+>', '', content))
    parts = plain_text.split()
    if len(parts) > words:
        return ' '.join(parts[:words]) + '...'
    return ' '.join(parts)
