"""
Chronological listing and taxonomy index.

Both are derived views recomputed on every build from the loaded content.
"""

from collections import Counter
from typing import Dict, Iterable, List, Mapping

from .content import ContentItem, slugify


def sort_by_date(items: Iterable[ContentItem]) -> List[ContentItem]:
    """Most recent first; items sharing a date are ordered by path."""
    by_path = sorted(items, key=lambda item: item.path)
    return sorted(by_path, key=lambda item: item.date, reverse=True)


def published(items: Iterable[ContentItem], include_drafts: bool = False) -> List[ContentItem]:
    return [item for item in items if include_drafts or not item.draft]


def main_sections(items: Iterable[ContentItem], configured=()) -> List[str]:
    """
    Sections listed on the home page.

    Defaults to the section holding the most items (ties broken by name).
    """
    if configured:
        return list(configured)
    counts = Counter(item.section for item in items if item.section)
    if not counts:
        return []
    return [min(counts, key=lambda name: (-counts[name], name))]


def chronological_listing(items: Iterable[ContentItem], config) -> List[ContentItem]:
    """Published items of the main sections, most recent first."""
    visible = published(items, config.build_drafts)
    sections = main_sections(visible, config.main_sections)
    return sort_by_date(item for item in visible if item.section in sections)


def build_taxonomies(items: Iterable[ContentItem], taxonomies: Mapping[str, str],
                     include_drafts: bool = False) -> Dict[str, Dict[str, List[ContentItem]]]:
    """
    Group items by every configured taxonomy.

    Args:
        items: Loaded content items
        taxonomies: Mapping of singular name to plural key (``tag -> tags``)
        include_drafts: Keep draft items in the groups

    Returns:
        ``{plural: {term: [items, most recent first]}}`` with terms in ascending
        slug order. Every configured taxonomy is present, even when no item uses it.
        Terms sharing a slug (``Python`` and ``python``) form one group, named
        by the first spelling encountered.
    """
    visible = published(items, include_drafts)
    index = {}
    for plural in taxonomies.values():
        groups = {}
        names = {}
        for item in visible:
            for term in item.taxonomy_terms(plural):
                key = slugify(term)
                names.setdefault(key, term)
                group = groups.setdefault(key, [])
                if not group or group[-1] is not item:
                    group.append(item)
        index[plural] = {names[key]: sort_by_date(groups[key]) for key in sorted(groups)}
    return index
