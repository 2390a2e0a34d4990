"""Tests for the chronological listing and the taxonomy index."""

import os
import dataclasses
from datetime import datetime, timedelta, timezone

import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from unitsite_pkg.taxonomy import (build_taxonomies, chronological_listing, main_sections,
                                   sort_by_date)

UTC = timezone.utc


class TestSortByDate:
    """Test cases for sort_by_date."""

    def test_most_recent_first(self, make_item):
        """Test items are ordered by date descending."""
        old = make_item('post/old', date=datetime(2022, 1, 1, tzinfo=UTC))
        new = make_item('post/new', date=datetime(2023, 1, 1, tzinfo=UTC))

        assert sort_by_date([old, new]) == [new, old]

    def test_ties_broken_by_path(self, make_item):
        """Test equal dates fall back to ascending path."""
        same = datetime(2023, 1, 1, tzinfo=UTC)
        b = make_item('post/b', date=same)
        a = make_item('post/a', date=same)
        c = make_item('post/c', date=same)

        assert [i.path for i in sort_by_date([b, c, a])] == ['post/a', 'post/b', 'post/c']

    def test_mixed_offsets_compare_as_instants(self, make_item):
        """Test dates in different time zones are compared by instant."""
        berlin = timezone(timedelta(hours=2))
        earlier = make_item('post/earlier', date=datetime(2023, 1, 1, 11, tzinfo=berlin))  # 09:00 UTC
        later = make_item('post/later', date=datetime(2023, 1, 1, 10, tzinfo=UTC))

        assert sort_by_date([earlier, later]) == [later, earlier]


class TestChronologicalListing:
    """Test cases for chronological_listing."""

    def test_drafts_excluded(self, make_item, site_config):
        """Test drafts never appear in the production listing."""
        items = [
            make_item('post/a', date=datetime(2023, 1, 1, tzinfo=UTC)),
            make_item('post/draft', date=datetime(2023, 6, 1, tzinfo=UTC), draft=True),
        ]

        listing = chronological_listing(items, site_config)

        assert [i.path for i in listing] == ['post/a']
        assert all(not i.draft for i in listing)

    def test_drafts_included_when_building_drafts(self, make_item, site_config):
        """Test build_drafts keeps draft items."""
        items = [make_item('post/a'), make_item('post/draft', draft=True)]
        config = dataclasses.replace(site_config, build_drafts=True)

        assert len(chronological_listing(items, config)) == 2

    def test_only_main_sections_listed(self, make_item, site_config):
        """Test root pages stay out of the listing."""
        items = [make_item('post/a'), make_item('post/b'), make_item('about'), make_item('notes/x')]

        listing = chronological_listing(items, site_config)

        assert [i.path for i in listing] == ['post/a', 'post/b']

    def test_configured_main_sections(self, make_item, site_config):
        """Test params.mainSections overrides the default."""
        items = [make_item('post/a'), make_item('post/b'), make_item('notes/x')]
        config = dataclasses.replace(site_config, main_sections=('notes', 'post'))

        assert len(chronological_listing(items, config)) == 3

    def test_untagged_items_are_listed(self, make_item, site_config):
        """Test an item with no tags still appears in the listing."""
        items = [make_item('post/untagged', tags=())]

        assert [i.path for i in chronological_listing(items, site_config)] == ['post/untagged']


def test_main_sections_default(make_item):
    """Test the largest section becomes the main section."""
    items = [make_item('post/a'), make_item('post/b'), make_item('notes/a'), make_item('about')]

    assert main_sections(items) == ['post']
    assert main_sections([make_item('b/x'), make_item('a/x')]) == ['a']
    assert main_sections([make_item('about')]) == []


class TestBuildTaxonomies:
    """Test cases for build_taxonomies."""

    def test_groups_by_tag_sorted_by_date(self, make_item):
        """Test each term lists its items most recent first."""
        a = make_item('post/a', date=datetime(2023, 1, 1, tzinfo=UTC), tags=['python', 'web'])
        b = make_item('post/b', date=datetime(2023, 3, 1, tzinfo=UTC), tags=['python'])
        c = make_item('post/c', date=datetime(2023, 2, 1, tzinfo=UTC), tags=['web'])

        index = build_taxonomies([a, b, c], {'tag': 'tags'})

        assert list(index) == ['tags']
        assert list(index['tags']) == ['python', 'web']
        assert index['tags']['python'] == [b, a]
        assert index['tags']['web'] == [c, a]

    def test_drafts_excluded(self, make_item):
        """Test drafts appear in no taxonomy group."""
        a = make_item('post/a', tags=['python'])
        d = make_item('post/d', tags=['python', 'secret'], draft=True)

        index = build_taxonomies([a, d], {'tag': 'tags'})

        assert index['tags'] == {'python': [a]}
        assert 'secret' not in index['tags']

    def test_drafts_included_on_request(self, make_item):
        """Test include_drafts keeps draft items."""
        d = make_item('post/d', tags=['secret'], draft=True)

        index = build_taxonomies([d], {'tag': 'tags'}, include_drafts=True)

        assert index['tags'] == {'secret': [d]}

    def test_untagged_items_in_no_group(self, make_item):
        """Test items with zero tags participate in no group."""
        index = build_taxonomies([make_item('post/a')], {'tag': 'tags'})

        assert index == {'tags': {}}

    def test_other_taxonomies_use_extra_keys(self, make_item):
        """Test non-tag taxonomies read their plural key from the front matter."""
        a = make_item('post/a', categories=['dev', 'jvm'])
        b = make_item('post/b', categories='dev')

        index = build_taxonomies([a, b], {'tag': 'tags', 'category': 'categories'})

        assert index['tags'] == {}
        assert [i.path for i in index['categories']['dev']] == ['post/a', 'post/b']
        assert index['categories']['jvm'] == [a]

    def test_tie_broken_by_path(self, make_item):
        """Test equal dates inside a group are ordered by path."""
        z = make_item('post/z', tags=['t'])
        a = make_item('post/a', tags=['t'])

        index = build_taxonomies([z, a], {'tag': 'tags'})

        assert index['tags']['t'] == [a, z]

    def test_terms_sharing_a_slug_merge(self, make_item):
        """Test spellings of one term form a single group named by the first seen."""
        a = make_item('post/a', tags=['Python'])
        b = make_item('post/b', tags=['python'])
        c = make_item('post/c', tags=['Go', 'go'])

        index = build_taxonomies([a, b, c], {'tag': 'tags'})

        assert list(index['tags']) == ['Go', 'Python']
        assert index['tags']['Python'] == [a, b]
        assert index['tags']['Go'] == [c]
