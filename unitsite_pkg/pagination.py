"""
Split ordered content into listing pages.
"""

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .content import ContentItem


@dataclass(frozen=True)
class Pager:
    """One page of a paginated listing."""

    number: int
    items: Sequence[ContentItem]
    total_pages: int
    total_items: int
    base_url: str = '/'

    @property
    def url(self):
        return page_url(self.base_url, self.number)

    @property
    def has_previous(self):
        return self.number > 1

    @property
    def has_next(self):
        return self.number < self.total_pages

    @property
    def previous_url(self) -> Optional[str]:
        return page_url(self.base_url, self.number - 1) if self.has_previous else None

    @property
    def next_url(self) -> Optional[str]:
        return page_url(self.base_url, self.number + 1) if self.has_next else None

    @property
    def page_numbers(self):
        return page_numbers(self.number, self.total_pages)


def page_url(base_url, number):
    """Page 1 lives at ``base_url``, page n at ``base_url/page/n/``."""
    if not base_url.endswith('/'):
        base_url += '/'
    if number <= 1:
        return base_url
    return f"{base_url}page/{number}/"


def paginate(items: Sequence[ContentItem], per_page: int, base_url: str = '/') -> List[Pager]:
    """
    Split ``items`` into pages of at most ``per_page`` items.

    An empty sequence yields a single empty page.
    """
    if isinstance(per_page, bool) or not isinstance(per_page, int) or per_page <= 0:
        raise ValueError(f"per_page must be a positive integer, got {per_page!r}")

    items = list(items)
    total_items = len(items)
    total_pages = max(1, math.ceil(total_items / per_page))

    pagers = []
    for number in range(1, total_pages + 1):
        start_idx = (number - 1) * per_page
        end_idx = start_idx + per_page
        pagers.append(Pager(
            number=number,
            items=tuple(items[start_idx:end_idx]),
            total_pages=total_pages,
            total_items=total_items,
            base_url=base_url,
        ))
    return pagers


def page_numbers(current_page, total_pages):
    """
    Returns a list of page numbers (or ellipses) to display in pagination.
    Always shows page 1 and total_pages.
    Shows two pages before and after the current page.
    Inserts '...' when there is a gap.
    """
    delta = 2  # how many pages to show before and after current page
    links = [1]

    start = max(current_page - delta, 2)
    end = min(current_page + delta, total_pages - 1)

    if start > 2:
        links.append('...')

    links.extend(range(start, end + 1))

    if end < total_pages - 1:
        links.append('...')

    if total_pages > 1:
        links.append(total_pages)

    return links
