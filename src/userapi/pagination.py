"""Offset pagination for upload listings.

Parsing and link construction are pure functions over plain values so that the
routing layer only has to feed in the raw query mapping and the store result.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from urllib.parse import quote

from userapi.errors import PageRequestError

if TYPE_CHECKING:
    from userapi.queries import UploadPage

DEFAULT_PAGE_SIZE = 25
MAX_PAGE_SIZE = 1000
MAX_PAGE_OFFSET = 1000
DEFAULT_SORT_BY = 'Date'
DEFAULT_SORT_ORDER = 'Desc'

_INT_RE = re.compile(r'[+-]?\d+')


@dataclass(frozen=True)
class PageRequest:
    """Validated pagination and filter parameters for a single listing call."""

    size: int = DEFAULT_PAGE_SIZE
    offset: int = 0
    before: str | None = None  # canonical UTC timestamp
    after: str | None = None
    sort_by: str = DEFAULT_SORT_BY
    sort_order: str = DEFAULT_SORT_ORDER


@dataclass(frozen=True)
class PageLink:
    offset: int
    size: int


@dataclass(frozen=True)
class PageLinks:
    next: PageLink | None = None
    prev: PageLink | None = None


def _parse_int(raw: str) -> int | None:
    match = _INT_RE.fullmatch(raw.strip())
    return int(match.group()) if match else None


def canonical_timestamp(raw: str) -> str | None:
    """Parse an ISO-8601 date or datetime, returning it as UTC with millisecond precision.

    Naive values are taken to be UTC. Returns None when the value does not parse.
    """
    try:
        parsed = datetime.fromisoformat(raw.strip())
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        parsed = parsed.astimezone(UTC)
    except (ValueError, OverflowError):
        # OverflowError: an offset pushes the instant outside year 1..9999
        return None
    return parsed.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def parse_page_request(params: Mapping[str, str]) -> PageRequest:
    """Validate raw query parameters into a PageRequest.

    Checks run in a fixed order (size, offset, before, after) and the first
    failure raises PageRequestError.
    """
    size = DEFAULT_PAGE_SIZE
    if 'size' in params:
        parsed_size = _parse_int(params['size'])
        if parsed_size is None or parsed_size <= 0 or parsed_size > MAX_PAGE_SIZE:
            raise PageRequestError('invalid page size')
        size = parsed_size

    offset = 0
    if 'offset' in params:
        parsed_offset = _parse_int(params['offset'])
        if parsed_offset is None or parsed_offset < 0 or parsed_offset > MAX_PAGE_OFFSET:
            raise PageRequestError('invalid page offset')
        offset = parsed_offset

    before = None
    if 'before' in params:
        before = canonical_timestamp(params['before'])
        if before is None:
            raise PageRequestError('invalid before date')

    after = None
    if 'after' in params:
        after = canonical_timestamp(params['after'])
        if after is None:
            raise PageRequestError('invalid after date')

    return PageRequest(
        size=size,
        offset=offset,
        before=before,
        after=after,
        sort_by=params.get('sortBy') or DEFAULT_SORT_BY,
        sort_order=params.get('sortOrder') or DEFAULT_SORT_ORDER,
    )


def build_page_links(request: PageRequest, returned: int, count: int) -> PageLinks:
    """Work out which neighbouring pages exist for a result of `returned` rows out of `count`."""
    next_link = None
    if request.offset + returned < count:
        next_link = PageLink(offset=request.offset + request.size, size=request.size)

    prev_link = None
    if request.offset:
        prev_link = PageLink(offset=max(request.offset - request.size, 0), size=request.size)

    return PageLinks(next=next_link, prev=prev_link)


def format_link(path: str, link: PageLink, rel: str) -> str:
    return f'<{path}?size={link.size}&offset={quote(str(link.offset))}>; rel="{rel}"'


def page_headers(path: str, request: PageRequest, page: UploadPage) -> dict[str, str]:
    """Response headers describing the page: totals plus optional navigation links."""
    headers = {
        'Count': str(page.count),
        'Size': str(request.size),
        'Offset': str(request.offset),
    }
    links = build_page_links(request, len(page.uploads), page.count)
    if links.next:
        headers['Next_link'] = format_link(path, links.next, 'next')
    if links.prev:
        headers['Prev_link'] = format_link(path, links.prev, 'prev')
    return headers
