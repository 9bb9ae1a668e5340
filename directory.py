#!/usr/bin/env python3
"""Ordered, filtered discovery of the GitLab projects in a group."""

from __future__ import annotations

from typing import Callable, List, Optional, Sequence, Tuple

from errors import ValidationError
from logging_utils import Logger
from models import RepositoryRef

# fetch_page(group, search, page, per_page) -> (items, has_more)
PageFetcher = Callable[
    [str, Optional[str], int, int], Tuple[Sequence[RepositoryRef], bool]
]

DEFAULT_LIMIT = 50
DEFAULT_PAGE_SIZE = 20


class RepositoryDirectory:
    """Lists the repositories of a group, sorted by name.

    Listing is all-or-nothing: any error raised by the page fetcher
    propagates and no partial list is returned.
    """

    def __init__(self, fetch_page: PageFetcher, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        if page_size < 1:
            raise ValidationError("page size must be at least 1")
        self._fetch_page = fetch_page
        self.page_size = page_size

    def list(
        self, group: str, prefix: Optional[str] = None, limit: int = DEFAULT_LIMIT
    ) -> List[RepositoryRef]:
        if limit < 1:
            raise ValidationError("limit must be at least 1")

        Logger.info(f"discovering projects under: {group}")
        matched: List[RepositoryRef] = []
        page = 1
        while len(matched) < limit:
            items, has_more = self._fetch_page(group, prefix, page, self.page_size)
            for ref in items:
                if prefix and not ref.name.startswith(prefix):
                    Logger.debug(f"skipping: {ref.full_name}")
                    continue
                matched.append(ref)
            if not has_more:
                break
            page += 1

        matched.sort(key=lambda ref: ref.name)
        result = matched[:limit]
        Logger.info(f"found {len(result)} projects under {group}")
        return result
