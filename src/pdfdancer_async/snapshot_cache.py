"""
Per-client snapshot cache.

Holds the last fetched document snapshot, per-page snapshots and the derived
page list. Entries are only ever dropped as a whole by `invalidate()`.
"""

import logging
from typing import Optional, Dict, List

from .exceptions import ValidationException
from .models import DocumentSnapshot, PageSnapshot, PageRef
from .parsing import parse_document_snapshot, parse_page_snapshot
from .session import Session

logger = logging.getLogger(__name__)


class SnapshotCache:
    """
    Lazily fetched, in-memory snapshot state owned by one client instance.

    Page requests resolve in order: page cache, cached document snapshot
    (backfilling the page cache), then a page fetch. Document requests only
    consult and populate the document cache.
    """

    def __init__(self, session: Session):
        self._session = session
        self._document_snapshot: Optional[DocumentSnapshot] = None
        self._page_snapshots: Dict[int, PageSnapshot] = {}
        self._page_refs: Optional[List[PageRef]] = None

    @property
    def has_document_snapshot(self) -> bool:
        return self._document_snapshot is not None

    def cached_page_indexes(self) -> List[int]:
        return sorted(self._page_snapshots)

    async def fetch_document_snapshot(self, types: Optional[str] = None) -> DocumentSnapshot:
        """
        Fetch a fresh document snapshot without touching the cache.

        Args:
            types: Optional comma-separated object types to include (e.g. "PARAGRAPH,IMAGE")
        """
        params = {'types': types} if types else None
        response = await self._session.request('GET', '/pdf/document/snapshot', params=params)
        return parse_document_snapshot(response.json())

    async def fetch_page_snapshot(self, page_index: int, types: Optional[str] = None) -> PageSnapshot:
        """
        Fetch a fresh page snapshot without touching the cache.
        """
        self._validate_page_index(page_index)
        params = {'types': types} if types else None
        response = await self._session.request('GET', f'/pdf/page/{page_index}/snapshot', params=params)
        return parse_page_snapshot(response.json(), page_index)

    async def get_document_snapshot(self, force_refresh: bool = False) -> DocumentSnapshot:
        if self._document_snapshot is None or force_refresh:
            logger.debug("Fetching document snapshot (force_refresh=%s)", force_refresh)
            document_snapshot = await self.fetch_document_snapshot()
            if force_refresh:
                # page entries belong to the previous generation
                self._page_snapshots.clear()
            self._document_snapshot = document_snapshot
            self._page_refs = None
        return self._document_snapshot

    async def get_page_snapshot(self, page_index: int, force_refresh: bool = False) -> PageSnapshot:
        self._validate_page_index(page_index)

        if not force_refresh:
            cached = self._page_snapshots.get(page_index)
            if cached is not None:
                return cached

            if self._document_snapshot is not None:
                page_snapshot = self._document_snapshot.get_page_snapshot(page_index)
                if page_snapshot is not None:
                    self._page_snapshots[page_index] = page_snapshot
                    return page_snapshot

        logger.debug("Fetching snapshot for page %d (force_refresh=%s)", page_index, force_refresh)
        page_snapshot = await self.fetch_page_snapshot(page_index)
        self._page_snapshots[page_index] = page_snapshot
        return page_snapshot

    async def get_page_refs(self, force_refresh: bool = False) -> List[PageRef]:
        """Page references for the whole document, derived from the document snapshot."""
        if self._page_refs is None or force_refresh:
            snapshot = await self.get_document_snapshot(force_refresh)
            self._page_refs = [page.page_ref for page in snapshot.pages]
        return self._page_refs

    def invalidate(self) -> None:
        """
        Drop the document snapshot, every page snapshot and the page list.
        """
        logger.debug("Invalidating snapshot cache")
        self._document_snapshot = None
        self._page_snapshots.clear()
        self._page_refs = None

    @staticmethod
    def _validate_page_index(page_index: int) -> None:
        if page_index is None or not isinstance(page_index, int) or page_index < 0:
            raise ValidationException(f"Page index must be >= 0, got {page_index}")
