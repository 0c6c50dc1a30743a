"""Activity feed pagination: follow ``next`` cursors and gather every page."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from typing import TYPE_CHECKING, Any, Callable, List, Optional
from urllib.parse import urlsplit

from ..config import FEED_MAX_PAGES
from ..errors import ResponseParseError
from ..models import CallOptions
from .scheduler import deliver

if TYPE_CHECKING:  # pragma: no cover
    from ..client import HealthGraphClient

__all__ = ["FeedPaginator", "next_page_query"]

LOGGER = logging.getLogger(__name__)

Callback = Callable[[Optional[Exception], Any], Any]


def next_page_query(next_url: str) -> str:
    """Return the query-string portion of a feed ``next`` cursor."""

    return urlsplit(str(next_url)).query


class FeedPaginator:
    """Drive page fetches for one paginated feed call.

    Items are kept oldest page first. Each page is requested only after the
    previous one completed, so completions for one chain never overlap. When
    a page completes synchronously (inside ``api_call``) the next fetch is
    issued by the loop in ``_run`` rather than by nesting another call.
    """

    def __init__(
        self,
        client: "HealthGraphClient",
        options: CallOptions,
        callback: Callback | None,
        future: "Future[Any]",
    ) -> None:
        self._client = client
        self._options = options
        self._callback = callback
        self._future = future
        if options.items is None:
            options.items = []
        # Shared with options so every page extends the same list
        self._items: List[Any] = options.items
        max_pages = options.max_pages
        self._max_pages = FEED_MAX_PAGES if max_pages is None else max_pages
        self._pages = 0
        self._lock = threading.Lock()
        self._in_call = False
        self._again = False

    @property
    def items(self) -> List[Any]:
        return self._items

    def start(self) -> None:
        self._run()

    def _run(self) -> None:
        while True:
            with self._lock:
                self._in_call = True
                self._again = False
            self._pages += 1
            self._client.api_call(self._options, self._on_page)
            with self._lock:
                self._in_call = False
                again = self._again
            if not again:
                return

    def _on_page(self, error: Optional[Exception], data: Any) -> None:
        if error is not None:
            LOGGER.warning("Activity feed page %s failed: %s", self._pages, error)
            self._finish(error, None)
            return
        if not isinstance(data, dict) or data.get("items") is None:
            # 304 Not Modified or no content
            self._finish(None, [])
            return
        page_items = data["items"]
        if not isinstance(page_items, list):
            self._finish(
                ResponseParseError(
                    f"Activity feed items is not a list: {type(page_items).__name__}"
                ),
                None,
            )
            return
        items = self.items
        items.extend(page_items)
        LOGGER.debug(
            "Activity feed page %s: %s items (total %s)",
            self._pages,
            len(page_items),
            len(items),
        )

        next_url = data.get("next")
        if not next_url:
            self._finish(None, {"items": items, "size": len(items)})
            return
        query = next_page_query(next_url)
        if not query or query == self._options.params:
            LOGGER.warning(
                "Activity feed cursor %r does not advance; stopping after %s pages",
                next_url,
                self._pages,
            )
            self._finish(None, {"items": items, "size": len(items)})
            return
        if self._max_pages and self._pages >= self._max_pages:
            LOGGER.info(
                "Activity feed reached max_pages=%s; stopping with %s items",
                self._max_pages,
                len(items),
            )
            self._finish(None, {"items": items, "size": len(items)})
            return

        self._options.params = query
        with self._lock:
            if self._in_call:
                self._again = True
                return
        self._run()

    def _finish(self, error: Optional[Exception], result: Any) -> None:
        deliver(self._future, self._callback, error, result)
