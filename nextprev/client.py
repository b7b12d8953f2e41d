"""
A minimal synchronous subscription client.

Query references are plain callables taking the query arguments as
keyword arguments, including `pagination_opts`, and returning a page
snapshot. The client keeps the latest snapshot of each query for the args
it was last subscribed with, and hands it back on every recomputation
until it is invalidated or the query is subscribed with other args.
"""

from collections.abc import Callable
from typing import Any

from ._logging import logger
from .config import SKIP, Skip, canonical_json


class QueryClient:
    """
    Implements the `subscribe` contract for a PaginatedQueryController.

    Usage:
        def get_messages(channel, pagination_opts):
            ...
            return {"page": items, "continue_cursor": cursor, "is_done": done}

        client = QueryClient()
        controller = PaginatedQueryController(client.subscribe)
        controller.use(get_messages, {"channel": "general"}, {"initial_num_items": 10})

        # After the underlying data changed
        client.invalidate(get_messages)
    """

    def __init__(self) -> None:
        # (query, canonical args) -> latest snapshot; one entry per query
        self._results: dict[tuple[Any, str], Any] = {}
        self.fetch_count = 0

    def subscribe(self, query: Callable[..., Any], args: "dict[str, Any] | Skip") -> Any:
        """Returns the latest snapshot for the arguments, fetching it on first use."""
        if args == SKIP:
            return None

        key = (query, canonical_json(args))
        if key not in self._results:
            # Only the page currently looked at is kept; going back refetches
            for stale in [k for k in self._results if k[0] == query]:
                del self._results[stale]
            logger.debug(
                "Fetching query result",
                extra={"query": getattr(query, "__name__", repr(query))},
            )
            self._results[key] = query(**args)
            self.fetch_count += 1
        return self._results[key]

    def invalidate(self, query: Callable[..., Any] | None = None) -> None:
        """
        Drops cached snapshots so the next recomputation fetches fresh data.

        Args:
            query: Only drop snapshots of this query; all snapshots when None
        """
        if query is None:
            self._results.clear()
            return
        for key in [k for k in self._results if k[0] == query]:
            del self._results[key]
