from collections.abc import Callable, Mapping
from typing import Any, Protocol

from ._logging import logger, redact_cursor
from .config import (
    SKIP,
    PaginationOptions,
    QueryIdentity,
    Skip,
    check_args,
    coerce_options,
)
from .exceptions import ControllerClosedError, IllegalTransitionError
from .pagination import Page
from .projection import Dispatch, Result, make_result, merge_args
from .state import (
    Action,
    IdentityChanged,
    LoadedState,
    ResultsArrived,
    State,
    initial_state,
    reduce,
)


class Subscribe(Protocol):
    """
    The reactive subscription the controller is driven by.

    Called on every recomputation with the query reference and either the
    merged arguments or SKIP. Returns the latest snapshot for those
    arguments, or None while it is still pending.
    """

    def __call__(self, query: Any, args: "dict[str, Any] | Skip") -> Any: ...


class PaginatedQueryController:
    """
    Browses a forward-only cursor-paginated query one page at a time.

    One controller belongs to one call site. Call `use()` on every
    recomputation of that call site; it resets on any change of query,
    args or options, drives the subscription and returns the current view.

    Usage:
        client = QueryClient()
        controller = PaginatedQueryController(client.subscribe)

        result = controller.use(get_messages, {"channel": "general"}, {"initial_num_items": 10})
        if isinstance(result, Loaded) and result.load_next:
            result.load_next()
    """

    def __init__(
        self,
        subscribe: Subscribe,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self._subscribe = subscribe
        self._on_change = on_change

        self._identity: QueryIdentity | None = None
        self._state: State | None = None
        # Bumped on every transition; actions captured at an older revision are stale
        self._revision = 0
        # (subscription args, items, cursor, is_done) of the last applied snapshot
        self._last_delivery: tuple[Any, ...] | None = None
        self._closed = False

    # --- LIFECYCLE ---

    @property
    def state(self) -> State | None:
        """The current state, or None before the first `use()` call."""
        return self._state

    @property
    def identity(self) -> QueryIdentity | None:
        return self._identity

    @property
    def closed(self) -> bool:
        return self._closed

    def reset(self) -> None:
        """Discards all state; the next `use()` starts a new session."""
        logger.debug("Resetting pagination state")
        self._identity = None
        self._state = None
        self._last_delivery = None
        self._revision += 1

    def close(self) -> None:
        """Tears the controller down. Captured navigation actions become no-ops."""
        if self._closed:
            return
        self.reset()
        self._closed = True
        logger.debug("Pagination controller closed")

    def __enter__(self) -> "PaginatedQueryController":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # --- RECOMPUTATION ---

    def use(
        self,
        query: Any,
        args: "Mapping[str, Any] | Skip",
        options: "PaginationOptions | Mapping[str, Any]",
    ) -> Result:
        """
        Runs one recomputation cycle and returns the current view.

        Args:
            query: Reference to the paginated query, compared with ==
            args: Query arguments without the page window, or SKIP
            options: Window options, e.g. {"initial_num_items": 10}

        Raises:
            InvalidOptionsError: If the window size is not a positive integer
            InvalidArgumentsError: If args is not a mapping or SKIP
            ControllerClosedError: If the controller was closed
            MalformedPageError: If the subscription delivers an invalid page
        """
        if self._closed:
            raise ControllerClosedError()

        # Validate before any state exists
        window = coerce_options(options)
        checked_args = check_args(args)

        identity = QueryIdentity(query=query, args=checked_args, options=window)
        if self._state is None or identity != self._identity:
            logger.info(
                "Query identity changed, restarting pagination",
                extra={"skipped": identity.skipped, "num_items": window.initial_num_items},
            )
            self._identity = identity
            self._last_delivery = None
            self._apply(
                IdentityChanged(args=checked_args, initial_num_items=window.initial_num_items)
            )

        state = self._current()
        subscription_args = merge_args(state)
        snapshot = self._subscribe(query, subscription_args)

        if subscription_args == SKIP or snapshot is None:
            # Pending: whatever arrives next counts as new
            self._last_delivery = None
        else:
            self._deliver(subscription_args, snapshot)

        return make_result(self._current(), self._bound_dispatch(self._revision))

    def _deliver(self, subscription_args: dict[str, Any], snapshot: Any) -> None:
        page = Page.from_snapshot(snapshot)
        # Items are opaque, so they are compared with == and never encoded
        delivery = (subscription_args, list(page.page), page.continue_cursor, page.is_done)
        if delivery == self._last_delivery:
            logger.debug("Ignoring unchanged snapshot")
            return
        self._last_delivery = delivery
        self._apply(ResultsArrived(results=page))

    # --- DISPATCH ---

    def dispatch(self, action: Action) -> None:
        """
        Applies an action to the current state.

        Raises:
            IllegalTransitionError: If the action is not legal in the current state
        """
        if self._closed:
            raise ControllerClosedError()
        self._apply(action)
        # Let the host schedule a recomputation with the new subscription args
        if self._on_change is not None:
            self._on_change()

    def _bound_dispatch(self, revision: int) -> Dispatch:
        def dispatch(action: Action) -> None:
            if self._closed or revision != self._revision:
                logger.debug(
                    "Ignoring stale navigation action",
                    extra={"action": action.tag, "revision": revision},
                )
                return
            self.dispatch(action)

        return dispatch

    def _current(self) -> State:
        assert self._state is not None
        return self._state

    def _apply(self, action: Action) -> None:
        previous = self._state
        if previous is not None:
            new_state = reduce(previous, action)
        elif isinstance(action, IdentityChanged):
            new_state = initial_state(action.args, action.initial_num_items)
        else:
            raise IllegalTransitionError("Uninitialized", action.tag, "call use() first")

        self._state = new_state
        self._revision += 1

        extra: dict[str, Any] = {
            "action": action.tag,
            "from_state": previous.tag if previous is not None else None,
            "state": new_state.tag,
        }
        if isinstance(new_state, LoadedState):
            extra["page_num"] = new_state.page_num
            extra["cursor_hash"] = redact_cursor(new_state.current_cursor)
        logger.debug("Pagination transition", extra=extra)
