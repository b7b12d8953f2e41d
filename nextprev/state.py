"""
Pagination state machine.

The lifecycle of one browsing session is a closed set of five states.
`reduce` is the only way to move between them; it is pure and raises
IllegalTransitionError for every (state, action) pair it does not accept.

    Skipped <-----------------------------+
                                          | IdentityChanged (from any state)
    LoadingInitial --ResultsArrived--> Loaded <--ResultsArrived-- (refresh)
                                        |  ^
                    NextPageRequested   |  |  ResultsArrived
                    PrevPageRequested   v  |
                              LoadingNext / LoadingPrev
"""

from dataclasses import dataclass, field, replace
from typing import Any, ClassVar, Union

from .config import SKIP, Skip
from .exceptions import IllegalTransitionError
from .pagination import Cursor, Page

# --- STATES ---


@dataclass(frozen=True)
class SkippedState:
    """The caller disabled the query; nothing is subscribed."""

    tag: ClassVar[str] = "Skipped"


@dataclass(frozen=True)
class LoadingInitialState:
    """Waiting for the first page of a new session."""

    tag: ClassVar[str] = "LoadingInitialResults"

    args: dict[str, Any]
    initial_num_items: int


@dataclass(frozen=True)
class LoadingNextState:
    """Waiting for the page that starts at `loading_cursor`, moving forward."""

    tag: ClassVar[str] = "LoadingNextResults"

    args: dict[str, Any]
    initial_num_items: int
    loading_cursor: Cursor
    prev_cursors: tuple[Cursor, ...] = ()


@dataclass(frozen=True)
class LoadingPrevState:
    """Waiting for the page that starts at `loading_cursor`, moving backward."""

    tag: ClassVar[str] = "LoadingPrevResults"

    args: dict[str, Any]
    initial_num_items: int
    loading_cursor: Cursor
    prev_cursors: tuple[Cursor, ...] = ()


@dataclass(frozen=True)
class LoadedState:
    """
    A page is displayed.

    Attributes:
        current_results: The latest snapshot of the displayed page
        current_cursor: Cursor that produced the page (None for the first page)
        prev_cursors: Start cursors of earlier pages, oldest first
        next_cursor: Cursor of the following page (None at the end)
    """

    tag: ClassVar[str] = "Loaded"

    args: dict[str, Any]
    initial_num_items: int
    current_results: Page[Any]
    current_cursor: Cursor = None
    prev_cursors: tuple[Cursor, ...] = ()
    next_cursor: Cursor = None

    @property
    def page_num(self) -> int:
        return 1 + len(self.prev_cursors) + (1 if self.current_cursor is not None else 0)

    @property
    def can_load_next(self) -> bool:
        return self.next_cursor is not None

    @property
    def can_load_prev(self) -> bool:
        return len(self.prev_cursors) > 0 or self.current_cursor is not None


State = Union[SkippedState, LoadingInitialState, LoadingNextState, LoadingPrevState, LoadedState]


# --- ACTIONS ---


@dataclass(frozen=True)
class IdentityChanged:
    """The caller switched to a different query, args or options."""

    tag: ClassVar[str] = "IdentityChanged"

    args: "dict[str, Any] | Skip"
    initial_num_items: int


@dataclass(frozen=True)
class NextPageRequested:
    tag: ClassVar[str] = "NextPageRequested"


@dataclass(frozen=True)
class PrevPageRequested:
    tag: ClassVar[str] = "PrevPageRequested"


@dataclass(frozen=True)
class ResultsArrived:
    """The subscription delivered a snapshot for the current arguments."""

    tag: ClassVar[str] = "ResultsArrived"

    results: Page[Any] = field(repr=False)

    @property
    def next_cursor(self) -> Cursor:
        return self.results.next_cursor


Action = Union[IdentityChanged, NextPageRequested, PrevPageRequested, ResultsArrived]


# --- REDUCER ---


def initial_state(args: "dict[str, Any] | Skip", initial_num_items: int) -> State:
    """Returns the starting state for a new session."""
    if args == SKIP:
        return SkippedState()
    return LoadingInitialState(args=args, initial_num_items=initial_num_items)


def reduce(state: State, action: Action) -> State:
    """
    Applies an action to a state and returns the next state.

    Raises:
        IllegalTransitionError: If the action is not accepted in this state
    """
    if isinstance(action, IdentityChanged):
        # Full reset: no history survives a change of identity
        return initial_state(action.args, action.initial_num_items)

    if isinstance(action, NextPageRequested):
        if not isinstance(state, LoadedState):
            raise IllegalTransitionError(
                state.tag, action.tag, "the current page is not loaded"
            )
        if state.next_cursor is None:
            raise IllegalTransitionError(state.tag, action.tag, "already at the last page")

        prev_cursors = state.prev_cursors
        if state.current_cursor is not None:
            prev_cursors = (*prev_cursors, state.current_cursor)
        return LoadingNextState(
            args=state.args,
            initial_num_items=state.initial_num_items,
            loading_cursor=state.next_cursor,
            prev_cursors=prev_cursors,
        )

    if isinstance(action, PrevPageRequested):
        if not isinstance(state, LoadedState):
            raise IllegalTransitionError(
                state.tag, action.tag, "the current page is not loaded"
            )
        if not state.can_load_prev:
            raise IllegalTransitionError(state.tag, action.tag, "already at the first page")

        # An empty stack means the previous page is the first page
        loading_cursor = state.prev_cursors[-1] if state.prev_cursors else None
        return LoadingPrevState(
            args=state.args,
            initial_num_items=state.initial_num_items,
            loading_cursor=loading_cursor,
            prev_cursors=state.prev_cursors[:-1],
        )

    if isinstance(action, ResultsArrived):
        if isinstance(state, LoadingInitialState):
            return LoadedState(
                args=state.args,
                initial_num_items=state.initial_num_items,
                current_results=action.results,
                current_cursor=None,
                prev_cursors=(),
                next_cursor=action.next_cursor,
            )
        if isinstance(state, (LoadingNextState, LoadingPrevState)):
            return LoadedState(
                args=state.args,
                initial_num_items=state.initial_num_items,
                current_results=action.results,
                current_cursor=state.loading_cursor,
                prev_cursors=state.prev_cursors,
                next_cursor=action.next_cursor,
            )
        if isinstance(state, LoadedState):
            # Same page re-delivered: cursor and history stay put
            return replace(
                state,
                current_results=action.results,
                next_cursor=action.next_cursor,
            )
        raise IllegalTransitionError(state.tag, action.tag, "no subscription is active")

    raise IllegalTransitionError(
        getattr(state, "tag", type(state).__name__),
        getattr(action, "tag", type(action).__name__),
        "unknown action",
    )
