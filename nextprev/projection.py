"""
Projections of the pagination state.

`merge_args` turns a state into the arguments the subscription is driven
with; `make_result` turns it into the view handed back to the caller.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, ClassVar, Generic, TypeVar, Union

from .config import PAGINATION_OPTS_KEY, SKIP, Skip
from .exceptions import IllegalTransitionError
from .state import (
    Action,
    LoadedState,
    LoadingInitialState,
    LoadingNextState,
    LoadingPrevState,
    NextPageRequested,
    PrevPageRequested,
    SkippedState,
    State,
)

T = TypeVar("T")

Dispatch = Callable[[Action], None]


def merge_args(state: State) -> "dict[str, Any] | Skip":
    """
    Returns the subscription arguments for a state.

    Every page of a session is requested with the same window size. While
    Loaded, the current page's own cursor is used so the source can keep
    re-delivering that page when its data changes.
    """
    if isinstance(state, SkippedState):
        return SKIP

    if isinstance(state, LoadingInitialState):
        cursor = None
    elif isinstance(state, (LoadingNextState, LoadingPrevState)):
        cursor = state.loading_cursor
    elif isinstance(state, LoadedState):
        cursor = state.current_cursor
    else:
        raise IllegalTransitionError(type(state).__name__, "merge_args", "invalid state")

    return {
        **state.args,
        PAGINATION_OPTS_KEY: {"num_items": state.initial_num_items, "cursor": cursor},
    }


# --- RESULTS ---


@dataclass(frozen=True)
class Skipped:
    tag: ClassVar[str] = "Skipped"


@dataclass(frozen=True)
class LoadingInitialResults:
    tag: ClassVar[str] = "LoadingInitialResults"


@dataclass(frozen=True)
class LoadingNextResults:
    tag: ClassVar[str] = "LoadingNextResults"


@dataclass(frozen=True)
class LoadingPrevResults:
    tag: ClassVar[str] = "LoadingPrevResults"


@dataclass(frozen=True)
class Loaded(Generic[T]):
    """
    A loaded page.

    Attributes:
        page: Items of the current page
        page_num: 1-based number of the current page
        load_next: Moves to the following page, None at the last page
        load_prev: Moves to the preceding page, None at the first page
    """

    tag: ClassVar[str] = "Loaded"

    page: list[T]
    page_num: int
    load_next: Callable[[], None] | None = field(default=None, compare=False)
    load_prev: Callable[[], None] | None = field(default=None, compare=False)


Result = Union[Skipped, LoadingInitialResults, LoadingNextResults, LoadingPrevResults, Loaded[Any]]


def make_result(state: State, dispatch: Dispatch) -> Result:
    """
    Returns the public view of a state.

    Loading states expose no page content so a caller never renders data
    from the page being left. Navigation actions are only present when
    dispatching them is legal.
    """
    if isinstance(state, SkippedState):
        return Skipped()
    if isinstance(state, LoadingInitialState):
        return LoadingInitialResults()
    if isinstance(state, LoadingNextState):
        return LoadingNextResults()
    if isinstance(state, LoadingPrevState):
        return LoadingPrevResults()
    if isinstance(state, LoadedState):
        return Loaded(
            page=list(state.current_results.page),
            page_num=state.page_num,
            load_next=_make_load_next(state, dispatch),
            load_prev=_make_load_prev(state, dispatch),
        )
    raise IllegalTransitionError(type(state).__name__, "make_result", "invalid state")


def _make_load_next(state: LoadedState, dispatch: Dispatch) -> Callable[[], None] | None:
    if not state.can_load_next:
        return None

    def load_next() -> None:
        dispatch(NextPageRequested())

    return load_next


def _make_load_prev(state: LoadedState, dispatch: Dispatch) -> Callable[[], None] | None:
    if not state.can_load_prev:
        return None

    def load_prev() -> None:
        dispatch(PrevPageRequested())

    return load_prev
