from .client import QueryClient
from .config import PAGINATION_OPTS_KEY, SKIP, PaginationOptions, QueryIdentity
from .controller import PaginatedQueryController, Subscribe
from .dynamo import DynamoQuery
from .exceptions import (
    ControllerClosedError,
    IllegalTransitionError,
    InvalidArgumentsError,
    InvalidOptionsError,
    MalformedPageError,
    NextPrevError,
    ProvisionedThroughputExceededError,
    RequestTimeoutError,
    SourceError,
    TableNotFoundError,
    ValidationError,
)
from .pagination import Page
from .projection import (
    Loaded,
    LoadingInitialResults,
    LoadingNextResults,
    LoadingPrevResults,
    Result,
    Skipped,
    make_result,
    merge_args,
)
from .state import (
    IdentityChanged,
    LoadedState,
    LoadingInitialState,
    LoadingNextState,
    LoadingPrevState,
    NextPageRequested,
    PrevPageRequested,
    ResultsArrived,
    SkippedState,
    State,
    reduce,
)

__all__ = [
    "PaginatedQueryController",
    "Subscribe",
    "PaginationOptions",
    "QueryIdentity",
    "SKIP",
    "PAGINATION_OPTS_KEY",
    "Page",
    # Results
    "Result",
    "Skipped",
    "LoadingInitialResults",
    "LoadingNextResults",
    "LoadingPrevResults",
    "Loaded",
    # State machine
    "State",
    "SkippedState",
    "LoadingInitialState",
    "LoadingNextState",
    "LoadingPrevState",
    "LoadedState",
    "IdentityChanged",
    "NextPageRequested",
    "PrevPageRequested",
    "ResultsArrived",
    "reduce",
    "merge_args",
    "make_result",
    # Sources
    "QueryClient",
    "DynamoQuery",
    # Exceptions
    "NextPrevError",
    "InvalidOptionsError",
    "InvalidArgumentsError",
    "IllegalTransitionError",
    "MalformedPageError",
    "ControllerClosedError",
    "SourceError",
    "TableNotFoundError",
    "ProvisionedThroughputExceededError",
    "RequestTimeoutError",
    "ValidationError",
]
