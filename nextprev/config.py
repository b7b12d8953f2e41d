import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Final, Literal

from pydantic_core import to_jsonable_python

from .exceptions import InvalidArgumentsError, InvalidOptionsError

# Passed instead of query arguments to disable the subscription entirely.
SKIP: Final = "skip"
Skip = Literal["skip"]

# Argument name under which the page window is injected into query arguments.
PAGINATION_OPTS_KEY: Final = "pagination_opts"


def _canonical_form(value: Any) -> Any:
    # Mappings become sorted [encoded key, value] pairs so keys of mixed
    # types sort without error and 1 and "1" stay distinct keys
    if value is None or isinstance(value, (str, int, float)):
        return value
    if isinstance(value, Mapping):
        pairs = sorted(
            ([canonical_json(k), _canonical_form(v)] for k, v in value.items()),
            key=lambda pair: pair[0],
        )
        return {"map": pairs}
    if isinstance(value, (list, tuple)):
        return [_canonical_form(v) for v in value]
    if isinstance(value, (set, frozenset)):
        return {"set": sorted(canonical_json(v) for v in value)}
    # Pydantic models, dataclasses, datetimes etc.
    return _canonical_form(to_jsonable_python(value))


def canonical_json(value: Any) -> str:
    """
    Encodes a value to a canonical JSON string for equality checks.

    Dict key order is ignored, while 1, 1.0 and True stay distinct, both as
    values and as keys. Pydantic models, dataclasses, datetimes etc. are
    handled by pydantic_core.
    """
    return json.dumps(_canonical_form(value), separators=(",", ":"))


@dataclass(frozen=True)
class PaginationOptions:
    """
    Window options for one browsing session.

    Attributes:
        initial_num_items: Number of items requested for every page
    """

    initial_num_items: int

    def __post_init__(self) -> None:
        n = self.initial_num_items
        if isinstance(n, bool) or not isinstance(n, int):
            raise InvalidOptionsError(
                f"Initial number of items must be an integer, got {type(n).__name__}", value=n
            )
        if n <= 0:
            raise InvalidOptionsError(
                "Initial number of items must be greater than zero", value=n
            )


def coerce_options(options: "PaginationOptions | Mapping[str, Any]") -> PaginationOptions:
    """
    Builds PaginationOptions from an instance or a plain mapping.

    Raises:
        InvalidOptionsError: If the options are missing or invalid
    """
    if isinstance(options, PaginationOptions):
        return options
    if isinstance(options, Mapping):
        if "initial_num_items" not in options:
            raise InvalidOptionsError("Missing 'initial_num_items' in pagination options")
        return PaginationOptions(initial_num_items=options["initial_num_items"])
    raise InvalidOptionsError(
        f"Pagination options must be PaginationOptions or a mapping, got {type(options).__name__}",
        value=options,
    )


def check_args(args: Any) -> "dict[str, Any] | Skip":
    """
    Validates query arguments, returning a private copy.

    Raises:
        InvalidArgumentsError: If args is neither SKIP nor a mapping, or
            already carries the pagination window
    """
    if isinstance(args, str):
        if args == SKIP:
            return SKIP
        raise InvalidArgumentsError(f"Unknown query arguments sentinel {args!r}")
    if not isinstance(args, Mapping):
        raise InvalidArgumentsError(
            f"Query arguments must be a mapping or {SKIP!r}, got {type(args).__name__}"
        )
    if PAGINATION_OPTS_KEY in args:
        raise InvalidArgumentsError(
            f"Query arguments must not include '{PAGINATION_OPTS_KEY}', it is injected"
        )
    return dict(args)


@dataclass(frozen=True)
class QueryIdentity:
    """
    The (query, args, options) triple a pagination session belongs to.

    Two identities are equal when the query references compare equal and
    the args and options encode to the same canonical JSON. Any difference
    restarts pagination from the first page.
    """

    query: Any
    args: "dict[str, Any] | Skip"
    options: PaginationOptions
    _args_key: str = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        # Frozen dataclass: bypass __setattr__ for the derived field
        object.__setattr__(self, "_args_key", canonical_json(self.args))

    @property
    def skipped(self) -> bool:
        return self.args == SKIP

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, QueryIdentity):
            return NotImplemented
        return (
            self.query == other.query
            and self._args_key == other._args_key
            and self.options == other.options
        )

    def __hash__(self) -> int:
        return hash((self._args_key, self.options))
