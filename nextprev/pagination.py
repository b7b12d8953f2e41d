"""
Page snapshots delivered by a subscription.

A snapshot is whatever the collaborator hands back for one set of
subscription arguments. It is validated here, at the boundary, so the
state machine only ever sees well-formed pages.
"""

from collections.abc import Mapping
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from .exceptions import MalformedPageError

T = TypeVar("T")

# Opaque continuation token; None is the start of the sequence.
Cursor = Any


class Page(BaseModel, Generic[T]):
    """
    One page of results with its continuation cursor.

    Attributes:
        page: Items of this page, in order
        continue_cursor: Cursor where the following page begins
        is_done: True if no page follows this one
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    page: list[T]
    continue_cursor: Cursor = Field(default=None, alias="continueCursor")
    is_done: bool = Field(alias="isDone")

    @property
    def next_cursor(self) -> Cursor:
        """The cursor to request next, or None when the sequence is exhausted."""
        return None if self.is_done else self.continue_cursor

    @property
    def count(self) -> int:
        return len(self.page)

    @classmethod
    def from_snapshot(cls, snapshot: Any) -> "Page[Any]":
        """
        Validates a raw subscription snapshot into a Page.

        Accepts a Page, a mapping using either snake_case or the camelCase
        wire names, or any object exposing the same attributes.

        Raises:
            MalformedPageError: If the snapshot is missing fields, or has no
                continuation cursor while holding items or not being done.
        """
        if isinstance(snapshot, Page):
            page = snapshot
        else:
            try:
                if isinstance(snapshot, Mapping):
                    page = cls.model_validate(dict(snapshot))
                else:
                    page = cls.model_validate(snapshot, from_attributes=True)
            except PydanticValidationError as e:
                raise MalformedPageError(
                    f"Invalid page snapshot: {e.error_count()} validation error(s)",
                    snapshot=snapshot,
                    original_error=e,
                ) from e

        if page.continue_cursor is None:
            if page.page:
                raise MalformedPageError(
                    "Page snapshot holds items but no continuation cursor", snapshot=snapshot
                )
            if not page.is_done:
                raise MalformedPageError(
                    "Page snapshot is not done but has no continuation cursor",
                    snapshot=snapshot,
                )
        return page
