"""
DynamoDB-backed paginated query.

DynamoQuery is a query reference for PaginatedQueryController: it answers
one page per call by issuing a single DynamoDB Query with a Limit and an
ExclusiveStartKey, exactly the cursor-forward source the controller turns
into a next/prev browser.
"""

from typing import Any

import boto3
from pydantic import BaseModel

from ._logging import logger, redact_cursor
from .exceptions import InvalidArgumentsError, handle_dynamo_errors
from .pagination import Page
from .serializer import DynamoSerializer


class DynamoQuery:
    """
    Pages through the items sharing one partition key value.

    Args:
        table_name: Name of the DynamoDB table
        pk_name: Partition key of the table (or of the index when index_name is set)
        sk_name: Sort key of the table (or index), if any
        index_name: Optional Global Secondary Index to query
        table_keys: Key attribute names of the base table, needed to build
            cursors when querying an index
        item_model: Optional Pydantic model each item is validated into
        scan_forward: Ascending sort key order if True, descending otherwise
        client: Boto3 DynamoDB client; created lazily when omitted

    Usage:
        get_messages = DynamoQuery("messages", pk_name="channel", sk_name="sent_at")
        controller.use(get_messages, {"pk": "general"}, {"initial_num_items": 10})
    """

    def __init__(
        self,
        table_name: str,
        pk_name: str,
        sk_name: str | None = None,
        *,
        index_name: str | None = None,
        table_keys: tuple[str, ...] = (),
        item_model: type[BaseModel] | None = None,
        scan_forward: bool = True,
        client: Any | None = None,
    ) -> None:
        self.table_name = table_name
        self.pk_name = pk_name
        self.sk_name = sk_name
        self.index_name = index_name
        self.item_model = item_model
        self.scan_forward = scan_forward
        self.serializer = DynamoSerializer()
        self._client = client

        # Attributes a cursor is made of; DynamoDB expects the index keys
        # plus the table keys as ExclusiveStartKey for index queries
        key_names = [pk_name] + ([sk_name] if sk_name else []) + list(table_keys)
        self.key_names: tuple[str, ...] = tuple(dict.fromkeys(key_names))

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = boto3.client("dynamodb")
        return self._client

    def _config_key(self) -> tuple[Any, ...]:
        return (
            self.table_name,
            self.pk_name,
            self.sk_name,
            self.index_name,
            self.key_names,
            self.scan_forward,
            self.item_model,
        )

    # Equal when built over the same table, index and keys, whatever the client
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DynamoQuery):
            return NotImplemented
        return self._config_key() == other._config_key()

    def __hash__(self) -> int:
        return hash(self._config_key())

    def __repr__(self) -> str:
        index = f", index_name={self.index_name!r}" if self.index_name else ""
        return f"DynamoQuery(table_name={self.table_name!r}{index})"

    def __call__(self, pk: Any, pagination_opts: dict[str, Any]) -> Page[Any]:
        """
        Fetches the page starting at pagination_opts["cursor"].

        Returns:
            A Page whose continue_cursor is a plain dict key, and whose
            is_done flag is set when DynamoDB reports no further items.
        """
        num_items = pagination_opts.get("num_items")
        if not isinstance(num_items, int) or num_items <= 0:
            raise InvalidArgumentsError(f"Invalid page size {num_items!r}")
        cursor = pagination_opts.get("cursor")

        kwargs: dict[str, Any] = {
            "TableName": self.table_name,
            "KeyConditionExpression": "#pk = :pk",
            "ExpressionAttributeNames": {"#pk": self.pk_name},
            "ExpressionAttributeValues": {":pk": self.serializer.to_dynamo_value(pk)},
            "ScanIndexForward": self.scan_forward,
            "Limit": num_items,
        }
        if self.index_name:
            kwargs["IndexName"] = self.index_name
        if cursor is not None:
            kwargs["ExclusiveStartKey"] = self.serializer.deserialize_cursor(cursor)

        logger.info(
            "Executing query page",
            extra={
                "table": self.table_name,
                "index": self.index_name,
                "limit": num_items,
                "cursor_hash": redact_cursor(cursor),
            },
        )

        with handle_dynamo_errors(table_name=self.table_name):
            response = self.client.query(**kwargs)

        dynamo_items = response.get("Items", [])
        raw_items = [self.serializer.from_dynamo(item) for item in dynamo_items]
        raw_key = response.get("LastEvaluatedKey")

        if raw_key:
            next_cursor: dict[str, Any] | None = self.serializer.serialize_cursor(raw_key)
        elif dynamo_items:
            # DynamoDB omits LastEvaluatedKey on the final page; the last item's
            # key still marks where this page ends
            last = dynamo_items[-1]
            next_cursor = self.serializer.serialize_cursor(
                {name: last[name] for name in self.key_names if name in last}
            )
        else:
            next_cursor = None

        items: list[Any] = raw_items
        if self.item_model is not None:
            items = [self.item_model.model_validate(item) for item in raw_items]

        logger.debug(
            "Query page fetched",
            extra={"table": self.table_name, "count": len(items), "is_done": not raw_key},
        )
        return Page(page=items, continue_cursor=next_cursor, is_done=not raw_key)
