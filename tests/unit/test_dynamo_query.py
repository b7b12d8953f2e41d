"""
Unit tests for DynamoQuery with a mocked boto3 client.

Tests request construction, cursor serialization and error translation
without talking to DynamoDB.
"""

import pytest
from botocore.exceptions import ClientError
from pydantic import BaseModel

from nextprev import (
    DynamoQuery,
    InvalidArgumentsError,
    PaginatedQueryController,
    QueryClient,
    TableNotFoundError,
)
from tests.helpers.pages import as_loaded


def message_item(channel: str, sent_at: int, text: str) -> dict:
    return {"channel": {"S": channel}, "sent_at": {"N": str(sent_at)}, "text": {"S": text}}


class Message(BaseModel):
    channel: str
    sent_at: int
    text: str


@pytest.mark.unit
class TestDynamoQueryRequest:
    def test_first_page_request(self, mock_client) -> None:
        query = DynamoQuery("messages", pk_name="channel", sk_name="sent_at", client=mock_client)

        query(pk="general", pagination_opts={"num_items": 10, "cursor": None})

        kwargs = mock_client.query.call_args.kwargs
        assert kwargs["TableName"] == "messages"
        assert kwargs["KeyConditionExpression"] == "#pk = :pk"
        assert kwargs["ExpressionAttributeNames"] == {"#pk": "channel"}
        assert kwargs["ExpressionAttributeValues"] == {":pk": {"S": "general"}}
        assert kwargs["Limit"] == 10
        assert kwargs["ScanIndexForward"] is True
        assert "ExclusiveStartKey" not in kwargs
        assert "IndexName" not in kwargs

    def test_cursor_becomes_exclusive_start_key(self, mock_client) -> None:
        query = DynamoQuery("messages", pk_name="channel", sk_name="sent_at", client=mock_client)

        query(
            pk="general",
            pagination_opts={"num_items": 2, "cursor": {"channel": "general", "sent_at": 5}},
        )

        kwargs = mock_client.query.call_args.kwargs
        assert kwargs["ExclusiveStartKey"] == {
            "channel": {"S": "general"},
            "sent_at": {"N": "5"},
        }

    def test_index_and_order(self, mock_client) -> None:
        query = DynamoQuery(
            "messages",
            pk_name="author",
            sk_name="sent_at",
            index_name="by_author",
            table_keys=("channel", "sent_at"),
            scan_forward=False,
            client=mock_client,
        )

        query(pk="alice", pagination_opts={"num_items": 2, "cursor": None})

        kwargs = mock_client.query.call_args.kwargs
        assert kwargs["IndexName"] == "by_author"
        assert kwargs["ScanIndexForward"] is False
        assert query.key_names == ("author", "sent_at", "channel")

    @pytest.mark.parametrize("num_items", [0, None, "3"])
    def test_invalid_page_size(self, mock_client, num_items) -> None:
        query = DynamoQuery("messages", pk_name="channel", client=mock_client)
        with pytest.raises(InvalidArgumentsError):
            query(pk="general", pagination_opts={"num_items": num_items, "cursor": None})
        mock_client.query.assert_not_called()


@pytest.mark.unit
class TestDynamoQueryPage:
    def test_page_with_last_evaluated_key(self, mock_client) -> None:
        mock_client.query.return_value = {
            "Items": [message_item("general", 1, "hi"), message_item("general", 2, "yo")],
            "LastEvaluatedKey": {"channel": {"S": "general"}, "sent_at": {"N": "2"}},
        }
        query = DynamoQuery("messages", pk_name="channel", sk_name="sent_at", client=mock_client)

        page = query(pk="general", pagination_opts={"num_items": 2, "cursor": None})

        assert page.page == [
            {"channel": "general", "sent_at": 1, "text": "hi"},
            {"channel": "general", "sent_at": 2, "text": "yo"},
        ]
        assert page.continue_cursor == {"channel": "general", "sent_at": 2}
        assert page.is_done is False

    def test_final_page_cursor_from_last_item(self, mock_client) -> None:
        mock_client.query.return_value = {"Items": [message_item("general", 3, "bye")]}
        query = DynamoQuery("messages", pk_name="channel", sk_name="sent_at", client=mock_client)

        page = query(pk="general", pagination_opts={"num_items": 2, "cursor": None})

        assert page.is_done is True
        assert page.continue_cursor == {"channel": "general", "sent_at": 3}
        assert page.next_cursor is None

    def test_empty_result(self, mock_client) -> None:
        query = DynamoQuery("messages", pk_name="channel", client=mock_client)

        page = query(pk="nobody", pagination_opts={"num_items": 2, "cursor": None})

        assert page.page == []
        assert page.continue_cursor is None
        assert page.is_done is True

    def test_items_validated_into_model(self, mock_client) -> None:
        mock_client.query.return_value = {"Items": [message_item("general", 1, "hi")]}
        query = DynamoQuery(
            "messages", pk_name="channel", sk_name="sent_at", item_model=Message, client=mock_client
        )

        page = query(pk="general", pagination_opts={"num_items": 2, "cursor": None})

        assert page.page == [Message(channel="general", sent_at=1, text="hi")]

    def test_client_error_translated(self, mock_client) -> None:
        mock_client.query.side_effect = ClientError(
            {"Error": {"Code": "ResourceNotFoundException", "Message": "no table"}}, "Query"
        )
        query = DynamoQuery("missing", pk_name="channel", client=mock_client)

        with pytest.raises(TableNotFoundError) as exc_info:
            query(pk="general", pagination_opts={"num_items": 2, "cursor": None})
        assert exc_info.value.table_name == "missing"


@pytest.mark.unit
def test_controller_over_dynamo_query(mock_client) -> None:
    """Browse two pages forward and back with a scripted DynamoDB client."""
    pages = {
        None: {
            "Items": [message_item("general", 1, "a"), message_item("general", 2, "b")],
            "LastEvaluatedKey": {"channel": {"S": "general"}, "sent_at": {"N": "2"}},
        },
        2: {"Items": [message_item("general", 3, "c")]},
    }

    def fake_query(**kwargs):
        start = kwargs.get("ExclusiveStartKey")
        return pages[int(start["sent_at"]["N"]) if start else None]

    mock_client.query.side_effect = fake_query
    query = DynamoQuery("messages", pk_name="channel", sk_name="sent_at", client=mock_client)
    controller = PaginatedQueryController(QueryClient().subscribe)
    args = {"pk": "general"}
    options = {"initial_num_items": 2}

    first = as_loaded(controller.use(query, args, options))
    assert [m["text"] for m in first.page] == ["a", "b"]
    assert first.load_prev is None

    first.load_next()
    second = as_loaded(controller.use(query, args, options))
    assert [m["text"] for m in second.page] == ["c"]
    assert second.page_num == 2
    assert second.load_next is None

    second.load_prev()
    back = as_loaded(controller.use(query, args, options))
    assert back.page == first.page
    assert back.page_num == 1


@pytest.mark.unit
class TestDynamoQueryIdentity:
    def test_equal_by_configuration(self, mock_client) -> None:
        a = DynamoQuery("messages", pk_name="channel", sk_name="sent_at", client=mock_client)
        b = DynamoQuery("messages", pk_name="channel", sk_name="sent_at")

        assert a == b
        assert hash(a) == hash(b)

    @pytest.mark.parametrize(
        "other",
        [
            DynamoQuery("archive", pk_name="channel", sk_name="sent_at"),
            DynamoQuery("messages", pk_name="channel"),
            DynamoQuery("messages", pk_name="channel", sk_name="sent_at", index_name="by_author"),
            DynamoQuery("messages", pk_name="channel", sk_name="sent_at", scan_forward=False),
            DynamoQuery("messages", pk_name="channel", sk_name="sent_at", item_model=Message),
        ],
    )
    def test_different_configuration(self, other) -> None:
        assert DynamoQuery("messages", pk_name="channel", sk_name="sent_at") != other

    def test_rebuilt_query_keeps_page_position(self, mock_client) -> None:
        mock_client.query.return_value = {
            "Items": [message_item("general", 1, "a")],
            "LastEvaluatedKey": {"channel": {"S": "general"}, "sent_at": {"N": "1"}},
        }
        controller = PaginatedQueryController(QueryClient().subscribe)
        args = {"pk": "general"}
        options = {"initial_num_items": 1}

        def build() -> DynamoQuery:
            return DynamoQuery("messages", pk_name="channel", sk_name="sent_at", client=mock_client)

        as_loaded(controller.use(build(), args, options)).load_next()
        result = as_loaded(controller.use(build(), args, options))
        assert result.page_num == 2


@pytest.mark.unit
def test_final_page_cursor_keeps_exact_sort_key(mock_client) -> None:
    mock_client.query.return_value = {
        "Items": [{"channel": {"S": "general"}, "score": {"N": "2.00000000000000000001"}}]
    }
    query = DynamoQuery("scores", pk_name="channel", sk_name="score", client=mock_client)

    page = query(pk="general", pagination_opts={"num_items": 2, "cursor": None})
    query(pk="general", pagination_opts={"num_items": 2, "cursor": page.continue_cursor})

    start_key = mock_client.query.call_args.kwargs["ExclusiveStartKey"]
    assert start_key["score"] == {"N": "2.00000000000000000001"}
