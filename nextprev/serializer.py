from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, cast
from uuid import UUID

from boto3.dynamodb.types import TypeDeserializer, TypeSerializer

from .exceptions import InvalidArgumentsError


class DynamoSerializer:
    """
    Converts between plain Python values and DynamoDB Low-Level format.

    Cursors handed out by DynamoQuery are plain Python dicts so they can be
    compared, logged (redacted) and sent to a frontend; they are turned back
    into DynamoDB keys only when the next request is built.
    """

    def __init__(self) -> None:
        self._serializer = TypeSerializer()
        self._deserializer = TypeDeserializer()

    def to_dynamo(self, data: dict[str, Any]) -> dict[str, dict[str, Any]]:
        """Converts a standard Python dict to DynamoDB JSON format ({"S": "...", "N": "..."})."""
        clean_data = self._prepare_for_dynamo(data)
        return {k: self.to_dynamo_value(v) for k, v in clean_data.items()}

    def to_dynamo_value(self, value: Any) -> dict[str, Any]:
        """
        Serializes a single scalar value to DynamoDB format.
        E.g.: 10.5 -> {'N': '10.5'}
        """
        clean_value = self._prepare_for_dynamo(value)
        try:
            return cast(dict[str, Any], self._serializer.serialize(clean_value))
        except TypeError as e:
            raise InvalidArgumentsError(
                f"Failed to serialize value '{value}'. error={e!s}", original_error=e
            ) from e

    def from_dynamo(self, item: dict[str, Any]) -> dict[str, Any]:
        """Converts DynamoDB JSON format back to standard Python dict."""
        python_data = {k: self._deserializer.deserialize(v) for k, v in item.items()}
        result = self._restore_to_python(python_data)
        assert isinstance(result, dict)
        return result

    def serialize_cursor(self, last_evaluated_key: dict[str, Any]) -> dict[str, Any]:
        """
        Converts a DynamoDB key to a plain cursor dict.

        Input:  {"pk": {"S": "value"}, "sk": {"N": "123"}}
        Output: {"pk": "value", "sk": 123}

        Fractional numbers stay Decimal so the key round-trips exactly.
        """
        python_key = {
            k: self._deserializer.deserialize(v) for k, v in last_evaluated_key.items()
        }
        return cast(dict[str, Any], self._restore_to_python(python_key, exact=True))

    def deserialize_cursor(self, cursor: dict[str, Any]) -> dict[str, Any]:
        """
        Converts a plain cursor dict back to a DynamoDB key.

        Input:  {"pk": "value", "sk": 123}
        Output: {"pk": {"S": "value"}, "sk": {"N": "123"}}
        """
        return self.to_dynamo(cursor)

    def _prepare_for_dynamo(self, value: Any) -> Any:
        """
        Recursively prepares Python values for Boto3 TypeSerializer.

        Converts:
        - float -> Decimal (boto3 requirement)
        - datetime/date -> ISO 8601 string
        - UUID -> string
        - Enum -> value
        """
        if isinstance(value, float):
            # Convert to string first to avoid float precision artifacts during Decimal creation
            return Decimal(str(value))
        if isinstance(value, datetime):
            return value.isoformat()
        if isinstance(value, date):
            return value.isoformat()
        if isinstance(value, UUID):
            return str(value)
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, list):
            return [self._prepare_for_dynamo(v) for v in value]
        if isinstance(value, dict):
            return {k: self._prepare_for_dynamo(v) for k, v in value.items()}
        return value

    def _restore_to_python(self, value: Any, exact: bool = False) -> Any:
        """
        Recursively restores DynamoDB values to Python-friendly types.

        Converts:
        - Decimal -> int (if whole number) or float, unless exact
        - set -> sorted list, so snapshots compare and encode by value
        """
        if isinstance(value, Decimal):
            if value % 1 == 0:
                return int(value)
            return value if exact else float(value)
        if isinstance(value, (set, frozenset)):
            return sorted(self._restore_to_python(v, exact) for v in value)
        if isinstance(value, list):
            return [self._restore_to_python(v, exact) for v in value]
        if isinstance(value, dict):
            return {k: self._restore_to_python(v, exact) for k, v in value.items()}
        return value
