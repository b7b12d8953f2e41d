"""
Shared pytest fixtures and configuration for nextprev tests.

This module provides common fixtures used across unit and integration tests,
including an in-memory paginated query, mocked boto3 clients and LocalStack
clients.
"""

import os
from typing import TYPE_CHECKING, Any
from unittest.mock import MagicMock

import boto3
import pytest
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from nextprev import PaginatedQueryController, QueryClient
from tests.helpers.pages import ListQuery

if TYPE_CHECKING:
    from tests.helpers.localstack import LocalStackHelper


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests with mocked dependencies")
    config.addinivalue_line("markers", "integration: Integration tests against LocalStack")


@pytest.fixture
def docs() -> list[dict[str, Any]]:
    """Ten documents with ascending ids."""
    return [{"id": i, "value": f"Item {i}"} for i in range(10)]


@pytest.fixture
def list_query(docs) -> ListQuery:
    return ListQuery(docs)


@pytest.fixture
def query_client() -> QueryClient:
    return QueryClient()


@pytest.fixture
def controller(query_client) -> PaginatedQueryController:
    with PaginatedQueryController(query_client.subscribe) as ctrl:
        yield ctrl


@pytest.fixture
def mock_client():
    """
    Creates a fully mocked boto3 DynamoDB client.

    This fixture provides a mock client for unit tests that don't need
    real DynamoDB interactions.
    """
    client = MagicMock()
    client.query.return_value = {"Items": []}
    return client


@pytest.fixture(scope="session")
def localstack_endpoint() -> str:
    """Get LocalStack endpoint URL from environment or default."""
    return os.getenv("LOCALSTACK_ENDPOINT", "http://localhost:4566")


@pytest.fixture(scope="session")
def localstack_client(localstack_endpoint: str):
    """
    Creates a boto3 client connected to LocalStack.

    Integration tests are skipped when LocalStack is not reachable.
    """
    client = boto3.client(
        "dynamodb",
        endpoint_url=localstack_endpoint,
        region_name="eu-south-1",
        aws_access_key_id="test",
        aws_secret_access_key="test",
        config=Config(connect_timeout=2, read_timeout=5, retries={"max_attempts": 1}),
    )
    try:
        client.list_tables(Limit=1)
    except (BotoCoreError, ClientError) as e:
        pytest.skip(f"LocalStack not available at {localstack_endpoint}: {e}")
    return client


@pytest.fixture(scope="session")
def localstack_helper(localstack_client) -> "LocalStackHelper":
    from tests.helpers.localstack import LocalStackHelper

    return LocalStackHelper(client=localstack_client)


@pytest.fixture
def messages_table(localstack_helper):
    """
    A clean messages table (channel + sent_at) for each test.
    """
    table_name = "nextprev_test_messages"
    localstack_helper.create_table(
        table_name=table_name, pk_name="channel", sk_name="sent_at", sk_type="N"
    )
    localstack_helper.clear_table(table_name, pk_name="channel", sk_name="sent_at")

    yield table_name

    localstack_helper.clear_table(table_name, pk_name="channel", sk_name="sent_at")
