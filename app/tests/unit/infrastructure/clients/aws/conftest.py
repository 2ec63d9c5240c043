"""Fixtures for AWS client tests.

Provides factory-as-fixture pattern for creating configurable fake boto3 clients
used across AWS client unit tests.
"""

from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import pytest

from infrastructure.clients.aws.session_provider import SessionProvider
from infrastructure.configuration.integrations.aws import AwsSettings


class FakePaginator:
    """Fake boto3 paginator that yields provided pages."""

    def __init__(self, pages):
        self._pages = list(pages)

    def paginate(self, **kwargs):
        """Yield pages in sequence."""
        for page in self._pages:
            yield page


class FakeClient:
    """Configurable fake boto3 client for unit tests.

    Supports:
    - Paginated responses via `get_paginator()`
    - API method responses via `__getattr__` lookup
    - Both static and callable response configurations
    """

    def __init__(
        self,
        paginated_pages: Optional[List[Dict[str, Any]]] = None,
        api_responses: Optional[Dict[str, Any]] = None,
    ):
        self._paginated_pages = paginated_pages or []
        self._api_responses = api_responses or {}
        self.paginate_calls: List[Dict[str, Any]] = []

    def get_paginator(self, *args, **kwargs):
        """Return a paginator for the given method name."""
        if not self._paginated_pages:
            raise AttributeError("No paginator available")
        return FakePaginator(self._paginated_pages)

    def __getattr__(self, name: str):
        """Provide callable for API methods that returns configured responses."""
        if name in self._api_responses:
            resp = self._api_responses[name]
            if callable(resp):

                def _call(*_args, **_kwargs):
                    return resp(**_kwargs)

                return _call

            def _call_const(*_args, **_kwargs):
                return resp

            return _call_const

        if self._paginated_pages:

            def _noop(*_args, **_kwargs):
                return {}

            return _noop

        raise AttributeError(name)


@pytest.fixture
def make_fake_client():
    """Factory fixture for creating configurable fake boto3 clients.

    Usage:
        def test_something(make_fake_client):
            client = make_fake_client(paginated_pages=[{...}, {...}])
            monkeypatch.setattr(executor, "get_boto3_client", lambda *a, **k: client)
    """

    def _factory(
        paginated_pages: Optional[List[Dict[str, Any]]] = None,
        api_responses: Optional[Dict[str, Any]] = None,
    ) -> FakeClient:
        """Create a FakeClient with the given configuration."""
        return FakeClient(
            paginated_pages=paginated_pages,
            api_responses=api_responses,
        )

    return _factory


@pytest.fixture
def mock_aws_settings():
    """Fixture providing a mock AwsSettings instance.

    Tests can further customize this mock as needed:
        def test_something(mock_aws_settings):
            mock_aws_settings.AWS_REGION = "us-west-2"
            ...
    """
    settings = MagicMock(spec=AwsSettings)
    settings.AWS_REGION = "us-east-1"
    settings.SERVICE_ROLE_MAP = {
        "dynamodb": "arn:aws:iam::123456789012:role/DynamoDBRole",
    }
    settings.ENDPOINT_URL = None
    return settings


@pytest.fixture
def dynamodb_client():
    """Fixture for DynamoDBClient with a plain SessionProvider."""
    from infrastructure.clients.aws.dynamodb import DynamoDBClient

    session_provider = SessionProvider(region="us-east-1")
    return DynamoDBClient(
        session_provider=session_provider,
        default_role_arn=None,
    )
