"""DynamoDB client for AWS operations.

Provides access to the DynamoDB operations used by the attempt ledger
(get_item, update_item, query) with consistent error handling and
OperationResult return types.
"""

from typing import Any, Dict, Optional

import structlog

from infrastructure.clients.aws.executor import execute_aws_api_call
from infrastructure.clients.aws.session_provider import SessionProvider
from infrastructure.operations.result import OperationResult

logger = structlog.get_logger()

# update_item is not idempotent; only errors raised before the write is
# applied are retried.
WRITE_RETRY_ERROR_CODES = ("RATE_LIMITED",)


class DynamoDBClient:
    """Client for DynamoDB operations.

    All methods return OperationResult for consistent error handling and
    downstream processing.

    Args:
        session_provider: SessionProvider instance for credential/config management
        default_role_arn: Optional role ARN used when none is passed per call
        max_retries: Retries for transient SDK failures per call
    """

    def __init__(
        self,
        session_provider: SessionProvider,
        default_role_arn: Optional[str] = None,
        max_retries: int = 3,
    ) -> None:
        self._session_provider = session_provider
        self._default_role_arn = default_role_arn
        self._max_retries = max_retries
        self._service_name = "dynamodb"
        self._logger = logger.bind(component="dynamodb_client")

    def _client_kwargs(self, role_arn: Optional[str]) -> Dict[str, Any]:
        effective_role = role_arn or self._default_role_arn
        return self._session_provider.build_client_kwargs(
            service_name=self._service_name, role_arn=effective_role
        )

    def get_item(
        self,
        table_name: str,
        Key: Dict[str, Any],
        role_arn: Optional[str] = None,
        **kwargs,
    ) -> OperationResult:
        """Get an item from DynamoDB.

        Args:
            table_name: Name of the DynamoDB table
            Key: Primary key of the item (e.g., {"job_id": {"S": "job-1"}, ...})
            role_arn: Optional cross-account role ARN
            **kwargs: Additional DynamoDB get_item parameters

        Returns:
            OperationResult with the raw response (``Item`` absent when missing)
        """
        return execute_aws_api_call(
            self._service_name,
            "get_item",
            max_retries=self._max_retries,
            TableName=table_name,
            Key=Key,
            **self._client_kwargs(role_arn),
            **kwargs,
        )

    def update_item(
        self,
        table_name: str,
        Key: Dict[str, Any],
        role_arn: Optional[str] = None,
        **kwargs,
    ) -> OperationResult:
        """Update an item in DynamoDB.

        Only throttled requests are retried; a timeout may hide an applied
        write, so it is returned as a failure instead of being resent.

        Args:
            table_name: Name of the DynamoDB table
            Key: Primary key of the item
            role_arn: Optional cross-account role ARN
            **kwargs: Additional update_item parameters (UpdateExpression, etc.)

        Returns:
            OperationResult with updated attributes or error
        """
        return execute_aws_api_call(
            self._service_name,
            "update_item",
            max_retries=self._max_retries,
            retry_error_codes=WRITE_RETRY_ERROR_CODES,
            TableName=table_name,
            Key=Key,
            **self._client_kwargs(role_arn),
            **kwargs,
        )

    def query(
        self,
        table_name: str,
        KeyConditionExpression: Any,
        role_arn: Optional[str] = None,
        **kwargs,
    ) -> OperationResult:
        """Query items from DynamoDB using a key condition.

        All pages are collected, so ``data`` is the list of items.

        Args:
            table_name: Name of the DynamoDB table
            KeyConditionExpression: Key condition expression
            role_arn: Optional cross-account role ARN
            **kwargs: Additional DynamoDB query parameters

        Returns:
            OperationResult with items list or error
        """
        return execute_aws_api_call(
            self._service_name,
            "query",
            keys=["Items"],
            force_paginate=True,
            max_retries=self._max_retries,
            TableName=table_name,
            KeyConditionExpression=KeyConditionExpression,
            **self._client_kwargs(role_arn),
            **kwargs,
        )
