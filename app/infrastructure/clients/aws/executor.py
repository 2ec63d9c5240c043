"""Base AWS client utilities for infrastructure clients.

Provides `get_boto3_client` and `execute_aws_api_call` with the
OperationResult pattern. This module does not read settings at import
time; configuration is passed in by the SessionProvider.
"""

import time
from typing import Any, Dict, List, Optional, Tuple

import boto3  # type: ignore
from botocore.client import BaseClient  # type: ignore
from botocore.exceptions import BotoCoreError, ClientError  # type: ignore
import structlog

from infrastructure.operations.classifiers import classify_aws_error
from infrastructure.operations.result import OperationResult

logger = structlog.get_logger()


def get_boto3_client(
    service_name: str,
    session_config: Optional[Dict[str, Any]] = None,
    client_config: Optional[Dict[str, Any]] = None,
    role_arn: Optional[str] = None,
    session_name: str = "AttemptLedgerSession",
) -> BaseClient:
    """Create a boto3 client for the given service.

    Args:
        service_name: AWS service name (e.g., 'dynamodb')
        session_config: Optional boto3 session kwargs (e.g., region_name)
        client_config: Optional client kwargs (e.g., endpoint_url)
        role_arn: Optional role to assume for cross-account access
        session_name: Name for assumed role session

    Returns:
        botocore client instance
    """
    session_config = session_config or {}
    client_config = client_config or {}

    if role_arn:
        sts = boto3.client("sts")
        assumed = sts.assume_role(RoleArn=role_arn, RoleSessionName=session_name)
        creds = assumed["Credentials"]
        session = boto3.Session(
            aws_access_key_id=creds["AccessKeyId"],
            aws_secret_access_key=creds["SecretAccessKey"],
            aws_session_token=creds["SessionToken"],
            **session_config,
        )
    else:
        session = boto3.Session(**session_config)

    return session.client(service_name, **client_config)


def _calculate_retry_delay(attempt: int, backoff_factor: float = 0.5) -> float:
    return backoff_factor * (2**attempt)


def _call_api_once(
    service_name: str,
    method: str,
    keys: Optional[List[str]],
    role_arn: Optional[str],
    session_config: Optional[Dict[str, Any]],
    client_config: Optional[Dict[str, Any]],
    force_paginate: bool,
    kwargs: Dict[str, Any],
) -> Any:
    client = get_boto3_client(
        service_name,
        session_config=session_config,
        client_config=client_config,
        role_arn=role_arn,
    )
    api_method = getattr(client, method)

    if force_paginate and hasattr(client, "get_paginator"):
        paginator = client.get_paginator(method)
        results: List[Any] = []
        for page in paginator.paginate(**kwargs):
            if keys:
                for k in keys:
                    if k in page and isinstance(page[k], list):
                        results.extend(page[k])
            else:
                for k, v in page.items():
                    if k == "ResponseMetadata":
                        continue
                    if isinstance(v, list):
                        results.extend(v)
                    else:
                        results.append(v)
        return results

    return api_method(**kwargs)


def execute_aws_api_call(
    service_name: str,
    method: str,
    keys: Optional[List[str]] = None,
    role_arn: Optional[str] = None,
    session_config: Optional[Dict[str, Any]] = None,
    client_config: Optional[Dict[str, Any]] = None,
    max_retries: int = 3,
    force_paginate: bool = False,
    backoff_factor: float = 0.5,
    retry_error_codes: Optional[Tuple[str, ...]] = None,
    **kwargs,
) -> OperationResult:
    """Execute an AWS API call with retries and standardized results.

    Transient failures (throttling, connection errors) are retried with
    exponential backoff up to ``max_retries`` times. Every exit path
    returns an `OperationResult`; SDK exceptions never escape.

    Args:
        service_name: AWS service name (e.g., 'dynamodb')
        method: Client method name (e.g., 'update_item')
        keys: Keys to collect from paginated pages
        role_arn: Optional role to assume
        session_config: boto3 session kwargs
        client_config: boto3 client kwargs
        max_retries: Retries for transient failures
        force_paginate: Collect all pages via the client paginator
        backoff_factor: Base delay multiplier in seconds
        retry_error_codes: Only retry transient failures with one of these
            classified error codes (None retries every transient failure)
        **kwargs: Parameters for the API call

    Returns:
        OperationResult with the API response as data, or a classified error
    """
    mapped: Optional[OperationResult] = None

    for attempt in range(max_retries + 1):
        try:
            result = _call_api_once(
                service_name,
                method,
                keys,
                role_arn,
                session_config,
                client_config,
                force_paginate,
                kwargs,
            )
            return OperationResult.success(
                data=result, message=f"{service_name}.{method} succeeded"
            )

        except (ClientError, BotoCoreError) as e:
            mapped = classify_aws_error(e)

            retryable = mapped.is_transient and (
                retry_error_codes is None or mapped.error_code in retry_error_codes
            )
            if retryable and attempt < max_retries:
                delay = _calculate_retry_delay(attempt, backoff_factor)
                logger.warning(
                    "aws_api_retry",
                    service=service_name,
                    method=method,
                    attempt=attempt + 1,
                    error=str(e),
                    delay=delay,
                )
                time.sleep(delay)
                continue

            logger.error(
                "aws_api_error_final",
                service=service_name,
                method=method,
                error=str(e),
                error_code=mapped.error_code,
            )
            return mapped

        except Exception as e:  # pylint: disable=broad-except
            logger.error(
                "aws_api_unexpected_error",
                service=service_name,
                method=method,
                error=str(e),
            )
            return OperationResult.permanent_error(
                message=str(e), error_code="UNEXPECTED_ERROR"
            )

    return mapped or OperationResult.permanent_error(message="unknown_error")
