"""Error classifiers for AWS SDK exceptions.

Converts boto3/botocore exceptions raised while talking to the attempt
ledger into standardized OperationResult objects so store backends can
decide whether the ledger is unavailable.

Usage:
    from infrastructure.operations.classifiers import classify_aws_error

    try:
        response = client.update_item(...)
    except ClientError as e:
        return classify_aws_error(e)
"""

from botocore.exceptions import ClientError

from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus

THROTTLING_CODES = (
    "Throttling",
    "ThrottlingException",
    "RequestLimitExceeded",
    "ProvisionedThroughputExceededException",
)


def classify_aws_error(exc: Exception) -> OperationResult:
    """Classify AWS SDK errors into OperationResult.

    Error Code Mapping:
    - Throttling codes: Rate limiting -> TRANSIENT_ERROR with retry_after
    - AccessDeniedException: Permission denied -> UNAUTHORIZED
    - ResourceNotFoundException: Missing table -> NOT_FOUND
    - ConditionalCheckFailedException: Failed condition -> PERMANENT_ERROR
    - ValidationException: Bad input -> PERMANENT_ERROR
    - Other: Unknown error -> TRANSIENT_ERROR (AWS convention)

    Args:
        exc: Exception raised by AWS SDK (boto3/botocore)

    Returns:
        OperationResult with status, message, error_code and retry_after
    """
    if not isinstance(exc, ClientError):
        # BotoCoreError (connection), timeout, etc.
        return OperationResult.transient_error(
            f"AWS connection error: {type(exc).__name__}: {str(exc)}",
            error_code="CONNECTION_ERROR",
        )

    error_code = "Unknown"
    if hasattr(exc, "response") and exc.response:
        error_info = exc.response.get("Error", {})
        error_code = error_info.get("Code", "Unknown")

    if error_code in THROTTLING_CODES:
        return OperationResult.error(
            OperationStatus.TRANSIENT_ERROR,
            "AWS API throttled",
            error_code="RATE_LIMITED",
            retry_after=60,
        )

    if error_code == "AccessDeniedException":
        return OperationResult.error(
            OperationStatus.UNAUTHORIZED,
            "AWS API access denied",
            error_code="FORBIDDEN",
        )

    if error_code == "ResourceNotFoundException":
        return OperationResult.error(
            OperationStatus.NOT_FOUND,
            "AWS resource not found",
            error_code="NOT_FOUND",
        )

    if error_code == "ConditionalCheckFailedException":
        return OperationResult.permanent_error(
            "AWS conditional check failed",
            error_code="CONDITION_FAILED",
        )

    if error_code in (
        "ValidationException",
        "InvalidParameterException",
        "BadRequestException",
    ):
        return OperationResult.permanent_error(
            f"AWS validation error: {error_code}",
            error_code="INVALID_REQUEST",
        )

    return OperationResult.transient_error(
        f"AWS client error: {error_code}",
        error_code="AWS_CLIENT_ERROR",
    )
