"""Infrastructure AWS clients public API.

DI-friendly AWS clients used by the attempt ledger. Clients are built from
a SessionProvider and return OperationResult for every call:

    from infrastructure.clients.aws import DynamoDBClient, SessionProvider

    dynamodb = DynamoDBClient(SessionProvider(region="ca-central-1"))
    result = dynamodb.get_item("ledger", {"job_id": {"S": "job-1"}, ...})
    if result.is_success:
        item = result.data.get("Item")
"""

from infrastructure.clients.aws.dynamodb import DynamoDBClient
from infrastructure.clients.aws.session_provider import SessionProvider

__all__ = [
    "DynamoDBClient",
    "SessionProvider",
]
