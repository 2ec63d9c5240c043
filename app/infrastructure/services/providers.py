"""
Factory functions for application-scoped services.

Only configuration and stateless clients are cached here. Attempt stores
and policy evaluators are constructed explicitly by the batch driver and
passed to whatever composes the interception layer.
"""

from functools import lru_cache

from infrastructure.clients.aws import DynamoDBClient, SessionProvider
from infrastructure.configuration import Settings


@lru_cache
def get_settings() -> Settings:
    """
    Get application-scoped settings singleton.

    The @lru_cache decorator ensures only ONE instance is created per process.

    Returns:
        Settings: Cached settings instance loaded from environment.
    """
    return Settings()


@lru_cache
def get_dynamodb_client() -> DynamoDBClient:
    """Provider for the DynamoDB client used by the attempt ledger.

    Credentials are resolved per API call, so caching the client is safe.

    Returns:
        DynamoDBClient: Client configured with region, endpoint and role map
    """
    settings = get_settings()
    return DynamoDBClient(SessionProvider.from_settings(settings.aws))
