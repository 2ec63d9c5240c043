"""
Application-scoped service providers.
"""

from infrastructure.services.providers import (
    get_settings,
    get_dynamodb_client,
)

__all__ = [
    "get_settings",
    "get_dynamodb_client",
]
