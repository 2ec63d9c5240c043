"""Infrastructure modules for the batch attempt gate.

Centralized infrastructure components:
- configuration: Settings management (settings, AttemptSettings, AwsSettings)
- logging: Structured logging (get_module_logger, bind_log_context)
- operations: Operation results and error classification
- clients: AWS clients (DynamoDBClient)
- services: Cached providers (get_settings, get_dynamodb_client)
- attempts: Attempt ledger, retry policy and operation interception
"""

# Configuration
from infrastructure.configuration import settings

# Logging
from infrastructure.logging import get_module_logger

# Operations
from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus

# Services
from infrastructure.services import get_dynamodb_client, get_settings

__all__ = [
    # Configuration
    "settings",
    # Logging
    "get_module_logger",
    # Operations
    "OperationResult",
    "OperationStatus",
    # Services
    "get_dynamodb_client",
    "get_settings",
]
