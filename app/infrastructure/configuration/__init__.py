"""Infrastructure configuration module - public API.

Centralized configuration management using Pydantic BaseSettings with
domain-based organization.

Exports:
    settings: Singleton Settings instance (main configuration object)
    Settings: Main settings class (for testing/overrides)
    AttemptSettings: Attempt ledger settings class
    AwsSettings: AWS integration settings class

Example:
    ```python
    from infrastructure.services import get_settings

    settings = get_settings()

    backend = settings.attempts.backend
    region = settings.aws.AWS_REGION
    ```
"""

from infrastructure.configuration.settings import Settings, settings
from infrastructure.configuration.infrastructure.attempts import AttemptSettings
from infrastructure.configuration.integrations.aws import AwsSettings

__all__ = ["Settings", "settings", "AttemptSettings", "AwsSettings"]
