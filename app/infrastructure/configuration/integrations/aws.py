"""AWS integration settings."""

from typing import Optional

from pydantic import Field

from infrastructure.configuration.base import IntegrationSettings


class AwsSettings(IntegrationSettings):
    """AWS configuration settings.

    Environment Variables:
        AWS_REGION: AWS region for services (default: ca-central-1)
        AWS_ENDPOINT_URL: Custom endpoint (LocalStack, DynamoDB Local)
        AWS_ATTEMPTS_ROLE_ARN: Optional role assumed for the attempt ledger table

    Example:
        ```python
        from infrastructure.services import get_settings

        settings = get_settings()

        region = settings.aws.AWS_REGION
        ```
    """

    AWS_REGION: str = Field(default="ca-central-1", alias="AWS_REGION")
    ENDPOINT_URL: Optional[str] = Field(default=None, alias="AWS_ENDPOINT_URL")
    ATTEMPTS_ROLE_ARN: str = Field(default="", alias="AWS_ATTEMPTS_ROLE_ARN")

    @property
    def SERVICE_ROLE_MAP(self) -> dict[str, str]:
        """Mapping of service names to their associated role ARNs.

        Returns:
            Dict mapping service identifiers to role ARNs (empty roles omitted)
        """
        roles = {"dynamodb": self.ATTEMPTS_ROLE_ARN}
        return {service: arn for service, arn in roles.items() if arn}
