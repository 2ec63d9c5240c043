"""Infrastructure settings __init__ - exports all infrastructure settings."""

from infrastructure.configuration.infrastructure.attempts import AttemptSettings

__all__ = ["AttemptSettings"]
