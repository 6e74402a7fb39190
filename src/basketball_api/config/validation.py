"""
Configuration validation and startup checks.

Validates the resolved configuration map against the registered required
keys and, in production, against the insecure-secret policy. Validation
failures are fatal and must be reported before any listener is opened.
"""

import re
from dataclasses import dataclass, field
from typing import AbstractSet, FrozenSet, List, Mapping

from basketball_api.exceptions import (
    InsecureSecretConfigException,
    MissingRequiredConfigException,
)
from basketball_api.logging_config import get_logger

logger = get_logger(__name__)

PRODUCTION = "production"

MIN_SECRET_LENGTH = 16

INSECURE_SECRET_PATTERNS = (
    re.compile(r"^(dev|development|test|staging|demo)", re.IGNORECASE),
    re.compile(r"^(your-|change-this|replace-with|example)", re.IGNORECASE),
    re.compile(r"^(secret|password|key)$", re.IGNORECASE),
    re.compile(r"^(123|abc|test)", re.IGNORECASE),
)


def is_insecure_secret(value: str) -> bool:
    """Return True if a secret looks like a default, placeholder or short value."""
    if len(value) < MIN_SECRET_LENGTH:
        return True
    return any(pattern.match(value) for pattern in INSECURE_SECRET_PATTERNS)


def is_production(environment: str) -> bool:
    return environment == PRODUCTION


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a single validation pass."""

    environment: str
    missing_keys: FrozenSet[str] = field(default_factory=frozenset)
    insecure_keys: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def is_valid(self) -> bool:
        """Whether startup may proceed under the enforcement policy."""
        return not (self.missing_keys or self.insecure_keys)


class ConfigurationValidator:
    """
    Validates resolved configuration against required keys and the
    secret-safety policy.

    Insecure secrets are only fatal in production. In other environments
    the same check runs in advisory mode and is reported as warnings.
    """

    def __init__(
        self,
        required_keys: AbstractSet[str],
        secret_keys: AbstractSet[str],
        environment: str,
    ):
        self.required_keys = frozenset(required_keys)
        self.secret_keys = frozenset(secret_keys)
        self.environment = environment
        self.warnings: List[str] = []

    def validate(self, values: Mapping[str, str]) -> ValidationResult:
        """Check the map and return the missing and insecure keys."""
        logger.debug(f"Validating configuration for {self.environment} environment")
        self.warnings.clear()

        missing = frozenset(key for key in self.required_keys if not values.get(key))

        insecure = frozenset(
            key
            for key in self.secret_keys
            if values.get(key) and is_insecure_secret(values[key])
        )

        if insecure and not is_production(self.environment):
            for key in sorted(insecure):
                self.warnings.append(
                    f"{key} holds a value that would be rejected in production"
                )
            # Only production enforces the secret policy
            insecure = frozenset()

        return ValidationResult(
            environment=self.environment,
            missing_keys=missing,
            insecure_keys=insecure,
        )

    def enforce(self, values: Mapping[str, str]) -> ValidationResult:
        """
        Validate and raise on failure.

        Raises:
            MissingRequiredConfigException: If a required key is absent or empty
            InsecureSecretConfigException: If a secret is insecure in production
        """
        result = self.validate(values)

        for warning in self.warnings:
            logger.warning(f"Configuration warning: {warning}")

        if result.missing_keys:
            logger.error(
                f"Missing required environment variables: {', '.join(sorted(result.missing_keys))}"
            )
            raise MissingRequiredConfigException(result.missing_keys, self.environment)

        if result.insecure_keys:
            logger.error(
                f"Insecure secrets detected in production: {', '.join(sorted(result.insecure_keys))}"
            )
            raise InsecureSecretConfigException(result.insecure_keys, self.environment)

        logger.info(f"Configuration validated for {self.environment} environment")
        return result
