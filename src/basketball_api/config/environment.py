"""
Immutable runtime configuration with typed accessors.

``EnvironmentConfig`` is built once in the process entry point, has its
required and secret keys registered, is validated, and is then passed by
reference to every component that needs configuration. Validation freezes
it; no key can be registered afterwards and the underlying map is never
mutated.
"""

import json
import os
import re
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterator, List, Mapping, Optional, Union

from basketball_api.exceptions import ConfigurationException, ConfigurationFrozenException
from basketball_api.logging_config import get_logger

from .loader import ConfigLoader, ConfigOrigin, LoadResult
from .validation import ConfigurationValidator, ValidationResult, is_production

logger = get_logger(__name__)

ENVIRONMENT_KEY = "ENVIRONMENT"
DEFAULT_ENVIRONMENT = "development"

DEFAULT_SECRET_KEYS = frozenset({"SESSION_SECRET", "JWT_SECRET", "SECRET_KEY"})

MASK = "***MASKED***"

_INT_PATTERN = re.compile(r"^[+-]?\d+$")
_URL_CREDENTIALS = re.compile(r"//[^/@]*@")


def mask_url_credentials(url: str) -> str:
    """Hide ``user:password@`` credentials in a connection URL."""
    return _URL_CREDENTIALS.sub("//***:***@", url)


class EnvironmentConfig:
    """
    Read-only configuration map with registration of required and secret
    keys, validation, and typed reads.

    Example:
        config = EnvironmentConfig.load(working_dir=".")
        config.require("PORT", "DATABASE_URL").secrets("DATABASE_URL")
        config.validate()
        port = config.get_int("PORT", 3000)
    """

    def __init__(
        self,
        values: Mapping[str, str],
        environment: str = DEFAULT_ENVIRONMENT,
        load_result: Optional[LoadResult] = None,
    ):
        self._values: Mapping[str, str] = MappingProxyType(dict(values))
        self._environment = environment
        self._required_keys = set()
        self._secret_keys = set(DEFAULT_SECRET_KEYS)
        self._frozen = False
        self.load_result = load_result

    @classmethod
    def load(
        cls,
        working_dir: Optional[Union[str, Path]] = None,
        environment: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "EnvironmentConfig":
        """
        Resolve configuration from the layered sources.

        Args:
            working_dir: Directory holding the ``.env*`` files (defaults to cwd)
            environment: Environment label; read from ``ENVIRONMENT`` when omitted
            environ: Process environment to overlay (defaults to ``os.environ``)

        Returns:
            An unvalidated configuration ready for key registration

        Raises:
            ConfigurationException: If a file sets ``ENVIRONMENT`` to a value
                other than the label the files were selected with
        """
        environ = dict(os.environ if environ is None else environ)
        label = environment or environ.get(ENVIRONMENT_KEY) or DEFAULT_ENVIRONMENT

        result = ConfigLoader(working_dir or Path.cwd(), label, environ).load()

        resolved = result.values.get(ENVIRONMENT_KEY)
        if resolved is not None and resolved != label:
            origin = result.origins[ENVIRONMENT_KEY].value
            raise ConfigurationException(
                f"{ENVIRONMENT_KEY} resolved to {resolved!r} from {origin} but "
                f"configuration was loaded for {label!r}; set {ENVIRONMENT_KEY} "
                f"in the process environment",
                config_key=ENVIRONMENT_KEY,
                details={"resolved": resolved, "label": label, "origin": origin},
            )

        return cls(result.values, environment=label, load_result=result)

    # --- Registration ---

    def require(self, *keys: str) -> "EnvironmentConfig":
        """Register keys that must resolve to a non-empty value."""
        if self._frozen:
            raise ConfigurationFrozenException("register required keys")
        self._required_keys.update(keys)
        return self

    def secrets(self, *keys: str) -> "EnvironmentConfig":
        """Register keys whose values are masked and checked for insecure values."""
        if self._frozen:
            raise ConfigurationFrozenException("register secret keys")
        self._secret_keys.update(keys)
        return self

    def validate(self) -> ValidationResult:
        """
        Validate required keys and secrets, then freeze the configuration.

        Raises:
            MissingRequiredConfigException: If a required key is absent or empty
            InsecureSecretConfigException: If a secret is insecure in production
        """
        validator = ConfigurationValidator(
            required_keys=self._required_keys,
            secret_keys=self._secret_keys,
            environment=self._environment,
        )
        result = validator.enforce(self._values)
        self._frozen = True
        return result

    # --- Introspection ---

    @property
    def environment(self) -> str:
        return self._environment

    @property
    def is_production(self) -> bool:
        return is_production(self._environment)

    @property
    def is_development(self) -> bool:
        return self._environment == DEFAULT_ENVIRONMENT

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def required_keys(self) -> FrozenSet[str]:
        return frozenset(self._required_keys)

    @property
    def secret_keys(self) -> FrozenSet[str]:
        return frozenset(self._secret_keys)

    @property
    def values(self) -> Mapping[str, str]:
        return self._values

    def origin_of(self, key: str) -> Optional[ConfigOrigin]:
        """Return which layer a key was resolved from, if known."""
        if self.load_result is None:
            return None
        return self.load_result.origins.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return (
            f"EnvironmentConfig(environment={self._environment!r}, "
            f"keys={len(self._values)}, frozen={self._frozen})"
        )

    # --- Typed accessors ---

    def get_string(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Return the raw value, or ``default`` when the key is absent."""
        value = self._values.get(key)
        return value if value is not None else default

    def get_int(self, key: str, default: Optional[int] = None) -> Optional[int]:
        """Parse a base-10 integer; absent or malformed values yield ``default``."""
        value = self._values.get(key)
        if value is None:
            return default

        text = value.strip()
        if not _INT_PATTERN.match(text):
            logger.warning(f"Ignoring non-integer value for {key}; using default {default!r}")
            return default
        return int(text, 10)

    def get_bool(self, key: str, default: Optional[bool] = None) -> Optional[bool]:
        """True iff the value is ``true`` (any case) or ``1``; absent yields ``default``."""
        value = self._values.get(key)
        if value is None:
            return default
        return value.lower() == "true" or value == "1"

    def get_string_list(
        self, key: str, default: Optional[List[str]] = None
    ) -> List[str]:
        """Split a comma-separated value, trimming and dropping empty items."""
        value = self._values.get(key)
        if not value:
            return list(default) if default is not None else []
        return [item.strip() for item in value.split(",") if item.strip()]

    # --- Safe export ---

    def get_sanitized_view(self) -> Dict[str, str]:
        """
        Copy of the map with every secret value replaced by a mask.

        Any other key holding the same value as a present secret is masked
        too, so an alias cannot expose it.
        """
        secret_values = {
            value
            for key, value in self._values.items()
            if key in self._secret_keys and value
        }
        return {
            key: MASK if key in self._secret_keys or value in secret_values else value
            for key, value in self._values.items()
        }

    def log_configuration(self) -> None:
        """Log a configuration summary; the sanitized map is dumped at debug level."""
        logger.info(f"Environment: {self._environment}")
        logger.info(f"Configuration loaded with {len(self._values)} variables")

        if (self.get_string("LOG_LEVEL") or "").lower() == "debug":
            logger.debug(
                "Configuration: %s",
                json.dumps(self.get_sanitized_view(), indent=2, sort_keys=True),
            )

    def summary(self) -> Dict[str, Any]:
        """Structured summary for startup logging."""
        layers = []
        malformed = 0
        if self.load_result is not None:
            layers = [
                {"file": report.layer.filename, "status": report.status.value}
                for report in self.load_result.layers
            ]
            malformed = len(self.load_result.malformed_lines)

        return {
            "environment": self._environment,
            "keys": len(self._values),
            "layers": layers,
            "malformed_lines": malformed,
            "frozen": self._frozen,
        }
