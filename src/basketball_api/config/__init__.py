"""
Configuration management for the Basketball API service.

Configuration is resolved once at process start from layered ``.env``
files and the process environment, validated against required keys and
the secret-safety policy, and then frozen.
"""

from .environment import (
    DEFAULT_SECRET_KEYS,
    ENVIRONMENT_KEY,
    MASK,
    EnvironmentConfig,
    mask_url_credentials,
)
from .loader import (
    ConfigLoader,
    ConfigOrigin,
    LayerReport,
    LayerStatus,
    LoadResult,
    MalformedLine,
    SourceLayer,
    source_layers,
)
from .settings import ServiceSettings, register_service_keys
from .validation import (
    ConfigurationValidator,
    ValidationResult,
    is_insecure_secret,
)

__all__ = [
    "ConfigLoader",
    "ConfigOrigin",
    "ConfigurationValidator",
    "DEFAULT_SECRET_KEYS",
    "ENVIRONMENT_KEY",
    "EnvironmentConfig",
    "LayerReport",
    "LayerStatus",
    "LoadResult",
    "MASK",
    "MalformedLine",
    "ServiceSettings",
    "SourceLayer",
    "ValidationResult",
    "is_insecure_secret",
    "mask_url_credentials",
    "register_service_keys",
    "source_layers",
]
