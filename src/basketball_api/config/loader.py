"""
Layered ``.env`` configuration loading.

Sources, lowest to highest priority:

1. ``.env``                   base defaults
2. ``.env.<environment>``     environment-specific values
3. ``.env.local``             local overrides, never committed
4. process environment        always wins

File layers are applied highest-priority first and a key is only inserted
when it is not already present, so a value resolved by a higher-priority
file is never overwritten by a lower-priority one. The process environment
is then overlaid unconditionally.
"""

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple, Union

from dotenv.parser import parse_stream

from basketball_api.logging_config import get_logger

logger = get_logger(__name__)


class ConfigOrigin(str, Enum):
    """Source origin for a configuration value."""

    BASE_FILE = "base-file"
    ENVIRONMENT_FILE = "environment-suffixed-file"
    LOCAL_FILE = "local-override-file"
    PROCESS_ENVIRONMENT = "process-environment"


class LayerStatus(str, Enum):
    """Outcome of reading one file layer."""

    LOADED = "loaded"
    MISSING = "missing"
    UNREADABLE = "unreadable"


@dataclass(frozen=True)
class SourceLayer:
    """One configuration source and its priority (higher wins)."""

    origin: ConfigOrigin
    priority: int
    filename: Optional[str] = None


@dataclass(frozen=True)
class MalformedLine:
    """A line that could not be parsed as ``key=value`` and was skipped."""

    path: str
    line_number: int
    content: str


@dataclass(frozen=True)
class LayerReport:
    """What happened to a single file layer during loading."""

    layer: SourceLayer
    path: str
    status: LayerStatus
    keys_loaded: int = 0
    error: Optional[str] = None


@dataclass(frozen=True)
class LoadResult:
    """Resolved configuration map together with an audit of its sources."""

    values: Mapping[str, str]
    origins: Mapping[str, ConfigOrigin]
    layers: Tuple[LayerReport, ...]
    malformed_lines: Tuple[MalformedLine, ...]


def source_layers(environment: str) -> List[SourceLayer]:
    """Return the file and environment layers in ascending priority."""
    return [
        SourceLayer(ConfigOrigin.BASE_FILE, 0, ".env"),
        SourceLayer(ConfigOrigin.ENVIRONMENT_FILE, 1, f".env.{environment}"),
        SourceLayer(ConfigOrigin.LOCAL_FILE, 2, ".env.local"),
        SourceLayer(ConfigOrigin.PROCESS_ENVIRONMENT, 3),
    ]


class ConfigLoader:
    """
    Resolves a single key/value map from layered ``.env`` files and the
    process environment.

    The loader is pure with respect to its inputs: it never mutates
    ``os.environ`` and running it twice against the same files and
    environment yields the same map.
    """

    def __init__(
        self,
        working_dir: Union[str, Path],
        environment: str,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.working_dir = Path(working_dir)
        self.environment = environment
        self._environ = dict(os.environ if environ is None else environ)

    def load(self) -> LoadResult:
        """Load every layer and return the resolved map."""
        values: Dict[str, str] = {}
        origins: Dict[str, ConfigOrigin] = {}
        reports: List[LayerReport] = []
        malformed: List[MalformedLine] = []

        layers = source_layers(self.environment)
        file_layers = [layer for layer in layers if layer.filename is not None]

        for layer in sorted(file_layers, key=lambda l: l.priority, reverse=True):
            report = self._load_file_layer(layer, values, origins, malformed)
            reports.append(report)

        # Process environment variables always take precedence
        for key, value in self._environ.items():
            values[key] = value
            origins[key] = ConfigOrigin.PROCESS_ENVIRONMENT

        # Report layers in ascending priority regardless of application order
        reports.sort(key=lambda r: r.layer.priority)

        return LoadResult(
            values=MappingProxyType(values),
            origins=MappingProxyType(origins),
            layers=tuple(reports),
            malformed_lines=tuple(malformed),
        )

    def _load_file_layer(
        self,
        layer: SourceLayer,
        values: Dict[str, str],
        origins: Dict[str, ConfigOrigin],
        malformed: List[MalformedLine],
    ) -> LayerReport:
        path = self.working_dir / layer.filename

        if not path.is_file():
            logger.debug(f"Configuration file {layer.filename} not found, skipping")
            return LayerReport(layer=layer, path=str(path), status=LayerStatus.MISSING)

        try:
            pairs = self._parse_file(path, malformed)
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Error loading configuration file {path}: {e}")
            return LayerReport(
                layer=layer,
                path=str(path),
                status=LayerStatus.UNREADABLE,
                error=str(e),
            )

        loaded = 0
        for key, value in pairs:
            # Only set if not already defined by a higher-priority layer
            if key not in values:
                values[key] = value
                origins[key] = layer.origin
                loaded += 1

        logger.info(f"Loaded configuration from {layer.filename}")
        return LayerReport(
            layer=layer,
            path=str(path),
            status=LayerStatus.LOADED,
            keys_loaded=loaded,
        )

    @staticmethod
    def _parse_file(path: Path, malformed: List[MalformedLine]) -> List[Tuple[str, str]]:
        """
        Parse ``key=value`` lines, recording and skipping malformed ones.

        python-dotenv splits the file into bindings; values are then taken
        from each binding's source text, so a value is kept as written apart
        from surrounding whitespace and one matching pair of quotes. Inline
        ``#`` text and backslash sequences are not interpreted.
        """
        pairs: List[Tuple[str, str]] = []

        with path.open(encoding="utf-8") as stream:
            bindings = list(parse_stream(stream))

        for binding in bindings:
            # A binding may span several lines (leading blanks, quoted newlines)
            lines = binding.original.string.splitlines()
            for offset, raw in enumerate(lines):
                line = raw.strip()
                if not line or line.startswith("#"):
                    continue

                pair = parse_line(line)
                if pair is None:
                    line_number = binding.original.line + offset
                    malformed.append(
                        MalformedLine(path=str(path), line_number=line_number, content=line)
                    )
                    logger.warning(f"Invalid line in {path}:{line_number}: {line}")
                    continue

                pairs.append(pair)

        return pairs


def parse_line(line: str) -> Optional[Tuple[str, str]]:
    """
    Split a trimmed ``key=value`` line on its first ``=``.

    Returns ``None`` when the line has no ``=`` or an empty key.
    """
    key, sep, value = line.partition("=")
    key = key.strip()
    if not sep or not key:
        return None
    return key, unquote(value.strip())


def unquote(value: str) -> str:
    """Strip one matching pair of single or double quotes."""
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value
