"""Analysis configuration file.

Config file format (``callchain.json``)::

    {
        "scope": "com.example",
        "fan_out": "all",
        "cycle_scope": "path-local",
        "output_format": "text",
        "dispatch_edges": true,
        "max_visits": 100000,
        "entry_methods": ["main"],
        "exclude": ["**/generated/*"],
        "encoding": "utf-8"
    }

Every key is optional. Command-line flags override file values.
"""

import logging
from pathlib import Path
from typing import Optional

import msgspec

from .errors import ConfigError
from .policy import DEFAULT_MAX_VISITS, CycleScope, FanOutPolicy, OutputFormat, TraversalPolicy

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "callchain.json"


class AnalysisConfig(msgspec.Struct, forbid_unknown_fields=True, frozen=True):
    """Settings for one analysis request."""

    scope: str = ""
    fan_out: FanOutPolicy = FanOutPolicy.ALL
    cycle_scope: CycleScope = CycleScope.PATH_LOCAL
    output_format: OutputFormat = OutputFormat.TEXT
    dispatch_edges: bool = True
    max_visits: Optional[int] = DEFAULT_MAX_VISITS
    entry_methods: tuple[str, ...] = ("main",)
    exclude: tuple[str, ...] = ()
    encoding: str = "utf-8"

    def __post_init__(self):
        if self.max_visits is not None and self.max_visits < 1:
            raise ConfigError(f"max_visits must be positive, got {self.max_visits}")
        if not self.entry_methods:
            raise ConfigError("entry_methods must name at least one method")

    def to_policy(self) -> TraversalPolicy:
        return TraversalPolicy(
            fan_out=self.fan_out,
            cycle_scope=self.cycle_scope,
            output_format=self.output_format,
            dispatch_edges=self.dispatch_edges,
            max_visits=self.max_visits,
            entry_methods=self.entry_methods,
        )

    def override(self, **changes) -> "AnalysisConfig":
        """Return a copy with the non-None ``changes`` applied."""
        changes = {k: v for k, v in changes.items() if v is not None}
        if not changes:
            return self
        try:
            return msgspec.structs.replace(self, **changes)
        except (TypeError, ValueError) as e:
            raise ConfigError(str(e)) from e


_decoder = msgspec.json.Decoder(AnalysisConfig)


def load_config(path: Optional[Path] = None) -> AnalysisConfig:
    """Load the config file.

    Without an explicit path, ``callchain.json`` in the working directory is
    used when present; otherwise defaults apply.

    Raises:
        ConfigError: If the file is missing, unreadable or invalid.
    """
    if path is None:
        default = Path.cwd() / DEFAULT_CONFIG_NAME
        if not default.is_file():
            return AnalysisConfig()
        path = default

    try:
        data = Path(path).read_bytes()
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e

    try:
        config = _decoder.decode(data)
    except msgspec.ValidationError as e:
        raise ConfigError(f"Invalid config file {path}: {e}") from e
    except msgspec.DecodeError as e:
        raise ConfigError(f"Config file {path} is not valid JSON: {e}") from e

    logger.debug(f"Loaded config from {path}")
    return config
