"""Configuration for transmute runs. Immutable value object created by Infrastructure."""

import logging
from typing import Optional

from transmute.domain.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_MAX_PASSES = 3
DEFAULT_WORKERS = 1
DEFAULT_INCLUDE = "**/*.java"
DEFAULT_RECIPE = "transmute.junit5.JUnit4to5Migration"

KNOWN_KEYS = frozenset({"max_passes", "workers", "catalogs", "stubs", "recipe", "include"})


class ConfigurationLoader:
    """
    Settings from ``[tool.transmute]``.

    Created by Infrastructure from (config_dict, tool_section). Domain does not
    read the filesystem; Infrastructure calls ConfigFileLoader.load_config_from_fs()
    and constructs ConfigurationLoader(config_dict, tool_section) at composition root.
    """

    def __init__(
        self,
        config_dict: Optional[dict[str, object]] = None,
        tool_section: Optional[dict[str, object]] = None,
    ) -> None:
        self._config = dict(config_dict or {})
        self._tool_section = dict(tool_section or {})
        self.validate_config(self._config)

    def validate_config(self, config: dict[str, object]) -> None:
        """Reject invalid values; unknown keys are only warned about."""
        for key in sorted(set(config) - KNOWN_KEYS):
            logger.warning("Configuration Warning: unknown [tool.transmute] key '%s' ignored.", key)
        for key in ("max_passes", "workers"):
            if key in config:
                value = config[key]
                if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                    raise ConfigurationError(f"[tool.transmute] {key} must be a positive integer, got {value!r}")
        for key in ("catalogs", "stubs"):
            if key in config:
                value = config[key]
                if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                    raise ConfigurationError(f"[tool.transmute] {key} must be a list of paths, got {value!r}")
        for key in ("recipe", "include"):
            if key in config and not (isinstance(config[key], str) and config[key]):
                raise ConfigurationError(f"[tool.transmute] {key} must be a non-empty string, got {config[key]!r}")

    @property
    def config(self) -> dict[str, object]:
        """Return the loaded configuration."""
        return self._config

    @property
    def tool_section(self) -> dict[str, object]:
        return self._tool_section

    @property
    def max_passes(self) -> int:
        """Upper bound on re-running the recipe list over one file."""
        return int(self._config.get("max_passes", DEFAULT_MAX_PASSES))  # type: ignore[call-overload]

    @property
    def workers(self) -> int:
        return int(self._config.get("workers", DEFAULT_WORKERS))  # type: ignore[call-overload]

    @property
    def catalogs(self) -> list[str]:
        """Extra catalog YAML files, loaded after the bundled catalog."""
        raw = self._config.get("catalogs", [])
        return [str(x) for x in raw] if isinstance(raw, list) else []

    @property
    def stubs(self) -> list[str]:
        """Extra stub directories added to the bundled classpath."""
        raw = self._config.get("stubs", [])
        return [str(x) for x in raw] if isinstance(raw, list) else []

    @property
    def recipe(self) -> str:
        return str(self._config.get("recipe", DEFAULT_RECIPE))

    @property
    def include(self) -> str:
        return str(self._config.get("include", DEFAULT_INCLUDE))
