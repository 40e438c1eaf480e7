"""Load [tool.transmute] and [tool] from pyproject.toml. Infrastructure I/O only."""

import sys
from pathlib import Path
from typing import Optional

if sys.version_info >= (3, 11):
    import tomllib as toml_lib
else:
    import tomli as toml_lib

from transmute.domain.errors import ConfigurationError


class ConfigFileLoader:
    """
    Loads config from pyproject.toml.
    """

    @staticmethod
    def load_config_from_fs(start: Optional[Path] = None) -> tuple[dict[str, object], dict[str, object]]:
        """Load [tool.transmute] and [tool] from the nearest pyproject.toml. Returns (config_dict, tool_section)."""
        current_path = (start or Path.cwd()).resolve()
        empty: dict[str, object] = {}
        for directory in [current_path, *current_path.parents]:
            config_file = directory / "pyproject.toml"
            if not config_file.exists():
                continue
            try:
                with config_file.open("rb") as f:
                    data = toml_lib.load(f)
            except OSError:
                continue
            except toml_lib.TOMLDecodeError as error:
                raise ConfigurationError(f"{config_file}: {error}") from error
            tool_section = data.get("tool", {}) or {}
            config_dict = tool_section.get("transmute", {}) or {}
            if not isinstance(config_dict, dict):
                raise ConfigurationError(f"{config_file}: [tool.transmute] must be a table")
            return (config_dict, tool_section)
        return (empty, empty)
