"""Tests for ConfigFileLoader."""

from pathlib import Path

import pytest

from transmute.domain.errors import ConfigurationError
from transmute.infrastructure.config_file_loader import ConfigFileLoader


def test_nearest_pyproject_is_used(tmp_path: Path) -> None:
    """Loading starts at the given directory and walks up."""
    (tmp_path / "pyproject.toml").write_text(
        '[tool.transmute]\nmax_passes = 5\ncatalogs = ["recipes.yml"]\n\n[tool.other]\nx = 1\n',
        encoding="utf-8",
    )
    nested = tmp_path / "src" / "test" / "java"
    nested.mkdir(parents=True)

    config, tool = ConfigFileLoader.load_config_from_fs(nested)

    assert config == {"max_passes": 5, "catalogs": ["recipes.yml"]}
    assert tool["other"] == {"x": 1}


def test_pyproject_without_section(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text('[project]\nname = "x"\n', encoding="utf-8")
    assert ConfigFileLoader.load_config_from_fs(tmp_path) == ({}, {})


def test_invalid_toml_is_a_configuration_error(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text("[tool.transmute\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        ConfigFileLoader.load_config_from_fs(tmp_path)


def test_section_must_be_a_table(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text('[tool]\ntransmute = "yes"\n', encoding="utf-8")
    with pytest.raises(ConfigurationError, match="must be a table"):
        ConfigFileLoader.load_config_from_fs(tmp_path)
