"""Pytest configuration and shared fixtures.

Run pytest from this project's root; pythonpath in pyproject.toml puts src/
and tests/ on the path. The stub classpath is parsed once per session since
every recipe test attributes against it.
"""

from typing import Callable
from unittest.mock import MagicMock

import pytest

from transmute.domain.template import TemplateCompiler
from transmute.domain.types import TypeModel
from transmute.infrastructure.gateways.filesystem_gateway import FileSystemGateway
from transmute.infrastructure.gateways.java_frontend import JavaFrontEnd
from transmute.infrastructure.gateways.java_printer import JavaPrinter
from transmute.infrastructure.stub_classpath import StubClasspath


def run_pipeline_required_deps(**overrides: object) -> dict[str, object]:
    """Return required dependency mocks for RunPipelineUseCase. Pass overrides to customize."""
    base = {
        "front_end": MagicMock(),
        "printer": MagicMock(),
        "filesystem": MagicMock(),
        "catalog": MagicMock(),
        "type_model": TypeModel(),
        "telemetry": MagicMock(),
        "config_loader": MagicMock(),
    }
    base.update(overrides)
    return base


@pytest.fixture
def pipeline_deps() -> Callable[..., dict[str, object]]:
    return run_pipeline_required_deps


@pytest.fixture(scope="session")
def type_model() -> TypeModel:
    return StubClasspath(FileSystemGateway()).load()


@pytest.fixture(scope="session")
def front_end(type_model: TypeModel) -> JavaFrontEnd:
    return JavaFrontEnd(type_model)


@pytest.fixture(scope="session")
def printer() -> JavaPrinter:
    return JavaPrinter()


@pytest.fixture(scope="session")
def compiler() -> TemplateCompiler:
    return TemplateCompiler(JavaFrontEnd())
