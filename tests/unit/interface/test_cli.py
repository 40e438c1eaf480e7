"""Unit tests for Typer-based CLI interface."""

from unittest.mock import Mock, patch

from typer.testing import CliRunner

from transmute.domain.config import ConfigurationLoader
from transmute.domain.entities import FileResult, Outcome, RewriteEvent, RunResult
from transmute.domain.errors import CatalogError
from transmute.interface.cli import EXIT_FAILURES, EXIT_USAGE, CLIAppFactory, CLIDependencies

runner = CliRunner()


def _make_mock_deps(**overrides) -> CLIDependencies:
    """Create CLIDependencies with mock adapters for testing."""
    defaults: dict = {
        "config_loader": ConfigurationLoader({}),
        "telemetry": Mock(),
        "catalog": Mock(),
        "reporter": Mock(),
        "filesystem": Mock(),
        "printer": Mock(),
        "front_end_provider": Mock(),
        "type_model_provider": Mock(),
    }
    defaults.update(overrides)
    return CLIDependencies(**defaults)


def _result(failed: bool = False) -> RunResult:
    events = []
    if failed:
        events.append(RewriteEvent("transmute.pipeline", "A.java", "-", Outcome.FAILED, "boom"))
    return RunResult([FileResult("A.java", "class A {}", unit=Mock(), text="class A {}", events=events)])


class TestRunCommand:
    """Tests for 'transmute run'."""

    @patch("transmute.interface.cli.RunPipelineUseCase")
    def test_run_passes_options_and_reports(self, mock_use_case_cls) -> None:
        deps = _make_mock_deps()
        mock_use_case_cls.return_value.execute.return_value = _result()
        app = CLIAppFactory.create_app(deps)

        result = runner.invoke(
            app,
            ["run", "src/test/java", "-r", "transmute.junit5.JUnit4to5Migration", "--dry-run", "-w", "4",
             "--hide-skipped"],
        )

        assert result.exit_code == 0, result.output
        mock_use_case_cls.return_value.execute.assert_called_once_with(
            "src/test/java",
            recipe_name="transmute.junit5.JUnit4to5Migration",
            dry_run=True,
            workers=4,
            max_passes=None,
        )
        deps.telemetry.handshake.assert_called_once()
        deps.reporter.report_run.assert_called_once_with(
            mock_use_case_cls.return_value.execute.return_value, show_skipped=False
        )

    @patch("transmute.interface.cli.RunPipelineUseCase")
    def test_stub_classpath_is_loaded_on_demand(self, mock_use_case_cls) -> None:
        deps = _make_mock_deps()
        mock_use_case_cls.return_value.execute.return_value = _result()

        runner.invoke(CLIAppFactory.create_app(deps), ["run", "A.java"])

        deps.front_end_provider.assert_called_once()
        deps.type_model_provider.assert_called_once()
        kwargs = mock_use_case_cls.call_args.kwargs
        assert kwargs["front_end"] is deps.front_end_provider.return_value
        assert kwargs["config_loader"] is deps.config_loader

    @patch("transmute.interface.cli.RunPipelineUseCase")
    def test_failed_file_exits_with_failure_code(self, mock_use_case_cls) -> None:
        deps = _make_mock_deps()
        mock_use_case_cls.return_value.execute.return_value = _result(failed=True)

        result = runner.invoke(CLIAppFactory.create_app(deps), ["run", "A.java"])

        assert result.exit_code == EXIT_FAILURES
        deps.reporter.report_run.assert_called_once()

    @patch("transmute.interface.cli.RunPipelineUseCase")
    def test_unknown_recipe_is_a_usage_error(self, mock_use_case_cls) -> None:
        deps = _make_mock_deps()
        mock_use_case_cls.return_value.execute.side_effect = CatalogError("Unknown recipe: nope")

        result = runner.invoke(CLIAppFactory.create_app(deps), ["run", "A.java", "-r", "nope"])

        assert result.exit_code == EXIT_USAGE
        deps.telemetry.error.assert_called_once_with("Unknown recipe: nope")
        deps.reporter.report_run.assert_not_called()

    def test_workers_must_be_positive(self) -> None:
        result = runner.invoke(CLIAppFactory.create_app(_make_mock_deps()), ["run", "A.java", "-w", "0"])
        assert result.exit_code != 0


class TestCatalogCommands:
    """Tests for 'transmute recipes' and 'transmute describe'."""

    def test_recipes_lists_every_name(self) -> None:
        catalog = Mock()
        catalog.names.return_value = ["a.List", "b.Recipe"]
        catalog.describe.side_effect = lambda name: {
            "a.List": {"display_name": "A list", "kind": "list"},
            "b.Recipe": {"display_name": "", "kind": "recipe"},
        }[name]
        deps = _make_mock_deps(catalog=catalog)

        result = runner.invoke(CLIAppFactory.create_app(deps), ["recipes"])

        assert result.exit_code == 0
        deps.reporter.report_recipes.assert_called_once_with(
            [
                {"name": "a.List", "display_name": "A list", "kind": "list"},
                {"name": "b.Recipe", "display_name": "", "kind": "recipe"},
            ]
        )

    def test_describe_reports_description(self) -> None:
        catalog = Mock()
        catalog.describe.return_value = {"name": "a.List", "kind": "list", "recipes": []}
        deps = _make_mock_deps(catalog=catalog)

        result = runner.invoke(CLIAppFactory.create_app(deps), ["describe", "a.List"])

        assert result.exit_code == 0
        deps.reporter.report_description.assert_called_once_with(catalog.describe.return_value)

    def test_describe_unknown_name(self) -> None:
        catalog = Mock()
        catalog.describe.side_effect = CatalogError("Unknown recipe: nope")
        deps = _make_mock_deps(catalog=catalog)

        result = runner.invoke(CLIAppFactory.create_app(deps), ["describe", "nope"])

        assert result.exit_code == EXIT_USAGE
        deps.telemetry.error.assert_called_once_with("Unknown recipe: nope")
