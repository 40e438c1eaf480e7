from typing import TYPE_CHECKING, Any, Optional, cast

from transmute.domain.config import ConfigurationLoader
from transmute.domain.template import TemplateCompiler
from transmute.domain.types import TypeModel
from transmute.infrastructure.catalog_loader import RecipeCatalog
from transmute.infrastructure.config_file_loader import ConfigFileLoader
from transmute.infrastructure.gateways.filesystem_gateway import FileSystemGateway
from transmute.infrastructure.gateways.java_frontend import JavaFrontEnd
from transmute.infrastructure.gateways.java_printer import JavaPrinter
from transmute.infrastructure.reporters import TerminalRunReporter
from transmute.infrastructure.stub_classpath import StubClasspath
from transmute.interface.telemetry import ProjectTelemetry

if TYPE_CHECKING:
    from transmute.domain.protocols import (
        CatalogProtocol,
        ClasspathProtocol,
        FileSystemProtocol,
        FrontEndProtocol,
        PrinterProtocol,
        TelemetryPort,
    )
    from transmute.interface.reporters import RunReporter


class TransmuteContainer:
    """Dependency Injection Container for transmute."""

    _instance: Optional["TransmuteContainer"] = None

    def __init__(self) -> None:
        self._singletons: dict[str, Any] = {}
        self._register_defaults()

    def _register_defaults(self) -> None:
        """Register default implementations for protocols."""
        config_dict, tool_section = ConfigFileLoader.load_config_from_fs()
        config_loader = ConfigurationLoader(config_dict, tool_section)
        self.register_singleton("ConfigurationLoader", config_loader)

        telemetry = ProjectTelemetry("TRANSMUTE", "cyan", "Java recipes ready")
        self.register_singleton("TelemetryPort", telemetry)
        filesystem = FileSystemGateway()
        self.register_singleton("FileSystemGateway", filesystem)
        self.register_singleton("JavaPrinter", JavaPrinter())
        self.register_singleton("StubClasspath", StubClasspath(filesystem))

        # Templates are parsed without a type model, so the catalog does not
        # need the classpath to be loaded.
        compiler = TemplateCompiler(JavaFrontEnd())
        self.register_singleton("TemplateCompiler", compiler)
        self.register_singleton(
            "RecipeCatalog",
            RecipeCatalog(compiler, filesystem=filesystem, extra_catalogs=config_loader.catalogs),
        )
        self.register_singleton("RunReporter", TerminalRunReporter())

    def register_singleton(self, key: str, instance: Any) -> None:
        """Register a singleton instance."""
        self._singletons[key] = instance

    def get(self, key: str) -> Any:
        """Retrieve a dependency by key. Prefer explicit get_* methods for type safety."""
        if key in self._singletons:
            return self._singletons[key]
        raise ValueError(f"Dependency '{key}' not registered.")

    def get_config_loader(self) -> ConfigurationLoader:
        """Return the configuration loader (created at composition root)."""
        return cast(ConfigurationLoader, self.get("ConfigurationLoader"))

    def get_telemetry_port(self) -> "TelemetryPort":
        """Return the telemetry/UI port."""
        return cast("TelemetryPort", self.get("TelemetryPort"))

    def get_filesystem_gateway(self) -> "FileSystemProtocol":
        return cast("FileSystemProtocol", self.get("FileSystemGateway"))

    def get_printer(self) -> "PrinterProtocol":
        return cast("PrinterProtocol", self.get("JavaPrinter"))

    def get_classpath(self) -> "ClasspathProtocol":
        return cast("ClasspathProtocol", self.get("StubClasspath"))

    def get_template_compiler(self) -> TemplateCompiler:
        return cast(TemplateCompiler, self.get("TemplateCompiler"))

    def get_catalog(self) -> "CatalogProtocol":
        """Return the recipe catalog (bundled plus configured catalogs)."""
        return cast("CatalogProtocol", self.get("RecipeCatalog"))

    def get_reporter(self) -> "RunReporter":
        return cast("RunReporter", self.get("RunReporter"))

    def get_type_model(self) -> TypeModel:
        """Return the stub type model. Lazy: parsing the stubs is only needed to transform files."""
        if "TypeModel" not in self._singletons:
            classpath = self.get_classpath()
            self.register_singleton("TypeModel", classpath.load(self.get_config_loader().stubs))
        return cast(TypeModel, self.get("TypeModel"))

    def get_front_end(self) -> "FrontEndProtocol":
        """Return the Java front end, attributing against the stub type model."""
        if "JavaFrontEnd" not in self._singletons:
            self.register_singleton("JavaFrontEnd", JavaFrontEnd(self.get_type_model()))
        return cast("FrontEndProtocol", self.get("JavaFrontEnd"))

    @classmethod
    def get_instance(cls) -> "TransmuteContainer":
        """Get or create global container instance."""
        if cls._instance is None:
            cls._instance = TransmuteContainer()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset the singleton instance (primarily for testing)."""
        cls._instance = None
