from typing import TYPE_CHECKING, Optional, Protocol

if TYPE_CHECKING:
    from transmute.domain.recipe import Recipe
    from transmute.domain.tree import CompilationUnit, JNode
    from transmute.domain.types import ClassInfo, TypeModel


class TelemetryPort(Protocol):
    """Protocol for telemetry/UI updates."""

    def step(self, message: str) -> None: ...
    def error(self, message: str) -> None: ...
    def warning(self, message: str) -> None: ...
    def handshake(self) -> None: ...


class FrontEndProtocol(Protocol):
    """Produces type-attributed trees from Java source text."""

    def parse(self, text: str, path: str = "<memory>") -> "CompilationUnit":
        """Parse and attribute a compilation unit. Raises FrontEndError on syntax errors."""
        ...

    def parse_fragment(self, text: str, kind: str) -> tuple["JNode", ...]:
        """Parse an expression, a statement list or a member list (unattributed)."""
        ...

    def declared_classes(self, text: str, path: str = "<memory>") -> list["ClassInfo"]:
        """Symbol records for every class declared in a source or stub file."""
        ...


class PrinterProtocol(Protocol):
    """Serializes a tree back to Java source."""

    def print(self, unit: "CompilationUnit") -> str:
        ...


class FileSystemProtocol(Protocol):
    """Protocol for filesystem operations - abstracts Path usage."""

    def resolve_path(self, path: str) -> str:
        """Resolve and normalize a path string."""
        ...

    def is_directory(self, path: str) -> bool:
        """Check if path is a directory."""
        ...

    def glob_source_files(self, path: str, pattern: str = "**/*.java") -> list[str]:
        """Get all matching source files in path (recursive if directory), sorted."""
        ...

    def read_text(self, path: str, encoding: str = "utf-8") -> str:
        """Read text content from a file without translating line endings."""
        ...

    def write_text(self, path: str, content: str, encoding: str = "utf-8") -> None:
        """Write text content to a file without translating line endings."""
        ...


class ClasspathProtocol(Protocol):
    """Builds the auxiliary type model from stub sources."""

    def load(self, extra_directories: Optional[list[str]] = None) -> "TypeModel":
        ...


class CatalogProtocol(Protocol):
    """Named recipes and recipe lists."""

    def names(self) -> list[str]:
        ...

    def resolve(self, name: str) -> list["Recipe"]:
        """Flatten a name to concrete, prepared recipe instances in execution order."""
        ...

    def describe(self, name: str) -> dict[str, object]:
        ...
