"""Filesystem Gateway - Infrastructure implementation of FileSystemProtocol."""

from pathlib import Path

from transmute.domain.protocols import FileSystemProtocol


class FileSystemGateway(FileSystemProtocol):
    """Infrastructure implementation of FileSystemProtocol using pathlib."""

    def resolve_path(self, path: str) -> str:
        """Resolve and normalize a path string."""
        return str(Path(path).resolve())

    def is_directory(self, path: str) -> bool:
        """Check if path is a directory."""
        return Path(path).is_dir()

    def glob_source_files(self, path: str, pattern: str = "**/*.java") -> list[str]:
        """Get all matching source files in path (recursive if directory), sorted."""
        path_obj = Path(path).resolve()
        if path_obj.is_dir():
            return sorted(str(p) for p in path_obj.glob(pattern) if p.is_file())
        suffix = Path(pattern).suffix
        if path_obj.is_file() and (not suffix or path_obj.suffix == suffix):
            return [str(path_obj)]
        return []

    def read_text(self, path: str, encoding: str = "utf-8") -> str:
        """Read text content from a file, line endings untranslated."""
        with open(path, encoding=encoding, newline="") as handle:
            return handle.read()

    def write_text(self, path: str, content: str, encoding: str = "utf-8") -> None:
        """Write text content to a file, line endings as given."""
        with open(path, "w", encoding=encoding, newline="") as handle:
            handle.write(content)
