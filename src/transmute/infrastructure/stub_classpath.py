"""Builds the auxiliary type model from bundled and user-supplied Java stub sources."""

import logging
from pathlib import Path
from typing import Iterable, Optional

from transmute.domain.attribution import TypeAttributor
from transmute.domain.errors import ConfigurationError, FrontEndError
from transmute.domain.protocols import ClasspathProtocol, FileSystemProtocol
from transmute.domain.tree import ClassDeclaration, CompilationUnit
from transmute.domain.types import ClassInfo, TypeModel
from transmute.infrastructure.gateways.java_frontend import JavaFrontEnd

logger = logging.getLogger(__name__)

STUB_SUFFIX = ".java"
BUNDLED_STUBS_DIR = Path(__file__).resolve().parent / "resources" / "stubs"


def _declared_names(declaration: ClassDeclaration, fqn: str) -> Iterable[str]:
    yield fqn
    for member in declaration.members:
        if isinstance(member, ClassDeclaration):
            yield from _declared_names(member, f"{fqn}.{member.name}")


class StubClasspath(ClasspathProtocol):
    """
    Stub sources are ordinary Java files whose methods may omit their bodies.

    Loading is two-phase: every declared class name is registered first so
    that signatures may refer to classes from any other stub file, then each
    file's members are resolved against that name table.
    """

    def __init__(
        self,
        filesystem: FileSystemProtocol,
        front_end: Optional[JavaFrontEnd] = None,
        stubs_dir: Optional[Path] = None,
    ) -> None:
        self.filesystem = filesystem
        self.front_end = front_end or JavaFrontEnd()
        self._stubs_dir = stubs_dir or BUNDLED_STUBS_DIR

    def bundled_sources(self) -> list[tuple[str, str]]:
        """(name, text) for every stub shipped with the package, sorted by name."""
        entries = sorted(self._stubs_dir.glob(f"*{STUB_SUFFIX}"), key=lambda entry: entry.name)
        return [(f"<stubs>/{entry.name}", entry.read_text(encoding="utf-8")) for entry in entries]

    def load(self, extra_directories: Optional[list[str]] = None) -> TypeModel:
        units = [self._parse(name, text, bundled=True) for name, text in self.bundled_sources()]
        for directory in extra_directories or []:
            resolved = self.filesystem.resolve_path(directory)
            if not self.filesystem.is_directory(resolved):
                raise ConfigurationError(f"Stub directory not found: {directory}")
            for path in self.filesystem.glob_source_files(resolved, f"**/*{STUB_SUFFIX}"):
                unit = self._parse(path, self.filesystem.read_text(path), bundled=False)
                if unit is not None:
                    units.append(unit)
        parsed = [u for u in units if u is not None]
        names = TypeModel({fqn: ClassInfo(fqn) for fqn in self._all_names(parsed)})
        attributor = TypeAttributor(names)
        infos: dict[str, ClassInfo] = {}
        for unit in parsed:
            for info in attributor.declared_classes(unit, names):
                infos[info.fqn] = info
        logger.debug("Loaded %d stub classes from %d files", len(infos), len(parsed))
        return TypeModel(infos)

    def _parse(self, path: str, text: str, bundled: bool) -> Optional[CompilationUnit]:
        try:
            return self.front_end.parse_unattributed(text, path)
        except FrontEndError as error:
            if bundled:
                raise
            logger.warning("Skipping stub file %s: %s", path, error.reason)
            return None

    @staticmethod
    def _all_names(units: list[CompilationUnit]) -> list[str]:
        names: list[str] = []
        for unit in units:
            prefix = f"{unit.package_name}." if unit.package_name else ""
            for declaration in unit.classes:
                names.extend(_declared_names(declaration, prefix + declaration.name))
        return names
