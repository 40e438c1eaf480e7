"""Recipe catalog: built-in recipes plus declarative recipe lists read from YAML."""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from transmute.domain.errors import CatalogError, ConfigurationError
from transmute.domain.protocols import CatalogProtocol, FileSystemProtocol
from transmute.domain.recipe import Recipe
from transmute.domain.rules import BUILTIN_RECIPES
from transmute.domain.template import TemplateCompiler

logger = logging.getLogger(__name__)

RECIPE_DOCUMENT_TYPE = "transmute/recipe"
BUNDLED_CATALOG = "catalog.yml"
# Packaged resources live next to this module.
RESOURCES_DIR = Path(__file__).resolve().parent / "resources"

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def snake_case(key: str) -> str:
    """``onlyIfUsing`` -> ``only_if_using``; already snake_case keys pass through."""
    return _CAMEL_BOUNDARY.sub("_", key).lower()


@dataclass(frozen=True)
class RecipeReference:
    """One entry of a recipe list: a name plus the options to construct it with."""

    name: str
    options: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RecipeListEntry:
    """A declarative recipe: an ordered list of other recipes."""

    name: str
    display_name: str = ""
    description: str = ""
    tags: tuple[str, ...] = ()
    recipe_list: tuple[RecipeReference, ...] = ()
    source: str = ""


def _parse_reference(item: Any, source: str, owner: str) -> RecipeReference:
    if isinstance(item, str):
        return RecipeReference(item)
    if isinstance(item, dict) and len(item) == 1:
        name, options = next(iter(item.items()))
        if options is None:
            options = {}
        if not isinstance(options, dict):
            raise CatalogError(f"{source}: options of {name} in {owner} must be a mapping")
        return RecipeReference(str(name), {snake_case(str(k)): v for k, v in options.items()})
    raise CatalogError(f"{source}: malformed recipeList entry in {owner}: {item!r}")


def parse_catalog(text: str, source: str) -> list[RecipeListEntry]:
    """Parse every ``type: transmute/recipe`` document of a (multi-document) YAML file."""
    try:
        documents = [d for d in yaml.safe_load_all(text) if d is not None]
    except yaml.YAMLError as error:
        raise CatalogError(f"{source}: invalid YAML: {error}") from error
    entries: list[RecipeListEntry] = []
    for document in documents:
        if not isinstance(document, dict):
            raise CatalogError(f"{source}: every document must be a mapping")
        if document.get("type") != RECIPE_DOCUMENT_TYPE:
            logger.debug("%s: ignoring document of type %r", source, document.get("type"))
            continue
        name = document.get("name")
        if not isinstance(name, str) or not name:
            raise CatalogError(f"{source}: recipe document without a name")
        raw_list = document.get("recipeList") or []
        if not isinstance(raw_list, list):
            raise CatalogError(f"{source}: recipeList of {name} must be a list")
        entries.append(
            RecipeListEntry(
                name=name,
                display_name=str(document.get("displayName", "")),
                description=str(document.get("description", "")).strip(),
                tags=tuple(str(t) for t in document.get("tags") or ()),
                recipe_list=tuple(_parse_reference(item, source, name) for item in raw_list),
                source=source,
            )
        )
    return entries


class RecipeCatalog(CatalogProtocol):
    """
    Resolves recipe names to prepared recipe instances.

    Names are either built-in recipe classes or recipe lists from the bundled
    ``catalog.yml`` and any extra catalog files. A later catalog may redefine a
    list from an earlier one.
    """

    def __init__(
        self,
        compiler: TemplateCompiler,
        filesystem: Optional[FileSystemProtocol] = None,
        extra_catalogs: Optional[list[str]] = None,
        builtins: Optional[Mapping[str, type[Recipe]]] = None,
        resources_dir: Optional[Path] = None,
    ) -> None:
        self.compiler = compiler
        self.filesystem = filesystem
        self.builtins = dict(BUILTIN_RECIPES if builtins is None else builtins)
        self._resources_dir = resources_dir or RESOURCES_DIR
        self._lists: dict[str, RecipeListEntry] = {}
        self._load(self._bundled_text(), f"<bundled>/{BUNDLED_CATALOG}")
        for path in extra_catalogs or []:
            self._load(self._read_extra(path), path)

    def _bundled_text(self) -> str:
        resource = self._resources_dir / BUNDLED_CATALOG
        return resource.read_text(encoding="utf-8")

    def _read_extra(self, path: str) -> str:
        if self.filesystem is None:
            raise ConfigurationError(f"Cannot read catalog {path}: no filesystem available")
        try:
            return self.filesystem.read_text(self.filesystem.resolve_path(path))
        except OSError as error:
            raise ConfigurationError(f"Catalog file not readable: {path} ({error})") from error

    def _load(self, text: str, source: str) -> None:
        for entry in parse_catalog(text, source):
            if entry.name in self.builtins:
                raise CatalogError(f"{source}: {entry.name} is a built-in recipe and cannot be redefined")
            if entry.name in self._lists:
                logger.warning("Catalog %s redefines %s (was %s)", source, entry.name, self._lists[entry.name].source)
            self._lists[entry.name] = entry

    # ------------------------------------------------------------------
    # CatalogProtocol
    # ------------------------------------------------------------------

    def names(self) -> list[str]:
        return sorted(set(self.builtins) | set(self._lists))

    def resolve(self, name: str) -> list[Recipe]:
        recipes = [self._instantiate(reference) for reference in self._flatten(RecipeReference(name), ())]
        logger.debug("Resolved %s to %d recipes", name, len(recipes))
        return recipes

    def describe(self, name: str) -> dict[str, object]:
        if name in self._lists:
            entry = self._lists[name]
            return {
                "name": entry.name,
                "kind": "list",
                "display_name": entry.display_name,
                "description": entry.description,
                "tags": list(entry.tags),
                "recipes": [
                    {"name": r.name, "options": dict(r.options)}
                    for r in self._flatten(RecipeReference(name), ())
                ],
            }
        recipe_class = self._builtin(name)
        return {
            "name": recipe_class.name,
            "kind": "recipe",
            "display_name": recipe_class.display_name,
            "description": recipe_class.description,
            "tags": list(recipe_class.tags),
            "estimated_effort": recipe_class.estimated_effort,
            "recipes": [{"name": recipe_class.name, "options": {}}],
        }

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def _flatten(self, reference: RecipeReference, stack: tuple[str, ...]) -> list[RecipeReference]:
        if reference.name in stack:
            cycle = " -> ".join(stack + (reference.name,))
            raise CatalogError(f"Recipe lists form a cycle: {cycle}")
        entry = self._lists.get(reference.name)
        if entry is None:
            self._builtin(reference.name)
            return [reference]
        if reference.options:
            raise CatalogError(f"{reference.name} is a recipe list and takes no options")
        flattened: list[RecipeReference] = []
        for child in entry.recipe_list:
            flattened.extend(self._flatten(child, stack + (reference.name,)))
        return flattened

    def _builtin(self, name: str) -> type[Recipe]:
        try:
            return self.builtins[name]
        except KeyError:
            raise CatalogError(f"Unknown recipe: {name}") from None

    def _instantiate(self, reference: RecipeReference) -> Recipe:
        recipe_class = self._builtin(reference.name)
        try:
            recipe = recipe_class(**reference.options)
        except (TypeError, ValueError) as error:
            raise CatalogError(f"Invalid options for {reference.name}: {error}") from error
        return recipe.prepare(self.compiler)
