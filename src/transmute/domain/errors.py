"""Domain exceptions raised by the transformation engine."""

from typing import Optional


class TransmuteError(Exception):
    """Base class for every error raised by transmute."""


class TemplateSyntaxError(TransmuteError):
    """A template's text does not parse as its declared kind. Raised at preparation time."""

    def __init__(self, template_text: str, reason: str) -> None:
        super().__init__(f"Template does not parse: {reason}\n{template_text}")
        self.template_text = template_text
        self.reason = reason


class TemplateError(TransmuteError):
    """A template could not be synthesized at one site; the site keeps its original code."""

    def __init__(self, message: str, unresolved: Optional[list[str]] = None) -> None:
        super().__init__(message)
        self.unresolved = unresolved or []


class StaleCoordinateError(TemplateError):
    """A coordinate points at a node that is no longer part of the tree being edited."""


class FrontEndError(TransmuteError):
    """The front end could not produce a tree for a source file."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class CatalogError(TransmuteError):
    """The recipe catalog is malformed, cyclic or names an unknown recipe."""


class ConfigurationError(TransmuteError):
    """A [tool.transmute] setting has an invalid value."""
