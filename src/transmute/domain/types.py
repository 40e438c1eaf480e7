"""Resolved Java types and the read-only type model they are checked against."""

from collections import deque
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Union


@dataclass(frozen=True)
class Primitive:
    """A primitive type keyword; also used for ``void`` and the null type."""

    keyword: str

    def __str__(self) -> str:
        return self.keyword


@dataclass(frozen=True)
class ClassType:
    """A class, interface, enum or annotation type, possibly parameterized."""

    fqn: str
    type_arguments: tuple["JavaType", ...] = ()

    @property
    def simple_name(self) -> str:
        return self.fqn.rsplit(".", 1)[-1]

    def erasure(self) -> "ClassType":
        return ClassType(self.fqn) if self.type_arguments else self

    def __str__(self) -> str:
        if not self.type_arguments:
            return self.fqn
        return f"{self.fqn}<{', '.join(str(t) for t in self.type_arguments)}>"


@dataclass(frozen=True)
class ArrayType:
    element: "JavaType"

    def __str__(self) -> str:
        return f"{self.element}[]"


@dataclass(frozen=True)
class TypeVariable:
    """A generic type parameter; erased to its bound (or Object) when checked."""

    name: str
    bound: Optional[ClassType] = None

    def __str__(self) -> str:
        return self.name


JavaType = Union[Primitive, ClassType, ArrayType, TypeVariable]

NULL = Primitive("null")
VOID = Primitive("void")
OBJECT = ClassType("java.lang.Object")
STRING = ClassType("java.lang.String")
CLASS = ClassType("java.lang.Class")

PRIMITIVE_KEYWORDS = frozenset(
    {"boolean", "byte", "short", "char", "int", "long", "float", "double", "void"}
)

_WIDENING: Mapping[str, frozenset[str]] = MappingProxyType({
    "byte": frozenset({"short", "int", "long", "float", "double"}),
    "short": frozenset({"int", "long", "float", "double"}),
    "char": frozenset({"int", "long", "float", "double"}),
    "int": frozenset({"long", "float", "double"}),
    "long": frozenset({"float", "double"}),
    "float": frozenset({"double"}),
})

_BOXES: Mapping[str, str] = MappingProxyType({
    "boolean": "java.lang.Boolean",
    "byte": "java.lang.Byte",
    "short": "java.lang.Short",
    "char": "java.lang.Character",
    "int": "java.lang.Integer",
    "long": "java.lang.Long",
    "float": "java.lang.Float",
    "double": "java.lang.Double",
})
_UNBOXES: Mapping[str, str] = MappingProxyType({v: k for k, v in _BOXES.items()})


@dataclass(frozen=True)
class MethodType:
    """Resolved signature of a method, including where it is declared."""

    declaring_type: ClassType
    name: str
    parameter_types: tuple[JavaType, ...] = ()
    return_type: JavaType = VOID
    is_static: bool = False
    is_varargs: bool = False
    type_parameters: tuple[str, ...] = ()

    @property
    def signature(self) -> str:
        params = ", ".join(str(p) for p in self.parameter_types)
        return f"{self.declaring_type.fqn} {self.name}({params})"

    def accepts_arity(self, count: int) -> bool:
        if self.is_varargs:
            return count >= len(self.parameter_types) - 1
        return count == len(self.parameter_types)


@dataclass(frozen=True)
class FieldInfo:
    name: str
    type: JavaType
    is_static: bool = False


@dataclass(frozen=True)
class ClassInfo:
    """Declared members of one type, as seen by the attributor."""

    fqn: str
    kind: str = "class"
    type_parameters: tuple[str, ...] = ()
    supertypes: tuple[ClassType, ...] = ()
    methods: tuple[MethodType, ...] = ()
    fields: tuple[FieldInfo, ...] = ()

    @property
    def package(self) -> str:
        return self.fqn.rsplit(".", 1)[0] if "." in self.fqn else ""


def is_reference(java_type: Optional[JavaType]) -> bool:
    return java_type is not None and not (
        isinstance(java_type, Primitive) and java_type.keyword in PRIMITIVE_KEYWORDS
    )


def substitute(java_type: JavaType, bindings: Mapping[str, JavaType]) -> JavaType:
    """Replace type variables named in ``bindings``; unbound variables erase to their bound."""
    if isinstance(java_type, TypeVariable):
        if java_type.name in bindings:
            return bindings[java_type.name]
        return java_type.bound or OBJECT
    if isinstance(java_type, ClassType) and java_type.type_arguments:
        return ClassType(
            java_type.fqn, tuple(substitute(t, bindings) for t in java_type.type_arguments)
        )
    if isinstance(java_type, ArrayType):
        return ArrayType(substitute(java_type.element, bindings))
    return java_type


class TypeModel:
    """
    Immutable symbol table of known classes.

    Built once from stub sources and shared by every worker. Files add their
    own declarations through ``merged``, which returns a new model.
    """

    def __init__(self, classes: Optional[Mapping[str, ClassInfo]] = None) -> None:
        self._classes: Mapping[str, ClassInfo] = MappingProxyType(dict(classes or {}))

    def __contains__(self, fqn: object) -> bool:
        return fqn in self._classes

    def __len__(self) -> int:
        return len(self._classes)

    @property
    def class_names(self) -> list[str]:
        return sorted(self._classes)

    def lookup(self, fqn: str) -> Optional[ClassInfo]:
        return self._classes.get(fqn)

    def merged(self, infos: Iterable[ClassInfo]) -> "TypeModel":
        combined = dict(self._classes)
        for info in infos:
            combined[info.fqn] = info
        return TypeModel(combined)

    def ancestors(self, fqn: str) -> list[str]:
        """Breadth-first supertype closure including ``fqn`` itself."""
        seen: list[str] = []
        queue = deque([fqn])
        while queue:
            current = queue.popleft()
            if current in seen:
                continue
            seen.append(current)
            info = self._classes.get(current)
            if info is not None:
                queue.extend(s.fqn for s in info.supertypes)
        if "java.lang.Object" not in seen:
            seen.append("java.lang.Object")
        return seen

    def is_subtype(self, sub_fqn: str, super_fqn: str) -> bool:
        if sub_fqn == super_fqn or super_fqn == "java.lang.Object":
            return True
        return super_fqn in self.ancestors(sub_fqn)

    def find_field(self, fqn: str, name: str) -> Optional[FieldInfo]:
        for ancestor in self.ancestors(fqn):
            info = self._classes.get(ancestor)
            if info is None:
                continue
            for declared in info.fields:
                if declared.name == name:
                    return declared
        return None

    def find_methods(self, fqn: str, name: str) -> list[MethodType]:
        """Methods named ``name`` visible on ``fqn``; overrides hide the supertype declaration."""
        found: list[MethodType] = []
        signatures: set[tuple[str, ...]] = set()
        for ancestor in self.ancestors(fqn):
            info = self._classes.get(ancestor)
            if info is None:
                continue
            for method in info.methods:
                if method.name != name:
                    continue
                key = tuple(str(p) for p in method.parameter_types)
                if key in signatures:
                    continue
                signatures.add(key)
                found.append(method)
        return found

    def is_assignable(self, target: JavaType, source: Optional[JavaType]) -> bool:
        """Whether a value of type ``source`` may be assigned to ``target``. Unknown is never assignable."""
        if source is None:
            return False
        if source == NULL:
            return is_reference(target)
        if isinstance(target, TypeVariable):
            return is_reference(source) or (
                isinstance(source, Primitive) and source.keyword in _BOXES
            )
        if isinstance(source, TypeVariable):
            source = source.bound or OBJECT
        if isinstance(target, Primitive):
            return self._assignable_to_primitive(target.keyword, source)
        if isinstance(source, Primitive):
            boxed = _BOXES.get(source.keyword)
            if boxed is None:
                return False
            source = ClassType(boxed)
        if isinstance(target, ArrayType):
            if not isinstance(source, ArrayType):
                return False
            if isinstance(target.element, Primitive) or isinstance(source.element, Primitive):
                return target.element == source.element
            return self.is_assignable(target.element, source.element)
        if isinstance(source, ArrayType):
            return target.fqn in (
                "java.lang.Object",
                "java.lang.Cloneable",
                "java.io.Serializable",
            )
        return self.is_subtype(source.fqn, target.fqn)

    def _assignable_to_primitive(self, keyword: str, source: JavaType) -> bool:
        if isinstance(source, ClassType):
            unboxed = _UNBOXES.get(source.fqn)
            if unboxed is None:
                return False
            source = Primitive(unboxed)
        if not isinstance(source, Primitive):
            return False
        return source.keyword == keyword or keyword in _WIDENING.get(source.keyword, frozenset())
