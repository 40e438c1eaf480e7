"""Type attribution: resolves type names, variables and method signatures on a tree."""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Sequence

import libcst as cst

from transmute.domain.tree import (
    ArrayTypeTree,
    Assignment,
    Binary,
    Block,
    Catch,
    ClassDeclaration,
    ClassLiteral,
    CompilationUnit,
    FieldAccess,
    Identifier,
    JNode,
    Lambda,
    Literal,
    MemberReference,
    MethodDeclaration,
    MethodInvocation,
    NewClass,
    Parameter,
    ParameterizedType,
    Parenthesized,
    PrimitiveTypeTree,
    TypeName,
    TypeTree,
    UnionTypeTree,
    VariableDeclarations,
    VariableDeclarator,
    WildcardTypeTree,
    walk,
)
from transmute.domain.types import (
    CLASS,
    NULL,
    OBJECT,
    STRING,
    VOID,
    ArrayType,
    ClassInfo,
    ClassType,
    FieldInfo,
    JavaType,
    MethodType,
    Primitive,
    TypeModel,
    TypeVariable,
    is_reference,
    substitute,
)

logger = logging.getLogger(__name__)

_LITERAL_TYPES: Mapping[str, JavaType] = MappingProxyType({
    "string": STRING,
    "text_block": STRING,
    "char": Primitive("char"),
    "int": Primitive("int"),
    "long": Primitive("long"),
    "float": Primitive("float"),
    "double": Primitive("double"),
    "boolean": Primitive("boolean"),
    "null": NULL,
})
_BOXED = {
    "boolean": "java.lang.Boolean",
    "byte": "java.lang.Byte",
    "short": "java.lang.Short",
    "char": "java.lang.Character",
    "int": "java.lang.Integer",
    "long": "java.lang.Long",
    "float": "java.lang.Float",
    "double": "java.lang.Double",
}
_NUMERIC_RANK = ("double", "float", "long")
_BOOLEAN_OPERATORS = frozenset({"==", "!=", "<", ">", "<=", ">=", "&&", "||", "instanceof"})


def boxed(java_type: JavaType) -> JavaType:
    if isinstance(java_type, Primitive) and java_type.keyword in _BOXED:
        return ClassType(_BOXED[java_type.keyword])
    return java_type


def type_parameter_name(declaration: str) -> str:
    return declaration.split()[0] if declaration.split() else declaration


@dataclass(frozen=True)
class ImportScope:
    """Everything a file's imports and package make visible by simple name."""

    package: Optional[str] = None
    explicit: Mapping[str, str] = field(default_factory=dict)
    wildcard_packages: tuple[str, ...] = ()
    static_members: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    static_wildcards: tuple[str, ...] = ()
    local_types: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_unit(
        cls,
        unit: Optional[CompilationUnit],
        extra_imports: Iterable[str] = (),
        extra_static_imports: Iterable[str] = (),
    ) -> "ImportScope":
        explicit: dict[str, str] = {}
        wildcards: list[str] = []
        static_members: dict[str, list[str]] = {}
        static_wildcards: list[str] = []
        local_types: dict[str, str] = {}
        package = unit.package_name if unit is not None else None
        declarations = list(unit.imports) if unit is not None else []
        for declaration in declarations:
            if declaration.static and declaration.wildcard:
                static_wildcards.append(declaration.qualified_name)
            elif declaration.static:
                static_members.setdefault(declaration.member or "", []).append(declaration.type_name)
            elif declaration.wildcard:
                wildcards.append(declaration.qualified_name)
            else:
                explicit[declaration.simple_name] = declaration.qualified_name
        for name in extra_imports:
            explicit.setdefault(name.rsplit(".", 1)[-1], name)
        for name in extra_static_imports:
            owner, member = name.rsplit(".", 1)
            if member == "*":
                static_wildcards.append(owner)
            else:
                # A template's own static imports win over same-named ones in the file.
                static_members.setdefault(member, []).insert(0, owner)
        if unit is not None:
            prefix = f"{package}." if package else ""
            for declared in unit.classes:
                for fqn, simple in _nested_names(declared, prefix + declared.name):
                    local_types.setdefault(simple, fqn)
        return cls(
            package=package,
            explicit=MappingProxyType(explicit),
            wildcard_packages=tuple(wildcards),
            static_members=MappingProxyType({k: tuple(v) for k, v in static_members.items()}),
            static_wildcards=tuple(static_wildcards),
            local_types=MappingProxyType(local_types),
        )

    def resolve(self, name: str, model: TypeModel, enclosing: Sequence[str] = ()) -> Optional[str]:
        """Fully qualified name for a simple or dotted type name, if it can be determined."""
        if "." in name:
            head, rest = name.split(".", 1)
            outer = self._resolve_simple(head, model, enclosing)
            if outer is not None:
                return f"{outer}.{rest}"
            return name if name in model else None
        return self._resolve_simple(name, model, enclosing)

    def _resolve_simple(self, name: str, model: TypeModel, enclosing: Sequence[str]) -> Optional[str]:
        for outer in reversed(enclosing):
            candidate = f"{outer}.{name}"
            if candidate in model or candidate in self.local_types.values():
                return candidate
        if name in self.local_types:
            return self.local_types[name]
        if name in self.explicit:
            return self.explicit[name]
        if self.package and f"{self.package}.{name}" in model:
            return f"{self.package}.{name}"
        if f"java.lang.{name}" in model:
            return f"java.lang.{name}"
        for package in self.wildcard_packages:
            if f"{package}.{name}" in model:
                return f"{package}.{name}"
        return None

    def static_owners(self, member: str, model: TypeModel) -> list[str]:
        owners = list(self.static_members.get(member, ()))
        for owner in self.static_wildcards:
            info = model.lookup(owner)
            if info is None:
                continue
            if any(m.name == member for m in info.methods) or any(
                f.name == member for f in info.fields
            ):
                owners.append(owner)
        return owners


def _nested_names(declaration: ClassDeclaration, fqn: str) -> Iterable[tuple[str, str]]:
    yield fqn, declaration.name
    for member in declaration.members:
        if isinstance(member, ClassDeclaration):
            yield from _nested_names(member, f"{fqn}.{member.name}")


class TypeResolver:
    """Resolves written types without rewriting the tree."""

    def __init__(self, model: TypeModel, imports: ImportScope) -> None:
        self.model = model
        self.imports = imports

    def resolve(
        self,
        tree: Optional[TypeTree],
        enclosing: Sequence[str] = (),
        type_variables: Mapping[str, TypeVariable] = MappingProxyType({}),
    ) -> Optional[JavaType]:
        if tree is None:
            return None
        if isinstance(tree, PrimitiveTypeTree):
            return Primitive(tree.keyword)
        if isinstance(tree, TypeName):
            if tree.name in type_variables:
                return type_variables[tree.name]
            fqn = self.imports.resolve(tree.name, self.model, enclosing)
            return ClassType(fqn) if fqn else None
        if isinstance(tree, ParameterizedType):
            base = self.resolve(tree.base, enclosing, type_variables)
            if not isinstance(base, ClassType):
                return None
            arguments = tuple(
                self.resolve(a, enclosing, type_variables) or OBJECT for a in tree.type_arguments
            )
            return ClassType(base.fqn, arguments)
        if isinstance(tree, ArrayTypeTree):
            element = self.resolve(tree.element, enclosing, type_variables)
            return ArrayType(element) if element is not None else None
        if isinstance(tree, WildcardTypeTree):
            return self.resolve(tree.bound, enclosing, type_variables) if tree.bound else OBJECT
        if isinstance(tree, UnionTypeTree) and tree.alternatives:
            return self.resolve(tree.alternatives[0], enclosing, type_variables)
        return None


@dataclass
class FragmentScope:
    """What a synthesized fragment may refer to at its insertion point."""

    model: TypeModel
    imports: ImportScope
    enclosing_classes: tuple[str, ...] = ()
    variables: dict[str, Optional[JavaType]] = field(default_factory=dict)
    type_variables: dict[str, TypeVariable] = field(default_factory=dict)


def declared_variables(statement: JNode) -> dict[str, Optional[JavaType]]:
    if not isinstance(statement, VariableDeclarations):
        return {}
    declared_type = statement.type_expression.type
    return {v.name: v.type or declared_type for v in statement.variables}


def visible_variables(
    path: Sequence[JNode],
    container: Optional[JNode] = None,
    stop_index: Optional[int] = None,
) -> dict[str, Optional[JavaType]]:
    """
    Variables in scope at the end of ``path`` (root first).

    Block-local declarations count only when they precede the path's next
    element; in ``container`` (the Block receiving new code) only the first
    ``stop_index`` statements count.
    """
    variables: dict[str, Optional[JavaType]] = {}
    nodes = list(path)
    if container is not None and (not nodes or nodes[-1] is not container):
        nodes.append(container)
    for index, node in enumerate(nodes):
        if isinstance(node, ClassDeclaration):
            for member in node.members:
                variables.update(declared_variables(member))
        elif isinstance(node, (MethodDeclaration, Lambda)):
            for parameter in node.parameters:
                variables[parameter.name] = _parameter_type(parameter)
        elif isinstance(node, Catch):
            variables[node.parameter.name] = _parameter_type(node.parameter)
        elif isinstance(node, Block):
            following = nodes[index + 1] if index + 1 < len(nodes) else None
            for position, statement in enumerate(node.statements):
                if following is not None and statement is following:
                    break
                if node is container and stop_index is not None and position >= stop_index:
                    break
                variables.update(declared_variables(statement))
    return variables


def _parameter_type(parameter: Parameter) -> Optional[JavaType]:
    declared = parameter.type_expression.type if parameter.type_expression else None
    if declared is not None and parameter.varargs:
        return ArrayType(declared)
    return declared


class TypeAttributor:
    """
    Attributes whole compilation units against a type model, and fragments
    against a ``FragmentScope``.
    """

    def __init__(self, model: TypeModel) -> None:
        self.model = model

    def declared_classes(self, unit: CompilationUnit, model: Optional[TypeModel] = None) -> list[ClassInfo]:
        """ClassInfo records for every class a unit declares, nested classes included."""
        model = model or self.model
        resolver = TypeResolver(model.merged(self._names_only(unit)), ImportScope.from_unit(unit))
        prefix = f"{unit.package_name}." if unit.package_name else ""
        infos: list[ClassInfo] = []
        for declaration in unit.classes:
            self._collect_infos(declaration, prefix + declaration.name, (), resolver, infos)
        return infos

    def _names_only(self, unit: CompilationUnit) -> list[ClassInfo]:
        prefix = f"{unit.package_name}." if unit.package_name else ""
        return [
            ClassInfo(fqn)
            for declared in unit.classes
            for fqn, _ in _nested_names(declared, prefix + declared.name)
            if fqn not in self.model
        ]

    def _collect_infos(
        self,
        declaration: ClassDeclaration,
        fqn: str,
        enclosing: tuple[str, ...],
        resolver: TypeResolver,
        infos: list[ClassInfo],
    ) -> None:
        scope = enclosing + (fqn,)
        class_vars = {
            type_parameter_name(p): TypeVariable(type_parameter_name(p))
            for p in declaration.type_parameters
        }
        supertypes: list[ClassType] = []
        for written in ([declaration.extends] if declaration.extends else []) + list(declaration.implements):
            resolved = resolver.resolve(written, scope, class_vars)
            if isinstance(resolved, ClassType):
                supertypes.append(resolved)
        if declaration.kind == "enum":
            supertypes.append(ClassType("java.lang.Enum"))
        if not supertypes and fqn != "java.lang.Object":
            supertypes.append(OBJECT)
        fields: list[FieldInfo] = []
        methods: list[MethodType] = []
        for member in declaration.members:
            if isinstance(member, VariableDeclarations):
                declared = resolver.resolve(member.type_expression, scope, class_vars)
                static = "static" in member.modifiers or declaration.kind == "interface"
                for variable in member.variables:
                    fields.append(FieldInfo(variable.name, declared or OBJECT, static))
            elif isinstance(member, MethodDeclaration):
                methods.append(
                    self._method_type(member, ClassType(fqn), resolver, scope, class_vars)
                )
            elif isinstance(member, ClassDeclaration):
                self._collect_infos(member, f"{fqn}.{member.name}", scope, resolver, infos)
        infos.append(
            ClassInfo(
                fqn,
                kind=declaration.kind,
                type_parameters=tuple(class_vars),
                supertypes=tuple(supertypes),
                methods=tuple(methods),
                fields=tuple(fields),
            )
        )

    @staticmethod
    def _method_type(
        method: MethodDeclaration,
        declaring: ClassType,
        resolver: TypeResolver,
        enclosing: Sequence[str],
        class_vars: Mapping[str, TypeVariable],
    ) -> MethodType:
        method_vars = dict(class_vars)
        for declaration in method.type_parameters:
            method_vars[type_parameter_name(declaration)] = TypeVariable(type_parameter_name(declaration))
        parameters: list[JavaType] = []
        for parameter in method.parameters:
            resolved = resolver.resolve(parameter.type_expression, enclosing, method_vars) or OBJECT
            parameters.append(ArrayType(resolved) if parameter.varargs else resolved)
        returns = (
            resolver.resolve(method.return_type, enclosing, method_vars) or OBJECT
            if method.return_type is not None
            else VOID
        )
        return MethodType(
            declaring_type=declaring,
            name=method.name if method.return_type is not None else "<init>",
            parameter_types=tuple(parameters),
            return_type=returns,
            is_static="static" in method.modifiers,
            is_varargs=bool(method.parameters) and method.parameters[-1].varargs,
            type_parameters=tuple(type_parameter_name(p) for p in method.type_parameters),
        )

    def attribute(self, unit: CompilationUnit) -> CompilationUnit:
        """Return ``unit`` with types, method types and class references resolved."""
        model = self.model.merged(self.declared_classes(unit))
        visitor = _AttributionTransformer(model, ImportScope.from_unit(unit))
        attributed = unit.visit(visitor)
        if visitor.unresolved:
            logger.debug("%s: unresolved symbols %s", unit.path, sorted(set(visitor.unresolved.values())))
        return attributed  # type: ignore[return-value]

    def attribute_fragment(
        self,
        node: JNode,
        scope: FragmentScope,
        bound_ids: frozenset[int] = frozenset(),
    ) -> tuple[JNode, list[str]]:
        """
        Attribute a synthesized fragment. Subtrees whose root id is in
        ``bound_ids`` keep their existing attribution. Returns the attributed
        fragment and the fragment-introduced symbols that did not resolve.
        """
        visitor = _AttributionTransformer(
            scope.model,
            scope.imports,
            enclosing_classes=scope.enclosing_classes,
            variables=scope.variables,
            type_variables=scope.type_variables,
            bound_ids=bound_ids,
        )
        attributed = node.visit(visitor)
        if not isinstance(attributed, JNode):
            raise TypeError("fragment attribution removed the fragment root")
        return attributed, sorted(set(visitor.unresolved.values()))


class _AttributionTransformer(cst.CSTTransformer):
    def __init__(
        self,
        model: TypeModel,
        imports: ImportScope,
        enclosing_classes: Sequence[str] = (),
        variables: Optional[Mapping[str, Optional[JavaType]]] = None,
        type_variables: Optional[Mapping[str, TypeVariable]] = None,
        bound_ids: frozenset[int] = frozenset(),
    ) -> None:
        super().__init__()
        self.model = model
        self.imports = imports
        self.resolver = TypeResolver(model, imports)
        self.classes: list[str] = list(enclosing_classes)
        self.scopes: list[dict[str, Optional[JavaType]]] = [dict(variables or {})]
        self.type_variables: list[dict[str, TypeVariable]] = [dict(type_variables or {})]
        self.bound_ids = bound_ids
        self.unresolved: dict[int, str] = {}
        self._annotation_depth = 0
        self._declared_types: list[Optional[JavaType]] = []

    # -- traversal bookkeeping ------------------------------------------------

    def on_visit(self, node: cst.CSTNode) -> bool:
        if isinstance(node, JNode) and node.node_id in self.bound_ids:
            return False
        return super().on_visit(node)

    def on_leave(self, original_node: cst.CSTNode, updated_node: cst.CSTNode) -> cst.CSTNode:  # type: ignore[override]
        if isinstance(original_node, JNode) and original_node.node_id in self.bound_ids:
            self._declare_locals(updated_node)
            return updated_node
        return super().on_leave(original_node, updated_node)

    def _declare_locals(self, node: cst.CSTNode) -> None:
        if isinstance(node, JNode):
            self.scopes[-1].update(declared_variables(node))

    def _visible_type_variables(self) -> dict[str, TypeVariable]:
        merged: dict[str, TypeVariable] = {}
        for frame in self.type_variables:
            merged.update(frame)
        return merged

    def _resolve_written(self, tree: Optional[TypeTree]) -> Optional[JavaType]:
        return self.resolver.resolve(tree, self.classes, self._visible_type_variables())

    def _lookup_variable(self, name: str) -> tuple[bool, Optional[JavaType]]:
        for frame in reversed(self.scopes):
            if name in frame:
                return True, frame[name]
        return False, None

    def _current_class(self) -> Optional[ClassType]:
        return ClassType(self.classes[-1]) if self.classes else None

    def _mark_unresolved(self, node: JNode, description: str) -> None:
        if self._annotation_depth == 0:
            self.unresolved[node.node_id] = description

    def _forget_unresolved(self, node: JNode) -> None:
        for descendant in walk(node):
            self.unresolved.pop(descendant.node_id, None)

    # -- declarations --------------------------------------------------------

    def visit_ClassDeclaration(self, node: ClassDeclaration) -> None:
        if self.classes:
            fqn = f"{self.classes[-1]}.{node.name}"
        else:
            package = self.imports.package
            fqn = f"{package}.{node.name}" if package else node.name
        self.classes.append(fqn)
        self.scopes.append({})
        self.type_variables.append(
            {type_parameter_name(p): TypeVariable(type_parameter_name(p)) for p in node.type_parameters}
        )

    def leave_ClassDeclaration(
        self, original_node: ClassDeclaration, updated_node: ClassDeclaration
    ) -> ClassDeclaration:
        fqn = self.classes.pop()
        self.scopes.pop()
        self.type_variables.pop()
        return updated_node.with_changes(type=ClassType(fqn))

    def visit_Annotation(self, node: JNode) -> None:
        self._annotation_depth += 1

    def leave_Annotation(self, original_node: JNode, updated_node: JNode) -> JNode:
        self._annotation_depth -= 1
        return updated_node

    def visit_MethodDeclaration(self, node: MethodDeclaration) -> None:
        self.type_variables.append(
            {type_parameter_name(p): TypeVariable(type_parameter_name(p)) for p in node.type_parameters}
        )
        self.scopes.append(self._parameter_scope(node.parameters))

    def leave_MethodDeclaration(
        self, original_node: MethodDeclaration, updated_node: MethodDeclaration
    ) -> MethodDeclaration:
        declaring = self._current_class() or OBJECT
        method_type = TypeAttributor._method_type(
            updated_node,
            declaring,
            self.resolver,
            self.classes,
            self._visible_type_variables(),
        )
        self.scopes.pop()
        self.type_variables.pop()
        return updated_node.with_changes(method_type=method_type)

    def _parameter_scope(self, parameters: Sequence[Parameter]) -> dict[str, Optional[JavaType]]:
        frame: dict[str, Optional[JavaType]] = {}
        for parameter in parameters:
            declared = self._resolve_written(parameter.type_expression)
            if declared is not None and parameter.varargs:
                declared = ArrayType(declared)
            frame[parameter.name] = declared
        return frame

    def visit_Lambda(self, node: Lambda) -> None:
        self.scopes.append(self._parameter_scope(node.parameters))

    def leave_Lambda(self, original_node: Lambda, updated_node: Lambda) -> Lambda:
        self.scopes.pop()
        return updated_node

    def visit_Catch(self, node: Catch) -> None:
        self.scopes.append(self._parameter_scope((node.parameter,)))

    def leave_Catch(self, original_node: Catch, updated_node: Catch) -> Catch:
        self.scopes.pop()
        return updated_node

    def visit_Block(self, node: Block) -> None:
        self.scopes.append({})

    def leave_Block(self, original_node: Block, updated_node: Block) -> Block:
        self.scopes.pop()
        return updated_node

    def visit_VariableDeclarations(self, node: VariableDeclarations) -> None:
        self._declared_types.append(self._resolve_written(node.type_expression))

    def leave_VariableDeclarator(
        self, original_node: VariableDeclarator, updated_node: VariableDeclarator
    ) -> VariableDeclarator:
        declared = self._declared_types[-1] if self._declared_types else None
        if declared is None and updated_node.initializer is not None:
            declared = updated_node.initializer.type
        for _ in range(updated_node.dimensions):
            declared = ArrayType(declared) if declared is not None else None
        return updated_node.with_changes(type=declared)

    def leave_VariableDeclarations(
        self, original_node: VariableDeclarations, updated_node: VariableDeclarations
    ) -> VariableDeclarations:
        self._declared_types.pop()
        self._declare_locals(updated_node)
        return updated_node

    # -- type trees ----------------------------------------------------------

    def leave_TypeName(self, original_node: TypeName, updated_node: TypeName) -> TypeName:
        resolved = self._resolve_written(updated_node)
        if resolved is None:
            self._mark_unresolved(updated_node, updated_node.name)
        return updated_node.with_changes(type=resolved)

    def leave_ParameterizedType(
        self, original_node: ParameterizedType, updated_node: ParameterizedType
    ) -> ParameterizedType:
        return updated_node.with_changes(type=self._resolve_written(updated_node))

    def leave_ArrayTypeTree(self, original_node: ArrayTypeTree, updated_node: ArrayTypeTree) -> ArrayTypeTree:
        return updated_node.with_changes(type=self._resolve_written(updated_node))

    def leave_PrimitiveTypeTree(
        self, original_node: PrimitiveTypeTree, updated_node: PrimitiveTypeTree
    ) -> PrimitiveTypeTree:
        return updated_node.with_changes(type=Primitive(updated_node.keyword))

    def leave_WildcardTypeTree(
        self, original_node: WildcardTypeTree, updated_node: WildcardTypeTree
    ) -> WildcardTypeTree:
        return updated_node.with_changes(type=self._resolve_written(updated_node))

    def leave_UnionTypeTree(self, original_node: UnionTypeTree, updated_node: UnionTypeTree) -> UnionTypeTree:
        return updated_node.with_changes(type=self._resolve_written(updated_node))

    # -- expressions ---------------------------------------------------------

    def leave_Literal(self, original_node: Literal, updated_node: Literal) -> Literal:
        return updated_node.with_changes(type=_LITERAL_TYPES.get(updated_node.kind))

    def leave_Identifier(self, original_node: Identifier, updated_node: Identifier) -> JNode:
        name = updated_node.name
        if name == "this":
            return updated_node.with_changes(type=self._current_class())
        if name == "super":
            current = self.model.lookup(self.classes[-1]) if self.classes else None
            parent = current.supertypes[0] if current and current.supertypes else OBJECT
            return updated_node.with_changes(type=parent)
        found, variable_type = self._lookup_variable(name)
        if found:
            return updated_node.with_changes(type=variable_type)
        field_info = self._find_field(name)
        if field_info is not None:
            return updated_node.with_changes(type=field_info.type)
        fqn = self.imports.resolve(name, self.model, self.classes)
        if fqn is not None:
            return TypeName(
                name,
                type=ClassType(fqn),
                node_id=updated_node.node_id,
                span=updated_node.span,
                source=updated_node.source,
                comments=updated_node.comments,
            )
        self._mark_unresolved(updated_node, name)
        return updated_node

    def _find_field(self, name: str) -> Optional[FieldInfo]:
        for fqn in reversed(self.classes):
            found = self.model.find_field(fqn, name)
            if found is not None:
                return found
        for owner in self.imports.static_owners(name, self.model):
            found = self.model.find_field(owner, name)
            if found is not None:
                return found
        return None

    def leave_FieldAccess(self, original_node: FieldAccess, updated_node: FieldAccess) -> JNode:
        target = updated_node.target
        target_type = target.type
        if isinstance(target_type, ClassType):
            found = self.model.find_field(target_type.fqn, updated_node.name)
            if found is not None:
                return updated_node.with_changes(type=found.type)
            if isinstance(target, TypeName):
                nested = f"{target_type.fqn}.{updated_node.name}"
                if nested in self.model:
                    return self._as_type_name(updated_node, f"{target.name}.{updated_node.name}", nested)
        if isinstance(target_type, ArrayType) and updated_node.name == "length":
            return updated_node.with_changes(type=Primitive("int"))
        dotted = _dotted_name(updated_node)
        if dotted is not None and dotted in self.model:
            self._forget_unresolved(target)
            return self._as_type_name(updated_node, dotted, dotted)
        if target_type is None and dotted is not None:
            self._mark_unresolved(updated_node, dotted)
        return updated_node

    @staticmethod
    def _as_type_name(node: FieldAccess, written: str, fqn: str) -> TypeName:
        return TypeName(
            written,
            type=ClassType(fqn),
            node_id=node.node_id,
            span=node.span,
            source=node.source,
            comments=node.comments,
        )

    def leave_MethodInvocation(
        self, original_node: MethodInvocation, updated_node: MethodInvocation
    ) -> MethodInvocation:
        candidates, receiver = self._candidates(updated_node)
        arguments = [a.type for a in updated_node.arguments]
        functional = [isinstance(a, (Lambda, MemberReference)) for a in updated_node.arguments]
        chosen = _select_overload(self.model, candidates, arguments, functional)
        if chosen is None:
            self._mark_unresolved(updated_node, f"{updated_node.name}({len(arguments)} args)")
            return updated_node
        bindings: dict[str, JavaType] = {}
        if isinstance(receiver, ClassType) and receiver.type_arguments:
            info = self.model.lookup(receiver.fqn)
            if info is not None:
                bindings.update(zip(info.type_parameters, receiver.type_arguments))
        for declared, actual in zip(_expanded_parameters(chosen, len(arguments)), arguments):
            _unify(declared, actual, bindings)
        return updated_node.with_changes(
            method_type=chosen,
            type=substitute(chosen.return_type, bindings),
        )

    def _candidates(self, node: MethodInvocation) -> tuple[list[MethodType], Optional[JavaType]]:
        select = node.select
        if select is None:
            for fqn in reversed(self.classes):
                found = self.model.find_methods(fqn, node.name)
                if found:
                    return found, None
            for owner in self.imports.static_owners(node.name, self.model):
                static = [m for m in self.model.find_methods(owner, node.name) if m.is_static]
                if static:
                    return static, None
            return [], None
        receiver = select.type
        if isinstance(receiver, TypeVariable):
            receiver = receiver.bound or OBJECT
        if isinstance(receiver, ArrayType):
            receiver = OBJECT
        if isinstance(receiver, ClassType):
            return self.model.find_methods(receiver.fqn, node.name), receiver
        return [], None

    def leave_NewClass(self, original_node: NewClass, updated_node: NewClass) -> NewClass:
        return updated_node.with_changes(type=updated_node.class_type.type)

    def leave_ClassLiteral(self, original_node: ClassLiteral, updated_node: ClassLiteral) -> ClassLiteral:
        literal_type = updated_node.class_type.type
        if literal_type is None:
            return updated_node
        return updated_node.with_changes(type=ClassType(CLASS.fqn, (boxed(literal_type),)))

    def leave_Assignment(self, original_node: Assignment, updated_node: Assignment) -> Assignment:
        return updated_node.with_changes(type=updated_node.target.type)

    def leave_Parenthesized(self, original_node: Parenthesized, updated_node: Parenthesized) -> Parenthesized:
        return updated_node.with_changes(type=updated_node.expression.type)

    def leave_Binary(self, original_node: Binary, updated_node: Binary) -> Binary:
        return updated_node.with_changes(type=_binary_type(updated_node))


def _dotted_name(node: JNode) -> Optional[str]:
    if isinstance(node, Identifier):
        return node.name
    if isinstance(node, TypeName):
        return node.name
    if isinstance(node, FieldAccess):
        head = _dotted_name(node.target)
        return f"{head}.{node.name}" if head else None
    return None


def _binary_type(node: Binary) -> Optional[JavaType]:
    if node.operator in _BOOLEAN_OPERATORS:
        return Primitive("boolean")
    left, right = node.left.type, node.right.type
    if node.operator == "+" and STRING in (left, right):
        return STRING
    if left is None or right is None:
        return None
    keywords = {t.keyword for t in (left, right) if isinstance(t, Primitive)}
    if keywords == {"boolean"}:
        return Primitive("boolean")
    for keyword in _NUMERIC_RANK:
        if keyword in keywords:
            return Primitive(keyword)
    return Primitive("int")


def _expanded_parameters(method: MethodType, count: int) -> list[JavaType]:
    parameters = list(method.parameter_types)
    if method.is_varargs and parameters and count != len(parameters):
        variadic = parameters.pop()
        element = variadic.element if isinstance(variadic, ArrayType) else variadic
        parameters.extend([element] * (count - len(parameters)))
    return parameters


def _compatible(model: TypeModel, declared: JavaType, actual: Optional[JavaType], functional: bool) -> bool:
    if functional:
        return is_reference(declared)
    if actual is None:
        return True
    return model.is_assignable(declared, actual)


def _select_overload(
    model: TypeModel,
    candidates: list[MethodType],
    arguments: list[Optional[JavaType]],
    functional: list[bool],
) -> Optional[MethodType]:
    viable = []
    for candidate in candidates:
        if not candidate.accepts_arity(len(arguments)):
            continue
        declared = _expanded_parameters(candidate, len(arguments))
        if all(
            _compatible(model, d, a, f) for d, a, f in zip(declared, arguments, functional)
        ):
            viable.append(candidate)
    if len(viable) == 1:
        return viable[0]
    if not viable:
        return None
    if any(a is None for a in arguments) and not all(functional[i] for i, a in enumerate(arguments) if a is None):
        return None
    specific = [
        m for m in viable
        if all(_more_specific(model, m, other, len(arguments)) for other in viable if other is not m)
    ]
    if len(specific) == 1:
        return specific[0]
    exact = [m for m in viable if not m.is_varargs]
    return exact[0] if len(exact) == 1 else None


def _more_specific(model: TypeModel, first: MethodType, second: MethodType, count: int) -> bool:
    return all(
        model.is_assignable(b, a) or a == b
        for a, b in zip(_expanded_parameters(first, count), _expanded_parameters(second, count))
    )


def _unify(declared: JavaType, actual: Optional[JavaType], bindings: dict[str, JavaType]) -> None:
    if actual is None:
        return
    if isinstance(declared, TypeVariable):
        if declared.name not in bindings and actual != NULL:
            bindings[declared.name] = boxed(actual)
        return
    if isinstance(declared, ClassType) and isinstance(actual, ClassType):
        if declared.fqn == actual.fqn:
            for d, a in zip(declared.type_arguments, actual.type_arguments):
                _unify(d, a, bindings)
        return
    if isinstance(declared, ArrayType) and isinstance(actual, ArrayType):
        _unify(declared.element, actual.element, bindings)
