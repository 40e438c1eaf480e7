"""Java front end: tree-sitter-java parse trees converted to the transmute tree model."""

import logging
import threading
from typing import Any, Callable, Optional

import tree_sitter_java
from tree_sitter import Language, Node, Parser

from transmute.domain.attribution import TypeAttributor
from transmute.domain.errors import FrontEndError
from transmute.domain.protocols import FrontEndProtocol
from transmute.domain.tree import (
    Annotation,
    ArrayInitializer,
    ArrayTypeTree,
    Assignment,
    Binary,
    Block,
    Catch,
    ClassDeclaration,
    ClassLiteral,
    CompilationUnit,
    Expression,
    ExpressionStatement,
    FieldAccess,
    Identifier,
    If,
    ImportDeclaration,
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
    RawExpression,
    RawStatement,
    Return,
    Span,
    Throw,
    Try,
    TypeName,
    TypeTree,
    UnionTypeTree,
    VariableDeclarations,
    VariableDeclarator,
    WildcardTypeTree,
)
from transmute.domain.types import ClassInfo, TypeModel

logger = logging.getLogger(__name__)

JAVA_LANGUAGE = Language(tree_sitter_java.language())

_COMMENTS = frozenset({"line_comment", "block_comment", "comment"})
_TYPE_DECLARATIONS = {
    "class_declaration": "class",
    "interface_declaration": "interface",
    "enum_declaration": "enum",
    "annotation_type_declaration": "@interface",
}
_PRIMITIVES = frozenset({"integral_type", "floating_point_type", "boolean_type", "void_type"})
_TYPE_NODES = frozenset(
    {"type_identifier", "scoped_type_identifier", "generic_type", "array_type", "annotated_type"}
) | _PRIMITIVES
_INTEGER_LITERALS = frozenset(
    {"decimal_integer_literal", "hex_integer_literal", "octal_integer_literal", "binary_integer_literal"}
)
_FLOAT_LITERALS = frozenset({"decimal_floating_point_literal", "hex_floating_point_literal"})

TEMPLATE_CLASS = "__Template__"
_FRAGMENT_WRAPPERS = {
    "expression": "class %s { Object __t__ = %%s; }" % TEMPLATE_CLASS,
    "statements": "class %s { void __t__() {\n%%s\n} }" % TEMPLATE_CLASS,
    "members": "class %s {\n%%s\n}" % TEMPLATE_CLASS,
}


def _named(node: Optional[Node]) -> list[Node]:
    if node is None:
        return []
    return [child for child in node.named_children if child.type not in _COMMENTS]


def _child_of_type(node: Node, *types: str) -> Optional[Node]:
    for child in node.children:
        if child.type in types:
            return child
    return None


def _first_error(node: Node) -> Optional[Node]:
    if node.type == "ERROR" or node.is_missing:
        return node
    for child in node.children:
        if child.has_error or child.is_missing:
            found = _first_error(child)
            if found is not None:
                return found
    return None


class _Converter:
    """One parse tree to one transmute tree. Not shared between threads."""

    def __init__(self, source: bytes, path: str, keep_source: bool = True) -> None:
        self.source = source
        self.path = path
        self.keep_source = keep_source
        self._line_starts = [0]
        for index, byte in enumerate(source):
            if byte == 0x0A:
                self._line_starts.append(index + 1)

    # ------------------------------------------------------------------
    # Text and metadata
    # ------------------------------------------------------------------

    def text(self, node: Node) -> str:
        return self.source[node.start_byte:node.end_byte].decode("utf-8")

    def compact(self, node: Node) -> str:
        return "".join(self.text(node).split())

    def meta(self, node: Node) -> dict[str, Any]:
        if not self.keep_source:
            return {}
        row, _ = node.start_point
        end_row, end_column = node.end_point
        line_start = self._line_starts[row]
        prefix = self.source[line_start:node.start_byte].decode("utf-8")
        indent = len(prefix) - len(prefix.lstrip(" \t"))
        span = Span(row + 1, len(prefix), end_row + 1, end_column, indent)
        return {"span": span, "source": self.text(node)}

    def blank_lines_between(self, start: int, end: int) -> int:
        lines = self.source[start:end].decode("utf-8").split("\n")
        return sum(1 for line in lines[1:-1] if not line.strip())

    def sequence(
        self,
        container: Node,
        convert: Callable[[Node], Optional[JNode]],
        start: Optional[int] = None,
        children: Optional[list[Node]] = None,
    ) -> tuple[list[JNode], tuple[str, ...]]:
        """
        Convert the named children of a braced container, attaching each run
        of comments and the blank lines before it to the next converted node.
        Comments on the line where a node ends stay with that node.
        Returns the nodes and the comments left before the closing brace.
        """
        result: list[JNode] = []
        pending: list[str] = []
        pending_blank = 0
        previous_end = container.start_byte if start is None else start
        # End of the last converted node while nothing but comments on its line follow it.
        line_end: Optional[int] = None
        for child in container.children if children is None else children:
            if child.type in _COMMENTS:
                same_line = b"\n" not in self.source[previous_end:child.start_byte]
                if not pending and line_end == previous_end and same_line:
                    last = result[-1]
                    trailing = self.source[previous_end:child.end_byte].decode("utf-8")
                    result[-1] = last.with_changes(trailing_comment=last.trailing_comment + trailing)
                    previous_end = line_end = child.end_byte
                    continue
                if not pending:
                    pending_blank = self.blank_lines_between(previous_end, child.start_byte)
                pending.append(self.text(child))
                previous_end = child.end_byte
                continue
            line_end = None
            if not child.is_named:
                previous_end = child.end_byte
                continue
            converted = convert(child)
            if converted is None:
                previous_end = child.end_byte
                continue
            blank = pending_blank if pending else self.blank_lines_between(previous_end, child.start_byte)
            result.append(converted.with_changes(comments=tuple(pending), blank_lines_before=blank))
            pending = []
            previous_end = line_end = child.end_byte
        return result, tuple(pending)

    # ------------------------------------------------------------------
    # Compilation unit and declarations
    # ------------------------------------------------------------------

    def compilation_unit(self, root: Node) -> CompilationUnit:
        package_name: Optional[str] = None
        header: tuple[str, ...] = ()
        imports: list[ImportDeclaration] = []
        classes: list[ClassDeclaration] = []

        def convert(child: Node) -> Optional[JNode]:
            if child.type == "import_declaration":
                return self.import_declaration(child)
            if child.type in _TYPE_DECLARATIONS or child.type == "record_declaration":
                return self.type_declaration(child)
            return None

        leading: list[str] = []
        for child in root.children:
            if child.type in _COMMENTS:
                leading.append(self.text(child))
            elif child.is_named:
                break
        package = _child_of_type(root, "package_declaration")
        start = 0
        if package is not None:
            names = [c for c in _named(package) if c.type in ("scoped_identifier", "identifier")]
            package_name = self.compact(names[0]) if names else None
            header = tuple(leading)
            start = package.end_byte
        items, end_comments = self.sequence(
            root, convert, start=start, children=[c for c in root.children if c.start_byte >= start]
        )
        for item in items:
            if isinstance(item, ImportDeclaration):
                imports.append(item)
            elif isinstance(item, ClassDeclaration):
                classes.append(item)
        meta = self.meta(root)
        if self.keep_source:
            meta["source"] = self.source.decode("utf-8")
        return CompilationUnit(
            package_name,
            tuple(imports),
            tuple(classes),
            end_comments,
            path=self.path,
            comments=header,
            **meta,
        )

    def import_declaration(self, node: Node) -> ImportDeclaration:
        name = next(c for c in _named(node) if c.type in ("scoped_identifier", "identifier"))
        return ImportDeclaration(
            self.compact(name),
            static=_child_of_type(node, "static") is not None,
            wildcard=_child_of_type(node, "asterisk") is not None,
            **self.meta(node),
        )

    def type_declaration(self, node: Node) -> ClassDeclaration:
        if node.type == "record_declaration":
            # Kept as written; the members are one raw block.
            return ClassDeclaration(
                (), (), "record", self.text(node.child_by_field_name("name")), **self.meta(node)
            )
        kind = _TYPE_DECLARATIONS[node.type]
        annotations, modifiers = self.modifiers(_child_of_type(node, "modifiers"))
        extends: Optional[TypeTree] = None
        implements: list[TypeTree] = []
        superclass = node.child_by_field_name("superclass")
        if superclass is not None:
            extends = self.type_tree(_named(superclass)[0])
        for clause in node.children:
            if clause.type in ("super_interfaces", "extends_interfaces"):
                type_list = _child_of_type(clause, "type_list")
                implements.extend(self.type_tree(t) for t in _named(type_list))
        body = node.child_by_field_name("body")
        members, end_comments = self.class_body(body) if body is not None else ([], ())
        header: dict[str, Any] = {}
        if self.keep_source and body is not None:
            header["header_source"] = self.source[node.start_byte:body.start_byte + 1].decode("utf-8")
        return ClassDeclaration(
            tuple(annotations),
            tuple(modifiers),
            kind,
            self.text(node.child_by_field_name("name")),
            self.type_parameters(node.child_by_field_name("type_parameters")),
            extends,
            tuple(implements),
            tuple(members),
            end_comments,
            **self.meta(node),
            **header,
        )

    def class_body(self, body: Node) -> tuple[list[JNode], tuple[str, ...]]:
        if body.type != "enum_body":
            return self.sequence(body, self.member)
        constants = [c for c in body.named_children if c.type == "enum_constant"]
        declarations = _child_of_type(body, "enum_body_declarations")
        members: list[JNode] = []
        start = body.start_byte
        if constants:
            end = constants[-1].end_byte
            if declarations is not None:
                semicolon = _child_of_type(declarations, ";")
                end = semicolon.end_byte if semicolon is not None else end
            text = self.source[constants[0].start_byte:end].decode("utf-8")
            members.append(
                RawStatement(
                    text,
                    blank_lines_before=self.blank_lines_between(body.start_byte, constants[0].start_byte),
                )
            )
            start = end
        if declarations is None:
            return members, ()
        rest, end_comments = self.sequence(declarations, self.member, start=start)
        return members + rest, end_comments

    def member(self, node: Node) -> Optional[JNode]:
        if node.type == "field_declaration":
            return self.variable_declarations(node)
        if node.type in ("method_declaration", "constructor_declaration"):
            return self.method_declaration(node)
        if node.type in _TYPE_DECLARATIONS:
            return self.type_declaration(node)
        return RawStatement(self.text(node), **self.meta(node))

    def modifiers(self, node: Optional[Node]) -> tuple[list[Annotation], list[str]]:
        annotations: list[Annotation] = []
        keywords: list[str] = []
        if node is None:
            return annotations, keywords
        for child in node.children:
            if child.type in ("marker_annotation", "annotation"):
                annotations.append(self.annotation(child))
            elif child.type not in _COMMENTS:
                keywords.append(self.text(child))
        return annotations, keywords

    def annotation(self, node: Node) -> Annotation:
        name = node.child_by_field_name("name")
        arguments: list[Expression] = []
        argument_list = node.child_by_field_name("arguments")
        for argument in _named(argument_list):
            if argument.type == "element_value_pair":
                key = argument.child_by_field_name("key")
                value = argument.child_by_field_name("value")
                arguments.append(
                    Assignment(
                        Identifier(self.text(key), **self.meta(key)),
                        self.element_value(value),
                        **self.meta(argument),
                    )
                )
            else:
                arguments.append(self.element_value(argument))
        return Annotation(
            TypeName(self.compact(name), **self.meta(name)),
            tuple(arguments),
            has_parentheses=node.type == "annotation",
            **self.meta(node),
        )

    def element_value(self, node: Node) -> Expression:
        if node.type == "element_value_array_initializer":
            return ArrayInitializer(
                tuple(self.element_value(v) for v in _named(node)), **self.meta(node)
            )
        if node.type in ("marker_annotation", "annotation"):
            return RawExpression(self.text(node), **self.meta(node))
        return self.expression(node)

    def type_parameters(self, node: Optional[Node]) -> tuple[str, ...]:
        return tuple(" ".join(self.text(p).split()) for p in _named(node))

    def method_declaration(self, node: Node) -> MethodDeclaration:
        annotations, modifiers = self.modifiers(_child_of_type(node, "modifiers"))
        constructor = node.type == "constructor_declaration"
        return_type = None if constructor else self.type_tree(node.child_by_field_name("type"))
        throws_clause = _child_of_type(node, "throws")
        body = node.child_by_field_name("body")
        return MethodDeclaration(
            tuple(annotations),
            tuple(modifiers),
            self.type_parameters(node.child_by_field_name("type_parameters")),
            return_type,
            self.text(node.child_by_field_name("name")),
            self.formal_parameters(node.child_by_field_name("parameters")),
            tuple(self.type_tree(t) for t in _named(throws_clause)),
            self.block(body) if body is not None else None,
            **self.meta(node),
        )

    def formal_parameters(self, node: Optional[Node]) -> tuple[Parameter, ...]:
        parameters: list[Parameter] = []
        for child in _named(node):
            if child.type == "formal_parameter":
                annotations, modifiers = self.modifiers(_child_of_type(child, "modifiers"))
                declared = self.type_tree(child.child_by_field_name("type"))
                dimensions = child.child_by_field_name("dimensions")
                if dimensions is not None:
                    declared = self._with_dimensions(declared, dimensions)
                parameters.append(
                    Parameter(
                        tuple(annotations),
                        tuple(modifiers),
                        declared,
                        self.text(child.child_by_field_name("name")),
                        **self.meta(child),
                    )
                )
            elif child.type == "spread_parameter":
                annotations, modifiers = self.modifiers(_child_of_type(child, "modifiers"))
                type_node = next(c for c in _named(child) if c.type in _TYPE_NODES)
                declarator = _child_of_type(child, "variable_declarator")
                name = declarator.child_by_field_name("name") if declarator is not None else None
                parameters.append(
                    Parameter(
                        tuple(annotations),
                        tuple(modifiers),
                        self.type_tree(type_node),
                        self.text(name) if name is not None else "",
                        varargs=True,
                        **self.meta(child),
                    )
                )
        return tuple(parameters)

    def variable_declarations(self, node: Node) -> VariableDeclarations:
        annotations, modifiers = self.modifiers(_child_of_type(node, "modifiers"))
        return VariableDeclarations(
            tuple(annotations),
            tuple(modifiers),
            self.type_tree(node.child_by_field_name("type")),
            tuple(self.declarator(d) for d in node.children_by_field_name("declarator")),
            **self.meta(node),
        )

    def declarator(self, node: Node) -> VariableDeclarator:
        value = node.child_by_field_name("value")
        dimensions = node.child_by_field_name("dimensions")
        return VariableDeclarator(
            self.text(node.child_by_field_name("name")),
            self.initializer(value) if value is not None else None,
            self.text(dimensions).count("[") if dimensions is not None else 0,
            **self.meta(node),
        )

    def initializer(self, node: Node) -> Expression:
        if node.type == "array_initializer":
            return ArrayInitializer(tuple(self.initializer(e) for e in _named(node)), **self.meta(node))
        return self.expression(node)

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def block(self, node: Node) -> Block:
        statements, end_comments = self.sequence(node, self.statement)
        return Block(tuple(statements), end_comments, **self.meta(node))

    def statement(self, node: Node) -> JNode:
        kind = node.type
        if kind in ("block", "constructor_body"):
            return self.block(node)
        if kind == "expression_statement":
            return ExpressionStatement(self.expression(_named(node)[0]), **self.meta(node))
        if kind == "local_variable_declaration":
            return self.variable_declarations(node)
        if kind == "return_statement":
            values = _named(node)
            return Return(self.expression(values[0]) if values else None, **self.meta(node))
        if kind == "throw_statement":
            return Throw(self.expression(_named(node)[0]), **self.meta(node))
        if kind == "if_statement":
            condition = node.child_by_field_name("condition")
            if condition is not None and condition.type == "parenthesized_expression":
                condition = _named(condition)[0]
            alternative = node.child_by_field_name("alternative")
            return If(
                self.expression(condition),
                self.statement(node.child_by_field_name("consequence")),
                self.statement(alternative) if alternative is not None else None,
                **self.meta(node),
            )
        if kind == "try_statement":
            return self.try_statement(node)
        if kind in _TYPE_DECLARATIONS:
            return self.type_declaration(node)
        return RawStatement(self.text(node), **self.meta(node))

    def try_statement(self, node: Node) -> Try:
        catches: list[Catch] = []
        finally_block: Optional[Block] = None
        for child in _named(node):
            if child.type == "catch_clause":
                parameter_node = _child_of_type(child, "catch_formal_parameter")
                annotations, modifiers = self.modifiers(_child_of_type(parameter_node, "modifiers"))
                catch_type = _child_of_type(parameter_node, "catch_type")
                alternatives = tuple(self.type_tree(t) for t in _named(catch_type))
                declared: TypeTree = (
                    alternatives[0]
                    if len(alternatives) == 1
                    else UnionTypeTree(alternatives, **self.meta(catch_type))
                )
                parameter = Parameter(
                    tuple(annotations),
                    tuple(modifiers),
                    declared,
                    self.text(parameter_node.child_by_field_name("name")),
                    **self.meta(parameter_node),
                )
                catches.append(
                    Catch(parameter, self.block(child.child_by_field_name("body")), **self.meta(child))
                )
            elif child.type == "finally_clause":
                finally_block = self.block(_child_of_type(child, "block"))
        return Try(self.block(node.child_by_field_name("body")), tuple(catches), finally_block, **self.meta(node))

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def expression(self, node: Node) -> Expression:
        kind = node.type
        meta = self.meta(node)
        if kind in ("identifier", "this", "super"):
            return Identifier(self.text(node), **meta)
        if kind == "field_access":
            return FieldAccess(
                self.expression(node.child_by_field_name("object")),
                self.text(node.child_by_field_name("field")),
                **meta,
            )
        if kind == "method_invocation":
            select = node.child_by_field_name("object")
            type_arguments = node.child_by_field_name("type_arguments")
            return MethodInvocation(
                self.expression(select) if select is not None else None,
                self.text(node.child_by_field_name("name")),
                self.arguments(node.child_by_field_name("arguments")),
                tuple(self.type_tree(t) for t in _named(type_arguments)),
                **meta,
            )
        if kind == "object_creation_expression":
            if _child_of_type(node, "class_body") is not None or node.children[0].type != "new":
                return RawExpression(self.text(node), **meta)
            return NewClass(
                self.type_tree(node.child_by_field_name("type")),
                self.arguments(node.child_by_field_name("arguments")),
                **meta,
            )
        if kind == "lambda_expression":
            return self.lambda_expression(node)
        if kind == "method_reference":
            parts = _named(node)
            target = parts[0]
            converted = self.type_tree(target) if target.type in _TYPE_NODES else self.expression(target)
            return MemberReference(converted, self.text(node.children[-1]), **meta)
        if kind == "class_literal":
            return ClassLiteral(self.type_tree(_named(node)[0]), **meta)
        if kind == "assignment_expression":
            return Assignment(
                self.expression(node.child_by_field_name("left")),
                self.expression(node.child_by_field_name("right")),
                self.text(node.child_by_field_name("operator")),
                **meta,
            )
        if kind == "binary_expression":
            return Binary(
                self.expression(node.child_by_field_name("left")),
                self.text(node.child_by_field_name("operator")),
                self.expression(node.child_by_field_name("right")),
                **meta,
            )
        if kind == "parenthesized_expression":
            return Parenthesized(self.expression(_named(node)[0]), **meta)
        if kind == "array_initializer":
            return self.initializer(node)
        literal_kind = self.literal_kind(node)
        if literal_kind is not None:
            return Literal(self.text(node), literal_kind, **meta)
        if kind in _TYPE_NODES:
            return self.type_tree(node)
        return RawExpression(self.text(node), **meta)

    def literal_kind(self, node: Node) -> Optional[str]:
        kind = node.type
        if kind == "string_literal":
            return "text_block" if self.text(node).startswith('"""') else "string"
        if kind == "character_literal":
            return "char"
        if kind in _INTEGER_LITERALS:
            return "long" if self.text(node)[-1] in "lL" else "int"
        if kind in _FLOAT_LITERALS:
            return "float" if self.text(node)[-1] in "fF" else "double"
        if kind in ("true", "false"):
            return "boolean"
        if kind == "null_literal":
            return "null"
        return None

    def arguments(self, node: Optional[Node]) -> tuple[Expression, ...]:
        return tuple(self.expression(a) for a in _named(node))

    def lambda_expression(self, node: Node) -> Lambda:
        parameters_node = node.child_by_field_name("parameters")
        body_node = node.child_by_field_name("body")
        parameters: tuple[Parameter, ...] = ()
        parenthesized = True
        if parameters_node is not None:
            if parameters_node.type == "identifier":
                parenthesized = False
                parameters = (Parameter((), (), None, self.text(parameters_node), **self.meta(parameters_node)),)
            elif parameters_node.type == "inferred_parameters":
                parameters = tuple(
                    Parameter((), (), None, self.text(p), **self.meta(p)) for p in _named(parameters_node)
                )
            else:
                parameters = self.formal_parameters(parameters_node)
        body: JNode = self.block(body_node) if body_node.type == "block" else self.expression(body_node)
        return Lambda(parameters, body, parenthesized, **self.meta(node))

    # ------------------------------------------------------------------
    # Types
    # ------------------------------------------------------------------

    def type_tree(self, node: Node) -> TypeTree:
        kind = node.type
        meta = self.meta(node)
        if kind in ("type_identifier", "scoped_type_identifier", "identifier", "scoped_identifier"):
            return TypeName(self.compact(node), **meta)
        if kind == "generic_type":
            parts = _named(node)
            base = parts[0]
            arguments = _child_of_type(node, "type_arguments")
            return ParameterizedType(
                TypeName(self.compact(base), **self.meta(base)),
                tuple(self.type_tree(t) for t in _named(arguments)),
                **meta,
            )
        if kind == "array_type":
            element = self.type_tree(node.child_by_field_name("element"))
            return self._with_dimensions(element, node.child_by_field_name("dimensions"), meta)
        if kind in _PRIMITIVES:
            return PrimitiveTypeTree(self.text(node), **meta)
        if kind == "wildcard":
            bound_kind = None
            for keyword in ("extends", "super"):
                if _child_of_type(node, keyword) is not None:
                    bound_kind = keyword
            bounds = [c for c in _named(node) if c.type in _TYPE_NODES]
            return WildcardTypeTree(
                bound_kind, self.type_tree(bounds[-1]) if bounds else None, **meta
            )
        if kind == "annotated_type":
            return self.type_tree([c for c in _named(node) if c.type in _TYPE_NODES][-1])
        return TypeName(self.compact(node), **meta)

    def _with_dimensions(
        self, element: TypeTree, dimensions: Optional[Node], meta: Optional[dict[str, Any]] = None
    ) -> TypeTree:
        count = self.text(dimensions).count("[") if dimensions is not None else 0
        result = element
        for level in range(count):
            outermost = level == count - 1
            result = ArrayTypeTree(result, **(meta or {})) if outermost else ArrayTypeTree(result)
        return result


class JavaFrontEnd(FrontEndProtocol):
    """
    Parses Java with tree-sitter-java and attributes the result against a type model.

    One tree-sitter parser per thread; trees and the model are never shared mutably.
    """

    def __init__(self, model: Optional[TypeModel] = None) -> None:
        self.model = model or TypeModel()
        self._local = threading.local()

    def _parser(self) -> Parser:
        parser = getattr(self._local, "parser", None)
        if parser is None:
            parser = Parser(JAVA_LANGUAGE)
            self._local.parser = parser
        return parser

    def _parse_tree(self, source: bytes, path: str) -> Node:
        tree = self._parser().parse(source)
        root = tree.root_node
        if root.has_error:
            error = _first_error(root)
            if error is not None:
                line, column = error.start_point
                what = "missing " + error.type if error.is_missing else "syntax error"
                raise FrontEndError(path, f"{what} at {line + 1}:{column}")
            raise FrontEndError(path, "syntax error")
        return root

    def parse_unattributed(self, text: str, path: str = "<memory>") -> CompilationUnit:
        source = text.encode("utf-8")
        root = self._parse_tree(source, path)
        return _Converter(source, path).compilation_unit(root)

    def parse(self, text: str, path: str = "<memory>") -> CompilationUnit:
        unit = self.parse_unattributed(text, path)
        return TypeAttributor(self.model).attribute(unit)

    def declared_classes(self, text: str, path: str = "<memory>") -> list[ClassInfo]:
        return TypeAttributor(self.model).declared_classes(self.parse_unattributed(text, path))

    def parse_fragment(self, text: str, kind: str) -> tuple[JNode, ...]:
        wrapper = _FRAGMENT_WRAPPERS.get(kind)
        if wrapper is None:
            raise ValueError(f"unknown fragment kind {kind!r}")
        source = (wrapper % text).encode("utf-8")
        root = self._parse_tree(source, "<template>")
        converter = _Converter(source, "<template>", keep_source=False)
        declaration = _child_of_type(root, "class_declaration")
        if declaration is None:
            raise FrontEndError("<template>", "fragment did not parse as a class body")
        members, _ = converter.class_body(declaration.child_by_field_name("body"))
        if kind == "members":
            return tuple(members)
        if len(members) != 1:
            raise FrontEndError("<template>", f"expected a single {kind} fragment")
        holder = members[0]
        if kind == "expression":
            if not isinstance(holder, VariableDeclarations) or holder.variables[0].initializer is None:
                raise FrontEndError("<template>", "not an expression")
            return (holder.variables[0].initializer,)
        if not isinstance(holder, MethodDeclaration) or holder.body is None:
            raise FrontEndError("<template>", "not a statement list")
        return holder.body.statements
