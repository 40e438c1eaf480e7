"""Java printer: untouched nodes come out exactly as written, edited nodes in canonical layout."""

from typing import Optional

from transmute.domain.protocols import PrinterProtocol
from transmute.domain.tree import (
    Annotation,
    ArrayInitializer,
    ArrayTypeTree,
    Assignment,
    Binary,
    Block,
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
    Throw,
    Try,
    TypeName,
    UnionTypeTree,
    VariableDeclarations,
    VariableDeclarator,
    WildcardTypeTree,
)


def _reindent(node: JNode, text: str, indent: str) -> str:
    """Move continuation lines of ``text`` from the node's original indentation to ``indent``."""
    lines = text.split("\n")
    if len(lines) == 1:
        return text
    original = node.span.indent if node.span is not None else 0
    moved = [lines[0]]
    for line in lines[1:]:
        if not line.strip():
            moved.append("")
            continue
        prefix = len(line) - len(line.lstrip(" \t"))
        moved.append(indent + line[min(prefix, original):])
    return "\n".join(moved)


class JavaPrinter(PrinterProtocol):
    """Serializes a CompilationUnit. Indentation of regenerated code is ``indent_unit`` per level."""

    def __init__(self, indent_unit: str = "    ") -> None:
        self.indent_unit = indent_unit

    def print(self, unit: CompilationUnit) -> str:
        if unit.source is not None:
            return unit.source
        lines: list[str] = []
        for comment in unit.comments:
            lines.extend(self._comment(comment, ""))
        if unit.package_name:
            lines.append(f"package {unit.package_name};")
        for index, declaration in enumerate(unit.imports):
            blank = declaration.blank_lines_before
            if index == 0 and unit.package_name:
                blank = max(blank, 1)
            lines.extend([""] * blank)
            lines.extend(self._comments(declaration, ""))
            written = self._verbatim(declaration, "") or self._import(declaration)
            lines.append(written + declaration.trailing_comment)
        for index, declaration in enumerate(unit.classes):
            blank = declaration.blank_lines_before
            if index > 0 or unit.imports or unit.package_name:
                blank = max(blank, 1)
            lines.extend([""] * blank)
            lines.extend(self._comments(declaration, ""))
            lines.extend(self._class(declaration, ""))
            lines[-1] += declaration.trailing_comment
        for comment in unit.end_comments:
            lines.extend(self._comment(comment, ""))
        return "\n".join(lines) + "\n"

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _verbatim(self, node: JNode, indent: str) -> Optional[str]:
        if node.source is None:
            return None
        return indent + _reindent(node, node.source, indent)

    @staticmethod
    def _comment(text: str, indent: str) -> list[str]:
        lines = text.split("\n")
        result = [indent + lines[0].strip()]
        for line in lines[1:]:
            stripped = line.strip()
            result.append(indent + (" " + stripped if stripped.startswith("*") else stripped))
        return result

    def _comments(self, node: JNode, indent: str) -> list[str]:
        return [line for comment in node.comments for line in self._comment(comment, indent)]

    def _children(self, children: tuple[JNode, ...], end_comments: tuple[str, ...], indent: str) -> list[str]:
        lines: list[str] = []
        for child in children:
            lines.extend([""] * child.blank_lines_before)
            lines.extend(self._comments(child, indent))
            if isinstance(child, (ClassDeclaration, MethodDeclaration)):
                lines.extend(self._member(child, indent))
            elif isinstance(child, VariableDeclarations):
                lines.extend(self._variables(child, indent, as_member=True))
            else:
                lines.extend(self._statement(child, indent))
            lines[-1] += child.trailing_comment
        for comment in end_comments:
            lines.extend(self._comment(comment, indent))
        return lines

    def _braced(self, header: str, block: Block, indent: str) -> list[str]:
        inner = self._children(block.statements, block.end_comments, indent + self.indent_unit)
        return [f"{header}{{"] + inner + [f"{indent}}}"]

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    @staticmethod
    def _import(declaration: ImportDeclaration) -> str:
        return declaration.describe() + ";"

    def _member(self, node: JNode, indent: str) -> list[str]:
        if isinstance(node, ClassDeclaration):
            return self._class(node, indent)
        assert isinstance(node, MethodDeclaration)
        return self._method(node, indent)

    def _annotations(self, annotations: tuple[Annotation, ...], indent: str) -> list[str]:
        return [indent + self._expression(a, indent) for a in annotations]

    def _class(self, node: ClassDeclaration, indent: str) -> list[str]:
        verbatim = self._verbatim(node, indent)
        if verbatim is not None:
            return verbatim.split("\n")
        inner = self._children(node.members, node.end_comments, indent + self.indent_unit)
        if node.header_source is not None:
            header_lines = (indent + _reindent(node, node.header_source, indent)).split("\n")
            return header_lines + inner + [f"{indent}}}"]
        lines = self._annotations(node.annotations, indent)
        header = " ".join([*node.modifiers, node.kind, node.name])
        if node.type_parameters:
            header += "<" + ", ".join(node.type_parameters) + ">"
        if node.extends is not None:
            header += " extends " + self._expression(node.extends, indent)
        if node.implements:
            keyword = "extends" if node.kind == "interface" else "implements"
            header += f" {keyword} " + ", ".join(self._expression(t, indent) for t in node.implements)
        return lines + [f"{indent}{header} {{"] + inner + [f"{indent}}}"]

    def _method(self, node: MethodDeclaration, indent: str) -> list[str]:
        verbatim = self._verbatim(node, indent)
        if verbatim is not None:
            return verbatim.split("\n")
        lines = self._annotations(node.annotations, indent)
        parts = list(node.modifiers)
        if node.type_parameters:
            parts.append("<" + ", ".join(node.type_parameters) + ">")
        if node.return_type is not None:
            parts.append(self._expression(node.return_type, indent))
        parameters = ", ".join(self._parameter(p, indent) for p in node.parameters)
        parts.append(f"{node.name}({parameters})")
        header = indent + " ".join(parts)
        if node.throws:
            header += " throws " + ", ".join(self._expression(t, indent) for t in node.throws)
        if node.body is None:
            return lines + [header + ";"]
        return lines + self._braced(header + " ", node.body, indent)

    def _parameter(self, node: Parameter, indent: str) -> str:
        verbatim = self._verbatim(node, "")
        if verbatim is not None:
            return verbatim
        parts = [self._expression(a, indent) for a in node.annotations] + list(node.modifiers)
        if node.type_expression is not None:
            written = self._expression(node.type_expression, indent)
            parts.append(written + "..." if node.varargs else written)
        parts.append(node.name)
        return " ".join(parts)

    def _variables(self, node: VariableDeclarations, indent: str, as_member: bool = False) -> list[str]:
        verbatim = self._verbatim(node, indent)
        if verbatim is not None:
            return verbatim.split("\n")
        lines: list[str] = []
        inline: list[str] = []
        if as_member:
            lines = self._annotations(node.annotations, indent)
        else:
            inline = [self._expression(a, indent) for a in node.annotations]
        declarators = ", ".join(self._declarator(v, indent) for v in node.variables)
        parts = inline + list(node.modifiers) + [self._expression(node.type_expression, indent), declarators]
        return lines + [indent + " ".join(parts) + ";"]

    def _declarator(self, node: VariableDeclarator, indent: str) -> str:
        text = node.name + "[]" * node.dimensions
        if node.initializer is not None:
            text += " = " + self._expression(node.initializer, indent)
        return text

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def _statement(self, node: JNode, indent: str) -> list[str]:
        verbatim = self._verbatim(node, indent)
        if verbatim is not None:
            return verbatim.split("\n")
        if isinstance(node, Block):
            return self._braced(indent, node, indent)
        if isinstance(node, ExpressionStatement):
            return (indent + self._expression(node.expression, indent) + ";").split("\n")
        if isinstance(node, VariableDeclarations):
            return self._variables(node, indent)
        if isinstance(node, Return):
            if node.expression is None:
                return [indent + "return;"]
            return (indent + "return " + self._expression(node.expression, indent) + ";").split("\n")
        if isinstance(node, Throw):
            return (indent + "throw " + self._expression(node.expression, indent) + ";").split("\n")
        if isinstance(node, If):
            return self._if(node, indent, indent)
        if isinstance(node, Try):
            return self._try(node, indent)
        if isinstance(node, RawStatement):
            return (indent + _reindent(node, node.text, indent)).split("\n")
        if isinstance(node, (ClassDeclaration, MethodDeclaration)):
            return self._member(node, indent)
        raise TypeError(f"cannot print {type(node).__name__} as a statement")

    def _if(self, node: If, prefix: str, indent: str) -> list[str]:
        header = f"{prefix}if ({self._expression(node.condition, indent)}) "
        lines = self._nested(header, node.then, indent)
        if node.otherwise is None:
            return lines
        if isinstance(node.then, Block):
            lines, prefix = lines[:-1], lines[-1] + " else "
        else:
            prefix = indent + "else "
        if isinstance(node.otherwise, If) and node.otherwise.source is None:
            return lines + self._if(node.otherwise, prefix, indent)
        return lines + self._nested(prefix, node.otherwise, indent)

    def _nested(self, header: str, body: JNode, indent: str) -> list[str]:
        if isinstance(body, (Block, If)) and body.source is not None:
            text = _reindent(body, body.source, indent).split("\n")
            return [header + text[0]] + text[1:]
        if isinstance(body, Block):
            return self._braced(header, body, indent)
        return [header.rstrip()] + self._statement(body, indent + self.indent_unit)

    def _try(self, node: Try, indent: str) -> list[str]:
        lines = self._nested(indent + "try ", node.body, indent)
        for catch in node.catches:
            parameter = self._parameter(catch.parameter, indent)
            lines = lines[:-1] + self._nested(f"{lines[-1]} catch ({parameter}) ", catch.body, indent)
        if node.finally_block is not None:
            lines = lines[:-1] + self._nested(f"{lines[-1]} finally ", node.finally_block, indent)
        return lines

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def _expression(self, node: JNode, indent: str) -> str:
        if node.source is not None:
            return _reindent(node, node.source, indent)
        if isinstance(node, (Identifier, TypeName)):
            return node.name
        if isinstance(node, Literal):
            return node.value
        if isinstance(node, FieldAccess):
            return f"{self._expression(node.target, indent)}.{node.name}"
        if isinstance(node, MethodInvocation):
            return self._invocation(node, indent)
        if isinstance(node, NewClass):
            return f"new {self._expression(node.class_type, indent)}({self._arguments(node.arguments, indent)})"
        if isinstance(node, Lambda):
            return self._lambda(node, indent)
        if isinstance(node, MemberReference):
            return f"{self._expression(node.target, indent)}::{node.name}"
        if isinstance(node, ClassLiteral):
            return f"{self._expression(node.class_type, indent)}.class"
        if isinstance(node, Assignment):
            return f"{self._expression(node.target, indent)} {node.operator} {self._expression(node.value, indent)}"
        if isinstance(node, Binary):
            return f"{self._expression(node.left, indent)} {node.operator} {self._expression(node.right, indent)}"
        if isinstance(node, Parenthesized):
            return f"({self._expression(node.expression, indent)})"
        if isinstance(node, ArrayInitializer):
            return "{" + self._arguments(node.elements, indent) + "}"
        if isinstance(node, RawExpression):
            return _reindent(node, node.text, indent)
        if isinstance(node, ParameterizedType):
            arguments = ", ".join(self._expression(t, indent) for t in node.type_arguments)
            return f"{self._expression(node.base, indent)}<{arguments}>"
        if isinstance(node, ArrayTypeTree):
            return self._expression(node.element, indent) + "[]"
        if isinstance(node, PrimitiveTypeTree):
            return node.keyword
        if isinstance(node, WildcardTypeTree):
            if node.bound is None:
                return "?"
            return f"? {node.bound_kind} {self._expression(node.bound, indent)}"
        if isinstance(node, UnionTypeTree):
            return " | ".join(self._expression(t, indent) for t in node.alternatives)
        if isinstance(node, Annotation):
            text = "@" + node.annotation_type.name
            if node.has_parentheses or node.arguments:
                text += f"({self._arguments(node.arguments, indent)})"
            return text
        raise TypeError(f"cannot print {type(node).__name__} as an expression")

    def _arguments(self, arguments: tuple[Expression, ...], indent: str) -> str:
        return ", ".join(self._expression(a, indent) for a in arguments)

    def _invocation(self, node: MethodInvocation, indent: str) -> str:
        type_arguments = ""
        if node.type_arguments:
            type_arguments = "<" + ", ".join(self._expression(t, indent) for t in node.type_arguments) + ">"
        call = f"{type_arguments}{node.name}({self._arguments(node.arguments, indent)})"
        if node.select is None:
            return call
        return f"{self._expression(node.select, indent)}.{call}"

    def _lambda(self, node: Lambda, indent: str) -> str:
        if not node.parenthesized and len(node.parameters) == 1:
            parameters = node.parameters[0].name
        else:
            parameters = "(" + ", ".join(self._parameter(p, indent) for p in node.parameters) + ")"
        if isinstance(node.body, Block):
            if node.body.source is not None:
                body = _reindent(node.body, node.body.source, indent)
            else:
                body = "\n".join(self._braced("", node.body, indent))
            return f"{parameters} -> {body}"
        return f"{parameters} -> {self._expression(node.body, indent)}"
