"""PowerMock to plain Mockito migrations."""

from dataclasses import dataclass, field
from typing import Any, Optional

from transmute.domain.entities import Outcome
from transmute.domain.matchers import MethodMatcher, is_of_class_type
from transmute.domain.recipe import Recipe, TemplateSpec
from transmute.domain.search import UsesType, any_of
from transmute.domain.template import TemplateKind
from transmute.domain.tree import (
    Annotation,
    ArrayInitializer,
    Assignment,
    Block,
    ClassDeclaration,
    ClassLiteral,
    CompilationUnit,
    Expression,
    ExpressionStatement,
    Identifier,
    JNode,
    MethodDeclaration,
    MethodInvocation,
    TypeName,
    VariableDeclarations,
)
from transmute.domain.types import ClassType
from transmute.domain.visitor import RecipeVisitor

PREPARE_FOR_TEST = "org.powermock.core.classloader.annotations.PrepareForTest"
POWER_MOCKITO = "org.powermock.api.mockito.PowerMockito"
MOCKITO = "org.mockito.Mockito"
MOCKED_STATIC = "org.mockito.MockedStatic"

MOCK_STATIC = (
    MethodMatcher(f"{MOCKITO} mockStatic(..)"),
    MethodMatcher(f"{POWER_MOCKITO} mockStatic(..)"),
)
WHEN = (MethodMatcher(f"{MOCKITO} when(..)"), MethodMatcher(f"{POWER_MOCKITO} when(..)"))
VERIFY = MethodMatcher(f"{MOCKITO} verify(..)")

SETUP_ANNOTATIONS = ("BeforeEach", "Before")
TEARDOWN_ANNOTATIONS = ("AfterEach", "After")

STATIC_MOCKS = "staticMocks"


@dataclass(frozen=True)
class PreparedType:
    """One class listed in ``@PrepareForTest``."""

    fqn: str
    written: str
    field_name: str


@dataclass
class StaticMocks:
    """Statically mocked types of one class: those still to migrate and those with a field already."""

    prepared: list[PreparedType] = field(default_factory=list)
    existing_fields: dict[str, str] = field(default_factory=dict)
    # Events reported before the class was entered; later ones are dropped if the class is left unchanged.
    events_before: int = 0

    def field_for(self, fqn: str) -> Optional[str]:
        if fqn in self.existing_fields:
            return self.existing_fields[fqn]
        for prepared in self.prepared:
            if prepared.fqn == fqn:
                return prepared.field_name
        return None

    def is_prepared(self, fqn: Optional[str]) -> bool:
        return any(p.fqn == fqn for p in self.prepared)


class PowerMockitoMockStaticToMockito(Recipe):
    """
    Replace PowerMock's ``@PrepareForTest`` static mocking with Mockito's ``MockedStatic``.

    Every prepared type gets a ``MockedStatic<T>`` field that is opened in a
    ``@BeforeEach`` method and closed in an ``@AfterEach`` method, both
    created when the class has none. ``mockStatic(T.class)`` calls in test
    methods are dropped, and stubbing or verification of static calls goes
    through the field.
    """

    name = "transmute.mockito.PowerMockitoMockStaticToMockito"
    display_name = "Replace `PowerMock.mockStatic()` with `Mockito.mockStatic()`"
    description = "Replaces `PowerMockito.mockStatic()` by `Mockito.mockStatic()`. Removes the `@PrepareForTest` annotation."
    tags = ("testing", "mockito", "powermock")
    estimated_effort = 10
    TEMPLATES = {
        "field": TemplateSpec(
            "private MockedStatic<#{identifier()}> #{identifier()};",
            TemplateKind.MEMBERS,
            imports=(MOCKED_STATIC,),
        ),
        "set_up": TemplateSpec(
            "@BeforeEach\nvoid #{identifier()}() {\n}",
            TemplateKind.MEMBERS,
            imports=("org.junit.jupiter.api.BeforeEach",),
        ),
        "tear_down": TemplateSpec(
            "@AfterEach\nvoid #{identifier()}() {\n}",
            TemplateKind.MEMBERS,
            imports=("org.junit.jupiter.api.AfterEach",),
        ),
        "open": TemplateSpec(
            "#{identifier()} = mockStatic(#{identifier()}.class);",
            static_imports=(f"{MOCKITO}.mockStatic",),
        ),
        "close": TemplateSpec("#{identifier()}.close();"),
        "when": TemplateSpec(
            "#{any(org.mockito.MockedStatic)}.when(() -> #{any()})",
            TemplateKind.EXPRESSION,
        ),
        "verify": TemplateSpec(
            "#{any(org.mockito.MockedStatic)}.verify(() -> #{any()}, #{any(org.mockito.verification.VerificationMode)})",
            TemplateKind.EXPRESSION,
        ),
        "verify_once": TemplateSpec(
            "#{any(org.mockito.MockedStatic)}.verify(() -> #{any()})",
            TemplateKind.EXPRESSION,
        ),
        "verify_reference": TemplateSpec(
            "#{any(org.mockito.MockedStatic)}.verify(#{identifier()}::#{identifier()}, "
            "#{any(org.mockito.verification.VerificationMode)})",
            TemplateKind.EXPRESSION,
        ),
        "verify_reference_once": TemplateSpec(
            "#{any(org.mockito.MockedStatic)}.verify(#{identifier()}::#{identifier()})",
            TemplateKind.EXPRESSION,
        ),
    }

    def is_applicable(self, unit: CompilationUnit) -> bool:
        return any_of(UsesType(PREPARE_FOR_TEST), UsesType(MOCKED_STATIC))(unit)

    def get_visitor(self) -> RecipeVisitor:
        return MockStaticVisitor(self)


def _is_annotated(method: MethodDeclaration, names: tuple[str, ...]) -> bool:
    return any(method.has_annotation(n) for n in names)


def _is_prepare_for_test(annotation: Annotation) -> bool:
    return is_of_class_type(annotation.annotation_type.type, PREPARE_FOR_TEST)


def _class_literals(annotation: Annotation) -> list[ClassLiteral]:
    literals: list[ClassLiteral] = []
    for argument in annotation.arguments:
        if isinstance(argument, Assignment):
            if not (isinstance(argument.target, Identifier) and argument.target.name == "value"):
                continue
            argument = argument.value
        elements = argument.elements if isinstance(argument, ArrayInitializer) else (argument,)
        literals.extend(e for e in elements if isinstance(e, ClassLiteral))
    return literals


def _mocked_static_fields(declaration: ClassDeclaration) -> dict[str, str]:
    fields: dict[str, str] = {}
    for member in declaration.fields:
        declared = member.type_expression.type
        if not is_of_class_type(declared, MOCKED_STATIC) or not isinstance(declared, ClassType):
            continue
        if declared.type_arguments and isinstance(declared.type_arguments[0], ClassType):
            fields.setdefault(declared.type_arguments[0].fqn, member.variables[0].name)
    return fields


def _literal_fqn(literal: Expression) -> Optional[str]:
    if isinstance(literal, ClassLiteral) and isinstance(literal.class_type.type, ClassType):
        return literal.class_type.type.fqn
    return None


def _member_names(declaration: ClassDeclaration) -> set[str]:
    names = {m.name for m in declaration.methods}
    names.update(v.name for f in declaration.fields for v in f.variables)
    return names


def _unique_name(base: str, taken: set[str]) -> str:
    name, suffix = base, 1
    while name in taken:
        suffix += 1
        name = f"{base}{suffix}"
    return name


def _lifecycle_method(declaration: ClassDeclaration, annotations: tuple[str, ...]) -> Optional[MethodDeclaration]:
    """The first method with one of ``annotations`` that has a body to add statements to."""
    return next(
        (m for m in declaration.methods if _is_annotated(m, annotations) and m.body is not None), None
    )


def _inserted_member(before: ClassDeclaration, after: ClassDeclaration) -> Optional[MethodDeclaration]:
    known = {m.node_id for m in before.members}
    return next((m for m in after.methods if m.node_id not in known), None)


def _swap_member(declaration: ClassDeclaration, old: JNode, new: JNode) -> ClassDeclaration:
    return declaration.with_changes(members=tuple(new if m is old else m for m in declaration.members))


class MockStaticVisitor(RecipeVisitor):
    def __init__(self, recipe: PowerMockitoMockStaticToMockito) -> None:
        super().__init__()
        self.recipe = recipe

    def visit_ClassDeclaration(self, node: ClassDeclaration) -> Optional[bool]:
        mocks = StaticMocks(existing_fields=_mocked_static_fields(node), events_before=len(self.events))
        taken = _member_names(node)
        for annotation in node.annotations:
            if not _is_prepare_for_test(annotation):
                continue
            for literal in _class_literals(annotation):
                fqn = _literal_fqn(literal)
                if fqn is None or not isinstance(literal.class_type, TypeName):
                    self.report(Outcome.SKIPPED, "unresolved type in @PrepareForTest", literal)
                    continue
                if fqn in mocks.existing_fields or mocks.is_prepared(fqn):
                    continue
                field_name = _unique_name(f"mocked{literal.class_type.simple_name}", taken)
                taken.add(field_name)
                mocks.prepared.append(PreparedType(fqn, literal.class_type.name, field_name))
        self.put_message_on_first_enclosing(ClassDeclaration, STATIC_MOCKS, mocks)
        return None

    def _mocks(self) -> Optional[StaticMocks]:
        return self.get_message_on_first_enclosing(ClassDeclaration, STATIC_MOCKS)

    # -- mockStatic() calls ----------------------------------------------------

    def _is_prepared_mock_static(self, statement: JNode, mocks: StaticMocks) -> bool:
        if not isinstance(statement, ExpressionStatement):
            return False
        call = statement.expression
        if not isinstance(call, MethodInvocation) or not any(m.matches(call) for m in MOCK_STATIC):
            return False
        return bool(call.arguments) and all(mocks.is_prepared(_literal_fqn(a)) for a in call.arguments)

    def leave_MethodDeclaration(self, original_node: MethodDeclaration, updated_node: MethodDeclaration) -> Any:
        mocks = self._mocks()
        if mocks is None or not mocks.prepared or updated_node.body is None:
            return updated_node
        if _is_annotated(updated_node, SETUP_ANNOTATIONS):
            return updated_node
        statements = updated_node.body.statements
        kept = tuple(s for s in statements if not self._is_prepared_mock_static(s, mocks))
        if len(kept) == len(statements):
            return updated_node
        self.maybe_remove_import(POWER_MOCKITO, "mockStatic")
        self.maybe_remove_import(POWER_MOCKITO)
        self.report(Outcome.APPLIED, f"removed mockStatic() from {updated_node.name}()", original_node)
        return updated_node.with_changes(body=updated_node.body.with_changes(statements=kept))

    # -- when() / verify() -----------------------------------------------------

    def leave_MethodInvocation(self, original_node: MethodInvocation, updated_node: MethodInvocation) -> Any:
        is_when = any(m.matches(original_node) for m in WHEN)
        is_verify = VERIFY.matches(original_node) and len(updated_node.arguments) in (1, 2)
        if not (is_when or is_verify) or not updated_node.arguments:
            return updated_node
        stubbed = updated_node.arguments[0]
        if not isinstance(stubbed, MethodInvocation) or stubbed.method_type is None:
            return updated_node
        if not stubbed.method_type.is_static:
            return updated_node
        mocks = self._mocks()
        owner = stubbed.method_type.declaring_type
        field_name = mocks.field_for(owner.fqn) if mocks is not None else None
        if field_name is None:
            return updated_node
        mocked = Identifier(field_name, type=ClassType(MOCKED_STATIC, (ClassType(owner.fqn),)))
        templates = self.recipe.templates
        coordinate = updated_node.coordinates.replace()
        mode = updated_node.arguments[1:]
        if is_when:
            replaced = self.apply_template(templates["when"], coordinate, mocked, stubbed)
        elif not stubbed.arguments and isinstance(stubbed.select, TypeName):
            key = "verify_reference" if mode else "verify_reference_once"
            replaced = self.apply_template(templates[key], coordinate, mocked, stubbed.select, stubbed.name, *mode)
        else:
            key = "verify" if mode else "verify_once"
            replaced = self.apply_template(templates[key], coordinate, mocked, stubbed, *mode)
        if replaced is None:
            return updated_node
        if updated_node.select is None:
            owner_fqn = original_node.method_type.declaring_type.fqn  # type: ignore[union-attr]
            self.maybe_remove_import(owner_fqn, updated_node.name)
        self.report(Outcome.APPLIED, f"{updated_node.name}() now goes through {field_name}", original_node)
        return replaced

    # -- fields, setUp and tearDown --------------------------------------------

    def leave_ClassDeclaration(self, original_node: ClassDeclaration, updated_node: ClassDeclaration) -> Any:
        mocks: Optional[StaticMocks] = self.poll_message(STATIC_MOCKS)
        annotations = tuple(a for a in updated_node.annotations if not _is_prepare_for_test(a))
        if mocks is None or len(annotations) == len(updated_node.annotations):
            return updated_node
        declaration = updated_node.with_changes(annotations=annotations)
        self.maybe_remove_import(PREPARE_FOR_TEST)
        if mocks.prepared:
            migrated = self._add_static_mocks(declaration, mocks.prepared)
            if migrated is None:
                # Test methods already point at the fields that could not be added.
                del self.events[mocks.events_before:]
                self.report(Outcome.SKIPPED, "MockedStatic fields could not be added", original_node)
                return original_node
            declaration = migrated
        self.report(Outcome.APPLIED, "@PrepareForTest replaced by MockedStatic fields", original_node)
        return declaration

    def _add_static_mocks(
        self, declaration: ClassDeclaration, prepared: list[PreparedType]
    ) -> Optional[ClassDeclaration]:
        templates = self.recipe.templates
        anchor = declaration.members[0] if declaration.members else None
        for mock in prepared:
            coordinate = (
                declaration.coordinates.before(anchor) if anchor is not None else declaration.coordinates.last_member()
            )
            declaration = self.apply_template(templates["field"], coordinate, mock.written, mock.field_name)
            if declaration is None:
                return None

        set_up = _lifecycle_method(declaration, SETUP_ANNOTATIONS)
        if set_up is None:
            first_test = next((m for m in declaration.methods if m.has_annotation("Test")), None)
            coordinate = (
                declaration.coordinates.before(first_test)
                if first_test is not None
                else declaration.coordinates.last_member()
            )
            name = _unique_name("setUp", _member_names(declaration))
            extended = self.apply_template(templates["set_up"], coordinate, name)
            if extended is None:
                return None
            set_up = _inserted_member(declaration, extended)
            declaration = extended
        assert set_up is not None
        opened = self._open_mocks(set_up, prepared, declaration)
        if opened is None:
            return None
        declaration = _swap_member(declaration, set_up, opened)

        tear_down = _lifecycle_method(declaration, TEARDOWN_ANNOTATIONS)
        if tear_down is None:
            name = _unique_name("tearDown", _member_names(declaration))
            extended = self.apply_template(templates["tear_down"], declaration.coordinates.after(opened), name)
            if extended is None:
                return None
            tear_down = _inserted_member(declaration, extended)
            declaration = extended
        assert tear_down is not None and tear_down.body is not None
        body: Optional[Block] = tear_down.body
        for mock in prepared:
            body = self.apply_template(
                templates["close"], body.coordinates.last_statement(), mock.field_name, enclosing_class=declaration
            )
            if body is None:
                return None
        return _swap_member(declaration, tear_down, tear_down.with_changes(body=body))

    def _open_mocks(
        self, set_up: MethodDeclaration, prepared: list[PreparedType], declaration: ClassDeclaration
    ) -> Optional[MethodDeclaration]:
        """Assign every static mock in ``set_up``, where its ``mockStatic()`` call stood or at the end."""
        mocks = StaticMocks(prepared=prepared)
        statements = set_up.body.statements if set_up.body is not None else ()
        first = next((i for i, s in enumerate(statements) if self._is_prepared_mock_static(s, mocks)), None)
        kept = tuple(s for s in statements if not self._is_prepared_mock_static(s, mocks))
        body: Optional[Block] = (set_up.body or Block()).with_changes(statements=kept)
        anchor = kept[first] if first is not None and first < len(kept) else None
        for mock in prepared:
            assert body is not None
            coordinate = body.coordinates.before(anchor) if anchor is not None else body.coordinates.last_statement()
            body = self.apply_template(
                self.recipe.templates["open"], coordinate, mock.field_name, mock.written, enclosing_class=declaration
            )
            if body is None:
                return None
        if first is not None:
            self.maybe_remove_import(POWER_MOCKITO, "mockStatic")
            self.maybe_remove_import(POWER_MOCKITO)
        return set_up.with_changes(body=body)
