"""Condition expression evaluation for ``{{#if}}`` blocks.

The grammar is deliberately narrow:

    expression := operand [comparison operand]
    comparison := "==" | "!=" | ">=" | "<=" | ">" | "<"
    operand    := string | number | "true" | "false" | name | call
    call       := name "(" [operand ("," operand)*] ")"

There are no boolean combinators and no grouping parentheses. Function calls
are evaluated left to right before the comparison is applied.
"""

import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field

from promptforge.exceptions import ExpressionError, UnknownFunctionError

from ._bindings import MISSING, Scope, is_truthy, to_number, to_text
from ._functions import FunctionRegistry, create_function_registry

_TOKEN_PATTERN = re.compile(
    r"""\s*(?:
        (?P<string>"[^"]*"|'[^']*')
       |(?P<number>-?\d+(?:\.\d+)?(?![A-Za-z_]))
       |(?P<operator>==|!=|>=|<=|>|<)
       |(?P<name>[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z0-9_]+)*)
       |(?P<lparen>\()
       |(?P<rparen>\))
       |(?P<comma>,)
    )""",
    re.VERBOSE,
)


@dataclass(frozen=True, slots=True)
class Literal:
    """A quoted string, number or boolean literal."""

    value: object


@dataclass(frozen=True, slots=True)
class Reference:
    """A bound name, possibly a dotted path."""

    path: str


@dataclass(frozen=True, slots=True)
class Call:
    """A function call operand."""

    name: str
    arguments: "tuple[Operand, ...]"


type Operand = Literal | Reference | Call


@dataclass(frozen=True, slots=True)
class _Token:
    kind: str
    text: str
    position: int


def _tokenize(expression: str) -> list[_Token]:
    tokens: list[_Token] = []
    position = 0
    length = len(expression.rstrip())
    while position < length:
        match = _TOKEN_PATTERN.match(expression, position)
        if match is None or match.lastgroup is None:
            msg = f"Unexpected character {expression[position:].strip()[:1]!r} in condition"
            raise ExpressionError(msg, expression=expression)
        tokens.append(_Token(match.lastgroup, match.group(match.lastgroup), match.start()))
        position = match.end()
    return tokens


class _Parser:
    """Recursive-descent parser over the token list."""

    def __init__(self, expression: str) -> None:
        self.expression = expression
        self.tokens = _tokenize(expression)
        self.index = 0

    def _peek(self) -> _Token | None:
        return self.tokens[self.index] if self.index < len(self.tokens) else None

    def _next(self) -> _Token:
        token = self._peek()
        if token is None:
            msg = "Unexpected end of condition"
            raise ExpressionError(msg, expression=self.expression)
        self.index += 1
        return token

    def _error(self, token: _Token) -> ExpressionError:
        msg = f"Unexpected {token.text!r} at offset {token.position} in condition"
        return ExpressionError(msg, expression=self.expression)

    def parse(self) -> tuple[Operand, str | None, Operand | None]:
        if not self.tokens:
            msg = "Empty condition"
            raise ExpressionError(msg, expression=self.expression)

        left = self._operand()
        operator: str | None = None
        right: Operand | None = None

        token = self._peek()
        if token is not None and token.kind == "operator":
            self.index += 1
            operator = token.text
            right = self._operand()

        trailing = self._peek()
        if trailing is not None:
            raise self._error(trailing)
        return left, operator, right

    def _operand(self) -> Operand:
        token = self._next()
        match token.kind:
            case "string":
                return Literal(token.text[1:-1])
            case "number":
                number = to_number(token.text)
                return Literal(number)
            case "name":
                if token.text == "true":
                    return Literal(value=True)
                if token.text == "false":
                    return Literal(value=False)
                following = self._peek()
                if following is not None and following.kind == "lparen":
                    self.index += 1
                    return Call(token.text, self._arguments())
                return Reference(token.text)
            case _:
                raise self._error(token)

    def _arguments(self) -> tuple[Operand, ...]:
        arguments: list[Operand] = []
        token = self._peek()
        if token is not None and token.kind == "rparen":
            self.index += 1
            return ()
        while True:
            arguments.append(self._operand())
            token = self._next()
            if token.kind == "rparen":
                return tuple(arguments)
            if token.kind != "comma":
                raise self._error(token)


def _iter_operands(operand: Operand | None) -> Iterator[Operand]:
    if operand is None:
        return
    yield operand
    if isinstance(operand, Call):
        for argument in operand.arguments:
            yield from _iter_operands(argument)


def compare(left: object, operator: str, right: object) -> bool:
    """Apply one comparison operator to two resolved operands.

    Both operands numeric (including numeric strings) compare as numbers.
    Otherwise ``==``/``!=`` compare rendered text, so ``true`` equals the
    boolean True, and ordering operators are false.
    """
    left_number = to_number(left)
    right_number = to_number(right)

    if left_number is not None and right_number is not None:
        match operator:
            case "==":
                return left_number == right_number
            case "!=":
                return left_number != right_number
            case ">=":
                return left_number >= right_number
            case "<=":
                return left_number <= right_number
            case ">":
                return left_number > right_number
            case "<":
                return left_number < right_number

    match operator:
        case "==":
            return to_text(left) == to_text(right)
        case "!=":
            return to_text(left) != to_text(right)
        case _:
            return False


@dataclass(frozen=True, slots=True)
class ExpressionEvaluator:
    """Evaluates one ``{{#if}}`` condition against render scopes.

    Parses the expression once at creation time and can evaluate it against
    many scopes, e.g. once per loop iteration.
    """

    expression: str
    left: Operand = field(repr=False, compare=False)
    operator: str | None = field(default=None, repr=False, compare=False)
    right: Operand | None = field(default=None, repr=False, compare=False)

    @classmethod
    def compile(cls, expression: str) -> "ExpressionEvaluator":  # noqa: UP037
        """Compile an expression string.

        Raises:
            ExpressionError: If the expression is syntactically invalid.
        """
        left, operator, right = _Parser(expression).parse()
        return cls(expression=expression, left=left, operator=operator, right=right)

    def evaluate(self, scope: Scope, registry: FunctionRegistry) -> bool:
        """Evaluate the expression.

        Args:
            scope: Bindings visible to the condition.
            registry: Functions callable from the condition.

        Returns:
            The boolean result of the comparison or truthiness check.

        Raises:
            UnknownFunctionError: If the condition calls an unregistered function.
        """
        if self.operator is None or self.right is None:
            return is_truthy(self._resolve(self.left, scope, registry, bare_word=False))
        left = self._resolve(self.left, scope, registry, bare_word=True)
        right = self._resolve(self.right, scope, registry, bare_word=True)
        return compare(left, self.operator, right)

    def references(self) -> list[str]:
        """Return the names referenced by the expression, in order."""
        names: list[str] = []
        for side in (self.left, self.right):
            for operand in _iter_operands(side):
                if isinstance(operand, Reference) and operand.path not in names:
                    names.append(operand.path)
        return names

    def function_names(self) -> list[str]:
        """Return the functions called by the expression, in order."""
        names: list[str] = []
        for side in (self.left, self.right):
            for operand in _iter_operands(side):
                if isinstance(operand, Call) and operand.name not in names:
                    names.append(operand.name)
        return names

    def _resolve(
        self,
        operand: Operand,
        scope: Scope,
        registry: FunctionRegistry,
        *,
        bare_word: bool,
    ) -> object:
        match operand:
            case Literal():
                return operand.value
            case Reference():
                value = scope.lookup(operand.path)
                if value is MISSING:
                    # An unbound name is its own text, except in a bare
                    # truthiness check where it has no value.
                    return operand.path if bare_word else None
                return value
            case Call():
                function = registry.get(operand.name)
                if function is None:
                    msg = f"Function '{operand.name}' not found"
                    raise UnknownFunctionError(msg, function=operand.name)
                arguments = [
                    self._resolve(argument, scope, registry, bare_word=True)
                    for argument in operand.arguments
                ]
                return function(*arguments)


def evaluate_condition(
    expression: str,
    bindings: Mapping[str, object] | Scope,
    registry: FunctionRegistry | None = None,
) -> bool:
    """Convenience function to compile and evaluate an expression.

    For one-off evaluations. When evaluating the same expression against
    multiple scopes, use ExpressionEvaluator.compile() directly.

    Raises:
        ExpressionError: If the expression is invalid.
        UnknownFunctionError: If the expression calls an unknown function.
    """
    scope = bindings if isinstance(bindings, Scope) else Scope(bindings)
    evaluator = ExpressionEvaluator.compile(expression)
    return evaluator.evaluate(scope, registry or create_function_registry())
