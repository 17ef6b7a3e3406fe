"""
Tree-walking evaluator for the Misty scripting language.

The `Interpreter` walks a `Program` depth-first against a chain of
`Environment` scopes. Nodes are dispatched by their `kind` tag: statements to
`exec_<kind>` methods, expressions to `eval_<kind>` methods.

Control Flow
------------
Every statement execution returns a `Signal`:

    NORMAL(value)   the statement completed; `value` is its result
    RETURN(value)   a `returns` statement is unwinding to the enclosing call
    BREAK           a `break;` is unwinding to the enclosing loop
    CONTINUE        a `continue;` is unwinding to the enclosing loop

Blocks stop at the first non-normal signal and hand it upward. Loops absorb
BREAK and CONTINUE, procedure calls absorb RETURN. Python exceptions are used
only for genuine failures (`MistyRuntimeError`).

Output
------
The only side effect visible to the host is the output buffer filled by the
built-in `System.out.console(value)`. `run()` returns it newline-joined.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from misty.misty_ast import (
    ArrayLiteral,
    Assignment,
    ASTNode,
    BinaryExpression,
    BooleanLiteral,
    BreakStatement,
    CallExpression,
    ComputedMemberExpression,
    ContinueStatement,
    DriftLoop,
    DriftThroughLoop,
    Expression,
    Identifier,
    IncaseStatement,
    MemberAssignment,
    MemberExpression,
    NaNLiteral,
    NullLiteral,
    NumberLiteral,
    ObjectLiteral,
    ProcedureDeclaration,
    Program,
    ReturnStatement,
    Statement,
    StringLiteral,
    UnaryExpression,
    VariableDeclaration,
)
from misty.misty_environment import Environment
from misty.misty_errors import MistyRuntimeError
from misty.misty_values import (
    NULL,
    ZERO,
    ArrayValue,
    BooleanValue,
    BuiltinFunction,
    FunctionValue,
    NullValue,
    NumberValue,
    ObjectValue,
    StringValue,
    Value,
    array_index,
    boolean,
    is_truthy,
    property_key,
    to_display_string,
    type_name,
    values_equal,
)


class SignalKind(Enum):
    NORMAL = "normal"
    RETURN = "return"
    BREAK = "break"
    CONTINUE = "continue"


@dataclass(frozen=True)
class Signal:
    kind: SignalKind
    value: Value = NULL


def normal(value: Value) -> Signal:
    return Signal(SignalKind.NORMAL, value)


BREAK = Signal(SignalKind.BREAK)
CONTINUE = Signal(SignalKind.CONTINUE)


# ---------------------------------------------------------------------------
# Binary operators
# ---------------------------------------------------------------------------


def _numbers(op: str, left: Value, right: Value) -> tuple[float, float]:
    if isinstance(left, NumberValue) and isinstance(right, NumberValue):
        return left.value, right.value
    raise MistyRuntimeError(
        f"Cannot perform operation '{op}' on incompatible types "
        f"{type_name(left)} and {type_name(right)}"
    )


def to_int32(number: float) -> int:
    """Truncate toward zero and wrap to a signed 32-bit integer; NaN and infinities become 0."""
    if not math.isfinite(number):
        return 0
    n = int(number) & 0xFFFFFFFF
    return n - 0x100000000 if n >= 0x80000000 else n


def divide(a: float, b: float) -> float:
    if b == 0:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


def _add(op: str, left: Value, right: Value) -> Value:
    if isinstance(left, StringValue) or isinstance(right, StringValue):
        return StringValue(to_display_string(left) + to_display_string(right))
    a, b = _numbers(op, left, right)
    return NumberValue(a + b)


def _arithmetic(fn: Callable[[float, float], float]) -> Callable[[str, Value, Value], Value]:
    def operation(op: str, left: Value, right: Value) -> Value:
        a, b = _numbers(op, left, right)
        return NumberValue(fn(a, b))

    return operation


def _relational(fn: Callable[[float, float], bool]) -> Callable[[str, Value, Value], Value]:
    def operation(op: str, left: Value, right: Value) -> Value:
        if isinstance(left, NullValue) or isinstance(right, NullValue):
            raise MistyRuntimeError(f"Cannot compare null using {op} operator")
        if not (isinstance(left, NumberValue) and isinstance(right, NumberValue)):
            raise MistyRuntimeError(
                f"Comparison operators require numbers, got "
                f"{type_name(left)} and {type_name(right)}"
            )
        return boolean(fn(left.value, right.value))

    return operation


def _logical(fn: Callable[[bool, bool], bool]) -> Callable[[str, Value, Value], Value]:
    def operation(op: str, left: Value, right: Value) -> Value:
        if isinstance(left, ArrayValue) and isinstance(right, BooleanValue):
            raise MistyRuntimeError("Cannot compare array to boolean")
        if isinstance(left, BooleanValue) and isinstance(right, ArrayValue):
            raise MistyRuntimeError("Cannot compare boolean to array")
        return boolean(fn(is_truthy(left), is_truthy(right)))

    return operation


def _bitwise(fn: Callable[[int, int], int]) -> Callable[[str, Value, Value], Value]:
    def operation(op: str, left: Value, right: Value) -> Value:
        a, b = _numbers(op, left, right)
        return NumberValue(float(fn(to_int32(a), to_int32(b))))

    return operation


BINARY_OPERATIONS: dict[str, Callable[[str, Value, Value], Value]] = {
    "+": _add,
    "-": _arithmetic(lambda a, b: a - b),
    "*": _arithmetic(lambda a, b: a * b),
    "/": _arithmetic(divide),
    "<": _relational(lambda a, b: a < b),
    ">": _relational(lambda a, b: a > b),
    "<=": _relational(lambda a, b: a <= b),
    ">=": _relational(lambda a, b: a >= b),
    "==": lambda op, left, right: boolean(values_equal(left, right)),
    "!=": lambda op, left, right: boolean(not values_equal(left, right)),
    "&&": _logical(lambda a, b: a and b),
    "||": _logical(lambda a, b: a or b),
    "&": _bitwise(lambda a, b: a & b),
    "|": _bitwise(lambda a, b: a | b),
}


class Interpreter:
    """Evaluates Misty programs.

    The global environment, holding the constant `System` object, is built once
    per instance and persists across `run()` calls; the output buffer is reset
    at the start of every run.

    Attributes:
        globals (Environment): The program-level scope.
        output (list[str]): Lines written by System.out.console during the current run.
        last_value (Value): Result of the last top-level statement of the last run.
    """

    def __init__(self) -> None:
        self.output: list[str] = []
        self.last_value: Value = NULL
        self.globals = Environment()
        self._install_builtins()

    def _install_builtins(self) -> None:
        console = BuiltinFunction("console", 1, self._console)
        system = ObjectValue({"out": ObjectValue({"console": console})})
        self.globals.define("System", system, is_constant=True)

    def _console(self, args: list[Value]) -> Value:
        self.output.append(to_display_string(args[0]))
        return NULL

    # ------------------------------------------------------------------
    # Entry points and dispatch
    # ------------------------------------------------------------------

    def run(self, program: Program) -> str:
        """Executes `program` and returns its newline-joined console output.

        Raises:
            MistyRuntimeError: On any evaluation failure, including a control
                signal that reaches the top level.
        """
        self.output = []
        signal = self.execute_block(program.body, self.globals)
        if signal.kind is SignalKind.RETURN:
            raise MistyRuntimeError("'returns' used outside of a procedure")
        if signal.kind is not SignalKind.NORMAL:
            raise MistyRuntimeError(f"'{signal.kind.value}' used outside of a loop")
        self.last_value = signal.value
        return "\n".join(self.output)

    def execute(self, node: ASTNode, env: Environment) -> Signal:
        """Runs one statement.

        Nodes without an `exec_<kind>` handler are expression statements: they
        are evaluated and their value is carried in a normal signal.

        Args:
            node (ASTNode): The statement to run.
            env (Environment): Scope the statement runs in.

        Returns:
            Signal: NORMAL, or the RETURN, BREAK or CONTINUE it raised.
        """
        method = getattr(self, f"exec_{node.kind}", None)
        if method is not None:
            signal: Signal = method(node, env)
            return signal
        return normal(self.evaluate(node, env))

    def evaluate(self, node: ASTNode, env: Environment) -> Value:
        """Computes the value of an expression node via its `eval_<kind>` method.

        Args:
            node (ASTNode): The expression to evaluate.
            env (Environment): Scope used for name lookup.

        Returns:
            Value: The resulting runtime value.

        Raises:
            MistyRuntimeError: On type errors, bad lookups or bad calls.
            NotImplementedError: If no evaluator exists for the node kind.
        """
        method = getattr(self, f"eval_{node.kind}", None)
        if method is None:
            raise NotImplementedError(
                f"No evaluator for node kind '{node.kind}' "
                f"(line {node.line}, col {node.col})"
            )
        value: Value = method(node, env)
        return value

    def execute_block(self, body: tuple[Statement, ...], env: Environment) -> Signal:
        """Runs statements in order, stopping at the first non-normal signal."""
        signal = normal(ZERO)
        for stmt in body:
            signal = self.execute(stmt, env)
            if signal.kind is not SignalKind.NORMAL:
                return signal
        return signal

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def exec_var_decl(self, node: VariableDeclaration, env: Environment) -> Signal:
        value = self.evaluate(node.value, env)
        env.define(node.name, value, node.is_constant)
        return normal(value)

    def exec_assign(self, node: Assignment, env: Environment) -> Signal:
        value = self.evaluate(node.value, env)
        env.assign(node.name, value)
        return normal(value)

    def exec_member_assign(self, node: MemberAssignment, env: Environment) -> Signal:
        target = self.evaluate(node.object, env)
        value = self.evaluate(node.value, env)

        if not isinstance(target, (ObjectValue, ArrayValue)):
            raise MistyRuntimeError(
                f"Cannot assign property to non-object ({type_name(target)})"
            )

        if node.is_computed:
            assert not isinstance(node.property, str)  # for mypy
            key = property_key(self.evaluate(node.property, env))
        else:
            assert isinstance(node.property, str)  # for mypy
            key = node.property

        if isinstance(target, ObjectValue):
            target.properties[key] = value
            return normal(value)

        index = array_index(key)
        if index is None:
            raise MistyRuntimeError(f"Invalid array index: {key}")
        elements = target.elements
        if index >= len(elements):
            elements.extend([NULL] * (index + 1 - len(elements)))
        elements[index] = value
        return normal(value)

    def exec_procedure(self, node: ProcedureDeclaration, env: Environment) -> Signal:
        func = FunctionValue(node.name, node.parameters, node.body, env)
        env.define(node.name, func, is_constant=True)
        return normal(func)

    def exec_return(self, node: ReturnStatement, env: Environment) -> Signal:
        return Signal(SignalKind.RETURN, self.evaluate(node.value, env))

    def exec_break(self, node: BreakStatement, env: Environment) -> Signal:
        return BREAK

    def exec_continue(self, node: ContinueStatement, env: Environment) -> Signal:
        return CONTINUE

    def _condition(self, expr: Expression, env: Environment, keyword: str) -> bool:
        value = self.evaluate(expr, env)
        if not isinstance(value, BooleanValue):
            raise MistyRuntimeError(
                f"{keyword} statement condition must be a boolean, got {type_name(value)}"
            )
        return value.value

    def exec_incase(self, node: IncaseStatement, env: Environment) -> Signal:
        if self._condition(node.condition, env, "Incase"):
            return self.execute_block(node.body, env)
        for branch in node.elif_branches:
            if self._condition(branch.condition, env, "Elif"):
                return self.execute_block(branch.body, env)
        if node.else_body is not None:
            return self.execute_block(node.else_body, env)
        return normal(ZERO)

    def exec_drift(self, node: DriftLoop, env: Environment) -> Signal:
        loop_env = Environment(env)
        self.execute(node.init, loop_env)

        while is_truthy(self.evaluate(node.condition, loop_env)):
            signal = self.execute_block(node.body, loop_env)
            if signal.kind is SignalKind.BREAK:
                break
            if signal.kind is SignalKind.RETURN:
                return signal
            # CONTINUE still runs the update clause
            self.execute(node.update, loop_env)

        return normal(ZERO)

    def exec_drift_through(self, node: DriftThroughLoop, env: Environment) -> Signal:
        iterable = self.evaluate(node.iterable, env)
        if not isinstance(iterable, ArrayValue):
            raise MistyRuntimeError(
                f"Can only iterate through arrays in drift-through loop, got {type_name(iterable)}"
            )

        for item in iterable.elements:
            iteration_env = Environment(env)
            iteration_env.define(node.name, item, node.is_constant)
            signal = self.execute_block(node.body, iteration_env)
            if signal.kind is SignalKind.BREAK:
                break
            if signal.kind is SignalKind.RETURN:
                return signal

        return normal(ZERO)

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def eval_number(self, node: NumberLiteral, env: Environment) -> Value:
        return NumberValue(node.value)

    def eval_string(self, node: StringLiteral, env: Environment) -> Value:
        return StringValue(node.value)

    def eval_boolean(self, node: BooleanLiteral, env: Environment) -> Value:
        return boolean(node.value)

    def eval_null(self, node: NullLiteral, env: Environment) -> Value:
        return NULL

    def eval_nan(self, node: NaNLiteral, env: Environment) -> Value:
        return NumberValue(math.nan)

    def eval_identifier(self, node: Identifier, env: Environment) -> Value:
        return env.get(node.name)

    def eval_array(self, node: ArrayLiteral, env: Environment) -> Value:
        return ArrayValue([self.evaluate(e, env) for e in node.elements])

    def eval_object(self, node: ObjectLiteral, env: Environment) -> Value:
        obj = ObjectValue()
        for key, expr in node.properties:
            obj.properties[key] = self.evaluate(expr, env)
        return obj

    def eval_binary(self, node: BinaryExpression, env: Environment) -> Value:
        left = self.evaluate(node.left, env)
        right = self.evaluate(node.right, env)
        operation = BINARY_OPERATIONS.get(node.operator)
        if operation is None:
            raise MistyRuntimeError(f"Unknown operator: {node.operator}")
        return operation(node.operator, left, right)

    def eval_unary(self, node: UnaryExpression, env: Environment) -> Value:
        operand = self.evaluate(node.operand, env)
        if node.operator == "!":
            return boolean(not is_truthy(operand))
        if node.operator == "-":
            if not isinstance(operand, NumberValue):
                raise MistyRuntimeError(
                    f"Unary '-' requires a number, got {type_name(operand)}"
                )
            return NumberValue(-operand.value)
        raise MistyRuntimeError(f"Unknown unary operator: {node.operator}")

    def eval_member(self, node: MemberExpression, env: Environment) -> Value:
        target = self.evaluate(node.object, env)
        if isinstance(target, ArrayValue):
            if node.property == "length":
                return NumberValue(float(len(target.elements)))
            if node.property in ARRAY_METHODS:
                return self._array_method(target, node.property)
            return self._index(target, node.property)
        if isinstance(target, ObjectValue):
            return target.properties.get(node.property, NULL)
        raise MistyRuntimeError(
            f"Cannot access property {node.property} on non-object ({type_name(target)})"
        )

    def eval_computed_member(
        self, node: ComputedMemberExpression, env: Environment
    ) -> Value:
        target = self.evaluate(node.object, env)
        key = property_key(self.evaluate(node.key, env))
        if isinstance(target, ArrayValue):
            return self._index(target, key)
        if isinstance(target, ObjectValue):
            return target.properties.get(key, NULL)
        raise MistyRuntimeError(
            f"Cannot access computed property on non-object ({type_name(target)})"
        )

    def _index(self, array: ArrayValue, key: str) -> Value:
        index = array_index(key)
        if index is None or index >= len(array.elements):
            return NULL
        return array.elements[index]

    def _array_method(self, array: ArrayValue, name: str) -> BuiltinFunction:
        """Builds a method value bound to this specific array."""
        elements = array.elements

        def push(args: list[Value]) -> Value:
            elements.append(args[0])
            return NumberValue(float(len(elements)))

        def pop(args: list[Value]) -> Value:
            return elements.pop() if elements else NULL

        def shift(args: list[Value]) -> Value:
            return elements.pop(0) if elements else NULL

        def unshift(args: list[Value]) -> Value:
            elements.insert(0, args[0])
            return NumberValue(float(len(elements)))

        handlers = {"push": push, "pop": pop, "shift": shift, "unshift": unshift}
        return BuiltinFunction(name, ARRAY_METHODS[name], handlers[name])

    def eval_call(self, node: CallExpression, env: Environment) -> Value:
        callee = self.evaluate(node.callee, env)
        if not isinstance(callee, (FunctionValue, BuiltinFunction)):
            raise MistyRuntimeError(
                f"Cannot call non-function value ({type_name(callee)})"
            )
        args = [self.evaluate(arg, env) for arg in node.arguments]
        return self.call(callee, args)

    def call(self, callee: FunctionValue | BuiltinFunction, args: list[Value]) -> Value:
        """Invokes a function value with already-evaluated arguments.

        A procedure runs in a fresh frame whose parent is its closure.

        Args:
            callee (FunctionValue | BuiltinFunction): The function to call.
            args (list[Value]): Argument values, in order.

        Returns:
            Value: The `returns` value, or the last statement's value when the
            body finishes without one.

        Raises:
            MistyRuntimeError: On an argument count mismatch, or when `break`
                or `continue` escapes the procedure body.
        """
        if isinstance(callee, BuiltinFunction):
            if callee.arity is not None and len(args) != callee.arity:
                raise MistyRuntimeError(
                    f"Expected {callee.arity} arguments, got {len(args)}"
                )
            return callee.handler(args)

        if len(args) != len(callee.parameters):
            raise MistyRuntimeError(
                f"Expected {len(callee.parameters)} arguments, got {len(args)}"
            )

        # The frame hangs off the declaration scope, not the caller's.
        frame = Environment(callee.closure)
        for name, value in zip(callee.parameters, args):
            frame.define(name, value)

        signal = self.execute_block(callee.body, frame)
        if signal.kind in (SignalKind.BREAK, SignalKind.CONTINUE):
            raise MistyRuntimeError(f"'{signal.kind.value}' used outside of a loop")
        return signal.value


ARRAY_METHODS: dict[str, int] = {"push": 1, "pop": 0, "shift": 0, "unshift": 1}


def run(program: Program) -> str:
    """Runs `program` in a fresh interpreter and returns its output."""
    return Interpreter().run(program)


__all__ = [
    "ARRAY_METHODS",
    "BINARY_OPERATIONS",
    "Interpreter",
    "Signal",
    "SignalKind",
    "divide",
    "run",
    "to_int32",
]
