"""
Misty Language Parser

Parses Misty source tokens into a `Program` abstract syntax tree.

This module implements a recursive-descent parser with iterative precedence
climbing for binary operators. It consumes the flat list of `Token` objects
produced by the lexer and builds the frozen node classes in `misty_ast`.

Supported Constructs
--------------------
- Expressions (lowest to highest precedence):
    * `||`, `&&`, `|`, `&`, `== !=`, `< > <= >=`, `+ -`, `* /`
    * Unary `!` and `-`
    * Postfix chains: `.name`, `->expr`, `[expr]`, `(args)` in any order,
      so `f(x)(y)` and `obj.items[0].name` parse naturally
    * Primaries: numbers, strings, `true`/`false`, `null`/`nullptr`, `NaN`,
      identifiers, array literals, object literals, parenthesized expressions

- Statements:
    * Declarations: `const x = ...;`, `mut x = ...;`
    * Assignments: `x = ...;`, `obj.name = ...;`, `obj[key] = ...;`, `obj->key = ...;`
    * Procedures: `procedure name(a, b) { ... }` and `returns expr;`
    * Control flow: `incase`/`elif`/`else`, `drift` counting and `drift ... through` loops
    * `break;`, `continue;`, and expression statements terminated by `;`

Parser Behavior
---------------
- Fail-fast: raises `ParseError` on the first mismatch, no recovery.
- Assignment-vs-expression and the two `drift` header forms are decided by
  bounded backtracking (`attempt`): save the cursor, try a production, and
  restore the cursor if the production declines.

Entry Points
------------
- `Parser(tokens).parse()`: Parse a full program.
- `parse(tokens)`: Module-level convenience wrapper.
"""

from __future__ import annotations

from typing import Callable, TypeVar

from misty.misty_ast import (
    ArrayLiteral,
    Assignment,
    BinaryExpression,
    BooleanLiteral,
    BreakStatement,
    CallExpression,
    ComputedMemberExpression,
    ContinueStatement,
    DriftLoop,
    DriftThroughLoop,
    ElifBranch,
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
from misty.misty_errors import ParseError
from misty.misty_lexer import Token

T = TypeVar("T")

# Binary precedence levels, lowest first. Each level is left-associative.
PRECEDENCE_LEVELS: tuple[dict[str, str], ...] = (
    {"OR": "||"},
    {"AND": "&&"},
    {"PIPE": "|"},
    {"AMPERSAND": "&"},
    {"EQUAL_EQUAL": "==", "NOT_EQUAL": "!="},
    {
        "LESS_THAN": "<",
        "GREATER_THAN": ">",
        "LESS_EQUAL": "<=",
        "GREATER_EQUAL": ">=",
    },
    {"PLUS": "+", "MINUS": "-"},
    {"STAR": "*", "SLASH": "/"},
)

UNARY_TOKENS: dict[str, str] = {"NOT": "!", "MINUS": "-"}


class Parser:
    """
    Misty Parser Class

    Responsible for transforming a list of lexical tokens into a `Program` node.

    Attributes
    ----------
    tokens : list[Token]
        The input token stream, terminated by an `EOF` token.
    position : int
        Current index into the token stream.

    Raises
    ------
    ParseError
        When an invalid construct or malformed syntax is encountered during parsing.
    """

    def __init__(self, tokens: list[Token]) -> None:
        if not tokens or tokens[-1].type != "EOF":
            last = tokens[-1] if tokens else None
            tokens = list(tokens) + [
                Token("EOF", "", last.line if last else 1, last.col if last else 1)
            ]
        self.tokens: list[Token] = tokens
        self.position: int = 0

    # ------------------------------------------------------------------
    # Cursor utilities
    # ------------------------------------------------------------------

    def current(self) -> Token:
        return self.tokens[min(self.position, len(self.tokens) - 1)]

    def peek(self, offset: int = 1) -> Token:
        index = min(self.position + offset, len(self.tokens) - 1)
        return self.tokens[index]

    def at_end(self) -> bool:
        return self.current().type == "EOF"

    def advance(self) -> Token:
        tok = self.current()
        if not self.at_end():
            self.position += 1
        return tok

    def check(self, *types: str) -> bool:
        return self.current().type in types

    def match(self, *types: str) -> Token | None:
        if self.check(*types):
            return self.advance()
        return None

    def expect(self, type_: str, message: str) -> Token:
        """Consumes the current token, which must have type `type_`.

        Args:
            type_ (str): Required token type.
            message (str): Error prefix, e.g. "Expected ';' after expression".

        Returns:
            Token: The consumed token.

        Raises:
            ParseError: If the current token has another type.
        """
        if self.check(type_):
            return self.advance()
        tok = self.current()
        raise ParseError(f"{message} at line {tok.line}, got {tok.value}", tok.line)

    def mark(self) -> int:
        return self.position

    def reset(self, position: int) -> None:
        self.position = position

    def attempt(self, production: Callable[[], T | None]) -> T | None:
        """Tries a production that may decline.

        Args:
            production (Callable[[], T | None]): A parse method that returns None
                when the input does not fit it.

        Returns:
            T | None: The production's result. On None the cursor is put back
            where it was.
        """
        start = self.mark()
        result = production()
        if result is None:
            self.reset(start)
        return result

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def parse(self) -> Program:
        """Parse a full Misty program, consuming the entire token stream.

        Returns:
            Program: Root node holding the top-level statements in order.

        Raises:
            ParseError: On the first token that fits no statement form.
        """
        first = self.current()
        body: list[Statement] = []
        while not self.at_end():
            body.append(self.parse_statement())
        return Program(tuple(body), line=first.line, col=first.col)

    def parse_statement(self) -> Statement:
        """Parse a single top-level or block-level statement.

        Keywords pick the statement form. A leading identifier is first tried as
        an assignment, then falls back to an expression statement.

        Returns:
            Statement: The parsed declaration, control statement or expression.

        Raises:
            ParseError: On malformed syntax or a missing `;`.
        """
        tok = self.current()

        if tok.type in ("CONST", "MUT"):
            return self.parse_variable_declaration()
        if tok.type == "PROCEDURE":
            return self.parse_procedure()
        if tok.type == "RETURNS":
            return self.parse_return()
        if tok.type == "BREAK":
            self.advance()
            self.expect("SEMICOLON", "Expected ';' after break statement")
            return BreakStatement(line=tok.line, col=tok.col)
        if tok.type == "CONTINUE":
            self.advance()
            self.expect("SEMICOLON", "Expected ';' after continue statement")
            return ContinueStatement(line=tok.line, col=tok.col)
        if tok.type == "INCASE":
            return self.parse_incase()
        if tok.type == "DRIFT":
            return self.parse_drift()
        if tok.type == "IDENTIFIER":
            assignment = self.attempt(self.parse_assignment)
            if assignment is not None:
                return assignment

        expr = self.parse_expression()
        self.expect("SEMICOLON", "Expected ';' after expression")
        return expr

    def parse_block(self, what: str) -> tuple[Statement, ...]:
        """Parse a `{}`-enclosed sequence of statements."""
        self.expect("LBRACE", f"Expected '{{' before {what}")
        stmts: list[Statement] = []
        while not self.check("RBRACE") and not self.at_end():
            stmts.append(self.parse_statement())
        self.expect("RBRACE", f"Expected '}}' after {what}")
        return tuple(stmts)

    def parse_variable_declaration(self, terminated: bool = True) -> VariableDeclaration:
        """Parse `const|mut name = expr` followed by `;` unless `terminated` is False."""
        kw = self.advance()
        name = self.expect("IDENTIFIER", "Expected variable name")
        self.expect("EQUALS", "Expected '=' after variable name")
        value = self.parse_expression()
        if terminated:
            self.expect("SEMICOLON", "Expected ';' after variable declaration")
        return VariableDeclaration(
            name.value, kw.type == "CONST", value, line=kw.line, col=kw.col
        )

    def parse_assignment(self) -> Statement | None:
        """Speculatively parse `target = value;`. Declines (returns None) without `=`."""
        start = self.current()
        target = self.parse_expression()
        if not self.match("EQUALS"):
            return None

        value = self.parse_expression()
        self.expect("SEMICOLON", "Expected ';' after assignment")

        if isinstance(target, Identifier):
            return Assignment(target.name, value, line=start.line, col=start.col)
        if isinstance(target, MemberExpression):
            return MemberAssignment(
                target.object,
                target.property,
                False,
                value,
                line=start.line,
                col=start.col,
            )
        if isinstance(target, ComputedMemberExpression):
            return MemberAssignment(
                target.object, target.key, True, value, line=start.line, col=start.col
            )
        raise ParseError(
            f"Invalid assignment target at line {start.line}", start.line
        )

    def parse_procedure(self) -> ProcedureDeclaration:
        """Parse `procedure name(params) { body }`, rejecting duplicate parameter names."""
        kw = self.expect("PROCEDURE", "Expected 'procedure' keyword")
        name = self.expect("IDENTIFIER", "Expected procedure name").value

        self.expect("LPAREN", "Expected '(' after procedure name")
        params: list[str] = []
        if not self.check("RPAREN"):
            while True:
                param = self.expect("IDENTIFIER", "Expected parameter name")
                if param.value in params:
                    raise ParseError(
                        f"Duplicate parameter name '{param.value}' in procedure "
                        f"'{name}' at line {param.line}",
                        param.line,
                    )
                params.append(param.value)
                if not self.match("COMMA"):
                    break
        self.expect("RPAREN", "Expected ')' after parameters")

        body = self.parse_block("procedure body")
        return ProcedureDeclaration(
            name, tuple(params), body, line=kw.line, col=kw.col
        )

    def parse_return(self) -> ReturnStatement:
        kw = self.expect("RETURNS", "Expected 'returns' keyword")
        value = self.parse_expression()
        self.expect("SEMICOLON", "Expected ';' after return statement")
        return ReturnStatement(value, line=kw.line, col=kw.col)

    def parse_condition(self, keyword: str) -> Expression:
        self.expect("LPAREN", f"Expected '(' after '{keyword}'")
        condition = self.parse_expression()
        self.expect("RPAREN", f"Expected ')' after {keyword} condition")
        return condition

    def parse_incase(self) -> IncaseStatement:
        """Parse an `incase` chain with optional `elif` branches and `else`."""
        kw = self.expect("INCASE", "Expected 'incase' keyword")
        condition = self.parse_condition("incase")
        body = self.parse_block("incase body")

        branches: list[ElifBranch] = []
        while elif_tok := self.match("ELIF"):
            elif_condition = self.parse_condition("elif")
            elif_body = self.parse_block("elif body")
            branches.append(
                ElifBranch(
                    elif_condition, elif_body, line=elif_tok.line, col=elif_tok.col
                )
            )

        else_body = None
        if self.match("ELSE"):
            else_body = self.parse_block("else body")

        return IncaseStatement(
            condition, body, tuple(branches), else_body, line=kw.line, col=kw.col
        )

    def parse_drift(self) -> DriftLoop | DriftThroughLoop:
        """Parse either loop form. The `through` form is tried first."""
        kw = self.expect("DRIFT", "Expected 'drift' keyword")
        self.expect("LPAREN", "Expected '(' after 'drift'")
        if not self.check("CONST", "MUT"):
            tok = self.current()
            raise ParseError(
                f"Expected 'mut' or 'const' in loop header at line {tok.line}, got {tok.value}",
                tok.line,
            )

        loop = self.attempt(lambda: self.parse_drift_through(kw))
        if loop is not None:
            return loop
        return self.parse_drift_counting(kw)

    def parse_drift_through(self, kw: Token) -> DriftThroughLoop | None:
        """`const|mut name through iterable) { body }`; declines without `through`."""
        binding = self.advance()
        name = self.match("IDENTIFIER")
        if name is None or not self.match("THROUGH"):
            return None

        iterable = self.parse_expression()
        self.expect("RPAREN", "Expected ')' after iterable")
        body = self.parse_block("loop body")
        return DriftThroughLoop(
            name.value,
            binding.type == "CONST",
            iterable,
            body,
            line=kw.line,
            col=kw.col,
        )

    def parse_drift_counting(self, kw: Token) -> DriftLoop:
        """`mut name = init; condition; name = update) { body }`."""
        init = self.parse_variable_declaration(terminated=False)
        self.expect("SEMICOLON", "Expected ';' after loop initialization")

        condition = self.parse_expression()
        self.expect("SEMICOLON", "Expected ';' after loop condition")

        target = self.expect("IDENTIFIER", "Expected variable name in update")
        self.expect("EQUALS", "Expected '=' in update")
        update = Assignment(
            target.value, self.parse_expression(), line=target.line, col=target.col
        )

        self.expect("RPAREN", "Expected ')' after loop header")
        body = self.parse_block("loop body")
        return DriftLoop(init, condition, update, body, line=kw.line, col=kw.col)

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def parse_expression(self) -> Expression:
        """Parse an expression starting at the loosest precedence level (`||`).

        Returns:
            Expression: The expression tree, left-associative at every level.
        """
        return self.parse_binary(0)

    def parse_binary(self, level: int) -> Expression:
        """Precedence climbing: loop while the next token is an operator of this level."""
        if level == len(PRECEDENCE_LEVELS):
            return self.parse_unary()

        operators = PRECEDENCE_LEVELS[level]
        left = self.parse_binary(level + 1)
        while self.check(*operators):
            op = self.advance()
            right = self.parse_binary(level + 1)
            left = BinaryExpression(
                operators[op.type], left, right, line=left.line, col=left.col
            )
        return left

    def parse_unary(self) -> Expression:
        if self.check(*UNARY_TOKENS):
            op = self.advance()
            operand = self.parse_unary()
            return UnaryExpression(
                UNARY_TOKENS[op.type], operand, line=op.line, col=op.col
            )
        return self.parse_postfix()

    def parse_postfix(self) -> Expression:
        """Apply `.name`, `->expr`, `[expr]` and `(args)` repeatedly after a primary.

        Returns:
            Expression: The primary wrapped in member, index and call nodes.

        Raises:
            ParseError: On a missing property name, `]` or `)`.
        """
        expr = self.parse_primary()
        while True:
            if self.match("DOT"):
                prop = self.expect("IDENTIFIER", "Expected property name after '.'")
                expr = MemberExpression(expr, prop.value, line=expr.line, col=expr.col)
            elif self.match("ARROW"):
                key = self.parse_expression()
                expr = ComputedMemberExpression(
                    expr, key, line=expr.line, col=expr.col
                )
            elif self.match("LBRACKET"):
                key = self.parse_expression()
                self.expect("RBRACKET", "Expected ']' after index")
                expr = ComputedMemberExpression(
                    expr, key, line=expr.line, col=expr.col
                )
            elif self.match("LPAREN"):
                args = self.parse_arguments()
                expr = CallExpression(expr, args, line=expr.line, col=expr.col)
            else:
                return expr

    def parse_arguments(self) -> tuple[Expression, ...]:
        args: list[Expression] = []
        if not self.check("RPAREN"):
            while True:
                args.append(self.parse_expression())
                if not self.match("COMMA"):
                    break
        self.expect("RPAREN", "Expected ')' after arguments")
        return tuple(args)

    def parse_primary(self) -> Expression:
        """Parse a literal, identifier, array, object or parenthesized expression.

        Raises:
            ParseError: If the current token cannot start an expression.
        """
        tok = self.current()
        pos = {"line": tok.line, "col": tok.col}

        if self.match("NUMBER"):
            return NumberLiteral(float(tok.value), **pos)
        if self.match("STRING"):
            return StringLiteral(tok.value, **pos)
        if self.match("TRUE", "FALSE"):
            return BooleanLiteral(tok.type == "TRUE", **pos)
        if self.match("NULL", "NULLPTR"):
            return NullLiteral(**pos)
        if self.match("NAN"):
            return NaNLiteral(**pos)
        if self.match("IDENTIFIER"):
            return Identifier(tok.value, **pos)
        if self.match("LBRACKET"):
            return self.parse_array_literal(tok)
        if self.match("LBRACE"):
            return self.parse_object_literal(tok)
        if self.match("LPAREN"):
            expr = self.parse_expression()
            self.expect("RPAREN", "Expected ')' after expression")
            return expr

        raise ParseError(f"Unexpected token: {tok.value} at line {tok.line}", tok.line)

    def parse_array_literal(self, open_tok: Token) -> ArrayLiteral:
        elements: list[Expression] = []
        if not self.check("RBRACKET"):
            while True:
                elements.append(self.parse_expression())
                if not self.match("COMMA"):
                    break
        self.expect("RBRACKET", "Expected ']' after array elements")
        return ArrayLiteral(tuple(elements), line=open_tok.line, col=open_tok.col)

    def parse_object_literal(self, open_tok: Token) -> ObjectLiteral:
        props: list[tuple[str, Expression]] = []
        if not self.check("RBRACE"):
            while True:
                key = self.expect("IDENTIFIER", "Expected property key")
                self.expect("COLON", "Expected ':' after property key")
                props.append((key.value, self.parse_expression()))
                if not self.match("COMMA"):
                    break
        self.expect("RBRACE", "Expected '}' after object properties")
        return ObjectLiteral(tuple(props), line=open_tok.line, col=open_tok.col)


def parse(tokens: list[Token]) -> Program:
    return Parser(tokens).parse()


__all__ = ["PRECEDENCE_LEVELS", "Parser", "parse"]
