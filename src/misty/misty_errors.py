"""
Error taxonomy for the Misty toolchain.

Classes:
    MistyError: Base class for every error raised by the lexer, parser, or interpreter.
    LexError: Unrecognized character or unterminated string literal.
    ParseError: Token stream does not match the grammar.
    MistyRuntimeError: Failure while evaluating a program.

Every error is fail-fast: the stage that detects it raises immediately and
nothing inside the core catches it. Hosts (CLI, REPL) decide how to report it.
"""


class MistyError(Exception):
    """Base exception for the Misty language.

    Attributes:
        message (str): Human-readable description, positions already embedded.
        line (int | None): 1-based source line, when known.
        column (int | None): 1-based source column, when known.
    """

    def __init__(
        self, message: str, line: int | None = None, column: int | None = None
    ):
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column


class LexError(MistyError):
    """Raised by the lexer. Always carries a line and column."""


class ParseError(MistyError):
    """Raised by the parser on the first structural mismatch. Carries a line."""


class MistyRuntimeError(MistyError):
    """Raised by the interpreter. Message only."""


__all__ = ["LexError", "MistyError", "MistyRuntimeError", "ParseError"]
