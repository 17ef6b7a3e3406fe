"""
Lexical analyzer for the Misty scripting language.

This module provides core components for converting raw source code into token streams:

Classes:
    CharacterStream: Stream abstraction for reading characters with line/column tracking.
    Token: Represents a single token with type, value, and source location.
    Lexer: Converts a CharacterStream into a sequence of tokens.

Features:
    - Skips spaces, tabs, carriage returns, newlines and line comments (`#`)
    - Supports longest-match recognition of one- and two-character operators
    - Recognizes:
        * Identifiers and keywords (`const`, `mut`, `procedure`, `drift`, ...)
        * Numbers (digits with an optional fractional part)
        * Strings (double quoted, with escape sequences)
        * Operators and punctuation

Raises:
    LexError: On an unrecognized character or an unterminated string literal.

Example:
    >>> tokens = tokenize("const x = 42;")
    >>> tokens[0]
    Token(CONST, const)

Exports:
    - CharacterStream
    - Token
    - Lexer
    - tokenize
    - token_hashmap
"""

from typing import Any

from misty.misty_constants import MAX_OPERATOR_LENGTH, token_hashmap
from misty.misty_errors import LexError

ESCAPES: dict[str, str] = {"n": "\n", "t": "\t", "r": "\r", "\\": "\\", '"': '"'}


def is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


def is_ident_start(ch: str) -> bool:
    return ("a" <= ch <= "z") or ("A" <= ch <= "Z") or ch == "_"


def is_ident_part(ch: str) -> bool:
    return is_ident_start(ch) or is_digit(ch)


class CharacterStream:
    """
    A utility for reading characters from a string source with line and column tracking.

    Attributes:
        source (str): The input source string.
        position (int): Current index in the source.
        line (int): Current line number (1-indexed).
        column (int): Current column number (1-indexed).
    """

    def __init__(self, source: str, position: int = 0, line: int = 1, column: int = 1):
        """Wraps `source` for character-at-a-time reading.

        Args:
            source (str): Program text to read.
            position (int, optional): Index of the first unread character. Defaults to 0.
            line (int, optional): Line of that character. Defaults to 1.
            column (int, optional): Column of that character. Defaults to 1.
        """
        self.source = source
        self.position = position
        self.line = line
        self.column = column

    def next(self) -> str:
        """
        Consumes and returns the next character in the stream.

        Returns:
            str: The consumed character. A newline bumps `line` and resets `column`.

        Raises:
            EOFError: If reading past the end of the source.
        """
        if self.position >= len(self.source):
            raise EOFError(
                f"Attempted to read past end of source at position=<{self.position}>, line=<{self.line}>"
            )
        char = self.source[self.position]
        if char == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        self.position += 1
        return char

    def peek(self, offset: int = 0) -> str:
        """Returns the character `offset` places ahead, or an empty string if out of bounds."""
        index = self.position + offset
        if index < 0 or index >= len(self.source):
            return ""
        return self.source[index]

    def end_of_file(self) -> bool:
        """Checks whether the stream is exhausted.

        Returns:
            bool: True once every character of the source has been consumed.
        """
        return self.position >= len(self.source)


class Token:
    """Represents a single lexical token in the Misty language.

    Attributes:
        type (str): The canonical token type (e.g. 'IDENTIFIER', 'NUMBER', 'EOF').
        value (str): The lexeme; for strings, the unescaped contents.
        line (int): The 1-based line number where the token starts.
        col (int): The 1-based column number where the token starts.
    """

    def __init__(self, type_: str, value: str, line: int = 0, col: int = 0):
        """Builds a token.

        Args:
            type_ (str): Token type such as `NUMBER` or `ARROW`.
            value (str): Lexeme text.
            line (int, optional): Starting line. Defaults to 0.
            col (int, optional): Starting column. Defaults to 0.
        """
        self.type = type_
        self.value = value
        self.line = line
        self.col = col

    def __repr__(self) -> str:
        return f"Token({self.type}, {self.value})"

    def __eq__(self, other: Any) -> bool:
        """Tokens are equal when type, value and position all match."""
        return (
            isinstance(other, Token)
            and self.type == other.type
            and self.value == other.value
            and self.line == other.line
            and self.col == other.col
        )

    def __hash__(self) -> int:
        return hash((self.type, self.value, self.line, self.col))


class Lexer:
    """Lexical analyzer for the Misty language.

    The Lexer takes a CharacterStream and converts it into a stream of Token objects,
    terminated by a single `EOF` token.

    Attributes:
        stream (CharacterStream): The source stream to tokenize.
    """

    def __init__(self, stream: CharacterStream) -> None:
        self.stream = stream

    def peek(self, offset: int = 0) -> str:
        return self.stream.peek(offset)

    def advance(self) -> str:
        return self.stream.next()

    def skip_whitespace(self) -> None:
        """Skips all whitespace and comments in the stream."""
        while not self.stream.end_of_file():
            if self.peek() in " \t\r\n":
                self.advance()
            elif self.peek() == "#":
                self.skip_comment()
            else:
                break

    def skip_comment(self) -> None:
        """Advances through the stream until the end of a comment line."""
        while not self.stream.end_of_file() and self.peek() != "\n":
            self.advance()

    def match_operator(self) -> Token | None:
        """Attempts to match the longest valid operator from the current position.

        Returns:
            Token | None: A Token if a match is found, otherwise None.
        """
        line, col = self.stream.line, self.stream.column
        max_token = None
        candidate = ""

        for i in range(MAX_OPERATOR_LENGTH):
            ch = self.stream.peek(i)
            if ch == "":
                break
            candidate += ch
            if candidate in token_hashmap:
                max_token = candidate

        if max_token:
            for _ in range(len(max_token)):
                self.advance()
            return Token(token_hashmap[max_token], max_token, line, col)

        return None

    def read_identifier(self, line: int, col: int) -> Token:
        """Reads a run of letters, digits and underscores.

        Args:
            line (int): Line where the word starts.
            col (int): Column where the word starts.

        Returns:
            Token: The keyword token when the word is reserved, else an `IDENTIFIER`.
        """
        ident = ""
        while not self.stream.end_of_file() and is_ident_part(self.peek()):
            ident += self.advance()
        return Token(token_hashmap.get(ident, "IDENTIFIER"), ident, line, col)

    def read_number(self, line: int, col: int) -> Token:
        # A '.' belongs to the number only when a digit follows it.
        num = ""
        has_dot = False
        while not self.stream.end_of_file():
            ch = self.peek()
            if is_digit(ch):
                num += self.advance()
            elif ch == "." and not has_dot and is_digit(self.peek(1)):
                has_dot = True
                num += self.advance()
            else:
                break
        return Token("NUMBER", num, line, col)

    def read_string(self, line: int, col: int) -> Token:
        """Reads a double-quoted literal, resolving backslash escapes.

        Args:
            line (int): Line of the opening quote.
            col (int): Column of the opening quote.

        Returns:
            Token: A `STRING` token holding the unescaped contents.

        Raises:
            LexError: If the source ends before the closing quote.
        """
        self.advance()  # opening quote
        val = ""
        while not self.stream.end_of_file() and self.peek() != '"':
            if self.peek() == "\\":
                self.advance()
                if not self.stream.end_of_file():
                    escaped = self.advance()
                    val += ESCAPES.get(escaped, escaped)
            else:
                val += self.advance()
        if self.stream.end_of_file():
            raise LexError(
                f"Unterminated string at line {line}, column {col}", line, col
            )
        self.advance()  # closing quote
        return Token("STRING", val, line, col)

    def next_token(self) -> Token:
        """Consumes and returns the next Token from the stream.

        Raises:
            LexError: If an unterminated string or unknown character is encountered.
        """
        self.skip_whitespace()

        if self.stream.end_of_file():
            return Token("EOF", "", self.stream.line, self.stream.column)

        ch = self.peek()
        line, col = self.stream.line, self.stream.column

        if ch == '"':
            return self.read_string(line, col)
        if is_digit(ch):
            return self.read_number(line, col)
        if is_ident_start(ch):
            return self.read_identifier(line, col)

        token = self.match_operator()
        if token:
            return token

        raise LexError(
            f"Unexpected character '{ch}' at line {line}, column {col}", line, col
        )

    def tokenize(self) -> list[Token]:
        """Lexes the whole stream. The returned list always ends with an `EOF` token."""
        tokens: list[Token] = []
        while True:
            tok = self.next_token()
            tokens.append(tok)
            if tok.type == "EOF":
                return tokens


def tokenize(source: str) -> list[Token]:
    return Lexer(CharacterStream(source)).tokenize()


__all__ = ["CharacterStream", "Lexer", "Token", "tokenize", "token_hashmap"]
