"""
Host-facing entry points for the Misty toolchain.

Functions:
    compile(source) -> Program
        Lex and parse source text. Raises LexError or ParseError.
    run(program) -> str
        Evaluate a compiled program in a fresh interpreter and return its
        console output. Raises MistyRuntimeError.
    execute(source) -> str
        compile() followed by run().

A compiled `Program` is immutable and may be run any number of times.

Example:
    >>> execute('System.out.console("Hello" + " " + "World");')
    'Hello World'
"""

from misty.misty_ast import Program
from misty.misty_interpreter import Interpreter
from misty.misty_lexer import tokenize
from misty.misty_parser import Parser


def compile(source: str) -> Program:  # noqa: A001
    return Parser(tokenize(source)).parse()


def run(program: Program) -> str:
    return Interpreter().run(program)


def execute(source: str) -> str:
    return run(compile(source))


__all__ = ["compile", "execute", "run"]
