"""
Misty CLI Entrypoint.

This module provides the command-line interface for running Misty programs.
It supports file and inline execution, token/AST inspection, and an
interactive REPL.

Features:
    - Read source from `.misty` files or inline strings.
    - Lex, parse, and evaluate code, printing the console output.
    - Dump the token stream or the AST (as JSON) instead of running.
    - Launch an interactive REPL with optional verbosity.

Example usage:
    misty hello.misty
    misty -s 'System.out.console(2 + 3 * 4);'
    misty hello.misty --ast
    misty --repl --verbose

Functions:
    run_misty(source: str, is_string: bool = False, pretty: bool = False,
              tokens: bool = False, ast: bool = False, verbose: bool = False) -> str:
        Executes the full Misty pipeline (lex → parse → evaluate → output).

    main(argv: list[str] | None = None) -> int:
        Parses CLI arguments and invokes the appropriate action.
"""

import argparse
import json
import sys

from misty.misty_errors import MistyError
from misty.misty_interpreter import Interpreter
from misty.misty_lexer import CharacterStream, Lexer
from misty.misty_parser import Parser


def run_misty(
    source: str,
    is_string: bool = False,
    pretty: bool = False,
    tokens: bool = False,
    ast: bool = False,
    verbose: bool = False,
) -> str:
    """
    Run the Misty toolchain: lex, parse, evaluate, and print the program output.

    Args:
        source (str): The Misty source code or path to a `.misty` file.
        is_string (bool): If True, treats `source` as raw code instead of a file path.
        pretty (bool): If True, frames the output in banners and prints `(No output)`
            for programs that write nothing.
        tokens (bool): If True, prints the token stream and stops.
        ast (bool): If True, prints the AST as JSON and stops.
        verbose (bool): If True, prints tokens and AST before running.

    Returns:
        str: The program output (empty when stopping after `tokens`/`ast`).

    Raises:
        ValueError: If `is_string` is False and the source does not end with '.misty'.
        MistyError: Any lex, parse, or runtime error.
    """
    if not is_string and not source.endswith(".misty"):
        raise ValueError("Only .misty files are supported.")
    # 1. Read source
    if not is_string:
        with open(source, encoding="utf-8") as f:
            source = f.read()

    # 2. Lexing
    token_list = Lexer(CharacterStream(source)).tokenize()
    if tokens or verbose:
        print("[tokens] >>>")
        for tok in token_list:
            print(f"  {tok.line}:{tok.col}\t{tok.type}\t{tok.value!r}")
        if tokens:
            return ""

    # 3. Parsing
    program = Parser(token_list).parse()
    if ast or verbose:
        print("[ast] >>>")
        print(json.dumps(program.to_dict(), indent=2))
        if ast:
            return ""

    # 4. Evaluation
    output = Interpreter().run(program)

    # 5. Output result
    if pretty:
        banner = "=" * 20
        print(f"{banner}\nOutput\n{banner}\n{output or '(No output)'}\n{banner}")
    elif output:
        print(output)
    return output


def main(argv: list[str] | None = None) -> int:
    """
    Entry point for the Misty CLI.

    - Launches the REPL if no arguments are passed or `--repl` is specified.
    - Otherwise, runs the Misty pipeline on the given file or string.

    Errors from the language are reported as `[error] >>> <message>` on stderr
    with exit status 1.
    """
    args_list = sys.argv[1:] if argv is None else argv
    if not args_list:
        from misty.misty_repl import start_repl

        start_repl()
        return 0

    parser = argparse.ArgumentParser(prog="misty")
    parser.add_argument("source", nargs="?", help="Filename or raw source (with -s)")
    parser.add_argument(
        "-s", "--string", action="store_true", help="Interpret source as literal string"
    )
    parser.add_argument(
        "-p", "--pretty", action="store_true", help="Show output with banners"
    )
    parser.add_argument(
        "--tokens", action="store_true", help="Print the token stream and exit"
    )
    parser.add_argument(
        "--ast", action="store_true", help="Print the AST as JSON and exit"
    )
    parser.add_argument(
        "--repl",
        action="store_true",
        help="Launch interactive REPL instead of running a program",
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Print tokens and AST before running"
    )

    args = parser.parse_args(args_list)

    if args.repl or args.source is None:
        from misty.misty_repl import start_repl

        start_repl(verbose=args.verbose)
        return 0

    try:
        run_misty(
            source=args.source,
            is_string=args.string,
            pretty=args.pretty,
            tokens=args.tokens,
            ast=args.ast,
            verbose=args.verbose,
        )
    except (MistyError, ValueError, OSError) as e:
        print(f"[error] >>> {e}", file=sys.stderr)
        return 1
    except RecursionError:
        print("[error] >>> Maximum recursion depth exceeded", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__" and not any("pytest" in arg for arg in sys.argv):
    sys.exit(main())
