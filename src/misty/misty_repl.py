"""
Interactive read-eval-print loop for Misty.

Input is read line by line; a chunk is submitted once its braces balance, so
procedures and loops can be typed over several lines. All chunks share one
`Interpreter`, so declarations persist for the whole session.

Commands:
    exit / quit     leave the REPL
    verbose-mode    toggle printing of tokens and AST for each chunk
"""

import io
import json
import traceback

from misty.misty_ast import ASTNode, Program
from misty.misty_errors import MistyError
from misty.misty_interpreter import Interpreter
from misty.misty_lexer import CharacterStream, Lexer
from misty.misty_parser import Parser
from misty.misty_values import NullValue, to_display_string

STATEMENT_KINDS = {
    "var_decl",
    "assign",
    "member_assign",
    "procedure",
    "return",
    "break",
    "continue",
    "incase",
    "drift",
    "drift_through",
}


def is_expression_node(node: ASTNode) -> bool:
    return node.kind not in STATEMENT_KINDS


def print_traceback() -> None:
    buf = io.StringIO()
    traceback.print_exc(file=buf)
    print("[error] >>>")
    print(buf.getvalue())


def read_chunk() -> str | None:
    """Reads lines until braces balance. Returns None when the user asks to leave."""
    src_lines: list[str] = []
    brace_count = 0
    while True:
        prompt = ">>> " if not src_lines else "... "
        line = input(prompt)
        if line.strip() in ("exit", "quit") and not src_lines:
            return None
        src_lines.append(line)
        brace_count += line.count("{") - line.count("}")
        if brace_count <= 0 and (
            line.strip().endswith("}") or not any("{" in line_ for line_ in src_lines)
        ):
            return "\n".join(src_lines).strip()


def eval_chunk(interpreter: Interpreter, src: str, verbose: bool = False) -> None:
    """Compiles and runs one chunk, printing output and the value of a trailing expression."""
    tokens = Lexer(CharacterStream(src)).tokenize()
    if verbose:
        print(f"[tokens] >>> {tokens}")
    program: Program = Parser(tokens).parse()
    if verbose:
        print("[ast] >>>")
        print(json.dumps(program.to_dict(), indent=2))

    output = interpreter.run(program)
    if output:
        print(output)
    if (
        program.body
        and is_expression_node(program.body[-1])
        and not isinstance(interpreter.last_value, NullValue)
    ):
        print(to_display_string(interpreter.last_value))


def start_repl(verbose: bool = False) -> None:
    print("Misty REPL. Type 'exit' or 'quit' to leave.")
    interpreter = Interpreter()

    while True:
        try:
            src = read_chunk()
            if src is None:
                print("Exiting Misty REPL.")
                return
            if not src or src.startswith("#"):
                continue
            if src.lower() == "verbose-mode":
                verbose = not verbose
                print(f"[mode] >>> Verbose mode {'ON' if verbose else 'OFF'}")
                continue

            try:
                eval_chunk(interpreter, src, verbose)
            except MistyError as e:
                print(f"[error] >>> {e}")
            except RecursionError:
                print("[error] >>> Maximum recursion depth exceeded")
            except Exception:
                print_traceback()

        except (KeyboardInterrupt, EOFError):
            print("\nExiting Misty REPL.")
            break


def main() -> None:
    start_repl()


if __name__ == "__main__":
    main()
