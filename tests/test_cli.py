import json
import os
import subprocess
import sys
from pathlib import Path
from typing import Any

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from misty import misty_cli
from misty.misty_errors import LexError, MistyError, MistyRuntimeError, ParseError

SRC_DIR = Path(__file__).resolve().parents[1] / "src"
HELLO = 'System.out.console("Hello" + " " + "World");'


def test_run_misty_string_input_prints(capsys: pytest.CaptureFixture[str]) -> None:
    result = misty_cli.run_misty(HELLO, is_string=True)
    assert result == "Hello World"
    assert capsys.readouterr().out == "Hello World\n"


def test_run_misty_file_input(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    src = tmp_path / "prog.misty"
    src.write_text("const arr = [10, 20, 30];\nSystem.out.console(arr[1]);\n")
    assert misty_cli.run_misty(str(src)) == "20"
    assert capsys.readouterr().out == "20\n"


def test_bundled_example_program(capsys: pytest.CaptureFixture[str]) -> None:
    example = SRC_DIR.parent / "examples" / "hello.misty"
    assert misty_cli.run_misty(str(example)) == "4\n9\nsixteen\nbig 25\nbig 36"


def test_run_misty_rejects_non_misty_file() -> None:
    with pytest.raises(ValueError, match="Only .misty files are supported."):
        misty_cli.run_misty("example.txt", is_string=False)


def test_run_misty_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        misty_cli.run_misty(str(tmp_path / "absent.misty"))


def test_run_misty_no_output_prints_nothing(capsys: pytest.CaptureFixture[str]) -> None:
    assert misty_cli.run_misty("const x = 1;", is_string=True) == ""
    assert capsys.readouterr().out == ""


@pytest.mark.parametrize(
    "source,body",
    [(HELLO, "Hello World"), ("const x = 1;", "(No output)")],
)
def test_run_misty_pretty_output(
    source: str, body: str, capsys: pytest.CaptureFixture[str]
) -> None:
    misty_cli.run_misty(source, is_string=True, pretty=True)
    lines = capsys.readouterr().out.splitlines()
    banner = "=" * 20
    assert lines == [banner, "Output", banner, body, banner]


def test_run_misty_tokens_stops_before_running(capsys: pytest.CaptureFixture[str]) -> None:
    assert misty_cli.run_misty(HELLO, is_string=True, tokens=True) == ""
    out = capsys.readouterr().out
    assert out.startswith("[tokens] >>>")
    assert "IDENTIFIER\t'System'" in out
    assert "EOF" in out
    assert "Hello World" not in out


def test_run_misty_ast_dumps_json(capsys: pytest.CaptureFixture[str]) -> None:
    assert misty_cli.run_misty("const x = 2 + 3;", is_string=True, ast=True) == ""
    out = capsys.readouterr().out
    header, _, body = out.partition("\n")
    assert header == "[ast] >>>"
    tree = json.loads(body)
    assert tree["kind"] == "program"
    decl = tree["body"][0]
    assert decl["kind"] == "var_decl"
    assert decl["value"]["operator"] == "+"


def test_run_misty_verbose_prints_everything(capsys: pytest.CaptureFixture[str]) -> None:
    assert misty_cli.run_misty(HELLO, is_string=True, verbose=True) == "Hello World"
    out = capsys.readouterr().out
    assert out.index("[tokens] >>>") < out.index("[ast] >>>") < out.index("Hello World\n")


@pytest.mark.parametrize(
    "source,error",
    [
        ("const x = @;", LexError),
        ("const x = ;", ParseError),
        ("x = 1;", MistyRuntimeError),
    ],
)
def test_run_misty_propagates_language_errors(source: str, error: type[MistyError]) -> None:
    with pytest.raises(error):
        misty_cli.run_misty(source, is_string=True)


def test_main_string_success(capsys: pytest.CaptureFixture[str]) -> None:
    assert misty_cli.main(["-s", "System.out.console(2 + 3 * 4);"]) == 0
    assert capsys.readouterr().out == "14\n"


def test_main_file_success(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    src = tmp_path / "loop.misty"
    src.write_text("drift (const x through [1, 2]) {\n    System.out.console(x);\n}\n")
    assert misty_cli.main([str(src), "--pretty"]) == 0
    assert "1\n2" in capsys.readouterr().out


@pytest.mark.parametrize(
    "argv,message",
    [
        (["-s", "incase (5) { }"], "Incase statement condition must be a boolean, got number"),
        (["-s", 'const s = "abc'], "Unterminated string at line 1, column 11"),
        (["-s", "procedure f(a, a) { }"], "Duplicate parameter name 'a'"),
        (["notes.txt"], "Only .misty files are supported."),
    ],
)
def test_main_reports_errors(
    argv: list[str], message: str, capsys: pytest.CaptureFixture[str]
) -> None:
    assert misty_cli.main(argv) == 1
    err = capsys.readouterr().err
    assert err.startswith("[error] >>> ")
    assert message in err


def test_main_reports_missing_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert misty_cli.main([str(tmp_path / "gone.misty")]) == 1
    assert "[error] >>>" in capsys.readouterr().err


def test_main_reports_runaway_recursion(capsys: pytest.CaptureFixture[str]) -> None:
    source = "procedure f(n) { returns f(n + 1); }\nf(0);"
    assert misty_cli.main(["-s", source]) == 1
    assert "[error] >>> Maximum recursion depth exceeded" in capsys.readouterr().err


def test_main_cli_parses(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(sys, "argv", ["misty", "-s", "1;", "--ast"])
    called = {}

    def dummy_run(**kwargs: Any) -> str:
        called.update(kwargs)
        return ""

    monkeypatch.setattr(misty_cli, "run_misty", dummy_run)
    assert misty_cli.main() == 0
    assert called["source"] == "1;"
    assert called["is_string"] is True
    assert called["ast"] is True
    assert called["tokens"] is False


def test_main_calls_repl_on_no_args(monkeypatch: pytest.MonkeyPatch) -> None:
    called = {}

    def fake_repl(*args: Any, **kwargs: Any) -> None:
        called["ran"] = True

    monkeypatch.setattr(sys, "argv", ["misty"])
    monkeypatch.setattr("misty.misty_repl.start_repl", fake_repl)

    assert misty_cli.main() == 0
    assert called.get("ran") is True


def test_main_repl_flag_calls_repl(monkeypatch: pytest.MonkeyPatch) -> None:
    called_args = {}

    def fake_repl(*, verbose: Any) -> None:
        called_args["verbose"] = verbose

    monkeypatch.setattr("misty.misty_repl.start_repl", fake_repl)

    assert misty_cli.main(["--repl", "--verbose"]) == 0
    assert called_args["verbose"] is True


def test_misty_cli_main_entrypoint_runs() -> None:
    cli_path = SRC_DIR / "misty" / "misty_cli.py"
    env = {**os.environ, "PYTHONPATH": str(SRC_DIR)}

    result = subprocess.run(
        [sys.executable, str(cli_path), "-s", HELLO],
        capture_output=True,
        env=env,
        timeout=10,
    )

    assert result.returncode == 0
    assert result.stdout.decode().strip() == "Hello World"


@settings(  # type: ignore[misc]
    max_examples=50,
    deadline=None,
)
@given(st.text(alphabet="abc01+-*/()[]{};=<>!\"", max_size=30))  # type: ignore[misc]
def test_run_misty_random_input_only_raises_language_errors(source: str) -> None:
    try:
        misty_cli.run_misty(source, is_string=True)
    except MistyError:
        pass
