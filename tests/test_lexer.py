import pytest
from hypothesis import given
from hypothesis import strategies as st

from misty.misty_errors import LexError
from misty.misty_lexer import CharacterStream, Lexer, Token, token_hashmap, tokenize


def types(source: str) -> list[str]:
    return [tok.type for tok in tokenize(source)]


def test_single_char_tokens() -> None:
    code = "+ - * / = < > ! & | ; ( ) { } [ ] , . :"
    expected = [
        "PLUS",
        "MINUS",
        "STAR",
        "SLASH",
        "EQUALS",
        "LESS_THAN",
        "GREATER_THAN",
        "NOT",
        "AMPERSAND",
        "PIPE",
        "SEMICOLON",
        "LPAREN",
        "RPAREN",
        "LBRACE",
        "RBRACE",
        "LBRACKET",
        "RBRACKET",
        "COMMA",
        "DOT",
        "COLON",
        "EOF",
    ]
    assert types(code) == expected


def test_two_char_operators_win_over_single_char_forms() -> None:
    assert types("-> |> && || == != <= >=") == [
        "ARROW",
        "PIPE_GREATER",
        "AND",
        "OR",
        "EQUAL_EQUAL",
        "NOT_EQUAL",
        "LESS_EQUAL",
        "GREATER_EQUAL",
        "EOF",
    ]


def test_adjacent_operators_split_by_longest_match() -> None:
    assert types("a->b") == ["IDENTIFIER", "ARROW", "IDENTIFIER", "EOF"]
    assert types("a - > b") == [
        "IDENTIFIER",
        "MINUS",
        "GREATER_THAN",
        "IDENTIFIER",
        "EOF",
    ]
    assert types("x=-1") == ["IDENTIFIER", "EQUALS", "MINUS", "NUMBER", "EOF"]


def test_keywords() -> None:
    source = "const mut procedure returns incase elif else drift through break continue true false null nullptr NaN"
    assert types(source)[:-1] == [
        "CONST",
        "MUT",
        "PROCEDURE",
        "RETURNS",
        "INCASE",
        "ELIF",
        "ELSE",
        "DRIFT",
        "THROUGH",
        "BREAK",
        "CONTINUE",
        "TRUE",
        "FALSE",
        "NULL",
        "NULLPTR",
        "NAN",
    ]


def test_keywords_are_case_sensitive() -> None:
    toks = tokenize("Const nan TRUE")
    assert [t.type for t in toks[:-1]] == ["IDENTIFIER"] * 3


def test_identifier_token() -> None:
    tok = tokenize("_my_Var9")[0]
    assert tok.type == "IDENTIFIER"
    assert tok.value == "_my_Var9"


def test_number_token() -> None:
    tok = tokenize("123")[0]
    assert tok == Token("NUMBER", "123", 1, 1)


def test_decimal_number_token() -> None:
    tok = tokenize("3.14")[0]
    assert tok.type == "NUMBER"
    assert tok.value == "3.14"


def test_trailing_dot_is_not_part_of_number() -> None:
    toks = tokenize("5.length")
    assert [(t.type, t.value) for t in toks] == [
        ("NUMBER", "5"),
        ("DOT", "."),
        ("IDENTIFIER", "length"),
        ("EOF", ""),
    ]


def test_second_dot_ends_number() -> None:
    toks = tokenize("1.2.3")
    assert [(t.type, t.value) for t in toks[:-1]] == [
        ("NUMBER", "1.2"),
        ("DOT", "."),
        ("NUMBER", "3"),
    ]


def test_string_token() -> None:
    tok = tokenize('"hello world"')[0]
    assert tok.type == "STRING"
    assert tok.value == "hello world"


@pytest.mark.parametrize(
    "source,expected",
    [
        (r'"a\nb"', "a\nb"),
        (r'"a\tb"', "a\tb"),
        (r'"a\rb"', "a\rb"),
        (r'"a\\b"', "a\\b"),
        (r'"say \"hi\""', 'say "hi"'),
        (r'"\q"', "q"),
    ],
)
def test_string_escapes(source: str, expected: str) -> None:
    assert tokenize(source)[0].value == expected


def test_unterminated_string_reports_start_position() -> None:
    with pytest.raises(LexError) as exc:
        tokenize('const s = "abc')
    assert "Unterminated string at line 1, column 11" in str(exc.value)
    assert exc.value.line == 1
    assert exc.value.column == 11


def test_unterminated_string_with_trailing_escape() -> None:
    with pytest.raises(LexError, match="Unterminated string"):
        tokenize('"abc\\')


def test_unexpected_character_raises() -> None:
    with pytest.raises(LexError) as exc:
        tokenize("const x = 1;\n  x @ 2;")
    assert "Unexpected character '@' at line 2, column 5" in str(exc.value)
    assert (exc.value.line, exc.value.column) == (2, 5)


def test_line_and_column_tracking() -> None:
    toks = tokenize("mut x = 1;\n  x = 2;")
    x2 = toks[5]
    assert (x2.value, x2.line, x2.col) == ("x", 2, 3)


def test_skip_whitespace_and_comments() -> None:
    toks = tokenize("   \n\t# a comment\r\n123 # trailing\n")
    assert [(t.type, t.value) for t in toks] == [("NUMBER", "123"), ("EOF", "")]
    assert toks[0].line == 3


def test_token_eof_only_for_empty_input() -> None:
    toks = tokenize("")
    assert len(toks) == 1
    assert toks[0].type == "EOF"


def test_lexer_next_token_repeats_eof() -> None:
    lexer = Lexer(CharacterStream("x"))
    assert lexer.next_token().type == "IDENTIFIER"
    assert lexer.next_token().type == "EOF"
    assert lexer.next_token().type == "EOF"


def test_character_stream_methods() -> None:
    stream = CharacterStream("a\nb")
    assert stream.peek() == "a"
    assert stream.next() == "a"
    assert stream.next() == "\n"
    assert (stream.line, stream.column) == (2, 1)
    assert stream.peek(5) == ""
    stream.next()
    assert stream.end_of_file()


def test_character_stream_next_past_eof_raises() -> None:
    with pytest.raises(EOFError, match="Attempted to read past end of source"):
        CharacterStream("").next()


def test_token_repr_and_eq() -> None:
    t1 = Token("NUMBER", "42", 1, 2)
    t2 = Token("NUMBER", "42", 1, 2)
    t3 = Token("IDENTIFIER", "x")

    assert repr(t1) == "Token(NUMBER, 42)"
    assert t1 == t2
    assert t1 != t3
    assert len({t1, t2, t3}) == 2


def test_token_hashmap_covers_keywords_and_operators() -> None:
    assert token_hashmap["drift"] == "DRIFT"
    assert token_hashmap["->"] == "ARROW"


def test_lexer_reads_types_from_token_hashmap(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setitem(token_hashmap, "loop", "DRIFT")
    monkeypatch.setitem(token_hashmap, "->", "POINTS_TO")
    tokens = tokenize("loop a->b")
    assert [t.type for t in tokens] == ["DRIFT", "IDENTIFIER", "POINTS_TO", "IDENTIFIER", "EOF"]


@pytest.mark.parametrize("spelling", sorted(k for k in token_hashmap if not k[0].isalpha()))
def test_every_operator_spelling_lexes_to_its_type(spelling: str) -> None:
    tok = tokenize(spelling)[0]
    assert (tok.type, tok.value) == (token_hashmap[spelling], spelling)


@given(st.text(max_size=100))  # type: ignore[misc]
def test_lexer_does_not_crash_on_random_input(input_str: str) -> None:
    try:
        toks = tokenize(input_str)
    except LexError as e:
        assert "Unterminated string" in str(e) or "Unexpected character" in str(e)
    else:
        assert toks[-1].type == "EOF"
        assert all(t.type != "EOF" for t in toks[:-1])


@given(st.from_regex(r"[A-Za-z_][A-Za-z0-9_]{0,15}", fullmatch=True))  # type: ignore[misc]
def test_words_lex_as_keyword_or_identifier(word: str) -> None:
    tok = tokenize(word)[0]
    assert tok.value == word
    assert tok.type == token_hashmap.get(word, "IDENTIFIER")


@pytest.mark.parametrize(
    "method",
    [CharacterStream.__init__, CharacterStream.next, CharacterStream.end_of_file, Token.__init__],
)
def test_stream_and_token_methods_are_documented(method: object) -> None:
    doc = method.__doc__ or ""
    assert "Args:" in doc or "Returns:" in doc
