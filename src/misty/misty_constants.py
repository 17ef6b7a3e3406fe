"""
Token tables shared by the Misty lexer and parser.

`keyword_tokens` maps reserved words to their token types, `operator_tokens`
maps every operator and delimiter spelling to its token type, and
`token_hashmap` is the union the lexer consults for longest-match operator
recognition and keyword lookup.
"""

keyword_tokens: dict[str, str] = {
    "const": "CONST",
    "mut": "MUT",
    "procedure": "PROCEDURE",
    "returns": "RETURNS",
    "incase": "INCASE",
    "elif": "ELIF",
    "else": "ELSE",
    "drift": "DRIFT",
    "through": "THROUGH",
    "break": "BREAK",
    "continue": "CONTINUE",
    "true": "TRUE",
    "false": "FALSE",
    "null": "NULL",
    "nullptr": "NULLPTR",
    "NaN": "NAN",
}

operator_tokens: dict[str, str] = {
    # two-character forms
    "->": "ARROW",
    "|>": "PIPE_GREATER",
    "&&": "AND",
    "||": "OR",
    "==": "EQUAL_EQUAL",
    "!=": "NOT_EQUAL",
    "<=": "LESS_EQUAL",
    ">=": "GREATER_EQUAL",
    # single-character forms
    "+": "PLUS",
    "-": "MINUS",
    "*": "STAR",
    "/": "SLASH",
    "=": "EQUALS",
    "<": "LESS_THAN",
    ">": "GREATER_THAN",
    "!": "NOT",
    "&": "AMPERSAND",
    "|": "PIPE",
    ";": "SEMICOLON",
    "(": "LPAREN",
    ")": "RPAREN",
    "{": "LBRACE",
    "}": "RBRACE",
    "[": "LBRACKET",
    "]": "RBRACKET",
    ",": "COMMA",
    ".": "DOT",
    ":": "COLON",
}

MAX_OPERATOR_LENGTH = max(len(op) for op in operator_tokens)

token_hashmap: dict[str, str] = {**keyword_tokens, **operator_tokens}

__all__ = [
    "MAX_OPERATOR_LENGTH",
    "keyword_tokens",
    "operator_tokens",
    "token_hashmap",
]
