"""Comment/literal-stripping lexer for C-family source.

Two passes:

1. ``strip_source`` blanks out comments, preprocessor lines and the
   contents of string/char literals. The result has exactly the same
   length and line breaks as the input, so offsets and line numbers
   taken from it are valid for the original text. A literal is reduced
   to its delimiters with spaces in between, so a ``{`` inside a string
   can never reach the brace tracker.
2. ``tokenize`` splits the stripped text into identifier, number,
   string-placeholder and operator tokens.
"""

from __future__ import annotations

from typing import NamedTuple

from .errors import ParseError

CSHARP = "csharp"
JAVA = "java"

# Multi-character operators, longest first. Shifts are left out on
# purpose so that nested generic closers (``>>``) stay separate tokens.
_OPERATORS = (
    "...", "??=",
    "&&", "||", "??", "?.", "=>", "==", "!=", "<=", ">=", "++", "--",
    "+=", "-=", "*=", "/=", "%=", "&=", "|=", "^=", "::", "->",
)


class Token(NamedTuple):
    kind: str  # "ident", "number", "string", "op"
    value: str
    offset: int
    line: int


# --- Pass 1: stripping ---


def _line_of(text: str, index: int) -> int:
    return text.count("\n", 0, index) + 1


def _blank(chars: list[str], start: int, end: int, delimiter: str | None = None) -> None:
    """Blank chars[start:end], keeping newlines and optional delimiters."""
    for k in range(start, end):
        if chars[k] != "\n":
            chars[k] = " "
    if delimiter is not None and end - start >= 2:
        chars[start] = delimiter
        chars[end - 1] = delimiter


def _scan_regular_string(text: str, i: int, interpolated: bool, dialect: str) -> int:
    """Scan a ``"..."`` literal whose opening quote is at ``i``."""
    n = len(text)
    j = i + 1
    while j < n:
        c = text[j]
        if c == "\\":
            j += 2
            continue
        if c == "\n":
            break
        if c == '"':
            return j + 1
        if interpolated and c == "{":
            if j + 1 < n and text[j + 1] == "{":
                j += 2
                continue
            j = _scan_interpolation_hole(text, j, dialect)
            continue
        j += 1
    raise ParseError("unterminated string literal", _line_of(text, i))


def _scan_verbatim_string(text: str, i: int, interpolated: bool, dialect: str) -> int:
    """Scan a C# ``@"..."`` literal; ``""`` is an escaped quote."""
    n = len(text)
    j = i + 1
    while j < n:
        c = text[j]
        if c == '"':
            if j + 1 < n and text[j + 1] == '"':
                j += 2
                continue
            return j + 1
        if interpolated and c == "{":
            if j + 1 < n and text[j + 1] == "{":
                j += 2
                continue
            j = _scan_interpolation_hole(text, j, dialect)
            continue
        j += 1
    raise ParseError("unterminated verbatim string literal", _line_of(text, i))


def _scan_raw_string(text: str, i: int, quotes: int) -> int:
    """Scan a raw/text-block literal opened by ``quotes`` double quotes."""
    closer = '"' * quotes
    end = text.find(closer, i + quotes)
    # Java text blocks allow \" inside; skip escaped closers
    while end != -1 and text[end - 1] == "\\":
        end = text.find(closer, end + 1)
    if end == -1:
        raise ParseError("unterminated raw string literal", _line_of(text, i))
    end += quotes
    # C# raw literals may be closed by more quotes than they were opened with
    while end < len(text) and text[end] == '"':
        end += 1
    return end


def _scan_char(text: str, i: int) -> int:
    n = len(text)
    j = i + 1
    if j < n and text[j] == "\\":
        j += 2
    while j < n and text[j] not in "'\n":
        j += 1
    if j < n and text[j] == "'":
        return j + 1
    raise ParseError("unterminated character literal", _line_of(text, i))


def _scan_interpolation_hole(text: str, i: int, dialect: str) -> int:
    """Scan ``{expr}`` inside an interpolated string, returning the index after ``}``."""
    n = len(text)
    depth = 0
    j = i
    while j < n:
        c = text[j]
        if c == "{":
            depth += 1
        elif c == "}":
            depth -= 1
            if depth == 0:
                return j + 1
        elif c == '"' or (c in "$@" and _string_prefix_length(text, j) is not None):
            j = _scan_csharp_string(text, j, dialect)
            continue
        elif c == "'":
            j = _scan_char(text, j)
            continue
        j += 1
    raise ParseError("unterminated interpolation in string literal", _line_of(text, i))


def _string_prefix_length(text: str, i: int) -> int | None:
    """Length of a C# ``$``/``@`` prefix run at ``i`` that is followed by a quote."""
    j = i
    while j < len(text) and text[j] in "$@":
        j += 1
    if j > i and j < len(text) and text[j] == '"':
        return j - i
    return None


def _scan_csharp_string(text: str, i: int, dialect: str) -> int:
    prefix_len = _string_prefix_length(text, i) or 0
    prefix = text[i:i + prefix_len]
    q = i + prefix_len
    quotes = 0
    while q + quotes < len(text) and text[q + quotes] == '"':
        quotes += 1
    if quotes >= 3:
        return _scan_raw_string(text, q, quotes)
    interpolated = "$" in prefix
    if "@" in prefix:
        return _scan_verbatim_string(text, q, interpolated, dialect)
    return _scan_regular_string(text, q, interpolated, dialect)


def strip_source(text: str, dialect: str = CSHARP) -> str:
    """Blank comments and literal contents, preserving length and newlines.

    Raises:
        ParseError: on an unterminated comment or literal
    """
    chars = list(text)
    n = len(text)
    i = 0
    at_line_start = True

    while i < n:
        c = text[i]

        if c == "\n":
            at_line_start = True
            i += 1
            continue
        if c in " \t\r\f\v":
            i += 1
            continue

        if c == "#" and at_line_start and dialect == CSHARP:
            end = text.find("\n", i)
            end = n if end == -1 else end
            _blank(chars, i, end)
            i = end
            continue

        at_line_start = False
        nxt = text[i + 1] if i + 1 < n else ""

        if c == "/" and nxt == "/":
            end = text.find("\n", i)
            end = n if end == -1 else end
            _blank(chars, i, end)
            i = end
        elif c == "/" and nxt == "*":
            end = text.find("*/", i + 2)
            if end == -1:
                raise ParseError("unterminated block comment", _line_of(text, i))
            _blank(chars, i, end + 2)
            i = end + 2
        elif c == '"' or (dialect == CSHARP and c in "$@" and _string_prefix_length(text, i) is not None):
            if dialect == CSHARP:
                end = _scan_csharp_string(text, i, dialect)
            elif text.startswith('"""', i):
                end = _scan_raw_string(text, i, 3)
            else:
                end = _scan_regular_string(text, i, False, dialect)
            _blank(chars, i, end, '"')
            i = end
        elif c == "'":
            end = _scan_char(text, i)
            _blank(chars, i, end, "'")
            i = end
        elif c.isalnum() or c == "_":
            # Skip whole words so a prefix like the ``@`` in ``x@"`` never
            # starts a literal in the middle of an identifier
            i += 1
            while i < n and (text[i].isalnum() or text[i] == "_"):
                i += 1
        else:
            i += 1

    return "".join(chars)


# --- Pass 2: tokenizing ---


def _is_ident_start(c: str, dialect: str) -> bool:
    return c.isalpha() or c == "_" or (c == "$" and dialect == JAVA)


def _is_ident_char(c: str, dialect: str) -> bool:
    return c.isalnum() or c == "_" or (c == "$" and dialect == JAVA)


def tokenize(text: str, dialect: str = CSHARP) -> list[Token]:
    """Strip ``text`` and split it into tokens.

    Raises:
        ParseError: propagated from ``strip_source``
    """
    src = strip_source(text, dialect)
    tokens: list[Token] = []
    n = len(src)
    i = 0
    line = 1

    while i < n:
        c = src[i]

        if c == "\n":
            line += 1
            i += 1
            continue
        if c.isspace():
            i += 1
            continue

        start = i
        if _is_ident_start(c, dialect) or (
            c == "@" and dialect == CSHARP and i + 1 < n and _is_ident_start(src[i + 1], dialect)
        ):
            if c == "@":
                i += 1
                start = i
            while i < n and _is_ident_char(src[i], dialect):
                i += 1
            tokens.append(Token("ident", src[start:i], start, line))
        elif c.isdigit() or (c == "." and i + 1 < n and src[i + 1].isdigit()):
            i += 1
            while i < n and (
                src[i].isalnum() or src[i] == "_"
                or (src[i] == "." and i + 1 < n and src[i + 1].isdigit())
            ):
                i += 1
            tokens.append(Token("number", src[start:i], start, line))
        elif c in "\"'":
            end = src.index(c, i + 1) + 1
            literal = src[start:end]
            tokens.append(Token("string", c + c, start, line))
            line += literal.count("\n")
            i = end
        else:
            for op in _OPERATORS:
                if src.startswith(op, i):
                    i += len(op)
                    break
            else:
                i += 1
            tokens.append(Token("op", src[start:i], start, line))

    return tokens
