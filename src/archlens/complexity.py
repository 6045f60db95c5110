"""Cyclomatic complexity over a method body's token stream.

Complexity is 1 plus the number of decision tokens: ``if`` (which also
covers ``else if``), ``for``, ``foreach``, ``while``, ``case``,
``catch``, the ternary ``?`` and the short-circuit ``&&``/``||``.
Tokens come from the stripped source, so keywords inside strings or
comments never count.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .lexer import Token

DECISION_KEYWORDS = frozenset({"if", "for", "foreach", "while", "case", "catch"})
BOOLEAN_OPERATORS = frozenset({"&&", "||"})

# Statements that own a block rather than ending in ``;``
BLOCK_STATEMENTS = frozenset({"if", "for", "foreach", "while", "do", "switch", "try"})

_OPENERS = frozenset("([{")
_CLOSERS = frozenset(")]}")
_NOT_TERNARY_FOLLOWERS = frozenset({")", ",", ">", "]", ";", "=", "}"})
_ASSIGNMENTS = frozenset({"=", "??=", "+=", "-=", "*=", "/=", "%=", "&=", "|=", "^="})


@dataclass(frozen=True)
class BodyStats:
    complexity: int
    decision_points: int
    has_error_handling: bool
    statement_count: int


def is_ternary(tokens: Sequence[Token], i: int) -> bool:
    """Whether the ``?`` at ``i`` is a conditional operator.

    Nullable type markers (``int?``) and generic wildcards (``<?>``) are
    told apart by looking for a ``:`` at the same nesting depth before
    the expression ends. An assignment reached first means the ``?``
    was part of a declared type (``string? name = c ? a : b``).
    """
    if i + 1 >= len(tokens):
        return False
    nxt = tokens[i + 1]
    if nxt.value in _NOT_TERNARY_FOLLOWERS:
        return False
    # a?[0] is a null-conditional index, not a ternary
    if nxt.value == "[" and nxt.offset == tokens[i].offset + 1:
        return False

    depth = 0
    for tok in tokens[i + 1:]:
        v = tok.value
        if tok.kind != "op":
            continue
        if v in _OPENERS:
            depth += 1
        elif v in _CLOSERS:
            if depth == 0:
                return False
            depth -= 1
        elif depth == 0:
            if v == ":":
                return True
            if v in (";", ",") or v in _ASSIGNMENTS:
                return False
    return False


def count_decision_points(tokens: Sequence[Token]) -> tuple[int, bool]:
    """Return (decision token count, whether a ``catch`` was seen)."""
    count = 0
    has_catch = False
    for i, tok in enumerate(tokens):
        if tok.kind == "ident":
            if tok.value in DECISION_KEYWORDS:
                count += 1
                if tok.value == "catch":
                    has_catch = True
        elif tok.kind == "op":
            if tok.value in BOOLEAN_OPERATORS:
                count += 1
            elif tok.value == "?" and is_ternary(tokens, i):
                count += 1
    return count, has_catch


def count_statements(tokens: Sequence[Token]) -> int:
    """Approximate statement count: ``;`` terminators outside parentheses
    plus block-owning statements."""
    count = 0
    paren_depth = 0
    for tok in tokens:
        v = tok.value
        if tok.kind == "op":
            if v == "(":
                paren_depth += 1
            elif v == ")":
                paren_depth = max(0, paren_depth - 1)
            elif v == ";" and paren_depth == 0:
                count += 1
        elif tok.kind == "ident" and v in BLOCK_STATEMENTS:
            count += 1
    return count


def analyze_body(tokens: Sequence[Token], expression_body: bool = False) -> BodyStats:
    """Compute complexity and error-handling facts for one method body.

    Args:
        tokens: Tokens strictly inside the body braces, or after ``=>``
            up to (not including) the terminating ``;``
        expression_body: True for ``=> expr;`` members, which count as a
            single statement
    """
    decisions, has_catch = count_decision_points(tokens)
    statements = count_statements(tokens)
    if expression_body:
        statements += 1
    return BodyStats(
        complexity=1 + decisions,
        decision_points=decisions,
        has_error_handling=has_catch,
        statement_count=statements,
    )
