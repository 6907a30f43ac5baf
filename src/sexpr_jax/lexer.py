"""Top-level tokenizer for parenthesized prefix expressions."""

from __future__ import annotations

from .errors import ExprSyntaxError

OPEN_PAREN = "("
CLOSE_PAREN = ")"


def _flush(part: str, tokens: list[str]) -> None:
    tokens.extend(part.split())


def tokenize(source: str) -> list[str]:
    """Split ``source`` into top-level tokens.

    A token is either a run of non-whitespace characters outside any
    parentheses or a balanced parenthesized group (nested groups included),
    returned verbatim as one string::

        >>> tokenize("(a b (c d)) e f (g)")
        ['(a b (c d))', 'e', 'f', '(g)']
    """
    text = source.strip()
    tokens: list[str] = []
    depth = 0
    pos = 0
    group_start = 0

    for i, ch in enumerate(text):
        if ch == OPEN_PAREN:
            if depth == 0:
                _flush(text[pos:i], tokens)
                group_start = i
                pos = i
            depth += 1
        elif ch == CLOSE_PAREN:
            if depth == 0:
                raise ExprSyntaxError("Unmatched close parenthesis", i, text)
            depth -= 1
            if depth == 0:
                tokens.append(text[group_start : i + 1])
                pos = i + 1

    if depth > 0:
        raise ExprSyntaxError("Unmatched open parenthesis", group_start, text)

    _flush(text[pos:], tokens)
    return tokens


def is_group(token: str) -> bool:
    return token.startswith(OPEN_PAREN)


def strip_group(token: str) -> str:
    return token[1:-1]
