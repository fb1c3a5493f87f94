"""Identifier case folding.

Turns mixed/camel-case identifiers into the lowercase, ``_``-separated
form used as the default external name of a record attribute::

    fold("MustPass")        -> "must_pass"
    fold("HTTPServer")      -> "http_server"
    fold("Must123Pass456")  -> "must123_pass456"

A separator is only inserted at a case transition, so runs of capitals
(acronyms) stay together.
"""

from __future__ import annotations

SEPARATOR = "_"


def fold(identifier: str, *, legacy_whitespace: bool = False) -> str:
    """Fold *identifier* to lowercase ``snake_case``.

    Whitespace is a word boundary and is never emitted. With
    ``legacy_whitespace=True`` the historical behaviour is reproduced
    instead: the whitespace character is kept and the character after it
    is treated as uppercase, e.g. ``"really MustPass"`` folds to
    ``"really _must_pass"``.
    """
    chars = list(identifier)
    n = len(chars)
    out: list[str] = []
    boundary = False

    def is_lower(idx: int) -> bool:
        return 0 <= idx < n and chars[idx].islower()

    for i in range(n):
        ch = chars[i]

        if ch.isspace():
            if legacy_whitespace:
                if i + 1 < n:
                    chars[i + 1] = chars[i + 1].upper()
                out.append(ch)
            else:
                boundary = True
            continue

        if boundary:
            boundary = False
            if out and out[-1] != SEPARATOR and ch != SEPARATOR:
                out.append(SEPARATOR)
            if ch.isupper():
                out.append(ch.lower())
                continue

        if ch.isupper():
            if (
                i > 0
                and chars[i - 1] != SEPARATOR
                and (is_lower(i - 1) or is_lower(i + 1))
            ):
                out.append(SEPARATOR)
            ch = ch.lower()

        out.append(ch)

    return "".join(out)
