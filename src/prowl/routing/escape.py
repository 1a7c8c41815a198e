"""Regex escaping for literal segments spliced into generated patterns."""

import re

_MATCH_OPERATORS = re.compile(r"[|\\{}()\[\]^$+*?.\-]")


def escape_string_regexp(value: str) -> str:
    """Escape *value* so it matches only its own literal characters.

    Escapes ``| \\ { } ( ) [ ] ^ $ + * ? . -`` with a backslash.  The result
    is valid in both the routing engine's grammar and Python's ``re``.

    """
    return _MATCH_OPERATORS.sub(lambda m: "\\" + m.group(0), value)
