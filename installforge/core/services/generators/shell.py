"""
Shell quoting helpers shared by the installer generators.

Two quoting styles are used in generated scripts:

- ``dq`` for paths and names: double quotes, so ``$ASSET_DIR`` and
  recipe variables still expand on the target.
- ``sq`` for regexes, sed programs and display text: single quotes,
  nothing expands.
"""

from __future__ import annotations

import re

_SHELL_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_SED_DELIMITERS = "/|#@%,:~"


def dq(value: str) -> str:
    """Double-quote a value, keeping ``$`` expansion."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("`", "\\`")
    return f'"{escaped}"'


def sq(value: str) -> str:
    """Single-quote a value; the shell sees it verbatim."""
    return "'" + value.replace("'", "'\"'\"'") + "'"


def is_shell_name(name: str) -> bool:
    """True if ``name`` is usable as a shell variable name."""
    return bool(_SHELL_NAME_RE.match(name))


def heredoc_marker(lines: list[str], base: str = "INSTALLFORGE_LINES") -> str:
    """A heredoc terminator that does not collide with any payload line."""
    marker = base
    n = 0
    while marker in lines:
        n += 1
        marker = f"{base}_{n}"
    return marker


def sed_delimiter(*parts: str) -> str:
    """First delimiter character that appears in none of ``parts``."""
    text = "".join(parts)
    for ch in _SED_DELIMITERS:
        if ch not in text:
            return ch
    return "/"


def escape_sed_literal_pattern(text: str, delim: str) -> str:
    """Escape a literal string for use as a sed (BRE) pattern."""
    out = []
    for ch in text:
        if ch in "\\.*[]^$" or ch == delim:
            out.append("\\" + ch)
        else:
            out.append(ch)
    return "".join(out)


def escape_sed_replacement(text: str, delim: str) -> str:
    """Escape a string so sed inserts it literally as the replacement."""
    out = []
    for ch in text:
        if ch in "\\&" or ch == delim:
            out.append("\\" + ch)
        else:
            out.append(ch)
    return "".join(out)


def escape_sed_delimiter(text: str, delim: str) -> str:
    """Escape bare delimiter characters in a user-supplied regex."""
    if delim not in text:
        return text
    out = []
    prev_backslash = False
    for ch in text:
        if ch == delim and not prev_backslash:
            out.append("\\" + ch)
        else:
            out.append(ch)
        prev_backslash = ch == "\\" and not prev_backslash
    return "".join(out)
