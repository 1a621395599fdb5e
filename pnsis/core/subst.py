# SPDX-License-Identifier: MIT
"""Variable substitution for pnsis.

Supported syntax:
- Simple variables: $VAR
- Braced variables: ${VAR} or ${dotted.name}
- Escaped dollars: $$ becomes literal $

Unlike a strict template engine, references to undefined variables are
left in place as literal text. Substituted values are not rescanned, so
a value containing "$X" is inserted verbatim.

When both environment and build variables apply, expand with the
environment first and the build variables second (see expand_all). A
build variable wins over an environment variable of the same name, and a
reference an environment value introduces is still satisfied by a build
variable.
"""

from __future__ import annotations

import platform
import re
import shlex
from collections.abc import Mapping, Sequence

from pnsis.core.errors import ConfigureError

# Match: $$, ${var}, $var
_TOKEN_PATTERN = re.compile(
    r"\$(\$)"  # Group 1: Escaped dollar
    r"|"
    r"\$\{([A-Za-z0-9_.]+)\}"  # Group 2: Braced ${var}
    r"|"
    r"\$([A-Za-z0-9_]+)"  # Group 3: Simple $var
)

# Runs of tab, carriage return and newline collapse to a single space
_LINE_BREAKS = re.compile(r"[\t\r\n]+")


def expand(template: str, variables: Mapping[str, str]) -> str:
    """Replace variable references in template with values from variables.

    Args:
        template: String that may contain $VAR or ${VAR} references.
        variables: Values to substitute.

    Returns:
        The expanded string. Unknown references are kept as written.
    """

    def replace_match(match: re.Match[str]) -> str:
        if match.group(1):
            return "$"
        name = match.group(2) or match.group(3)
        value = variables.get(name)
        if value is None:
            return match.group(0)
        return str(value)

    return _TOKEN_PATTERN.sub(replace_match, template)


def expand_all(
    template: str,
    env: Mapping[str, str],
    build_vars: Mapping[str, str],
) -> str:
    """Expand environment variables first, then build variables.

    Build variables shadow environment variables of the same name in the
    first pass as well.
    """
    return expand(expand(template, {**env, **build_vars}), build_vars)


def collapse_line_breaks(text: str) -> str:
    """Collapse every run of tabs/CR/LF into a single space."""
    return _LINE_BREAKS.sub(" ", text)


def tokenize(text: str) -> list[str]:
    """Split text on whitespace, honouring single and double quotes.

    Backslashes are literal so Windows paths survive untouched.

    Raises:
        ConfigureError: If a quote is left unterminated.
    """
    lexer = shlex.shlex(text, posix=True)
    lexer.whitespace_split = True
    lexer.commenters = ""
    lexer.escape = ""
    try:
        return list(lexer)
    except ValueError as e:
        raise ConfigureError(f"cannot tokenize {text!r}: {e}") from e


# =============================================================================
# Shell command formatting
# =============================================================================


def to_shell_command(tokens: Sequence[str], shell: str = "auto") -> str:
    """Convert an argument vector to a display string with proper quoting.

    Args:
        tokens: The argument vector.
        shell: "auto", "bash" or "cmd".
    """
    if shell == "auto":
        shell = "cmd" if platform.system() == "Windows" else "bash"
    return " ".join(_quote_for_shell(t, shell) for t in tokens)


def _quote_for_shell(s: str, shell: str) -> str:
    """Quote string for target shell if needed."""
    if not s:
        return '""' if shell == "cmd" else "''"

    if shell == "bash":
        needs_quote = any(c in s for c in " \t\n\"'\\$`!*?[](){}|&;<>")
        if not needs_quote:
            return s
        if "'" not in s:
            return f"'{s}'"
        escaped = (
            s.replace("\\", "\\\\")
            .replace('"', '\\"')
            .replace("$", "\\$")
            .replace("`", "\\`")
        )
        return f'"{escaped}"'

    # cmd
    needs_quote = any(c in s for c in ' \t"^|<>()!')
    if not needs_quote:
        return s
    return f'"{s.replace(chr(34), chr(34) + chr(34))}"'
