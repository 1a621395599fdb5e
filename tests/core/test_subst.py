# SPDX-License-Identifier: MIT
"""Tests for pnsis.core.subst."""

import pytest

from pnsis.core.errors import ConfigureError
from pnsis.core.subst import (
    collapse_line_breaks,
    expand,
    expand_all,
    to_shell_command,
    tokenize,
)


class TestExpand:
    def test_no_variables(self):
        assert expand("hello world", {}) == "hello world"

    def test_simple_variable(self):
        assert expand("hello $name", {"name": "world"}) == "hello world"

    def test_braced_variable(self):
        assert expand("${name}.nsi", {"name": "setup"}) == "setup.nsi"

    def test_braced_dotted_variable(self):
        assert expand("${build.number}", {"build.number": "42"}) == "42"

    def test_adjacent_variables(self):
        assert expand("$a$b$c", {"a": "1", "b": "2", "c": "3"}) == "123"

    def test_unresolved_left_literal(self):
        assert expand("$MISSING and ${ALSO}", {}) == "$MISSING and ${ALSO}"

    def test_escaped_dollar(self):
        assert expand("price is $$10", {}) == "price is $10"

    def test_values_not_rescanned(self):
        assert expand("$A", {"A": "$B", "B": "nope"}) == "$B"

    def test_windows_path_value(self):
        result = expand(r"$PROGRAMFILES\NSIS", {"PROGRAMFILES": r"C:\Program Files"})
        assert result == r"C:\Program Files\NSIS"


class TestExpandAll:
    def test_environment_then_build_vars(self):
        env = {"OUT": "$TARGET_DIR"}
        build_vars = {"TARGET_DIR": "dist"}
        assert expand_all("-XOutFile $OUT", env, build_vars) == "-XOutFile dist"

    def test_build_var_fills_reference_unknown_to_environment(self):
        assert expand_all("$VERSION", {"HOME": "/h"}, {"VERSION": "1.2"}) == "1.2"

    def test_build_var_overrides_environment(self):
        assert expand_all("$X", {"X": "env"}, {"X": "build"}) == "build"

    def test_environment_value_used_when_not_shadowed(self):
        assert expand_all("$X-$Y", {"X": "env"}, {"Y": "build"}) == "env-build"


class TestCollapseLineBreaks:
    def test_runs_become_single_space(self):
        assert collapse_line_breaks("-V2\r\n\t-DFOO=bar\n") == "-V2 -DFOO=bar "

    def test_plain_spaces_untouched(self):
        assert collapse_line_breaks("a  b") == "a  b"


class TestTokenize:
    def test_whitespace_split(self):
        assert tokenize("  -V2   -DFOO=bar ") == ["-V2", "-DFOO=bar"]

    def test_double_quotes(self):
        assert tokenize('-DNAME="My App" -V4') == ["-DNAME=My App", "-V4"]

    def test_single_quotes(self):
        assert tokenize("'-XOutFile out dir/setup.exe'") == ["-XOutFile out dir/setup.exe"]

    def test_backslashes_are_literal(self):
        assert tokenize(r"-DROOT=C:\work\src") == [r"-DROOT=C:\work\src"]

    def test_hash_is_not_a_comment(self):
        assert tokenize("-DBUILD=#12") == ["-DBUILD=#12"]

    def test_empty(self):
        assert tokenize("") == []

    def test_unterminated_quote(self):
        with pytest.raises(ConfigureError, match="cannot tokenize"):
            tokenize('-DNAME="oops')


class TestToShellCommand:
    def test_bash_quoting(self):
        assert to_shell_command(["makensis", "my script.nsi"], "bash") == (
            "makensis 'my script.nsi'"
        )

    def test_cmd_quoting(self):
        cmd = to_shell_command(
            ["cmd.exe", "/C", r"C:\Program Files\NSIS\makensis.exe", "&&"], "cmd"
        )
        assert cmd == r'cmd.exe /C "C:\Program Files\NSIS\makensis.exe" &&'

    def test_empty_token(self):
        assert to_shell_command(["a", ""], "bash") == "a ''"
