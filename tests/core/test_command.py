# SPDX-License-Identifier: MIT
"""Tests for pnsis.core.command."""

from __future__ import annotations

from pathlib import Path

import pytest

from pnsis.core.command import (
    WINDOWS_EXIT_SUFFIX,
    WINDOWS_SHELL_PREFIX,
    CommandSpec,
    build_command,
)
from pnsis.core.context import ExecutionContext, Node
from pnsis.core.errors import ConfigureError
from pnsis.core.installation import ResolvedInstallation, ToolInstallation


def make_ctx(*, unix=True, env=None, build_vars=None, workspace="/work"):
    return ExecutionContext(
        node=Node("agent"),
        env=env or {},
        build_vars=build_vars or {},
        workspace=Path(workspace),
        unix=unix,
    )


class TestArguments:
    def test_executable_options_and_script(self):
        spec = build_command(
            "/opt/nsis/makensis.exe", "-V2 -DFOO=bar", "installer.nsi", make_ctx()
        )
        assert spec.args == [
            "/opt/nsis/makensis.exe",
            "-V2",
            "-DFOO=bar",
            "installer.nsi",
        ]
        assert spec.executable == "/opt/nsis/makensis.exe"

    def test_no_executable(self):
        spec = build_command(None, "", "build.nsi", make_ctx())
        assert spec.args == ["build.nsi"]
        assert spec.executable is None

    def test_none_options_and_script(self):
        spec = build_command("makensis", None, None, make_ctx())
        assert spec.args == ["makensis"]

    def test_executable_only_is_valid(self):
        assert build_command("makensis", "", "", make_ctx()).args == ["makensis"]

    def test_nothing_at_all(self):
        assert build_command(None, None, None, make_ctx()).args == []

    @pytest.mark.parametrize(
        "options",
        ["-V2\t-DFOO=bar", "-V2\r\n-DFOO=bar", "\n-V2\n\n\t-DFOO=bar\n"],
    )
    def test_line_breaks_in_options(self, options):
        ctx = make_ctx()
        spec = build_command("makensis", options, None, ctx)
        collapsed = build_command(
            "makensis", options.replace("\t", " ").replace("\r", " ").replace("\n", " "),
            None, ctx,
        )
        assert spec.args == collapsed.args == ["makensis", "-V2", "-DFOO=bar"]

    def test_quoted_option(self):
        spec = build_command("makensis", '-DNAME="My App"', None, make_ctx())
        assert spec.args == ["makensis", "-DNAME=My App"]

    def test_options_expanded_env_then_build_vars(self):
        ctx = make_ctx(
            env={"VERSION_FLAG": "-DVERSION=$BUILD_NUMBER"},
            build_vars={"BUILD_NUMBER": "17"},
        )
        spec = build_command("makensis", "$VERSION_FLAG -V$LEVEL", None, ctx)
        assert spec.args == ["makensis", "-DVERSION=17", "-V$LEVEL"]

    def test_build_var_overrides_environment(self):
        ctx = make_ctx(env={"VERSION": "env"}, build_vars={"VERSION": "1.2"})
        spec = build_command(None, "-DVER=$VERSION", "setup-${VERSION}.nsi", ctx)
        assert spec.args == ["-DVER=1.2", "setup-1.2.nsi"]

    def test_expanded_option_value_is_tokenized(self):
        ctx = make_ctx(build_vars={"DEFINES": "-DA=1 -DB=2"})
        spec = build_command("makensis", "$DEFINES", None, ctx)
        assert spec.args == ["makensis", "-DA=1", "-DB=2"]

    def test_unterminated_quote(self):
        with pytest.raises(ConfigureError):
            build_command("makensis", '-DNAME="oops', None, make_ctx())


class TestScriptName:
    def test_script_with_spaces_is_one_argument(self):
        spec = build_command("makensis", None, "my installer.nsi", make_ctx())
        assert spec.args == ["makensis", "my installer.nsi"]

    def test_script_with_quotes_is_not_split(self):
        spec = build_command("makensis", None, "'a b' \"c\".nsi", make_ctx())
        assert spec.args == ["makensis", "'a b' \"c\".nsi"]

    def test_script_line_breaks_collapsed(self):
        spec = build_command("makensis", None, "setup\n\t.nsi", make_ctx())
        assert spec.args == ["makensis", "setup .nsi"]

    def test_expanded_script_stays_single(self):
        ctx = make_ctx(
            env={"WORKSPACE": "/build/my project"}, build_vars={"FLAVOR": "pro edition"}
        )
        spec = build_command(None, "-V2", "$WORKSPACE/${FLAVOR}.nsi", ctx)
        assert spec.args == ["-V2", "/build/my project/pro edition.nsi"]


class TestPlatformWrapping:
    def test_end_to_end_windows(self):
        spec = build_command(
            r"C:\nsis\makensis.exe",
            "-V2 -DFOO=bar",
            "installer.nsi",
            make_ctx(unix=False),
        )
        assert spec.args == [
            "cmd.exe",
            "/C",
            r"C:\nsis\makensis.exe",
            "-V2",
            "-DFOO=bar",
            "installer.nsi",
            "&&",
            "exit",
            "%%ERRORLEVEL%%",
        ]

    @pytest.mark.parametrize(
        "options,script", [("", ""), (None, None), ("-V4", None), (None, "a.nsi")]
    )
    def test_windows_always_wrapped(self, options, script):
        spec = build_command(None, options, script, make_ctx(unix=False))
        assert tuple(spec.args[:2]) == WINDOWS_SHELL_PREFIX
        assert tuple(spec.args[-3:]) == WINDOWS_EXIT_SUFFIX

    def test_posix_not_wrapped(self):
        spec = build_command("makensis", "-V4", "a.nsi", make_ctx(unix=True))
        assert "cmd.exe" not in spec.args
        assert "&&" not in spec.args

    def test_str_uses_target_shell(self):
        spec = build_command(None, None, "my setup.nsi", make_ctx(unix=False))
        assert str(spec) == 'cmd.exe /C "my setup.nsi" && exit %%ERRORLEVEL%%'


class TestEnvironment:
    def test_copy_of_context_env(self):
        ctx = make_ctx(env={"PATH": "/usr/bin"})
        spec = build_command("makensis", None, None, ctx)
        assert spec.env == {"PATH": "/usr/bin"}
        spec.env["EXTRA"] = "1"
        assert "EXTRA" not in ctx.env

    def test_tool_contributions_overlay(self):
        inst = ToolInstallation(
            "v2", "/opt/nsis", {"NSISDIR": "/opt/nsis", "PATH": "/opt/nsis/bin"}
        )
        resolved = ResolvedInstallation(inst, Node(), "/opt/nsis/makensis.exe")
        ctx = make_ctx(env={"PATH": "/usr/bin"})
        spec = build_command(resolved.executable, None, "a.nsi", ctx, resolved)
        assert spec.env == {"PATH": "/usr/bin", "NSISDIR": "/opt/nsis"}

    def test_workdir_from_context(self):
        spec = build_command(None, None, "a.nsi", make_ctx(workspace="/ws/mod"))
        assert spec.workdir == Path("/ws/mod")


class TestCommandSpec:
    def test_defaults(self):
        spec = CommandSpec(executable=None, args=["makensis"])
        assert spec.env == {}
        assert spec.unix is True
