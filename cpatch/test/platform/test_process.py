"""Tests for cpatch.platform.process module."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from cpatch.core.result import Err, Ok
from cpatch.platform.process import ProcessError, run


class TestProcessError:
    def test_str_short_command(self) -> None:
        error = ProcessError(
            command=("flutter", "build"), returncode=1, stdout="", stderr="no pubspec"
        )
        assert str(error) == "flutter build failed (exit 1)"

    def test_str_long_command_truncated(self) -> None:
        error = ProcessError(
            command=("flutter", "build", "appbundle", "--release"),
            returncode=1,
            stdout="",
            stderr="",
        )
        assert str(error) == "flutter build appbundle ... failed (exit 1)"

    def test_diagnostics_prefers_stderr(self) -> None:
        error = ProcessError(("x",), 1, stdout="out\n", stderr="  err\n")
        assert error.diagnostics == "err"

    def test_diagnostics_falls_back_to_stdout(self) -> None:
        error = ProcessError(("x",), 1, stdout="out\n", stderr="")
        assert error.diagnostics == "out"

    def test_frozen(self) -> None:
        error = ProcessError(("cmd",), 1, "", "")
        with pytest.raises(AttributeError):
            error.returncode = 2  # type: ignore[misc]


class TestRun:
    def test_success_returns_stdout(self, tmp_path: Path) -> None:
        result = run([sys.executable, "-c", "print('hello')"], cwd=tmp_path)

        assert isinstance(result, Ok)
        assert "hello" in result.value

    def test_failure_returns_error(self, tmp_path: Path) -> None:
        result = run(
            [sys.executable, "-c", "import sys; sys.stderr.write('bad'); sys.exit(42)"],
            cwd=tmp_path,
        )

        assert isinstance(result, Err)
        assert result.error.returncode == 42
        assert result.error.diagnostics == "bad"

    def test_command_not_found(self, tmp_path: Path) -> None:
        result = run(["nonexistent_command_12345"], cwd=tmp_path)

        assert isinstance(result, Err)
        assert result.error.returncode == -1

    def test_timeout(self, tmp_path: Path) -> None:
        result = run(
            [sys.executable, "-c", "import time; time.sleep(5)"], cwd=tmp_path, timeout=0.2
        )

        assert isinstance(result, Err)
        assert "timed out" in result.error.stderr

    def test_env_is_layered_over_current(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("CPATCH_TEST_BASE", "base")

        result = run(
            [
                sys.executable,
                "-c",
                "import os; print(os.environ['CPATCH_TEST_BASE'], os.environ['CPATCH_TEST_EXTRA'])",
            ],
            cwd=tmp_path,
            env={"CPATCH_TEST_EXTRA": "extra"},
        )

        assert isinstance(result, Ok)
        assert result.value.strip() == "base extra"
