"""Tests for cpatch.output.console module."""

from __future__ import annotations

import pytest

from cpatch.output.console import ConsoleProtocol, MockConsole, RichConsole, Style


class TestMockConsole:
    def test_print_captures_message(self) -> None:
        console = MockConsole()
        console.print("hello")
        assert console.outputs[0].message == "hello"
        assert console.outputs[0].style == Style.DEFAULT

    def test_prefixed_levels(self) -> None:
        console = MockConsole()
        console.success("Published Patch!")
        console.error("boom")
        console.warning("careful")

        assert console.messages == ["OK Published Patch!", "error: boom", "warning: careful"]
        assert console.has_error()
        assert console.has_warning()

    def test_info_and_detail(self) -> None:
        console = MockConsole()
        console.info("Building patch")
        console.detail("Creating artifact for lib/arm64-v8a/libapp.so")

        assert console.outputs[0].style == Style.INFO
        assert console.outputs[1].style == Style.DIM
        assert console.text.startswith("Building patch\n")

    def test_find(self) -> None:
        console = MockConsole()
        console.info("arm32 patch artifact already exists, continuing...")
        console.info("Aborting.")

        assert len(console.find("already exists")) == 1
        assert console.find("nothing") == []

    def test_satisfies_protocol(self) -> None:
        console: ConsoleProtocol = MockConsole()
        console.header("Ready to publish a new patch!")
        console.newline()


class TestRichConsole:
    def test_info_is_printed(self, capsys: pytest.CaptureFixture[str]) -> None:
        RichConsole().info("Verifying patch can be applied to release")
        assert "Verifying patch can be applied to release" in capsys.readouterr().out

    def test_detail_hidden_unless_verbose(self, capsys: pytest.CaptureFixture[str]) -> None:
        RichConsole().detail("quiet")
        assert "quiet" not in capsys.readouterr().out

        RichConsole(verbose=True).detail("loud")
        assert "loud" in capsys.readouterr().out

    def test_print_does_not_interpret_markup(self, capsys: pytest.CaptureFixture[str]) -> None:
        RichConsole().print("[arm32 (1.0 KB)]", Style.DIM)
        assert "[arm32 (1.0 KB)]" in capsys.readouterr().out
