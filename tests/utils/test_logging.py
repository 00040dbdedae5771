"""Tests for console logging helpers."""

import pytest


class TestFormatters:
    """Tests for the format_* helpers."""

    def test_format_duration(self) -> None:
        from notso_lod.utils.logging import format_duration

        assert format_duration(0.0005) == "500μs"
        assert format_duration(0.25) == "250.0ms"
        assert format_duration(1.5) == "1.50s"
        assert format_duration(75) == "1m 15.0s"

    def test_format_count(self) -> None:
        from notso_lod.utils.logging import format_count

        assert format_count(1, "node") == "1 node"
        assert format_count(2, "node") == "2 nodes"
        assert format_count(2, "mesh", "meshes") == "2 meshes"

    def test_format_bytes(self) -> None:
        from notso_lod.utils.logging import format_bytes

        assert format_bytes(512) == "512 B"
        assert format_bytes(2048) == "2.0 KB"
        assert format_bytes(3 * 1024 * 1024) == "3.00 MB"


class TestStepTimer:
    """Tests for StepTimer."""

    def test_steps_numbered(self, capsys: pytest.CaptureFixture[str]) -> None:
        from notso_lod.utils.logging import StepTimer

        step = StepTimer(total_steps=2)
        step.step("Reading")
        step.step("Writing")
        step.finish()

        out = capsys.readouterr().out
        assert "[1/2] Reading" in out
        assert "[2/2] Writing" in out
        assert [name for name, _ in step.timings] == ["Reading", "Writing"]

    def test_final_message(self, capsys: pytest.CaptureFixture[str]) -> None:
        from notso_lod.utils.logging import StepTimer

        step = StepTimer(total_steps=1)
        step.final_message("LOD generation FAILED", success=False)
        assert "FAIL" in capsys.readouterr().out


class TestTimed:
    """Tests for the timed context manager."""

    def test_records_elapsed(self) -> None:
        from notso_lod.utils.logging import timed

        with timed("work", print_on_exit=False) as t:
            pass
        assert t.elapsed >= 0.0
        assert t.message == "work"


class TestLogLines:
    """Tests for the tagged log_* lines."""

    def test_tags(self, capsys: pytest.CaptureFixture[str]) -> None:
        from notso_lod.utils.logging import log_error, log_info, log_ok, log_warn

        log_info("reading")
        log_ok("written")
        log_warn("dropped")
        log_error("broken")

        lines = capsys.readouterr().out.splitlines()
        assert lines == [
            "  INFO  reading",
            "    OK  written",
            "  WARN  dropped",
            " ERROR  broken",
        ]
