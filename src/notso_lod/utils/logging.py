"""Colored console output and timing utilities for notso-lod."""

import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass


class Colors:
    """ANSI escape codes for terminal colors."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    GREEN = "\033[32m"
    CYAN = "\033[36m"

    BRIGHT_RED = "\033[91m"
    BRIGHT_GREEN = "\033[92m"
    BRIGHT_YELLOW = "\033[93m"
    BRIGHT_CYAN = "\033[96m"


def _supports_color() -> bool:
    """Check if stdout is a color-capable terminal."""
    isatty = getattr(sys.stdout, "isatty", None)
    return bool(isatty and isatty())


_USE_COLOR = _supports_color()


def _c(color: str, text: str) -> str:
    if not _USE_COLOR:
        return text
    return f"{color}{text}{Colors.RESET}"


def bold(text: str) -> str:
    return _c(Colors.BOLD, text)


def dim(text: str) -> str:
    return _c(Colors.DIM, text)


def green(text: str) -> str:
    return _c(Colors.GREEN, text)


def cyan(text: str) -> str:
    return _c(Colors.CYAN, text)


def bright_green(text: str) -> str:
    return _c(Colors.BRIGHT_GREEN, text)


def bright_yellow(text: str) -> str:
    return _c(Colors.BRIGHT_YELLOW, text)


def bright_red(text: str) -> str:
    return _c(Colors.BRIGHT_RED, text)


def bright_cyan(text: str) -> str:
    return _c(Colors.BRIGHT_CYAN, text)


# Log lines share a right-aligned six character tag column
def log_info(msg: str) -> None:
    """Print info message."""
    print(f"  {cyan('INFO')}  {msg}")


def log_ok(msg: str) -> None:
    """Print success message."""
    print(f"    {bright_green('OK')}  {msg}")


def log_warn(msg: str) -> None:
    """Print warning message."""
    print(f"  {bright_yellow('WARN')}  {msg}")


def log_error(msg: str) -> None:
    """Print error message."""
    print(f" {bright_red('ERROR')}  {msg}")


def log_step(current: int, total: int, msg: str) -> None:
    """Print step progress message."""
    step_str = f"[{current}/{total}]"
    print(f"\n{cyan(step_str)} {msg}")


def log_detail(msg: str, indent: int = 6) -> None:
    """Print indented detail message."""
    print(f"{' ' * indent}{msg}")


def log_timing(msg: str, seconds: float) -> None:
    """Print timing message with formatted duration."""
    print(f"  {dim('TIME')}  {msg}: {bright_cyan(format_duration(seconds))}")


def print_header(title: str, char: str = "=", width: int = 60) -> None:
    """Print a header with decorative borders."""
    border = char * width
    print(f"\n{cyan(border)}")
    print(f"  {bold(title)}")
    print(f"{cyan(border)}")


def print_section(title: str, char: str = "-", width: int = 60) -> None:
    """Print a section header."""
    border = char * width
    print(f"\n{dim(border)}")
    print(f"  {title}")
    print(f"{dim(border)}")


def format_duration(seconds: float) -> str:
    """Format seconds into human-readable duration."""
    if seconds < 0.001:
        return f"{seconds * 1000000:.0f}μs"
    elif seconds < 1:
        return f"{seconds * 1000:.1f}ms"
    elif seconds < 60:
        return f"{seconds:.2f}s"
    mins = int(seconds // 60)
    return f"{mins}m {seconds % 60:.1f}s"


@dataclass
class TimingResult:
    """Result from a timed operation."""

    elapsed: float
    message: str


@contextmanager
def timed(description: str, print_on_exit: bool = True) -> Iterator[TimingResult]:
    """Context manager for timing operations.

    Usage:
        with timed("Simplifying meshes") as t:
            do_work()

        with timed("Dedup", print_on_exit=False) as t:
            do_work()
        log_detail(format_duration(t.elapsed))
    """
    result = TimingResult(elapsed=0.0, message=description)
    start = time.perf_counter()
    try:
        yield result
    finally:
        result.elapsed = time.perf_counter() - start
        if print_on_exit:
            log_timing(description, result.elapsed)


class StepTimer:
    """Track timing for the steps of a pipeline run."""

    def __init__(self, total_steps: int) -> None:
        self.total = total_steps
        self.current = 0
        self.timings: list[tuple[str, float]] = []
        self._step_start: float = 0.0
        self._total_start: float = time.perf_counter()

    def _close_step(self, now: float) -> None:
        if self._step_start > 0 and self.timings:
            name = self.timings[-1][0]
            self.timings[-1] = (name, now - self._step_start)

    def step(self, message: str) -> None:
        """Start a new step, recording timing for the previous one."""
        now = time.perf_counter()
        self._close_step(now)
        self.current += 1
        self._step_start = now
        self.timings.append((message, 0.0))
        log_step(self.current, self.total, message)

    def finish(self) -> None:
        """Record timing for the final step."""
        self._close_step(time.perf_counter())
        self._step_start = 0.0

    def total_elapsed(self) -> float:
        """Elapsed time since the timer was created."""
        return time.perf_counter() - self._total_start

    def final_message(self, message: str, success: bool = True) -> None:
        """Print the closing status line of the run."""
        if success:
            print(f"\n{bright_green('DONE')}  {bold(message)}")
        else:
            print(f"\n{bright_red('FAIL')}  {bold(message)}")

    def print_summary(self) -> None:
        """Print timing summary for all steps."""
        print_section("Timing Summary", char="-", width=50)
        for name, elapsed in self.timings:
            padding = 40 - len(name)
            print(f"  {name}{' ' * max(1, padding)}{bright_cyan(format_duration(elapsed))}")
        print(f"{dim('-' * 50)}")
        total = format_duration(self.total_elapsed())
        print(f"  {bold('Total')}{' ' * 35}{bright_green(total)}")


def format_count(count: int, singular: str, plural: str | None = None) -> str:
    """Format count with proper singular/plural form."""
    if plural is None:
        plural = singular + "s"
    word = singular if count == 1 else plural
    return f"{count:,} {word}"


def format_bytes(size: int) -> str:
    """Format byte size in human-readable form."""
    if size < 1024:
        return f"{size} B"
    elif size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    elif size < 1024 * 1024 * 1024:
        return f"{size / 1024 / 1024:.2f} MB"
    return f"{size / 1024 / 1024 / 1024:.2f} GB"
