"""Console progress output and timing helpers for mobile-glb."""

import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

RESET = "\033[0m"
DIM = "\033[2m"
CYAN = "\033[36m"
BRIGHT_CYAN = "\033[96m"


def _supports_color() -> bool:
    isatty = getattr(sys.stdout, "isatty", None)
    return bool(isatty and isatty())


_USE_COLOR = _supports_color()


def _paint(code: str, text: str) -> str:
    return f"{code}{text}{RESET}" if _USE_COLOR else text


def dim(text: str) -> str:
    return _paint(DIM, text)


def cyan(text: str) -> str:
    return _paint(CYAN, text)


def bright_cyan(text: str) -> str:
    return _paint(BRIGHT_CYAN, text)


def log_info(msg: str) -> None:
    print(f"  {cyan('INFO')}  {msg}")


def log_step(current: int, total: int, msg: str) -> None:
    """Print a numbered progress notice, e.g. ``[2/4] Reading document...``."""
    print(f"{cyan(f'[{current}/{total}]')} {msg}")


def log_detail(msg: str, indent: int = 6) -> None:
    """Print a line nested under the current step."""
    print(" " * indent + msg)


def format_duration(seconds: float) -> str:
    """Human-readable duration (μs, ms, s or minutes)."""
    if seconds < 0.001:
        return f"{seconds * 1_000_000:.0f}μs"
    if seconds < 1:
        return f"{seconds * 1000:.1f}ms"
    if seconds < 60:
        return f"{seconds:.2f}s"
    mins, secs = divmod(seconds, 60)
    return f"{int(mins)}m {secs:.1f}s"


def format_count(count: int, singular: str, plural: str | None = None) -> str:
    """``1 texture`` / ``3 textures`` with grouped thousands."""
    word = singular if count == 1 else (plural or singular + "s")
    return f"{count:,} {word}"


@dataclass
class TimingResult:
    elapsed: float = 0.0


@contextmanager
def timed() -> Iterator[TimingResult]:
    """Measure the enclosed block; ``elapsed`` is set even when it raises."""
    result = TimingResult()
    start = time.perf_counter()
    try:
        yield result
    finally:
        result.elapsed = time.perf_counter() - start


@dataclass
class StepTimer:
    """Numbered progress notices plus a wall clock for the whole run."""

    total: int
    current: int = 0
    _started: float = field(default_factory=time.perf_counter)

    def step(self, message: str) -> None:
        """Announce the next numbered step."""
        self.current += 1
        log_step(self.current, self.total, message)

    def total_elapsed(self) -> float:
        """Seconds since the timer was created."""
        return time.perf_counter() - self._started
