"""Before/after optimization report."""

from dataclasses import dataclass

from mobile_glb.analyzers import StructuralStats
from mobile_glb.utils.constants import STRUCTURE_KEYS, OptimizationConfig

REPORT_WIDTH = 60
BYTE_UNITS: tuple[str, ...] = ("B", "KB", "MB", "GB")


@dataclass(frozen=True)
class RunResult:
    """Measurements of one run, rendered once and then discarded."""

    original_size: int
    final_size: int
    pre_stats: StructuralStats
    post_stats: StructuralStats
    duration_ms: float


def format_bytes(size: int) -> str:
    """Format byte size with binary prefixes and two decimals."""
    if size == 0:
        return "0 B"
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(BYTE_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{value:.2f} {BYTE_UNITS[unit]}"


def format_number(num: int) -> str:
    """Grouped thousands, e.g. 12,345."""
    return f"{num:,}"


def calculate_reduction(original: int, final: int) -> str:
    """Percentage saved; N/A when the original size is zero."""
    if original == 0:
        return "N/A"
    return f"{(1 - final / original) * 100:.2f}%"


def format_diff(before: int, after: int) -> str:
    """'-' when unchanged, otherwise a signed grouped count."""
    diff = after - before
    if diff == 0:
        return "-"
    return f"{diff:+,}"


def render_report(result: RunResult, config: OptimizationConfig) -> str:
    """Render the fixed-width report for one run."""
    line = "-" * REPORT_WIDTH
    pre = result.pre_stats.as_dict()
    post = result.post_stats.as_dict()

    rows = [
        f"{key.capitalize():<18} "
        f"{format_number(pre[key]):<10} "
        f"{format_number(post[key]):<10} "
        f"{format_diff(pre[key], post[key])}"
        for key in STRUCTURE_KEYS
    ]

    lines = [
        "",
        line,
        "OPTIMIZATION REPORT",
        line,
        f"Input:  {config.input_path}",
        f"Output: {config.output_path}",
        f"Time:   {result.duration_ms / 1000:.2f}s",
        line,
        "FILE SIZE",
        f"Original:   {format_bytes(result.original_size)}",
        f"Optimized:  {format_bytes(result.final_size)}",
        f"Reduction:  {calculate_reduction(result.original_size, result.final_size)}",
        line,
        f"{'STRUCTURE':<18} {'BEFORE':<10} {'AFTER':<10} DIFF",
        *rows,
        line,
        "OPERATIONS APPLIED",
        "* Dedup: Removed duplicate accessors and textures",
        "* Prune: Removed unused graph nodes",
        f"* Resample: Textures resized to max {config.texture_resolution}px",
        f"* Compress: Converted textures to WebP (Q{config.texture_quality})",
        "* Draco: Applied geometry compression (Quantization enabled)",
        line,
        "",
    ]
    return "\n".join(lines)
