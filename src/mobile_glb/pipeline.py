"""Pipeline driver: load, transform, write and report one GLB."""

import os
from pathlib import Path

from mobile_glb.analyzers import analyze_document
from mobile_glb.document import SceneDocument
from mobile_glb.errors import InputNotFoundError, LoadError, TransformError, WriteError
from mobile_glb.report import RunResult, render_report
from mobile_glb.transforms import GeometryCodec, Stage, build_stages
from mobile_glb.utils.constants import DRACO_EXTENSION, OptimizationConfig
from mobile_glb.utils.gltf_transform import DracoCodec
from mobile_glb.utils.logging import (
    StepTimer,
    bright_cyan,
    dim,
    format_duration,
    log_detail,
    log_info,
    timed,
)

TOTAL_STEPS = 4


def _load(input_path: Path) -> tuple[SceneDocument, int]:
    """Measure the untouched input, then parse it."""
    original_size = os.path.getsize(input_path)
    try:
        document = SceneDocument.read(input_path)
    except Exception as e:
        raise LoadError(str(e)) from e
    return document, original_size


def _run_stages(document: SceneDocument, stages: list[Stage]) -> None:
    """Apply every stage in order; the first failure aborts the rest."""
    for stage in stages:
        try:
            with timed() as t:
                outcome = stage.apply(document)
        except Exception as e:
            raise TransformError(stage.name, str(e)) from e
        log_detail(
            f"{stage.name}: {stage.describe(outcome)} "
            f"{dim(f'({format_duration(t.elapsed)})')}"
        )


def _write(document: SceneDocument, output_path: Path) -> int:
    """Write the document and return the size persisted on disk."""
    try:
        document.write(output_path)
        return os.path.getsize(output_path)
    except Exception as e:
        raise WriteError(str(e)) from e


def run_pipeline(
    config: OptimizationConfig, codec: GeometryCodec | None = None
) -> RunResult:
    """
    Optimize config.input_path into config.output_path and print the report.

    Args:
        config: Run configuration
        codec: Draco codec; acquired from PATH when omitted

    Returns:
        Sizes, structural stats and duration of the run.

    Raises:
        InputNotFoundError: input path does not exist
        LoadError, TransformError, WriteError: failure in that stage
        CodecUnavailableError: no Draco encoder could be initialized
    """
    step = StepTimer(total=TOTAL_STEPS)
    step.step("Initializing optimization pipeline...")

    input_path = config.input_path.resolve()
    output_path = config.output_path.resolve()
    if not input_path.is_file():
        raise InputNotFoundError(str(input_path))

    if codec is None:
        codec = DracoCodec.acquire()
    stages = build_stages(config, codec)

    step.step("Reading document...")
    document, original_size = _load(input_path)
    if document.uses_extension(DRACO_EXTENSION):
        log_info("Input is already Draco-compressed; geometry will be re-encoded")
    pre_stats = analyze_document(document)

    step.step("Processing assets (this may take a moment)...")
    _run_stages(document, stages)
    post_stats = analyze_document(document)

    step.step("Writing to disk...")
    final_size = _write(document, output_path)
    log_detail(f"{output_path} {bright_cyan(f'({final_size:,} bytes)')}")

    result = RunResult(
        original_size=original_size,
        final_size=final_size,
        pre_stats=pre_stats,
        post_stats=post_stats,
        duration_ms=step.total_elapsed() * 1000,
    )
    print(render_report(result, config))
    return result
