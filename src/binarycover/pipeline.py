from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from binarycover.constants import COVER_VAR_PREFIX, DEFAULT_COVER_MODE, ENTRY_POINT_FILE
from binarycover.errors import EntryPointWriteError
from binarycover.harness import synthesize_harness
from binarycover.instrument import InstrumentationContext
from binarycover.merge import merge_source
from binarycover.resolver import resolve
from binarycover.syntax import parse_file
from binarycover.toolchain import GoToolchain, Toolchain

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Conf:
    go_path: str = "go"
    mode: str = DEFAULT_COVER_MODE
    var_prefix: str = COVER_VAR_PREFIX
    entry_file: str = ENTRY_POINT_FILE


def write_entry_point(path: Path, source: str) -> None:
    try:
        with open(path, "w", encoding="utf-8") as f:
            f.write(source)
    except OSError as e:
        raise EntryPointWriteError(f"Failed to replace the contents of {path}: {e}") from e


def instrument_entry(spec: str, context: InstrumentationContext, entry_file: str = ENTRY_POINT_FILE) -> Path:
    """Instrument everything reachable from the entry module `spec` and rewrite its entry point.

    The entry point is parsed before any source file is touched, so a broken
    entry point aborts the run without instrumenting anything.
    """
    resolution = resolve(context.toolchain, spec)
    entry_path = Path(resolution.dir) / entry_file
    original = parse_file(str(entry_path))

    manifest = context.instrument(resolution.modules)
    generated = synthesize_harness(manifest, resolution.entry, context.mode)

    source = merge_source(generated, original)
    write_entry_point(entry_path, source)
    logger.info(f"Replaced {entry_path} with the coverage instrumented entry point")
    return entry_path


def run(specs: list[str], conf: Conf, toolchain: Toolchain | None = None) -> list[Path]:
    """Run the pipeline for every entry module in `specs`, stopping at the first failure."""
    if toolchain is None:
        toolchain = GoToolchain(conf.go_path)
    context = InstrumentationContext(toolchain, prefix=conf.var_prefix, mode=conf.mode)
    return [instrument_entry(spec, context, conf.entry_file) for spec in specs]
