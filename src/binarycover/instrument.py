"""Per-file coverage instrumentation of Go modules.

Instrumentation rewrites the source files **in place**. Nothing is backed up
and nothing is rolled back when a later file fails, so the sources must be
under version control before running the tool.
"""

from __future__ import annotations

import itertools
import logging
import shutil
import tempfile
from collections.abc import Iterable
from pathlib import Path

from binarycover.constants import COVER_VAR_PREFIX, DEFAULT_COVER_MODE
from binarycover.errors import InstrumentationError
from binarycover.toolchain import Toolchain
from binarycover.types import CoverageManifest, CoverageVariable, ModuleCoverage

logger = logging.getLogger(__name__)


def replace_file_contents(src: Path, dst: Path) -> None:
    """Overwrite the contents of `dst` with those of `src`, keeping `dst`'s permissions."""
    try:
        shutil.copyfile(src, dst)
    except OSError as e:
        raise InstrumentationError(f"Failed to replace {dst} with its instrumented version: {e}") from e


class InstrumentationContext:
    """Owns the coverage variable counter for one run.

    Identifiers are `<prefix><N>` with N drawn from a single counter that is
    never reset, so they are unique across every module and entry point
    instrumented through the same context. A module is rewritten at most once;
    asking for it again returns the record made the first time.
    """

    def __init__(
        self,
        toolchain: Toolchain,
        prefix: str = COVER_VAR_PREFIX,
        mode: str = DEFAULT_COVER_MODE,
    ) -> None:
        self.toolchain = toolchain
        self.prefix = prefix
        self.mode = mode
        self._counter = itertools.count(1)
        self._instrumented: dict[str, ModuleCoverage] = {}

    def next_variable_name(self) -> str:
        return f"{self.prefix}{next(self._counter)}"

    def instrument_module(self, import_path: str) -> ModuleCoverage:
        """Instrument every Go file of the module and return its coverage record."""
        if import_path in self._instrumented:
            logger.info(f"Module {import_path} is already instrumented, reusing its coverage variables")
            return self._instrumented[import_path]

        module = self.toolchain.list_module(import_path)
        record = ModuleCoverage(module=module.import_path)
        with tempfile.TemporaryDirectory(prefix="binarycover-") as tdir:
            for name in module.go_files:
                source = Path(module.dir) / name
                staged = Path(tdir) / name
                variable = CoverageVariable(file=f"{module.import_path}/{name}", var=self.next_variable_name())
                try:
                    self.toolchain.instrument_file(source, staged, variable.var, self.mode)
                except InstrumentationError as e:
                    raise InstrumentationError(f"Failed to instrument {variable.file} in {import_path}: {e}") from e
                replace_file_contents(staged, source)
                record.add(variable)
                logger.info(f"Instrumented {variable.file} as {variable.var}")

        self._instrumented[import_path] = record
        return record

    def instrument(self, modules: Iterable[str]) -> CoverageManifest:
        """Instrument `modules` in order and collect their records into a manifest."""
        manifest = CoverageManifest()
        for import_path in modules:
            record = self.instrument_module(import_path)
            if record.module not in manifest:
                manifest.add(record)
        return manifest
