"""External tools the pipeline delegates to.

`Toolchain` is the narrow capability the resolver and the orchestrator depend
on. `GoToolchain` implements it by shelling out to the Go command; tests
substitute an in-memory fake.
"""

from __future__ import annotations

import json
import logging
import subprocess
from pathlib import Path
from typing import Protocol

from binarycover.constants import DEFAULT_COVER_MODE
from binarycover.errors import InstrumentationError, ResolutionError
from binarycover.types import Module

logger = logging.getLogger(__name__)


class Toolchain(Protocol):
    def list_module(self, spec: str) -> Module:
        """Return the metadata of the module named by `spec`."""
        ...

    def instrument_file(self, source: Path, output: Path, var: str, mode: str = DEFAULT_COVER_MODE) -> None:
        """Write an instrumented copy of `source` to `output`, declaring its counters as `var`."""
        ...


class GoToolchain:
    def __init__(self, go_path: str = "go") -> None:
        self.go_path = go_path

    def list_module(self, spec: str) -> Module:
        args = [self.go_path, "list", "-json", spec]
        logger.debug(f"Running {' '.join(args)}")
        try:
            ret = subprocess.run(args, check=False, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
        except OSError as e:
            raise ResolutionError(f"`go list -json {spec}` could not be started: {e}") from e
        if ret.returncode != 0:
            stderr = ret.stderr.decode("utf-8", errors="replace").strip()
            raise ResolutionError(f"`go list -json {spec}` failed (return code: {ret.returncode}): {stderr}")

        try:
            data = json.loads(ret.stdout.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ResolutionError(f"`go list -json {spec}` returned undecodable output: {e}") from e
        return Module.from_go_list(data)

    def instrument_file(self, source: Path, output: Path, var: str, mode: str = DEFAULT_COVER_MODE) -> None:
        args = [self.go_path, "tool", "cover", f"-mode={mode}", "-var", var, "-o", str(output), str(source)]
        logger.debug(f"Running {' '.join(args)}")
        try:
            ret = subprocess.run(args, check=False, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
        except OSError as e:
            raise InstrumentationError(f"go tool cover {source} could not be started: {e}") from e
        if ret.returncode != 0:
            output_text = ret.stderr.decode("utf-8", errors="replace").strip()
            raise InstrumentationError(
                f"go tool cover {source} failed (return code: {ret.returncode}). Output: {output_text}"
            )
