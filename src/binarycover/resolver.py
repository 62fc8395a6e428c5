from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from binarycover.constants import VENDOR_SEGMENT
from binarycover.toolchain import Toolchain
from binarycover.types import Module

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resolution:
    """What the pipeline needs to know about one entry module."""

    entry: Module
    modules: list[str]  # internal modules to instrument, in discovery order

    @property
    def dir(self) -> str:
        return self.entry.dir


def internal_modules(deps: Iterable[str], import_path: str) -> list[str]:
    """Keep the dependencies that live under `import_path` and are not vendored."""
    return [dep for dep in deps if import_path in dep and VENDOR_SEGMENT not in dep]


def resolve(toolchain: Toolchain, spec: str) -> Resolution:
    """List the internal modules reachable from the entry module `spec`.

    Raises ResolutionError when the dependency listing fails.
    """
    entry = toolchain.list_module(spec)
    modules = internal_modules(entry.deps, entry.import_path)
    logger.info(f"Resolved {len(modules)} internal module(s) for {entry.import_path}")
    for module in modules:
        logger.debug(f"  {module}")
    return Resolution(entry=entry, modules=modules)
