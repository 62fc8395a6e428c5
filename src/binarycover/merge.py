from __future__ import annotations

import copy
import logging

from binarycover.errors import MergeError
from binarycover.syntax import ProgramUnit, print_unit

logger = logging.getLogger(__name__)


def merge_units(generated: ProgramUnit, original: ProgramUnit) -> ProgramUnit:
    """Merge `original` into `generated` and return the result as a new unit.

    The import specs of every import declaration of `original` are appended to
    the first import declaration of `generated`, then the declarations of
    `original` follow those of `generated` in their original order. The merging
    is naive: duplicate imports or colliding names are passed through and left
    for the compiler to report. Neither input is modified.
    """
    if not generated.imports:
        raise MergeError("the generated unit has no import declaration to merge into")
    if not original.imports:
        raise MergeError("the original unit has no import declaration to merge from")

    merged = copy.deepcopy(generated)
    anchor = merged.imports[0]
    for group in original.imports:
        anchor.specs.extend(copy.deepcopy(group.specs))
    merged.declarations.extend(copy.deepcopy(original.declarations))
    merged.header = "\n\n".join(part for part in (generated.header, original.header) if part)
    merged.trailer = "\n\n".join(part for part in (generated.trailer, original.trailer) if part)

    logger.debug(
        f"Merged {len(original.import_specs)} import(s) and {len(original.declarations)} declaration(s) "
        f"into the generated unit"
    )
    return merged


def merge_source(generated: ProgramUnit, original: ProgramUnit) -> str:
    """Merge the two units and print the result as Go source."""
    return print_unit(merge_units(generated, original))
