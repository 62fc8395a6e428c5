"""Coverage profiles written by the generated report routine.

Every run of an instrumented binary writes one profile::

    <file>:<startLine>.<startCol>,<endLine>.<endCol> <numStatements> <execCount>
    ...
    coverage: <percent>% of statements

This module reads those files back, recomputes their summary line and merges
the profiles of several runs into one.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from typing import NamedTuple, TextIO

from binarycover.errors import ProfileError

logger = logging.getLogger(__name__)

NO_STATEMENTS = "coverage: [no statements]"

_BLOCK_RE = re.compile(r"^(?P<file>.+):(\d+)\.(\d+),(\d+)\.(\d+) (\d+) (\d+)$")
_SUMMARY_RE = re.compile(r"^coverage: (\[no statements\]|\d+\.\d% of statements)$")


class BlockKey(NamedTuple):
    file: str
    line0: int
    col0: int
    line1: int
    col1: int


class ProfileBlock(NamedTuple):
    file: str
    line0: int
    col0: int
    line1: int
    col1: int
    stmts: int
    count: int

    @property
    def key(self) -> BlockKey:
        return BlockKey(self.file, self.line0, self.col0, self.line1, self.col1)


def format_block(block: ProfileBlock) -> str:
    return f"{block.file}:{block.line0}.{block.col0},{block.line1}.{block.col1} {block.stmts} {block.count}"


def format_summary(blocks: Iterable[ProfileBlock]) -> str:
    """Summary line with the share of statements in blocks executed at least once."""
    active = total = 0
    for block in blocks:
        total += block.stmts
        if block.count > 0:
            active += block.stmts
    if total == 0:
        return NO_STATEMENTS
    return f"coverage: {100 * active / total:.1f}% of statements"


def parse_profile(lines: Iterable[str], name: str = "<profile>") -> list[ProfileBlock]:
    """Parse the block lines of a profile; summary lines are validated and skipped."""
    blocks = []
    for lineno, line in enumerate(lines, start=1):
        line = line.rstrip("\n")
        if not line or _SUMMARY_RE.match(line):
            continue
        match = _BLOCK_RE.match(line)
        if match is None:
            raise ProfileError(f"{name}:{lineno}: not a coverage profile line: {line!r}")
        file, *numbers = match.groups()
        blocks.append(ProfileBlock(file, *(int(n) for n in numbers)))
    return blocks


def read_profile(path: str) -> list[ProfileBlock]:
    try:
        with open(path, encoding="utf-8") as f:
            return parse_profile(f, path)
    except OSError as e:
        raise ProfileError(f"Failed to read the coverage profile {path}: {e}") from e


def merge_profiles(profiles: Iterable[list[ProfileBlock]]) -> list[ProfileBlock]:
    """Merge profiles by summing the execution counts of identical blocks.

    Blocks keep the order in which they are first seen.
    """
    merged: dict[BlockKey, ProfileBlock] = {}
    for blocks in profiles:
        for block in blocks:
            seen = merged.get(block.key)
            if seen is None:
                merged[block.key] = block
                continue
            if seen.stmts != block.stmts:
                raise ProfileError(
                    f"{format_block(block)}: statement count differs from an earlier profile ({seen.stmts})"
                )
            merged[block.key] = seen._replace(count=seen.count + block.count)
    return list(merged.values())


def write_profile(blocks: list[ProfileBlock], out: TextIO) -> None:
    for block in blocks:
        out.write(format_block(block) + "\n")
    out.write(format_summary(blocks) + "\n")
