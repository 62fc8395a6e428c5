from __future__ import annotations

from pathlib import Path

import pytest

from binarycover.errors import InstrumentationError, ResolutionError
from binarycover.types import Module

MAIN_GO = """\
// Copyright 2020 Demo Authors

package main

import (
	"fmt"

	"demo/app/lib"
)

// main prints the answer.
func main() {
	fmt.Println(lib.Answer())
}
"""

LIB_GO = """\
package lib

func Answer() int {
	return 42
}
"""

COVER_STRUCT = """
var {var} = struct {{
	Count   [1]uint32
	Pos     [3 * 1]uint32
	NumStmt [1]uint16
}}{{Pos: [3 * 1]uint32{{3, 5, 0x2000f}}, NumStmt: [1]uint16{{1}}}}
"""


class FakeToolchain:
    """Deterministic stand-in for `go list` and `go tool cover`."""

    def __init__(self, modules: list[Module], fail_on: set[str] | None = None) -> None:
        self.modules = {module.import_path: module for module in modules}
        self.fail_on = fail_on or set()
        self.listed: list[str] = []
        self.instrumented: list[tuple[Path, Path, str, str]] = []

    def list_module(self, spec: str) -> Module:
        self.listed.append(spec)
        try:
            return self.modules[spec]
        except KeyError:
            raise ResolutionError(f"`go list -json {spec}` failed: package {spec} is not in std") from None

    def instrument_file(self, source: Path, output: Path, var: str, mode: str = "set") -> None:
        if source.name in self.fail_on:
            raise InstrumentationError(f"go tool cover {source} failed. Output: {source.name}:1:1: expected 'package'")
        self.instrumented.append((source, output, var, mode))
        output.write_text(source.read_text() + COVER_STRUCT.format(var=var))


def make_module(import_path: str, directory: Path, files: list[str], **kwargs) -> Module:
    return Module(import_path=import_path, dir=str(directory), go_files=tuple(files), **kwargs)


@pytest.fixture
def demo_project(tmp_path):
    """The demo/app entry module depending on demo/app/lib."""
    app = tmp_path / "app"
    lib = app / "lib"
    lib.mkdir(parents=True)
    (app / "main.go").write_text(MAIN_GO)
    (lib / "lib.go").write_text(LIB_GO)

    entry = make_module(
        "demo/app",
        app,
        ["main.go"],
        imports=("demo/app/lib", "fmt"),
        deps=("demo/app/lib", "errors", "fmt", "io", "os"),
    )
    return FakeToolchain([entry, make_module("demo/app/lib", lib, ["lib.go"])])
