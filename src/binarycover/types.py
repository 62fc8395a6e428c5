from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, NamedTuple

from binarycover.errors import ResolutionError


@dataclass(frozen=True)
class Module:
    """A Go package as described by `go list -json`."""

    import_path: str
    dir: str
    go_files: tuple[str, ...] = ()
    imports: tuple[str, ...] = ()
    deps: tuple[str, ...] = ()
    # map from source import to ImportPath (identity entries are omitted)
    import_map: Mapping[str, str] = field(default_factory=dict, hash=False, compare=False)

    @classmethod
    def from_go_list(cls, data: Any) -> Module:
        """Decode one `go list -json` object, rejecting anything of the wrong shape."""
        if not isinstance(data, dict):
            raise ResolutionError(f"expected a JSON object, got {type(data).__name__}")
        import_path = data.get("ImportPath")
        if not isinstance(import_path, str) or not import_path:
            raise ResolutionError("module metadata has no ImportPath")
        directory = data.get("Dir")
        if not isinstance(directory, str) or not directory:
            raise ResolutionError(f"{import_path}: module metadata has no source directory (Dir)")

        def str_list(key: str) -> tuple[str, ...]:
            value = data.get(key) or []
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise ResolutionError(f"{import_path}: {key} is not a list of strings")
            return tuple(value)

        import_map = data.get("ImportMap") or {}
        if not isinstance(import_map, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in import_map.items()
        ):
            raise ResolutionError(f"{import_path}: ImportMap is not a string map")

        return cls(
            import_path=import_path,
            dir=directory,
            go_files=str_list("GoFiles"),
            imports=str_list("Imports"),
            deps=str_list("Deps"),
            import_map=dict(import_map),
        )


class CoverageVariable(NamedTuple):
    """The coverage variable declared for one instrumented file."""

    file: str  # report name: module import path + "/" + file name
    var: str


@dataclass
class ModuleCoverage:
    """Coverage variables of one instrumented module, keyed by report name."""

    module: str
    variables: dict[str, CoverageVariable] = field(default_factory=dict)

    def add(self, variable: CoverageVariable) -> None:
        if variable.file in self.variables:
            raise ValueError(f"{variable.file} already has coverage variable {self.variables[variable.file].var}")
        self.variables[variable.file] = variable


class CoverageManifest:
    """Every instrumented module of one entry point, in instrumentation order."""

    def __init__(self, records: list[ModuleCoverage] | None = None) -> None:
        self._records: dict[str, ModuleCoverage] = {}
        for record in records or []:
            self.add(record)

    def add(self, record: ModuleCoverage) -> None:
        if record.module in self._records:
            raise ValueError(f"module {record.module} is already in the manifest")
        self._records[record.module] = record

    def __iter__(self) -> Iterator[ModuleCoverage]:
        return iter(self._records.values())

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, module: object) -> bool:
        return module in self._records

    def __getitem__(self, module: str) -> ModuleCoverage:
        return self._records[module]

    def variables(self) -> Iterator[CoverageVariable]:
        for record in self._records.values():
            yield from record.variables.values()
