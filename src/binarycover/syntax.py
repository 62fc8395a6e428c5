"""Go program units: parsing with tree-sitter and printing back to source.

A ProgramUnit only models what the merge works on: the package clause, the
import declarations and the top-level declarations. Declarations are kept as
verbatim source text, together with the comments directly above them, so
printing never rewrites a function body.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import tree_sitter_go
from tree_sitter import Language, Node, Parser

from binarycover.errors import ParseError

logger = logging.getLogger(__name__)

GO_LANGUAGE = Language(tree_sitter_go.language())

_parser = Parser(GO_LANGUAGE)


@dataclass
class ImportSpec:
    path: str
    name: str | None = None  # alias, "_" or "."
    doc: str = ""  # comment lines above the spec
    comment: str = ""  # comment trailing the spec on the same line

    def render(self) -> str:
        spec = f'"{self.path}"' if self.name is None else f'{self.name} "{self.path}"'
        return f"{spec} {self.comment}" if self.comment else spec


@dataclass
class ImportGroup:
    specs: list[ImportSpec] = field(default_factory=list)
    doc: str = ""


@dataclass
class Declaration:
    kind: str  # tree-sitter node type, e.g. "function_declaration"
    text: str
    name: str | None = None


@dataclass
class ProgramUnit:
    package: str
    imports: list[ImportGroup] = field(default_factory=list)
    declarations: list[Declaration] = field(default_factory=list)
    header: str = ""  # comments above the package clause
    trailer: str = ""  # comments below the last declaration

    @property
    def import_specs(self) -> list[ImportSpec]:
        return [spec for group in self.imports for spec in group.specs]

    def declaration(self, name: str) -> Declaration | None:
        for decl in self.declarations:
            if decl.name == name:
                return decl
        return None


def _first_error(node: Node) -> Node | None:
    if node.type == "ERROR" or node.is_missing:
        return node
    for child in node.children:
        if child.has_error:
            found = _first_error(child)
            if found is not None:
                return found
    return None


class _UnitBuilder:
    def __init__(self, source: bytes, filename: str) -> None:
        self.source = source
        self.filename = filename

    def text(self, start: int, end: int) -> str:
        return self.source[start:end].decode("utf-8")

    def node_text(self, node: Node) -> str:
        return self.text(node.start_byte, node.end_byte)

    def comments_text(self, comments: list[Node]) -> str:
        return self.text(comments[0].start_byte, comments[-1].end_byte) if comments else ""

    def build(self, root: Node) -> ProgramUnit:
        package: str | None = None
        header = ""
        imports: list[ImportGroup] = []
        declarations: list[Declaration] = []
        pending: list[Node] = []
        last_decl: Declaration | None = None
        last_row = -1

        for child in root.children:
            if not child.is_named:
                continue
            if child.type == "comment":
                if last_decl is not None and child.start_point[0] == last_row and not pending:
                    last_decl.text += " " + self.node_text(child)
                else:
                    pending.append(child)
                continue

            doc = self.comments_text(pending)
            start = pending[0].start_byte if pending else child.start_byte
            pending = []
            last_decl = None
            last_row = child.end_point[0]

            if child.type == "package_clause":
                header = doc
                package = self.package_name(child)
            elif child.type == "import_declaration":
                imports.append(self.import_group(child, doc))
            else:
                last_decl = Declaration(
                    kind=child.type,
                    text=self.text(start, child.end_byte),
                    name=self.declaration_name(child),
                )
                declarations.append(last_decl)

        if package is None:
            raise ParseError(f"Failed to parse {self.filename}: no package clause")

        return ProgramUnit(
            package=package,
            imports=imports,
            declarations=declarations,
            header=header,
            trailer=self.comments_text(pending),
        )

    def package_name(self, node: Node) -> str:
        for child in node.named_children:
            if child.type == "package_identifier":
                return self.node_text(child)
        raise ParseError(f"Failed to parse {self.filename}: package clause has no name")

    def import_group(self, node: Node, doc: str) -> ImportGroup:
        group = ImportGroup(doc=doc)
        for child in node.named_children:
            if child.type == "import_spec":
                group.specs.append(self.import_spec(child))
            elif child.type == "import_spec_list":
                self.import_spec_list(child, group)
            elif child.type == "comment":
                logger.debug(f"{self.filename}: dropping comment inside import keyword: {self.node_text(child)}")
        return group

    def import_spec_list(self, node: Node, group: ImportGroup) -> None:
        pending: list[str] = []
        last_row = -1
        for child in node.named_children:
            if child.type == "comment":
                if group.specs and child.start_point[0] == last_row and not pending:
                    group.specs[-1].comment = self.node_text(child)
                else:
                    pending.append(self.node_text(child))
            elif child.type == "import_spec":
                group.specs.append(self.import_spec(child, doc="\n".join(pending)))
                pending = []
                last_row = child.end_point[0]
        if pending:
            logger.debug(f"{self.filename}: dropping trailing comments in import list: {pending}")

    def import_spec(self, node: Node, doc: str = "") -> ImportSpec:
        path_node = node.child_by_field_name("path")
        if path_node is None:
            line = node.start_point[0] + 1
            raise ParseError(f"Failed to parse {self.filename}: import without a path at line {line}")
        name_node = node.child_by_field_name("name")
        return ImportSpec(
            path=self.node_text(path_node)[1:-1],
            name=self.node_text(name_node) if name_node is not None else None,
            doc=doc,
        )

    def declaration_name(self, node: Node) -> str | None:
        name = node.child_by_field_name("name")
        if name is not None:
            return self.node_text(name)
        # type, var and const declarations: name of the first spec
        for child in node.named_children:
            if child.type.endswith("_list"):
                found = self.declaration_name(child)
                if found is not None:
                    return found
            elif child.type.endswith("_spec") or child.type == "type_alias":
                name = child.child_by_field_name("name")
                if name is not None:
                    return self.node_text(name)
        return None


def parse_unit(source: str | bytes, filename: str = "<source>") -> ProgramUnit:
    """Parse Go source text into a ProgramUnit.

    Raises ParseError if the source has any syntax error.
    """
    if isinstance(source, str):
        data = source.encode("utf-8")
    else:
        data = source
        try:
            data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ParseError(f"Failed to parse {filename}: not valid UTF-8: {e}") from e
    tree = _parser.parse(data)
    root = tree.root_node
    if root.has_error:
        error = _first_error(root)
        where = f"line {error.start_point[0] + 1}, column {error.start_point[1] + 1}" if error else "unknown position"
        raise ParseError(f"Failed to parse {filename}: syntax error at {where}")
    return _UnitBuilder(data, filename).build(root)


def parse_file(path: str, filename: str | None = None) -> ProgramUnit:
    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as e:
        raise ParseError(f"Failed to read {path}: {e}") from e
    return parse_unit(data, filename or path)


def _print_import_group(group: ImportGroup) -> str:
    lines = [group.doc] if group.doc else []
    lines.append("import (")
    for spec in group.specs:
        lines.extend(f"\t{line.strip()}" for line in spec.doc.splitlines())
        lines.append(f"\t{spec.render()}")
    lines.append(")")
    return "\n".join(lines)


def print_unit(unit: ProgramUnit) -> str:
    """Serialize a ProgramUnit back to Go source text."""
    parts = []
    if unit.header:
        parts.append(unit.header)
    parts.append(f"package {unit.package}")
    parts.extend(_print_import_group(group) for group in unit.imports)
    parts.extend(decl.text for decl in unit.declarations)
    if unit.trailer:
        parts.append(unit.trailer)
    return "\n\n".join(parts) + "\n"
