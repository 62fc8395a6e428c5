import pytest

from binarycover.errors import ParseError
from binarycover.syntax import ImportGroup, ImportSpec, ProgramUnit, parse_file, parse_unit, print_unit

from conftest import MAIN_GO

SOURCE = """\
//go:build linux

// Package main is the daemon.
package main

import "errors"

import (
	// logging
	log "github.com/sirupsen/logrus"
	_ "embed" // embedded assets
	. "strings"
)

// Version is set at build time.
var Version = "dev"

type (
	server struct{}
	client struct{}
)

const answer = 42

func (s *server) Run() error { return errors.New("not implemented") } // TODO remove

/* main starts the daemon. */
func main() {
	// comments inside bodies are kept
	s := &server{}
	if err := s.Run(); err != nil {
		log.Fatal(ToUpper(err.Error()))
	}
}

// trailing comment
"""


class TestParseUnit:
    def test_package_and_header(self):
        unit = parse_unit(SOURCE)
        assert unit.package == "main"
        assert unit.header == "//go:build linux\n\n// Package main is the daemon."
        assert unit.trailer == "// trailing comment"

    def test_imports(self):
        unit = parse_unit(SOURCE)
        assert len(unit.imports) == 2
        assert [(spec.name, spec.path) for spec in unit.import_specs] == [
            (None, "errors"),
            ("log", "github.com/sirupsen/logrus"),
            ("_", "embed"),
            (".", "strings"),
        ]
        logrus, embed = unit.imports[1].specs[:2]
        assert logrus.doc == "// logging"
        assert embed.comment == "// embedded assets"

    def test_declarations(self):
        unit = parse_unit(SOURCE)
        assert [(d.kind, d.name) for d in unit.declarations] == [
            ("var_declaration", "Version"),
            ("type_declaration", "server"),
            ("const_declaration", "answer"),
            ("method_declaration", "Run"),
            ("function_declaration", "main"),
        ]

    def test_declaration_text_is_verbatim(self):
        unit = parse_unit(SOURCE)
        assert unit.declaration("Version").text == '// Version is set at build time.\nvar Version = "dev"'
        assert unit.declaration("Run").text.endswith("} // TODO remove")
        main = unit.declaration("main").text
        assert main.startswith("/* main starts the daemon. */\nfunc main() {")
        assert "\t// comments inside bodies are kept\n" in main

    def test_syntax_error(self):
        with pytest.raises(ParseError, match="broken.go"):
            parse_unit("package main\n\nfunc main( {\n", "broken.go")

    def test_invalid_utf8(self):
        """Source that is not UTF-8 is reported as a parse failure."""
        source = b'package main\n\n// caf\xe9\nimport "fmt"\n\nfunc main() { fmt.Println() }\n'
        with pytest.raises(ParseError, match="x.go: not valid UTF-8"):
            parse_unit(source, "x.go")

    def test_missing_package_clause(self):
        with pytest.raises(ParseError, match="no package clause"):
            parse_unit("func main() {}\n", "nopkg.go")

    def test_parse_file(self, tmp_path):
        path = tmp_path / "main.go"
        path.write_text(MAIN_GO)
        unit = parse_file(str(path))
        assert [spec.path for spec in unit.import_specs] == ["fmt", "demo/app/lib"]
        assert unit.declaration("main").text.startswith("// main prints the answer.")

    def test_parse_missing_file(self, tmp_path):
        with pytest.raises(ParseError, match="missing.go"):
            parse_file(str(tmp_path / "missing.go"))


class TestPrintUnit:
    def test_print(self):
        unit = ProgramUnit(
            package="main",
            imports=[ImportGroup(specs=[ImportSpec("fmt"), ImportSpec("os", name="_os", comment="// os")])],
        )
        assert print_unit(unit) == 'package main\n\nimport (\n\t"fmt"\n\t_os "os" // os\n)\n'

    @pytest.mark.parametrize("source", [SOURCE, MAIN_GO])
    def test_round_trip(self, source):
        """Printing a parsed unit gives source that parses to the same structure."""
        unit = parse_unit(source)
        reparsed = parse_unit(print_unit(unit))
        assert reparsed.package == unit.package
        assert reparsed.import_specs == unit.import_specs
        assert reparsed.declarations == unit.declarations
        assert reparsed.header == unit.header
        assert reparsed.trailer == unit.trailer
