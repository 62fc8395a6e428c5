import logging
from pathlib import Path
from unittest.mock import patch

import pytest

from binarycover.cli import main, profile_main
from binarycover.errors import InstrumentationError
from binarycover.pipeline import Conf


class TestMain:
    def test_no_arguments(self, capsys):
        assert main([]) == 1
        err = capsys.readouterr().err
        assert "usage: binarycover" in err
        assert "COVERAGE_FILEPATH" in err

    @patch("binarycover.cli.run")
    def test_success(self, mock_run):
        assert main(["demo/app", "demo/tools", "--mode", "count", "--go", "/opt/go/bin/go"]) == 0
        mock_run.assert_called_once_with(
            ["demo/app", "demo/tools"],
            Conf(go_path="/opt/go/bin/go", mode="count", var_prefix="GoCover", entry_file="main.go"),
        )

    @patch("binarycover.cli.run", side_effect=InstrumentationError("go tool cover lib.go failed"))
    def test_failure(self, mock_run, caplog):
        with caplog.at_level(logging.ERROR):
            assert main(["demo/app"]) == 1
        assert "demo/app" in caplog.text
        assert "go tool cover lib.go failed" in caplog.text

    @pytest.mark.parametrize("prefix", ["goCover", "Go-Cover", "1Cover", ""])
    def test_rejects_unexported_prefix(self, prefix):
        with pytest.raises(SystemExit):
            main(["demo/app", "--var-prefix", prefix])

    def test_end_to_end(self, demo_project):
        with patch("binarycover.pipeline.GoToolchain", return_value=demo_project):
            assert main(["demo/app", "--var-prefix", "Cov"]) == 0
        assert [var for _, _, var, _ in demo_project.instrumented] == ["Cov1"]

    def test_entry_point_not_utf8(self, demo_project, caplog):
        main_go = Path(demo_project.modules["demo/app"].dir) / "main.go"
        main_go.write_bytes(b'package main\n\n// caf\xe9\nimport "fmt"\n\nfunc main() { fmt.Println() }\n')

        with patch("binarycover.pipeline.GoToolchain", return_value=demo_project):
            with caplog.at_level(logging.ERROR):
                assert main(["demo/app"]) == 1

        assert "not valid UTF-8" in caplog.text
        assert "main.go" in caplog.text
        assert demo_project.instrumented == []


class TestProfileMain:
    def test_summary(self, tmp_path, capsys):
        (tmp_path / "a.out").write_text("a.go:1.1,2.2 1 0\na.go:3.1,4.2 1 0\ncoverage: 0.0% of statements\n")
        (tmp_path / "b.out").write_text("a.go:1.1,2.2 1 2\na.go:3.1,4.2 1 0\ncoverage: 50.0% of statements\n")

        assert profile_main(["summary", str(tmp_path / "a.out"), str(tmp_path / "b.out")]) == 0
        assert capsys.readouterr().out == "coverage: 50.0% of statements\n"

    def test_merge(self, tmp_path):
        (tmp_path / "a.out").write_text("a.go:1.1,2.2 1 1\ncoverage: 100.0% of statements\n")
        (tmp_path / "b.out").write_text("a.go:1.1,2.2 1 2\ncoverage: 100.0% of statements\n")
        output = tmp_path / "merged.out"

        assert profile_main(["merge", "-o", str(output), str(tmp_path / "a.out"), str(tmp_path / "b.out")]) == 0
        assert output.read_text() == "a.go:1.1,2.2 1 3\ncoverage: 100.0% of statements\n"

    def test_bad_profile(self, tmp_path, caplog):
        (tmp_path / "bad.out").write_text("not a profile\n")
        with caplog.at_level(logging.ERROR):
            assert profile_main(["summary", str(tmp_path / "bad.out")]) == 1
        assert "bad.out:1" in caplog.text
