"""Tests for the command-line interface."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from callchain.cli import app

from conftest import PKG, write_sources

runner = CliRunner()

INNER2 = f"{PKG}.InnerHelperImpl2"
TARGET_LINE = "32"


def _invoke(*args):
    return runner.invoke(app, [str(a) for a in args])


class TestTrace:
    def test_text_report(self, java_project):
        result = _invoke("trace", INNER2, TARGET_LINE, java_project)
        assert result.exit_code == 0, result.output
        assert result.stdout.count("=== Complete Caller Chain ===") == 5
        assert f"--- {PKG}.TestSample.main(java.lang.String[]) ---" in result.stdout
        assert "public static void main(String[] args) {" in result.stdout
        assert "* Main method that starts the execution" in result.stdout

    def test_json_chains(self, java_project):
        result = _invoke("trace", INNER2, TARGET_LINE, java_project, "--json")
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert len(data["chains"]) == 5
        assert data["chains"][1][0]["name"] == "main"

    def test_no_dispatch_edges_keeps_direct_chains(self, java_project):
        result = _invoke("trace", INNER2, TARGET_LINE, java_project, "--no-dispatch-edges", "--json")
        assert result.exit_code == 0, result.output
        chains = json.loads(result.stdout)["chains"]
        assert len(chains) == 2
        assert all("Helper.helperMethod" not in m["signature"] for c in chains for m in c)

    def test_global_cycle_scope(self, java_project):
        result = _invoke("trace", INNER2, TARGET_LINE, java_project, "--cycle-scope", "global", "--json")
        assert result.exit_code == 0, result.output
        assert len(json.loads(result.stdout)["chains"]) == 2

    def test_tree_json(self, java_project):
        result = _invoke("trace", INNER2, TARGET_LINE, java_project, "--format", "tree", "--json")
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["dag_tree"]["method"] == "ROOT"
        assert len(data["dag_tree"]["children"]) == 2
        names = {m["name"] for m in data["methods"]}
        assert {"main", "methodA", "methodB", "methodC", "helperMethod", "innerHelperMethod"} == names

    def test_tree_text(self, java_project):
        result = _invoke("trace", INNER2, TARGET_LINE, java_project, "-f", "tree")
        assert result.exit_code == 0, result.output
        assert "ROOT" in result.stdout

    def test_scope_argument(self, java_project):
        result = _invoke("trace", INNER2, TARGET_LINE, java_project, f"{PKG}.InnerHelperImpl2", "--json")
        assert result.exit_code == 0, result.output
        chains = json.loads(result.stdout)["chains"]
        assert len(chains) == 2
        assert all(m["signature"].startswith(f"{PKG}.InnerHelperImpl2.") for c in chains for m in c)

    def test_config_file_sets_format(self, java_project, tmp_path):
        config = tmp_path / "settings.json"
        config.write_text(json.dumps({"output_format": "tree"}))
        result = _invoke("trace", INNER2, TARGET_LINE, java_project, "--config", config, "--json")
        assert result.exit_code == 0, result.output
        assert "dag_tree" in json.loads(result.stdout)


class TestExitCodes:
    @pytest.mark.parametrize("line", ["abc", "0"])
    def test_invalid_line(self, java_project, line):
        result = _invoke("trace", INNER2, line, java_project)
        assert result.exit_code == 1

    def test_missing_root(self, tmp_path):
        result = _invoke("trace", INNER2, TARGET_LINE, tmp_path / "missing")
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_bad_config(self, java_project, tmp_path):
        config = tmp_path / "bad.json"
        config.write_text(json.dumps({"fan_out": "some"}))
        result = _invoke("trace", INNER2, TARGET_LINE, java_project, "-c", config)
        assert result.exit_code == 1

    def test_no_source_files(self, tmp_path):
        result = _invoke("trace", INNER2, TARGET_LINE, tmp_path)
        assert result.exit_code == 2
        assert "No Java files found" in result.output

    def test_no_method_at_line(self, java_project):
        result = _invoke("trace", INNER2, "500", java_project)
        assert result.exit_code == 3

    def test_error_as_json(self, java_project):
        result = _invoke("trace", INNER2, "500", java_project, "--json")
        assert result.exit_code == 3
        data = json.loads(result.stdout)
        assert data["query"] == f"{INNER2}:500"
        assert "500" in data["error"]

    def test_unresolved_target(self, tmp_path):
        write_sources(tmp_path, {"Svc.java": """
            package app;

            public class Svc {
                void run(Unknown thing) {
                    run(null);
                }
            }
            """}, subdir=Path("app"))
        result = _invoke("trace", "app.Svc", "5", tmp_path)
        assert result.exit_code == 4


class TestAncestors:
    def test_json(self, java_project):
        result = _invoke("ancestors", INNER2, TARGET_LINE, java_project, "--json")
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert len(data["ancestors"]) == 11
        names = {a["signature"] for a in data["ancestors"]}
        assert f"{PKG}.Helper.helperMethod(int)" in names
        assert f"{PKG}.HelperImpl.helperMethod(int)" not in names

    def test_without_dispatch_edges(self, java_project):
        result = _invoke("ancestors", INNER2, TARGET_LINE, java_project, "--no-dispatch-edges", "--json")
        assert result.exit_code == 0, result.output
        names = {a["signature"] for a in json.loads(result.stdout)["ancestors"]}
        assert f"{PKG}.Helper.helperMethod(int)" not in names
        assert f"{PKG}.TestSample.methodC(java.lang.String)" in names

    def test_text(self, java_project):
        result = _invoke("ancestors", INNER2, TARGET_LINE, java_project)
        assert result.exit_code == 0, result.output
        assert "ANCESTORS OF" in result.stdout


class TestIndex:
    def test_summary(self, java_project):
        result = _invoke("index", java_project, "--json")
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["files"] == 8
        assert data["methods"] == 33
        assert data["skipped_files"] == []

    def test_snapshot_then_trace(self, java_project, tmp_path):
        snapshot = tmp_path / "snapshot.json"
        result = _invoke("index", java_project, "--output", snapshot)
        assert result.exit_code == 0, result.output
        assert snapshot.exists()

        result = _invoke("trace", INNER2, TARGET_LINE, snapshot, "--json")
        assert result.exit_code == 0, result.output
        assert len(json.loads(result.stdout)["chains"]) == 5

    def test_index_rejects_file_root(self, tmp_path):
        path = tmp_path / "x.json"
        path.write_text("{}")
        result = _invoke("index", path)
        assert result.exit_code == 1
