"""End-to-end tests for the specgraph CLI (build, validate, deps, plan)."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from specgraph import __version__
from specgraph.app import app
from specgraph.graph import save_graph

runner = CliRunner()

SPECS_DIR = Path(__file__).parent.parent / "fixtures" / "specs"
SPEC_PATHS = [
    str(SPECS_DIR / "virtual.json"),
    str(SPECS_DIR / "network.json"),
    str(SPECS_DIR / "certificates.json"),
    str(SPECS_DIR / "waf.yaml"),
]


@pytest.fixture
def graph_file(isolated_config: Path) -> Path:
    """Build the sample catalogue into ``build/dependency-graph.json``."""
    out = isolated_config / "build" / "dependency-graph.json"
    result = runner.invoke(
        app,
        ["--quiet", "build", *SPEC_PATHS, "--out", str(out), "--generated-at", "2026-01-01T00:00:00.000Z"],
    )
    assert result.exit_code == 0, result.output
    return out


def _run(graph_file: Path, *args: str):
    return runner.invoke(app, ["--no-color", "--graph", str(graph_file), *args])


def _run_json(graph_file: Path, *args: str):
    result = runner.invoke(app, ["--graph", str(graph_file), "--json", "--quiet", *args])
    assert result.exit_code == 0, result.output
    return json.loads(result.output)


# ---------------------------------------------------------------------------
# Top level
# ---------------------------------------------------------------------------


class TestTopLevel:
    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"specgraph {__version__}" in result.output

    def test_help_lists_commands(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for name in ("build", "validate", "plan", "deps"):
            assert name in result.output


# ---------------------------------------------------------------------------
# build
# ---------------------------------------------------------------------------


class TestBuild:
    def test_writes_graph_and_tool_index(self, graph_file: Path) -> None:
        assert graph_file.is_file()
        assert (graph_file.parent / "tool-index.json").is_file()
        data = json.loads(graph_file.read_text(encoding="utf-8"))
        assert data["generatedAt"] == "2026-01-01T00:00:00.000Z"
        assert data["totalResources"] == 5

    def test_json_summary(self, isolated_config: Path) -> None:
        out = isolated_config / "graph.json"
        result = runner.invoke(
            app, ["--json", "--quiet", "build", *SPEC_PATHS, "--out", str(out)]
        )
        assert result.exit_code == 0, result.output
        summary = json.loads(result.output)
        assert summary["domains"] == ["virtual", "network", "certificates", "waf"]
        assert summary["operations"] == 10
        assert summary["resources"] == 5
        assert summary["tools"] == 10
        assert summary["addonServices"] == ["f5xc_waap_standard", "f5xc_waap_advanced"]

    def test_reproducible_output(self, isolated_config: Path) -> None:
        texts = []
        for name in ("one.json", "two.json"):
            out = isolated_config / name
            runner.invoke(
                app,
                ["--quiet", "build", *SPEC_PATHS, "--out", str(out), "--generated-at", "2026-01-01T00:00:00.000Z"],
            )
            texts.append(out.read_text(encoding="utf-8"))
        assert texts[0] == texts[1]

    def test_duplicate_domain(self, isolated_config: Path) -> None:
        result = runner.invoke(app, ["--no-color", "build", SPEC_PATHS[0], SPEC_PATHS[0]])
        assert result.exit_code == 2
        assert "given twice" in result.output

    def test_missing_spec_file(self, isolated_config: Path) -> None:
        result = runner.invoke(app, ["--no-color", "build", str(isolated_config / "nope.json")])
        assert result.exit_code == 7
        assert "Spec file not found" in result.output


# ---------------------------------------------------------------------------
# validate
# ---------------------------------------------------------------------------


class TestValidate:
    def test_plain(self, graph_file: Path) -> None:
        result = _run(graph_file, "validate")
        assert result.exit_code == 0
        assert "dangling\tvirtual/http-loadbalancer -> unknown/rate-limiter" in result.output

    def test_json(self, graph_file: Path) -> None:
        assert _run_json(graph_file, "validate") == {
            "valid": True,
            "cycles": [],
            "danglingReferences": [
                {"source": "virtual/http-loadbalancer", "target": "unknown/rate-limiter"}
            ],
        }

    def test_cycles(self, isolated_config: Path, graph_factory) -> None:
        path = save_graph(graph_factory({"a": ["b"], "b": ["a"]}), isolated_config / "cyclic.json")
        result = _run(path, "validate")
        assert result.exit_code == 0
        assert "cycle\td/a -> d/b -> d/a" in result.output

        strict = _run(path, "validate", "--strict")
        assert strict.exit_code == 1


# ---------------------------------------------------------------------------
# deps
# ---------------------------------------------------------------------------


class TestDeps:
    def test_show_plain(self, graph_file: Path) -> None:
        result = _run(graph_file, "deps", "show", "virtual", "http-loadbalancer")
        assert result.exit_code == 0
        assert "prerequisite\tnetwork/origin-pool (required)" in result.output
        assert "oneOf\tloadbalancer_type: http, https, https_auto_cert" in result.output
        assert "creation order\t6. virtual/http-loadbalancer" in result.output

    def test_show_json_action(self, graph_file: Path) -> None:
        data = _run_json(
            graph_file, "deps", "show", "network", "origin-pool", "--action", "dependents"
        )
        assert data["dependents"] == ["virtual/http-loadbalancer (required)"]
        assert data["prerequisites"] == []

    def test_show_unknown_resource_warns(self, graph_file: Path) -> None:
        result = _run(graph_file, "deps", "show", "virtual", "nope")
        assert result.exit_code == 0
        assert "not in the dependency graph" in result.output

    def test_stats(self, graph_file: Path) -> None:
        data = _run_json(graph_file, "deps", "stats")
        assert data["totalResources"] == 5
        assert data["totalDependencies"] == 5
        assert data["totalOneOfGroups"] == 2

    def test_domains(self, graph_file: Path) -> None:
        result = _run(graph_file, "deps", "domains")
        assert result.exit_code == 0
        assert result.output.splitlines() == ["certificates", "network", "virtual", "waf"]

    def test_resources(self, graph_file: Path) -> None:
        assert _run_json(graph_file, "deps", "resources", "network") == [
            "healthcheck",
            "origin-pool",
        ]

    def test_addons_and_subscription(self, graph_file: Path) -> None:
        assert _run_json(graph_file, "deps", "addons") == [
            "f5xc_waap_standard",
            "f5xc_waap_advanced",
        ]
        assert _run_json(graph_file, "deps", "subscription", "f5xc_waap_standard") == [
            "waf/app-firewall"
        ]

    def test_missing_graph(self, isolated_config: Path) -> None:
        result = _run(isolated_config / "missing.json", "deps", "stats")
        assert result.exit_code == 8
        assert "specgraph build" in result.output


# ---------------------------------------------------------------------------
# plan
# ---------------------------------------------------------------------------


class TestPlan:
    def test_markdown(self, graph_file: Path) -> None:
        result = _run(graph_file, "plan", "virtual", "http-loadbalancer")
        assert result.exit_code == 0
        assert "# Creation Plan for virtual/http-loadbalancer" in result.output
        assert "### Step 3: create virtual/http-loadbalancer" in result.output

    def test_json(self, graph_file: Path) -> None:
        data = _run_json(graph_file, "plan", "virtual", "http-loadbalancer")
        assert data["success"] is True
        assert "error" not in data
        plan = data["plan"]
        assert plan["totalSteps"] == 3
        assert plan["complexity"] == "low"
        assert [s["toolName"] for s in plan["steps"]] == [
            "api-certificates-certificate-create",
            "api-network-origin-pool-create",
            "api-virtual-http-loadbalancer-create",
        ]

    def test_existing(self, graph_file: Path) -> None:
        data = _run_json(
            graph_file, "plan", "virtual", "http-loadbalancer", "-e", "network/origin-pool"
        )
        assert data["plan"]["totalSteps"] == 1
        assert data["plan"]["existingResources"] == ["network/origin-pool"]

    def test_compact(self, graph_file: Path) -> None:
        data = _run_json(graph_file, "plan", "certificates", "certificate", "--compact")
        assert data == {
            "success": True,
            "steps": [
                {
                    "tool": "api-certificates-certificate-create",
                    "resource": "certificates/certificate",
                    "inputs": ["namespace", "body", "name"],
                }
            ],
        }

    def test_include_optional_warns(self, graph_file: Path) -> None:
        result = _run(graph_file, "plan", "virtual", "http-loadbalancer", "--include-optional")
        assert result.exit_code == 0
        assert "No create tool found for unknown/rate-limiter" in result.output

    def test_unknown_target(self, graph_file: Path) -> None:
        result = _run(graph_file, "plan", "virtual", "nope")
        assert result.exit_code == 4
        assert "not found in dependency graph" in result.output

    def test_missing_tool_index(self, graph_file: Path) -> None:
        (graph_file.parent / "tool-index.json").unlink()
        result = _run(graph_file, "plan", "virtual", "http-loadbalancer")
        assert result.exit_code == 8
        assert "Tool index not found" in result.output
