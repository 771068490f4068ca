"""Shared test fixtures for specgraph.

Provides reusable fixtures for loading the sample domain specs, building the
sample dependency graph and tool index, creating isolated config
environments, managing output state, and running CLI commands. These
fixtures are automatically discovered by pytest and available to all test
modules without explicit imports.

The sample catalogue (``fixtures/specs``) models four domains:

* ``virtual/http-loadbalancer`` requires ``network/origin-pool`` and
  optionally references ``waf/app-firewall`` and an unplaced
  ``rate-limiter`` (keyed under ``unknown``).
* ``network/origin-pool`` requires ``certificates/certificate`` and
  optionally references ``network/healthcheck``.
* ``waf/app-firewall`` needs the WAAP addon services.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Optional

import pytest

from specgraph.graph import DependencyQuery, GraphStore, build_dependency_graph
from specgraph.models import (
    DependencyGraph,
    GraphBuildOptions,
    ParsedOperation,
    ResourceReference,
)
from specgraph.output import OutputFormat, OutputManager, reset_output, set_output
from specgraph.parser import extract_domain_specs, load_spec
from specgraph.planner import DependencyResolver
from specgraph.tools import IndexToolLookup, ToolIndex


FIXTURES_DIR = Path(__file__).parent / "fixtures"
SPECS_DIR = FIXTURES_DIR / "specs"

SPEC_FILES = {
    "virtual": SPECS_DIR / "virtual.json",
    "network": SPECS_DIR / "network.json",
    "certificates": SPECS_DIR / "certificates.json",
    "waf": SPECS_DIR / "waf.yaml",
}

GENERATED_AT = "2026-01-01T00:00:00.000Z"


def _make_operation(
    domain: str,
    resource: str,
    requires: Optional[list[tuple[str, str, bool]]] = None,
    operation: str = "create",
) -> ParsedOperation:
    """Build a minimal operation whose body references ``(domain, resource, required)``."""
    return ParsedOperation(
        tool_name=f"api-{domain}-{resource}-{operation}",
        method="POST" if operation == "create" else "GET",
        path=f"/api/config/namespaces/{{namespace}}/{resource.replace('-', '_')}s",
        operation=operation,
        domain=domain,
        resource=resource,
        path_parameters=["namespace"],
        required_params=["namespace", "body"],
        dependencies=[
            ResourceReference(
                resource_type=ref_resource,
                domain=ref_domain,
                field_path=ref_resource.replace("-", "_"),
                required=required,
            )
            for ref_domain, ref_resource, required in (requires or [])
        ],
    )


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file").  Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Sample catalogue
# ---------------------------------------------------------------------------


@pytest.fixture
def raw_specs() -> dict[str, dict[str, Any]]:
    """The four sample domain specs, keyed by domain, in build order."""
    return {domain: load_spec(str(path)) for domain, path in SPEC_FILES.items()}


@pytest.fixture
def sample_operations(raw_specs: dict[str, dict[str, Any]]) -> list[ParsedOperation]:
    """Every operation extracted from the sample catalogue."""
    return extract_domain_specs(raw_specs)


@pytest.fixture
def sample_graph(sample_operations: list[ParsedOperation]) -> DependencyGraph:
    """Dependency graph of the sample catalogue with a fixed timestamp."""
    return build_dependency_graph(
        sample_operations, GraphBuildOptions(generated_at=GENERATED_AT)
    )


@pytest.fixture
def query(sample_graph: DependencyGraph) -> DependencyQuery:
    """Query facade over the in-memory sample graph."""
    return DependencyQuery(GraphStore(graph=sample_graph))


@pytest.fixture
def tool_index(sample_operations: list[ParsedOperation]) -> ToolIndex:
    """Tool index derived from the sample catalogue."""
    return ToolIndex.from_operations(sample_operations)


@pytest.fixture
def resolver(query: DependencyQuery, tool_index: ToolIndex) -> DependencyResolver:
    """Resolver over the sample graph and tool index."""
    return DependencyResolver(query, IndexToolLookup(tool_index))


# ---------------------------------------------------------------------------
# Factories for hand-built graphs
# ---------------------------------------------------------------------------


@pytest.fixture
def operation_factory() -> Callable[..., ParsedOperation]:
    """Return :func:`_make_operation` for tests that assemble operations by hand."""
    return _make_operation


@pytest.fixture
def graph_factory() -> Callable[..., DependencyGraph]:
    """Return a builder turning ``{"a": ["b"], ...}`` into a graph in domain ``d``.

    Every edge is a required reference. Extra keyword arguments are passed
    to :class:`~specgraph.models.GraphBuildOptions`.
    """

    def _build(edges: dict[str, list[str]], **options: Any) -> DependencyGraph:
        ops = [
            _make_operation("d", name, [("d", target, True) for target in targets])
            for name, targets in edges.items()
        ]
        options.setdefault("generated_at", GENERATED_AT)
        return build_dependency_graph(ops, GraphBuildOptions(**options))

    return _build


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME, XDG_CACHE_HOME, and XDG_DATA_HOME to
    subdirectories of tmp_path so that tests never touch real user
    config. Clears the SPECGRAPH_* environment variables and changes
    the working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setattr("specgraph.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in ["SPECGRAPH_GRAPH", "SPECGRAPH_TOOLS"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager for the test."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def json_output() -> OutputManager:
    """Install a JSON-format OutputManager for the test."""
    output = OutputManager(format=OutputFormat.JSON)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner.

    Returns a CliRunner instance that captures stdout/stderr and
    provides a consistent interface for invoking Typer apps in tests.
    """
    from typer.testing import CliRunner

    return CliRunner()
