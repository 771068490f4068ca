"""specgraph -- Resource dependency graphs and creation plans for OpenAPI-generated tools.

This package reads OpenAPI domain specs, records which resources reference
which others, and aggregates the references into a global dependency graph.
From that graph it answers prerequisite/dependent queries and resolves
step-by-step creation plans whose steps map onto generated create tools.

Typical workflow::

    specgraph build specs/*.json --out graph.json --tools tools.json
    specgraph deps show virtual http-loadbalancer
    specgraph plan virtual http-loadbalancer --existing certificates/certificate

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the entire package.
    config: XDG-aware configuration and precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
    graph: Graph building, validation, persistence, and queries.
    planner: Creation-plan resolution and rendering.
    parser: OpenAPI spec loading and dependency extraction.
    tools: Tool index and create-tool lookup.
    cache: Disk cache for remotely fetched specs.
"""

__version__ = "0.1.0"
