"""Built-in CLI sub-commands for specgraph.

This package groups the Typer command modules that form the CLI's
top-level command tree:

* :mod:`~specgraph.commands.build` -- extract dependencies from domain specs
  and write the graph and tool index.
* :mod:`~specgraph.commands.validate` -- report cycles and dangling
  references.
* :mod:`~specgraph.commands.plan` -- resolve a creation plan for a resource.
* :mod:`~specgraph.commands.deps` -- query prerequisites, dependents,
  subscriptions and statistics.

Each module either exports a :class:`typer.Typer` sub-application (``deps``)
or a plain callback function registered directly on the root app.
"""
