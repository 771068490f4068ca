"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~specgraph.exceptions.SpecgraphError` subclass.
CI scripts that drive ``specgraph build`` or ``specgraph plan`` can inspect
the exit code to tell a missing resource apart from an unreadable graph.

Example::

    $ specgraph plan virtual http-loadbalancer
    $ echo $?
    4   # EXIT_NOT_FOUND -- the target is not in the dependency graph
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_NOT_FOUND = 4
"""The requested resource is not present in the dependency graph."""

EXIT_SPEC_PARSE_ERROR = 7
"""An OpenAPI domain specification could not be loaded or parsed."""

EXIT_GRAPH_ERROR = 8
"""The dependency graph document is missing or malformed."""
