"""Exception hierarchy for specgraph.

All exceptions inherit from :class:`SpecgraphError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`specgraph.exit_codes`.
The top-level error handler in :func:`specgraph.app.main` catches
``SpecgraphError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Graph traversal itself never raises: missing keys yield empty results and
cycles are broken silently. These exceptions cover the I/O edges (loading
specs, loading the graph document, configuration) and CLI usage.

Subclass hierarchy::

    SpecgraphError (exit 1)
    +-- InvalidUsageError      (exit 2)
    +-- ResourceNotFoundError  (exit 4)
    +-- SpecParseError         (exit 7)
    +-- GraphLoadError         (exit 8)
    +-- ConfigError            (exit 1)
"""

from specgraph.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_GRAPH_ERROR,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SPEC_PARSE_ERROR,
)


class SpecgraphError(Exception):
    """Base exception for all specgraph errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`specgraph.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(SpecgraphError):
    """Raised for invalid CLI arguments (e.g. a malformed resource key)."""

    exit_code = EXIT_INVALID_USAGE


class ResourceNotFoundError(SpecgraphError):
    """Raised when a plan is requested for a resource absent from the graph.

    The resolver itself reports this condition through
    :class:`~specgraph.models.ResolveResult`; the CLI converts a failed
    result into this exception so the process exits with code 4.
    """

    exit_code = EXIT_NOT_FOUND
    error_code = "RESOURCE_NOT_FOUND"


class SpecParseError(SpecgraphError):
    """Raised when an OpenAPI domain spec cannot be loaded or parsed."""

    exit_code = EXIT_SPEC_PARSE_ERROR


class GraphLoadError(SpecgraphError):
    """Raised when the dependency graph document is missing or malformed."""

    exit_code = EXIT_GRAPH_ERROR


class ConfigError(SpecgraphError):
    """Raised for configuration problems (invalid JSON, unreadable config files)."""

    exit_code = EXIT_GENERIC_FAILURE
