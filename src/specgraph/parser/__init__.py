"""OpenAPI domain spec parser -- load documents and extract resource dependencies.

This sub-package is the first half of the specgraph pipeline: turning raw
OpenAPI domain specs (JSON or YAML, local file or remote URL) into
:class:`~specgraph.models.ParsedOperation` objects the graph builder can
aggregate.

Typical usage::

    from specgraph.parser import load_spec, extract_domain_specs

    specs = {"virtual": load_spec("virtual.json"), "network": load_spec("network.json")}
    operations = extract_domain_specs(specs)

Sub-modules:

* :mod:`~specgraph.parser.loader` -- I/O layer (URL, file, stdin) plus
  format detection.
* :mod:`~specgraph.parser.refs` -- ``$ref`` parsing and resource name
  normalisation.
* :mod:`~specgraph.parser.extractor` -- operations, references and oneOf
  groups.
* :mod:`~specgraph.parser.subscriptions` -- addon subscription heuristics.
"""

from specgraph.parser.extractor import (
    extract_domain_operations,
    extract_domain_specs,
    extract_one_of_patterns,
    extract_operation_dependencies,
    extract_ref_patterns,
)
from specgraph.parser.loader import domain_from_source, load_spec
from specgraph.parser.refs import normalize_resource_type, parse_ref, resolve_pointer

__all__ = [
    "domain_from_source",
    "extract_domain_operations",
    "extract_domain_specs",
    "extract_one_of_patterns",
    "extract_operation_dependencies",
    "extract_ref_patterns",
    "load_spec",
    "normalize_resource_type",
    "parse_ref",
    "resolve_pointer",
]
