"""Canonical Pydantic models shared across all specgraph modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into four groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`OutputConfig`, :class:`CacheConfig`, :class:`GraphConfig`, and
    :class:`GlobalConfig`.

**Extractor models** -- produced by :mod:`specgraph.parser` from OpenAPI
domain specs and consumed by the graph builder:
    :class:`ResourceReference`, :class:`OneOfGroup`,
    :class:`SubscriptionRequirement`, and :class:`ParsedOperation`.

**Graph models** -- the persisted dependency graph document:
    :class:`ResourceDependencies`, :class:`DependencyGraph`,
    :class:`GraphBuildOptions`, :class:`DependencyReport`, and
    :class:`DependencyStats`.

**Planner models** -- creation plans handed to an execution layer:
    :class:`ToolIndexEntry`, :class:`WorkflowStep`, :class:`OneOfChoice`,
    :class:`AlternativePath`, :class:`CreationPlan`, :class:`ResolveParams`,
    and :class:`ResolveResult`.

Graph and planner models keep snake_case attribute names in Python but
serialise with camelCase aliases (``resourceType``, ``requiredBy``,
``creationOrder`` ...) so the JSON document stays compatible with the tools
that consume it. Always dump with ``by_alias=True`` when writing documents.
"""

from __future__ import annotations

import enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _DocumentModel(BaseModel):
    """Base for models that serialise to the camelCase graph document."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Config ---


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class CacheConfig(BaseModel):
    """Cache settings for remotely fetched OpenAPI specs."""

    enabled: bool = Field(default=True, description="Enable spec fetch caching")
    ttl_seconds: int = Field(default=3600, description="Cache TTL in seconds")


class GraphConfig(BaseModel):
    """Where the dependency graph and tool index live, and traversal limits.

    Both paths are optional; when unset the commands fall back to
    ``dependency-graph.json`` and ``tool-index.json`` inside the data
    directory (see :func:`~specgraph.config.get_data_dir`).
    """

    graph_path: Optional[str] = Field(
        default=None, description="Path to the serialized dependency graph"
    )
    tool_index_path: Optional[str] = Field(
        default=None, description="Path to the serialized tool index"
    )
    max_depth: int = Field(
        default=10, description="Maximum depth for dependency traversal"
    )
    tool_prefix: str = Field(
        default="api", description="Prefix for generated tool names"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/specgraph/config.json``.

    Loaded and saved by :func:`~specgraph.config.load_global_config` and
    :func:`~specgraph.config.save_global_config`. Fields here have the
    lowest precedence and can be overridden by project config, environment
    variables, or CLI flags. See :func:`~specgraph.config.resolve_config`
    for the full precedence chain.
    """

    output: OutputConfig = Field(default_factory=OutputConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    graph: GraphConfig = Field(default_factory=GraphConfig)


# --- Extractor output ---


class ResourceReference(_DocumentModel):
    """An edge from a dependent resource to one of its prerequisites.

    Found wherever a resource's request schema points at another resource's
    schema through ``$ref``. The ``domain`` may be empty when the extractor
    could not place the referenced type; the graph keys such references
    under the literal ``"unknown"`` domain.
    """

    resource_type: str = Field(description="Referenced resource, e.g. 'origin-pool'")
    domain: str = Field(default="", description="Domain of the referenced resource")
    field_path: str = Field(default="", description="JSON path of the reference field")
    required: bool = False
    inline: bool = Field(
        default=False,
        description="Whether the field also accepts an inline definition",
    )


class OneOfGroup(_DocumentModel):
    """A group of mutually exclusive fields on a resource's schema."""

    choice_field: str
    options: list[str] = Field(default_factory=list)
    field_path: str = ""
    description: Optional[str] = None


class SubscriptionRequirement(_DocumentModel):
    """A licensed addon service needed to use a resource."""

    addon_service: str
    display_name: str
    tier: str = "standard"
    required: bool = False


class ParsedOperation(_DocumentModel):
    """One API operation as seen by the graph builder.

    The builder only reads ``domain``, ``resource``, ``dependencies``,
    ``one_of_groups`` and ``subscription_requirements``. The remaining fields
    feed the tool index so the resolver can map a resource to the tool that
    creates it.
    """

    tool_name: str
    method: str
    path: str
    operation: str
    domain: str
    resource: str
    summary: str = ""
    description: str = ""
    path_parameters: list[str] = Field(default_factory=list)
    query_parameters: list[str] = Field(default_factory=list)
    required_params: list[str] = Field(default_factory=list)
    operation_id: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    source_file: str = ""
    deprecated: bool = False
    dependencies: list[ResourceReference] = Field(default_factory=list)
    one_of_groups: list[OneOfGroup] = Field(default_factory=list)
    subscription_requirements: list[SubscriptionRequirement] = Field(
        default_factory=list
    )


# --- Graph ---


class ResourceDependencies(_DocumentModel):
    """Aggregated dependency record for a single resource type.

    ``requires`` lists prerequisites (must exist before creation) and
    ``required_by`` lists dependents (break if this resource is deleted).
    ``creation_order`` is the prerequisite-first sequence of resource keys
    ending with this resource itself.
    """

    resource: str
    domain: str
    requires: list[ResourceReference] = Field(default_factory=list)
    required_by: list[ResourceReference] = Field(default_factory=list)
    one_of_groups: list[OneOfGroup] = Field(default_factory=list)
    subscriptions: list[SubscriptionRequirement] = Field(default_factory=list)
    creation_order: list[str] = Field(default_factory=list)


class DependencyGraph(_DocumentModel):
    """The complete resource dependency graph for an API catalogue.

    Keys of ``dependencies`` and ``reverse_dependencies`` are resource keys of
    the form ``"{domain}/{resource}"``. Built once by
    :func:`~specgraph.graph.builder.build_dependency_graph` and treated as
    read-only afterwards.
    """

    version: str = "1.0.0"
    generated_at: str
    total_resources: int = 0
    dependencies: dict[str, ResourceDependencies] = Field(default_factory=dict)
    addon_service_map: dict[str, list[str]] = Field(default_factory=dict)
    reverse_dependencies: dict[str, list[ResourceReference]] = Field(
        default_factory=dict
    )


class GraphBuildOptions(BaseModel):
    """Options for :func:`~specgraph.graph.builder.build_dependency_graph`."""

    detect_inline_refs: bool = True
    compute_creation_order: bool = True
    build_reverse_deps: bool = True
    max_depth: int = 10
    generated_at: Optional[str] = Field(
        default=None, description="Fixed ISO-8601 timestamp for reproducible output"
    )


class DependencyAction(str, enum.Enum):
    """Which slice of a resource's dependency information to report."""

    PREREQUISITES = "prerequisites"
    DEPENDENTS = "dependents"
    ONE_OF = "oneOf"
    SUBSCRIPTIONS = "subscriptions"
    CREATION_ORDER = "creationOrder"
    FULL = "full"


class MutuallyExclusiveField(_DocumentModel):
    """A oneOf group flattened for reports."""

    field: str
    options: list[str] = Field(default_factory=list)


class DependencyReport(_DocumentModel):
    """Human-readable dependency summary for one resource."""

    resource: str
    domain: str
    prerequisites: list[str] = Field(default_factory=list)
    dependents: list[str] = Field(default_factory=list)
    mutually_exclusive_fields: list[MutuallyExclusiveField] = Field(
        default_factory=list
    )
    subscription_requirements: list[str] = Field(default_factory=list)
    creation_sequence: list[str] = Field(default_factory=list)


class DependencyStats(_DocumentModel):
    """Aggregate counts over the whole graph."""

    total_resources: int = 0
    total_dependencies: int = 0
    total_one_of_groups: int = 0
    total_subscriptions: int = 0
    addon_services: list[str] = Field(default_factory=list)
    graph_version: str = ""
    generated_at: str = ""


# --- Tools and plans ---


class ToolIndexEntry(_DocumentModel):
    """Lightweight description of one generated tool, used for lookups."""

    name: str
    domain: str
    resource: str
    operation: str
    summary: str = ""
    path_parameters: list[str] = Field(default_factory=list)
    required_params: list[str] = Field(default_factory=list)
    deprecated: bool = False


class StepAction(str, enum.Enum):
    """What a workflow step does to its resource."""

    CREATE = "create"
    CONFIGURE = "configure"
    VERIFY = "verify"


class Complexity(str, enum.Enum):
    """Rough size class of a creation plan."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class OneOfChoice(_DocumentModel):
    """A mutually exclusive choice the caller must make for a step."""

    field: str
    options: list[str] = Field(default_factory=list)
    description: Optional[str] = None


class WorkflowStep(_DocumentModel):
    """A single tool invocation in a :class:`CreationPlan`.

    ``tool_name`` is ``None`` only for the final target step when no create
    tool could be resolved; prerequisite steps without a tool are dropped
    from the plan with a warning instead.
    """

    step_number: int
    action: StepAction = StepAction.CREATE
    domain: str
    resource: str
    tool_name: Optional[str] = None
    depends_on: list[str] = Field(default_factory=list)
    optional: bool = False
    required_inputs: list[str] = Field(default_factory=list)
    one_of_choices: Optional[list[OneOfChoice]] = None
    notes: Optional[str] = None


class AlternativePath(_DocumentModel):
    """One option of a oneOf choice on the target resource.

    ``steps`` is always empty: alternatives are listed, not expanded.
    """

    choice_field: str
    selected_option: str
    steps: list[WorkflowStep] = Field(default_factory=list)
    description: Optional[str] = None


class CreationPlan(_DocumentModel):
    """Ordered, tool-executable plan for creating a resource."""

    target_resource: str
    target_domain: str
    total_steps: int
    steps: list[WorkflowStep] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    alternatives: list[AlternativePath] = Field(default_factory=list)
    subscriptions: list[str] = Field(default_factory=list)
    existing_resources: Optional[list[str]] = None
    complexity: Complexity = Complexity.LOW


class ResolveParams(_DocumentModel):
    """Input for :meth:`~specgraph.planner.resolver.DependencyResolver.resolve`."""

    resource: str
    domain: str
    existing_resources: list[str] = Field(default_factory=list)
    include_optional: bool = False
    max_depth: int = 10
    expand_alternatives: bool = False


class ResolveResult(_DocumentModel):
    """Outcome of a resolution: either a plan or an error, never both."""

    success: bool
    plan: Optional[CreationPlan] = None
    error: Optional[str] = None
    error_code: Optional[str] = None

    def to_document(self) -> dict[str, Any]:
        """Return the camelCase JSON form with unset optionals omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
