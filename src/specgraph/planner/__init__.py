"""Creation-plan resolution and rendering.

* :mod:`~specgraph.planner.resolver` -- :class:`DependencyResolver`, which
  turns a target resource into an ordered list of create steps.
* :mod:`~specgraph.planner.formatting` -- Markdown and compact renderings of
  a plan.
"""

from specgraph.planner.formatting import format_creation_plan, generate_compact_plan
from specgraph.planner.resolver import DependencyResolver, plan_complexity

__all__ = [
    "DependencyResolver",
    "format_creation_plan",
    "generate_compact_plan",
    "plan_complexity",
]
