"""Render creation plans for people and for programs.

* :func:`format_creation_plan` -- Markdown, rendered from
  ``planner/templates/plan.md.j2``.
* :func:`generate_compact_plan` -- a minimal JSON-ready dict with just tool,
  resource, inputs and choices per step, for execution layers that do not
  need the full plan.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

from specgraph.graph.keys import create_resource_key
from specgraph.models import CreationPlan, ResolveResult

TEMPLATE_DIR = Path(__file__).parent / "templates"
"""Path to the Jinja2 template directory (``planner/templates/``)."""


def _create_jinja_env() -> Environment:
    """Jinja2 environment for Markdown templates (no autoescaping for ``.md.j2``)."""
    return Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=select_autoescape(disabled_extensions=("md.j2",)),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


def format_creation_plan(plan: CreationPlan) -> str:
    """Render *plan* as Markdown.

    Sections for subscriptions, existing resources, warnings and alternative
    paths appear only when non-empty.

    Example::

        result = resolver.resolve(params)
        print(format_creation_plan(result.plan))
    """
    template = _create_jinja_env().get_template("plan.md.j2")
    return template.render(plan=plan)


def generate_compact_plan(result: ResolveResult) -> dict[str, Any]:
    """Reduce a resolution result to ``{success, steps}`` or ``{success, error}``.

    Each step becomes ``{"tool", "resource", "inputs"}`` plus a ``"choices"``
    mapping of choice field to options when the step has oneOf choices.
    """
    if not result.success or result.plan is None:
        return {"success": False, "error": result.error}

    steps: list[dict[str, Any]] = []
    for step in result.plan.steps:
        compact: dict[str, Any] = {
            "tool": step.tool_name,
            "resource": create_resource_key(step.domain, step.resource),
            "inputs": list(step.required_inputs),
        }
        if step.one_of_choices:
            compact["choices"] = {c.field: list(c.options) for c in step.one_of_choices}
        steps.append(compact)

    return {"success": True, "steps": steps}
