"""Deps commands -- read-only queries over the dependency graph.

Provides the ``specgraph deps`` sub-command group:

* ``show DOMAIN RESOURCE [--action ACTION]`` -- dependency report.
* ``stats`` -- aggregate counts.
* ``domains`` / ``resources DOMAIN`` -- browse the catalogue.
* ``addons`` / ``subscription ADDON`` -- addon service index.

Unknown resources and addons produce empty output rather than errors; only a
missing or malformed graph document fails.
"""

from __future__ import annotations

import typer

from specgraph.commands.common import fail, open_query
from specgraph.exceptions import SpecgraphError
from specgraph.models import DependencyAction, DependencyReport
from specgraph.output import OutputFormat, get_output, print_list, print_table, warning

deps_app = typer.Typer(no_args_is_help=True)


@deps_app.command("show")
def deps_show(
    ctx: typer.Context,
    domain: str = typer.Argument(..., help="Domain of the resource."),
    resource: str = typer.Argument(..., help="Resource name, e.g. http-loadbalancer."),
    action: DependencyAction = typer.Option(
        DependencyAction.FULL, "--action", "-a", help="Which section to report."
    ),
) -> None:
    """Show prerequisites, dependents, oneOf groups, subscriptions and creation order.

    Example::

        specgraph deps show virtual http-loadbalancer --action prerequisites
    """
    try:
        query = open_query(ctx)
        if query.get_resource_dependencies(domain, resource) is None:
            warning(f"Resource '{domain}/{resource}' is not in the dependency graph")
        report = query.generate_dependency_report(domain, resource, action)
    except SpecgraphError as exc:
        fail(exc)

    output = get_output()
    if output.format == OutputFormat.JSON:
        output.print_document(report.model_dump(mode="json", by_alias=True))
        return
    print_table(["Section", "Entry"], _report_rows(report), title=f"{domain}/{resource}")


def _report_rows(report: DependencyReport) -> list[list[str]]:
    rows: list[list[str]] = []
    rows.extend(["prerequisite", entry] for entry in report.prerequisites)
    rows.extend(["dependent", entry] for entry in report.dependents)
    rows.extend(
        ["oneOf", f"{field.field}: {', '.join(field.options)}"]
        for field in report.mutually_exclusive_fields
    )
    rows.extend(["subscription", entry] for entry in report.subscription_requirements)
    rows.extend(
        ["creation order", f"{index}. {key}"]
        for index, key in enumerate(report.creation_sequence, start=1)
    )
    return rows


@deps_app.command("stats")
def deps_stats(ctx: typer.Context) -> None:
    """Show aggregate counts for the whole graph."""
    try:
        stats = open_query(ctx).get_dependency_stats()
    except SpecgraphError as exc:
        fail(exc)

    output = get_output()
    if output.format == OutputFormat.JSON:
        output.print_document(stats.model_dump(mode="json", by_alias=True))
        return
    rows = [
        ["Resources", str(stats.total_resources)],
        ["Dependencies", str(stats.total_dependencies)],
        ["oneOf groups", str(stats.total_one_of_groups)],
        ["Subscriptions", str(stats.total_subscriptions)],
        ["Addon services", ", ".join(stats.addon_services) or "-"],
        ["Graph version", stats.graph_version],
        ["Generated at", stats.generated_at],
    ]
    print_table(["Field", "Value"], rows, title="Dependency Graph")


@deps_app.command("domains")
def deps_domains(ctx: typer.Context) -> None:
    """List every domain in the graph."""
    try:
        domains = open_query(ctx).get_all_dependency_domains()
    except SpecgraphError as exc:
        fail(exc)
    print_list(domains, title="Domains")


@deps_app.command("resources")
def deps_resources(
    ctx: typer.Context,
    domain: str = typer.Argument(..., help="Domain to list."),
) -> None:
    """List the resources of a domain."""
    try:
        resources = open_query(ctx).get_resources_in_domain(domain)
    except SpecgraphError as exc:
        fail(exc)
    print_list(resources, title=f"Resources in {domain}")


@deps_app.command("addons")
def deps_addons(ctx: typer.Context) -> None:
    """List addon services referenced by any resource."""
    try:
        addons = open_query(ctx).get_available_addon_services()
    except SpecgraphError as exc:
        fail(exc)
    print_list(addons, title="Addon services")


@deps_app.command("subscription")
def deps_subscription(
    ctx: typer.Context,
    addon: str = typer.Argument(..., help="Addon service id, e.g. f5xc_waap_standard."),
) -> None:
    """List resources that require an addon service."""
    try:
        resources = open_query(ctx).get_resources_requiring_subscription(addon)
    except SpecgraphError as exc:
        fail(exc)
    print_list(resources, title=f"Resources requiring {addon}")
