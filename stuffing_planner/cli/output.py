"""CLI output formatters for Rich tables and JSON.

Provides human-readable Rich table output (default) and machine-parseable
JSON output (--json flag). All formatting goes through these functions
so the CLI commands stay clean.
"""

import dataclasses
import json

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from stuffing_planner.models.plan import Plan, PlanContainer, PlanPackingList
from stuffing_planner.services.readiness import ReadinessReport
from stuffing_planner.services.workspace import sort_containers

console = Console()

# Status color map for plans and containers
STATUS_COLORS = {
    "CREATED": "white",
    "SPECIFIED": "cyan",
    "CONFIRMED": "green",
    "IN_PROGRESS": "yellow",
    "STUFFED": "blue",
    "DONE": "dim",
}


def _status(value: str) -> str:
    color = STATUS_COLORS.get(value, "white")
    return f"[{color}]{value}[/{color}]"


def _yes_no(flag: bool) -> str:
    return "[green]yes[/green]" if flag else "[red]no[/red]"


def _render(renderable) -> str:
    with console.capture() as capture:
        console.print(renderable)
    return capture.get()


def _to_json(value) -> str:
    return json.dumps(value, indent=2, default=str)


def format_plan_table(plans: list[Plan], as_json: bool = False) -> str:
    """Format a list of plans as a Rich table or JSON.

    Args:
        plans: Plans to display.
        as_json: If True, return JSON string instead of Rich table.

    Returns:
        Formatted string output.
    """
    if as_json:
        return _to_json([dataclasses.asdict(p) for p in plans])

    if not plans:
        return "No stuffing plans found."

    table = Table(title="Stuffing Plans", show_lines=True)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Code", style="white")
    table.add_column("Status")
    table.add_column("Export Order")
    table.add_column("Batch")
    table.add_column("Containers", justify="right")
    table.add_column("Unassigned PLs", justify="right")
    table.add_column("Created")

    for plan in plans:
        table.add_row(
            plan.id[:12],
            plan.code or "—",
            _status(plan.status.value),
            plan.export_order_id or "—",
            plan.loading_batch or "—",
            str(len(plan.containers)),
            str(len(plan.packing_lists_in(None))),
            plan.created_at[:19] if plan.created_at else "—",
        )
    return _render(table)


def format_container_table(containers: list[PlanContainer]) -> Table:
    table = Table(title="Containers", show_lines=False)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Container")
    table.add_column("Status")
    table.add_column("PLs", justify="right")
    table.add_column("Equipment")
    table.add_column("Appointment")
    table.add_column("Est. Stuffing")
    table.add_column("Est. Move")

    for container in sort_containers(containers):
        table.add_row(
            container.id[:12],
            container.label,
            _status(container.status.value),
            str(container.assigned_packing_list_count),
            _yes_no(container.equipment_booked),
            _yes_no(container.appointment_booked),
            container.estimated_stuffing_at or "—",
            container.estimated_move_at or "—",
        )
    return table


def format_packing_list_table(packing_lists: list[PlanPackingList], title: str) -> Table:
    table = Table(title=title, show_lines=False)
    table.add_column("Packing List ID", style="cyan", no_wrap=True)
    table.add_column("Number")
    table.add_column("Customs Ref")
    table.add_column("Shipper")
    table.add_column("Consignee")
    for pl in packing_lists:
        table.add_row(
            pl.packing_list_id or "—",
            pl.packing_list_number or "—",
            pl.customs_declaration_number or "—",
            pl.shipper or "—",
            pl.consignee or "—",
        )
    return table


def format_plan_detail(plan: Plan, as_json: bool = False) -> str:
    """Format a single plan with its containers and unassigned packing lists."""
    if as_json:
        return _to_json(dataclasses.asdict(plan))

    lines = [
        f"[bold]Plan ID:[/bold]       {plan.id}",
        f"[bold]Code:[/bold]          {plan.code or '—'}",
        f"[bold]Status:[/bold]        {_status(plan.status.value)}",
        f"[bold]Export order:[/bold]  {plan.export_order_id or '—'}",
        f"[bold]Loading batch:[/bold] {plan.loading_batch or '—'}",
    ]
    parts = [Panel("\n".join(lines), title=f"Plan {plan.label}")]
    if plan.containers:
        parts.append(format_container_table(plan.containers))
    unassigned = plan.packing_lists_in(None)
    if unassigned:
        parts.append(format_packing_list_table(unassigned, "Unassigned Packing Lists"))

    with console.capture() as capture:
        for part in parts:
            console.print(part)
    return capture.get()


def format_readiness(
    container: PlanContainer, report: ReadinessReport, as_json: bool = False
) -> str:
    """Format the confirm readiness of one container."""
    if as_json:
        return _to_json(dataclasses.asdict(report))

    position = report.position_status
    position_text = position.state.value
    if position.value:
        position_text = f"{position_text} ({position.value})"

    lines = [
        f"[bold]Container:[/bold] {container.label}",
        f"[bold]Status:[/bold]    {_status(container.status.value)}",
        f"[bold]Position:[/bold]  {position_text}",
        "",
    ]
    if report.can_confirm:
        lines.append("[green]Ready to confirm.[/green]")
    elif report.missing:
        lines.append("[bold]Missing requirements:[/bold]")
        lines.extend(f"  [red]✗[/red] {item}" for item in report.missing)
    else:
        lines.append(f"[dim]Confirmation does not apply in {container.status.value} status.[/dim]")
    return _render(Panel("\n".join(lines), title="Readiness"))
