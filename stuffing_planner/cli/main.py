"""Stuffing Planner CLI.

Headless access to stuffing plans: list and manage plans, add and edit
containers, check confirm readiness, move containers through their
lifecycle, and assign packing lists.

Usage:
    stuffing-planner plans list                       List active plans
    stuffing-planner containers readiness PLAN CID    Show missing requirements
    stuffing-planner containers confirm PLAN CID      Confirm a container
    stuffing-planner packing-lists assign PLAN PL... --to CID
"""

import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable
from typing import List, Optional, TypeVar

import typer
from pydantic import ValidationError as ConfigValidationError
from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm

from stuffing_planner.cli.config import PlannerConfig, load_config
from stuffing_planner.cli.factory import build_plan_board, build_workspace, get_plan_store
from stuffing_planner.cli.output import (
    format_plan_detail,
    format_plan_table,
    format_readiness,
)
from stuffing_planner.errors.domain import ConfigurationError
from stuffing_planner.errors.formatter import format_error
from stuffing_planner.models.plan import PlanStatus
from stuffing_planner.services.notifications import (
    Confirmer,
    NotificationEmitter,
    RecordingObserver,
    always_confirm,
)
from stuffing_planner.services.plan_board import PlanBoard
from stuffing_planner.services.workspace import PlanWorkspace

_log = logging.getLogger(__name__)

T = TypeVar("T")

app = typer.Typer(
    name="stuffing-planner",
    help="Container stuffing plans, readiness and packing-list assignment",
    no_args_is_help=True,
)
config_app = typer.Typer(help="Configuration management")
plans_app = typer.Typer(help="Manage stuffing plans")
containers_app = typer.Typer(help="Manage plan containers")
packing_lists_app = typer.Typer(help="Assign packing lists to containers")

app.add_typer(config_app, name="config")
app.add_typer(plans_app, name="plans")
app.add_typer(containers_app, name="containers")
app.add_typer(packing_lists_app, name="packing-lists")

console = Console()

# --- Global state ---
_config_path: str | None = None
_verbose: bool = False


@app.callback()
def main(
    config: Optional[str] = typer.Option(
        None, "--config", help="Path to stuffing-planner.yaml config file"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Stuffing Planner CLI."""
    global _config_path, _verbose
    _config_path = config
    _verbose = verbose


def _config_error(details: str) -> None:
    console.print(f"[red]{escape(format_error(ConfigurationError(details)))}[/red]")


def _setup_logging(cfg: PlannerConfig) -> None:
    level = logging.DEBUG if _verbose else getattr(
        logging, cfg.logging.level.upper(), logging.WARNING
    )
    if cfg.logging.file:
        handler: logging.Handler = logging.FileHandler(cfg.logging.file)
    else:
        handler = logging.StreamHandler(sys.stderr)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s:%(name)s:%(message)s",
        handlers=[handler],
        force=True,
    )


def _load() -> PlannerConfig:
    """Load config and configure logging, exiting with E-4001 on failure."""
    try:
        cfg = load_config(config_path=_config_path)
    except FileNotFoundError as e:
        _config_error(str(e))
        raise typer.Exit(1)
    except ConfigValidationError as e:
        _config_error(str(e))
        raise typer.Exit(1)
    _setup_logging(cfg)
    return cfg


class ConsoleObserver:
    """Prints workspace notifications to the terminal."""

    async def on_success(self, message: str) -> None:
        console.print(f"[green]{escape(message)}[/green]")

    async def on_error(self, message: str) -> None:
        console.print(f"[red]Error:[/red] {escape(message)}")


def _confirmer(yes: bool) -> Confirmer:
    if yes:
        return always_confirm

    async def ask(message: str) -> bool:
        return Confirm.ask(message)

    return ask


def _run_workspace(
    plan_id: str,
    action: Callable[[PlanWorkspace], Awaitable[T]],
    yes: bool = False,
) -> T:
    """Load a plan into a workspace, run action, exit 1 if anything failed."""
    cfg = _load()
    notifier = NotificationEmitter()
    recorder = RecordingObserver()
    notifier.add_observer(ConsoleObserver())
    notifier.add_observer(recorder)

    async def _run():
        async with get_plan_store(cfg) as store:
            workspace = build_workspace(store, notifier, _confirmer(yes), cfg)
            try:
                if await workspace.load(plan_id) is None:
                    return None
                return await action(workspace)
            finally:
                # lookups started by a refresh must not outlive the store
                workspace.positions.blur()

    result = asyncio.run(_run())
    if recorder.errors:
        raise typer.Exit(1)
    return result


def _run_board(action: Callable[[PlanBoard], Awaitable[T]], yes: bool = False) -> T:
    cfg = _load()
    notifier = NotificationEmitter()
    recorder = RecordingObserver()
    notifier.add_observer(ConsoleObserver())
    notifier.add_observer(recorder)

    async def _run():
        async with get_plan_store(cfg) as store:
            board = build_plan_board(store, notifier, _confirmer(yes))
            return await action(board)

    result = asyncio.run(_run())
    if recorder.errors:
        raise typer.Exit(1)
    return result


# --- Config commands ---


@config_app.command("show")
def config_show():
    """Display resolved configuration (secrets masked)."""
    cfg = _load()

    console.print("[bold]Plan Store:[/bold]")
    console.print(f"  base_url: {cfg.plan_store.base_url}")
    key = cfg.plan_store.api_key
    console.print(f"  api_key: {'***' + key[-4:] if len(key) > 4 else ('***' if key else '(none)')}")
    console.print(f"  timeout_seconds: {cfg.plan_store.timeout_seconds}")

    console.print("\n[bold]Duplicate Check:[/bold]")
    console.print(f"  page_size: {cfg.duplicate_check.page_size}")
    console.print(f"  max_pages: {cfg.duplicate_check.max_pages}")

    console.print("\n[bold]Validation:[/bold]")
    console.print(f"  strict_iso6346: {cfg.validation.strict_iso6346}")

    console.print("\n[bold]Logging:[/bold]")
    console.print(f"  level: {cfg.logging.level}")
    console.print(f"  file: {cfg.logging.file or '(stderr)'}")


@config_app.command("validate")
def config_validate(
    config: Optional[str] = typer.Option(None, "--config", help="Config file path"),
):
    """Validate a config file without contacting the Plan Store."""
    path = config or _config_path
    try:
        cfg = load_config(config_path=path)
    except FileNotFoundError as e:
        console.print(f"[red]Config file not found:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    except ConfigValidationError as e:
        console.print(f"[red]Config validation failed:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    console.print("[green]Config is valid.[/green]")
    console.print(f"  Plan Store: {cfg.plan_store.base_url}")
    console.print(f"  Strict ISO 6346: {'enabled' if cfg.validation.strict_iso6346 else 'disabled'}")


# --- Plan commands ---


@plans_app.command("list")
def plans_list(
    show_all: bool = typer.Option(False, "--all", "-a", help="Include DONE plans"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """List recent stuffing plans (active ones by default)."""
    async def action(board: PlanBoard):
        if await board.refresh() is None:
            return
        plans = board.plans if show_all else board.active_plans
        console.print(format_plan_table(plans, as_json=json_output))

    _run_board(action)


@plans_app.command("show")
def plans_show(
    plan_id: str = typer.Argument(help="Plan ID"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Show a plan with its containers and unassigned packing lists."""
    async def action(workspace: PlanWorkspace):
        console.print(format_plan_detail(workspace.plan, as_json=json_output))

    _run_workspace(plan_id, action)


@plans_app.command("create")
def plans_create(
    export_order_id: str = typer.Argument(help="Export order ID"),
    loading_batch: Optional[str] = typer.Option(None, "--batch", "-b", help="Loading batch"),
):
    """Create a stuffing plan for an export order."""
    async def action(board: PlanBoard):
        plan = await board.create_plan(export_order_id, loading_batch)
        if plan is not None:
            console.print(f"  Plan ID: [cyan]{plan.id}[/cyan]")

    _run_board(action)


@plans_app.command("update")
def plans_update(
    plan_id: str = typer.Argument(help="Plan ID"),
    loading_batch: Optional[str] = typer.Option(None, "--batch", "-b", help="Loading batch"),
):
    """Update the loading batch of a plan."""
    async def action(board: PlanBoard):
        await board.update_plan(plan_id, loading_batch)

    _run_board(action)


@plans_app.command("status")
def plans_status(
    plan_id: str = typer.Argument(help="Plan ID"),
    status: PlanStatus = typer.Argument(help="Target status"),
):
    """Move a plan to IN_PROGRESS or DONE."""
    async def action(board: PlanBoard):
        await board.change_status(plan_id, status)

    _run_board(action)


@plans_app.command("delete")
def plans_delete(
    plan_id: str = typer.Argument(help="Plan ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete an empty CREATED plan."""
    async def action(board: PlanBoard):
        if await board.refresh() is None:
            return
        await board.delete_plan(plan_id)

    _run_board(action, yes=yes)


# --- Container commands ---


def _form_values(**options) -> dict:
    return {key: value for key, value in options.items() if value is not None}


@containers_app.command("add")
def containers_add(
    plan_id: str = typer.Argument(help="Plan ID"),
    type_code: str = typer.Option(..., "--type", "-t", help="Container type code, e.g. 22G1"),
    number: Optional[str] = typer.Option(None, "--number", "-n", help="Container number"),
    stuffing_at: Optional[str] = typer.Option(None, "--stuffing-at", help="Estimated stuffing time (ISO 8601)"),
    move_at: Optional[str] = typer.Option(None, "--move-at", help="Estimated move time (ISO 8601)"),
    equipment: bool = typer.Option(False, "--equipment/--no-equipment", help="Equipment booked"),
    appointment: bool = typer.Option(False, "--appointment/--no-appointment", help="Appointment scheduled"),
    notes: Optional[str] = typer.Option(None, "--notes", help="Notes"),
):
    """Add a container to a plan."""
    values = _form_values(
        container_type_code=type_code,
        container_number=number,
        estimated_stuffing_at=stuffing_at,
        estimated_move_at=move_at,
        equipment_booked=equipment,
        appointment_booked=appointment,
        notes=notes,
    )

    async def action(workspace: PlanWorkspace):
        workspace.open_create_modal()
        container = await workspace.save_container(values)
        if container is not None:
            console.print(f"  Container ID: [cyan]{container.id}[/cyan]")

    _run_workspace(plan_id, action)


@containers_app.command("edit")
def containers_edit(
    plan_id: str = typer.Argument(help="Plan ID"),
    container_id: str = typer.Argument(help="Container ID"),
    type_code: Optional[str] = typer.Option(None, "--type", "-t", help="Container type code"),
    number: Optional[str] = typer.Option(None, "--number", "-n", help="Container number ('' clears it)"),
    stuffing_at: Optional[str] = typer.Option(None, "--stuffing-at", help="Estimated stuffing time (ISO 8601)"),
    move_at: Optional[str] = typer.Option(None, "--move-at", help="Estimated move time (ISO 8601)"),
    equipment: Optional[bool] = typer.Option(None, "--equipment/--no-equipment", help="Equipment booked"),
    appointment: Optional[bool] = typer.Option(None, "--appointment/--no-appointment", help="Appointment scheduled"),
    notes: Optional[str] = typer.Option(None, "--notes", help="Notes"),
):
    """Edit a container; options not given keep their current value."""
    changes = _form_values(
        container_type_code=type_code,
        container_number=number,
        estimated_stuffing_at=stuffing_at,
        estimated_move_at=move_at,
        equipment_booked=equipment,
        appointment_booked=appointment,
        notes=notes,
    )

    async def action(workspace: PlanWorkspace):
        form = await workspace.open_edit_modal(container_id)
        if form is None:
            return
        values = {**form.model_dump(), **changes}
        await workspace.save_container(values)

    _run_workspace(plan_id, action)


@containers_app.command("delete")
def containers_delete(
    plan_id: str = typer.Argument(help="Plan ID"),
    container_id: str = typer.Argument(help="Container ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete an empty CREATED or SPECIFIED container."""
    async def action(workspace: PlanWorkspace):
        await workspace.delete_container(container_id)

    _run_workspace(plan_id, action, yes=yes)


async def _focus(workspace: PlanWorkspace, container_id: str) -> bool:
    """Select the container view and wait for its position lookup."""
    if not await workspace.select_view(container_id):
        return False
    await workspace.positions.settle()
    return True


@containers_app.command("readiness")
def containers_readiness(
    plan_id: str = typer.Argument(help="Plan ID"),
    container_id: str = typer.Argument(help="Container ID"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Show which confirm requirements a container still misses."""
    async def action(workspace: PlanWorkspace):
        if not await _focus(workspace, container_id):
            return
        report = workspace.readiness_for(container_id)
        container = workspace.plan.get_container(container_id)
        console.print(format_readiness(container, report, as_json=json_output))

    _run_workspace(plan_id, action)


@containers_app.command("confirm")
def containers_confirm(
    plan_id: str = typer.Argument(help="Plan ID"),
    container_id: str = typer.Argument(help="Container ID"),
):
    """Confirm a SPECIFIED container that meets every requirement."""
    async def action(workspace: PlanWorkspace):
        if await _focus(workspace, container_id):
            await workspace.confirm_container(container_id)

    _run_workspace(plan_id, action)


@containers_app.command("unconfirm")
def containers_unconfirm(
    plan_id: str = typer.Argument(help="Plan ID"),
    container_id: str = typer.Argument(help="Container ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Return a CONFIRMED container to SPECIFIED."""
    async def action(workspace: PlanWorkspace):
        await workspace.unconfirm_container(container_id)

    _run_workspace(plan_id, action, yes=yes)


@containers_app.command("start-stuffing")
def containers_start_stuffing(
    plan_id: str = typer.Argument(help="Plan ID"),
    container_id: str = typer.Argument(help="Container ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Start stuffing a CONFIRMED container. This cannot be undone."""
    async def action(workspace: PlanWorkspace):
        await workspace.start_stuffing(container_id)

    _run_workspace(plan_id, action, yes=yes)


# --- Packing list commands ---


@packing_lists_app.command("assign")
def packing_lists_assign(
    plan_id: str = typer.Argument(help="Plan ID"),
    packing_list_ids: List[str] = typer.Argument(help="Packing list IDs to assign"),
    target: Optional[str] = typer.Option(
        None, "--to", help="Target container ID (defaults to the first unconfirmed container)"
    ),
):
    """Assign unassigned packing lists to a container."""
    async def action(workspace: PlanWorkspace):
        await workspace.select_view(None)
        await workspace.assign_selected(target, packing_list_ids)

    _run_workspace(plan_id, action)


@packing_lists_app.command("unassign")
def packing_lists_unassign(
    plan_id: str = typer.Argument(help="Plan ID"),
    container_id: str = typer.Argument(help="Container the packing lists leave"),
    packing_list_ids: List[str] = typer.Argument(help="Packing list IDs to unassign"),
):
    """Return packing lists from a container to the unassigned group."""
    async def action(workspace: PlanWorkspace):
        if await workspace.select_view(container_id):
            await workspace.unassign_selected(packing_list_ids)

    _run_workspace(plan_id, action)


if __name__ == "__main__":
    app()
