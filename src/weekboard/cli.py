"""weekboard CLI - Weekly task board."""

import json
import logging
import sys
from datetime import datetime

import click

from .adapters.file_dismissals import FileDismissalStore
from .alert_watcher import AlertWatcher, run_watcher
from .board import Board, NewPlan
from .config import load_config
from .core.alerts import AlertKind
from .core.drag import DragController, column_for_id
from .core.errors import ForwardError, ReorderError
from .core.ordering import SortMode, ViewFilter
from .core.recurrence import rule_from_strings
from .core.tasks import COLUMNS, UNSET, Label, Priority, Status, Task, TaskUpdate, parse_instant, utcnow

STATUS_CHOICES = click.Choice([s.value for s in Status])
PRIORITY_CHOICES = click.Choice([p.value for p in Priority])
LABEL_CHOICES = click.Choice([label.value for label in Label])
SORT_CHOICES = click.Choice([m.value for m in SortMode])
FREQUENCY_CHOICES = click.Choice(["daily", "weekly", "monthly", "quarterly", "yearly"])

HEADER_TITLES = {Status.TODO: "TO DO", Status.IN_PROGRESS: "IN PROGRESS", Status.COMPLETE: "COMPLETE"}


def _instant(value: str | None, param: str) -> datetime | None:
    if value is None:
        return None
    try:
        return parse_instant(value)
    except ValueError:
        raise click.BadParameter(f"not an ISO date/time: {value}", param_hint=param)


def _open_board() -> Board:
    return Board.open(load_config())


def _task_line(task: Task) -> str:
    priority = {"high": "!!!", "medium": "!! ", "low": "!  ", "none": "   "}[task.priority.value]
    extras = []
    if task.due_at:
        extras.append(f"due {task.due_at.strftime('%Y-%m-%d %H:%M')}")
    if task.weekly_plan_id:
        extras.append(f"plan {task.weekly_plan_id[:8]}")
    if task.forwarded_to_task_id:
        extras.append("forwarded")
    if task.archived_at:
        extras.append("archived")
    if task.bugged:
        extras.append("bugged")
    suffix = f" ({', '.join(extras)})" if extras else ""
    return f"[{priority}] {task.id[:8]} {task.title}{suffix}"


def _resolve_id(board: Board, prefix: str) -> str:
    """Accept a full task id or a unique prefix."""
    if board.get_task(prefix):
        return prefix
    matches = [t.id for t in board.tasks() if t.id.startswith(prefix)]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        click.echo(f"Error: no task matches {prefix}", err=True)
    else:
        click.echo(f"Error: {prefix} matches {len(matches)} tasks", err=True)
    sys.exit(1)


@click.group()
@click.version_option(package_name="weekboard")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
def main(verbose: bool):
    """weekboard - Weekly task board CLI."""
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.DEBUG if verbose else logging.WARNING,
    )


@main.command()
@click.argument("title")
@click.option("--status", type=STATUS_CHOICES, default="todo")
@click.option("--description", default="")
@click.option("--priority", type=PRIORITY_CHOICES, default="none")
@click.option("--label", type=LABEL_CHOICES, default="none")
@click.option("--category", default=None)
@click.option("--bugged", is_flag=True)
@click.option("--plan", "plan_id", default=None, help="Weekly plan id")
@click.option("--step", "formula_step_id", default=None, help="Formula step id")
@click.option("--due", default=None, help="Due instant (ISO 8601)")
@click.option("--remind", default=None, help="Reminder instant (ISO 8601)")
@click.option("--repeat", type=FREQUENCY_CHOICES, default=None)
@click.option("--repeat-start", default=None, help="Recurrence start date (YYYY-MM-DD)")
def add(title, status, description, priority, label, category, bugged, plan_id, formula_step_id, due, remind, repeat, repeat_start):
    """Add a task at the end of a column."""
    board = _open_board()
    if plan_id and board.get_plan(plan_id) is None:
        click.echo(f"Error: weekly plan {plan_id} not found", err=True)
        sys.exit(1)
    task = board.add_task(
        title,
        Status(status),
        description=description,
        priority=Priority(priority),
        label=Label(label),
        category=category,
        bugged=bugged,
        weekly_plan_id=plan_id,
        formula_step_id=formula_step_id,
        due_at=_instant(due, "--due"),
        reminder_at=_instant(remind, "--remind"),
        recurrence_rule=rule_from_strings(repeat, repeat_start) if repeat else None,
    )
    click.echo(f"Added {task.id}")


@main.command()
@click.option("--plan", "plan_id", default=None, help="Show one weekly plan's tasks")
@click.option("--sort", "sort_mode", type=SORT_CHOICES, default=None)
@click.option("--category", "categories", multiple=True)
@click.option("--bugged", is_flag=True, help="Only bugged tasks")
@click.option("--step", "steps", multiple=True, help="Only these formula steps")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def show(plan_id, sort_mode, categories, bugged, steps, as_json):
    """Show the board, column by column."""
    board = _open_board()
    view_filter = ViewFilter(categories=list(categories), bugged_only=bugged, formula_steps=list(steps))
    mode = SortMode(sort_mode) if sort_mode else None
    columns = {status: board.column(status, plan_id, mode, view_filter) for status in COLUMNS}

    if as_json:
        click.echo(
            json.dumps(
                {status.value: [t.to_dict() for t in tasks] for status, tasks in columns.items()},
                indent=2,
            )
        )
        return

    for status, tasks in columns.items():
        click.echo(click.style(f"{HEADER_TITLES[status]} ({len(tasks)})", bold=True))
        if not tasks:
            click.echo("  (empty)")
        for task in tasks:
            click.echo(f"  {_task_line(task)}")
        click.echo()


@main.command()
@click.argument("task_id")
@click.argument("status", type=STATUS_CHOICES)
@click.option("--index", type=int, default=None, help="Position in the column (default: last)")
def move(task_id, status, index):
    """Move a task to a column."""
    board = _open_board()
    task_id = _resolve_id(board, task_id)
    target = Status(status)
    if index is None:
        index = len([t for t in board.tasks() if t.status is target and t.id != task_id])
    board.move_task(task_id, target, index)
    click.echo(f"Moved {task_id[:8]} to {status}")


@main.command()
@click.argument("task_id")
@click.option("--over", "over_targets", multiple=True, help="Target passed over (task id or column), in order")
@click.option("--drop", "drop_target", default=None, help="Final target (task id or column)")
def drag(task_id, over_targets, drop_target):
    """Replay a drag gesture: pass over targets, then drop."""
    board = _open_board()
    task_id = _resolve_id(board, task_id)

    def target(raw: str) -> str:
        return raw if column_for_id(raw) else _resolve_id(board, raw)

    controller = DragController(board)
    controller.start(task_id)
    for raw in over_targets:
        move = controller.over([target(raw)])
        if move:
            click.echo(f"  -> {move.to_status.value}[{move.to_index}]")
    reordered = controller.end([target(drop_target)] if drop_target else [])
    if reordered:
        click.echo("  reordered within column")


@main.command()
@click.argument("status", type=STATUS_CHOICES)
@click.argument("task_ids", nargs=-1, required=True)
def reorder(status, task_ids):
    """Set a column's full order from a list of task ids."""
    board = _open_board()
    ids = [_resolve_id(board, t) for t in task_ids]
    try:
        board.reorder_partition(Status(status), ids)
    except ReorderError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(f"Reordered {status}")


@main.command()
@click.argument("task_id")
def complete(task_id):
    """Mark a task complete."""
    board = _open_board()
    task_id = _resolve_id(board, task_id)
    index = len([t for t in board.tasks() if t.status is Status.COMPLETE])
    board.move_task(task_id, Status.COMPLETE, index)
    click.echo(f"Completed {task_id[:8]}")


@main.command()
@click.argument("task_id")
@click.option("--title", default=None)
@click.option("--description", default=None)
@click.option("--priority", type=PRIORITY_CHOICES, default=None)
@click.option("--label", type=LABEL_CHOICES, default=None)
@click.option("--category", default=None)
@click.option("--step", "formula_step_id", default=None)
@click.option("--due", default=None)
@click.option("--clear-due", is_flag=True)
@click.option("--remind", default=None)
@click.option("--clear-reminder", is_flag=True)
@click.option("--no-repeat", is_flag=True, help="Stop the task recurring")
def edit(task_id, title, description, priority, label, category, formula_step_id, due, clear_due, remind, clear_reminder, no_repeat):
    """Edit task fields."""
    board = _open_board()
    task_id = _resolve_id(board, task_id)
    update = TaskUpdate(
        title=title if title is not None else UNSET,
        description=description if description is not None else UNSET,
        priority=Priority(priority) if priority else UNSET,
        label=Label(label) if label else UNSET,
        category=category if category is not None else UNSET,
        formula_step_id=formula_step_id if formula_step_id is not None else UNSET,
        due_at=None if clear_due else (_instant(due, "--due") if due else UNSET),
        reminder_at=None if clear_reminder else (_instant(remind, "--remind") if remind else UNSET),
        recurrence_rule=None if no_repeat else UNSET,
    )
    if update.is_empty():
        click.echo("Nothing to change.")
        return
    board.update_task(task_id, update)
    click.echo(f"Updated {task_id[:8]}")


@main.command()
@click.argument("task_id")
def delete(task_id):
    """Delete a task."""
    board = _open_board()
    task_id = _resolve_id(board, task_id)
    board.delete_task(task_id)
    click.echo(f"Deleted {task_id[:8]}")


@main.command()
def plans():
    """List weekly plans."""
    board = _open_board()
    all_plans = board.plans()
    if not all_plans:
        click.echo("No weekly plans.")
        return
    for plan in all_plans:
        count = len([t for t in board.tasks() if t.weekly_plan_id == plan.id])
        click.echo(f"{plan.id[:8]}  {plan.week_start.strftime('%Y-%m-%d')}  {plan.title} ({count} tasks)")


@main.command("plan-add")
@click.argument("title")
@click.option("--week-start", default=None, help="Week start (ISO 8601, default: now)")
@click.option("--formula", "formula_id", default=None)
def plan_add(title, week_start, formula_id):
    """Create a weekly plan."""
    board = _open_board()
    plan = board.add_plan(title, _instant(week_start, "--week-start") or utcnow(), formula_id)
    click.echo(f"Added plan {plan.id}")


@main.command()
@click.argument("task_ids", nargs=-1, required=True)
@click.option("--plan", "plan_id", default=None, help="Destination weekly plan id")
@click.option("--new-plan", "new_plan_title", default=None, help="Create a plan with this title first")
@click.option("--week-start", default=None, help="Week start for --new-plan")
def forward(task_ids, plan_id, new_plan_title, week_start):
    """Forward unfinished tasks into a weekly plan."""
    board = _open_board()
    ids = [_resolve_id(board, t) for t in task_ids]
    new_plan = None
    if new_plan_title:
        new_plan = NewPlan(title=new_plan_title, week_start=_instant(week_start, "--week-start") or utcnow())
    try:
        result = board.forward(ids, plan_id=plan_id, new_plan=new_plan)
    except ForwardError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Forwarded {result.forwarded_count} task(s) to plan {result.plan_id}")
    for source_id, reason in result.rejected.items():
        click.echo(f"  skipped {source_id[:8]}: {reason.value}")


@main.command()
@click.option("--cutoff", default=None, help="Archive before this instant (default: current week start)")
def archive(cutoff):
    """Archive completed tasks from previous weeks."""
    board = Board.open(load_config(), auto_archive=False)
    archived = board.archive(_instant(cutoff, "--cutoff"))
    click.echo(f"Archived {len(archived)} task(s)")


@main.command()
def archived():
    """List archived tasks."""
    board = _open_board()
    tasks = board.archived()
    if not tasks:
        click.echo("No archived tasks.")
        return
    for task in tasks:
        click.echo(_task_line(task))


@main.command()
@click.argument("task_id")
def restore(task_id):
    """Restore an archived task to todo."""
    board = _open_board()
    task_id = _resolve_id(board, task_id)
    if not board.restore(task_id):
        click.echo(f"Error: task {task_id[:8]} is not archived", err=True)
        sys.exit(1)
    click.echo(f"Restored {task_id[:8]}")


@main.command()
def alerts():
    """Run one alert scan and print what fires."""
    config = load_config()
    watcher = AlertWatcher(Board.open(config), FileDismissalStore(config.dismissals_path), reload=False)
    fired = watcher.tick()
    if not fired:
        click.echo("No new alerts.")
        return
    for alert in fired:
        click.echo(f"[{alert.kind.value}] {alert.key}  {alert.title}")


@main.command()
@click.argument("kind", type=click.Choice([k.value for k in AlertKind]))
@click.argument("key")
def dismiss(kind, key):
    """Dismiss an alert by its key (taskId:dueAt or taskId)."""
    config = load_config()
    watcher = AlertWatcher(Board.open(config), FileDismissalStore(config.dismissals_path), reload=False)
    watcher.dismiss_key(AlertKind(kind), key)
    click.echo(f"Dismissed {kind} {key}")


@main.command()
def watch():
    """Scan for alerts on an interval until interrupted."""
    try:
        run_watcher()
    except KeyboardInterrupt:
        click.echo("Stopped.")
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
